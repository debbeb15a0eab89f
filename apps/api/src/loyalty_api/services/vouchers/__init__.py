"""Voucher-as-payment workflow: validate, apply, roll back, consume."""

from .applier import VoucherApplier, write_voucher_attributes  # noqa: F401
from .consumer import VoucherPaymentProcessor  # noqa: F401
from .results import (  # noqa: F401
    AuthorizationResult,
    Money,
    Outcome,
    RedemptionDetails,
    RedemptionResult,
    ValidatedVoucher,
    ValidationResult,
    VoucherErrorKind,
    VoucherMessages,
)
from .validator import VoucherValidator  # noqa: F401

__all__ = [
    "AuthorizationResult",
    "Money",
    "Outcome",
    "RedemptionDetails",
    "RedemptionResult",
    "ValidatedVoucher",
    "ValidationResult",
    "VoucherApplier",
    "VoucherErrorKind",
    "VoucherMessages",
    "VoucherPaymentProcessor",
    "VoucherValidator",
    "write_voucher_attributes",
]
