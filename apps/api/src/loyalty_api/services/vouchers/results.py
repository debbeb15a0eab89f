"""Tagged outcomes returned by the voucher workflow."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Generic, List, TypeVar

T = TypeVar("T")


class VoucherErrorKind(str, Enum):
    INPUT = "input"
    NOT_FOUND = "not_found"
    INELIGIBLE = "ineligible"
    UPSTREAM = "upstream"
    BUSINESS_RULE = "business_rule"
    UNEXPECTED = "unexpected"


class VoucherMessages:
    MISSING_PARAMETERS = "Voucher code and membership number are required."
    RETRIEVAL_FAILED = "Unable to retrieve your vouchers right now. Please try again later."
    RESPONSE_PARSE = "The voucher information could not be read. Please try again later."
    NOT_FOUND = "No vouchers were found for this member."
    CODE_NOT_FOUND = "The voucher code was not found."
    EXPIRED = "This voucher has expired."
    ALREADY_REDEEMED = "This voucher has already been redeemed."
    CANCELLED = "This voucher has been cancelled."
    DEFINITION_INACTIVE = "This voucher type is no longer active."
    INACTIVE = "This voucher is not active."
    VALIDATION_UNEXPECTED = "An unexpected error occurred while validating the voucher."
    VALID = "The voucher is valid."

    NO_BASKET = "No active basket was found."
    INSUFFICIENT_VALUE = "The voucher value must be greater than the order total."
    APPLY_UNEXPECTED = "An unexpected error occurred while applying the voucher."
    APPLIED = "The voucher was applied to your order."

    NOT_APPLIED = "No voucher is applied to this basket."
    ROLLBACK_UNEXPECTED = "An unexpected error occurred while removing the voucher."
    REMOVED = "The voucher was removed from your order."

    TECHNICAL_ERROR = "A technical error occurred while processing your payment. Please try again."


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """`Ok(value)` when `kind` is None, otherwise `Err(kind, message)`."""

    value: T | None = None
    message: str = ""
    kind: VoucherErrorKind | None = None

    @property
    def error(self) -> bool:
        return self.kind is not None

    @classmethod
    def ok(cls, value: T | None, message: str) -> "Outcome[T]":
        return cls(value=value, message=message)

    @classmethod
    def err(cls, kind: VoucherErrorKind, message: str) -> "Outcome[T]":
        return cls(message=message, kind=kind)


@dataclass(frozen=True)
class Money:
    amount: Decimal
    currency: str

    def as_dict(self) -> Dict[str, Any]:
        return {"value": float(self.amount), "currency": self.currency}


@dataclass(frozen=True)
class ValidatedVoucher:
    voucher_id: str | None
    voucher_code: str
    face_value: Decimal
    remaining_value: Decimal | None
    status: str | None
    expiration_date: str | None
    is_expired: bool
    is_active: bool

    def as_dict(self) -> Dict[str, Any]:
        return {
            "voucherId": self.voucher_id,
            "voucherCode": self.voucher_code,
            "faceValue": float(self.face_value),
            "remainingValue": float(self.remaining_value) if self.remaining_value is not None else None,
            "status": self.status,
            "expirationDate": self.expiration_date,
            "isExpired": self.is_expired,
            "isActive": self.is_active,
        }


@dataclass(frozen=True)
class RedemptionDetails:
    voucher_code: str
    face_value: Money
    redeemed_amount: Money

    def as_dict(self) -> Dict[str, Any]:
        return {
            "voucherCode": self.voucher_code,
            "faceValue": self.face_value.as_dict(),
            "redeemedAmount": self.redeemed_amount.as_dict(),
        }


@dataclass
class AuthorizationResult:
    error: bool = False
    field_errors: Dict[str, str] = field(default_factory=dict)
    server_errors: List[str] = field(default_factory=list)

    @classmethod
    def failed(cls, message: str) -> "AuthorizationResult":
        return cls(error=True, server_errors=[message])


ValidationResult = Outcome[ValidatedVoucher]
RedemptionResult = Outcome[RedemptionDetails]

__all__ = [
    "AuthorizationResult",
    "Money",
    "Outcome",
    "RedemptionDetails",
    "RedemptionResult",
    "ValidatedVoucher",
    "ValidationResult",
    "VoucherErrorKind",
    "VoucherMessages",
]
