"""Loyalty Cloud gateway, clients and payload mappers."""

from .config import LoyaltyCloudConfig  # noqa: F401
from .errors import (  # noqa: F401
    EnrollmentError,
    LoyaltyCloudError,
    MemberNotEnrolledError,
    VoucherIssuanceError,
)
from .gateway import (  # noqa: F401
    LoyaltyCloudGateway,
    LoyaltyCloudService,
    ResponseParseError,
    ServiceResult,
    handle_service_result,
    program_placeholders,
)
from .history import LoyaltyHistoryClient  # noqa: F401
from .program import LoyaltyProgramClient  # noqa: F401
from .state import LoyaltyCloudStateStore  # noqa: F401
from .vouchers import LoyaltyVoucherClient  # noqa: F401

__all__ = [
    "EnrollmentError",
    "LoyaltyCloudConfig",
    "LoyaltyCloudError",
    "LoyaltyCloudGateway",
    "LoyaltyCloudService",
    "LoyaltyCloudStateStore",
    "LoyaltyHistoryClient",
    "LoyaltyProgramClient",
    "LoyaltyVoucherClient",
    "MemberNotEnrolledError",
    "ResponseParseError",
    "ServiceResult",
    "VoucherIssuanceError",
    "handle_service_result",
    "program_placeholders",
]
