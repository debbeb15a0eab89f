from __future__ import annotations


class LoyaltyCloudError(RuntimeError):
    """Raised when a Loyalty Cloud operation cannot be completed."""

    def __init__(self, message: str, *, status_code: int | None = None, detail: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class EnrollmentError(LoyaltyCloudError):
    """Raised when a customer cannot be enrolled as a program member."""


class MemberNotEnrolledError(LoyaltyCloudError):
    """Raised when an operation needs a provider member id the customer does not have."""


class VoucherIssuanceError(LoyaltyCloudError):
    """Raised when points cannot be converted into a voucher."""


__all__ = ["EnrollmentError", "LoyaltyCloudError", "MemberNotEnrolledError", "VoucherIssuanceError"]
