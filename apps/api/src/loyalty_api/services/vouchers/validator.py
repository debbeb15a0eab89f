"""Check a voucher code against the member's live voucher list."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Mapping

from loguru import logger

from loyalty_api.observability.vouchers import VoucherObservabilityStore, get_voucher_store
from loyalty_api.services.loyalty_cloud import LoyaltyCloudGateway, LoyaltyVoucherClient, ResponseParseError
from loyalty_api.services.loyalty_cloud.mappers import is_expired
from .results import Outcome, ValidatedVoucher, ValidationResult, VoucherErrorKind, VoucherMessages

STATUS_ISSUED = "Issued"
STATUS_REDEEMED = "Redeemed"
STATUS_CANCELLED = "Cancelled"

Clock = Callable[[], datetime]


def _to_decimal(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def _ineligibility_message(voucher: Mapping[str, Any], expired: bool) -> str:
    if expired:
        return VoucherMessages.EXPIRED
    status = voucher.get("status")
    if status == STATUS_REDEEMED:
        return VoucherMessages.ALREADY_REDEEMED
    if status == STATUS_CANCELLED:
        return VoucherMessages.CANCELLED
    if voucher.get("isVoucherDefinitionActive") is False:
        return VoucherMessages.DEFINITION_INACTIVE
    return VoucherMessages.INACTIVE


class VoucherValidator:
    """Vouchers are fetched from the provider on every call, never cached."""

    def __init__(
        self,
        gateway: LoyaltyCloudGateway,
        *,
        observability: VoucherObservabilityStore | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._vouchers = LoyaltyVoucherClient(gateway)
        self._observability = observability or get_voucher_store()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def validate(self, voucher_code: str | None, membership_number: str | None) -> ValidationResult:
        try:
            outcome = await self._validate(voucher_code, membership_number)
        except Exception as exc:
            logger.exception("Voucher validation failed unexpectedly", voucher_code=voucher_code, error=str(exc))
            outcome = Outcome.err(VoucherErrorKind.UNEXPECTED, VoucherMessages.VALIDATION_UNEXPECTED)

        if outcome.error:
            self._observability.record_failure("validate", outcome.kind.value, outcome.message)
        else:
            self._observability.record_success("validate")
        return outcome

    async def _validate(self, voucher_code: str | None, membership_number: str | None) -> ValidationResult:
        voucher_code = (voucher_code or "").strip()
        membership_number = (membership_number or "").strip()
        if not voucher_code or not membership_number:
            return Outcome.err(VoucherErrorKind.INPUT, VoucherMessages.MISSING_PARAMETERS)

        result = await self._vouchers.get_vouchers(membership_number)
        if not result.ok:
            logger.error(
                "Voucher list retrieval failed",
                membership_number=membership_number,
                error=result.error_message or "Failed to retrieve vouchers",
                status_code=result.status_code,
            )
            return Outcome.err(VoucherErrorKind.UPSTREAM, VoucherMessages.RETRIEVAL_FAILED)

        try:
            body = result.json()
        except ResponseParseError as exc:
            logger.error("Voucher list response is not valid JSON", membership_number=membership_number, error=str(exc))
            return Outcome.err(VoucherErrorKind.UPSTREAM, VoucherMessages.RESPONSE_PARSE)

        vouchers = body.get("vouchers") if isinstance(body, Mapping) else None
        if not vouchers or not isinstance(vouchers, list):
            return Outcome.err(VoucherErrorKind.NOT_FOUND, VoucherMessages.NOT_FOUND)

        voucher = next(
            (item for item in vouchers if isinstance(item, Mapping) and item.get("voucherCode") == voucher_code),
            None,
        )
        if voucher is None:
            return Outcome.err(VoucherErrorKind.NOT_FOUND, VoucherMessages.CODE_NOT_FOUND)

        expired = is_expired(voucher.get("expirationDate"), now=self._clock())
        active = not expired and voucher.get("status") == STATUS_ISSUED and voucher.get("isVoucherDefinitionActive") is True
        if not active:
            return Outcome.err(VoucherErrorKind.INELIGIBLE, _ineligibility_message(voucher, expired))

        face_value = _to_decimal(voucher.get("faceValue"))
        if face_value is None:
            logger.error("Voucher face value missing from provider response", voucher_code=voucher_code)
            return Outcome.err(VoucherErrorKind.UPSTREAM, VoucherMessages.RESPONSE_PARSE)

        validated = ValidatedVoucher(
            voucher_id=voucher.get("voucherId"),
            voucher_code=voucher["voucherCode"],
            face_value=face_value,
            remaining_value=_to_decimal(voucher.get("remainingValue")),
            status=voucher.get("status"),
            expiration_date=voucher.get("expirationDate"),
            is_expired=expired,
            is_active=active,
        )
        logger.debug(
            "Voucher validated",
            voucher_code=voucher_code,
            status=validated.status,
            face_value=str(validated.face_value),
        )
        return Outcome.ok(validated, VoucherMessages.VALID)


__all__ = ["VoucherValidator"]
