"""Payment processor for `LOYALTY_MANAGEMENT_VOUCHER` instruments.

Authorization consumes the voucher with the provider before any transaction
field is written; a failed consumption leaves the instrument untouched.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping

from loguru import logger

from loyalty_api.models.basket import Basket
from loyalty_api.models.payment import VOUCHER_PAYMENT_METHOD, PaymentInstrument, PaymentTransactionTypeEnum
from loyalty_api.observability.vouchers import VoucherObservabilityStore, get_voucher_store
from loyalty_api.services.loyalty_cloud import LoyaltyCloudGateway, LoyaltyVoucherClient
from .results import AuthorizationResult, VoucherMessages


class VoucherPaymentProcessor:
    processor_id = VOUCHER_PAYMENT_METHOD

    def __init__(self, gateway: LoyaltyCloudGateway, *, observability: VoucherObservabilityStore | None = None) -> None:
        self._vouchers = LoyaltyVoucherClient(gateway)
        self._observability = observability or get_voucher_store()

    def process_form(self, payment_form: Mapping[str, Any], view_data: Dict[str, Any]) -> Dict[str, Any]:
        method = payment_form.get("paymentMethod")
        view_data["paymentMethod"] = {"value": method, "htmlName": method}
        return {"error": False, "viewData": view_data}

    async def handle(self, basket: Basket) -> Dict[str, bool]:
        return {"success": True, "error": False}

    async def authorize(
        self,
        order_number: str,
        payment_instrument: PaymentInstrument,
        payment_processor: str,
        *,
        membership_number: str | None,
    ) -> AuthorizationResult:
        voucher_id = (payment_instrument.custom or {}).get("voucherId")
        bound = logger.bind(order_number=order_number, voucher_id=voucher_id)
        try:
            result = await self._vouchers.consume_voucher(voucher_id, membership_number)
            if not result.ok:
                raise RuntimeError(result.error_message or "Consume Voucher call failed")

            body = result.json()
            if not isinstance(body, Mapping):
                raise ValueError("Consume Voucher response is not an object")
            if not body.get("status"):
                message = body.get("message") or VoucherMessages.TECHNICAL_ERROR
                bound.warning("Voucher consumption rejected", reason=message)
                self._observability.record_failure("authorize", "rejected", message)
                return AuthorizationResult.failed(message)

            payment_instrument.transaction_id = order_number
            payment_instrument.transaction_type = PaymentTransactionTypeEnum.CAPTURE
            payment_instrument.payment_processor = payment_processor
        except Exception as exc:
            bound.exception("Voucher authorization failed", error=str(exc))
            self._observability.record_failure("authorize", "technical", str(exc))
            return AuthorizationResult.failed(VoucherMessages.TECHNICAL_ERROR)

        bound.info("Voucher consumed for order")
        self._observability.record_success("authorize")
        return AuthorizationResult()


__all__ = ["VoucherPaymentProcessor"]
