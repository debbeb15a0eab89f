"""Attach and detach the voucher payment instrument on a basket."""

from __future__ import annotations

import json
from decimal import Decimal
from typing import Any, Mapping

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from loyalty_api.models.basket import Basket
from loyalty_api.models.payment import VOUCHER_PAYMENT_METHOD, PaymentInstrument
from loyalty_api.observability.vouchers import VoucherObservabilityStore, get_voucher_store
from loyalty_api.services.basket import BasketLocks, BasketService, basket_locks
from .results import (
    Money,
    Outcome,
    RedemptionDetails,
    RedemptionResult,
    VoucherErrorKind,
    VoucherMessages,
)
from .validator import VoucherValidator


def write_voucher_attributes(instrument: PaymentInstrument, attributes: Mapping[str, Any]) -> bool:
    """Store voucher metadata on the instrument; a failed write leaves the instrument intact."""

    try:
        custom = dict(instrument.custom or {})
        for key, value in attributes.items():
            json.dumps(value)
            custom[key] = value
        instrument.custom = custom
    except (TypeError, ValueError) as exc:
        logger.warning("Could not set voucher attributes on payment instrument", error=str(exc))
        return False
    return True


class VoucherApplier:
    """Apply a validated voucher as the basket's sole voucher instrument, or roll it back."""

    def __init__(
        self,
        db_session: AsyncSession,
        validator: VoucherValidator,
        *,
        locks: BasketLocks | None = None,
        observability: VoucherObservabilityStore | None = None,
    ) -> None:
        self._db = db_session
        self._validator = validator
        self._baskets = BasketService(db_session)
        self._locks = locks or basket_locks
        self._observability = observability or get_voucher_store()

    async def apply(self, basket: Basket | None, voucher_code: str | None, membership_number: str | None) -> RedemptionResult:
        if basket is None:
            return self._record("apply", Outcome.err(VoucherErrorKind.INPUT, VoucherMessages.NO_BASKET))

        basket_id = basket.id
        try:
            async with self._locks.hold(basket_id):
                outcome = await self._apply(basket, voucher_code, membership_number)
        except Exception as exc:
            logger.exception("Voucher apply failed unexpectedly", basket_id=str(basket_id), error=str(exc))
            outcome = Outcome.err(VoucherErrorKind.UNEXPECTED, VoucherMessages.APPLY_UNEXPECTED)
        return self._record("apply", outcome)

    async def _apply(self, basket: Basket, voucher_code: str | None, membership_number: str | None) -> RedemptionResult:
        await self._db.refresh(basket, ["payment_instruments"])
        order_total = Decimal(basket.total_gross_price or 0)

        validation = await self._validator.validate(voucher_code, membership_number)
        if validation.error:
            return Outcome.err(validation.kind, validation.message)

        voucher = validation.value
        if voucher.face_value <= order_total:
            logger.error(
                "Voucher face value does not exceed order total",
                voucher_code=voucher.voucher_code,
                face_value=str(voucher.face_value),
                order_total=str(order_total),
            )
            return Outcome.err(VoucherErrorKind.BUSINESS_RULE, VoucherMessages.INSUFFICIENT_VALUE)

        amount = order_total
        try:
            for existing in self._baskets.get_payment_instruments(basket, VOUCHER_PAYMENT_METHOD):
                self._baskets.remove_payment_instrument(basket, existing)
            instrument = self._baskets.create_payment_instrument(basket, VOUCHER_PAYMENT_METHOD, amount)
            write_voucher_attributes(
                instrument,
                {
                    "voucherCode": voucher.voucher_code,
                    "voucherId": voucher.voucher_id,
                    "voucherFaceValue": str(voucher.face_value),
                    "voucherRedeemedAmount": str(amount),
                },
            )
            await self._db.commit()
        except Exception:
            await self._db.rollback()
            raise

        logger.info(
            "Voucher applied to basket",
            basket_id=str(basket.id),
            voucher_code=voucher.voucher_code,
            redeemed_amount=str(amount),
        )
        details = RedemptionDetails(
            voucher_code=voucher.voucher_code,
            face_value=Money(voucher.face_value, basket.currency),
            redeemed_amount=Money(amount, basket.currency),
        )
        return Outcome.ok(details, VoucherMessages.APPLIED)

    async def rollback(self, basket: Basket | None) -> RedemptionResult:
        if basket is None:
            return self._record("rollback", Outcome.err(VoucherErrorKind.INPUT, VoucherMessages.NO_BASKET))

        basket_id = basket.id
        try:
            async with self._locks.hold(basket_id):
                outcome = await self._rollback(basket)
        except Exception as exc:
            logger.exception("Voucher rollback failed unexpectedly", basket_id=str(basket_id), error=str(exc))
            outcome = Outcome.err(VoucherErrorKind.UNEXPECTED, VoucherMessages.ROLLBACK_UNEXPECTED)
        return self._record("rollback", outcome)

    async def _rollback(self, basket: Basket) -> RedemptionResult:
        await self._db.refresh(basket, ["payment_instruments"])
        instruments = self._baskets.get_payment_instruments(basket, VOUCHER_PAYMENT_METHOD)
        if not instruments:
            return Outcome.err(VoucherErrorKind.NOT_FOUND, VoucherMessages.NOT_APPLIED)

        try:
            self._baskets.remove_payment_instrument(basket, instruments[0])
            await self._db.commit()
        except Exception:
            await self._db.rollback()
            raise

        logger.info("Voucher payment instrument removed from basket", basket_id=str(basket.id))
        return Outcome.ok(None, VoucherMessages.REMOVED)

    def _record(self, operation: str, outcome: RedemptionResult) -> RedemptionResult:
        if outcome.error:
            self._observability.record_failure(operation, outcome.kind.value, outcome.message)
        else:
            self._observability.record_success(operation)
        return outcome


__all__ = ["VoucherApplier", "write_voucher_attributes"]
