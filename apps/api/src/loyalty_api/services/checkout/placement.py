"""Turn an open basket into an order, authorizing every payment instrument."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Mapping, Protocol
from uuid import uuid4

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from loyalty_api.models.basket import Basket, BasketStatusEnum
from loyalty_api.models.order import Order, OrderItem, OrderStatusEnum
from loyalty_api.models.payment import PaymentInstrument
from loyalty_api.models.user import User
from loyalty_api.services.basket import BasketLocks, BasketService, basket_locks
from loyalty_api.services.vouchers.results import AuthorizationResult

BASKET_NOT_OPEN = "This basket has already been ordered."
BASKET_EMPTY = "Your basket is empty."
NO_PAYMENT = "Select a payment method before placing the order."
UNSUPPORTED_PAYMENT = "The selected payment method is not supported."
PAYMENT_TOTAL_MISMATCH = "Your basket changed after payment was selected. Please reapply your voucher."


class PaymentAuthorizer(Protocol):
    processor_id: str

    async def authorize(
        self,
        order_number: str,
        payment_instrument: PaymentInstrument,
        payment_processor: str,
        *,
        membership_number: str | None,
    ) -> AuthorizationResult: ...


@dataclass
class PlacementResult:
    order: Order | None = None
    error: bool = False
    server_errors: List[str] = field(default_factory=list)


def generate_order_number() -> str:
    return f"LC{datetime.now(timezone.utc):%Y%m%d}-{uuid4().hex[:8].upper()}"


class OrderPlacementService:
    """Authorization happens after the order row exists; consumption is never retried here."""

    def __init__(
        self,
        db_session: AsyncSession,
        processors: Mapping[str, PaymentAuthorizer],
        *,
        locks: BasketLocks | None = None,
    ) -> None:
        self._db = db_session
        self._processors = processors
        self._baskets = BasketService(db_session)
        self._locks = locks or basket_locks

    async def place_order(self, basket: Basket, user: User) -> PlacementResult:
        async with self._locks.hold(basket.id):
            return await self._place_order(basket, user)

    async def _place_order(self, basket: Basket, user: User) -> PlacementResult:
        await self._db.refresh(basket, ["status", "items", "payment_instruments"])
        if basket.status != BasketStatusEnum.OPEN:
            return PlacementResult(error=True, server_errors=[BASKET_NOT_OPEN])
        if not basket.items:
            return PlacementResult(error=True, server_errors=[BASKET_EMPTY])

        instruments = list(basket.payment_instruments)
        if not instruments:
            return PlacementResult(error=True, server_errors=[NO_PAYMENT])

        total = self._baskets.calculate_totals(basket)
        covered = sum((Decimal(instrument.amount) for instrument in instruments), Decimal("0"))
        if covered != total:
            logger.warning(
                "Payment instruments do not cover basket total",
                basket_id=str(basket.id),
                total=str(total),
                covered=str(covered),
            )
            return PlacementResult(error=True, server_errors=[PAYMENT_TOTAL_MISMATCH])

        order = Order(
            order_number=generate_order_number(),
            user_id=user.id,
            basket_id=basket.id,
            status=OrderStatusEnum.CREATED,
            total=total,
            currency=basket.currency,
            items=[
                OrderItem(
                    product_id=item.product_id,
                    product_title=item.product_title,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    total_price=item.total_price,
                )
                for item in basket.items
            ],
            payment_instruments=[],
        )
        self._db.add(order)
        await self._db.commit()
        bound = logger.bind(order_number=order.order_number, basket_id=str(basket.id))
        bound.info("Order created from basket", total=str(total), instruments=len(instruments))

        errors: List[str] = []
        for instrument in instruments:
            processor = self._processors.get(instrument.payment_method)
            if processor is None:
                errors.append(UNSUPPORTED_PAYMENT)
                break
            result = await processor.authorize(
                order.order_number,
                instrument,
                processor.processor_id,
                membership_number=user.customer_number,
            )
            if result.error:
                errors.extend(result.server_errors)
                break

        if errors:
            order.status = OrderStatusEnum.FAILED
            order.failure_reason = "; ".join(errors)
            await self._db.commit()
            bound.warning("Order placement failed", errors=errors)
            return PlacementResult(order=order, error=True, server_errors=errors)

        # instruments keep their basket link; detaching would trip the basket's delete-orphan cascade
        for instrument in instruments:
            order.payment_instruments.append(instrument)
        order.status = OrderStatusEnum.PLACED
        order.placed_at = datetime.now(timezone.utc)
        basket.status = BasketStatusEnum.ORDERED
        await self._db.commit()
        bound.info("Order placed")
        return PlacementResult(order=order)


__all__ = ["OrderPlacementService", "PaymentAuthorizer", "PlacementResult", "generate_order_number"]
