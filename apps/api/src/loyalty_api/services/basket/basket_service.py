"""Storefront basket access used by the voucher workflow and checkout."""

from __future__ import annotations

from decimal import Decimal
from typing import List

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from loyalty_api.models.basket import Basket, BasketItem, BasketStatusEnum
from loyalty_api.models.payment import PaymentInstrument
from loyalty_api.models.user import User

_CENT = Decimal("0.01")


class BasketService:
    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session

    async def get_current_basket(self, user: User, *, create: bool = False, currency: str = "USD") -> Basket | None:
        """Return the user's newest open basket, optionally creating one."""

        stmt = (
            select(Basket)
            .where(Basket.user_id == user.id, Basket.status == BasketStatusEnum.OPEN)
            .order_by(Basket.created_at.desc())
            .limit(1)
        )
        result = await self._db.execute(stmt)
        basket = result.scalars().first()
        if basket is None and create:
            basket = Basket(
                user_id=user.id,
                currency=currency,
                status=BasketStatusEnum.OPEN,
                total_gross_price=Decimal("0"),
                items=[],
                payment_instruments=[],
            )
            self._db.add(basket)
            await self._db.flush()
            logger.info("Basket created", basket_id=str(basket.id), user_id=str(user.id))
        return basket

    def add_item(
        self,
        basket: Basket,
        *,
        product_id: str,
        product_title: str,
        unit_price: Decimal,
        quantity: int = 1,
    ) -> BasketItem:
        unit_price = Decimal(unit_price).quantize(_CENT)
        item = BasketItem(
            product_id=product_id,
            product_title=product_title,
            quantity=quantity,
            unit_price=unit_price,
            total_price=(unit_price * quantity).quantize(_CENT),
        )
        basket.items.append(item)
        self.calculate_totals(basket)
        return item

    def calculate_totals(self, basket: Basket) -> Decimal:
        total = sum((Decimal(item.total_price) for item in basket.items), Decimal("0")).quantize(_CENT)
        basket.total_gross_price = total
        return total

    def create_payment_instrument(self, basket: Basket, payment_method: str, amount: Decimal) -> PaymentInstrument:
        instrument = PaymentInstrument(
            payment_method=payment_method,
            amount=Decimal(amount).quantize(_CENT),
            currency=basket.currency,
            custom={},
        )
        basket.payment_instruments.append(instrument)
        return instrument

    def get_payment_instruments(self, basket: Basket, payment_method: str | None = None) -> List[PaymentInstrument]:
        return [
            instrument
            for instrument in basket.payment_instruments
            if payment_method is None or instrument.payment_method == payment_method
        ]

    def remove_payment_instrument(self, basket: Basket, instrument: PaymentInstrument) -> None:
        # delete-orphan cascade removes the row on flush
        if instrument in basket.payment_instruments:
            basket.payment_instruments.remove(instrument)


__all__ = ["BasketService"]
