from decimal import Decimal

import pytest
from sqlalchemy import select

from conftest import voucher_payload
from loyalty_api.models.basket import Basket, BasketStatusEnum
from loyalty_api.models.order import Order, OrderStatusEnum
from loyalty_api.models.payment import PaymentTransactionTypeEnum
from loyalty_api.services.basket import BasketService
from loyalty_api.services.checkout import OrderPlacementService
from loyalty_api.services.checkout.placement import (
    BASKET_EMPTY,
    NO_PAYMENT,
    PAYMENT_TOTAL_MISMATCH,
    UNSUPPORTED_PAYMENT,
)
from loyalty_api.services.vouchers import VoucherApplier, VoucherPaymentProcessor, VoucherValidator

VOUCHERS_PATH = "/vouchers"
CONSUME_PATH = "/program-processes/Consume Voucher"


async def _voucher_basket(session, gateway, user) -> Basket:
    baskets = BasketService(session)
    basket = await baskets.get_current_basket(user, create=True)
    baskets.add_item(basket, product_id="SKU-1", product_title="Trail Runner", unit_price=Decimal("60.00"))
    baskets.add_item(basket, product_id="SKU-2", product_title="Socks", unit_price=Decimal("20.00"), quantity=2)
    await session.commit()
    outcome = await VoucherApplier(session, VoucherValidator(gateway)).apply(basket, "V100", user.customer_number)
    assert not outcome.error
    return basket


def _service(session, gateway) -> OrderPlacementService:
    processor = VoucherPaymentProcessor(gateway)
    return OrderPlacementService(session, {processor.processor_id: processor})


@pytest.mark.asyncio
async def test_place_order_consumes_voucher_and_closes_basket(session_factory, gateway, loyalty_cloud, member) -> None:
    loyalty_cloud.add("GET", VOUCHERS_PATH, json={"vouchers": [voucher_payload("V100", face_value=120)]})
    loyalty_cloud.add("POST", CONSUME_PATH, json={"status": True})

    async with session_factory() as session:
        basket = await _voucher_basket(session, gateway, member)
        result = await _service(session, gateway).place_order(basket, member)

    assert result.error is False
    order_number = result.order.order_number
    assert order_number.startswith("LC")

    async with session_factory() as session:
        order = (await session.execute(select(Order).where(Order.order_number == order_number))).scalar_one()
        stored_basket = await session.get(Basket, basket.id)
        assert order.status == OrderStatusEnum.PLACED
        assert order.placed_at is not None
        assert order.total == Decimal("100.00")
        assert len(order.items) == 2
        assert order.is_voucher_applied
        instrument = order.payment_instruments[0]
        assert instrument.transaction_id == order_number
        assert instrument.transaction_type == PaymentTransactionTypeEnum.CAPTURE
        assert stored_basket.status == BasketStatusEnum.ORDERED


@pytest.mark.asyncio
async def test_failed_consumption_marks_order_failed_and_keeps_voucher(
    session_factory, gateway, loyalty_cloud, member
) -> None:
    loyalty_cloud.add("GET", VOUCHERS_PATH, json={"vouchers": [voucher_payload("V100", face_value=120)]})
    loyalty_cloud.add("POST", CONSUME_PATH, json={"status": False, "message": "already consumed"})

    async with session_factory() as session:
        basket = await _voucher_basket(session, gateway, member)
        result = await _service(session, gateway).place_order(basket, member)

    assert result.error is True
    assert result.server_errors == ["already consumed"]
    assert result.order.status == OrderStatusEnum.FAILED

    async with session_factory() as session:
        stored_basket = await session.get(Basket, basket.id)
        assert stored_basket.status == BasketStatusEnum.OPEN
        assert stored_basket.is_voucher_applied
        instrument = stored_basket.payment_instruments[0]
        assert instrument.order_id is None
        assert instrument.transaction_id is None
        order = (await session.execute(select(Order))).scalar_one()
        assert order.failure_reason == "already consumed"


@pytest.mark.asyncio
async def test_place_order_rejects_empty_basket_and_missing_payment(session_factory, gateway, member) -> None:
    async with session_factory() as session:
        baskets = BasketService(session)
        basket = await baskets.get_current_basket(member, create=True)
        await session.commit()

        empty = await _service(session, gateway).place_order(basket, member)
        assert empty.server_errors == [BASKET_EMPTY]

        baskets.add_item(basket, product_id="SKU-1", product_title="Trail Runner", unit_price=Decimal("60.00"))
        await session.commit()
        unpaid = await _service(session, gateway).place_order(basket, member)
        assert unpaid.server_errors == [NO_PAYMENT]

    async with session_factory() as session:
        assert (await session.execute(select(Order))).scalars().all() == []


@pytest.mark.asyncio
async def test_place_order_without_processor_fails(session_factory, gateway, member) -> None:
    async with session_factory() as session:
        baskets = BasketService(session)
        basket = await baskets.get_current_basket(member, create=True)
        baskets.add_item(basket, product_id="SKU-1", product_title="Trail Runner", unit_price=Decimal("60.00"))
        baskets.create_payment_instrument(basket, "CREDIT_CARD", Decimal("60.00"))
        await session.commit()

        result = await OrderPlacementService(session, {}).place_order(basket, member)

    assert result.error is True
    assert result.server_errors == [UNSUPPORTED_PAYMENT]
    assert result.order.status == OrderStatusEnum.FAILED
    assert basket.payment_instruments[0].transaction_id is None
    assert basket.status == BasketStatusEnum.OPEN


@pytest.mark.asyncio
async def test_basket_growing_after_voucher_applied_blocks_placement(
    session_factory, gateway, loyalty_cloud, member
) -> None:
    loyalty_cloud.add("GET", VOUCHERS_PATH, json={"vouchers": [voucher_payload("V100", face_value=120)]})
    loyalty_cloud.add("POST", CONSUME_PATH, json={"status": True})

    async with session_factory() as session:
        basket = await _voucher_basket(session, gateway, member)
        BasketService(session).add_item(
            basket, product_id="SKU-3", product_title="Rain Jacket", unit_price=Decimal("400.00")
        )
        await session.commit()
        result = await _service(session, gateway).place_order(basket, member)

    assert result.error is True
    assert result.order is None
    assert result.server_errors == [PAYMENT_TOTAL_MISMATCH]
    assert loyalty_cloud.requests_to(CONSUME_PATH) == []

    async with session_factory() as session:
        assert (await session.execute(select(Order))).scalars().all() == []
        stored_basket = await session.get(Basket, basket.id)
        assert stored_basket.status == BasketStatusEnum.OPEN
        assert stored_basket.is_voucher_applied
