"""Storefront checkout endpoints: basket view, line items, voucher payment, order placement."""

from __future__ import annotations

from decimal import Decimal
from typing import List, Literal

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from loyalty_api.api.dependencies.loyalty import get_basket_service, get_loyalty_gateway
from loyalty_api.api.dependencies.session import require_member_session
from loyalty_api.api.responses import GENERIC_ERROR_MESSAGE, ActionResponse, failure, ok
from loyalty_api.core.settings import settings
from loyalty_api.db.session import get_session
from loyalty_api.models.basket import Basket
from loyalty_api.models.order import Order
from loyalty_api.models.payment import VOUCHER_PAYMENT_METHOD
from loyalty_api.models.user import User
from loyalty_api.services.basket import BasketService
from loyalty_api.services.checkout import OrderPlacementService
from loyalty_api.services.loyalty_cloud import LoyaltyCloudGateway
from loyalty_api.services.vouchers import VoucherMessages, VoucherPaymentProcessor


router = APIRouter(prefix="/checkout", tags=["Checkout"])


class BasketItemPayload(BaseModel):
    productId: str = Field(..., min_length=1)
    productTitle: str = Field(..., min_length=1)
    unitPrice: Decimal = Field(..., ge=0)
    quantity: int = Field(1, ge=1)


class BasketItemResponse(BaseModel):
    productId: str
    productTitle: str
    quantity: int
    unitPrice: float
    totalPrice: float


class PaymentInstrumentResponse(BaseModel):
    paymentMethod: str
    amount: float
    currency: str
    voucherCode: str | None = None


class BasketResponse(BaseModel):
    id: str
    status: str
    currency: str
    totalGrossPrice: float
    items: List[BasketItemResponse]
    paymentInstruments: List[PaymentInstrumentResponse]
    isVoucherApplied: bool
    paymentMode: Literal["voucher", "standard"]
    submitAction: Literal["voucher-payment", "payment"]


class OrderResponse(BaseModel):
    orderNumber: str
    status: str
    total: float
    currency: str
    isVoucherApplied: bool


def _basket_view(basket: Basket) -> BasketResponse:
    voucher_applied = basket.is_voucher_applied
    return BasketResponse(
        id=str(basket.id),
        status=basket.status.value,
        currency=basket.currency,
        totalGrossPrice=float(basket.total_gross_price or 0),
        items=[
            BasketItemResponse(
                productId=item.product_id,
                productTitle=item.product_title,
                quantity=item.quantity,
                unitPrice=float(item.unit_price),
                totalPrice=float(item.total_price),
            )
            for item in basket.items
        ],
        paymentInstruments=[
            PaymentInstrumentResponse(
                paymentMethod=instrument.payment_method,
                amount=float(instrument.amount),
                currency=instrument.currency,
                voucherCode=(instrument.custom or {}).get("voucherCode"),
            )
            for instrument in basket.payment_instruments
        ],
        isVoucherApplied=voucher_applied,
        paymentMode="voucher" if voucher_applied else "standard",
        submitAction="voucher-payment" if voucher_applied else "payment",
    )


def _order_view(order: Order) -> OrderResponse:
    return OrderResponse(
        orderNumber=order.order_number,
        status=order.status.value,
        total=float(order.total),
        currency=order.currency,
        isVoucherApplied=order.is_voucher_applied,
    )


@router.get("/basket", response_model=BasketResponse)
async def get_basket(
    user: User = Depends(require_member_session),
    baskets: BasketService = Depends(get_basket_service),
    db: AsyncSession = Depends(get_session),
) -> BasketResponse:
    basket = await baskets.get_current_basket(user, create=True, currency=settings.default_currency)
    await db.commit()
    return _basket_view(basket)


@router.post("/basket/items", response_model=BasketResponse, status_code=status.HTTP_201_CREATED)
async def add_basket_item(
    payload: BasketItemPayload,
    user: User = Depends(require_member_session),
    baskets: BasketService = Depends(get_basket_service),
    db: AsyncSession = Depends(get_session),
) -> BasketResponse:
    basket = await baskets.get_current_basket(user, create=True, currency=settings.default_currency)
    baskets.add_item(
        basket,
        product_id=payload.productId,
        product_title=payload.productTitle,
        unit_price=payload.unitPrice,
        quantity=payload.quantity,
    )
    await db.commit()
    return _basket_view(basket)


@router.post("/voucher-payment", response_model=ActionResponse, response_model_exclude_none=True)
async def submit_voucher_payment(
    user: User = Depends(require_member_session),
    gateway: LoyaltyCloudGateway = Depends(get_loyalty_gateway),
    baskets: BasketService = Depends(get_basket_service),
):
    """Voucher-only payment step; the standard payment form is skipped entirely."""

    basket = await baskets.get_current_basket(user)
    if basket is None:
        return failure(VoucherMessages.NO_BASKET)
    if not basket.is_voucher_applied:
        return failure(VoucherMessages.NOT_APPLIED)

    processor = VoucherPaymentProcessor(gateway)
    view_data = processor.process_form({"paymentMethod": VOUCHER_PAYMENT_METHOD}, {})
    baskets.calculate_totals(basket)
    return ok("", {"basket": _basket_view(basket).model_dump(), "payment": view_data["viewData"]})


@router.post("/place-order", response_model=ActionResponse, response_model_exclude_none=True)
async def place_order(
    user: User = Depends(require_member_session),
    gateway: LoyaltyCloudGateway = Depends(get_loyalty_gateway),
    baskets: BasketService = Depends(get_basket_service),
    db: AsyncSession = Depends(get_session),
):
    basket = await baskets.get_current_basket(user)
    if basket is None:
        return failure(VoucherMessages.NO_BASKET)

    basket_id = basket.id
    processor = VoucherPaymentProcessor(gateway)
    service = OrderPlacementService(db, {processor.processor_id: processor})
    try:
        result = await service.place_order(basket, user)
    except Exception as exc:
        logger.exception("Order placement failed unexpectedly", basket_id=str(basket_id), error=str(exc))
        return failure(GENERIC_ERROR_MESSAGE, status.HTTP_500_INTERNAL_SERVER_ERROR)

    if result.error:
        body = {
            "success": False,
            "message": result.server_errors[0] if result.server_errors else GENERIC_ERROR_MESSAGE,
            "serverErrors": result.server_errors,
        }
        if result.order is not None:
            body["data"] = _order_view(result.order).model_dump()
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body)

    return ok("Order placed", _order_view(result.order).model_dump())
