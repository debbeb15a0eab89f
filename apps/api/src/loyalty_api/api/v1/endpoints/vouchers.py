"""Voucher-as-payment endpoints: validate, apply, roll back, redeem points, list."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from loguru import logger
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from loyalty_api.api.dependencies.loyalty import get_basket_service, get_loyalty_gateway
from loyalty_api.api.dependencies.session import require_member_session
from loyalty_api.api.responses import (
    GENERIC_ERROR_MESSAGE,
    ActionResponse,
    failure,
    from_loyalty_error,
    from_outcome,
    ok,
)
from loyalty_api.db.session import get_session
from loyalty_api.models.user import User
from loyalty_api.services.basket import BasketService
from loyalty_api.services.loyalty import LoyaltyMemberService
from loyalty_api.services.loyalty_cloud import LoyaltyCloudError, LoyaltyCloudGateway
from loyalty_api.services.vouchers import VoucherApplier, VoucherValidator


router = APIRouter(prefix="/vouchers", tags=["vouchers"])


class ApplyVoucherRequest(BaseModel):
    voucherCode: str = Field("", description="Voucher code entered at checkout")


class RedeemPointsRequest(BaseModel):
    pointsToRedeem: int | None = Field(None, description="Non-qualifying points to convert into a voucher")


@router.get("/validate", response_model=ActionResponse, response_model_exclude_none=True)
async def validate_voucher(
    voucher_code: str = Query("", alias="voucherCode"),
    membership_number: str | None = Query(None, alias="membershipNumber"),
    user: User = Depends(require_member_session),
    gateway: LoyaltyCloudGateway = Depends(get_loyalty_gateway),
):
    """Check a voucher code against the member's live voucher list."""

    try:
        validator = VoucherValidator(gateway)
        outcome = await validator.validate(voucher_code, membership_number or user.customer_number)
        return from_outcome(outcome, outcome.value.as_dict() if outcome.value else None)
    except Exception as exc:
        logger.exception("Voucher validation endpoint failed", error=str(exc))
        return failure(GENERIC_ERROR_MESSAGE, status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.post("/apply", response_model=ActionResponse, response_model_exclude_none=True)
async def apply_voucher(
    request: ApplyVoucherRequest,
    user: User = Depends(require_member_session),
    gateway: LoyaltyCloudGateway = Depends(get_loyalty_gateway),
    baskets: BasketService = Depends(get_basket_service),
    db: AsyncSession = Depends(get_session),
):
    """Attach the voucher as the basket's voucher payment instrument."""

    try:
        basket = await baskets.get_current_basket(user)
        applier = VoucherApplier(db, VoucherValidator(gateway))
        outcome = await applier.apply(basket, request.voucherCode, user.customer_number)
        return from_outcome(outcome, outcome.value.as_dict() if outcome.value else None)
    except Exception as exc:
        logger.exception("Voucher apply endpoint failed", error=str(exc))
        return failure(GENERIC_ERROR_MESSAGE, status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.post("/rollback", response_model=ActionResponse, response_model_exclude_none=True)
async def rollback_voucher(
    user: User = Depends(require_member_session),
    gateway: LoyaltyCloudGateway = Depends(get_loyalty_gateway),
    baskets: BasketService = Depends(get_basket_service),
    db: AsyncSession = Depends(get_session),
):
    try:
        basket = await baskets.get_current_basket(user)
        applier = VoucherApplier(db, VoucherValidator(gateway))
        return from_outcome(await applier.rollback(basket))
    except Exception as exc:
        logger.exception("Voucher rollback endpoint failed", error=str(exc))
        return failure(GENERIC_ERROR_MESSAGE, status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.post("/redeem", response_model=ActionResponse, response_model_exclude_none=True)
async def redeem_points(
    request: RedeemPointsRequest,
    user: User = Depends(require_member_session),
    gateway: LoyaltyCloudGateway = Depends(get_loyalty_gateway),
    db: AsyncSession = Depends(get_session),
):
    """Convert points into a freshly issued voucher."""

    try:
        service = LoyaltyMemberService(db, gateway)
        voucher = await service.issue_voucher_from_points(user, request.pointsToRedeem)
        return ok("Voucher generated successfully", voucher)
    except LoyaltyCloudError as exc:
        logger.warning("Voucher redemption rejected", user_id=str(user.id), error=str(exc), detail=exc.detail)
        return from_loyalty_error(exc)
    except Exception as exc:
        logger.exception("Voucher redemption endpoint failed", error=str(exc))
        return failure(GENERIC_ERROR_MESSAGE, status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("", response_model=ActionResponse, response_model_exclude_none=True)
async def list_vouchers(
    user: User = Depends(require_member_session),
    gateway: LoyaltyCloudGateway = Depends(get_loyalty_gateway),
    db: AsyncSession = Depends(get_session),
):
    try:
        service = LoyaltyMemberService(db, gateway)
        return ok("", await service.list_vouchers(user))
    except LoyaltyCloudError as exc:
        logger.warning("Voucher listing failed", user_id=str(user.id), error=str(exc))
        return from_loyalty_error(exc)
    except Exception as exc:
        logger.exception("Voucher listing endpoint failed", error=str(exc))
        return failure(GENERIC_ERROR_MESSAGE, status.HTTP_500_INTERNAL_SERVER_ERROR)
