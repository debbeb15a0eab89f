"""Loyalty program member endpoints plus voucher workflow counters."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from loyalty_api.api.dependencies.loyalty import get_loyalty_gateway
from loyalty_api.api.dependencies.security import require_operator_api_key
from loyalty_api.api.dependencies.session import require_member_session
from loyalty_api.api.responses import GENERIC_ERROR_MESSAGE, ActionResponse, failure, from_loyalty_error, ok
from loyalty_api.db.session import get_session
from loyalty_api.models.user import User
from loyalty_api.observability.vouchers import get_voucher_store
from loyalty_api.services.loyalty import LoyaltyMemberService
from loyalty_api.services.loyalty_cloud import LoyaltyCloudError, LoyaltyCloudGateway


router = APIRouter(prefix="/loyalty", tags=["loyalty"])


@router.post("/members/enroll", response_model=ActionResponse, response_model_exclude_none=True)
async def enroll_member(
    user: User = Depends(require_member_session),
    gateway: LoyaltyCloudGateway = Depends(get_loyalty_gateway),
    db: AsyncSession = Depends(get_session),
):
    """Enroll the session customer and return the mapped member profile."""

    try:
        profile = await LoyaltyMemberService(db, gateway).enroll(user)
        return ok("Enrolled in loyalty program", profile)
    except LoyaltyCloudError as exc:
        logger.warning("Loyalty enrollment failed", user_id=str(user.id), error=str(exc), detail=exc.detail)
        return from_loyalty_error(exc)
    except Exception as exc:
        logger.exception("Loyalty enrollment endpoint failed", error=str(exc))
        return failure(GENERIC_ERROR_MESSAGE, status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/members/me", response_model=ActionResponse, response_model_exclude_none=True)
async def get_member_dashboard(
    user: User = Depends(require_member_session),
    gateway: LoyaltyCloudGateway = Depends(get_loyalty_gateway),
    db: AsyncSession = Depends(get_session),
):
    try:
        dashboard = await LoyaltyMemberService(db, gateway).get_dashboard(user)
        return ok("", dashboard)
    except LoyaltyCloudError as exc:
        logger.warning("Loyalty dashboard unavailable", user_id=str(user.id), error=str(exc), detail=exc.detail)
        return from_loyalty_error(exc)
    except Exception as exc:
        logger.exception("Loyalty dashboard endpoint failed", error=str(exc))
        return failure(GENERIC_ERROR_MESSAGE, status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.post("/newsletter-signup", response_model=ActionResponse, response_model_exclude_none=True)
async def newsletter_signup(
    user: User = Depends(require_member_session),
    gateway: LoyaltyCloudGateway = Depends(get_loyalty_gateway),
    db: AsyncSession = Depends(get_session),
):
    """Credit the newsletter signup accrual journal for an enrolled member."""

    try:
        journal = await LoyaltyMemberService(db, gateway).record_newsletter_signup(user)
        return ok("Newsletter signup recorded", journal)
    except LoyaltyCloudError as exc:
        logger.warning("Newsletter signup journal failed", user_id=str(user.id), error=str(exc), detail=exc.detail)
        return from_loyalty_error(exc)
    except Exception as exc:
        logger.exception("Newsletter signup endpoint failed", error=str(exc))
        return failure(GENERIC_ERROR_MESSAGE, status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get(
    "/observability",
    dependencies=[Depends(require_operator_api_key)],
    summary="Voucher workflow observability snapshot",
)
async def get_voucher_snapshot() -> dict[str, object]:
    return get_voucher_store().snapshot().as_dict()
