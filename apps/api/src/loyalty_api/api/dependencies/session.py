"""Resolve the storefront customer behind a forwarded session."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from loyalty_api.db.session import get_session
from loyalty_api.models.user import User


def _lookup_clause(session_user: str):
    """UUID headers match the user id; anything else is taken as a customer number."""

    try:
        return User.id == UUID(session_user)
    except ValueError:
        return User.customer_number == session_user


async def require_member_session(
    session_user: str | None = Header(None, alias="X-Session-User"),
    db: AsyncSession = Depends(get_session),
) -> User:
    """Return the customer whose membership number and member id drive the loyalty calls."""

    session_user = (session_user or "").strip()
    if not session_user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing session user context")

    result = await db.execute(select(User).where(_lookup_clause(session_user)))
    user = result.scalar_one_or_none()
    if user is None:
        logger.warning("Session customer not found", session_user=session_user)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session customer not found")

    logger.debug(
        "Session customer resolved",
        user_id=str(user.id),
        membership_number=user.customer_number,
        enrolled=user.is_loyalty_member,
    )
    return user
