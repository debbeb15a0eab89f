"""Request-scoped wiring for the Loyalty Cloud gateway and basket services."""

from __future__ import annotations

import httpx
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from loyalty_api.db.session import get_session
from loyalty_api.services.basket import BasketService
from loyalty_api.services.loyalty_cloud import LoyaltyCloudConfig, LoyaltyCloudGateway, LoyaltyCloudStateStore


def get_loyalty_config() -> LoyaltyCloudConfig:
    return LoyaltyCloudConfig.from_settings()


def get_loyalty_http_client(request: Request) -> httpx.AsyncClient | None:
    """Shared client opened in the app lifespan; the gateway opens its own when absent."""

    return getattr(request.app.state, "loyalty_http_client", None)


async def get_loyalty_gateway(
    config: LoyaltyCloudConfig = Depends(get_loyalty_config),
    http_client: httpx.AsyncClient | None = Depends(get_loyalty_http_client),
    db: AsyncSession = Depends(get_session),
) -> LoyaltyCloudGateway:
    state = LoyaltyCloudStateStore(db)
    return LoyaltyCloudGateway(config, token_provider=state.get_access_token, http_client=http_client)


async def get_basket_service(db: AsyncSession = Depends(get_session)) -> BasketService:
    return BasketService(db)
