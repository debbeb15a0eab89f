"""Persistence helpers for the cached Loyalty Cloud token and program configuration."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from loyalty_api.models.loyalty_cloud import LOYALTY_CLOUD_STATE_KEY, LoyaltyCloudState
from .mappers import find_id_by_name


class LoyaltyCloudStateStore:
    """Read and write the single `loyalty_cloud` state row."""

    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session

    async def load(self) -> LoyaltyCloudState | None:
        return await self._db.get(LoyaltyCloudState, LOYALTY_CLOUD_STATE_KEY)

    async def _ensure(self) -> LoyaltyCloudState:
        state = await self.load()
        if state is None:
            state = LoyaltyCloudState(key=LOYALTY_CLOUD_STATE_KEY)
            self._db.add(state)
        return state

    async def get_access_token(self) -> str | None:
        state = await self.load()
        return state.access_token if state and state.access_token else None

    async def get_program_config(self) -> Dict[str, Any] | None:
        state = await self.load()
        return state.program_config if state else None

    async def find_id_by_name(self, object_type: str, name: str) -> str | None:
        return find_id_by_name(await self.get_program_config(), object_type, name)

    async def save_access_token(self, token: str) -> None:
        state = await self._ensure()
        state.access_token = token
        state.token_refreshed_at = datetime.now(timezone.utc)
        await self._db.flush()

    async def save_program_config(self, program_config: Dict[str, Any]) -> None:
        state = await self._ensure()
        state.program_config = program_config
        state.config_refreshed_at = datetime.now(timezone.utc)
        await self._db.flush()


__all__ = ["LoyaltyCloudStateStore"]
