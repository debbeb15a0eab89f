"""Refresh the cached Loyalty Cloud access token and program configuration."""

# meta: job: loyalty-cloud-sync

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, List

import httpx
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from loyalty_api.services.loyalty_cloud import (
    LoyaltyCloudConfig,
    LoyaltyCloudGateway,
    LoyaltyCloudStateStore,
    LoyaltyProgramClient,
    ResponseParseError,
    handle_service_result,
)
from loyalty_api.services.loyalty_cloud.mappers import map_program_config

SessionFactory = Callable[[], AsyncSession] | Callable[[], Awaitable[AsyncSession]]

STATUS_SUCCESS = "success"
STATUS_PARTIAL = "partial"
STATUS_FAILED = "failed"


class SyncStepError(RuntimeError):
    """Raised when one sync step cannot produce data to store."""


async def run_loyalty_cloud_sync(
    *,
    session_factory: SessionFactory,
    config: LoyaltyCloudConfig | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> Dict[str, Any]:
    """Fetch a fresh token, then the program configuration, and persist both."""

    maybe_session = session_factory()
    session: AsyncSession
    if isinstance(maybe_session, AsyncSession):
        session = maybe_session
    else:
        session = await maybe_session

    config = config or LoyaltyCloudConfig.from_settings()
    succeeded = 0
    errors: List[str] = []

    async with session as managed_session:
        store = LoyaltyCloudStateStore(managed_session)
        gateway = LoyaltyCloudGateway(config, token_provider=store.get_access_token, http_client=http_client)

        try:
            token = await _fetch_access_token(gateway)
            await store.save_access_token(token)
            await managed_session.commit()
            succeeded += 1
            logger.info("Stored Loyalty Cloud access token")
        except SyncStepError as exc:
            errors.append(f"Failed to retrieve access token: {exc}")

        try:
            program_config = await _fetch_program_config(LoyaltyProgramClient(gateway))
            await store.save_program_config(program_config)
            await managed_session.commit()
            succeeded += 1
            logger.info(
                "Stored Loyalty Cloud program configuration",
                program_id=program_config.get("id"),
                journal_types=len(program_config.get("journalTypes") or []),
            )
        except SyncStepError as exc:
            errors.append(f"Failed to retrieve loyalty program config: {exc}")

    failed = len(errors)
    if failed and not succeeded:
        status = STATUS_FAILED
    elif failed:
        status = STATUS_PARTIAL
    else:
        status = STATUS_SUCCESS

    summary = {"succeeded": succeeded, "failed": failed, "errors": errors, "status": status}
    if errors:
        logger.bind(summary=summary).warning("Loyalty Cloud data sync completed with errors")
    else:
        logger.bind(summary=summary).info("Loyalty Cloud data sync completed")
    return summary


async def _fetch_access_token(gateway: LoyaltyCloudGateway) -> str:
    result = await gateway.request_access_token()
    handled = handle_service_result(result, "getAccessToken")
    if not handled["success"]:
        raise SyncStepError(handled["error"]["message"])
    try:
        body = result.json()
    except ResponseParseError as exc:
        raise SyncStepError(f"unreadable token response ({exc})") from exc
    token = body.get("access_token") if isinstance(body, dict) else None
    if not token:
        raise SyncStepError("token response did not include access_token")
    return token


async def _fetch_program_config(client: LoyaltyProgramClient) -> Dict[str, Any]:
    responses: Dict[str, Any] = {}
    for operation, call in (
        ("getLoyaltyProgramConfig", client.get_program_config),
        ("getJournalTypes", client.get_journal_types),
        ("getJournalSubtypes", client.get_journal_subtypes),
    ):
        result = await call()
        handled = handle_service_result(result, operation)
        if not handled["success"]:
            raise SyncStepError(handled["error"]["message"])
        try:
            responses[operation] = result.json()
        except ResponseParseError as exc:
            raise SyncStepError(f"unreadable {operation} response ({exc})") from exc

    return map_program_config(
        responses["getLoyaltyProgramConfig"],
        responses["getJournalTypes"],
        responses["getJournalSubtypes"],
    )


__all__ = ["run_loyalty_cloud_sync"]
