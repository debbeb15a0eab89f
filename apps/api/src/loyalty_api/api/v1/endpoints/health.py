from __future__ import annotations

from typing import Dict, Literal

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from loyalty_api.core.settings import settings


router = APIRouter()


class ComponentStatus(BaseModel):
    status: Literal["ready", "starting", "disabled", "error"]
    detail: str | None = Field(default=None, description="Human readable status detail")
    last_run_at: str | None = Field(default=None, description="ISO timestamp of the most recent run")


class ReadinessPayload(BaseModel):
    status: Literal["ready", "degraded", "error"]
    components: Dict[str, ComponentStatus]


@router.get("/healthz", summary="Service health check")
async def service_health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz", summary="Service readiness", response_model=ReadinessPayload)
async def service_readiness(request: Request) -> ReadinessPayload:
    components: Dict[str, ComponentStatus] = {}
    status: Literal["ready", "degraded", "error"] = "ready"

    scheduler = getattr(request.app.state, "loyalty_sync_scheduler", None)
    if settings.loyalty_cloud_sync_enabled and scheduler is not None:
        health = scheduler.health()
        component_status: Literal["ready", "starting", "disabled", "error"] = (
            "ready" if health["running"] else "starting"
        )
        detail: str | None = None
        if health["last_status"] == "failed":
            component_status = "error"
            detail = health["last_error"] or "Loyalty Cloud sync failing"
            status = "error"
        elif health["last_status"] == "partial":
            detail = health["last_error"] or "Loyalty Cloud sync partially failed"
            status = "degraded"
        elif not health["running"]:
            detail = "Loyalty Cloud sync scheduler not running"
            status = "degraded"
        components["loyalty_cloud_sync"] = ComponentStatus(
            status=component_status,
            detail=detail,
            last_run_at=health["last_run_at"],
        )
    else:
        components["loyalty_cloud_sync"] = ComponentStatus(
            status="disabled",
            detail="Loyalty Cloud sync disabled via settings",
        )

    return ReadinessPayload(status=status, components=components)
