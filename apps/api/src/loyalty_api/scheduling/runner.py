"""APScheduler runtime for the recurring Loyalty Cloud data sync."""

from __future__ import annotations

import inspect
import time
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from loyalty_api.jobs.loyalty import run_loyalty_cloud_sync

SessionFactory = Callable[[], Awaitable[Any]] | Callable[[], Any]
SyncJob = Callable[..., Awaitable[Dict[str, Any]]]

JOB_ID = "loyalty-cloud-sync"


class LoyaltyCloudSyncScheduler:
    """Run the token + program configuration sync on a fixed interval."""

    # meta: scheduler: loyalty-cloud-sync

    def __init__(
        self,
        *,
        session_factory: SessionFactory,
        interval_seconds: int,
        run_on_start: bool = True,
        job: SyncJob | None = None,
    ) -> None:
        self._session_factory = session_factory
        self.interval_seconds = interval_seconds
        self._run_on_start = run_on_start
        self._job = job or run_loyalty_cloud_sync
        self._scheduler: AsyncIOScheduler | None = None
        self._is_running = False
        self._last_summary: Dict[str, Any] | None = None
        self._last_run_at: datetime | None = None
        self._last_error: str | None = None

    @property
    def is_running(self) -> bool:
        return self._is_running

    def start(self) -> None:
        scheduler = AsyncIOScheduler(timezone=timezone.utc)
        trigger = IntervalTrigger(seconds=self.interval_seconds, timezone=timezone.utc)
        next_run_time = datetime.now(timezone.utc) if self._run_on_start else None
        job_kwargs: Dict[str, Any] = {"trigger": trigger, "id": JOB_ID, "replace_existing": True, "max_instances": 1}
        if next_run_time is not None:
            job_kwargs["next_run_time"] = next_run_time
        scheduler.add_job(self.run_once, **job_kwargs)
        scheduler.start()
        self._scheduler = scheduler
        self._is_running = True
        logger.info("Loyalty Cloud sync scheduler started", interval_seconds=self.interval_seconds)

    async def stop(self) -> None:
        if not self._scheduler:
            return
        result = self._scheduler.shutdown(wait=False)
        if inspect.isawaitable(result):
            await result
        self._scheduler = None
        self._is_running = False
        logger.info("Loyalty Cloud sync scheduler stopped")

    async def run_once(self) -> Dict[str, Any] | None:
        started_at = time.perf_counter()
        self._last_run_at = datetime.now(timezone.utc)
        try:
            summary = await self._job(session_factory=self._session_factory)
        except Exception as exc:
            self._last_error = str(exc)
            logger.exception("Loyalty Cloud sync run failed", job_id=JOB_ID, error=str(exc))
            return None

        self._last_summary = summary
        self._last_error = None if summary.get("status") != "failed" else "; ".join(summary.get("errors") or [])
        logger.info(
            "Loyalty Cloud sync run finished",
            job_id=JOB_ID,
            status=summary.get("status"),
            runtime_seconds=time.perf_counter() - started_at,
        )
        return summary

    def health(self) -> Dict[str, object]:
        return {
            "running": self._is_running,
            "interval_seconds": self.interval_seconds,
            "last_run_at": self._last_run_at.isoformat() if self._last_run_at else None,
            "last_status": self._last_summary.get("status") if self._last_summary else None,
            "last_error": self._last_error,
        }


__all__ = ["LoyaltyCloudSyncScheduler"]
