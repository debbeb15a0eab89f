import pytest

from loyalty_api.scheduling import LoyaltyCloudSyncScheduler


class RecordingJob:
    def __init__(self, summary=None, error: Exception | None = None) -> None:
        self.summary = summary or {"succeeded": 2, "failed": 0, "errors": [], "status": "success"}
        self.error = error
        self.calls: list[dict] = []

    async def __call__(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return self.summary


def _session_factory():
    raise AssertionError("job stub never opens sessions")


@pytest.mark.asyncio
async def test_run_once_records_summary() -> None:
    job = RecordingJob()
    scheduler = LoyaltyCloudSyncScheduler(session_factory=_session_factory, interval_seconds=60, job=job)

    summary = await scheduler.run_once()

    assert summary["status"] == "success"
    assert job.calls == [{"session_factory": _session_factory}]
    health = scheduler.health()
    assert health["last_status"] == "success"
    assert health["last_error"] is None
    assert health["last_run_at"] is not None
    assert health["running"] is False


@pytest.mark.asyncio
async def test_run_once_keeps_errors_for_failed_sync() -> None:
    job = RecordingJob(
        summary={"succeeded": 0, "failed": 2, "errors": ["token down", "config down"], "status": "failed"}
    )
    scheduler = LoyaltyCloudSyncScheduler(session_factory=_session_factory, interval_seconds=60, job=job)

    await scheduler.run_once()

    assert scheduler.health()["last_error"] == "token down; config down"


@pytest.mark.asyncio
async def test_run_once_swallows_job_exceptions() -> None:
    job = RecordingJob(error=RuntimeError("database unavailable"))
    scheduler = LoyaltyCloudSyncScheduler(session_factory=_session_factory, interval_seconds=60, job=job)

    assert await scheduler.run_once() is None
    assert scheduler.health()["last_error"] == "database unavailable"


@pytest.mark.asyncio
async def test_start_and_stop_toggle_running_state() -> None:
    job = RecordingJob()
    scheduler = LoyaltyCloudSyncScheduler(
        session_factory=_session_factory,
        interval_seconds=3600,
        run_on_start=False,
        job=job,
    )

    scheduler.start()
    assert scheduler.is_running
    assert scheduler.health()["interval_seconds"] == 3600

    await scheduler.stop()
    assert not scheduler.is_running
    assert job.calls == []
