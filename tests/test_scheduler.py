"""
tests/test_scheduler.py

Pytest unit tests for the maintenance jobs and scheduler factory.
"""

from __future__ import annotations

from datetime import timedelta

from cache.status_cache import StatusCache
from cache.store import InMemoryStore
from monitor.config import SchedulerSettings
from monitor.domain.report import ReportClassification, ReportTier
from monitor.scheduler.jobs import build_scheduler, run_prune_status_cache, run_refresh_oauth_token


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class FakeTokenManager:
    def __init__(self, *, refreshed: bool = True, error: Exception | None = None) -> None:
        self.refreshed = refreshed
        self.error = error
        self.calls = 0

    def refresh_if_needed(self) -> bool:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.refreshed


def test_prune_job_removes_expired_entries() -> None:
    clock = FakeClock()
    cache = StatusCache(InMemoryStore(), ttl_seconds=60, clock=clock)
    cache.put("old", ReportClassification(tier=ReportTier.ALERT, high_consumption_units_count=1))
    clock.now = 61

    assert run_prune_status_cache(cache) == 1
    assert len(cache) == 0


def test_prune_job_uses_given_empty_cache(monkeypatch) -> None:
    def fail() -> StatusCache:
        raise AssertionError("process-wide cache must not be used")

    monkeypatch.setattr("monitor.scheduler.jobs.get_status_cache", fail)

    assert run_prune_status_cache(StatusCache(InMemoryStore())) == 0


def test_refresh_job_reports_outcome() -> None:
    manager = FakeTokenManager(refreshed=True)

    assert run_refresh_oauth_token(manager) is True  # type: ignore[arg-type]
    assert manager.calls == 1


def test_refresh_job_swallows_failures() -> None:
    manager = FakeTokenManager(error=RuntimeError("token endpoint down"))

    assert run_refresh_oauth_token(manager) is False  # type: ignore[arg-type]


def test_build_scheduler_registers_jobs_without_starting() -> None:
    cache = StatusCache(InMemoryStore())
    manager = FakeTokenManager()

    scheduler = build_scheduler(
        cache=cache,
        token_manager=manager,  # type: ignore[arg-type]
        settings=SchedulerSettings(cache_prune_minutes=15, token_refresh_minutes=45),
    )

    assert not scheduler.running
    jobs = {job.id: job for job in scheduler.get_jobs()}
    assert set(jobs) == {"prune_status_cache", "refresh_oauth_token"}
    assert jobs["prune_status_cache"].trigger.interval == timedelta(minutes=15)
    assert jobs["refresh_oauth_token"].trigger.interval == timedelta(minutes=45)
    assert jobs["prune_status_cache"].kwargs == {"cache": cache}
    assert jobs["refresh_oauth_token"].kwargs == {"token_manager": manager}
