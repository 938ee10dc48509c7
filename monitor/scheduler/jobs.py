"""
monitor/scheduler/jobs.py

APScheduler-based maintenance jobs owned by the application shell.

Schedule
--------
  prune_status_cache:  every SCHEDULER_CACHE_PRUNE_MINUTES (default 30)
  refresh_oauth_token: every SCHEDULER_TOKEN_REFRESH_MINUTES (default 45)

Lifecycle
----------
Call ``build_scheduler()`` once to get a configured ``BackgroundScheduler``.
Start it when the application boots and shut it down on exit. The pipeline
itself never starts timers.
"""

from __future__ import annotations

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from cache.status_cache import StatusCache
from monitor.config import SchedulerSettings, get_scheduler_settings
from monitor.connectors.token_manager import TokenManager
from monitor.services.report_service import get_status_cache, get_token_manager

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Job: status cache pruning
# ---------------------------------------------------------------------------


def run_prune_status_cache(cache: StatusCache | None = None) -> int:
    """
    Drop expired status cache entries. Returns the number removed.
    """
    target = cache if cache is not None else get_status_cache()
    try:
        removed = target.prune_expired()
    except Exception as exc:  # noqa: BLE001
        logger.warning("Scheduler: prune_status_cache failed: %s", exc)
        return 0
    logger.info("Scheduler: prune_status_cache removed=%s remaining=%s", removed, len(target))
    return removed


# ---------------------------------------------------------------------------
# Job: OAuth session keeper
# ---------------------------------------------------------------------------


def run_refresh_oauth_token(token_manager: TokenManager | None = None) -> bool:
    """
    Refresh the access token when it is close to expiry.
    """
    manager = token_manager if token_manager is not None else get_token_manager()
    try:
        refreshed = manager.refresh_if_needed()
    except Exception as exc:  # noqa: BLE001
        logger.warning("Scheduler: refresh_oauth_token failed: %s", exc)
        return False
    logger.info("Scheduler: refresh_oauth_token refreshed=%s", refreshed)
    return refreshed


# ---------------------------------------------------------------------------
# Scheduler factory
# ---------------------------------------------------------------------------


def build_scheduler(
    *,
    cache: StatusCache | None = None,
    token_manager: TokenManager | None = None,
    settings: SchedulerSettings | None = None,
) -> BackgroundScheduler:
    """
    Build and register the maintenance jobs.

    Returns a configured but *not yet started* ``BackgroundScheduler``.
    The caller must call ``.start()`` and ``.shutdown(wait=True)`` at the
    appropriate lifecycle points.
    """
    intervals = settings or get_scheduler_settings()
    scheduler = BackgroundScheduler(timezone="UTC")

    scheduler.add_job(
        run_prune_status_cache,
        trigger="interval",
        minutes=intervals.cache_prune_minutes,
        kwargs={"cache": cache},
        id="prune_status_cache",
        name="Status cache pruning",
        replace_existing=True,
        misfire_grace_time=600,
    )
    scheduler.add_job(
        run_refresh_oauth_token,
        trigger="interval",
        minutes=intervals.token_refresh_minutes,
        kwargs={"token_manager": token_manager},
        id="refresh_oauth_token",
        name="OAuth session refresh",
        replace_existing=True,
        misfire_grace_time=600,
    )

    return scheduler
