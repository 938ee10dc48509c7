"""
monitor/scheduler package marker.
"""

from monitor.scheduler.jobs import build_scheduler, run_prune_status_cache, run_refresh_oauth_token

__all__ = [
    "build_scheduler",
    "run_prune_status_cache",
    "run_refresh_oauth_token",
]
