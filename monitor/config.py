"""
monitor/config.py

Environment-driven configuration for the report monitor.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def load_env_files() -> None:
    """
    Load simple KEY=VALUE pairs from `.env` and `.env.local` (if present).
    Existing process environment variables are not overwritten.
    """

    for filename in (".env", ".env.local"):
        env_path = PROJECT_ROOT / filename
        if not env_path.exists():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


@dataclass(frozen=True)
class DriveSettings:
    """
    Remote store endpoints, folder conventions and HTTP behaviour.
    """

    root_folder_id: str = "1Rv4SQ8yutdF71WGOltUoUdFT3eTEmMYA"
    drive_api_url: str = "https://www.googleapis.com/drive/v3/files"
    sheets_api_url: str = "https://sheets.googleapis.com/v4/spreadsheets"
    excluded_name_token: str = "servicepoints-techmetria"
    excluded_folder_name: str = "Base"
    conversion_range: str = "A:Z"
    page_size: int = 1000
    timeout_seconds: float = 30.0
    max_retries: int = 2
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0


@dataclass(frozen=True)
class OAuthSettings:
    """
    OAuth client settings used for bearer token refresh.
    """

    client_id: str | None = None
    token_url: str = "https://oauth2.googleapis.com/token"
    refresh_margin_seconds: float = 300.0
    token_store_path: str = ".monitor/tokens.json"


@dataclass(frozen=True)
class ParserSettings:
    """
    Safety limits applied while parsing spreadsheet bytes.
    """

    max_file_size_bytes: int = 50 * 1024 * 1024
    min_file_size_bytes: int = 100
    max_sheets: int = 10
    max_rows: int = 10_000
    max_cols: int = 100


@dataclass(frozen=True)
class CacheSettings:
    """
    Report status cache settings.
    """

    path: str = ".monitor/status_cache.json"
    ttl_seconds: float = 6 * 60 * 60
    max_entries: int = 1000
    evict_fraction: float = 0.2


@dataclass(frozen=True)
class BatchSettings:
    """
    Batch classification settings.
    """

    batch_size: int = 5


@dataclass(frozen=True)
class SchedulerSettings:
    """
    Periodic maintenance intervals owned by the application shell.
    """

    cache_prune_minutes: int = 30
    token_refresh_minutes: int = 45


@lru_cache(maxsize=1)
def get_drive_settings() -> DriveSettings:
    """
    Return cached Drive settings from environment variables.
    """

    defaults = DriveSettings()
    return DriveSettings(
        root_folder_id=_get_str_env("DRIVE_ROOT_FOLDER_ID", defaults.root_folder_id),
        drive_api_url=_get_str_env("DRIVE_API_URL", defaults.drive_api_url),
        sheets_api_url=_get_str_env("SHEETS_API_URL", defaults.sheets_api_url),
        excluded_name_token=_get_str_env("DRIVE_EXCLUDED_NAME_TOKEN", defaults.excluded_name_token),
        excluded_folder_name=_get_str_env("DRIVE_EXCLUDED_FOLDER_NAME", defaults.excluded_folder_name),
        conversion_range=_get_str_env("DRIVE_CONVERSION_RANGE", defaults.conversion_range),
        page_size=max(1, min(1000, _get_int_env("DRIVE_PAGE_SIZE", defaults.page_size))),
        timeout_seconds=max(1.0, _get_float_env("DRIVE_HTTP_TIMEOUT_SECONDS", defaults.timeout_seconds)),
        max_retries=max(0, _get_int_env("DRIVE_HTTP_MAX_RETRIES", defaults.max_retries)),
        backoff_initial_seconds=max(
            0.1, _get_float_env("DRIVE_HTTP_BACKOFF_INITIAL_SECONDS", defaults.backoff_initial_seconds)
        ),
        backoff_multiplier=max(1.0, _get_float_env("DRIVE_HTTP_BACKOFF_MULTIPLIER", defaults.backoff_multiplier)),
    )


@lru_cache(maxsize=1)
def get_oauth_settings() -> OAuthSettings:
    """
    Return cached OAuth settings from environment variables.
    """

    defaults = OAuthSettings()
    return OAuthSettings(
        client_id=_get_optional_str_env("GOOGLE_CLIENT_ID"),
        token_url=_get_str_env("GOOGLE_TOKEN_URL", defaults.token_url),
        refresh_margin_seconds=max(
            0.0, _get_float_env("OAUTH_REFRESH_MARGIN_SECONDS", defaults.refresh_margin_seconds)
        ),
        token_store_path=_get_str_env("OAUTH_TOKEN_STORE_PATH", defaults.token_store_path),
    )


@lru_cache(maxsize=1)
def get_parser_settings() -> ParserSettings:
    """
    Return cached parser limits from environment variables.
    """

    defaults = ParserSettings()
    return ParserSettings(
        max_file_size_bytes=max(1, _get_int_env("PARSER_MAX_FILE_SIZE_BYTES", defaults.max_file_size_bytes)),
        min_file_size_bytes=max(4, _get_int_env("PARSER_MIN_FILE_SIZE_BYTES", defaults.min_file_size_bytes)),
        max_sheets=max(1, _get_int_env("PARSER_MAX_SHEETS", defaults.max_sheets)),
        max_rows=max(1, _get_int_env("PARSER_MAX_ROWS", defaults.max_rows)),
        max_cols=max(1, _get_int_env("PARSER_MAX_COLS", defaults.max_cols)),
    )


@lru_cache(maxsize=1)
def get_cache_settings() -> CacheSettings:
    """
    Return cached status cache settings from environment variables.
    """

    defaults = CacheSettings()
    return CacheSettings(
        path=_get_str_env("STATUS_CACHE_PATH", defaults.path),
        ttl_seconds=max(1.0, _get_float_env("STATUS_CACHE_TTL_SECONDS", defaults.ttl_seconds)),
        max_entries=max(1, _get_int_env("STATUS_CACHE_MAX_ENTRIES", defaults.max_entries)),
        evict_fraction=min(1.0, max(0.01, _get_float_env("STATUS_CACHE_EVICT_FRACTION", defaults.evict_fraction))),
    )


@lru_cache(maxsize=1)
def get_batch_settings() -> BatchSettings:
    """
    Return cached batch classification settings.
    """

    return BatchSettings(batch_size=max(1, _get_int_env("CLASSIFY_BATCH_SIZE", 5)))


@lru_cache(maxsize=1)
def get_scheduler_settings() -> SchedulerSettings:
    """
    Return cached scheduler intervals.
    """

    return SchedulerSettings(
        cache_prune_minutes=max(1, _get_int_env("SCHEDULER_CACHE_PRUNE_MINUTES", 30)),
        token_refresh_minutes=max(1, _get_int_env("SCHEDULER_TOKEN_REFRESH_MINUTES", 45)),
    )
