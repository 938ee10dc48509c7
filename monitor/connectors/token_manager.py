"""
monitor/connectors/token_manager.py

Bearer credential holder with proactive refresh and persistence.

Credentials are refreshed when they are within the configured margin of
expiry and a refresh token is available. `force_refresh()` serves the
connector's one-shot retry after a 401. Credentials are saved to a
KeyValueStore; a stored payload that cannot be read is cleared.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import asdict, dataclass
from typing import Any, Callable

import requests
from pydantic import ValidationError

from cache.store import KeyValueStore
from monitor.config import OAuthSettings, get_oauth_settings
from monitor.connectors.errors import DriveRequestError, InvalidCredentialsError
from monitor.connectors.schemas import TokenResponse

logger = logging.getLogger(__name__)

TOKEN_STORE_KEY = "oauth_tokens_v2"


@dataclass(frozen=True)
class OAuthCredentials:
    """
    Access token plus expiry (epoch seconds) and optional refresh token.
    """

    access_token: str
    expires_at: float
    refresh_token: str | None = None

    def expires_within(self, seconds: float, *, now: float) -> bool:
        return self.expires_at - now <= seconds

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> OAuthCredentials:
        access_token = payload["access_token"]
        if not isinstance(access_token, str) or not access_token:
            raise ValueError("access_token must be a non-empty string")
        refresh_token = payload.get("refresh_token")
        if refresh_token is not None and not isinstance(refresh_token, str):
            raise ValueError("refresh_token must be a string")
        return cls(
            access_token=access_token,
            expires_at=float(payload["expires_at"]),
            refresh_token=refresh_token or None,
        )


class TokenManager:
    """
    Supplies a valid bearer token to remote store calls.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        settings: OAuthSettings | None = None,
        session: requests.Session | None = None,
        clock: Callable[[], float] = time.time,
        store_key: str = TOKEN_STORE_KEY,
    ) -> None:
        self._store = store
        self._settings = settings or get_oauth_settings()
        self._session = session or requests.Session()
        self._clock = clock
        self._store_key = store_key
        self._credentials: OAuthCredentials | None = None
        self._loaded = False
        self._lock = threading.RLock()

    @property
    def credentials(self) -> OAuthCredentials | None:
        with self._lock:
            self._ensure_loaded()
            return self._credentials

    def set_credentials(self, credentials: OAuthCredentials) -> None:
        with self._lock:
            self._credentials = credentials
            self._loaded = True
            self._store.set(self._store_key, json.dumps(credentials.to_dict()))

    def set_from_token_response(self, payload: dict[str, Any]) -> OAuthCredentials:
        """
        Store credentials obtained from an authorization exchange.
        """

        try:
            token = TokenResponse.model_validate(payload)
        except ValidationError as exc:
            raise InvalidCredentialsError("Token response is missing an access token.") from exc

        credentials = OAuthCredentials(
            access_token=token.access_token,
            expires_at=self._clock() + token.expires_in,
            refresh_token=token.refresh_token,
        )
        self.set_credentials(credentials)
        return credentials

    def clear(self) -> None:
        with self._lock:
            self._credentials = None
            self._loaded = True
            self._store.delete(self._store_key)

    def get_access_token(self) -> str:
        """
        Return a bearer token, refreshing it first when it is about to expire.
        """

        with self._lock:
            self._ensure_loaded()
            credentials = self._credentials
            if credentials is None:
                raise InvalidCredentialsError("No stored credentials. Sign in again.")

            now = self._clock()
            if credentials.expires_within(self._settings.refresh_margin_seconds, now=now):
                if credentials.refresh_token:
                    credentials = self._refresh(credentials)
                elif credentials.expires_at <= now:
                    raise InvalidCredentialsError("Access token expired and no refresh token is available.")
            return credentials.access_token

    def force_refresh(self) -> str:
        """
        Refresh unconditionally; used after the remote store rejects a token.
        """

        with self._lock:
            self._ensure_loaded()
            credentials = self._credentials
            if credentials is None or not credentials.refresh_token:
                raise InvalidCredentialsError("Credentials were rejected and cannot be refreshed.", status_code=401)
            return self._refresh(credentials).access_token

    def refresh_if_needed(self) -> bool:
        """
        Refresh when inside the expiry margin; returns True when a refresh ran.
        """

        with self._lock:
            self._ensure_loaded()
            credentials = self._credentials
            if credentials is None or not credentials.refresh_token:
                return False
            if not credentials.expires_within(self._settings.refresh_margin_seconds, now=self._clock()):
                return False
            self._refresh(credentials)
            return True

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        self._loaded = True
        raw_payload = self._store.get(self._store_key)
        if not raw_payload:
            return
        try:
            self._credentials = OAuthCredentials.from_dict(json.loads(raw_payload))
        except (json.JSONDecodeError, TypeError, KeyError, ValueError) as exc:
            logger.warning("Clearing corrupted stored credentials key=%s error=%s", self._store_key, exc)
            self._credentials = None
            self._store.delete(self._store_key)

    def _refresh(self, credentials: OAuthCredentials) -> OAuthCredentials:
        data = {
            "grant_type": "refresh_token",
            "refresh_token": credentials.refresh_token,
        }
        if self._settings.client_id:
            data["client_id"] = self._settings.client_id

        try:
            response = self._session.post(self._settings.token_url, data=data, timeout=30)
        except (requests.Timeout, requests.ConnectionError) as exc:
            logger.error("Token refresh request failed error=%s", exc)
            raise DriveRequestError("Token refresh request failed.") from exc

        if response.status_code in {400, 401}:
            logger.warning("Token refresh rejected status=%s", response.status_code)
            self.clear()
            raise InvalidCredentialsError("Refresh token was rejected. Sign in again.", status_code=401)
        if not response.ok:
            raise DriveRequestError(
                f"Token refresh failed with status {response.status_code}.",
                status_code=response.status_code,
            )

        try:
            token = TokenResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise InvalidCredentialsError("Token refresh returned an invalid payload.") from exc

        refreshed = OAuthCredentials(
            access_token=token.access_token,
            expires_at=self._clock() + token.expires_in,
            refresh_token=token.refresh_token or credentials.refresh_token,
        )
        self.set_credentials(refreshed)
        logger.info("Access token refreshed expires_in=%s", token.expires_in)
        return refreshed
