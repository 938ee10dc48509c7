"""
monitor/connectors/drive_connector.py

Remote store adapter over the Drive v3 and Sheets v4 HTTP APIs.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Any, Callable, Iterator
from urllib.parse import quote

import requests
from pydantic import ValidationError

from monitor.config import DriveSettings, get_drive_settings
from monitor.connectors.errors import (
    DriveApiError,
    DriveRequestError,
    InvalidCredentialsError,
    MalformedRequestError,
    PermissionDeniedError,
    ResourceNotFoundError,
    ServiceDisabledError,
)
from monitor.connectors.schemas import SPREADSHEET_MIME_TYPE, DriveFile, DriveFileList, SheetValues
from monitor.connectors.token_manager import TokenManager
from monitor.logging_utils import log_event

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
SERVICE_DISABLED_MARKERS = ("API has not been used", "is disabled")
LIST_FIELDS = "nextPageToken, files(id, name, mimeType, modifiedTime)"
METADATA_FIELDS = "id, name, mimeType, modifiedTime, trashed"

FilePredicate = Callable[[DriveFile], bool]


class DriveConnector:
    """
    Lists folders, downloads files and reads tabular copies with retry support.
    """

    def __init__(
        self,
        token_manager: TokenManager,
        *,
        settings: DriveSettings | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self._tokens = token_manager
        self._settings = settings or get_drive_settings()
        self._session = session or requests.Session()

    @property
    def settings(self) -> DriveSettings:
        return self._settings

    # ------------------------------------------------------------------
    # Store operations
    # ------------------------------------------------------------------

    def list_children(
        self,
        folder_id: str,
        filter_predicate: FilePredicate | None = None,
        *,
        mime_type: str | None = None,
        order_by: str | None = None,
    ) -> list[DriveFile]:
        """
        List non-trashed children of a folder, following every result page.
        """

        query = f"'{_escape_query_value(folder_id)}' in parents and trashed=false"
        if mime_type:
            query += f" and mimeType='{_escape_query_value(mime_type)}'"

        params: dict[str, Any] = {
            "q": query,
            "fields": LIST_FIELDS,
            "pageSize": self._settings.page_size,
        }
        if order_by:
            params["orderBy"] = order_by

        children: list[DriveFile] = []
        page_token: str | None = None
        while True:
            if page_token:
                params["pageToken"] = page_token
            payload = self._request_json(
                method="GET",
                url=self._settings.drive_api_url,
                params=params,
                resource_id=folder_id,
            )
            page = self._validate(DriveFileList, payload, resource_id=folder_id)
            children.extend(page.files)
            page_token = page.next_page_token
            if not page_token:
                break

        if filter_predicate is not None:
            children = [child for child in children if filter_predicate(child)]
        return children

    def download_bytes(self, file_id: str) -> bytes:
        response = self._request(
            method="GET",
            url=f"{self._settings.drive_api_url}/{quote(file_id, safe='')}",
            params={"alt": "media"},
            resource_id=file_id,
        )
        return response.content

    def get_metadata(self, file_id: str) -> DriveFile:
        payload = self._request_json(
            method="GET",
            url=f"{self._settings.drive_api_url}/{quote(file_id, safe='')}",
            params={"fields": METADATA_FIELDS},
            resource_id=file_id,
        )
        return self._validate(DriveFile, payload, resource_id=file_id)

    def create_tabular_copy(self, source_file_id: str) -> str:
        """
        Copy a file as a native spreadsheet and return the new resource id.
        """

        payload = self._request_json(
            method="POST",
            url=f"{self._settings.drive_api_url}/{quote(source_file_id, safe='')}/copy",
            params={"fields": "id"},
            json_body={
                "name": f"temp_conversion_{int(time.time() * 1000)}",
                "mimeType": SPREADSHEET_MIME_TYPE,
            },
            resource_id=source_file_id,
        )
        copy = self._validate(DriveFile, payload, resource_id=source_file_id)
        log_event(logger, logging.INFO, "tabular_copy_created", source_id=source_file_id, copy_id=copy.id)
        return copy.id

    def read_tabular_range(self, resource_id: str, range_spec: str | None = None) -> list[list[Any]]:
        range_value = range_spec or self._settings.conversion_range
        payload = self._request_json(
            method="GET",
            url=(
                f"{self._settings.sheets_api_url}/{quote(resource_id, safe='')}"
                f"/values/{quote(range_value, safe='')}"
            ),
            resource_id=resource_id,
        )
        return self._validate(SheetValues, payload, resource_id=resource_id).values

    def delete_resource(self, resource_id: str) -> None:
        self._request(
            method="DELETE",
            url=f"{self._settings.drive_api_url}/{quote(resource_id, safe='')}",
            resource_id=resource_id,
        )

    @contextmanager
    def tabular_copy(self, source_file_id: str) -> Iterator[str]:
        """
        Yield a temporary spreadsheet copy that is deleted on exit.
        """

        copy_id = self.create_tabular_copy(source_file_id)
        try:
            yield copy_id
        finally:
            try:
                self.delete_resource(copy_id)
            except DriveApiError as exc:
                logger.warning(
                    "Temporary copy cleanup failed source_id=%s copy_id=%s error=%s",
                    source_file_id,
                    copy_id,
                    exc,
                )

    # ------------------------------------------------------------------
    # HTTP mechanics
    # ------------------------------------------------------------------

    def _request_json(
        self,
        *,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
        resource_id: str | None = None,
    ) -> Any:
        response = self._request(
            method=method,
            url=url,
            params=params,
            json_body=json_body,
            resource_id=resource_id,
        )
        try:
            return response.json()
        except ValueError as exc:
            raise DriveApiError(
                "Response was not valid JSON.",
                status_code=response.status_code,
                resource_id=resource_id,
            ) from exc

    def _request(
        self,
        *,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
        resource_id: str | None = None,
    ) -> requests.Response:
        """
        Execute an authorized request with one token refresh on 401 and
        exponential backoff on transient failures.
        """

        refreshed = False
        attempt = 0
        last_error: Exception | None = None
        while True:
            headers = {"Authorization": f"Bearer {self._tokens.get_access_token()}"}
            try:
                response = self._session.request(
                    method=method,
                    url=url,
                    params=params,
                    json=json_body,
                    headers=headers,
                    timeout=self._settings.timeout_seconds,
                )
            except (requests.Timeout, requests.ConnectionError) as exc:
                last_error = exc
            else:
                if response.status_code == 401 and not refreshed:
                    refreshed = True
                    logger.info("Drive request unauthorized, refreshing token url=%s", url)
                    self._tokens.force_refresh()
                    continue
                if response.status_code not in RETRYABLE_STATUS_CODES:
                    if response.ok:
                        return response
                    raise self._error_for_response(response, url=url, resource_id=resource_id)
                last_error = DriveApiError(
                    f"Retryable HTTP status code: {response.status_code}",
                    status_code=response.status_code,
                    resource_id=resource_id,
                )

            if attempt >= self._settings.max_retries:
                break

            backoff_seconds = self._settings.backoff_initial_seconds * (self._settings.backoff_multiplier**attempt)
            logger.warning(
                "Drive request retry attempt=%s/%s wait_seconds=%.2f url=%s",
                attempt + 1,
                self._settings.max_retries,
                backoff_seconds,
                url,
            )
            time.sleep(backoff_seconds)
            attempt += 1

        logger.error("Drive request exhausted retries url=%s error=%s", url, last_error)
        raise DriveRequestError(
            "Request failed after retries.",
            resource_id=resource_id,
        ) from last_error

    @staticmethod
    def _error_for_response(response: requests.Response, *, url: str, resource_id: str | None) -> DriveApiError:
        status_code = response.status_code
        detail = _error_message(response)
        logger.error("Drive request failed status=%s url=%s error=%s", status_code, url, detail)

        if status_code == 400:
            return MalformedRequestError(
                f"Invalid request: {detail}", status_code=status_code, resource_id=resource_id
            )
        if status_code == 401:
            return InvalidCredentialsError(
                "Invalid or expired credentials. Sign in again.", status_code=status_code, resource_id=resource_id
            )
        if status_code == 403:
            if any(marker in detail for marker in SERVICE_DISABLED_MARKERS):
                return ServiceDisabledError(
                    f"Required API is not enabled: {detail}", status_code=status_code, resource_id=resource_id
                )
            return PermissionDeniedError(
                f"Permission denied: {detail}", status_code=status_code, resource_id=resource_id
            )
        if status_code == 404:
            return ResourceNotFoundError(
                "File or folder not found.", status_code=status_code, resource_id=resource_id
            )
        return DriveApiError(
            f"Unexpected HTTP status {status_code}: {detail}", status_code=status_code, resource_id=resource_id
        )

    @staticmethod
    def _validate(model: type, payload: Any, *, resource_id: str | None) -> Any:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise DriveApiError(
                f"Unexpected response shape for {model.__name__}.",
                resource_id=resource_id,
            ) from exc


def _escape_query_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _error_message(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return (response.text or "").strip()[:300]
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
    return str(payload)[:300]
