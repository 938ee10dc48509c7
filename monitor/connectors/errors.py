"""
monitor/connectors/errors.py

Error taxonomy for remote store calls.
"""

from __future__ import annotations

from typing import Any


class DriveApiError(RuntimeError):
    """
    Raised when a remote store call fails.
    """

    kind = "unknown"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        resource_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.resource_id = resource_id

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "message": self.message,
            "status_code": self.status_code,
            "resource_id": self.resource_id,
        }


class MalformedRequestError(DriveApiError):
    kind = "malformed_request"


class InvalidCredentialsError(DriveApiError):
    """
    Raised when the bearer credential is missing, expired or rejected.
    """

    kind = "invalid_credentials"


class PermissionDeniedError(DriveApiError):
    kind = "permission_denied"


class ServiceDisabledError(DriveApiError):
    """
    Raised when a required API is not enabled for the caller's project.
    """

    kind = "service_disabled"


class ResourceNotFoundError(DriveApiError):
    kind = "not_found"


class DriveRequestError(DriveApiError):
    """
    Raised when a transient failure persists after retries.
    """

    kind = "transient"


def is_auth_error(exc: BaseException) -> bool:
    """
    Return True for failures that must never be downgraded to a default.
    """

    return isinstance(exc, InvalidCredentialsError)
