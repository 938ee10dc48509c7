"""
monitor/connectors package marker.
"""

from monitor.connectors.drive_connector import DriveConnector
from monitor.connectors.errors import (
    DriveApiError,
    DriveRequestError,
    InvalidCredentialsError,
    MalformedRequestError,
    PermissionDeniedError,
    ResourceNotFoundError,
    ServiceDisabledError,
    is_auth_error,
)
from monitor.connectors.token_manager import OAuthCredentials, TokenManager

__all__ = [
    "DriveApiError",
    "DriveConnector",
    "DriveRequestError",
    "InvalidCredentialsError",
    "MalformedRequestError",
    "OAuthCredentials",
    "PermissionDeniedError",
    "ResourceNotFoundError",
    "ServiceDisabledError",
    "TokenManager",
    "is_auth_error",
]
