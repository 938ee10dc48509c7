"""
monitor/validators package marker.
"""

from monitor.validators.header_validator import (
    REQUIRED_FIELDS,
    HeaderErrorDetail,
    HeaderNotFoundError,
    HeaderResolutionError,
    MissingRequiredColumnError,
    RequiredColumnValidator,
)

__all__ = [
    "REQUIRED_FIELDS",
    "HeaderErrorDetail",
    "HeaderNotFoundError",
    "HeaderResolutionError",
    "MissingRequiredColumnError",
    "RequiredColumnValidator",
]
