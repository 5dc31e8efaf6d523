"""
dealer_analytics/client package marker.
"""

from dealer_analytics.client.api import DealershipAPIClient
from dealer_analytics.client.base import BaseAPIClient, extract_error_message
from dealer_analytics.client.errors import (
    AuthError,
    DealerAPIError,
    FileValidationError,
    NetworkFailure,
    RequestFailed,
    Unauthorized,
)

__all__ = [
    "AuthError",
    "BaseAPIClient",
    "DealerAPIError",
    "DealershipAPIClient",
    "FileValidationError",
    "NetworkFailure",
    "RequestFailed",
    "Unauthorized",
    "extract_error_message",
]
