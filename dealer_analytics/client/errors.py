"""
dealer_analytics/client/errors.py

Failure taxonomy for calls to the dealership analytics API.
"""

from __future__ import annotations

from dealer_analytics.validators.upload_validator import FileValidationError


class DealerAPIError(RuntimeError):
    """
    Base class for every API client failure.
    """


class Unauthorized(DealerAPIError):
    """
    Raised on HTTP 401. The session has already been cleared when this is raised.
    """

    def __init__(self, operation: str | None = None) -> None:
        super().__init__("Unauthorized")
        self.operation = operation


class AuthError(DealerAPIError):
    """
    Raised when the login endpoint rejects the submitted credentials.
    """


class RequestFailed(DealerAPIError):
    """
    Raised on any non-success response other than 401.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        operation: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.operation = operation


class NetworkFailure(RequestFailed):
    """
    Raised when the request never produced an HTTP response.
    """


__all__ = [
    "AuthError",
    "DealerAPIError",
    "FileValidationError",
    "NetworkFailure",
    "RequestFailed",
    "Unauthorized",
]
