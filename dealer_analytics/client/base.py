"""
dealer_analytics/client/base.py

Shared HTTP mechanics for the dealership analytics API.

Every call is a single round trip: no retries, no caching, and a timeout
only when one is configured.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

import requests
from pydantic import TypeAdapter, ValidationError

from dealer_analytics.client.errors import NetworkFailure, RequestFailed, Unauthorized
from dealer_analytics.config import APIClientSettings
from dealer_analytics.session import SessionStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

UNAUTHORIZED_STATUS = 401


def extract_error_message(response: requests.Response) -> str | None:
    """
    Pull a human-readable message out of an error response body.

    Understands ``{"detail": "..."}``, FastAPI-style ``{"detail": [{"msg": ...}]}``
    and ``{"message": "..."}``. Returns None when the body carries nothing usable.
    """

    try:
        body = response.json()
    except ValueError:
        text = (response.text or "").strip()
        return text[:500] if text and not text.lstrip().startswith("<") else None

    if not isinstance(body, dict):
        return None

    detail = body.get("detail")
    if isinstance(detail, str) and detail.strip():
        return detail.strip()
    if isinstance(detail, list):
        messages = [
            str(item.get("msg")).strip()
            for item in detail
            if isinstance(item, dict) and item.get("msg")
        ]
        if messages:
            return "; ".join(messages)
    if isinstance(detail, dict):
        nested = detail.get("message")
        if isinstance(nested, str) and nested.strip():
            return nested.strip()

    message = body.get("message")
    if isinstance(message, str) and message.strip():
        return message.strip()
    return None


class BaseAPIClient:
    """
    Attaches the session's bearer credential and normalizes failures.
    """

    def __init__(
        self,
        *,
        settings: APIClientSettings,
        session_store: SessionStore,
        http_session: requests.Session | None = None,
    ) -> None:
        self._base_url = settings.base_url.rstrip("/")
        self._timeout_seconds = settings.timeout_seconds
        self._session_store = session_store
        self._http = http_session or requests.Session()

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def session_store(self) -> SessionStore:
        return self._session_store

    def close(self) -> None:
        self._http.close()

    def _url(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"

    def _auth_headers(self) -> dict[str, str]:
        token = self._session_store.bearer_token()
        if token is None:
            return {}
        return {"Authorization": f"Bearer {token}"}

    def _request(
        self,
        *,
        method: str,
        path: str,
        operation: str,
        params: dict[str, Any] | None = None,
        json_body: Any | None = None,
        files: dict[str, Any] | None = None,
        authenticated: bool = True,
        fallback_message: str | None = None,
    ) -> requests.Response:
        """
        Execute one request and return the successful response.

        401 clears the session before raising Unauthorized; only calls that
        carried the credential publish a logout event. Any other
        non-2xx raises RequestFailed carrying the server's message when the
        body has one.
        """

        url = self._url(path)
        headers = self._auth_headers() if authenticated else {}
        try:
            response = self._http.request(
                method=method,
                url=url,
                params=params,
                json=json_body,
                files=files,
                headers=headers,
                timeout=self._timeout_seconds,
            )
        except requests.RequestException as exc:
            logger.warning(
                "API request transport failure operation=%s method=%s url=%s error=%s",
                operation,
                method,
                url,
                exc,
            )
            raise NetworkFailure(
                fallback_message or f"Failed to {operation}",
                operation=operation,
            ) from exc

        if response.status_code == UNAUTHORIZED_STATUS:
            logger.warning("API request unauthorized operation=%s url=%s", operation, url)
            if authenticated:
                self._session_store.logout(reason="unauthorized")
            else:
                self._session_store.clear()
            raise Unauthorized(operation)

        if not response.ok:
            message = extract_error_message(response) or fallback_message or f"Failed to {operation}"
            logger.warning(
                "API request failed operation=%s status=%s url=%s message=%s",
                operation,
                response.status_code,
                url,
                message,
            )
            raise RequestFailed(message, status_code=response.status_code, operation=operation)

        logger.debug("API request ok operation=%s status=%s url=%s", operation, response.status_code, url)
        return response

    def _request_model(
        self,
        adapter: TypeAdapter[T],
        *,
        method: str,
        path: str,
        operation: str,
        **kwargs: Any,
    ) -> T:
        """
        Execute a request and validate the JSON body against ``adapter``.
        """

        response = self._request(method=method, path=path, operation=operation, **kwargs)
        try:
            payload = response.json()
        except ValueError as exc:
            raise RequestFailed(
                f"Failed to {operation}: response was not valid JSON.",
                status_code=response.status_code,
                operation=operation,
            ) from exc

        try:
            return adapter.validate_python(payload)
        except ValidationError as exc:
            logger.error(
                "API response did not match schema operation=%s errors=%s",
                operation,
                exc.error_count(),
            )
            raise RequestFailed(
                f"Failed to {operation}: unexpected response shape.",
                status_code=response.status_code,
                operation=operation,
            ) from exc
