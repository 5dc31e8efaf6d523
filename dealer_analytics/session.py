"""
dealer_analytics/session.py

Bearer-credential session backed by per-session client storage.

The store is handed to the API client explicitly. Logout is published as an
event so views can react (route to login) without the request layer knowing
about them.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from pydantic import ValidationError

from dealer_analytics.logging_utils import log_event
from dealer_analytics.schemas.auth import LoginResponse
from dealer_analytics.schemas.uploads import DealSummaryUploadResult, LatestDealPointer
from dealer_analytics.storage.base import (
    AUTH_TOKEN_KEY,
    LATEST_DEAL_KEY,
    USERNAME_KEY,
    ClientStorage,
)

if TYPE_CHECKING:
    from dealer_analytics.client.api import DealershipAPIClient

logger = logging.getLogger(__name__)

LogoutReason = Literal["user", "unauthorized"]
LogoutListener = Callable[[LogoutReason], None]


@dataclass(frozen=True)
class Session:
    bearer_token: str
    username: str


class SessionStore:
    """
    Owns the persisted credential, username and latest-deal pointer.
    """

    def __init__(self, storage: ClientStorage) -> None:
        self._storage = storage
        self._listeners: list[LogoutListener] = []

    @property
    def storage(self) -> ClientStorage:
        return self._storage

    # ------------------------------------------------------------------
    # Credential lifecycle
    # ------------------------------------------------------------------

    def login(self, client: DealershipAPIClient, username: str, password: str) -> Session:
        """
        Exchange credentials through ``client`` and persist the issued token.

        Errors from the client propagate; nothing is stored in that case.
        """

        return self.begin(client.authenticate(username, password))

    def begin(self, login: LoginResponse) -> Session:
        """
        Persist a freshly issued credential and return the new session.
        """

        self._storage.set(AUTH_TOKEN_KEY, login.access_token)
        self._storage.set(USERNAME_KEY, login.username)
        log_event(logger, logging.INFO, "session_started", username=login.username)
        return Session(bearer_token=login.access_token, username=login.username)

    def current(self) -> Session | None:
        token = self.bearer_token()
        if token is None:
            return None
        username = self._storage.get(USERNAME_KEY)
        return Session(bearer_token=token, username=username if isinstance(username, str) else "")

    def bearer_token(self) -> str | None:
        token = self._storage.get(AUTH_TOKEN_KEY)
        if isinstance(token, str) and token:
            return token
        return None

    def is_authenticated(self) -> bool:
        return self.bearer_token() is not None

    def clear(self) -> None:
        """
        Drop the stored credential without notifying listeners.
        """

        self._storage.remove_many(AUTH_TOKEN_KEY, USERNAME_KEY)

    def logout(self, reason: LogoutReason = "user") -> None:
        """
        Clear the persisted credential and username, then notify listeners.

        Listeners are notified even when no credential was stored so a view
        that raced a concurrent logout still routes back to login.
        """

        username = self._storage.get(USERNAME_KEY)
        self._storage.remove_many(AUTH_TOKEN_KEY, USERNAME_KEY)
        log_event(
            logger,
            logging.INFO if reason == "user" else logging.WARNING,
            "session_ended",
            reason=reason,
            username=username,
        )
        for listener in list(self._listeners):
            try:
                listener(reason)
            except Exception:
                logger.exception("Logout listener failed reason=%s", reason)

    def subscribe(self, listener: LogoutListener) -> Callable[[], None]:
        """
        Register a logout listener and return a callable that removes it.
        """

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Latest deal pointer
    # ------------------------------------------------------------------

    def remember_latest_deal(self, result: DealSummaryUploadResult) -> LatestDealPointer | None:
        """
        Store the pointer to the row a deal-summary upload appended.

        Returns None (and leaves the previous pointer untouched) when the
        result does not identify an appended row.
        """

        pointer = LatestDealPointer.from_upload(result)
        if pointer is None:
            return None
        self._storage.set(LATEST_DEAL_KEY, pointer.model_dump(mode="json"))
        return pointer

    def latest_deal(self) -> LatestDealPointer | None:
        raw = self._storage.get(LATEST_DEAL_KEY)
        if raw is None:
            return None
        try:
            return LatestDealPointer.model_validate(raw)
        except ValidationError as exc:
            logger.warning("Ignoring malformed latest deal pointer error=%s", exc)
            return None

    def forget_latest_deal(self) -> None:
        self._storage.remove(LATEST_DEAL_KEY)
