"""
tests/test_session_store.py

Pytest unit tests for SessionStore: credential lifecycle, logout events and
the latest-deal pointer.
"""

from __future__ import annotations

import logging
from unittest import mock

import pytest

from dealer_analytics.client.errors import AuthError
from dealer_analytics.schemas.auth import LoginResponse
from dealer_analytics.schemas.uploads import DealSummaryUploadResult, LatestDealPointer
from dealer_analytics.session import SessionStore
from dealer_analytics.storage import AUTH_TOKEN_KEY, LATEST_DEAL_KEY, USERNAME_KEY, InMemoryStorage


def _store() -> tuple[SessionStore, InMemoryStorage]:
    storage = InMemoryStorage()
    return SessionStore(storage), storage


# ---------------------------------------------------------------------------
# Credential lifecycle
# ---------------------------------------------------------------------------


class TestCredential:
    def test_starts_signed_out(self) -> None:
        store, _ = _store()
        assert store.current() is None
        assert store.is_authenticated() is False

    def test_begin_persists(self) -> None:
        store, storage = _store()
        session = store.begin(LoginResponse(access_token="t1", username="alice"))
        assert session.bearer_token == "t1"
        assert storage.get(AUTH_TOKEN_KEY) == "t1"
        assert storage.get(USERNAME_KEY) == "alice"
        assert store.current() == session

    def test_empty_token_is_not_a_session(self) -> None:
        store = SessionStore(InMemoryStorage({AUTH_TOKEN_KEY: ""}))
        assert store.is_authenticated() is False

    def test_logout_clears_both_keys_and_keeps_pointer(self) -> None:
        pointer = {"month": "Nov", "row_index": 4, "deal_number": "1"}
        storage = InMemoryStorage({AUTH_TOKEN_KEY: "t", USERNAME_KEY: "u", LATEST_DEAL_KEY: pointer})
        store = SessionStore(storage)

        store.logout()

        assert storage.get(AUTH_TOKEN_KEY) is None
        assert storage.get(USERNAME_KEY) is None
        assert storage.get(LATEST_DEAL_KEY) == pointer

    def test_login_delegates_to_client(self) -> None:
        store, storage = _store()
        client = mock.Mock()
        client.authenticate.return_value = LoginResponse(access_token="t2", username="bo")

        session = store.login(client, "bo", "pw")

        client.authenticate.assert_called_once_with("bo", "pw")
        assert session.username == "bo"
        assert storage.get(AUTH_TOKEN_KEY) == "t2"

    def test_login_failure_stores_nothing(self) -> None:
        store, storage = _store()
        client = mock.Mock()
        client.authenticate.side_effect = AuthError("Invalid username or password")

        with pytest.raises(AuthError):
            store.login(client, "bo", "bad")

        assert storage.get(AUTH_TOKEN_KEY) is None
        assert storage.get(USERNAME_KEY) is None

    def test_clear_does_not_notify(self) -> None:
        store = SessionStore(InMemoryStorage({AUTH_TOKEN_KEY: "t"}))
        listener = mock.Mock()
        store.subscribe(listener)
        store.clear()
        listener.assert_not_called()
        assert store.is_authenticated() is False

    def test_token_is_not_logged(self, caplog) -> None:
        store, _ = _store()
        with caplog.at_level(logging.INFO):
            store.begin(LoginResponse(access_token="super-secret", username="alice"))
        assert "super-secret" not in caplog.text
        assert "session_started" in caplog.text


# ---------------------------------------------------------------------------
# Logout events
# ---------------------------------------------------------------------------


class TestLogoutEvents:
    def test_listeners_receive_reason(self) -> None:
        store, _ = _store()
        reasons: list[str] = []
        store.subscribe(reasons.append)
        store.logout("unauthorized")
        store.logout()
        assert reasons == ["unauthorized", "user"]

    def test_unsubscribe(self) -> None:
        store, _ = _store()
        reasons: list[str] = []
        unsubscribe = store.subscribe(reasons.append)
        unsubscribe()
        unsubscribe()
        store.logout()
        assert reasons == []

    def test_failing_listener_does_not_block_others(self) -> None:
        store, storage = _store()
        storage.set(AUTH_TOKEN_KEY, "t")
        reasons: list[str] = []

        def _boom(reason: str) -> None:
            raise RuntimeError("listener failed")

        store.subscribe(_boom)
        store.subscribe(reasons.append)
        store.logout()

        assert reasons == ["user"]
        assert storage.get(AUTH_TOKEN_KEY) is None


# ---------------------------------------------------------------------------
# Latest deal pointer
# ---------------------------------------------------------------------------


class TestLatestDeal:
    def test_remember_and_read_back(self) -> None:
        store, storage = _store()
        result = DealSummaryUploadResult(deal_number="10234", month_sheet="Nov", newly_added_row_index=4)

        pointer = store.remember_latest_deal(result)

        assert pointer is not None
        assert store.latest_deal() == pointer
        stored = storage.get(LATEST_DEAL_KEY)
        assert stored["month"] == "Nov"
        assert stored["row_index"] == 4
        assert isinstance(stored["timestamp"], str)

    def test_result_without_row_keeps_previous_pointer(self) -> None:
        store, _ = _store()
        store.remember_latest_deal(DealSummaryUploadResult(month_sheet="Oct", newly_added_row_index=2))
        assert store.remember_latest_deal(DealSummaryUploadResult(month_sheet="Nov")) is None
        assert store.latest_deal().month == "Oct"

    def test_malformed_pointer_reads_as_none(self) -> None:
        store = SessionStore(InMemoryStorage({LATEST_DEAL_KEY: {"month": "Nov"}}))
        assert store.latest_deal() is None

    def test_forget(self) -> None:
        store, _ = _store()
        store.remember_latest_deal(DealSummaryUploadResult(month_sheet="Nov", newly_added_row_index=0))
        store.forget_latest_deal()
        assert store.latest_deal() is None

    def test_pointer_from_failed_upload_is_none(self) -> None:
        result = DealSummaryUploadResult(success=False, month_sheet="Nov", newly_added_row_index=1)
        assert LatestDealPointer.from_upload(result) is None
