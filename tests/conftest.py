"""
tests/conftest.py

Shared fixtures: an in-memory session store and a scripted stand-in for
``requests.Session`` that returns real ``requests.Response`` objects.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit

import pytest
import requests

from dealer_analytics.client.api import DealershipAPIClient
from dealer_analytics.config import APIClientSettings, UploadLimits
from dealer_analytics.session import SessionStore
from dealer_analytics.storage import AUTH_TOKEN_KEY, USERNAME_KEY, InMemoryStorage

BASE_URL = "http://api.test"
TOKEN = "tok-123"


def make_response(status: int = 200, body: Any = None, *, text: str | None = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    if text is not None:
        response._content = text.encode("utf-8")
        response.headers["Content-Type"] = "text/plain"
    else:
        response._content = json.dumps(body).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
    response.encoding = "utf-8"
    return response


@dataclass
class RecordedCall:
    method: str
    path: str
    params: dict[str, Any] | None
    json: Any
    files: dict[str, Any] | None
    headers: dict[str, str]
    timeout: float | None


@dataclass
class FakeHTTPSession:
    """
    Routes ``(method, path)`` to a scripted response or exception.

    A list value is consumed one item per call.
    """

    routes: dict[tuple[str, str], Any] = field(default_factory=dict)
    calls: list[RecordedCall] = field(default_factory=list)
    closed: bool = False

    def add(self, method: str, path: str, outcome: Any) -> None:
        self.routes[(method.upper(), path)] = outcome

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        path = urlsplit(url).path
        self.calls.append(
            RecordedCall(
                method=method,
                path=path,
                params=kwargs.get("params"),
                json=kwargs.get("json"),
                files=kwargs.get("files"),
                headers=dict(kwargs.get("headers") or {}),
                timeout=kwargs.get("timeout"),
            )
        )
        outcome = self.routes.get((method.upper(), path))
        if isinstance(outcome, list):
            outcome = outcome.pop(0)
        if outcome is None:
            return make_response(404, {"detail": "Not Found"})
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def storage() -> InMemoryStorage:
    return InMemoryStorage({AUTH_TOKEN_KEY: TOKEN, USERNAME_KEY: "alice"})


@pytest.fixture()
def session_store(storage: InMemoryStorage) -> SessionStore:
    return SessionStore(storage)


@pytest.fixture()
def http() -> FakeHTTPSession:
    return FakeHTTPSession()


@pytest.fixture()
def limits() -> UploadLimits:
    return UploadLimits()


@pytest.fixture()
def client(session_store: SessionStore, http: FakeHTTPSession) -> DealershipAPIClient:
    return DealershipAPIClient(
        session_store=session_store,
        settings=APIClientSettings(base_url=BASE_URL),
        http_session=http,  # type: ignore[arg-type]
    )


def kpi_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "month": "January",
        "total_units_sold": 42,
        "avg_units_per_salesperson": 8.4,
        "avg_gross_per_unit": 2345.5,
        "avg_fi_per_unit": 1100.0,
        "avg_commission_per_unit": 410.25,
        "fi_penetration_rate": 0.62,
        "new_used_ratio": 1.5,
        "lease_finance_cash_ratio": {"lease": 0.2, "finance": 0.7, "cash": 0.1},
        "front_back_ratio": 1.8,
        "commission_as_pct_of_gross": 0.18,
        "fi_as_pct_of_total_gross": 0.32,
        "top_salespeople": [
            {"name": "Dana", "units": 12, "avg_gross": 2500.0},
            {"name": "HOUSE", "units": 20, "avg_gross": 100.0},
            {"name": "Eli", "units": 10, "avg_gross": 3100.0},
        ],
        "units_by_vehicle_type": {"SUV": 20, "Sedan": 15, "Truck": 7},
        "top_models": [{"model": "RAV4", "units": 9}, {"model": "Camry", "units": 6}],
        "insights": "Strong SUV demand.",
    }
    payload.update(overrides)
    return payload
