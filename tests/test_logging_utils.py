"""
tests/test_logging_utils.py

Structured event logging.
"""

from __future__ import annotations

import json
import logging

from dealer_analytics.logging_utils import log_event


def test_log_event_emits_json(caplog) -> None:
    logger = logging.getLogger("tests.events")
    with caplog.at_level(logging.INFO, logger="tests.events"):
        log_event(logger, logging.INFO, "raw_file_uploaded", filename="a.csv", size_bytes=3)

    payload = json.loads(caplog.records[0].getMessage())
    assert payload == {"event": "raw_file_uploaded", "filename": "a.csv", "size_bytes": 3}


def test_log_event_masks_credentials(caplog) -> None:
    logger = logging.getLogger("tests.events")
    with caplog.at_level(logging.INFO, logger="tests.events"):
        log_event(logger, logging.WARNING, "login_failed", username="alice", password="pw", Authorization="Bearer t")

    payload = json.loads(caplog.records[0].getMessage())
    assert payload["password"] == "***"
    assert payload["Authorization"] == "***"
    assert payload["username"] == "alice"
    assert caplog.records[0].levelno == logging.WARNING


def test_log_event_serializes_unknown_types(caplog) -> None:
    logger = logging.getLogger("tests.events")
    with caplog.at_level(logging.DEBUG, logger="tests.events"):
        log_event(logger, logging.DEBUG, "debug_event", values=(1, 2), when=object())

    payload = json.loads(caplog.records[0].getMessage())
    assert payload["values"] == [1, 2]
    assert payload["when"].startswith("<object object")
