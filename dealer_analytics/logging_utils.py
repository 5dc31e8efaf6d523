"""
Logging setup and structured event helpers.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from dealer_analytics.config import get_logging_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_REDACTED_FIELDS = frozenset({"password", "token", "access_token", "bearer_token", "authorization"})

_configured = False


def configure_logging() -> None:
    """
    Configure root logging once per process from LOG_LEVEL.
    """

    global _configured
    if _configured:
        return
    level_name = get_logging_settings().level
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)
    _configured = True


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.

    Credential-bearing fields are masked before serialization.
    """

    payload = {"event": event}
    for key, value in fields.items():
        payload[key] = "***" if key.lower() in _REDACTED_FIELDS else value
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))
