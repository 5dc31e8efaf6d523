"""
dealer_analytics/config.py

Environment-driven settings for the API client, upload limits and logging.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]

DEFAULT_API_BASE_URL = "http://127.0.0.1:8000"

_BYTES_PER_MB = 1024 * 1024


def load_env_files(root: Path = PROJECT_ROOT) -> None:
    """
    Load KEY=VALUE pairs from `.env` and `.env.local` under ``root``.

    Variables already present in the process environment are kept.
    """

    for filename in (".env", ".env.local"):
        env_path = root / filename
        if not env_path.is_file():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if line.startswith("export "):
                line = line[len("export "):].lstrip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key:
                os.environ.setdefault(key, value)


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    load_env_files()


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_optional_float_env(name: str) -> float | None:
    """
    Read a float from environment variables; blank or invalid values read as unset.
    """

    raw_value = _get_optional_str_env(name)
    if raw_value is None:
        return None
    try:
        return float(raw_value)
    except ValueError:
        return None


def normalize_base_url(url: str) -> str:
    """
    Strip whitespace and trailing slashes so paths can be appended verbatim.
    """

    return url.strip().rstrip("/")


@dataclass(frozen=True)
class APIClientSettings:
    """
    Connection settings for the dealership analytics API.
    """

    base_url: str = DEFAULT_API_BASE_URL
    timeout_seconds: float | None = None


@dataclass(frozen=True)
class UploadLimits:
    """
    Client-side upload ceilings in bytes.

    The spreadsheet and deal-summary paths carry different ceilings; they are
    kept separate on purpose until product decides on a single limit.
    """

    spreadsheet_max_bytes: int = 10 * _BYTES_PER_MB
    deal_summary_max_bytes: int = 50 * _BYTES_PER_MB
    raw_file_max_bytes: int = 50 * _BYTES_PER_MB


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"


@lru_cache(maxsize=1)
def get_api_client_settings() -> APIClientSettings:
    """
    Return cached API connection settings from environment variables.
    """

    timeout = _get_optional_float_env("DEALER_API_TIMEOUT_SECONDS")
    return APIClientSettings(
        base_url=normalize_base_url(_get_str_env("DEALER_API_BASE_URL", DEFAULT_API_BASE_URL)),
        timeout_seconds=timeout if timeout is not None and timeout > 0 else None,
    )


@lru_cache(maxsize=1)
def get_upload_limits() -> UploadLimits:
    """
    Return cached upload ceilings. Values are configured in megabytes.
    """

    return UploadLimits(
        spreadsheet_max_bytes=max(1, _get_int_env("SPREADSHEET_UPLOAD_MAX_MB", 10)) * _BYTES_PER_MB,
        deal_summary_max_bytes=max(1, _get_int_env("DEAL_SUMMARY_UPLOAD_MAX_MB", 50)) * _BYTES_PER_MB,
        raw_file_max_bytes=max(1, _get_int_env("RAW_FILE_UPLOAD_MAX_MB", 50)) * _BYTES_PER_MB,
    )


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    return LoggingSettings(level=_get_str_env("LOG_LEVEL", "INFO").upper())
