"""
Probe that the configured dealership analytics API answers.

Exit status 0 when ``DEALER_API_BASE_URL`` + ``HEALTHCHECK_PATH`` returns a
non-error status, 1 otherwise.
"""

from __future__ import annotations

import os
import sys

import requests

from dealer_analytics.config import get_api_client_settings


def main() -> int:
    settings = get_api_client_settings()
    path = os.getenv("HEALTHCHECK_PATH", "/api/years")
    url = f"{settings.base_url}/{path.lstrip('/')}"
    timeout = settings.timeout_seconds or 2

    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException as exc:
        print(f"unreachable url={url} error={exc}", file=sys.stderr)
        return 1
    # 401 still proves the server is up; it just wants a bearer token.
    return 0 if response.ok or response.status_code == 401 else 1


if __name__ == "__main__":
    raise SystemExit(main())
