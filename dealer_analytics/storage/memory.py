"""
Mapping-backed client storage.
"""

from __future__ import annotations

import copy
from collections.abc import MutableMapping
from typing import Any

from dealer_analytics.storage.base import ClientStorage


class InMemoryStorage(ClientStorage):
    """
    Storage over a caller-owned mapping.

    The Streamlit app hands in a dict kept in ``st.session_state`` so every
    browser session holds its own credential and latest-deal pointer. Values
    are copied on the way in and out.
    """

    def __init__(self, values: MutableMapping[str, Any] | None = None) -> None:
        self._values: MutableMapping[str, Any] = values if values is not None else {}

    def get(self, key: str) -> Any | None:
        return copy.deepcopy(self._values.get(key))

    def set(self, key: str, value: Any) -> None:
        self._values[key] = copy.deepcopy(value)

    def remove(self, key: str) -> None:
        self._values.pop(key, None)
