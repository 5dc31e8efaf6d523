"""
Client storage interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

AUTH_TOKEN_KEY = "auth_token"
USERNAME_KEY = "username"
LATEST_DEAL_KEY = "latest_deal"


class ClientStorage(ABC):
    """
    Key/value store for client-side state that survives page reruns.

    Values must be JSON-serializable. Implementations make no transactional
    guarantees across processes.
    """

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """
        Return the stored value for ``key`` or None when absent.
        """

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """
        Store ``value`` under ``key``, replacing any previous value.
        """

    @abstractmethod
    def remove(self, key: str) -> None:
        """
        Delete ``key``. Removing a missing key is a no-op.
        """

    def remove_many(self, *keys: str) -> None:
        for key in keys:
            self.remove(key)
