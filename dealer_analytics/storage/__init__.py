"""
dealer_analytics/storage package marker.
"""

from dealer_analytics.storage.base import (
    AUTH_TOKEN_KEY,
    LATEST_DEAL_KEY,
    USERNAME_KEY,
    ClientStorage,
)
from dealer_analytics.storage.memory import InMemoryStorage

__all__ = [
    "AUTH_TOKEN_KEY",
    "LATEST_DEAL_KEY",
    "USERNAME_KEY",
    "ClientStorage",
    "InMemoryStorage",
]
