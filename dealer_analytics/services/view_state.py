"""
dealer_analytics/services/view_state.py

Load status and stale-response guarding shared by the read-only views.
"""

from __future__ import annotations

from enum import Enum


class ViewStatus(str, Enum):
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"
    LOGGED_OUT = "logged_out"


class RequestSequencer:
    """
    Hands out increasing tickets so only the newest fetch may publish its result.

    A response that arrives after a newer request was issued is dropped
    instead of overwriting the current selection.

    Streamlit runs one script pass per session at a time and every fetch is
    synchronous, so a widget change never overlaps a fetch in the app itself.
    A ticket goes stale only when a selection changes from inside an
    in-flight fetch, such as a hook the client calls before returning.
    """

    def __init__(self) -> None:
        self._latest = 0

    def issue(self) -> int:
        self._latest += 1
        return self._latest

    def is_current(self, ticket: int) -> bool:
        return ticket == self._latest
