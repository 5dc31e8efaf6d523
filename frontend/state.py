"""Session-scoped wiring between Streamlit reruns and the client library.

Streamlit re-executes the script on every interaction, so the API client and
the view controllers are kept in ``st.session_state``. Client storage lives
there too, so credentials never cross browser sessions.
"""

from __future__ import annotations

import streamlit as st

from dealer_analytics.client import DealershipAPIClient
from dealer_analytics.services import (
    DashboardController,
    MasterSheetController,
    UploadWorkflow,
    deal_summary_workflow,
    raw_file_workflow,
    spreadsheet_workflow,
)
from dealer_analytics.session import LogoutReason, SessionStore
from dealer_analytics.storage import InMemoryStorage

PAGE_DASHBOARD = "Dashboard"
PAGE_UPLOAD = "Upload"
PAGE_MASTER_SHEET = "Master Sheet"
PAGES = (PAGE_DASHBOARD, PAGE_UPLOAD, PAGE_MASTER_SHEET)

SESSION_EXPIRED_NOTICE = "Your session has expired. Please sign in again."

# ── Session state defaults ─────────────────────────────────────────────────
_STATE_DEFAULTS: dict = {
    "page": PAGE_DASHBOARD,
    "logout_notice": None,
    "dashboard": None,
    "master_sheet": None,
    "deal_summary_upload": None,
    "raw_file_upload": None,
    "spreadsheet_upload": None,
}


def init_state() -> None:
    for key, value in _STATE_DEFAULTS.items():
        if key not in st.session_state:
            st.session_state[key] = value


def _storage() -> InMemoryStorage:
    return InMemoryStorage(st.session_state.setdefault("client_storage", {}))


def _reset_views() -> None:
    for key in ("dashboard", "master_sheet", "deal_summary_upload", "raw_file_upload", "spreadsheet_upload"):
        st.session_state[key] = None


def _on_logout(reason: LogoutReason) -> None:
    _reset_views()
    st.session_state.page = PAGE_DASHBOARD
    st.session_state.logout_notice = SESSION_EXPIRED_NOTICE if reason == "unauthorized" else None


def client() -> DealershipAPIClient:
    """
    Return this browser session's API client, creating it on first use.
    """

    if "api_client" not in st.session_state:
        session_store = SessionStore(_storage())
        session_store.subscribe(_on_logout)
        st.session_state.api_client = DealershipAPIClient(session_store=session_store)
    return st.session_state.api_client


def session_store() -> SessionStore:
    return client().session_store


def dashboard() -> DashboardController:
    if st.session_state.dashboard is None:
        controller = DashboardController(client())
        # Stored first so a logout during the load can reset it.
        st.session_state.dashboard = controller
        controller.load()
        return controller
    return st.session_state.dashboard


def master_sheet() -> MasterSheetController:
    if st.session_state.master_sheet is None:
        controller = MasterSheetController(client(), session_store())
        st.session_state.master_sheet = controller
        controller.load(preferred=st.session_state.pop("master_sheet_preferred", None))
        return controller
    return st.session_state.master_sheet


def deal_summary_upload() -> UploadWorkflow:
    if st.session_state.deal_summary_upload is None:
        st.session_state.deal_summary_upload = deal_summary_workflow(
            client(),
            session_store(),
            on_pointer=lambda _pointer: _invalidate_read_views(),
        )
    return st.session_state.deal_summary_upload


def raw_file_upload() -> UploadWorkflow:
    if st.session_state.raw_file_upload is None:
        st.session_state.raw_file_upload = raw_file_workflow(client())
    return st.session_state.raw_file_upload


def spreadsheet_upload() -> UploadWorkflow:
    if st.session_state.spreadsheet_upload is None:
        st.session_state.spreadsheet_upload = spreadsheet_workflow(client())
    return st.session_state.spreadsheet_upload


def _invalidate_read_views() -> None:
    # A new deal changes both the KPIs and the master sheet.
    st.session_state.dashboard = None
    st.session_state.master_sheet = None


def open_master_sheet(sheet: str | None = None) -> None:
    st.session_state.master_sheet = None
    st.session_state.master_sheet_preferred = sheet
    st.session_state.page = PAGE_MASTER_SHEET
