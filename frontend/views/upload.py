"""Ingestion views: deal summaries, raw spreadsheets and storage status."""

from __future__ import annotations

from typing import Any

import streamlit as st

from dealer_analytics.client.errors import DealerAPIError, Unauthorized
from dealer_analytics.formatters import format_file_size
from dealer_analytics.schemas.uploads import DealSummaryUploadResult, RawFileUploadResult
from dealer_analytics.services.upload_service import UploadState, UploadWorkflow
from frontend import state


def _uploader_key(name: str) -> str:
    generation = st.session_state.setdefault(f"{name}_generation", 0)
    return f"{name}_uploader_{generation}"


def _clear_uploader(name: str) -> None:
    st.session_state[f"{name}_generation"] = st.session_state.get(f"{name}_generation", 0) + 1
    st.session_state.pop(f"{name}_seen", None)


def _select_from_widget(name: str, workflow: UploadWorkflow, uploaded: Any) -> None:
    """
    Feed a newly picked file into the workflow exactly once per pick.
    """

    if uploaded is None:
        if workflow.state in {UploadState.ACCEPTED, UploadState.REJECTED}:
            workflow.reset()
        st.session_state.pop(f"{name}_seen", None)
        return

    marker = (uploaded.name, uploaded.size)
    if st.session_state.get(f"{name}_seen") == marker:
        return
    st.session_state[f"{name}_seen"] = marker
    workflow.select(uploaded.name, uploaded.getvalue(), uploaded.type)


def _render_candidate(workflow: UploadWorkflow) -> None:
    candidate = workflow.candidate
    if workflow.state is UploadState.REJECTED:
        st.error(workflow.error_message)
    elif candidate is not None and workflow.state in {UploadState.ACCEPTED, UploadState.FAILED}:
        st.caption(f"{candidate.filename} · {format_file_size(candidate.size_bytes)}")
    if workflow.state is UploadState.FAILED:
        st.error(workflow.error_message)


def _submit(workflow: UploadWorkflow, label: str) -> Any:
    if not st.button(label, type="primary", disabled=not workflow.can_upload):
        return None
    with st.spinner("Uploading…"):
        try:
            return workflow.upload()
        except Unauthorized:
            st.rerun()


# ── Deal summary ───────────────────────────────────────────────────────────
def _render_deal_summary_result(workflow: UploadWorkflow, result: DealSummaryUploadResult) -> None:
    st.success(result.message or "Deal summary processed successfully")
    if result.duplicate_warning:
        st.warning(f"Deal {result.deal_number} already exists in the master sheet.")

    details = st.columns(4)
    details[0].metric("Deal #", result.deal_number or "-")
    details[1].metric("Month Sheet", result.month_sheet or "-")
    details[2].metric("Row", result.row_position if result.row_position is not None else "-")
    details[3].metric("KPIs Updated", "Yes" if result.kpis_updated else "No")

    view_col, again_col = st.columns(2)
    if result.month_sheet and view_col.button("View in Master Sheet", use_container_width=True):
        state.open_master_sheet(result.month_sheet)
        st.rerun()
    if again_col.button("Upload Another", use_container_width=True):
        workflow.reset()
        _clear_uploader("deal_summary")
        st.rerun()


def _render_deal_summary() -> None:
    workflow = state.deal_summary_upload()
    st.subheader("Deal Summary")
    st.caption("Append one deal to the master salesbook and refresh the KPIs.")

    if workflow.state is UploadState.SUCCEEDED and isinstance(workflow.result, DealSummaryUploadResult):
        _render_deal_summary_result(workflow, workflow.result)
        return

    uploaded = st.file_uploader(
        "Deal summary workbook",
        type=sorted(ext.lstrip(".") for ext in workflow.policy.allowed_extensions),
        key=_uploader_key("deal_summary"),
    )
    _select_from_widget("deal_summary", workflow, uploaded)
    _render_candidate(workflow)
    if _submit(workflow, "Process Deal Summary") is not None:
        st.rerun()


# ── Raw file / spreadsheet storage ─────────────────────────────────────────
def _render_storage_status() -> bool:
    try:
        status = state.client().storage_status()
    except Unauthorized:
        st.rerun()
    except DealerAPIError as exc:
        st.warning(f"Storage status unavailable: {exc}")
        return False
    if status.configured:
        st.caption(status.message or "Storage is configured")
    else:
        st.warning(status.message or "Storage is not configured")
    return status.configured


def _render_stored_result(result: RawFileUploadResult) -> None:
    if result.success:
        st.success(result.message or "File uploaded successfully")
        if result.key:
            st.code(result.key, language=None)
    else:
        st.error(result.message or "Upload failed")


def _render_store_section(name: str, title: str, workflow: UploadWorkflow, enabled: bool) -> None:
    st.subheader(title)
    uploaded = st.file_uploader(
        title,
        type=sorted(ext.lstrip(".") for ext in workflow.policy.allowed_extensions),
        key=_uploader_key(name),
        disabled=not enabled,
        label_visibility="collapsed",
    )
    _select_from_widget(name, workflow, uploaded)
    _render_candidate(workflow)
    _submit(workflow, f"Upload {title}")
    if workflow.state is UploadState.SUCCEEDED and isinstance(workflow.result, RawFileUploadResult):
        _render_stored_result(workflow.result)


def render() -> None:
    st.title("Upload")
    deal_tab, raw_tab = st.tabs(["Deal Summary", "Raw Files"])
    with deal_tab:
        _render_deal_summary()
    with raw_tab:
        configured = _render_storage_status()
        _render_store_section("raw_file", "Raw File", state.raw_file_upload(), configured)
        st.divider()
        _render_store_section("spreadsheet", "Spreadsheet", state.spreadsheet_upload(), configured)
