"""Master salesbook viewer with latest-deal highlighting and export."""

from __future__ import annotations

import pandas as pd
import streamlit as st

from dealer_analytics.formatters import format_cell_value
from dealer_analytics.services.master_sheet_service import MasterSheetController
from dealer_analytics.services.view_state import ViewStatus
from frontend import state

_HIGHLIGHT_STYLE = "background-color: #fff3b0; font-weight: 600"


def _styled(frame: pd.DataFrame, highlighted: set[int]):
    display = frame.apply(lambda column: column.map(format_cell_value))
    if not highlighted:
        return display

    def _row_style(row: pd.Series) -> list[str]:
        style = _HIGHLIGHT_STYLE if row.name in highlighted else ""
        return [style] * len(row)

    return display.style.apply(_row_style, axis=1)


def _render_toolbar(controller: MasterSheetController) -> None:
    sheet_col, refresh_col, download_col = st.columns([3, 1, 1])
    with sheet_col:
        sheet = st.selectbox(
            "Month sheet",
            controller.available_sheets,
            index=controller.available_sheets.index(controller.selected_sheet)
            if controller.selected_sheet in controller.available_sheets
            else 0,
        )
        if sheet != controller.selected_sheet:
            controller.select_sheet(sheet)
            st.rerun()
    with refresh_col:
        st.write("")
        if st.button("Refresh", use_container_width=True):
            controller.refresh()
            st.rerun()
    with download_col:
        st.write("")
        if st.button("Download", use_container_width=True):
            url = controller.download_url()
            if controller.status is ViewStatus.LOGGED_OUT:
                st.rerun()
            if url is not None:
                st.session_state.master_sheet_download_url = url
            else:
                st.session_state.pop("master_sheet_download_url", None)

    url = st.session_state.get("master_sheet_download_url")
    if url:
        st.link_button("Open download link", url)
    elif controller.error_message and controller.status is ViewStatus.READY:
        st.error(controller.error_message)


def _render_footer(controller: MasterSheetController) -> None:
    snapshot = controller.snapshot
    if snapshot is None:
        return
    summary = snapshot.summary
    stats = st.columns(3)
    stats[0].metric("Rows", f"{snapshot.total_rows:,}")
    stats[1].metric("Unique Deals", f"{summary.unique_deals:,}")
    stats[2].metric("Sheet", summary.current_sheet or snapshot.sheet_name or "-")
    if summary.location:
        st.caption(f"Stored at {summary.location}")


def render() -> None:
    st.title("Master Sheet")
    controller = state.master_sheet()

    if controller.status is ViewStatus.LOGGED_OUT:
        st.rerun()

    if controller.status is ViewStatus.FAILED:
        st.error(controller.error_message)
        if st.button("Retry", type="primary"):
            controller.refresh()
            st.rerun()
        return

    if not controller.available_sheets:
        st.info("The master sheet has no month sheets yet. Upload a deal summary to create one.")
        return

    _render_toolbar(controller)

    snapshot = controller.snapshot
    if snapshot is None or not snapshot.rows:
        st.info(f"{controller.selected_sheet} has no rows.")
        return

    highlighted = controller.highlighted_rows()
    pointer = controller.latest_deal()
    if highlighted and pointer is not None:
        label = f"deal {pointer.deal_number}" if pointer.deal_number else "the latest deal"
        caption_col, clear_col = st.columns([4, 1])
        caption_col.caption(f"Highlighted: {label} added to {pointer.month}")
        if clear_col.button("Clear highlight", use_container_width=True):
            controller.clear_highlight()
            st.rerun()

    st.dataframe(_styled(snapshot.to_dataframe(), highlighted), use_container_width=True)
    _render_footer(controller)
