"""Streamlit frontend for the dealership analytics client.

Routes between the login form and the signed-in views; every view reads its
state from the controllers in ``frontend.state``.
"""

from __future__ import annotations

import streamlit as st

from frontend import state
from frontend.views import dashboard, login, master_sheet, upload

_RENDERERS = {
    state.PAGE_DASHBOARD: dashboard.render,
    state.PAGE_UPLOAD: upload.render,
    state.PAGE_MASTER_SHEET: master_sheet.render,
}


def _render_sidebar() -> None:
    session = state.session_store().current()
    with st.sidebar:
        st.title("Dealership Analytics")
        if session is not None and session.username:
            st.caption(f"Signed in as {session.username}")
        st.divider()

        page = st.radio("Navigate", state.PAGES, index=state.PAGES.index(st.session_state.page))
        if page != st.session_state.page:
            st.session_state.page = page
            st.rerun()

        st.divider()
        if st.button("Sign Out", use_container_width=True):
            state.client().logout()
            st.rerun()


def main() -> None:
    # ── Page config (must be first Streamlit call) ─────────────────────────
    st.set_page_config(
        page_title="Dealership Analytics",
        page_icon="📊",
        layout="wide",
        initial_sidebar_state="expanded",
    )
    state.init_state()

    if not state.session_store().is_authenticated():
        login.render()
        return

    _render_sidebar()
    _RENDERERS[st.session_state.page]()
