"""Sign-in form shown whenever no credential is stored."""

from __future__ import annotations

import streamlit as st

from dealer_analytics.client.errors import AuthError
from frontend import state


def render() -> None:
    _, center, _ = st.columns([1, 2, 1])
    with center:
        st.title("Dealership Analytics")
        st.caption("Sign in to view KPIs and manage the master salesbook")

        notice = st.session_state.logout_notice
        if notice:
            st.warning(notice)

        with st.form("login", clear_on_submit=False):
            username = st.text_input("Username")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Sign In", type="primary", use_container_width=True)

        if not submitted:
            return

        with st.spinner("Signing in…"):
            try:
                state.client().login(username, password)
            except AuthError as exc:
                st.error(str(exc))
                return

        st.session_state.logout_notice = None
        st.rerun()
