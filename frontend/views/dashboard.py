"""KPI dashboard: month selection, metric cards, charts and salesperson ranking."""

from __future__ import annotations

import streamlit as st

from dealer_analytics.formatters import format_currency
from dealer_analytics.services.dashboard_service import (
    COMPOSITION_SECTION,
    KPI_CARDS,
    PAYMENT_SECTION,
    RANKING_METRIC_LABELS,
    RANKING_METRICS,
    VOLUME_SECTION,
    DashboardController,
    payment_mix_frame,
    profitability_frame,
    salesperson_frame,
    top_models_frame,
    vehicle_type_frame,
)
from dealer_analytics.services.view_state import ViewStatus
from frontend import state

_CARDS_PER_ROW = 3


def _render_selectors(controller: DashboardController) -> None:
    year_col, month_col, refresh_col = st.columns([2, 2, 1])
    with year_col:
        if controller.available_years:
            year = st.selectbox(
                "Year",
                controller.available_years,
                index=controller.available_years.index(controller.selected_year)
                if controller.selected_year in controller.available_years
                else 0,
            )
            if year != controller.selected_year:
                controller.select_year(year)
                st.rerun()
    with month_col:
        if controller.available_months:
            month = st.selectbox(
                "Month",
                controller.available_months,
                index=controller.available_months.index(controller.selected_month)
                if controller.selected_month in controller.available_months
                else 0,
            )
            if month != controller.selected_month:
                controller.select_month(month)
                st.rerun()
    with refresh_col:
        st.write("")
        if st.button("Refresh", use_container_width=True):
            controller.refresh()
            st.rerun()


def _render_display_options(controller: DashboardController) -> None:
    titles = {card_def.key: card_def.title for card_def in KPI_CARDS}
    with st.expander("Display options"):
        visible = st.multiselect(
            "Visible KPIs",
            options=list(titles),
            default=[card_def.key for card_def in KPI_CARDS if card_def.key in controller.visible_kpis],
            format_func=titles.get,
        )
        if set(visible) != controller.visible_kpis:
            controller.set_visible_kpis(visible)
        if st.button("Show all KPIs"):
            controller.show_all_kpis()
            st.rerun()


def _render_cards(controller: DashboardController) -> None:
    cards = controller.cards()
    if not cards:
        st.info("All KPI cards are hidden. Use Display options to show them.")
        return

    for section in (VOLUME_SECTION, COMPOSITION_SECTION, PAYMENT_SECTION):
        section_cards = [card for card in cards if card.section == section]
        if not section_cards:
            continue
        st.subheader(section)
        for start in range(0, len(section_cards), _CARDS_PER_ROW):
            columns = st.columns(_CARDS_PER_ROW)
            for column, card in zip(columns, section_cards[start : start + _CARDS_PER_ROW]):
                column.metric(card.title, card.value, help=card.subtitle)


def _render_charts(controller: DashboardController) -> None:
    snapshot = controller.snapshot
    if snapshot is None:
        return

    left, right = st.columns(2)
    with left:
        st.subheader("Units by Vehicle Type")
        frame = vehicle_type_frame(snapshot)
        if frame.empty:
            st.caption("No vehicle type data.")
        else:
            st.bar_chart(frame, x="vehicle_type", y="units")

        st.subheader("Payment Mix (%)")
        st.bar_chart(payment_mix_frame(snapshot), x="payment_type", y="percent")
    with right:
        st.subheader("Top Models")
        frame = top_models_frame(snapshot)
        if frame.empty:
            st.caption("No model data.")
        else:
            st.bar_chart(frame, x="model", y="units")

        st.subheader("Profitability Per Unit")
        st.bar_chart(profitability_frame(snapshot), x="category", y="per_unit")


def _render_ranking(controller: DashboardController) -> None:
    st.subheader("Salesperson Performance")
    metric = st.selectbox(
        "Rank by",
        RANKING_METRICS,
        index=RANKING_METRICS.index(controller.ranking_metric),
        format_func=RANKING_METRIC_LABELS.get,
    )
    if metric != controller.ranking_metric:
        controller.set_ranking_metric(metric)

    ranked = controller.ranking()
    if not ranked:
        st.caption("No salesperson data for this month.")
        return

    frame = salesperson_frame(ranked, controller.ranking_metric)
    if controller.ranking_metric != "units":
        frame[controller.ranking_metric] = frame[controller.ranking_metric].map(format_currency)
    st.dataframe(
        frame.rename(columns={"name": "Salesperson", "units": "Units", **RANKING_METRIC_LABELS}),
        use_container_width=True,
        hide_index=True,
    )


def _render_insights(controller: DashboardController) -> None:
    snapshot = controller.snapshot
    if snapshot is None or not snapshot.insights.strip():
        return
    st.subheader("Insights")
    st.markdown(snapshot.insights)


def _render_trend(controller: DashboardController) -> None:
    with st.expander("Monthly trend"):
        if not st.toggle("Load all months", key="dashboard_trend"):
            return
        frame = controller.monthly_trend()
        if controller.status is ViewStatus.LOGGED_OUT:
            st.rerun()
        if frame is None:
            st.warning("Monthly trend is unavailable right now.")
            return
        if frame.empty:
            st.caption("No months to compare yet.")
            return
        st.line_chart(frame, x="month", y="total_units_sold")
        st.dataframe(frame, use_container_width=True, hide_index=True)


def render() -> None:
    st.title("KPI Dashboard")
    controller = state.dashboard()

    if controller.status is ViewStatus.LOGGED_OUT:
        st.rerun()

    if controller.status is ViewStatus.FAILED:
        st.error(controller.error_message)
        if st.button("Retry", type="primary"):
            controller.refresh()
            st.rerun()
        return

    if not controller.available_years:
        st.info("No KPI data yet. Upload a deal summary to get started.")
        return

    _render_selectors(controller)
    if controller.snapshot is None:
        st.info(f"No KPI data for {controller.selected_year}.")
        return

    st.caption(f"Showing {controller.selected_month} {controller.selected_year}")
    _render_display_options(controller)
    _render_cards(controller)
    st.divider()
    _render_charts(controller)
    st.divider()
    _render_ranking(controller)
    _render_insights(controller)
    _render_trend(controller)
