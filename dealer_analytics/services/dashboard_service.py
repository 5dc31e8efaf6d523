"""
dealer_analytics/services/dashboard_service.py

KPI dashboard view model.

Holds the year/month selection, the fetched snapshot and the purely local
display toggles (visible cards, ranking metric). The snapshot itself is never
modified; cards and chart frames are derived from it on demand.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Literal, get_args

import pandas as pd

from dealer_analytics.client.api import DealershipAPIClient
from dealer_analytics.client.errors import DealerAPIError, Unauthorized
from dealer_analytics.formatters import (
    format_currency,
    format_number,
    format_percentage,
    format_ratio,
)
from dealer_analytics.schemas.kpi import KpiSnapshot, SalespersonPerformance
from dealer_analytics.services.view_state import RequestSequencer, ViewStatus

logger = logging.getLogger(__name__)

HOUSE_ACCOUNT = "HOUSE"

RankingMetric = Literal["units", "avg_gross", "avg_deal_gross", "avg_total_gross", "avg_commission"]
RANKING_METRICS: tuple[RankingMetric, ...] = get_args(RankingMetric)

RANKING_METRIC_LABELS: dict[str, str] = {
    "units": "Units Sold",
    "avg_gross": "Avg Gross",
    "avg_deal_gross": "Avg Deal Gross",
    "avg_total_gross": "Avg Total Gross",
    "avg_commission": "Avg Commission",
}

LOAD_FAILED_MESSAGE = "Failed to load KPI data. Please make sure the backend is running."


@dataclass(frozen=True)
class KpiCardSpec:
    key: str
    title: str
    subtitle: str
    section: str
    value: Callable[[KpiSnapshot], str]


@dataclass(frozen=True)
class KpiCard:
    key: str
    title: str
    value: str
    subtitle: str
    section: str


VOLUME_SECTION = "Deal Volume & Efficiency"
COMPOSITION_SECTION = "Deal Composition & Profitability"
PAYMENT_SECTION = "Payment Type Distribution"

KPI_CARDS: tuple[KpiCardSpec, ...] = (
    KpiCardSpec(
        "total_units_sold",
        "Total Units Sold",
        "Total closed deals this month",
        VOLUME_SECTION,
        lambda s: f"{s.total_units_sold:,}",
    ),
    KpiCardSpec(
        "avg_units_per_salesperson",
        "Avg Units Per Salesperson",
        "Average productivity",
        VOLUME_SECTION,
        lambda s: format_number(s.avg_units_per_salesperson),
    ),
    KpiCardSpec(
        "avg_gross_per_unit",
        "Avg Gross Per Unit",
        "Average deal profitability",
        VOLUME_SECTION,
        lambda s: format_currency(s.avg_gross_per_unit),
    ),
    KpiCardSpec(
        "avg_fi_per_unit",
        "Avg F&I Per Unit",
        "Average F&I gross per deal",
        VOLUME_SECTION,
        lambda s: format_currency(s.avg_fi_per_unit),
    ),
    KpiCardSpec(
        "avg_commission_per_unit",
        "Avg Commission Per Unit",
        "Average salesperson commission",
        VOLUME_SECTION,
        lambda s: format_currency(s.avg_commission_per_unit),
    ),
    KpiCardSpec(
        "fi_penetration_rate",
        "F&I Penetration Rate",
        "Deals with F&I products",
        VOLUME_SECTION,
        lambda s: format_percentage(s.fi_penetration_rate),
    ),
    KpiCardSpec(
        "new_used_ratio",
        "New vs Used Ratio",
        "New to used vehicle ratio",
        COMPOSITION_SECTION,
        lambda s: format_ratio(s.new_used_ratio),
    ),
    KpiCardSpec(
        "front_back_ratio",
        "Front vs Back Ratio",
        "Front-end to back-end gross",
        COMPOSITION_SECTION,
        lambda s: format_ratio(s.front_back_ratio),
    ),
    KpiCardSpec(
        "commission_as_pct_of_gross",
        "Commission % of Gross",
        "Commissions as % of total gross",
        COMPOSITION_SECTION,
        lambda s: format_percentage(s.commission_as_pct_of_gross),
    ),
    KpiCardSpec(
        "fi_as_pct_of_total_gross",
        "F&I % of Total Gross",
        "F&I contribution to gross",
        COMPOSITION_SECTION,
        lambda s: format_percentage(s.fi_as_pct_of_total_gross),
    ),
    KpiCardSpec(
        "lease_share",
        "Lease",
        "Lease deals",
        PAYMENT_SECTION,
        lambda s: format_percentage(s.lease_finance_cash_ratio.lease),
    ),
    KpiCardSpec(
        "finance_share",
        "Finance",
        "Finance deals",
        PAYMENT_SECTION,
        lambda s: format_percentage(s.lease_finance_cash_ratio.finance),
    ),
    KpiCardSpec(
        "cash_share",
        "Cash",
        "Cash deals",
        PAYMENT_SECTION,
        lambda s: format_percentage(s.lease_finance_cash_ratio.cash),
    ),
)

KPI_CARD_KEYS: tuple[str, ...] = tuple(card_def.key for card_def in KPI_CARDS)


def rank_salespeople(
    people: Iterable[SalespersonPerformance],
    metric: RankingMetric = "units",
) -> list[SalespersonPerformance]:
    """
    Sort salespeople by ``metric``, best first.

    The HOUSE account and people the server sent no value for are left out.
    Ties fall back to units sold, then name.
    """

    if metric not in RANKING_METRICS:
        raise ValueError(f"Unknown ranking metric: {metric}")

    ranked = [
        person
        for person in people
        if person.name.strip().upper() != HOUSE_ACCOUNT and getattr(person, metric) is not None
    ]
    ranked.sort(key=lambda person: (-getattr(person, metric), -person.units, person.name))
    return ranked


# ---------------------------------------------------------------------------
# Chart frames
# ---------------------------------------------------------------------------


def vehicle_type_frame(snapshot: KpiSnapshot) -> pd.DataFrame:
    return pd.DataFrame(
        [{"vehicle_type": name, "units": units} for name, units in snapshot.units_by_vehicle_type.items()],
        columns=["vehicle_type", "units"],
    )


def top_models_frame(snapshot: KpiSnapshot) -> pd.DataFrame:
    return pd.DataFrame(
        [{"model": entry.model, "units": entry.units} for entry in snapshot.top_models],
        columns=["model", "units"],
    )


def payment_mix_frame(snapshot: KpiSnapshot) -> pd.DataFrame:
    """
    Lease / finance / cash shares as percentages (0-100).
    """

    mix = snapshot.lease_finance_cash_ratio
    return pd.DataFrame(
        [
            {"payment_type": "Lease", "percent": mix.lease * 100},
            {"payment_type": "Finance", "percent": mix.finance * 100},
            {"payment_type": "Cash", "percent": mix.cash * 100},
        ]
    )


def profitability_frame(snapshot: KpiSnapshot) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {"category": "Total Gross", "per_unit": snapshot.avg_gross_per_unit},
            {"category": "F&I", "per_unit": snapshot.avg_fi_per_unit},
            {"category": "Commission", "per_unit": snapshot.avg_commission_per_unit},
        ]
    )


def salesperson_frame(people: Iterable[SalespersonPerformance], metric: RankingMetric) -> pd.DataFrame:
    rows = [{"name": person.name, "units": person.units, metric: getattr(person, metric)} for person in people]
    columns = ["name", "units"] if metric == "units" else ["name", "units", metric]
    return pd.DataFrame(rows, columns=columns)


def monthly_trend_frame(snapshots: dict[str, KpiSnapshot]) -> pd.DataFrame:
    """
    One row per month in the order the server returned them.
    """

    return pd.DataFrame(
        [
            {
                "month": month,
                "total_units_sold": snapshot.total_units_sold,
                "avg_gross_per_unit": snapshot.avg_gross_per_unit,
                "avg_fi_per_unit": snapshot.avg_fi_per_unit,
                "fi_penetration_rate": snapshot.fi_penetration_rate,
            }
            for month, snapshot in snapshots.items()
        ],
        columns=["month", "total_units_sold", "avg_gross_per_unit", "avg_fi_per_unit", "fi_penetration_rate"],
    )


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------


class DashboardController:
    """
    Year/month selection and KPI snapshot loading for the dashboard view.
    """

    def __init__(self, client: DealershipAPIClient) -> None:
        self._client = client
        self._sequencer = RequestSequencer()
        self.status = ViewStatus.LOADING
        self.error_message: str | None = None
        self.available_years: list[int] = []
        self.available_months: list[str] = []
        self.selected_year: int | None = None
        self.selected_month: str | None = None
        self.snapshot: KpiSnapshot | None = None
        self.visible_kpis: set[str] = set(KPI_CARD_KEYS)
        self.ranking_metric: RankingMetric = "units"

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> ViewStatus:
        """
        Discover years, default to the most recent one and load its first month.
        """

        self._begin_loading()
        try:
            years = self._client.list_years()
        except DealerAPIError as exc:
            return self._fail(exc)

        self.available_years = sorted(set(years), reverse=True)
        if not self.available_years:
            self.selected_year = None
            self.available_months = []
            self.selected_month = None
            self.snapshot = None
            self.status = ViewStatus.READY
            return self.status

        return self.select_year(self.available_years[0])

    def select_year(self, year: int) -> ViewStatus:
        """
        Switch year; the month always resets to the first month of the new year.
        """

        if self.available_years and year not in self.available_years:
            raise ValueError(f"Year {year} is not available")

        self.selected_year = year
        # Month and snapshot belong to the previous year until the lookup succeeds.
        self.available_months = []
        self.selected_month = None
        self.snapshot = None
        self._begin_loading()
        ticket = self._sequencer.issue()
        try:
            months = self._client.list_months(year)
        except DealerAPIError as exc:
            return self._fail(exc, ticket)
        if not self._sequencer.is_current(ticket):
            return self.status

        self.available_months = list(months)
        self.selected_month = self.available_months[0] if self.available_months else None
        if self.selected_month is None:
            self.status = ViewStatus.READY
            return self.status
        return self._load_snapshot()

    def select_month(self, month: str) -> ViewStatus:
        if month not in self.available_months:
            raise ValueError(f"Month {month!r} is not available for {self.selected_year}")
        self.selected_month = month
        self._begin_loading()
        return self._load_snapshot()

    def refresh(self) -> ViewStatus:
        """
        Manual retry of whatever is currently selected.
        """

        if self.selected_year is None:
            return self.load()
        if self.selected_month is None:
            return self.select_year(self.selected_year)
        self._begin_loading()
        return self._load_snapshot()

    def monthly_trend(self) -> pd.DataFrame | None:
        """
        Fetch every month's snapshot for the trend section.

        Returns None when the fetch fails; Unauthorized moves the view to
        LOGGED_OUT.
        """

        try:
            snapshots = self._client.get_all_kpis()
        except Unauthorized as exc:
            self._fail(exc)
            return None
        except DealerAPIError as exc:
            logger.warning("Monthly trend unavailable error=%s", exc)
            return None
        return monthly_trend_frame(snapshots)

    def _load_snapshot(self) -> ViewStatus:
        year, month = self.selected_year, self.selected_month
        if year is None or month is None:
            raise RuntimeError("A year and month must be selected before loading KPIs")

        ticket = self._sequencer.issue()
        try:
            snapshot = self._client.get_kpis(year, month)
        except DealerAPIError as exc:
            return self._fail(exc, ticket)

        if not self._sequencer.is_current(ticket):
            logger.info("Dropping stale KPI response year=%s month=%s", year, month)
            return self.status

        self.snapshot = snapshot
        self.error_message = None
        self.status = ViewStatus.READY
        return self.status

    def _begin_loading(self) -> None:
        self.status = ViewStatus.LOADING
        self.error_message = None

    def _fail(self, exc: DealerAPIError, ticket: int | None = None) -> ViewStatus:
        if ticket is not None and not self._sequencer.is_current(ticket) and not isinstance(exc, Unauthorized):
            return self.status
        if isinstance(exc, Unauthorized):
            self.status = ViewStatus.LOGGED_OUT
            self.error_message = str(exc)
            self.snapshot = None
            return self.status
        logger.warning(
            "Dashboard load failed year=%s month=%s error=%s",
            self.selected_year,
            self.selected_month,
            exc,
        )
        self.status = ViewStatus.FAILED
        self.error_message = str(exc) or LOAD_FAILED_MESSAGE
        return self.status

    # ------------------------------------------------------------------
    # Local display toggles
    # ------------------------------------------------------------------

    def toggle_kpi(self, key: str) -> bool:
        """
        Flip visibility of one card and return its new visibility.
        """

        if key not in KPI_CARD_KEYS:
            raise ValueError(f"Unknown KPI card: {key}")
        if key in self.visible_kpis:
            self.visible_kpis.discard(key)
            return False
        self.visible_kpis.add(key)
        return True

    def set_visible_kpis(self, keys: Iterable[str]) -> None:
        requested = set(keys)
        unknown = requested - set(KPI_CARD_KEYS)
        if unknown:
            raise ValueError(f"Unknown KPI cards: {sorted(unknown)}")
        self.visible_kpis = requested

    def show_all_kpis(self) -> None:
        self.visible_kpis = set(KPI_CARD_KEYS)

    def set_ranking_metric(self, metric: RankingMetric) -> None:
        if metric not in RANKING_METRICS:
            raise ValueError(f"Unknown ranking metric: {metric}")
        self.ranking_metric = metric

    # ------------------------------------------------------------------
    # Derived display data
    # ------------------------------------------------------------------

    def cards(self) -> list[KpiCard]:
        """
        Formatted cards for the visible keys, in dashboard order.
        """

        if self.snapshot is None:
            return []
        snapshot = self.snapshot
        return [
            KpiCard(
                key=card_def.key,
                title=card_def.title,
                value=card_def.value(snapshot),
                subtitle=card_def.subtitle,
                section=card_def.section,
            )
            for card_def in KPI_CARDS
            if card_def.key in self.visible_kpis
        ]

    def ranking(self) -> list[SalespersonPerformance]:
        if self.snapshot is None:
            return []
        return rank_salespeople(self.snapshot.top_salespeople, self.ranking_metric)
