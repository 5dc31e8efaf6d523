"""
tests/test_dashboard_controller.py

Pytest unit tests for DashboardController and the dashboard helpers.

Coverage
--------
- Initial load picks the most recent year and its first month
- Switching year resets the month, also when the month lookup fails
- Failures, empty data and Unauthorized
- Stale responses never overwrite a newer selection
- Card visibility and ranking metric toggles
- Salesperson ranking excludes HOUSE
"""

from __future__ import annotations

import pytest

from dealer_analytics.client.errors import NetworkFailure, RequestFailed, Unauthorized
from dealer_analytics.schemas.kpi import KpiSnapshot, SalespersonPerformance
from dealer_analytics.services.dashboard_service import (
    KPI_CARD_KEYS,
    LOAD_FAILED_MESSAGE,
    DashboardController,
    payment_mix_frame,
    rank_salespeople,
    salesperson_frame,
    vehicle_type_frame,
)
from dealer_analytics.services.view_state import RequestSequencer, ViewStatus
from tests.conftest import kpi_payload, make_response


class StubClient:
    """
    In-process stand-in for DealershipAPIClient's read methods.
    """

    def __init__(self, years=None, months=None, kpis=None) -> None:
        self.years = years if years is not None else [2024, 2025]
        self.months = months or {2025: ["January", "February"], 2024: ["November", "December"]}
        self.kpis = kpis or {}
        self.kpi_calls: list[tuple[int, str]] = []
        self.before_kpis_return = None
        self.error: Exception | None = None
        self.months_error: Exception | None = None

    def list_years(self):
        if self.error is not None:
            raise self.error
        return list(self.years)

    def list_months(self, year):
        if self.months_error is not None:
            raise self.months_error
        return list(self.months.get(year, []))

    def get_kpis(self, year, month):
        self.kpi_calls.append((year, month))
        if self.error is not None:
            raise self.error
        hook, self.before_kpis_return = self.before_kpis_return, None
        if hook is not None:
            hook()
        return self.kpis.get((year, month)) or KpiSnapshot.model_validate(kpi_payload(month=month))

    def get_all_kpis(self):
        if self.error is not None:
            raise self.error
        return {"January": KpiSnapshot.model_validate(kpi_payload(month="January"))}


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


class TestLoading:
    def test_load_defaults_to_latest_year_first_month(self) -> None:
        stub = StubClient()
        controller = DashboardController(stub)

        assert controller.load() is ViewStatus.READY
        assert controller.available_years == [2025, 2024]
        assert controller.selected_year == 2025
        assert controller.selected_month == "January"
        assert controller.snapshot.month == "January"

    def test_switching_year_resets_month(self) -> None:
        stub = StubClient()
        controller = DashboardController(stub)
        controller.load()
        controller.select_month("February")

        controller.select_year(2024)

        assert controller.selected_month == "November"
        assert stub.kpi_calls[-1] == (2024, "November")

    def test_unknown_year_rejected(self) -> None:
        controller = DashboardController(StubClient())
        controller.load()
        with pytest.raises(ValueError):
            controller.select_year(1999)

    def test_unknown_month_rejected(self) -> None:
        controller = DashboardController(StubClient())
        controller.load()
        with pytest.raises(ValueError):
            controller.select_month("Smarch")

    def test_no_years_is_ready_and_empty(self) -> None:
        controller = DashboardController(StubClient(years=[]))
        assert controller.load() is ViewStatus.READY
        assert controller.snapshot is None
        assert controller.cards() == []

    def test_year_without_months(self) -> None:
        controller = DashboardController(StubClient(years=[2026], months={2026: []}))
        assert controller.load() is ViewStatus.READY
        assert controller.selected_month is None
        assert controller.snapshot is None

    def test_failure_shows_server_message(self) -> None:
        stub = StubClient()
        controller = DashboardController(stub)
        controller.load()
        stub.error = RequestFailed("No data for February 2025", status_code=404)

        assert controller.select_month("February") is ViewStatus.FAILED
        assert controller.error_message == "No data for February 2025"

    def test_failure_without_message_uses_default(self) -> None:
        stub = StubClient()
        stub.error = NetworkFailure("")
        controller = DashboardController(stub)
        controller.load()
        assert controller.error_message == LOAD_FAILED_MESSAGE

    def test_refresh_recovers(self) -> None:
        stub = StubClient()
        controller = DashboardController(stub)
        controller.load()
        stub.error = RequestFailed("down")
        controller.refresh()
        stub.error = None
        assert controller.refresh() is ViewStatus.READY
        assert controller.error_message is None

    def test_failed_year_switch_does_not_keep_previous_month(self) -> None:
        stub = StubClient()
        controller = DashboardController(stub)
        controller.load()
        controller.select_month("February")
        stub.months_error = NetworkFailure("connection reset")

        assert controller.select_year(2024) is ViewStatus.FAILED
        assert controller.selected_year == 2024
        assert controller.selected_month is None
        assert controller.available_months == []
        assert controller.snapshot is None

        stub.months_error = None
        assert controller.refresh() is ViewStatus.READY
        assert controller.selected_month == "November"
        assert stub.kpi_calls[-1] == (2024, "November")
        assert (2024, "February") not in stub.kpi_calls

    def test_unauthorized_moves_to_logged_out(self) -> None:
        stub = StubClient()
        controller = DashboardController(stub)
        controller.load()
        stub.error = Unauthorized("fetch KPIs")

        assert controller.refresh() is ViewStatus.LOGGED_OUT
        assert controller.snapshot is None

    def test_against_http_client(self, client, http) -> None:
        http.add("GET", "/api/years", make_response(200, [2025]))
        http.add("GET", "/api/months/2025", make_response(200, ["january"]))
        http.add("GET", "/api/kpis/2025/january", make_response(200, kpi_payload()))

        controller = DashboardController(client)

        assert controller.load() is ViewStatus.READY
        assert [call.path for call in http.calls] == ["/api/years", "/api/months/2025", "/api/kpis/2025/january"]
        assert controller.snapshot.total_units_sold == 42


# ---------------------------------------------------------------------------
# Stale responses
# ---------------------------------------------------------------------------


class TestStaleResponses:
    def test_sequencer(self) -> None:
        sequencer = RequestSequencer()
        first = sequencer.issue()
        second = sequencer.issue()
        assert not sequencer.is_current(first)
        assert sequencer.is_current(second)

    def test_late_response_does_not_overwrite_newer_selection(self) -> None:
        stub = StubClient()
        controller = DashboardController(stub)
        controller.load()

        # While January is in flight the user switches to February.
        stub.before_kpis_return = lambda: controller.select_month("February")
        controller.select_month("January")

        assert controller.selected_month == "February"
        assert controller.snapshot.month == "February"
        assert controller.status is ViewStatus.READY

    def test_late_failure_is_ignored(self) -> None:
        stub = StubClient()
        controller = DashboardController(stub)
        controller.load()

        def _switch_then_fail() -> None:
            controller.select_month("February")
            stub.error = RequestFailed("late failure")

        stub.before_kpis_return = _switch_then_fail
        stub_get = stub.get_kpis

        def _get_kpis(year, month):
            snapshot = stub_get(year, month)
            if stub.error is not None:
                error, stub.error = stub.error, None
                raise error
            return snapshot

        stub.get_kpis = _get_kpis
        controller.select_month("January")

        assert controller.status is ViewStatus.READY
        assert controller.snapshot.month == "February"


# ---------------------------------------------------------------------------
# Local toggles and derived data
# ---------------------------------------------------------------------------


class TestToggles:
    @pytest.fixture()
    def controller(self) -> DashboardController:
        controller = DashboardController(StubClient())
        controller.load()
        return controller

    def test_all_cards_visible_by_default(self, controller) -> None:
        assert [card.key for card in controller.cards()] == list(KPI_CARD_KEYS)

    def test_toggle_hides_and_shows(self, controller) -> None:
        assert controller.toggle_kpi("fi_penetration_rate") is False
        assert "fi_penetration_rate" not in [card.key for card in controller.cards()]
        assert controller.toggle_kpi("fi_penetration_rate") is True

    def test_toggle_does_not_touch_snapshot(self, controller) -> None:
        before = controller.snapshot
        controller.set_visible_kpis([])
        assert controller.snapshot is before
        assert controller.cards() == []
        controller.show_all_kpis()
        assert len(controller.cards()) == len(KPI_CARD_KEYS)

    def test_unknown_card_rejected(self, controller) -> None:
        with pytest.raises(ValueError):
            controller.toggle_kpi("nope")
        with pytest.raises(ValueError):
            controller.set_visible_kpis(["nope"])

    def test_card_values_are_formatted(self, controller) -> None:
        values = {card.key: card.value for card in controller.cards()}
        assert values["total_units_sold"] == "42"
        assert values["avg_gross_per_unit"] == "$2,346"
        assert values["fi_penetration_rate"] == "62.0%"
        assert values["new_used_ratio"] == "1.50"
        assert values["finance_share"] == "70.0%"

    def test_ranking_metric(self, controller) -> None:
        assert [person.name for person in controller.ranking()] == ["Dana", "Eli"]
        controller.set_ranking_metric("avg_gross")
        assert [person.name for person in controller.ranking()] == ["Eli", "Dana"]
        with pytest.raises(ValueError):
            controller.set_ranking_metric("bogus")  # type: ignore[arg-type]


class TestHelpers:
    def test_rank_excludes_house_and_missing_values(self) -> None:
        people = [
            SalespersonPerformance(name="house", units=50),
            SalespersonPerformance(name="Ann", units=3, avg_commission=400.0),
            SalespersonPerformance(name="Bo", units=5),
            SalespersonPerformance(name="Cy", units=3, avg_commission=400.0),
        ]
        assert [p.name for p in rank_salespeople(people, "units")] == ["Bo", "Ann", "Cy"]
        assert [p.name for p in rank_salespeople(people, "avg_commission")] == ["Ann", "Cy"]

    def test_frames(self) -> None:
        snapshot = KpiSnapshot.model_validate(kpi_payload())
        assert vehicle_type_frame(snapshot)["units"].tolist() == [20, 15, 7]
        assert payment_mix_frame(snapshot)["percent"].tolist() == pytest.approx([20.0, 70.0, 10.0])
        frame = salesperson_frame(rank_salespeople(snapshot.top_salespeople, "avg_gross"), "avg_gross")
        assert list(frame.columns) == ["name", "units", "avg_gross"]

    def test_empty_snapshot_frames(self) -> None:
        snapshot = KpiSnapshot()
        assert vehicle_type_frame(snapshot).empty
