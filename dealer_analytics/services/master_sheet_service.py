"""
dealer_analytics/services/master_sheet_service.py

Master salesbook viewer model: sheet selection, snapshot loading, newly added
row highlighting and export links.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from dealer_analytics.client.api import DealershipAPIClient
from dealer_analytics.client.errors import DealerAPIError, Unauthorized
from dealer_analytics.schemas.master_sheet import MasterSheetSnapshot
from dealer_analytics.schemas.uploads import LatestDealPointer
from dealer_analytics.services.view_state import RequestSequencer, ViewStatus
from dealer_analytics.session import SessionStore

logger = logging.getLogger(__name__)

DEAL_NUMBER_COLUMNS: tuple[str, ...] = ("deal #", "deal number", "deal no", "deal_number", "deal no.")

DOWNLOAD_FAILED_MESSAGE = "Failed to generate download link"


def find_deal_number_column(columns: Sequence[str]) -> str | None:
    """
    Return the sheet column holding deal numbers, matched case-insensitively.
    """

    by_normalized = {column.strip().lower(): column for column in columns}
    for candidate in DEAL_NUMBER_COLUMNS:
        if candidate in by_normalized:
            return by_normalized[candidate]
    return None


def _same_deal(cell: object, deal_number: str) -> bool:
    if cell is None:
        return False
    if isinstance(cell, float) and cell.is_integer():
        cell = int(cell)
    return str(cell).strip() == deal_number.strip()


def highlighted_rows(snapshot: MasterSheetSnapshot, pointer: LatestDealPointer | None) -> set[int]:
    """
    Row indices to flag as the most recently appended deal.

    Only the sheet named by the pointer is ever flagged. When the sheet has a
    deal number column and the pointer carries a deal number the match is by
    deal number, which survives re-sorting. Without a deal number column, or
    when no row carries the deal number, the pointer's positional row index is
    used as-is.
    """

    if pointer is None or snapshot.sheet_name is None or pointer.month != snapshot.sheet_name:
        return set()

    deal_column = find_deal_number_column(snapshot.columns)
    if deal_column is not None and pointer.deal_number:
        matches = {
            index
            for index, row in enumerate(snapshot.rows)
            if _same_deal(row.get(deal_column), pointer.deal_number)
        }
        if matches:
            return matches

    if 0 <= pointer.row_index < len(snapshot.rows):
        return {pointer.row_index}
    return set()


class MasterSheetController:
    """
    Loads month sheets on demand; every refresh is a fresh round trip.
    """

    def __init__(self, client: DealershipAPIClient, session_store: SessionStore) -> None:
        self._client = client
        self._session_store = session_store
        self._sequencer = RequestSequencer()
        self.status = ViewStatus.LOADING
        self.error_message: str | None = None
        self.available_sheets: list[str] = []
        self.selected_sheet: str | None = None
        self.snapshot: MasterSheetSnapshot | None = None

    def load(self, preferred: str | None = None) -> ViewStatus:
        """
        List sheets and open one.

        Preference order: ``preferred``, the latest deal's month, the current
        selection, the first sheet.
        """

        self.status = ViewStatus.LOADING
        self.error_message = None
        try:
            sheets = self._client.list_master_sheets()
        except DealerAPIError as exc:
            return self._fail(exc)

        self.available_sheets = list(sheets)
        if not self.available_sheets:
            self.selected_sheet = None
            self.snapshot = None
            self.status = ViewStatus.READY
            return self.status

        pointer = self._session_store.latest_deal()
        for choice in (preferred, pointer.month if pointer else None, self.selected_sheet):
            if choice and choice in self.available_sheets:
                return self.select_sheet(choice)
        return self.select_sheet(self.available_sheets[0])

    def select_sheet(self, sheet: str) -> ViewStatus:
        if self.available_sheets and sheet not in self.available_sheets:
            raise ValueError(f"Sheet {sheet!r} is not available")
        self.selected_sheet = sheet
        return self.refresh()

    def refresh(self) -> ViewStatus:
        if self.selected_sheet is None:
            return self.load()

        self.status = ViewStatus.LOADING
        self.error_message = None
        sheet = self.selected_sheet
        ticket = self._sequencer.issue()
        try:
            snapshot = self._client.get_master_sheet(sheet)
        except DealerAPIError as exc:
            if not self._sequencer.is_current(ticket) and not isinstance(exc, Unauthorized):
                return self.status
            return self._fail(exc)

        if not self._sequencer.is_current(ticket):
            logger.info("Dropping stale master sheet response sheet=%s", sheet)
            return self.status

        self.snapshot = snapshot
        self.status = ViewStatus.READY
        return self.status

    def highlighted_rows(self) -> set[int]:
        if self.snapshot is None:
            return set()
        return highlighted_rows(self.snapshot, self._session_store.latest_deal())

    def latest_deal(self) -> LatestDealPointer | None:
        return self._session_store.latest_deal()

    def clear_highlight(self) -> None:
        """
        Drop the latest-deal pointer so no row stays flagged.
        """

        self._session_store.forget_latest_deal()

    def download_url(self) -> str | None:
        """
        Request a single-use export URL; None (with ``error_message`` set) on failure.
        """

        try:
            return self._client.get_master_sheet_download_url()
        except Unauthorized as exc:
            self._fail(exc)
            return None
        except DealerAPIError as exc:
            logger.warning("Master sheet download link failed error=%s", exc)
            self.error_message = DOWNLOAD_FAILED_MESSAGE
            return None

    def _fail(self, exc: DealerAPIError) -> ViewStatus:
        if isinstance(exc, Unauthorized):
            self.status = ViewStatus.LOGGED_OUT
            self.error_message = str(exc)
            self.snapshot = None
            return self.status
        logger.warning("Master sheet load failed sheet=%s error=%s", self.selected_sheet, exc)
        self.status = ViewStatus.FAILED
        self.error_message = str(exc) or "Failed to fetch master sheet data"
        return self.status
