"""
dealer_analytics/services package marker.
"""

from dealer_analytics.services.dashboard_service import (
    KPI_CARD_KEYS,
    RANKING_METRICS,
    DashboardController,
    KpiCard,
    rank_salespeople,
)
from dealer_analytics.services.master_sheet_service import MasterSheetController, highlighted_rows
from dealer_analytics.services.upload_service import (
    InvalidTransition,
    UploadState,
    UploadWorkflow,
    deal_summary_workflow,
    raw_file_workflow,
    spreadsheet_workflow,
)
from dealer_analytics.services.view_state import RequestSequencer, ViewStatus

__all__ = [
    "KPI_CARD_KEYS",
    "RANKING_METRICS",
    "DashboardController",
    "InvalidTransition",
    "KpiCard",
    "MasterSheetController",
    "RequestSequencer",
    "UploadState",
    "UploadWorkflow",
    "ViewStatus",
    "deal_summary_workflow",
    "highlighted_rows",
    "rank_salespeople",
    "raw_file_workflow",
    "spreadsheet_workflow",
]
