"""
dealer_analytics/schemas package marker.
"""

from dealer_analytics.schemas.auth import LoginRequest, LoginResponse
from dealer_analytics.schemas.kpi import KpiSnapshot, PaymentMix, SalespersonPerformance, TopModel
from dealer_analytics.schemas.master_sheet import (
    DownloadLink,
    MasterSheetList,
    MasterSheetSnapshot,
    MasterSheetSummary,
)
from dealer_analytics.schemas.uploads import (
    DealSummaryUploadResult,
    LatestDealPointer,
    RawFileUploadResult,
    StorageStatus,
)

__all__ = [
    "DealSummaryUploadResult",
    "DownloadLink",
    "KpiSnapshot",
    "LatestDealPointer",
    "LoginRequest",
    "LoginResponse",
    "MasterSheetList",
    "MasterSheetSnapshot",
    "MasterSheetSummary",
    "PaymentMix",
    "RawFileUploadResult",
    "SalespersonPerformance",
    "StorageStatus",
    "TopModel",
]
