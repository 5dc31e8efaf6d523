"""
dealer_analytics/schemas/uploads.py

Response schemas for storage status and file ingestion endpoints.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class StorageStatus(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    configured: bool
    message: str = ""


class RawFileUploadResult(BaseModel):
    """
    Outcome of POST /api/s3/upload.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    success: bool
    message: str = ""
    key: str | None = Field(default=None, validation_alias=AliasChoices("key", "s3_key"))
    filename: str | None = None


class DealSummaryUploadResult(BaseModel):
    """
    Outcome of POST /api/deal-summary/process.

    ``newly_added_row_index`` is the zero-based position of the appended row in
    ``month_sheet``; it is null when the server did not append (for example on
    a rejected duplicate).
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    success: bool = True
    deal_number: str | None = None
    month_sheet: str | None = None
    newly_added_row_index: int | None = Field(default=None, ge=0)
    duplicate_warning: bool = False
    kpis_updated: bool = False
    message: str = ""

    @property
    def row_position(self) -> int | None:
        """
        One-based row number for display.
        """

        if self.newly_added_row_index is None:
            return None
        return self.newly_added_row_index + 1


class LatestDealPointer(BaseModel):
    """
    Pointer to the most recently appended master-sheet row.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    month: str
    row_index: int = Field(..., ge=0)
    deal_number: str | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_upload(cls, result: DealSummaryUploadResult) -> "LatestDealPointer | None":
        if not result.success or result.newly_added_row_index is None or not result.month_sheet:
            return None
        return cls(
            month=result.month_sheet,
            row_index=result.newly_added_row_index,
            deal_number=result.deal_number,
        )
