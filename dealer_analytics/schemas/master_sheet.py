"""
dealer_analytics/schemas/master_sheet.py

Master salesbook read contracts.
"""

from __future__ import annotations

from typing import Any

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field


class MasterSheetList(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    monthly_sheets: list[str] = Field(default_factory=list)


class MasterSheetSummary(BaseModel):
    """
    Server metadata describing where the sheet lives and how many deals it holds.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    total_rows: int = Field(0, ge=0)
    unique_deals: int = Field(0, ge=0)
    current_sheet: str | None = None
    location: str | None = None
    bucket: str | None = None
    s3_key: str | None = None


class MasterSheetSnapshot(BaseModel):
    """
    Tabular projection of one month sheet in server row order.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    sheet_name: str | None = None
    columns: list[str] = Field(default_factory=list)
    rows: list[dict[str, Any]] = Field(default_factory=list)
    total_rows: int = Field(0, ge=0)
    summary: MasterSheetSummary = Field(default_factory=MasterSheetSummary)
    newly_added_rows: list[int] = Field(default_factory=list)

    def to_dataframe(self) -> pd.DataFrame:
        """
        Build a DataFrame with columns in server order; cells missing from a row are None.
        """

        records = [[row.get(column) for column in self.columns] for row in self.rows]
        return pd.DataFrame(records, columns=list(self.columns))


class DownloadLink(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    download_url: str = Field(..., min_length=1)
