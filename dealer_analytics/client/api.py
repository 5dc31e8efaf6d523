"""
dealer_analytics/client/api.py

Typed operations for the dealership analytics HTTP API.
"""

from __future__ import annotations

import logging

import requests
from pydantic import TypeAdapter

from dealer_analytics.client.base import BaseAPIClient
from dealer_analytics.client.errors import AuthError, RequestFailed, Unauthorized
from dealer_analytics.config import APIClientSettings, get_api_client_settings
from dealer_analytics.logging_utils import log_event
from dealer_analytics.schemas.auth import LoginRequest, LoginResponse
from dealer_analytics.schemas.kpi import KpiSnapshot
from dealer_analytics.schemas.master_sheet import DownloadLink, MasterSheetList, MasterSheetSnapshot
from dealer_analytics.schemas.uploads import DealSummaryUploadResult, RawFileUploadResult, StorageStatus
from dealer_analytics.session import Session, SessionStore
from dealer_analytics.validators.upload_validator import (
    UploadCandidate,
    UploadPolicy,
    deal_summary_policy,
    raw_file_policy,
)

logger = logging.getLogger(__name__)

_LOGIN = TypeAdapter(LoginResponse)
_YEARS = TypeAdapter(list[int])
_MONTHS = TypeAdapter(list[str])
_KPI = TypeAdapter(KpiSnapshot)
_ALL_KPIS = TypeAdapter(dict[str, KpiSnapshot])
_STORAGE_STATUS = TypeAdapter(StorageStatus)
_RAW_UPLOAD = TypeAdapter(RawFileUploadResult)
_DEAL_SUMMARY = TypeAdapter(DealSummaryUploadResult)
_SHEET_LIST = TypeAdapter(MasterSheetList)
_SHEET = TypeAdapter(MasterSheetSnapshot)
_DOWNLOAD = TypeAdapter(DownloadLink)

UPLOAD_FAILED_MESSAGE = "Upload failed"


def _require_year(year: int) -> int:
    if isinstance(year, bool) or not isinstance(year, int) or year <= 0:
        raise ValueError(f"year must be a positive integer, got {year!r}")
    return year


def _require_name(value: str, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field} must be a non-empty string")
    return value.strip()


class DealershipAPIClient(BaseAPIClient):
    """
    One method per remote capability of the analytics server.
    """

    def __init__(
        self,
        *,
        session_store: SessionStore,
        settings: APIClientSettings | None = None,
        http_session: requests.Session | None = None,
        deal_summary_upload_policy: UploadPolicy | None = None,
        raw_file_upload_policy: UploadPolicy | None = None,
    ) -> None:
        super().__init__(
            settings=settings or get_api_client_settings(),
            session_store=session_store,
            http_session=http_session,
        )
        self._deal_summary_policy = deal_summary_upload_policy or deal_summary_policy()
        self._raw_file_policy = raw_file_upload_policy or raw_file_policy()

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    def authenticate(self, username: str, password: str) -> LoginResponse:
        """
        Exchange credentials for a bearer token without persisting it.

        A 401 from the issuer still clears any stale stored credential.
        """

        if not username.strip() or not password:
            raise AuthError("Username and password are required")
        body = LoginRequest(username=username.strip(), password=password)
        try:
            return self._request_model(
                _LOGIN,
                method="POST",
                path="/api/auth/login",
                operation="log in",
                json_body=body.model_dump(),
                authenticated=False,
                fallback_message="Login failed",
            )
        except Unauthorized as exc:
            raise AuthError("Invalid username or password") from exc
        except RequestFailed as exc:
            raise AuthError("Login failed") from exc

    def login(self, username: str, password: str) -> Session:
        """
        Authenticate and persist the issued credential.
        """

        try:
            return self._session_store.login(self, username, password)
        except AuthError as exc:
            log_event(logger, logging.WARNING, "login_failed", username=username, reason=str(exc))
            raise

    def logout(self) -> None:
        self._session_store.logout(reason="user")

    # ------------------------------------------------------------------
    # Discovery and KPIs
    # ------------------------------------------------------------------

    def list_years(self) -> list[int]:
        return self._request_model(
            _YEARS,
            method="GET",
            path="/api/years",
            operation="fetch available years",
        )

    def list_months(self, year: int) -> list[str]:
        year = _require_year(year)
        return self._request_model(
            _MONTHS,
            method="GET",
            path=f"/api/months/{year}",
            operation="fetch available months",
        )

    def get_kpis(self, year: int, month: str) -> KpiSnapshot:
        year = _require_year(year)
        month = _require_name(month, "month")
        return self._request_model(
            _KPI,
            method="GET",
            path=f"/api/kpis/{year}/{month}",
            operation=f"fetch KPIs for {month} {year}",
        )

    def get_all_kpis(self) -> dict[str, KpiSnapshot]:
        """
        Return every month's snapshot keyed by month name.
        """

        return self._request_model(
            _ALL_KPIS,
            method="GET",
            path="/api/kpis",
            operation="fetch all KPIs",
        )

    # ------------------------------------------------------------------
    # Uploads
    # ------------------------------------------------------------------

    def storage_status(self) -> StorageStatus:
        return self._request_model(
            _STORAGE_STATUS,
            method="GET",
            path="/api/s3/status",
            operation="check storage status",
        )

    def upload_raw_file(
        self,
        candidate: UploadCandidate,
        *,
        policy: UploadPolicy | None = None,
    ) -> RawFileUploadResult:
        """
        Store an untouched spreadsheet in the durable storage backend.

        ``policy`` overrides the raw-file policy, e.g. for the spreadsheet
        upload view which has its own ceiling.
        """

        checked = (policy or self._raw_file_policy).ensure_valid(candidate)
        result = self._request_model(
            _RAW_UPLOAD,
            method="POST",
            path="/api/s3/upload",
            operation="upload file",
            files=self._multipart(checked),
            fallback_message=UPLOAD_FAILED_MESSAGE,
        )
        log_event(
            logger,
            logging.INFO,
            "raw_file_uploaded",
            filename=checked.filename,
            size_bytes=checked.size_bytes,
            key=result.key,
            success=result.success,
        )
        return result

    def process_deal_summary(
        self,
        candidate: UploadCandidate,
        *,
        policy: UploadPolicy | None = None,
    ) -> DealSummaryUploadResult:
        """
        Submit one deal summary to be appended to the master sheet.
        """

        checked = (policy or self._deal_summary_policy).ensure_valid(candidate)
        result = self._request_model(
            _DEAL_SUMMARY,
            method="POST",
            path="/api/deal-summary/process",
            operation="process deal summary",
            files=self._multipart(checked),
            fallback_message=UPLOAD_FAILED_MESSAGE,
        )
        log_event(
            logger,
            logging.INFO,
            "deal_summary_processed",
            filename=checked.filename,
            deal_number=result.deal_number,
            month_sheet=result.month_sheet,
            row_index=result.newly_added_row_index,
            duplicate_warning=result.duplicate_warning,
            kpis_updated=result.kpis_updated,
        )
        return result

    @staticmethod
    def _multipart(candidate: UploadCandidate) -> dict[str, tuple[str, bytes, str]]:
        return {"file": (candidate.filename, candidate.data, candidate.resolved_content_type())}

    # ------------------------------------------------------------------
    # Master sheet
    # ------------------------------------------------------------------

    def list_master_sheets(self) -> list[str]:
        result = self._request_model(
            _SHEET_LIST,
            method="GET",
            path="/api/master-sheet/sheets",
            operation="fetch sheets",
        )
        return list(result.monthly_sheets)

    def get_master_sheet(self, sheet: str) -> MasterSheetSnapshot:
        sheet = _require_name(sheet, "sheet")
        return self._request_model(
            _SHEET,
            method="GET",
            path="/api/master-sheet/data",
            operation="fetch master sheet data",
            params={"sheet": sheet},
        )

    def get_master_sheet_download_url(self) -> str:
        """
        Return a time-limited URL for the master sheet export.
        """

        link = self._request_model(
            _DOWNLOAD,
            method="GET",
            path="/api/master-sheet/download",
            operation="generate download URL",
        )
        return link.download_url
