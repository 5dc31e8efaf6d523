"""
dealer_analytics/validators/upload_validator.py

Client-side, advisory file checks run before an upload is submitted.

The server re-validates every upload; these checks exist so that obviously
wrong files are rejected without a round trip.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import PurePath

from dealer_analytics.config import UploadLimits, get_upload_limits

logger = logging.getLogger(__name__)


class FileValidationError(ValueError):
    """
    Raised when a file fails the client-side upload policy; nothing was sent.
    """

    def __init__(self, message: str, *, filename: str | None = None) -> None:
        super().__init__(message)
        self.filename = filename


XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
XLS_CONTENT_TYPE = "application/vnd.ms-excel"
CSV_CONTENT_TYPE = "text/csv"

# Browsers and OSes label CSV files inconsistently.
CSV_CONTENT_TYPE_ALIASES = frozenset({CSV_CONTENT_TYPE, "application/csv", "text/x-csv", "text/plain"})

# Declared when the browser does not know the type; carries no information.
GENERIC_CONTENT_TYPES = frozenset({"", "application/octet-stream", "binary/octet-stream"})

CONTENT_TYPES_BY_EXTENSION: dict[str, str] = {
    ".xlsx": XLSX_CONTENT_TYPE,
    ".xls": XLS_CONTENT_TYPE,
    ".csv": CSV_CONTENT_TYPE,
}


@dataclass(frozen=True)
class UploadCandidate:
    """
    A file picked by the user, not yet submitted.
    """

    filename: str
    data: bytes
    content_type: str | None = None
    validated: bool = False
    error_reason: str | None = None

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        return file_extension(self.filename)

    def resolved_content_type(self) -> str:
        """
        Declared media type, else one inferred from the extension.
        """

        if self.content_type:
            return self.content_type
        return CONTENT_TYPES_BY_EXTENSION.get(self.extension, "application/octet-stream")


def file_extension(filename: str) -> str:
    """
    Lower-cased final suffix including the dot, or "" when there is none.
    """

    return PurePath(filename.strip()).suffix.lower()


def _format_megabytes(size_bytes: int) -> str:
    megabytes = size_bytes / (1024 * 1024)
    return f"{megabytes:g}MB"


@dataclass(frozen=True)
class UploadPolicy:
    """
    Allowed extensions and byte ceiling for one upload call site.

    The extension decides acceptance. ``allowed_content_types``, when set, only
    narrows it further: a file whose declared media type is specific and not
    listed is rejected even with an allowed extension. Generic or missing
    media types are ignored.
    """

    name: str
    allowed_extensions: frozenset[str]
    max_bytes: int
    type_error_message: str
    size_error_message: str
    allowed_content_types: frozenset[str] = frozenset()

    def check(self, candidate: UploadCandidate) -> str | None:
        """
        Return the rejection reason for ``candidate`` or None when it passes.
        """

        if candidate.extension not in self.allowed_extensions:
            return self.type_error_message
        content_type = (candidate.content_type or "").split(";", 1)[0].strip().lower()
        if (
            self.allowed_content_types
            and content_type not in GENERIC_CONTENT_TYPES
            and content_type not in self.allowed_content_types
        ):
            return self.type_error_message
        if candidate.size_bytes > self.max_bytes:
            return self.size_error_message
        return None

    def validate(self, candidate: UploadCandidate) -> UploadCandidate:
        """
        Return a copy of ``candidate`` marked with the validation outcome.
        """

        reason = self.check(candidate)
        if reason is not None:
            logger.info(
                "Upload rejected client-side policy=%s filename=%s size_bytes=%s reason=%s",
                self.name,
                candidate.filename,
                candidate.size_bytes,
                reason,
            )
            return replace(candidate, validated=False, error_reason=reason)
        return replace(candidate, validated=True, error_reason=None)

    def ensure_valid(self, candidate: UploadCandidate) -> UploadCandidate:
        """
        Validate and raise FileValidationError on rejection.
        """

        checked = self.validate(candidate)
        if not checked.validated:
            raise FileValidationError(checked.error_reason or "Invalid file", filename=candidate.filename)
        return checked


def spreadsheet_policy(limits: UploadLimits | None = None) -> UploadPolicy:
    limits = limits or get_upload_limits()
    return UploadPolicy(
        name="spreadsheet",
        allowed_extensions=frozenset({".xlsx", ".xls", ".csv"}),
        allowed_content_types=frozenset({XLSX_CONTENT_TYPE, XLS_CONTENT_TYPE}) | CSV_CONTENT_TYPE_ALIASES,
        max_bytes=limits.spreadsheet_max_bytes,
        type_error_message="Please upload a valid Excel (.xlsx, .xls) or CSV file",
        size_error_message=f"File size must be less than {_format_megabytes(limits.spreadsheet_max_bytes)}",
    )


def deal_summary_policy(limits: UploadLimits | None = None) -> UploadPolicy:
    limits = limits or get_upload_limits()
    return UploadPolicy(
        name="deal_summary",
        allowed_extensions=frozenset({".xlsx", ".xls"}),
        max_bytes=limits.deal_summary_max_bytes,
        type_error_message="Please upload a valid Excel file (.xlsx or .xls)",
        size_error_message=f"File size must be less than {_format_megabytes(limits.deal_summary_max_bytes)}",
    )


def raw_file_policy(limits: UploadLimits | None = None) -> UploadPolicy:
    limits = limits or get_upload_limits()
    return UploadPolicy(
        name="raw_file",
        allowed_extensions=frozenset({".csv", ".xlsx"}),
        max_bytes=limits.raw_file_max_bytes,
        type_error_message="Only CSV and XLSX files are allowed",
        size_error_message=f"File size exceeds {_format_megabytes(limits.raw_file_max_bytes)} limit",
    )
