"""
dealer_analytics/validators package marker.
"""

from dealer_analytics.validators.upload_validator import (
    FileValidationError,
    UploadCandidate,
    UploadPolicy,
    deal_summary_policy,
    file_extension,
    raw_file_policy,
    spreadsheet_policy,
)

__all__ = [
    "FileValidationError",
    "UploadCandidate",
    "UploadPolicy",
    "deal_summary_policy",
    "file_extension",
    "raw_file_policy",
    "spreadsheet_policy",
]
