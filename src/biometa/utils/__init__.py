"""Utility modules for metadata validation.

This package provides:
- error_codes: Machine-readable issue kinds and message templates
- exceptions: ValidationIssue and application exceptions
- manifest: ValidationManifest for issue collection and filtering
"""

from biometa.utils.error_codes import ErrorCategory, ErrorCode, format_error_message
from biometa.utils.exceptions import (
    AppConfigException,
    AppException,
    BatchCancelled,
    IngestionError,
    ValidationIssue,
)
from biometa.utils.manifest import ValidationManifest

__all__ = [
    "AppConfigException",
    "AppException",
    "BatchCancelled",
    "ErrorCategory",
    "ErrorCode",
    "IngestionError",
    "ValidationIssue",
    "ValidationManifest",
    "format_error_message",
]
