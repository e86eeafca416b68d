"""Validation manifest for machine-readable issue reporting.

This module provides the ValidationManifest class which wraps the issues of a
validation pass and provides filtering, aggregation, and serialization
capabilities for use in tests, reports and command-line output.
"""

from __future__ import annotations

import json
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import pandas as pd

if TYPE_CHECKING:
    from biometa.utils.error_codes import ErrorCode
    from biometa.utils.exceptions import ValidationIssue

REPORT_COLUMNS = ["record_id", "field_path", "kind", "severity", "message"]


@dataclass
class ValidationManifest:
    """A collection of validation issues with filtering and serialization support.

    Example usage in tests:
        manifest = ValidationManifest.from_issues(issues)
        assert manifest.has_code(ErrorCode.DUPLICATE_IDENTIFIER)
        assert manifest.count_by_code(ErrorCode.AGE_DOWNGRADED) == 1
    """

    issues: list[ValidationIssue] = field(default_factory=list)

    @classmethod
    def from_issues(cls, issues: Iterable[ValidationIssue]) -> ValidationManifest:
        return cls(issues=list(issues))

    def __len__(self) -> int:
        return len(self.issues)

    def __iter__(self):
        return iter(self.issues)

    def __bool__(self) -> bool:
        return len(self.issues) > 0

    # Filtering methods

    def filter_by_code(self, *codes: ErrorCode) -> list[ValidationIssue]:
        """Return issues matching any of the given error codes."""
        code_set = set(codes)
        return [i for i in self.issues if i.error_code in code_set]

    def filter_by_record(self, record_id: str) -> list[ValidationIssue]:
        return [i for i in self.issues if i.record_id == record_id]

    def filter_by_field(self, field_path: str) -> list[ValidationIssue]:
        """Return issues at the given field path or below it."""
        return [
            i
            for i in self.issues
            if i.field_path is not None
            and (i.field_path == field_path or i.field_path.startswith((field_path + ".", field_path + "[")))
        ]

    def filter_by_severity(self, severity: str) -> list[ValidationIssue]:
        """Return issues with the specified severity ("error", "warning" or "info")."""
        return [i for i in self.issues if i.severity == severity]

    # Checking methods

    def has_code(self, code: ErrorCode) -> bool:
        return any(i.error_code == code for i in self.issues)

    def has_issue_at(self, record_id: str, field_path: str) -> bool:
        return any(i.record_id == record_id and i.field_path == field_path for i in self.issues)

    # Counting methods

    def count_by_code(self, code: ErrorCode) -> int:
        return sum(1 for i in self.issues if i.error_code == code)

    def count_by_severity(self) -> Counter[str]:
        return Counter(i.severity for i in self.issues)

    def count_by_category(self) -> Counter[str]:
        return Counter(i.error_code.category.value for i in self.issues if i.error_code)

    def code_counts(self) -> Counter[str]:
        return Counter(i.error_code.value for i in self.issues if i.error_code)

    # Aggregation

    def get_record_issues(self) -> dict[str | None, list[ValidationIssue]]:
        """Group issues by the record they belong to, keeping first-seen record order."""
        result: dict[str | None, list[ValidationIssue]] = {}
        for issue in self.issues:
            result.setdefault(issue.record_id, []).append(issue)
        return result

    @property
    def error_count(self) -> int:
        """Number of issues with severity 'error'."""
        return sum(1 for i in self.issues if i.severity == "error")

    @property
    def warning_count(self) -> int:
        """Number of issues with severity 'warning'."""
        return sum(1 for i in self.issues if i.severity == "warning")

    @property
    def is_valid(self) -> bool:
        """True if there are no errors (warnings are allowed)."""
        return self.error_count == 0

    @property
    def unique_error_codes(self) -> set[ErrorCode]:
        return {i.error_code for i in self.issues if i.error_code is not None}

    # Serialization

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": {
                "total": len(self.issues),
                "errors": self.error_count,
                "warnings": self.warning_count,
                "is_valid": self.is_valid,
                "by_category": dict(self.count_by_category()),
                "by_code": dict(self.code_counts()),
            },
            "issues": [i.to_dict() for i in self.issues],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def to_dataframe(self) -> pd.DataFrame:
        """Tabular view of the issues, one row per issue, duplicates dropped."""
        rows = [{column: issue.to_dict().get(column) for column in REPORT_COLUMNS} for issue in self.issues]
        return pd.DataFrame(rows, columns=REPORT_COLUMNS).drop_duplicates()

    def __repr__(self) -> str:
        return f"ValidationManifest(total={len(self.issues)}, errors={self.error_count}, warnings={self.warning_count})"
