from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from biometa.utils.error_codes import ErrorCode


class ValidationIssue:
    """
    A single problem found while validating one record of a batch.

    Issues are values, not raised exceptions: the engine collects them per record and
    never aborts a batch because of a malformed record.
    """

    def __init__(
        self,
        message: str,
        value: str | None = None,
        record_id: str | None = None,
        field_path: str | None = None,
        error_type: int | None = None,
        suggestion: str | None = None,
        error_code: ErrorCode | None = None,
        context: dict[str, Any] | None = None,
    ):
        """
        Parameters:
            message: Human readable description of the issue.
            value: The offending value, if any.
            record_id: Identifier of the record the issue belongs to.
            field_path: Dotted path of the field inside the record (e.g. ``species.term_id``).
            error_type: Logging level (logging.ERROR, logging.WARNING or logging.INFO).
            suggestion: Optional hint on how to fix the issue.
            error_code: Machine-readable kind of the issue.
            context: Additional variables used to build the message.
        """
        self.message = message
        self.value = value
        self.record_id = record_id
        self.field_path = field_path
        self._error_type = error_type
        self.suggestion = suggestion
        self.error_code = error_code
        self.context = context or {}

    @classmethod
    def from_code(
        cls,
        error_code: ErrorCode,
        record_id: str | None = None,
        field_path: str | None = None,
        value: str | None = None,
        error_type: int | None = None,
        suggestion: str | None = None,
        **context,
    ) -> ValidationIssue:
        """
        Create an issue from an error code with automatic message generation.

        When ``error_type`` is not given the default level of the code is used, so
        advisory kinds such as ``AgeDowngraded`` come out as warnings.
        """
        from biometa.utils.error_codes import format_error_message

        full_context = {"record_id": record_id, "field_path": field_path, "value": value, **context}
        message = format_error_message(error_code, **full_context)

        return cls(
            message=message,
            value=value,
            record_id=record_id,
            field_path=field_path,
            error_type=error_type if error_type is not None else error_code.default_level,
            suggestion=suggestion,
            error_code=error_code,
            context=full_context,
        )

    @property
    def error_type(self):
        return self._error_type

    @property
    def kind(self) -> str:
        return self.error_code.value if self.error_code is not None else "Unknown"

    @property
    def severity(self) -> str:
        """Return severity as a string (error, warning, info)."""
        if self._error_type == logging.ERROR:
            return "error"
        elif self._error_type == logging.WARNING:
            return "warning"
        return "info"

    @property
    def is_error(self) -> bool:
        return self._error_type is not None and self._error_type >= logging.ERROR

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "kind": self.kind,
            "record_id": self.record_id,
            "field_path": self.field_path,
            "message": self.message,
            "severity": self.severity,
        }

        if self.error_code is not None:
            result["category"] = self.error_code.category.value

        if self.value is not None:
            result["value"] = self.value

        if self.suggestion:
            result["suggestion"] = self.suggestion

        if self.context:
            filtered_context = {
                k: v
                for k, v in self.context.items()
                if v is not None and k not in ("record_id", "field_path", "value")
            }
            if filtered_context:
                result["context"] = filtered_context

        return result

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, default=str)

    def __repr__(self) -> str:
        return f"ValidationIssue(kind={self.kind!r}, record_id={self.record_id!r}, field_path={self.field_path!r})"

    def __str__(self) -> str:
        level_name = logging.getLevelName(self._error_type) if self._error_type else "INFO"
        parts = []

        if self.record_id is not None and self.field_path is not None:
            parts.append(f"[Record '{self.record_id}', Field '{self.field_path}']")
        elif self.record_id is not None:
            parts.append(f"[Record '{self.record_id}']")
        elif self.field_path is not None:
            parts.append(f"[Field '{self.field_path}']")

        parts.append(self.message)

        if self.error_code is not None:
            parts.append(f"({self.error_code.value})")

        parts.append(f"[{level_name}]")

        result = " ".join(parts)

        if self.suggestion:
            result += f"\n  → Suggestion: {self.suggestion}"

        return result


class AppException(Exception):
    def __init__(self, value):
        self.value = value

    def __str__(self):
        return repr(self.value)


class AppConfigException(AppException):
    pass


class IngestionError(AppException):
    """The input collection could not be read or decoded into records."""


class BatchCancelled(AppException):
    """A validation pass was cancelled before every record was validated."""
