"""ISO-8601 timestamp, duration and interval checks."""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum

from biometa.engine.base import RecordValidator
from biometa.utils.error_codes import ErrorCode
from biometa.utils.exceptions import ValidationIssue

_TIMESTAMP_PATTERN = re.compile(
    r"^(?P<year>\d{4})"
    r"(?:-(?P<month>\d{2})"
    r"(?:-(?P<day>\d{2})"
    r"(?:T(?P<hour>\d{2}):(?P<minute>\d{2})(?::(?P<second>\d{2})(?:[.,](?P<fraction>\d+))?)?"
    r"(?P<tz>Z|[+-]\d{2}(?::?\d{2})?)?)?)?)?$"
)

_NUMBER = r"\d+(?:[.,]\d+)?"
_DURATION_PATTERN = re.compile(
    r"^P(?!$)"
    rf"(?:(?P<years>{_NUMBER})Y)?(?:(?P<months>{_NUMBER})M)?(?:(?P<weeks>{_NUMBER})W)?(?:(?P<days>{_NUMBER})D)?"
    rf"(?:T(?=\d)(?:(?P<hours>{_NUMBER})H)?(?:(?P<minutes>{_NUMBER})M)?(?:(?P<seconds>{_NUMBER})S)?)?$"
)


class TemporalKind(str, Enum):
    TIMESTAMP = "timestamp"
    DURATION = "duration"
    INTERVAL = "interval"
    INVALID = "invalid"


@dataclass(frozen=True)
class TemporalValue:
    raw: str
    kind: TemporalKind
    reason: str | None = None


def _parse_timestamp(value: str) -> datetime | None:
    """Parse an ISO-8601 date or date-time into a naive UTC datetime, None if malformed."""
    match = _TIMESTAMP_PATTERN.match(value)
    if not match:
        return None
    parts = match.groupdict()
    fraction = parts["fraction"] or "0"
    try:
        parsed = datetime(
            int(parts["year"]),
            int(parts["month"] or 1),
            int(parts["day"] or 1),
            int(parts["hour"] or 0),
            int(parts["minute"] or 0),
            int(parts["second"] or 0),
            int(fraction[:6].ljust(6, "0")),
        )
    except ValueError:
        return None

    tz = parts["tz"]
    if tz and tz != "Z":
        sign = 1 if tz[0] == "+" else -1
        digits = tz[1:].replace(":", "")
        hours, minutes = int(digits[:2]), int(digits[2:] or 0)
        if hours > 14 or minutes > 59:
            return None
        offset = timezone(sign * timedelta(hours=hours, minutes=minutes))
        try:
            parsed = parsed.replace(tzinfo=offset).astimezone(timezone.utc).replace(tzinfo=None)
        except (ValueError, OverflowError):
            # shifted to UTC the value falls outside year 1..9999
            return None
    return parsed


def is_duration(value: str) -> bool:
    return bool(_DURATION_PATTERN.match(value))


def classify(value: str | None) -> TemporalValue | None:
    """Classify a string as a timestamp, duration or start-anchored interval.

    Returns None for an absent (empty) value.
    """
    if value is None or value == "":
        return None

    if "/" in value:
        parts = value.split("/")
        if len(parts) != 2:
            return TemporalValue(value, TemporalKind.INVALID, "an interval has exactly one '/'")
        start, end = parts
        start_time = _parse_timestamp(start)
        if start_time is None:
            return TemporalValue(value, TemporalKind.INVALID, "an interval must start with a timestamp")
        if is_duration(end):
            return TemporalValue(value, TemporalKind.INTERVAL)
        end_time = _parse_timestamp(end)
        if end_time is None:
            return TemporalValue(value, TemporalKind.INVALID, "an interval must end with a duration or timestamp")
        if end_time < start_time:
            return TemporalValue(value, TemporalKind.INVALID, "the interval ends before it starts")
        return TemporalValue(value, TemporalKind.INTERVAL)

    if value.startswith("P"):
        if is_duration(value):
            return TemporalValue(value, TemporalKind.DURATION)
        return TemporalValue(value, TemporalKind.INVALID, "not a valid duration")

    if _parse_timestamp(value) is not None:
        return TemporalValue(value, TemporalKind.TIMESTAMP)
    return TemporalValue(value, TemporalKind.INVALID, "matches no ISO-8601 grammar")


TIMESTAMP_KINDS = frozenset({TemporalKind.TIMESTAMP})
AGE_KINDS = frozenset({TemporalKind.DURATION, TemporalKind.INTERVAL})


class TemporalValidator(RecordValidator):
    def validate(  # type: ignore[override]
        self,
        value: str | None,
        record_id: str | None = None,
        field_path: str | None = None,
        allowed: frozenset[TemporalKind] = TIMESTAMP_KINDS,
        required: bool = False,
    ) -> list[ValidationIssue]:
        """
        Check that a value is one of the allowed temporal kinds.

        Parameters:
            value: The encoded value; None or "" means absent
            record_id: Identifier of the owning record
            field_path: Path of the field in the record
            allowed: The kinds this field accepts
            required: Report an absent value as a missing required field

        Returns:
            List of ValidationIssue, empty when the value is acceptable
        """
        parsed = classify(value)
        if parsed is None:
            if required:
                return [
                    ValidationIssue.from_code(
                        ErrorCode.MISSING_REQUIRED_FIELD,
                        record_id=record_id,
                        field_path=field_path,
                        suggestion="Provide an ISO-8601 timestamp such as '2017-03-14T10:22:00Z'.",
                    )
                ]
            return []

        if parsed.kind in allowed:
            return []

        expected = " or ".join(sorted(kind.value for kind in allowed))
        if parsed.kind is not TemporalKind.INVALID:
            reason = f"a {parsed.kind.value} is not accepted here"
        else:
            reason = parsed.reason
        return [
            ValidationIssue.from_code(
                ErrorCode.MALFORMED_TEMPORAL_VALUE,
                record_id=record_id,
                field_path=field_path,
                value=value,
                expected=expected,
                reason=reason,
                error_type=logging.ERROR,
            )
        ]
