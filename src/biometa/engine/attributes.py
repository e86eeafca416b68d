"""Normalization of the open key/value attribute map into a closed tagged variant."""

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from biometa.engine.base import RecordValidator, join_path
from biometa.utils.error_codes import ErrorCode
from biometa.utils.exceptions import ValidationIssue


class AttributeKind(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    LIST = "list"
    MAPPING = "mapping"


@dataclass(frozen=True)
class AttributeValue:
    """One attribute value.

    ``value`` holds a str, an int or float, a bool, a tuple of AttributeValue, or a
    tuple of ``(key, AttributeValue)`` pairs, depending on ``kind``.
    """

    kind: AttributeKind
    value: Any

    def to_python(self) -> Any:
        if self.kind is AttributeKind.LIST:
            return [item.to_python() for item in self.value]
        if self.kind is AttributeKind.MAPPING:
            return {key: item.to_python() for key, item in self.value}
        return self.value


def attributes_to_python(attributes: Mapping[Any, Any]) -> dict[Any, Any]:
    return {key: value.to_python() if isinstance(value, AttributeValue) else value for key, value in attributes.items()}


class AttributesNormalizer(RecordValidator):
    def normalize(
        self, attributes: Mapping[Any, Any], record_id: str | None = None, field_path: str = "attributes"
    ) -> tuple[dict[str, AttributeValue], list[ValidationIssue]]:
        """
        Type-check an attribute map and convert it into AttributeValue variants.

        Text is kept verbatim. Already normalized values are accepted and re-checked,
        so normalizing twice gives the same map.

        Parameters:
            attributes: The raw map
            record_id: Identifier of the owning record
            field_path: Path of the map in the record

        Returns:
            The normalized map (unsupported entries left out) and the issues found
        """
        errors: list[ValidationIssue] = []
        entries = self._normalize_mapping(attributes, record_id, field_path, errors)
        return dict(entries), errors

    def _unsupported(self, record_id, field_path, reason, errors, value=None) -> None:
        errors.append(
            ValidationIssue.from_code(
                ErrorCode.UNSUPPORTED_ATTRIBUTE_VALUE,
                record_id=record_id,
                field_path=field_path,
                value=None if value is None else repr(value)[:80],
                reason=reason,
                error_type=logging.ERROR,
                suggestion="Attribute values must be text, numbers, booleans, lists or nested maps.",
            )
        )

    def _normalize_mapping(self, mapping, record_id, field_path, errors) -> list[tuple[str, AttributeValue]]:
        entries = []
        for key, value in mapping.items():
            if not isinstance(key, str):
                self._unsupported(record_id, field_path, f"key {key!r} is not text", errors)
                continue
            if key == "":
                self._unsupported(record_id, field_path, "keys must not be empty", errors)
                continue
            normalized = self._normalize_value(value, record_id, join_path(field_path, key), errors)
            if normalized is not None:
                entries.append((key, normalized))
        return entries

    def _normalize_value(self, value, record_id, field_path, errors) -> AttributeValue | None:
        if isinstance(value, AttributeValue):
            # unwrap one level; nested variants are unwrapped by the recursion
            value = dict(value.value) if value.kind is AttributeKind.MAPPING else value.value
            if isinstance(value, tuple):
                value = list(value)

        if isinstance(value, bool):
            return AttributeValue(AttributeKind.BOOLEAN, value)
        if isinstance(value, (int, float)):
            if isinstance(value, float) and not math.isfinite(value):
                self._unsupported(record_id, field_path, "numbers must be finite", errors, value)
                return None
            return AttributeValue(AttributeKind.NUMBER, value)
        if isinstance(value, str):
            return AttributeValue(AttributeKind.TEXT, value)
        if isinstance(value, (list, tuple)):
            items = []
            for idx, item in enumerate(value):
                normalized = self._normalize_value(item, record_id, join_path(field_path, idx), errors)
                if normalized is not None:
                    items.append(normalized)
            return AttributeValue(AttributeKind.LIST, tuple(items))
        if isinstance(value, Mapping):
            entries = self._normalize_mapping(value, record_id, field_path, errors)
            return AttributeValue(AttributeKind.MAPPING, tuple(entries))

        type_name = "null" if value is None else type(value).__name__
        self._unsupported(record_id, field_path, f"values of type {type_name} are not supported", errors, value)
        return None
