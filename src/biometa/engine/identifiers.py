import logging

from biometa.engine.base import RecordValidator, join_path
from biometa.metadata.models import ExternalIdentifier
from biometa.utils.error_codes import ErrorCode
from biometa.utils.exceptions import ValidationIssue


class ExternalIdentifierDeduper(RecordValidator):
    """Collapses repeated (database, identifier) pairs of one record's external identifiers."""

    strict: bool = False

    def dedupe(
        self,
        identifiers: tuple[ExternalIdentifier, ...],
        record_id: str | None = None,
        field_path: str = "external_identifiers",
    ) -> tuple[tuple[ExternalIdentifier, ...], list[ValidationIssue]]:
        """
        Drop repeated identifiers, keeping the first occurrence of each pair.

        Returns:
            The deduplicated identifiers in first-seen order and the issues found
        """
        errors = []
        level = logging.ERROR if self.strict else logging.WARNING
        seen: set[tuple[str, str]] = set()
        kept = []
        for idx, identifier in enumerate(identifiers):
            path = join_path(field_path, idx)
            for name in ("database", "identifier"):
                if not getattr(identifier, name):
                    errors.append(
                        ValidationIssue.from_code(
                            ErrorCode.MISSING_REQUIRED_FIELD,
                            record_id=record_id,
                            field_path=join_path(path, name),
                        )
                    )

            if identifier.key in seen:
                errors.append(
                    ValidationIssue.from_code(
                        ErrorCode.DUPLICATE_EXTERNAL_IDENTIFIER,
                        record_id=record_id,
                        field_path=path,
                        value=str(identifier),
                        error_type=level,
                        suggestion="Remove the repeated entry.",
                    )
                )
                continue
            seen.add(identifier.key)
            kept.append(identifier)
        return tuple(kept), errors
