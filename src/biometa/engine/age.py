"""Resolution of a sample's age at collection.

A quantitative ISO-8601 age always takes precedence over the qualitative age class.
The age class is only used when no quantitative value was given at all: a malformed
quantitative value is an error, never a reason to fall back to the class.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from pydantic import Field

from biometa.engine.base import RecordValidator, join_path
from biometa.engine.ontology import OntologyTermValidator
from biometa.engine.temporal import AGE_KINDS, TemporalKind, TemporalValidator, classify
from biometa.metadata.models import AgeEncoding, OntologyTerm
from biometa.utils.error_codes import ErrorCode
from biometa.utils.exceptions import ValidationIssue


class AgeSource(str, Enum):
    QUANTITATIVE = "quantitative"
    QUALITATIVE = "qualitative"
    NONE = "none"


@dataclass(frozen=True)
class ResolvedAge:
    source: AgeSource
    age: str | None = None
    age_class: OntologyTerm | None = None
    kind: TemporalKind | None = None

    @property
    def value(self) -> str | OntologyTerm | None:
        if self.source is AgeSource.QUANTITATIVE:
            return self.age
        if self.source is AgeSource.QUALITATIVE:
            return self.age_class
        return None

    def to_encoding(self) -> AgeEncoding | None:
        """The normalized encoding: what was resolved plus any retained age class."""
        if self.source is AgeSource.NONE:
            return None
        return AgeEncoding(age=self.age, age_class=self.age_class)


NO_AGE = ResolvedAge(AgeSource.NONE)


class AgeResolver(RecordValidator):
    temporal: TemporalValidator = Field(default_factory=TemporalValidator)
    terms: OntologyTermValidator = Field(default_factory=OntologyTermValidator)

    def resolve(
        self, encoding: AgeEncoding | None, record_id: str | None = None, field_path: str = "age_at_collection"
    ) -> tuple[ResolvedAge, list[ValidationIssue]]:
        """
        Resolve the effective age of an encoding.

        Parameters:
            encoding: The age encoding, None when absent
            record_id: Identifier of the owning record
            field_path: Path of the encoding in the record

        Returns:
            The resolved age and the issues found while resolving it
        """
        if encoding is None or (encoding.age is None and encoding.age_class is None):
            return NO_AGE, []

        age_path = join_path(field_path, "age")
        class_path = join_path(field_path, "age_class")

        if encoding.age is not None:
            errors = self.temporal.validate(encoding.age, record_id, age_path, allowed=AGE_KINDS)
            if errors:
                if encoding.age_class is not None:
                    errors.append(
                        ValidationIssue.from_code(
                            ErrorCode.AMBIGUOUS_AGE_ENCODING,
                            record_id=record_id,
                            field_path=field_path,
                            value=encoding.age,
                            error_type=logging.ERROR,
                            suggestion="Fix the ISO-8601 age, or remove it to rely on the age class alone.",
                        )
                    )
                return NO_AGE, errors

            # The age class is advisory here: a malformed one is dropped, not fatal
            age_class = encoding.age_class
            warnings = self.terms.check_structure(age_class, record_id, class_path, error_type=logging.WARNING)
            if warnings:
                age_class = None
            parsed = classify(encoding.age)
            return ResolvedAge(AgeSource.QUANTITATIVE, encoding.age, age_class, parsed.kind), warnings

        errors = self.terms.validate(encoding.age_class, record_id, class_path)
        if any(issue.is_error for issue in errors):
            return NO_AGE, errors
        errors.append(
            ValidationIssue.from_code(
                ErrorCode.AGE_DOWNGRADED,
                record_id=record_id,
                field_path=field_path,
                value=encoding.age_class.term_id,
            )
        )
        return ResolvedAge(AgeSource.QUALITATIVE, None, encoding.age_class), errors
