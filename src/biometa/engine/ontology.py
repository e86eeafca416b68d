"""Ontology term pair checks.

Structural validity of a term (``NAMESPACE:local-id`` plus a non-empty label) is
always checked locally. Existence in a vocabulary is an optional extra: when a
vocabulary is configured, structurally valid terms are resolved through it and
anything it reports comes back as a warning, never as an error.
"""

import logging
import re
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from pydantic import Field, PrivateAttr

from biometa.config import config
from biometa.engine.base import RecordValidator, join_path
from biometa.metadata.models import BioCharacteristic, OntologyTerm
from biometa.utils.error_codes import ErrorCode
from biometa.utils.exceptions import ValidationIssue

logger = logging.getLogger(__name__)

TERM_ID_PATTERN = re.compile(r"^(?P<namespace>[^:\s]+):(?P<local>\S+)$")


@dataclass(frozen=True)
class TermResolution:
    known: bool
    canonical_label: str = ""


@runtime_checkable
class Vocabulary(Protocol):
    """A source that can tell whether a term identifier exists."""

    def resolve(self, term_id: str) -> TermResolution: ...


def term_id_problem(term: OntologyTerm) -> str | None:
    """Describe what is structurally wrong with a term, None if nothing is."""
    if not term.term_id and not term.term:
        return "both the identifier and the label are empty"
    if not term.term_id:
        return f"label '{term.term}' has no identifier"
    if not term.term:
        return f"identifier '{term.term_id}' has no label"
    if not TERM_ID_PATTERN.match(term.term_id):
        return f"identifier '{term.term_id}' is not of the form NAMESPACE:local-id"
    return None


class OntologyTermValidator(RecordValidator):
    vocabulary: Any = None
    timeout_ms: int = Field(default_factory=lambda: config.engine.vocabulary_timeout_ms)
    lookup_workers: int = 4

    _cache: dict[str, TermResolution] = PrivateAttr(default_factory=dict)
    _lock: Any = PrivateAttr(default_factory=threading.Lock)
    _executor: ThreadPoolExecutor | None = PrivateAttr(default=None)

    def check_structure(
        self,
        term: OntologyTerm | None,
        record_id: str | None = None,
        field_path: str | None = None,
        error_type: int = logging.ERROR,
    ) -> list[ValidationIssue]:
        """Local well-formedness check. An absent term is valid."""
        if term is None:
            return []
        problem = term_id_problem(term)
        if problem is None:
            return []
        return [
            ValidationIssue.from_code(
                ErrorCode.MALFORMED_ONTOLOGY_TERM,
                record_id=record_id,
                field_path=field_path,
                value=term.term_id or term.term,
                reason=problem,
                error_type=error_type,
                suggestion="Use a term such as {term_id: 'NCBITaxon:9606', term: 'Homo sapiens'}.",
            )
        ]

    def validate(  # type: ignore[override]
        self, term: OntologyTerm | None, record_id: str | None = None, field_path: str | None = None
    ) -> list[ValidationIssue]:
        """
        Validate a term pair: structure first, then existence if a vocabulary is configured.

        Parameters:
            term: The term, None when absent
            record_id: Identifier of the owning record
            field_path: Path of the term in the record

        Returns:
            List of ValidationIssue
        """
        errors = self.check_structure(term, record_id, field_path)
        if errors or term is None or self.vocabulary is None:
            return errors
        return self._check_existence(term, record_id, field_path)

    def _check_existence(self, term: OntologyTerm, record_id: str | None, field_path: str | None):
        try:
            resolution = self.lookup(term.term_id)
        except FuturesTimeoutError:
            logger.warning("Vocabulary lookup of %s timed out after %s ms", term.term_id, self.timeout_ms)
            return [
                ValidationIssue.from_code(
                    ErrorCode.ONTOLOGY_EXISTENCE_UNKNOWN,
                    record_id=record_id,
                    field_path=field_path,
                    value=term.term_id,
                    reason=f"lookup timed out after {self.timeout_ms} ms",
                )
            ]
        except Exception as ex:
            logger.warning("Vocabulary lookup of %s failed: %s", term.term_id, ex)
            return [
                ValidationIssue.from_code(
                    ErrorCode.ONTOLOGY_EXISTENCE_UNKNOWN,
                    record_id=record_id,
                    field_path=field_path,
                    value=term.term_id,
                    reason=f"lookup failed ({type(ex).__name__})",
                )
            ]

        if not resolution.known:
            return [
                ValidationIssue.from_code(
                    ErrorCode.UNRECOGNIZED_ONTOLOGY_TERM,
                    record_id=record_id,
                    field_path=field_path,
                    value=term.term_id,
                )
            ]
        if resolution.canonical_label and resolution.canonical_label.lower() != term.term.lower():
            return [
                ValidationIssue.from_code(
                    ErrorCode.ONTOLOGY_LABEL_MISMATCH,
                    record_id=record_id,
                    field_path=field_path,
                    value=term.term_id,
                    label=term.term,
                    canonical_label=resolution.canonical_label,
                    suggestion=f"Use the label '{resolution.canonical_label}'.",
                )
            ]
        return []

    def lookup(self, term_id: str) -> TermResolution:
        """
        Resolve a term identifier through the vocabulary, bounded by ``timeout_ms``.

        Successful answers are memoized. Raises ``concurrent.futures.TimeoutError`` when the
        vocabulary does not answer in time, and re-raises whatever the vocabulary raised.
        """
        with self._lock:
            cached = self._cache.get(term_id)
            if cached is not None:
                return cached
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.lookup_workers, thread_name_prefix="vocabulary-lookup"
                )
            executor = self._executor

        future = executor.submit(self.vocabulary.resolve, term_id)
        try:
            resolution = future.result(timeout=self.timeout_ms / 1000)
        except FuturesTimeoutError:
            future.cancel()
            raise

        with self._lock:
            self._cache[term_id] = resolution
        return resolution

    def close(self) -> None:
        with self._lock:
            if self._executor is not None:
                self._executor.shutdown(wait=False, cancel_futures=True)
                self._executor = None


class BioCharacteristicValidator(RecordValidator):
    """Validates the terms of bio-characteristics and rejects asserted/negated contradictions.

    Only identical term pairs are detected; two different identifiers for the same
    concept are not recognized as a contradiction.
    """

    term_validator: OntologyTermValidator = Field(default_factory=OntologyTermValidator)

    def validate(  # type: ignore[override]
        self,
        characteristics: tuple[BioCharacteristic, ...],
        record_id: str | None = None,
        field_path: str = "bio_characteristics",
    ) -> list[ValidationIssue]:
        errors = []
        for idx, characteristic in enumerate(characteristics):
            path = join_path(field_path, idx)
            for list_name in ("ontology_terms", "negated_ontology_terms"):
                for term_idx, term in enumerate(getattr(characteristic, list_name)):
                    errors.extend(
                        self.term_validator.validate(term, record_id, join_path(join_path(path, list_name), term_idx))
                    )

            negated = set(characteristic.negated_ontology_terms)
            reported = set()
            for term in characteristic.ontology_terms:
                if term in negated and term not in reported:
                    reported.add(term)
                    errors.append(
                        ValidationIssue.from_code(
                            ErrorCode.CONTRADICTORY_ONTOLOGY_TERMS,
                            record_id=record_id,
                            field_path=path,
                            value=term.term_id,
                            error_type=logging.ERROR,
                            suggestion="Remove the term from either the asserted or the negated list.",
                        )
                    )
        return errors
