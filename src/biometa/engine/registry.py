"""Two-phase validation of a batch of subject and sample records.

Phase 1 builds the identifier index of the whole batch. Phase 2 validates every
record against that index and the field validators, on a thread pool, and produces
one :class:`RecordResult` per input record in input order.
"""

import logging
import threading
from collections.abc import Iterable
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any

from biometa.config import EngineConfig, config
from biometa.engine.age import AgeResolver
from biometa.engine.attributes import AttributesNormalizer
from biometa.engine.identifiers import ExternalIdentifierDeduper
from biometa.engine.ontology import BioCharacteristicValidator, OntologyTermValidator
from biometa.engine.references import IdentifierIndex, ReferenceResolver
from biometa.engine.temporal import TemporalValidator
from biometa.metadata.models import MetadataRecord, Sample, Subject
from biometa.utils.error_codes import ErrorCode
from biometa.utils.exceptions import BatchCancelled, ValidationIssue
from biometa.utils.manifest import ValidationManifest

logger = logging.getLogger(__name__)

# how often the scheduler checks the cancel event, in seconds
_POLL_INTERVAL = 0.1


@dataclass
class RecordResult:
    record_id: str | None
    record_type: str
    position: int
    issues: list[ValidationIssue] = field(default_factory=list)
    normalized: MetadataRecord | None = None

    @property
    def valid(self) -> bool:
        return not any(issue.is_error for issue in self.issues)

    def to_dict(self) -> dict[str, Any]:
        return {
            "record_id": self.record_id,
            "record_type": self.record_type,
            "valid": self.valid,
            "issues": [issue.to_dict() for issue in self.issues],
            "normalized": None if self.normalized is None else self.normalized.to_dict(),
        }


@dataclass
class BatchReport:
    results: list[RecordResult] = field(default_factory=list)
    cancelled: bool = False

    @property
    def manifest(self) -> ValidationManifest:
        return ValidationManifest.from_issues([issue for result in self.results for issue in result.issues])

    @property
    def normalized_records(self) -> list[MetadataRecord]:
        return [result.normalized for result in self.results if result.normalized is not None]

    @property
    def valid(self) -> bool:
        return not self.cancelled and all(result.valid for result in self.results)

    def get(self, record_id: str) -> list[RecordResult]:
        return [result for result in self.results if result.record_id == record_id]

    def to_dict(self) -> dict[str, Any]:
        return {
            "cancelled": self.cancelled,
            "summary": self.manifest.to_dict()["summary"],
            "results": [result.to_dict() for result in self.results],
        }


class EntityRegistry:
    """
    Holds the records of one batch and validates them.

    Example:
        with EntityRegistry() as registry:
            registry.add_all(records)
            report = registry.validate()
    """

    def __init__(
        self,
        engine_config: EngineConfig | None = None,
        vocabulary=None,
        known_datasets: Iterable[str] | None = None,
    ):
        self.config = engine_config or config.engine
        self.known_datasets = None if known_datasets is None else frozenset(known_datasets)
        self._records: list[MetadataRecord] = []
        self._index: IdentifierIndex | None = None

        self.terms = OntologyTermValidator(vocabulary=vocabulary, timeout_ms=self.config.vocabulary_timeout_ms)
        self.characteristics = BioCharacteristicValidator(term_validator=self.terms)
        self.temporal = TemporalValidator()
        self.ages = AgeResolver(temporal=self.temporal, terms=self.terms)
        self.attributes = AttributesNormalizer()
        self.deduper = ExternalIdentifierDeduper(strict=self.config.strict_duplicates)
        self.references = ReferenceResolver()

    def __len__(self) -> int:
        return len(self._records)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @property
    def records(self) -> tuple[MetadataRecord, ...]:
        return tuple(self._records)

    def add(self, record: MetadataRecord) -> None:
        if not isinstance(record, MetadataRecord):
            raise TypeError(f"Expected a Subject or Sample, got {type(record).__name__}")
        self._records.append(record)
        self._index = None

    def add_all(self, records: Iterable[MetadataRecord]) -> None:
        for record in records:
            self.add(record)

    def build_index(self) -> IdentifierIndex:
        """Phase 1: snapshot the identifiers of every record added so far."""
        self._index = IdentifierIndex.build(self._records, self.known_datasets)
        return self._index

    def validate(self, cancel_event: threading.Event | None = None, best_effort: bool | None = None) -> BatchReport:
        """
        Validate every record of the batch.

        Parameters:
            cancel_event: Set it to stop the pass; records not yet validated are discarded
            best_effort: On cancellation return the completed results instead of raising
                BatchCancelled. Defaults to the configured value.

        Returns:
            BatchReport with one result per record, in input order
        """
        if best_effort is None:
            best_effort = self.config.best_effort
        index = self.build_index()
        records = list(self._records)
        logger.info("Validating %s records with %s worker(s)", len(records), self.config.max_workers)

        if self.config.max_workers == 1:
            results = []
            for position, record in enumerate(records):
                if cancel_event is not None and cancel_event.is_set():
                    return self._cancelled(results, len(records), best_effort)
                results.append(self.validate_record(record, index, position))
            return self._finished(results)

        completed: dict[int, RecordResult] = {}
        executor = ThreadPoolExecutor(max_workers=self.config.max_workers, thread_name_prefix="record-validation")
        try:
            pending = {
                executor.submit(self.validate_record, record, index, position)
                for position, record in enumerate(records)
            }
            while pending:
                if cancel_event is not None and cancel_event.is_set():
                    executor.shutdown(wait=False, cancel_futures=True)
                    ordered = [completed[position] for position in sorted(completed)]
                    return self._cancelled(ordered, len(records), best_effort)
                done, pending = wait(pending, timeout=_POLL_INTERVAL, return_when=FIRST_COMPLETED)
                for future in done:
                    result = future.result()
                    completed[result.position] = result
        finally:
            executor.shutdown(wait=True)

        return self._finished([completed[position] for position in sorted(completed)])

    def _finished(self, results: list[RecordResult]) -> BatchReport:
        invalid = sum(1 for result in results if not result.valid)
        logger.info("Validated %s records, %s invalid", len(results), invalid)
        return BatchReport(results)

    def _cancelled(self, results: list[RecordResult], total: int, best_effort: bool) -> BatchReport:
        logger.warning("Validation cancelled after %s of %s records", len(results), total)
        if not best_effort:
            raise BatchCancelled(f"Validation cancelled after {len(results)} of {total} records")
        return BatchReport(results, cancelled=True)

    def validate_record(
        self, record: MetadataRecord, index: IdentifierIndex | None = None, position: int = 0
    ) -> RecordResult:
        """Phase 2 for a single record. Only reads the index and the record."""
        if index is None:
            index = self._index if self._index is not None else self.build_index()
        record_id = record.id
        errors: list[ValidationIssue] = []

        if record_id is None:
            errors.append(
                ValidationIssue.from_code(
                    ErrorCode.MISSING_REQUIRED_FIELD,
                    field_path="id",
                    record_id=f"<{record.record_type} #{position}>",
                )
            )
        elif index.count(record_id) > 1:
            errors.append(
                ValidationIssue.from_code(
                    ErrorCode.DUPLICATE_IDENTIFIER,
                    record_id=record_id,
                    field_path="id",
                    value=record_id,
                    count=index.count(record_id),
                    suggestion="Give every subject and sample of the batch its own identifier.",
                )
            )

        errors.extend(self.references.resolve(record, index))
        for name in ("created", "updated"):
            errors.extend(
                self.temporal.validate(getattr(record, name), record_id, name, required=self.config.require_timestamps)
            )
        if isinstance(record, Subject):
            errors.extend(self.terms.validate(record.species, record_id, "species"))
            errors.extend(self.terms.validate(record.sex, record_id, "sex"))
        errors.extend(self.characteristics.validate(record.bio_characteristics, record_id))

        update: dict[str, Any] = {}
        if isinstance(record, Sample):
            resolved, age_errors = self.ages.resolve(record.age_at_collection, record_id)
            errors.extend(age_errors)
            update["age_at_collection"] = resolved.to_encoding()

        attributes, attribute_errors = self.attributes.normalize(record.attributes, record_id)
        errors.extend(attribute_errors)
        update["attributes"] = attributes

        external_identifiers, identifier_errors = self.deduper.dedupe(record.external_identifiers, record_id)
        errors.extend(identifier_errors)
        update["external_identifiers"] = external_identifiers

        result = RecordResult(record_id, record.record_type, position, errors)
        if result.valid:
            result.normalized = record.model_copy(update=update)
        else:
            logger.debug("Record %s has %s error(s)", record_id, sum(1 for e in errors if e.is_error))
        return result

    def close(self) -> None:
        self.terms.close()
