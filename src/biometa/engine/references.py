"""The identifier index of a batch and the cross-record reference checks run against it.

The index is built once, before any record is validated, and is read-only from then
on, so it can be shared by every validation worker without locking.
"""

import logging
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from biometa.engine.base import RecordValidator
from biometa.metadata.models import MetadataRecord, Sample, Subject
from biometa.utils.error_codes import ErrorCode
from biometa.utils.exceptions import ValidationIssue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdentifierIndex:
    """Immutable snapshot of the record identifiers of one batch.

    ``records`` maps each identifier to the record type(s) seen with it, ``counts`` to
    how many records carry it. ``known_datasets`` is None when dataset references are
    not to be resolved.
    """

    records: Mapping[str, frozenset[str]] = field(default_factory=lambda: MappingProxyType({}))
    counts: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))
    known_datasets: frozenset[str] | None = None

    @classmethod
    def build(cls, records: Iterable[MetadataRecord], known_datasets: Iterable[str] | None = None) -> "IdentifierIndex":
        types: dict[str, set[str]] = {}
        counts: Counter = Counter()
        for record in records:
            if record.id is None:
                continue
            types.setdefault(record.id, set()).add(record.record_type)
            counts[record.id] += 1

        index = cls(
            records=MappingProxyType({key: frozenset(value) for key, value in types.items()}),
            counts=MappingProxyType(dict(counts)),
            known_datasets=None if known_datasets is None else frozenset(known_datasets),
        )
        logger.debug("Indexed %s identifiers, %s duplicated", len(index.records), len(index.duplicates))
        return index

    @property
    def duplicates(self) -> frozenset[str]:
        return frozenset(key for key, count in self.counts.items() if count > 1)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self.records

    def count(self, record_id: str) -> int:
        return self.counts.get(record_id, 0)

    def is_subject(self, record_id: str) -> bool:
        return Subject.record_type in self.records.get(record_id, frozenset())


class ReferenceResolver(RecordValidator):
    def resolve(self, record: MetadataRecord, index: IdentifierIndex) -> list[ValidationIssue]:
        """
        Check the dataset reference of any record and the subject reference of a sample.

        Parameters:
            record: The record whose references are checked
            index: Identifier index of the batch

        Returns:
            List of ValidationIssue
        """
        errors = []
        if record.dataset_id is None:
            errors.append(
                ValidationIssue.from_code(
                    ErrorCode.MISSING_REQUIRED_FIELD,
                    record_id=record.id,
                    field_path="dataset_id",
                    suggestion="Every record must belong to a dataset.",
                )
            )
        elif index.known_datasets is not None and record.dataset_id not in index.known_datasets:
            errors.append(
                ValidationIssue.from_code(
                    ErrorCode.INVALID_IDENTIFIER_REFERENCE,
                    record_id=record.id,
                    field_path="dataset_id",
                    value=record.dataset_id,
                    target="dataset",
                )
            )

        # an unlinked sample is allowed
        if isinstance(record, Sample) and record.subject_id is not None:
            if not index.is_subject(record.subject_id):
                errors.append(
                    ValidationIssue.from_code(
                        ErrorCode.INVALID_IDENTIFIER_REFERENCE,
                        record_id=record.id,
                        field_path="subject_id",
                        value=record.subject_id,
                        target="subject",
                        suggestion="Add the subject to the batch or correct the reference.",
                    )
                )
        return errors
