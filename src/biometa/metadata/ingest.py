"""Read decoded metadata documents into engine records.

A document is a mapping with record lists under ``individuals``/``subjects`` and
``biosamples``/``samples``, using the schema's field names. JSON and YAML files are
accepted. Anything that prevents reading the collection is an ``IngestionError``;
problems with the content of a single record are left to the validation pass.
"""

import json
import logging
import os
from collections.abc import Iterable, Mapping
from typing import Any

import yaml
from pydantic import ValidationError

from biometa.metadata.models import RECORD_TYPES, MetadataRecord, Sample, Subject
from biometa.utils.exceptions import IngestionError

logger = logging.getLogger(__name__)

SECTION_TYPES = {
    "individuals": Subject,
    "subjects": Subject,
    "biosamples": Sample,
    "samples": Sample,
}


def parse_record(data: Mapping[str, Any] | MetadataRecord, record_type: str | type[MetadataRecord]) -> MetadataRecord:
    """Build a single record from a decoded mapping."""
    if isinstance(record_type, str):
        try:
            record_cls = RECORD_TYPES[record_type.lower()]
        except KeyError as ex:
            raise IngestionError(f"Unknown record type '{record_type}'") from ex
    else:
        record_cls = record_type

    if isinstance(data, record_cls):
        return data
    if not isinstance(data, Mapping):
        raise IngestionError(f"A {record_cls.record_type} record must be a mapping, got {type(data).__name__}")
    try:
        return record_cls.model_validate(dict(data))
    except ValidationError as ex:
        raise IngestionError(f"Could not decode {record_cls.record_type} record: {ex}") from ex


def records_from_document(document: Mapping[str, Any]) -> list[MetadataRecord]:
    """Collect the records of every known section of a document, subjects first."""
    if not isinstance(document, Mapping):
        raise IngestionError("A metadata document must be a mapping of record sections")

    unknown = [key for key in document if key not in SECTION_TYPES]
    if unknown:
        logger.warning("Ignoring unknown document section(s): %s", ", ".join(map(str, unknown)))

    records: list[MetadataRecord] = []
    for section, record_cls in sorted(SECTION_TYPES.items(), key=lambda item: item[1] is Sample):
        entries = document.get(section)
        if entries is None:
            continue
        if not isinstance(entries, list):
            raise IngestionError(f"Section '{section}' must be a list of records")
        for position, entry in enumerate(entries):
            try:
                records.append(parse_record(entry, record_cls))
            except IngestionError as ex:
                raise IngestionError(f"{section}[{position}]: {ex.value}") from ex
    logger.debug("Decoded %s records", len(records))
    return records


def load_document(path: str) -> dict[str, Any]:
    if not os.path.isfile(path):
        raise IngestionError(f"Input file {path} does not exist")
    with open(path, encoding="utf-8") as f:
        try:
            if path.lower().endswith(".json"):
                document = json.load(f)
            else:
                document = yaml.safe_load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as ex:
            raise IngestionError(f"Input file {path} could not be decoded: {ex}") from ex
    return document or {}


def read_records(paths: str | Iterable[str]) -> list[MetadataRecord]:
    """Read and decode one or more metadata documents into a single batch."""
    if isinstance(paths, str):
        paths = [paths]
    records: list[MetadataRecord] = []
    for path in paths:
        logger.info("Reading metadata records from %s", path)
        records.extend(records_from_document(load_document(path)))
    return records
