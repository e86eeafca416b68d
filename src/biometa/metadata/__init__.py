"""Subject and sample record models and their ingestion."""

from biometa.metadata.ingest import parse_record, read_records, records_from_document
from biometa.metadata.models import (
    AgeEncoding,
    BioCharacteristic,
    ExternalIdentifier,
    GeoLocation,
    MetadataRecord,
    OntologyTerm,
    Sample,
    Subject,
)

__all__ = [
    "AgeEncoding",
    "BioCharacteristic",
    "ExternalIdentifier",
    "GeoLocation",
    "MetadataRecord",
    "OntologyTerm",
    "Sample",
    "Subject",
    "parse_record",
    "read_records",
    "records_from_document",
]
