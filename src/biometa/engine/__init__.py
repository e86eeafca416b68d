from biometa.engine.age import AgeResolver, AgeSource, ResolvedAge
from biometa.engine.attributes import AttributeKind, AttributesNormalizer, AttributeValue, attributes_to_python
from biometa.engine.identifiers import ExternalIdentifierDeduper
from biometa.engine.ontology import (
    BioCharacteristicValidator,
    OntologyTermValidator,
    TermResolution,
    Vocabulary,
)
from biometa.engine.references import IdentifierIndex, ReferenceResolver
from biometa.engine.registry import BatchReport, EntityRegistry, RecordResult
from biometa.engine.temporal import TemporalKind, TemporalValidator, TemporalValue, classify

__all__ = [
    "AgeResolver",
    "AgeSource",
    "AttributeKind",
    "AttributeValue",
    "AttributesNormalizer",
    "BatchReport",
    "BioCharacteristicValidator",
    "EntityRegistry",
    "ExternalIdentifierDeduper",
    "IdentifierIndex",
    "OntologyTermValidator",
    "RecordResult",
    "ReferenceResolver",
    "ResolvedAge",
    "TemporalKind",
    "TemporalValidator",
    "TemporalValue",
    "TermResolution",
    "Vocabulary",
    "attributes_to_python",
    "classify",
]
