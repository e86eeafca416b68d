"""Pydantic models for subject and sample metadata records.

Field names follow the GA4GH bio-metadata schema. Optional scalar fields are
``None`` when absent: the empty-string-means-absent convention of the wire format
is resolved here, once, when a record is built.
"""

from datetime import date, datetime
from typing import Any, ClassVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def is_blank(value: Any) -> bool:
    """True for values the wire format uses to mean "not set"."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, dict):
        return all(is_blank(v) for v in value.values())
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    if isinstance(value, BaseModel):
        return all(is_blank(getattr(value, name)) for name in type(value).model_fields)
    return False


def blank_to_none(value: Any) -> Any:
    return None if is_blank(value) else value


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class OntologyTerm(FrozenModel):
    """A controlled-vocabulary identifier (``NAMESPACE:local-id``) and its label."""

    term_id: str = ""
    term: str = ""

    @field_validator("term_id", "term", mode="before")
    @classmethod
    def none_to_empty(cls, value):
        return "" if value is None else value

    @property
    def label(self) -> str:
        return self.term

    def __str__(self) -> str:
        return f"{self.term_id} ({self.term})"


class ExternalIdentifier(FrozenModel):
    """Another representation of the same record in an external database."""

    database: str = Field("", validation_alias=AliasChoices("database", "namespace", "ns"))
    identifier: str = Field("", validation_alias=AliasChoices("identifier", "value", "val"))
    version: str = ""

    @field_validator("database", "identifier", "version", mode="before")
    @classmethod
    def none_to_empty(cls, value):
        return "" if value is None else value

    @property
    def key(self) -> tuple[str, str]:
        return self.database, self.identifier

    def __str__(self) -> str:
        return f"{self.database}:{self.identifier}"


class GeoLocation(FrozenModel):
    label: str | None = None
    precision: str | None = None
    country: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    altitude: float | None = None

    @field_validator("label", "precision", "country", mode="before")
    @classmethod
    def blank_scalars(cls, value):
        return blank_to_none(value)


class AgeEncoding(FrozenModel):
    """An ISO-8601 age (duration or start-anchored interval) and/or a qualitative age class."""

    age: str | None = None
    age_class: OntologyTerm | None = None

    @field_validator("age", "age_class", mode="before")
    @classmethod
    def blank_parts(cls, value):
        return blank_to_none(value)


class BioCharacteristic(FrozenModel):
    """A phenotype, disease or observation described by asserted and negated ontology terms."""

    description: str | None = None
    ontology_terms: tuple[OntologyTerm, ...] = ()
    negated_ontology_terms: tuple[OntologyTerm, ...] = ()
    scope: str | None = None

    @field_validator("description", "scope", mode="before")
    @classmethod
    def blank_scalars(cls, value):
        return blank_to_none(value)

    @field_validator("ontology_terms", "negated_ontology_terms", mode="before")
    @classmethod
    def none_to_empty(cls, value):
        return () if value is None else value


class MetadataRecord(FrozenModel):
    """Fields shared by subjects and samples."""

    record_type: ClassVar[str] = "record"

    id: str | None = None
    dataset_id: str | None = None
    name: str | None = None
    description: str | None = None
    bio_characteristics: tuple[BioCharacteristic, ...] = ()
    created: str | None = None
    updated: str | None = None
    location: GeoLocation | None = None
    attributes: dict[Any, Any] = Field(default_factory=dict)
    external_identifiers: tuple[ExternalIdentifier, ...] = ()

    @field_validator("id", "dataset_id", "name", "description", "created", "updated", "location", mode="before")
    @classmethod
    def blank_scalars(cls, value):
        return blank_to_none(value)

    @field_validator("created", "updated", mode="before")
    @classmethod
    def dates_to_iso(cls, value):
        # YAML loads unquoted dates and date-times as date/datetime objects
        if isinstance(value, (date, datetime)):
            return value.isoformat()
        return value

    @field_validator("bio_characteristics", "external_identifiers", mode="before")
    @classmethod
    def none_to_tuple(cls, value):
        return () if value is None else value

    @field_validator("attributes", mode="before")
    @classmethod
    def none_to_dict(cls, value):
        return {} if value is None else value

    def to_dict(self) -> dict[str, Any]:
        """Plain representation using the schema field names, attribute variants unwrapped."""
        from biometa.engine.attributes import attributes_to_python

        data = self.model_dump(mode="json", exclude={"attributes"}, exclude_none=True)
        data["record_type"] = self.record_type
        data["attributes"] = attributes_to_python(self.attributes)
        return data


class Subject(MetadataRecord):
    """An organism-level record ("Individual" in the source schema)."""

    record_type: ClassVar[str] = "subject"

    species: OntologyTerm | None = None
    sex: OntologyTerm | None = None

    @field_validator("species", "sex", mode="before")
    @classmethod
    def blank_terms(cls, value):
        return blank_to_none(value)


class Sample(MetadataRecord):
    """A unit of biological material derived from a subject ("Biosample" in the source schema)."""

    record_type: ClassVar[str] = "sample"

    subject_id: str | None = Field(None, validation_alias=AliasChoices("subject_id", "individual_id"))
    age_at_collection: AgeEncoding | None = Field(
        None, validation_alias=AliasChoices("age_at_collection", "individual_age_at_collection")
    )

    @field_validator("subject_id", "age_at_collection", mode="before")
    @classmethod
    def blank_references(cls, value):
        return blank_to_none(value)


RECORD_TYPES: dict[str, type[MetadataRecord]] = {
    "subject": Subject,
    "individual": Subject,
    "sample": Sample,
    "biosample": Sample,
}
