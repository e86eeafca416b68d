import pytest

from biometa.engine.references import IdentifierIndex, ReferenceResolver
from biometa.metadata.models import Sample, Subject
from biometa.utils.error_codes import ErrorCode


@pytest.fixture
def index():
    records = [
        Subject(id="S1", dataset_id="D1"),
        Subject(id="S2", dataset_id="D1"),
        Subject(id="S2", dataset_id="D1"),
        Sample(id="B1", dataset_id="D1", subject_id="S1"),
        Subject(dataset_id="D1"),
    ]
    return IdentifierIndex.build(records)


class TestIdentifierIndex:
    def test_build(self, index):
        assert "S1" in index
        assert "B1" in index
        assert "S9" not in index
        assert index.count("S2") == 2
        assert index.duplicates == frozenset({"S2"})
        assert index.is_subject("S1")
        assert not index.is_subject("B1")
        assert index.known_datasets is None

    def test_snapshot_is_read_only(self, index):
        with pytest.raises(TypeError):
            index.records["S3"] = frozenset({"subject"})
        with pytest.raises(AttributeError):
            index.known_datasets = frozenset()


class TestReferenceResolver:
    def setup_method(self):
        self.resolver = ReferenceResolver()

    def test_valid_references(self, index):
        assert self.resolver.resolve(Sample(id="B2", dataset_id="D1", subject_id="S1"), index) == []

    def test_unlinked_sample_is_allowed(self, index):
        assert self.resolver.resolve(Sample(id="B2", dataset_id="D1"), index) == []

    def test_missing_dataset(self, index):
        errors = self.resolver.resolve(Subject(id="S3", dataset_id=""), index)
        assert [e.error_code for e in errors] == [ErrorCode.MISSING_REQUIRED_FIELD]
        assert errors[0].field_path == "dataset_id"

    def test_unknown_subject(self, index):
        errors = self.resolver.resolve(Sample(id="B2", dataset_id="D1", subject_id="S9"), index)
        assert len(errors) == 1
        assert errors[0].error_code == ErrorCode.INVALID_IDENTIFIER_REFERENCE
        assert errors[0].field_path == "subject_id"
        assert "S9" in errors[0].message
        assert "B2" in errors[0].message

    def test_subject_reference_must_point_to_a_subject(self, index):
        errors = self.resolver.resolve(Sample(id="B2", dataset_id="D1", subject_id="B1"), index)
        assert [e.error_code for e in errors] == [ErrorCode.INVALID_IDENTIFIER_REFERENCE]

    def test_datasets_checked_only_when_known(self):
        records = [Subject(id="S1", dataset_id="D2")]
        assert self.resolver.resolve(records[0], IdentifierIndex.build(records)) == []
        errors = self.resolver.resolve(records[0], IdentifierIndex.build(records, known_datasets=["D1"]))
        assert [e.error_code for e in errors] == [ErrorCode.INVALID_IDENTIFIER_REFERENCE]
        assert errors[0].context["target"] == "dataset"
