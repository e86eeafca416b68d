import pandas as pd
import pytest

from biometa.engine.ontology import OntologyTermValidator
from biometa.metadata.models import OntologyTerm
from biometa.ols.index import TermIndex, build_ontology_index, read_index, read_obo_file
from biometa.utils.error_codes import ErrorCode


class TestReadObo:
    def test_terms(self, data_dir):
        terms = read_obo_file(str(data_dir / "sample.obo"))
        assert terms == [
            {"accession": "HP:0000118", "ontology": "hp", "label": "Phenotypic abnormality"},
            {"accession": "HP:0002099", "ontology": "hp", "label": "Asthma"},
            {"accession": "HP:0003581", "ontology": "hp", "label": "Adult onset"},
        ]

    def test_ontology_name_override(self, data_dir):
        terms = read_obo_file(str(data_dir / "sample.obo"), ontology_name="HPO")
        assert {term["ontology"] for term in terms} == {"HPO"}


class TestBuildIndex:
    def test_parquet(self, data_dir, tmp_path):
        output = build_ontology_index(str(data_dir / "sample.obo"), str(tmp_path / "hp.parquet"))
        df = pd.read_parquet(output, engine="fastparquet")
        assert list(df.columns) == ["accession", "label", "ontology"]
        assert len(df) == 3

    def test_tsv(self, data_dir, tmp_path):
        output = build_ontology_index(str(data_dir / "sample.obo"), str(tmp_path / "hp.tsv"))
        df = read_index(output)
        assert set(df["accession"]) == {"HP:0000118", "HP:0002099", "HP:0003581"}
        assert set(df["ontology"]) == {"hp"}

    def test_default_output_name(self, data_dir, tmp_path):
        source = tmp_path / "sample.obo"
        source.write_text((data_dir / "sample.obo").read_text())
        assert build_ontology_index(str(source)) == str(tmp_path / "sample.parquet")

    def test_errors(self, tmp_path):
        with pytest.raises(ValueError):
            build_ontology_index(str(tmp_path / "missing.obo"))
        owl = tmp_path / "terms.owl"
        owl.write_text("<rdf/>")
        with pytest.raises(ValueError):
            build_ontology_index(str(owl))
        empty = tmp_path / "empty.obo"
        empty.write_text("format-version: 1.2\n")
        with pytest.raises(ValueError):
            build_ontology_index(str(empty))

    def test_index_missing_columns(self, tmp_path):
        path = tmp_path / "bad.tsv"
        path.write_text("id\tname\nHP:1\tx\n")
        with pytest.raises(ValueError):
            read_index(str(path))


class TestTermIndex:
    @pytest.fixture
    def index(self, data_dir, tmp_path):
        return TermIndex(build_ontology_index(str(data_dir / "sample.obo"), str(tmp_path / "hp.parquet")))

    def test_resolve(self, index):
        assert len(index) == 3
        assert "hp:0002099" in index
        resolution = index.resolve("HP:0002099")
        assert resolution.known
        assert resolution.canonical_label == "Asthma"
        assert not index.resolve("HP:0000001").known

    def test_as_vocabulary(self, index):
        validator = OntologyTermValidator(vocabulary=index)
        try:
            assert validator.validate(OntologyTerm(term_id="HP:0002099", term="asthma")) == []
            errors = validator.validate(OntologyTerm(term_id="HP:0002099", term="wheezing"))
            assert [e.error_code for e in errors] == [ErrorCode.ONTOLOGY_LABEL_MISMATCH]
            errors = validator.validate(OntologyTerm(term_id="HP:0000001", term="All"))
            assert [e.error_code for e in errors] == [ErrorCode.UNRECOGNIZED_ONTOLOGY_TERM]
        finally:
            validator.close()
