import json

import pandas as pd

from biometa.parse_metadata import _build_config, _create_vocabulary, cli
from .helpers import run_and_check_status_code, write_document


class TestValidateCommand:
    """Command line validation of metadata documents."""

    def test_valid_batch(self, data_dir):
        result = run_and_check_status_code(cli, ["validate", str(data_dir / "batch_valid.yaml")])
        assert "Everything seems to be fine" in result.output

    def test_batch_with_errors(self, data_dir, on_tmpdir):
        result = run_and_check_status_code(
            cli,
            ["validate", str(data_dir / "batch.json"), "--out", "issues.tsv", "--normalized-out", "normalized.json"],
            1,
        )
        assert "ERROR: [BS-002]" in result.output
        assert "There were validation errors in 1 of 3 records." in result.output

        issues = pd.read_csv(on_tmpdir / "issues.tsv", sep="\t")
        assert set(issues["kind"]) == {"DuplicateExternalIdentifier", "InvalidIdentifierReference", "AgeDowngraded"}

        normalized = json.loads((on_tmpdir / "normalized.json").read_text())
        assert [record["id"] for record in normalized] == ["IND-001", "BS-001"]
        assert len(normalized[0]["external_identifiers"]) == 2
        assert normalized[0]["attributes"]["labs"][0]["unit"] == "mmol/L"
        assert normalized[1]["record_type"] == "sample"

    def test_only_warnings(self, on_tmpdir):
        path = write_document(
            on_tmpdir / "doc.json",
            {
                "subjects": [
                    {
                        "id": "S1",
                        "dataset_id": "D1",
                        "external_identifiers": [{"ns": "HGNC", "val": "1"}, {"ns": "HGNC", "val": "1"}],
                    }
                ]
            },
        )
        result = run_and_check_status_code(cli, ["validate", path])
        assert "There were only warnings" in result.output

        run_and_check_status_code(cli, ["validate", path, "--strict-duplicates"], 1)

    def test_records_across_files_share_one_scope(self, on_tmpdir):
        subjects = write_document(on_tmpdir / "subjects.json", {"subjects": [{"id": "S1", "dataset_id": "D1"}]})
        samples = write_document(
            on_tmpdir / "samples.json", {"samples": [{"id": "B1", "dataset_id": "D1", "subject_id": "S1"}]}
        )
        run_and_check_status_code(cli, ["validate", samples], 1)
        run_and_check_status_code(cli, ["validate", subjects, samples, "--workers", "2"])

    def test_require_timestamps(self, data_dir):
        run_and_check_status_code(cli, ["validate", str(data_dir / "batch_valid.yaml"), "--require-timestamps"], 1)

    def test_known_datasets(self, data_dir):
        path = str(data_dir / "batch_valid.yaml")
        run_and_check_status_code(cli, ["validate", path, "--known-datasets", "D1,D2"])
        run_and_check_status_code(cli, ["validate", path, "--known-datasets", "D2"], 1)

    def test_config_file(self, data_dir, on_tmpdir):
        (on_tmpdir / "biometa.yaml").write_text("engine:\n  require_timestamps: true\n")
        run_and_check_status_code(
            cli, ["validate", str(data_dir / "batch_valid.yaml"), "--config", "biometa.yaml"], 1
        )

    def test_invalid_config_file(self, data_dir, on_tmpdir):
        (on_tmpdir / "biometa.yaml").write_text("engine:\n  unknown_option: 1\n")
        result = run_and_check_status_code(
            cli, ["validate", str(data_dir / "batch_valid.yaml"), "--config", "biometa.yaml"], 1
        )
        assert "unknown_option" in result.output

    def test_non_numeric_config_value(self, data_dir, on_tmpdir):
        (on_tmpdir / "biometa.yaml").write_text("engine:\n  vocabulary_timeout_ms: fast\n")
        result = run_and_check_status_code(
            cli, ["validate", str(data_dir / "batch_valid.yaml"), "--config", "biometa.yaml"], 1
        )
        assert "vocabulary_timeout_ms must be an integer" in result.output

    def test_unreadable_input(self, on_tmpdir):
        (on_tmpdir / "broken.json").write_text("{")
        result = run_and_check_status_code(cli, ["validate", "broken.json"], 1)
        assert "could not be decoded" in result.output

    def test_index_vocabulary(self, data_dir, on_tmpdir):
        run_and_check_status_code(cli, ["build-index", "--ontology", str(data_dir / "sample.obo"), "--index", "hp.tsv"])
        result = run_and_check_status_code(
            cli, ["validate", str(data_dir / "batch.json"), "--index-file", "hp.tsv"], 1
        )
        # NCBITaxon and PATO terms are not in the index
        assert "Term 'NCBITaxon:9606' in 'species' is not known to the vocabulary" in result.output
        assert "Term 'HP:0003581'" not in result.output

    def test_missing_input(self):
        run_and_check_status_code(cli, ["validate"], 2)


class TestCheckTermCommand:
    def test_well_formed(self):
        result = run_and_check_status_code(cli, ["check-term", "NCBITaxon:9606", "Homo sapiens"])
        assert "is a valid term" in result.output

    def test_malformed(self):
        result = run_and_check_status_code(cli, ["check-term", "NCBITaxon9606", "Homo sapiens"], 1)
        assert "ERROR" in result.output
        assert "is malformed" in result.output

    def test_missing_label(self):
        run_and_check_status_code(cli, ["check-term", "NCBITaxon:9606"], 1)

    def test_with_index(self, data_dir, on_tmpdir):
        run_and_check_status_code(cli, ["build-index", "--ontology", str(data_dir / "sample.obo"), "--index", "hp.tsv"])
        result = run_and_check_status_code(cli, ["check-term", "HP:0002099", "Wheeze", "--index-file", "hp.tsv"])
        assert "WARNING" in result.output
        assert "Asthma" in result.output


class TestBuildIndexCommand:
    def test_build_index(self, data_dir, on_tmpdir):
        result = run_and_check_status_code(
            cli, ["build-index", "-in", str(data_dir / "sample.obo"), "-out", "hp.parquet"]
        )
        assert "hp.parquet" in result.output
        assert (on_tmpdir / "hp.parquet").exists()

    def test_not_obo(self, on_tmpdir):
        (on_tmpdir / "terms.owl").write_text("<rdf/>")
        run_and_check_status_code(cli, ["build-index", "-in", "terms.owl"], 1)


class TestVocabularyOptions:
    def test_timeout_option_reaches_ols_client(self):
        cfg = _build_config(None, "ols", None, 300)
        assert _create_vocabulary(cfg).timeout == 0.3
