import tempfile
from pathlib import Path

import pytest

from biometa.metadata.models import Sample, Subject

TESTS_DIR = Path(__file__).parent


@pytest.fixture(scope="function")
def on_tmpdir(monkeypatch):
    with tempfile.TemporaryDirectory() as tmp_path:
        monkeypatch.chdir(tmp_path)
        yield Path(tmp_path)


@pytest.fixture
def data_dir():
    return TESTS_DIR / "data"


@pytest.fixture
def subject():
    return Subject.model_validate(
        {
            "id": "S1",
            "dataset_id": "D1",
            "name": "patient 1",
            "species": {"term_id": "NCBITaxon:9606", "term": "Homo sapiens"},
            "sex": {"term_id": "PATO:0000383", "term": "female"},
            "created": "2017-03-14T10:22:00Z",
        }
    )


@pytest.fixture
def sample():
    return Sample.model_validate(
        {
            "id": "B1",
            "dataset_id": "D1",
            "individual_id": "S1",
            "individual_age_at_collection": {"age": "P42Y3M"},
            "attributes": {"tissue": "liver", "volume": 2.5},
        }
    )
