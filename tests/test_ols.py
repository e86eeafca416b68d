from unittest import mock

import pytest
import requests

from biometa.engine.ontology import TermResolution
from biometa.ols.ols import OlsClient


def ols_response(docs, status_code=200):
    response = mock.Mock()
    response.status_code = status_code
    response.json.return_value = {"response": {"numFound": len(docs), "docs": docs}}
    if status_code != 200:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status_code} error")
    return response


class TestOlsClient:
    """OLS search client with a mocked HTTP session."""

    @pytest.fixture
    def ols_client(self):
        client = OlsClient(ols_base="https://ols.example.org/ols4/", timeout=1.5, retry_count=2)
        client.session = mock.Mock()
        return client

    def test_base_url(self, ols_client):
        assert ols_client.ontology_search == "https://ols.example.org/ols4/api/search"

    def test_search_parameters(self, ols_client):
        ols_client.session.get.return_value = ols_response([])
        ols_client.ols_search("HP:0002099", query_fields=["obo_id"], ontology="HP", exact=True)
        args, kwargs = ols_client.session.get.call_args
        assert args == ("https://ols.example.org/ols4/api/search",)
        assert kwargs["timeout"] == 1.5
        params = kwargs["params"]
        assert params["q"] == "HP:0002099"
        assert params["queryFields"] == "obo_id"
        assert params["ontology"] == "hp"
        assert params["exact"] == "on"

    def test_resolve_known_term(self, ols_client):
        ols_client.session.get.return_value = ols_response(
            [
                {"obo_id": "HP:0002099", "label": "Asthma (imported)", "is_defining_ontology": False},
                {"obo_id": "HP:0002099", "label": "Asthma", "is_defining_ontology": True},
            ]
        )
        assert ols_client.resolve("HP:0002099") == TermResolution(known=True, canonical_label="Asthma")

    def test_resolve_ignores_other_ids(self, ols_client):
        ols_client.session.get.return_value = ols_response([{"obo_id": "HP:00020990", "label": "Other"}])
        assert ols_client.resolve("HP:0002099") == TermResolution(known=False)

    def test_resolve_unknown_term(self, ols_client):
        ols_client.session.get.return_value = ols_response([])
        assert ols_client.resolve("HP:9999999").known is False

    def test_connection_errors_are_retried(self, ols_client):
        ols_client.session.get.side_effect = [
            requests.exceptions.ConnectionError("reset"),
            ols_response([{"obo_id": "HP:0002099", "label": "Asthma"}]),
        ]
        assert ols_client.resolve("HP:0002099").known
        assert ols_client.session.get.call_count == 2

    def test_retries_are_bounded(self, ols_client):
        ols_client.session.get.side_effect = requests.exceptions.ConnectionError("down")
        with pytest.raises(requests.exceptions.ConnectionError):
            ols_client.resolve("HP:0002099")
        assert ols_client.session.get.call_count == 3

    def test_http_errors_are_raised(self, ols_client):
        ols_client.session.get.return_value = ols_response([], status_code=503)
        with pytest.raises(requests.exceptions.HTTPError):
            ols_client.resolve("HP:0002099")
