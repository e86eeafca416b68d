"""
OLS API wrapper used as a vocabulary for ontology term existence checks.

Only the search endpoint is used: a term identifier is looked up by its OBO id with
an exact match, and the label of the defining ontology is taken as the canonical one.
"""

import logging
from typing import Any

import requests

from biometa.config import config
from biometa.engine.ontology import TermResolution

OLS = "https://www.ebi.ac.uk/ols4"

__all__ = ["OlsClient", "OLS"]

logger = logging.getLogger(__name__)

API_SEARCH = "/api/search"


def _concat_str_or_list(input_str: str | list[str]) -> str:
    """
    Always returns a comma joined list, whether the input is a
    single string or an iterable
    """
    if isinstance(input_str, str):
        return input_str

    return ",".join(input_str)


class OlsClient:
    def __init__(
        self,
        ols_base: str | None = None,
        timeout: float | None = None,
        retry_count: int | None = None,
        rows: int | None = None,
    ):
        """
        The Ols client is a wrapper around the OLS search API.

        Parameters:
            ols_base (str): The base URL of the OLS API
            timeout (float): Seconds to wait for one HTTP response
            retry_count (int): Retries after a connection error
            rows (int): Page size of search requests
        """
        self.base = (ols_base if ols_base else config.vocabulary.ols_base or OLS).rstrip("/")
        self.session = requests.Session()
        self.timeout = timeout if timeout is not None else config.engine.vocabulary_timeout_ms / 1000
        self.retry_count = retry_count if retry_count is not None else config.vocabulary.api_retry_count
        self.rows = rows if rows is not None else config.vocabulary.api_rows_per_page

        self.ontology_search = self.base + API_SEARCH

    def _perform_ols_search(self, params: dict[str, Any], name: str, retry_num: int = 0) -> list[dict[str, Any]]:
        """
        Perform the OLS search and return the documents found.

        Connection errors are retried up to ``retry_count`` times; any other failure
        (HTTP error status, malformed response) is raised to the caller.
        """
        try:
            req = self.session.get(self.ontology_search, params=params, timeout=self.timeout)
        except requests.exceptions.ConnectionError as e:
            if retry_num < self.retry_count:
                logger.info(
                    "Connection error during OLS search of %s, retrying (%s/%s)", name, retry_num + 1, self.retry_count
                )
                return self._perform_ols_search(params, name, retry_num + 1)
            logger.error("Max retry attempts reached. OLS search of %s failed: %s", name, e)
            raise

        logger.debug("Request to OLS search API term %s, status code %s", name, req.status_code)
        if req.status_code != 200:
            logger.error("OLS search term %s error, status code %s", name, req.status_code)
            req.raise_for_status()

        response_json = req.json()
        if response_json["response"]["numFound"] == 0:
            logger.debug("OLS search returned empty response for %s", name)
            return []
        return response_json["response"]["docs"]

    def ols_search(
        self,
        name: str,
        query_fields=None,
        ontology: str | None = None,
        field_list=None,
        exact: bool = False,
        bytype: str = "class",
    ) -> list[dict[str, Any]]:
        """
        Search a term in the OLS API

        Parameters:
            name (str): The text to search for
            query_fields (list): A list of fields to search
            ontology (str): The name of the ontology
            field_list (list): A list of fields to return
            exact (bool): Whether to search for an exact match
            bytype (str): The type of entity to search for

        Returns:
            list: The documents found
        """
        params = {
            "q": name,
            "type": _concat_str_or_list(bytype),
            "rows": self.rows,
            "start": 0,
            "exact": "on" if exact else "off",
        }
        if ontology:
            params["ontology"] = _concat_str_or_list(ontology.lower())
        if query_fields:
            params["queryFields"] = _concat_str_or_list(query_fields)
        if field_list:
            params["fieldList"] = _concat_str_or_list(field_list)

        return self._perform_ols_search(params, name=name)

    def find_by_id(self, term_id: str) -> list[dict[str, Any]]:
        """Return the OLS documents whose OBO id is ``term_id`` (case-insensitive)."""
        docs = self.ols_search(
            term_id,
            query_fields=["obo_id"],
            field_list=["obo_id", "label", "ontology_name", "is_defining_ontology"],
            exact=True,
        )
        return [doc for doc in docs if str(doc.get("obo_id", "")).lower() == term_id.lower()]

    def resolve(self, term_id: str) -> TermResolution:
        docs = self.find_by_id(term_id)
        if not docs:
            return TermResolution(known=False)
        defining = [doc for doc in docs if doc.get("is_defining_ontology")]
        best = (defining or docs)[0]
        return TermResolution(known=True, canonical_label=best.get("label") or "")
