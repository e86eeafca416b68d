import logging

from biometa.config import VocabularyConfig, config
from biometa.ols.index import TermIndex, build_ontology_index, read_obo_file
from biometa.ols.ols import OlsClient
from biometa.utils.exceptions import AppConfigException

__all__ = ["OlsClient", "TermIndex", "build_ontology_index", "create_vocabulary", "read_obo_file"]

logger = logging.getLogger(__name__)


def create_vocabulary(vocabulary_config: VocabularyConfig | None = None, timeout_ms: int | None = None):
    """Build the vocabulary selected by the configuration, None for the "none" backend.

    ``timeout_ms`` bounds each OLS request; the global engine setting is used when omitted.
    """
    vocabulary_config = vocabulary_config or config.vocabulary
    backend = vocabulary_config.backend
    if backend == "none":
        return None
    if backend == "ols":
        logger.info("Using the OLS API at %s as vocabulary", vocabulary_config.ols_base)
        return OlsClient(
            ols_base=vocabulary_config.ols_base,
            timeout=timeout_ms / 1000 if timeout_ms is not None else None,
            retry_count=vocabulary_config.api_retry_count,
            rows=vocabulary_config.api_rows_per_page,
        )
    if backend == "index":
        if not vocabulary_config.index_path:
            raise AppConfigException("The index vocabulary backend needs an index_path")
        try:
            return TermIndex(vocabulary_config.index_path)
        except ValueError as ex:
            raise AppConfigException(str(ex)) from ex
    raise AppConfigException(f"Unknown vocabulary backend '{backend}'")
