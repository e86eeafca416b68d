"""Central configuration for biometa.

This module provides default configuration values used throughout the package.
Users can override these by modifying the values after import, or by loading a
YAML file with :func:`load_config`.
"""

import os
from dataclasses import dataclass, field, fields

import yaml

from biometa.utils.exceptions import AppConfigException


@dataclass
class EngineConfig:
    """Configuration for a validation pass."""

    # Promote duplicate external identifiers from warnings to errors
    strict_duplicates: bool = False

    # Treat empty created/updated timestamps as missing required fields
    require_timestamps: bool = False

    # Upper bound for a single vocabulary lookup
    vocabulary_timeout_ms: int = 2000

    # Worker threads for per-record validation; 1 validates inline
    max_workers: int = 4

    # Return completed results when a batch is cancelled instead of raising
    best_effort: bool = False


@dataclass
class VocabularyConfig:
    """Configuration for the optional ontology vocabulary lookup."""

    # One of "none", "ols" or "index"
    backend: str = "none"

    ols_base: str = "https://www.ebi.ac.uk/ols4"

    # Term index file (parquet or tsv) used by the "index" backend
    index_path: str | None = None

    # API retry settings
    api_retry_count: int = 3
    api_rows_per_page: int = 10


@dataclass
class Config:
    """Main configuration class combining all settings."""

    engine: EngineConfig = field(default_factory=EngineConfig)
    vocabulary: VocabularyConfig = field(default_factory=VocabularyConfig)


VOCABULARY_BACKENDS = ("none", "ols", "index")

# Global configuration instance
# Users can modify this to customize behavior:
#   from biometa.config import config
#   config.engine.strict_duplicates = True
config = Config()


def _section(section_cls, data, section_name: str):
    if data is None:
        return section_cls()
    if not isinstance(data, dict):
        raise AppConfigException(f"Configuration section '{section_name}' must be a mapping")
    known = {f.name for f in fields(section_cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise AppConfigException(f"Unknown option(s) in section '{section_name}': {', '.join(unknown)}")
    return section_cls(**data)


def config_from_dict(data: dict) -> Config:
    """Build a Config from a plain mapping with optional ``engine`` and ``vocabulary`` sections."""
    if data is None:
        return Config()
    if not isinstance(data, dict):
        raise AppConfigException("Configuration must be a mapping")
    unknown = sorted(set(data) - {"engine", "vocabulary"})
    if unknown:
        raise AppConfigException(f"Unknown configuration section(s): {', '.join(unknown)}")

    result = Config(
        engine=_section(EngineConfig, data.get("engine"), "engine"),
        vocabulary=_section(VocabularyConfig, data.get("vocabulary"), "vocabulary"),
    )
    if result.vocabulary.backend not in VOCABULARY_BACKENDS:
        raise AppConfigException(
            f"Unknown vocabulary backend '{result.vocabulary.backend}'. Use one of: {', '.join(VOCABULARY_BACKENDS)}"
        )
    for section, name in (
        (result.engine, "vocabulary_timeout_ms"),
        (result.engine, "max_workers"),
        (result.vocabulary, "api_retry_count"),
        (result.vocabulary, "api_rows_per_page"),
    ):
        value = getattr(section, name)
        if isinstance(value, bool) or not isinstance(value, int):
            raise AppConfigException(f"{name} must be an integer, got {value!r}")
    if result.engine.vocabulary_timeout_ms <= 0:
        raise AppConfigException("vocabulary_timeout_ms must be a positive number of milliseconds")
    if result.engine.max_workers < 1:
        raise AppConfigException("max_workers must be at least 1")
    return result


def load_config(path: str) -> Config:
    """Load a YAML configuration file."""
    if not os.path.exists(path):
        raise AppConfigException(f"Configuration file not found: {path}")
    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as ex:
            raise AppConfigException(f"Configuration file {path} is not valid YAML: {ex}") from ex
    return config_from_dict(data or {})
