#!/usr/bin/env python3

import copy
import dataclasses
import json
import logging
import sys

import click

from biometa import __version__
from biometa.config import VOCABULARY_BACKENDS, Config, config, load_config
from biometa.engine.ontology import OntologyTermValidator
from biometa.engine.registry import EntityRegistry
from biometa.metadata.ingest import read_records
from biometa.metadata.models import OntologyTerm
from biometa.ols import build_ontology_index, create_vocabulary
from biometa.utils.exceptions import AppConfigException, IngestionError

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

SEVERITY_COLORS = {"error": "red", "warning": "yellow", "info": "green"}


@click.version_option(
    version=__version__,
    package_name="biometa-validator",
    message="%(package)s %(version)s",
)
@click.group(context_settings=CONTEXT_SETTINGS)
def cli():
    """
    This tool validates subject and sample metadata records and writes normalized copies of the valid ones.
    """


def _setup_logging(verbose: bool) -> None:
    if verbose:
        logging.getLogger("biometa").setLevel(logging.DEBUG)


def _build_config(config_file: str | None, vocabulary: str | None, index_file: str | None, timeout_ms: int | None):
    """Load the configuration file (or the defaults) and apply the vocabulary options."""
    try:
        result = load_config(config_file) if config_file else copy.deepcopy(config)
    except AppConfigException as ex:
        raise click.ClickException(str(ex.value)) from ex

    if index_file and vocabulary is None:
        vocabulary = "index"
    if vocabulary is not None:
        result.vocabulary = dataclasses.replace(result.vocabulary, backend=vocabulary)
    if index_file:
        result.vocabulary = dataclasses.replace(result.vocabulary, index_path=index_file)
    if timeout_ms is not None:
        if timeout_ms <= 0:
            raise click.BadParameter("must be a positive number of milliseconds", param_hint="--vocabulary-timeout-ms")
        result.engine = dataclasses.replace(result.engine, vocabulary_timeout_ms=timeout_ms)
    return result


def _create_vocabulary(cfg: Config):
    try:
        return create_vocabulary(cfg.vocabulary, timeout_ms=cfg.engine.vocabulary_timeout_ms)
    except AppConfigException as ex:
        raise click.ClickException(str(ex.value)) from ex


def _print_issue(issue) -> None:
    location = f"[{issue.record_id}] " if issue.record_id else ""
    click.secho(f"{issue.severity.upper()}: {location}{issue.message}", fg=SEVERITY_COLORS[issue.severity])


@click.command("validate", short_help="Validate subject and sample records")
@click.argument("input_files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--config", "config_file", help="YAML configuration file", type=click.Path(exists=True))
@click.option("--strict-duplicates", is_flag=True, help="Report repeated external identifiers as errors")
@click.option("--require-timestamps", is_flag=True, help="Report empty created/updated timestamps as errors")
@click.option(
    "--vocabulary",
    type=click.Choice(VOCABULARY_BACKENDS, case_sensitive=False),
    default=None,
    help="Where to check that ontology terms exist (default: none, structural checks only)",
)
@click.option("--index-file", help="Term index (parquet or tsv) used by the index vocabulary", default=None)
@click.option("--vocabulary-timeout-ms", type=int, default=None, help="Upper bound of a single term lookup")
@click.option("--workers", "-w", type=click.IntRange(min=1), default=None, help="Number of validation threads")
@click.option(
    "--known-datasets",
    "-d",
    help="Comma-separated dataset identifiers; when given, dataset references are checked against them",
    default=None,
)
@click.option("--out", "-o", help="Output file to write the issues to, tab separated", default=None)
@click.option("--normalized-out", "-n", help="Output JSON file for the normalized valid records", default=None)
@click.option("--verbose/--quiet", "-v/-q", help="Output debug information.", default=False)
def validate(
    input_files: tuple[str, ...],
    config_file: str | None,
    strict_duplicates: bool,
    require_timestamps: bool,
    vocabulary: str | None,
    index_file: str | None,
    vocabulary_timeout_ms: int | None,
    workers: int | None,
    known_datasets: str | None,
    out: str | None,
    normalized_out: str | None,
    verbose: bool,
):
    """
    Validate one or more JSON or YAML documents as a single batch. Subjects and samples of all
    documents share one identifier scope, so a sample may reference a subject defined in another file.
    The exit status is 1 when any record has an error; warnings alone do not fail the run.
    """
    _setup_logging(verbose)
    cfg = _build_config(config_file, vocabulary, index_file, vocabulary_timeout_ms)
    if strict_duplicates:
        cfg.engine.strict_duplicates = True
    if require_timestamps:
        cfg.engine.require_timestamps = True
    if workers is not None:
        cfg.engine.max_workers = workers

    try:
        records = read_records(input_files)
    except IngestionError as ex:
        raise click.ClickException(str(ex.value)) from ex

    datasets = None
    if known_datasets is not None:
        datasets = [dataset.strip() for dataset in known_datasets.split(",") if dataset.strip()]

    with EntityRegistry(cfg.engine, _create_vocabulary(cfg), datasets) as registry:
        registry.add_all(records)
        report = registry.validate()

    manifest = report.manifest
    if out is not None:
        manifest.to_dataframe().to_csv(out, sep="\t", index=False)

    for issue in manifest:
        _print_issue(issue)

    if normalized_out is not None:
        with open(normalized_out, "w", encoding="utf-8") as f:
            json.dump([record.to_dict() for record in report.normalized_records], f, indent=2)
        click.secho(f"{len(report.normalized_records)} normalized records written to {normalized_out}", fg="blue")

    if not manifest:
        click.secho("Everything seems to be fine. Well done.", fg="green")
    elif manifest.is_valid:
        click.secho("Most seems to be fine. There were only warnings.", fg="yellow")
    else:
        invalid = sum(1 for result in report.results if not result.valid)
        click.secho(f"There were validation errors in {invalid} of {len(report.results)} records.", fg="red")

    sys.exit(not manifest.is_valid)


@click.command("check-term", short_help="Check a single ontology term")
@click.argument("term_id")
@click.argument("label", required=False, default="")
@click.option("--config", "config_file", help="YAML configuration file", type=click.Path(exists=True))
@click.option(
    "--vocabulary",
    type=click.Choice(VOCABULARY_BACKENDS, case_sensitive=False),
    default=None,
    help="Where to check that the term exists",
)
@click.option("--index-file", help="Term index (parquet or tsv) used by the index vocabulary", default=None)
@click.option("--vocabulary-timeout-ms", type=int, default=None, help="Upper bound of the lookup")
def check_term(
    term_id: str,
    label: str,
    config_file: str | None,
    vocabulary: str | None,
    index_file: str | None,
    vocabulary_timeout_ms: int | None,
):
    """
    Check that TERM_ID (e.g. NCBITaxon:9606) with LABEL is a well-formed term pair and, when a
    vocabulary is selected, that the vocabulary knows it under that label.
    """
    cfg = _build_config(config_file, vocabulary, index_file, vocabulary_timeout_ms)
    validator = OntologyTermValidator(vocabulary=_create_vocabulary(cfg), timeout_ms=cfg.engine.vocabulary_timeout_ms)
    try:
        issues = validator.validate(OntologyTerm(term_id=term_id, term=label), field_path="term")
    finally:
        validator.close()

    for issue in issues:
        _print_issue(issue)
    if not issues:
        click.secho(f"{term_id} ({label}) is a valid term.", fg="green")
    sys.exit(any(issue.is_error for issue in issues))


@click.command("build-index", short_help="Convert an OBO ontology file to a term index file")
@click.option("--ontology", "-in", help="ontology file in OBO format", required=True, type=click.Path(exists=True))
@click.option("--index", "-out", help="Output file, parquet or tsv", default=None)
@click.option("--ontology_name", "-name", help="ontology name, read from the OBO header when omitted")
def build_index(ontology: str, index: str | None, ontology_name: str | None = None):
    try:
        output_file = build_ontology_index(ontology, index, ontology_name)
    except ValueError as ex:
        raise click.ClickException(str(ex)) from ex
    click.secho(f"Term index written to {output_file}", fg="green")


cli.add_command(validate)
cli.add_command(check_term)
cli.add_command(build_index)


def main():
    logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        cli()
    except SystemExit as e:
        if e.code != 0:
            raise


if __name__ == "__main__":
    main()
