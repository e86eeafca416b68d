"""Offline term index: a parquet or TSV table of ontology terms used as a vocabulary."""

import logging
import os.path

import pandas as pd

from biometa.engine.ontology import TermResolution

logger = logging.getLogger(__name__)

INDEX_COLUMNS = ["accession", "label", "ontology"]


def read_obo_file(ontology_file: str, ontology_name=None) -> list[dict[str, str]]:
    """
    Reads an OBO file and returns its terms

    Parameters:
        ontology_file (str): The name of the ontology file
        ontology_name (str): The name of the ontology, read from the header when None

    Returns:
        list: A list of dictionaries with accession, label and ontology; obsolete terms are skipped
    """

    def split_terms(content_str: str) -> list[str]:
        # stanzas other than [Term] (e.g. [Typedef]) end a term block
        blocks = content_str.split("[Term]")[1:]
        return [block.split("\n[")[0] for block in blocks]

    def get_ontology_name(content_str: str) -> str | None:
        header = content_str.split("[Term]")[0]
        for line in header.split("\n"):
            if line.startswith("ontology:"):
                return line.split("ontology:")[1].strip()
        return None

    def parse_term(term: str, ontology_name_param: str | None) -> dict[str, str]:
        term_info = {}
        for line in term.strip().split("\n"):
            line = line.strip()
            if line.startswith("id:"):
                term_info["accession"] = line.split("id:", 1)[1].strip()
                term_info["ontology"] = ontology_name_param
            elif line.startswith("name:"):
                term_info["label"] = line.split("name:", 1)[1].strip()
            elif line.startswith("is_obsolete:") and line.split(":", 1)[1].strip() == "true":
                term_info["obsolete"] = True
        return term_info

    with open(ontology_file, encoding="utf-8") as file:
        content = file.read()

    ontology_name = get_ontology_name(content) if ontology_name is None else ontology_name
    terms = [parse_term(term, ontology_name) for term in split_terms(content)]
    return [term for term in terms if not term.pop("obsolete", False)]


def build_ontology_index(ontology_file: str, output_file: str | None = None, ontology_name: str | None = None) -> str:
    """
    Builds an index from an ontology file in the OBO format.

    The output is a parquet file (or a TSV file when ``output_file`` ends in ``.tsv``)
    with three columns: the accession (e.g. ``HP:0000118``), the label and the ontology.
    Labels keep their case; lookups compare them case-insensitively.

    Parameters:
        ontology_file (str): The name of the ontology file
        output_file (str): The name of the output file
        ontology_name (str): The name of the ontology

    Returns:
        str: The path of the index written
    """
    if ontology_file is None or not os.path.isfile(ontology_file):
        raise ValueError(f"File {ontology_file} is None or does not exist")
    if not ontology_file.lower().endswith(".obo"):
        raise ValueError(f"Only OBO files can be indexed: {ontology_file}")

    if output_file is None or not output_file.lower().endswith((".parquet", ".tsv")):
        output_file = os.path.splitext(ontology_file)[0] + ".parquet"

    logger.info("Building index of %s", ontology_file)
    terms = [term for term in read_obo_file(ontology_file, ontology_name=ontology_name) if "label" in term]
    df = pd.DataFrame(terms, columns=INDEX_COLUMNS)

    for column in INDEX_COLUMNS:
        df[column] = df[column].astype("string")
    df["ontology"] = df["ontology"].str.lower()

    df = df.dropna(subset=["label", "accession"])
    if df.empty:
        logger.warning("No terms found in %s", ontology_file)
        raise ValueError(f"No terms found in {ontology_file}")
    logger.info("Terms found in %s: %s", ontology_file, len(df))

    if output_file.lower().endswith(".tsv"):
        df.to_csv(output_file, sep="\t", index=False)
    else:
        df.to_parquet(output_file, engine="fastparquet", compression="gzip", index=False)
    logger.info("Index has finished, output file: %s", output_file)
    return output_file


def read_index(path: str) -> pd.DataFrame:
    """Load a term index written by :func:`build_ontology_index`."""
    if not os.path.isfile(path):
        raise ValueError(f"Term index {path} does not exist")
    if path.lower().endswith(".tsv"):
        df = pd.read_csv(path, sep="\t", dtype=str, keep_default_na=False)
    else:
        df = pd.read_parquet(path, engine="fastparquet")
    missing = [column for column in INDEX_COLUMNS if column not in df.columns]
    if missing:
        raise ValueError(f"Term index {path} lacks column(s): {', '.join(missing)}")
    return df


class TermIndex:
    """A vocabulary backed by one or more term index files, held in memory."""

    def __init__(self, *paths: str):
        frames = [read_index(path) for path in paths]
        if frames:
            df = pd.concat(frames, ignore_index=True)
        else:
            df = pd.DataFrame(columns=INDEX_COLUMNS)
        df["key"] = df["accession"].astype(str).str.lower()
        df["label"] = df["label"].astype(str)
        # first occurrence wins when several files define the same accession
        df = df.drop_duplicates(subset=["key"], keep="first")
        self._labels: dict[str, str] = dict(zip(df["key"], df["label"]))
        logger.info("Loaded %s terms into the term index", len(self._labels))

    def __len__(self) -> int:
        return len(self._labels)

    def __contains__(self, term_id: object) -> bool:
        return isinstance(term_id, str) and term_id.lower() in self._labels

    def resolve(self, term_id: str) -> TermResolution:
        label = self._labels.get(term_id.lower())
        if label is None:
            return TermResolution(known=False)
        return TermResolution(known=True, canonical_label=label)
