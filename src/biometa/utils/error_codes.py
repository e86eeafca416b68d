"""Machine-readable issue kinds for metadata validation.

This module provides:
- ErrorCategory: High-level categorization of issues
- ErrorCode: Specific issue kinds, one per validation failure type
- ERROR_MESSAGE_TEMPLATES: Templates for generating human-readable messages
"""

import logging
from enum import Enum


class ErrorCategory(str, Enum):
    """High-level categorization of issues for grouping and filtering."""

    STRUCTURE = "structure"  # Required fields, record identity
    REFERENCE = "reference"  # Cross-record references
    FORMAT = "format"  # Encoded values (ISO-8601 strings)
    ONTOLOGY = "ontology"  # Ontology term pairs and lookups
    CONTENT = "content"  # Attribute maps, age encodings
    DUPLICATE = "duplicate"  # Uniqueness violations


class ErrorCode(str, Enum):
    """Machine-readable issue kinds.

    The value of each member is the kind name reported in issue output.
    """

    # Structure
    MISSING_REQUIRED_FIELD = "MissingRequiredField"

    # Duplicates
    DUPLICATE_IDENTIFIER = "DuplicateIdentifier"
    DUPLICATE_EXTERNAL_IDENTIFIER = "DuplicateExternalIdentifier"

    # References
    INVALID_IDENTIFIER_REFERENCE = "InvalidIdentifierReference"

    # Format
    MALFORMED_TEMPORAL_VALUE = "MalformedTemporalValue"

    # Ontology
    MALFORMED_ONTOLOGY_TERM = "MalformedOntologyTerm"
    CONTRADICTORY_ONTOLOGY_TERMS = "ContradictoryOntologyTerms"
    UNRECOGNIZED_ONTOLOGY_TERM = "UnrecognizedOntologyTerm"
    ONTOLOGY_EXISTENCE_UNKNOWN = "OntologyExistenceUnknown"
    ONTOLOGY_LABEL_MISMATCH = "OntologyLabelMismatch"

    # Content
    AMBIGUOUS_AGE_ENCODING = "AmbiguousAgeEncoding"
    AGE_DOWNGRADED = "AgeDowngraded"
    UNSUPPORTED_ATTRIBUTE_VALUE = "UnsupportedAttributeValue"

    @property
    def category(self) -> ErrorCategory:
        """Return the category for this error code."""
        return _ERROR_CATEGORY_MAP.get(self, ErrorCategory.CONTENT)

    @property
    def default_level(self) -> int:
        """Logging level used when an issue of this kind is created without one."""
        return _DEFAULT_LEVELS.get(self, logging.ERROR)


_ERROR_CATEGORY_MAP = {
    ErrorCode.MISSING_REQUIRED_FIELD: ErrorCategory.STRUCTURE,
    ErrorCode.DUPLICATE_IDENTIFIER: ErrorCategory.DUPLICATE,
    ErrorCode.DUPLICATE_EXTERNAL_IDENTIFIER: ErrorCategory.DUPLICATE,
    ErrorCode.INVALID_IDENTIFIER_REFERENCE: ErrorCategory.REFERENCE,
    ErrorCode.MALFORMED_TEMPORAL_VALUE: ErrorCategory.FORMAT,
    ErrorCode.MALFORMED_ONTOLOGY_TERM: ErrorCategory.ONTOLOGY,
    ErrorCode.CONTRADICTORY_ONTOLOGY_TERMS: ErrorCategory.ONTOLOGY,
    ErrorCode.UNRECOGNIZED_ONTOLOGY_TERM: ErrorCategory.ONTOLOGY,
    ErrorCode.ONTOLOGY_EXISTENCE_UNKNOWN: ErrorCategory.ONTOLOGY,
    ErrorCode.ONTOLOGY_LABEL_MISMATCH: ErrorCategory.ONTOLOGY,
    ErrorCode.AMBIGUOUS_AGE_ENCODING: ErrorCategory.CONTENT,
    ErrorCode.AGE_DOWNGRADED: ErrorCategory.CONTENT,
    ErrorCode.UNSUPPORTED_ATTRIBUTE_VALUE: ErrorCategory.CONTENT,
}

# Kinds that are advisory unless a caller explicitly raises their level
_DEFAULT_LEVELS = {
    ErrorCode.AGE_DOWNGRADED: logging.WARNING,
    ErrorCode.DUPLICATE_EXTERNAL_IDENTIFIER: logging.WARNING,
    ErrorCode.UNRECOGNIZED_ONTOLOGY_TERM: logging.WARNING,
    ErrorCode.ONTOLOGY_EXISTENCE_UNKNOWN: logging.WARNING,
    ErrorCode.ONTOLOGY_LABEL_MISMATCH: logging.WARNING,
}


# Use {field} placeholders for context variables
ERROR_MESSAGE_TEMPLATES: dict[ErrorCode, str] = {
    ErrorCode.MISSING_REQUIRED_FIELD: "Required field '{field_path}' is empty in record '{record_id}'",
    ErrorCode.DUPLICATE_IDENTIFIER: "Identifier '{value}' is shared by {count} records in this batch",
    ErrorCode.DUPLICATE_EXTERNAL_IDENTIFIER: "External identifier '{value}' is repeated in '{field_path}'",
    ErrorCode.INVALID_IDENTIFIER_REFERENCE: (
        "Record '{record_id}' references unknown {target} '{value}' in '{field_path}'"
    ),
    ErrorCode.MALFORMED_TEMPORAL_VALUE: "Value '{value}' in '{field_path}' is not a valid ISO-8601 {expected}",
    ErrorCode.MALFORMED_ONTOLOGY_TERM: "Ontology term in '{field_path}' is malformed: {reason}",
    ErrorCode.CONTRADICTORY_ONTOLOGY_TERMS: "Term '{value}' is both asserted and negated in '{field_path}'",
    ErrorCode.UNRECOGNIZED_ONTOLOGY_TERM: "Term '{value}' in '{field_path}' is not known to the vocabulary",
    ErrorCode.ONTOLOGY_EXISTENCE_UNKNOWN: "Could not determine whether term '{value}' exists: {reason}",
    ErrorCode.ONTOLOGY_LABEL_MISMATCH: (
        "Label '{label}' of term '{value}' in '{field_path}' differs from the vocabulary label '{canonical_label}'"
    ),
    ErrorCode.AMBIGUOUS_AGE_ENCODING: (
        "Age '{value}' in '{field_path}' is malformed while an age class is also present; "
        "the age class is not used in its place"
    ),
    ErrorCode.AGE_DOWNGRADED: "No quantitative age in '{field_path}'; age class '{value}' is used instead",
    ErrorCode.UNSUPPORTED_ATTRIBUTE_VALUE: "Attribute at '{field_path}' is not supported: {reason}",
}


def format_error_message(error_code: ErrorCode, **context) -> str:
    """Format an error message from a code and context variables.

    Args:
        error_code: The ErrorCode enum value
        **context: Variables to substitute into the message template

    Returns:
        Formatted error message string
    """
    template = ERROR_MESSAGE_TEMPLATES.get(error_code, "{message}")
    try:
        filtered_context = {k: v for k, v in context.items() if v is not None}
        return template.format(**filtered_context)
    except KeyError:
        return template
