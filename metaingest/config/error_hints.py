"""Error hints for configuration validation errors.

Provides user-friendly hints with actionable remediation steps
for common validation errors.
"""

from typing import Final


# Pydantic error types to hints
ERROR_HINTS: Final[dict[str, str]] = {
    "missing": "This field is required. Please add it to your configuration.",
    "extra_forbidden": "Unknown field. Check for typos in the field name.",
    "enum": "Check the allowed values in the documentation.",
    "int_type": "This field must be an integer (whole number).",
    "int_parsing": "This field must be an integer (whole number).",
    "float_type": "This field must be a number.",
    "float_parsing": "This field must be a number.",
    "string_type": "This field must be a text string.",
    "bool_type": "This field must be true or false.",
    "bool_parsing": "This field must be true or false.",
    "list_type": "This field must be a list/array.",
    "dict_type": "This field must be an object/mapping.",
    "model_type": "This field must be an object/mapping.",
    "greater_than": "The value is too small. Check the minimum allowed.",
    "greater_than_equal": "The value is too small. Check the minimum allowed.",
    "less_than_equal": "The value is too large. Check the maximum allowed.",
    "string_too_short": "The text is too short. Check minimum length requirement.",
    "string_too_long": "The text is too long. Check maximum length requirement.",
    "string_pattern_mismatch": "The format is invalid. Check the expected pattern.",
    "value_error": "Check the value format.",
    "file_not_found": "The file does not exist. Check the file path.",
    "yaml_parse_error": "Invalid YAML syntax. Check for proper indentation and formatting.",
    "file_read_error": "The file could not be read. Check that the path is a file and is readable.",
    "encoding_error": "The file is not valid UTF-8. Re-save it with UTF-8 encoding.",
}

# Field-specific hints for more context
FIELD_HINTS: Final[dict[str, str]] = {
    "id": "Use lowercase letters, numbers, hyphens, or underscores (e.g., 'mysql-prod-1').",
    "type": "Must be a known source type such as mysql, postgres, hive, mongodb, redis, kafka or s3.",
    "category": "Must be one of: RDBMS, DataWarehouse, DocumentDB, KeyValue, MessageQueue, ObjectStorage, and agree with type.",
    "endpoint": "Use host, host:port with a numeric port, or a URL (e.g., 'db.internal:3306').",
    "pattern_type": "Must be 'glob' or 'regex'.",
    "level": "Must be one of: table, column, full.",
    "max_time_seconds": "Must be 0 (no limit) or a positive number of seconds.",
    "max_backoff": "Must be greater than or equal to initial_backoff.",
    "jitter": "Must be between 0.0 and 1.0.",
}


def get_error_hint(error_type: str, field_name: str | None = None) -> str:
    """Get a user-friendly hint for a validation error.

    Args:
        error_type: The Pydantic error type (e.g., 'missing', 'enum').
        field_name: Optional field path for field-specific hints.

    Returns:
        A user-friendly hint string.
    """
    if field_name:
        # 'connectors.0.endpoint' -> 'endpoint'
        simple_field = field_name.split(".")[-1]
        if simple_field in FIELD_HINTS:
            return FIELD_HINTS[simple_field]

    return ERROR_HINTS.get(
        error_type, "Check the configuration documentation for valid values."
    )


def format_validation_error(
    location: str,
    message: str,
    error_type: str,
    *,
    include_hint: bool = True,
) -> str:
    """Format a validation error with optional hint.

    Args:
        location: The error location (e.g., 'connectors.0.endpoint').
        message: The original error message.
        error_type: The error type.
        include_hint: Whether to include a hint.

    Returns:
        Formatted error string.
    """
    base = f"{location}: {message}"
    if include_hint:
        hint = get_error_hint(error_type, location)
        return f"{base}\n    Hint: {hint}"
    return base
