"""Actionable hints for collector errors.

Maps error codes to remediation steps operators can act on.
"""

from typing import Final

from metaingest.collectors.errors import ErrorCode, as_collector_error


ERROR_CODE_HINTS: Final[dict[ErrorCode, str]] = {
    ErrorCode.AUTH: "Check credentials (user/password) for this connector.",
    ErrorCode.NETWORK: "Network problem talking to the source. Retry later or check connectivity to the endpoint.",
    ErrorCode.TIMEOUT: "The source was too slow to respond. Retry later or raise connection_timeout.",
    ErrorCode.NOT_FOUND: "The catalog, schema or table does not exist. Check the name and matching rules.",
    ErrorCode.UNSUPPORTED_FEATURE: "This source type does not support the operation. Disable it in collect options.",
    ErrorCode.INVALID_CONFIG: "Fix the connector configuration and reload it.",
    ErrorCode.QUERY: "The metadata query failed on the source. Check server logs and user privileges.",
    ErrorCode.PARSE: "The source returned data in an unexpected format. Check the server version.",
    ErrorCode.CONNECTION_CLOSED: "The collector was used after close(). Reconnect before collecting.",
    ErrorCode.PERMISSION_DENIED: "Grant the configured user read access to the metadata of this resource.",
    ErrorCode.CANCELLED: "The operation was cancelled by the caller.",
    ErrorCode.DEADLINE_EXCEEDED: "The overall deadline elapsed. Retry later or allow more time.",
    ErrorCode.INFERENCE: "Schema inference failed. Check that sampled documents are well formed.",
}

DEFAULT_HINT: Final[str] = "Check the collector logs for details."


def get_error_hint(code: ErrorCode | str | None) -> str:
    """Get a remediation hint for an error code.

    Args:
        code: Error code (enum member or its value).

    Returns:
        A user-friendly hint string.
    """
    if code is None:
        return DEFAULT_HINT
    try:
        return ERROR_CODE_HINTS[ErrorCode(code)]
    except ValueError:
        return DEFAULT_HINT


def format_collector_error(
    err: BaseException,
    *,
    include_hint: bool = True,
) -> str:
    """Format an error with an optional hint.

    Args:
        err: The error to format.
        include_hint: Whether to include a hint.

    Returns:
        Formatted error string.
    """
    found = as_collector_error(err)
    base = str(err)
    if not include_hint:
        return base
    hint = get_error_hint(found.code if found is not None else None)
    return f"{base}\n    Hint: {hint}"
