"""Structured error responses for MCP tool handlers.

Each error carries a corrective action so an agent can recover without a
human.
"""

import mcp.types as types

from ...errors import DictionarySyncError, ErrorKind

_ACTIONS: dict[str, str] = {
    ErrorKind.STORE_UNAVAILABLE.value: (
        "Configure a native dictionary with --store and --store-path."
    ),
    ErrorKind.STORE_OPERATION_FAILED.value: (
        "Check that the personal dictionary file is writable, then retry."
    ),
    ErrorKind.PERSISTENCE_READ_FAILED.value: (
        "Check the settings file for invalid JSON or fix its permissions."
    ),
    ErrorKind.PERSISTENCE_WRITE_FAILED.value: (
        "Check that the settings file directory is writable, then retry."
    ),
}


def build_error_response(
    error_type: str, message: str, corrective_action: str
) -> types.CallToolResult:
    """Build a structured error response with corrective action.

    Args:
        error_type: Error category (validation_error, unknown_tool,
            server_error, or an ``ErrorKind`` value).
        message: Human-readable error description.
        corrective_action: What the agent can do about it.

    Returns:
        CallToolResult with isError=True
    """
    error_text = f"Error ({error_type}): {message}\n\nAction: {corrective_action}"

    return types.CallToolResult(
        content=[types.TextContent(type="text", text=error_text)],
        isError=True,
    )


def translate_sync_error(error: DictionarySyncError) -> types.CallToolResult:
    """Map a ``DictionarySyncError`` to an error response for its kind."""
    kind = error.kind.value if error.kind else "server_error"
    return build_error_response(
        kind,
        str(error),
        _ACTIONS.get(kind, "Retry later."),
    )
