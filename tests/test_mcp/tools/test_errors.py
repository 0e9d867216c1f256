"""Tests for mcp/tools/errors.py: error response builders.

Covers:
- build_error_response() structure and format
- translate_sync_error() corrective action per error kind
"""

import mcp.types as types
import pytest

from dictionary_sync.errors import (
    DictionarySyncError,
    PersistenceReadError,
    StoreOperationError,
    StoreUnavailableError,
)
from dictionary_sync.mcp.tools.errors import (
    build_error_response,
    translate_sync_error,
)


def _get_error_text(result: types.CallToolResult) -> str:
    """Extract text from first content item with type narrowing for Pyright."""
    content = result.content[0]
    assert isinstance(content, types.TextContent)
    return content.text


class TestBuildErrorResponse:
    """Tests for build_error_response()."""

    def test_shape(self):
        result = build_error_response(
            "validation_error", "No word selected.", "Pass a word"
        )
        assert isinstance(result, types.CallToolResult)
        assert result.isError is True
        assert len(result.content) == 1

    def test_text_format(self):
        result = build_error_response("unknown_tool", "Unknown tool: x", "List")
        assert _get_error_text(result) == (
            "Error (unknown_tool): Unknown tool: x\n\nAction: List"
        )


class TestTranslateSyncError:
    """Tests for translate_sync_error()."""

    @pytest.mark.parametrize(
        "error, kind, action",
        [
            (
                StoreUnavailableError("no store"),
                "store_unavailable",
                "--store",
            ),
            (
                StoreOperationError("denied"),
                "store_operation_failed",
                "writable",
            ),
            (
                PersistenceReadError("bad json"),
                "persistence_read_failed",
                "invalid JSON",
            ),
        ],
    )
    def test_kind_and_action(self, error, kind, action):
        text = _get_error_text(translate_sync_error(error))
        assert text.startswith(f"Error ({kind}): ")
        assert action in text

    def test_base_error_without_kind(self):
        text = _get_error_text(translate_sync_error(DictionarySyncError("?")))
        assert text.startswith("Error (server_error): ?")
        assert "Retry later." in text
