"""MCP tool handlers for the synced dictionary.

Handlers wrap the running ``SyncOrchestrator`` and return text plus
structured content, or structured error responses.
"""

from .dictionary import DICTIONARY_SPECS
from .errors import build_error_response, translate_sync_error
from .registry import ToolRegistry, ToolSpec

ALL_SPECS: list[ToolSpec] = list(DICTIONARY_SPECS)

__all__ = [
    "ALL_SPECS",
    "DICTIONARY_SPECS",
    "ToolRegistry",
    "ToolSpec",
    "build_error_response",
    "translate_sync_error",
]
