"""MCP tool handlers for the synced dictionary.

Defines:

- ``dictionary_add_selection`` -- add the selected text as a word.
- ``dictionary_remove_word`` -- remove a word.
- ``dictionary_list`` -- list or search the word list.
- ``dictionary_sync`` -- run one sync cycle now.
- ``dictionary_status`` -- sync state summary.
"""

from __future__ import annotations

import logging
from typing import Any

import mcp.types as types

from ...sync.models import SyncTrigger
from ...sync.orchestrator import SyncOrchestrator
from ...sync.reporter import (
    format_status,
    format_sync_report,
    format_word_list,
    report_to_json,
)
from ...sync.words import normalize_word
from .errors import build_error_response
from .registry import ToolSpec

logger = logging.getLogger(__name__)


def _text_result(
    text: str, structured: dict[str, Any] | None = None
) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        structuredContent=structured,
    )


def _no_word(param: str) -> types.CallToolResult:
    return build_error_response(
        "validation_error",
        "No word selected.",
        f"Pass a non-blank word in the '{param}' parameter.",
    )


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


async def _handle_add_selection(
    orchestrator: SyncOrchestrator, args: dict
) -> types.CallToolResult:
    word = normalize_word(args.get("text"))
    if word is None:
        return _no_word("text")

    if word in orchestrator.words:
        text = f"'{word}' is already in your dictionary."
        added = False
    else:
        added = await orchestrator.add_word(word) is not None
        text = f"'{word}' added to dictionary."

    return _text_result(
        text,
        {"word": word, "added": added, "total": len(orchestrator.words)},
    )


async def _handle_remove_word(
    orchestrator: SyncOrchestrator, args: dict
) -> types.CallToolResult:
    word = normalize_word(args.get("word"))
    if word is None:
        return _no_word("word")

    removed = await orchestrator.remove_word(word)
    if removed:
        text = f"'{word}' removed from dictionary."
    else:
        text = f"'{word}' is not in your dictionary."
    return _text_result(
        text,
        {"word": word, "removed": removed, "total": len(orchestrator.words)},
    )


async def _handle_list(
    orchestrator: SyncOrchestrator, args: dict
) -> types.CallToolResult:
    query = args.get("filter")
    matches = orchestrator.search(query)
    return _text_result(
        format_word_list(orchestrator.words, query),
        {"words": matches, "total": len(orchestrator.words)},
    )


async def _handle_sync(
    orchestrator: SyncOrchestrator, args: dict
) -> types.CallToolResult:
    report = await orchestrator.sync(SyncTrigger.MANUAL)
    return _text_result(format_sync_report(report), report_to_json(report))


async def _handle_status(
    orchestrator: SyncOrchestrator, args: dict
) -> types.CallToolResult:
    status = orchestrator.status()
    return _text_result(format_status(status), status)


# ---------------------------------------------------------------------------
# Tool definitions
# ---------------------------------------------------------------------------

_NO_ARGS = {"type": "object", "properties": {}, "required": []}

DICTIONARY_SPECS: list[ToolSpec] = [
    ToolSpec(
        tool=types.Tool(
            name="dictionary_add_selection",
            description=(
                "Add the selected text to the synced personal dictionary and "
                "the native spell checker. Surrounding whitespace is trimmed."
            ),
            annotations=types.ToolAnnotations(
                readOnlyHint=False,
                destructiveHint=False,
                idempotentHint=True,
                openWorldHint=False,
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "text": {
                        "type": "string",
                        "description": "Selected text to add as one word",
                    },
                },
                "required": ["text"],
            },
        ),
        mutating=True,
        handler=_handle_add_selection,
    ),
    ToolSpec(
        tool=types.Tool(
            name="dictionary_remove_word",
            description=(
                "Remove a word from the synced personal dictionary and the "
                "native spell checker."
            ),
            annotations=types.ToolAnnotations(
                readOnlyHint=False,
                destructiveHint=True,
                idempotentHint=True,
                openWorldHint=False,
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "word": {
                        "type": "string",
                        "description": "Word to remove (exact match)",
                    },
                },
                "required": ["word"],
            },
        ),
        mutating=True,
        handler=_handle_remove_word,
    ),
    ToolSpec(
        tool=types.Tool(
            name="dictionary_list",
            description=(
                "List the words in the synced dictionary, optionally filtered "
                "by a case-insensitive substring."
            ),
            annotations=types.ToolAnnotations(
                readOnlyHint=True,
                destructiveHint=False,
                idempotentHint=True,
                openWorldHint=False,
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "filter": {
                        "type": "string",
                        "description": "Substring to search for",
                    },
                },
                "required": [],
            },
        ),
        mutating=False,
        handler=_handle_list,
    ),
    ToolSpec(
        tool=types.Tool(
            name="dictionary_sync",
            description=(
                "Run one three-way sync between the in-memory word list, the "
                "shared settings file and the native dictionary. Conflicts "
                "and bulk removals are decided by the server's unattended "
                "policy."
            ),
            annotations=types.ToolAnnotations(
                readOnlyHint=False,
                destructiveHint=True,
                idempotentHint=True,
                openWorldHint=True,
            ),
            inputSchema=_NO_ARGS,
        ),
        mutating=True,
        handler=_handle_sync,
    ),
    ToolSpec(
        tool=types.Tool(
            name="dictionary_status",
            description=(
                "Show sync state: word counts, unsynced changes, threshold, "
                "polling rate and the last sync result."
            ),
            annotations=types.ToolAnnotations(
                readOnlyHint=True,
                destructiveHint=False,
                idempotentHint=True,
                openWorldHint=False,
            ),
            inputSchema=_NO_ARGS,
        ),
        mutating=False,
        handler=_handle_status,
    ),
]
