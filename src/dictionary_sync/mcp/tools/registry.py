"""ToolSpec and ToolRegistry for MCP tool dispatch.

- ToolSpec: immutable record linking a Tool definition, whether the tool
  changes the dictionary, and an async handler
  ``(orchestrator, args) -> CallToolResult``.
- ToolRegistry: drops mutating specs in read-only mode, then provides
  list_tools() and call_tool() dispatch with error translation.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import mcp.types as types

from ...errors import DictionarySyncError
from ...sync.orchestrator import SyncOrchestrator

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ToolSpec:
    """Immutable specification for a single MCP tool.

    Attributes:
        tool: The MCP Tool definition (name, description, inputSchema).
        mutating: Whether the tool changes the word list or the stores.
        handler: Async handler with signature (orchestrator, args) -> CallToolResult.
    """

    tool: types.Tool
    mutating: bool
    handler: Callable[
        [SyncOrchestrator, dict], Awaitable[types.CallToolResult]
    ]


class ToolRegistry:
    """Registry of ToolSpecs.

    With ``read_only=True`` only non-mutating tools are registered.
    """

    def __init__(self, specs: list[ToolSpec], read_only: bool = False):
        self._specs: dict[str, ToolSpec] = {}
        for spec in specs:
            if read_only and spec.mutating:
                continue
            self._specs[spec.tool.name] = spec

    def list_tools(self) -> list[types.Tool]:
        """Return list of types.Tool for all registered specs."""
        return [spec.tool for spec in self._specs.values()]

    def tool_count(self) -> int:
        """Return number of registered tools."""
        return len(self._specs)

    async def call_tool(
        self,
        name: str,
        arguments: dict | None,
        orchestrator: SyncOrchestrator,
    ) -> types.CallToolResult:
        """Dispatch tool call to registered handler.

        Translates dictionary errors, validation errors and unexpected
        exceptions into structured CallToolResult responses.

        Args:
            name: Tool name to invoke.
            arguments: Tool arguments (may be None).
            orchestrator: The running SyncOrchestrator.

        Returns:
            CallToolResult from the handler.

        Raises:
            ValueError: If tool name is not registered (unknown or filtered out).
        """
        from .errors import build_error_response, translate_sync_error

        spec = self._specs.get(name)
        if spec is None:
            raise ValueError(f"Unknown tool: {name}")
        args = arguments or {}
        try:
            return await spec.handler(orchestrator, args)
        except DictionarySyncError as e:
            logger.warning("Dictionary error in %s: %s", name, e)
            return translate_sync_error(e)
        except ValueError as e:
            return build_error_response(
                "validation_error",
                str(e),
                "Check parameter values and retry.",
            )
        except Exception as e:
            logger.exception("Unexpected error in tool %s", name)
            return build_error_response(
                "server_error",
                str(e),
                "Check the server log file and retry.",
            )
