"""MCP server for the synced personal dictionary using stdio transport.

The periodic sync runs for the lifetime of the server.  No human is
attached to stdio, so conflicts and bulk removals are decided by the
configured unattended strategies (keep-all and merge by default).

Transport: stdio
Protocol: JSON-RPC 2.0 over MCP
"""

import argparse
import asyncio
import logging
import sys

import mcp.server.stdio
import mcp.types as types
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from .. import __version__
from ..logger import DEFAULT_MCP_LOG_FILE, setup_logging
from ..sync.orchestrator import SyncOrchestrator
from ..sync.store import STORE_KINDS
from .lifespan import server_lifespan
from .tools import ALL_SPECS, ToolRegistry, build_error_response
from .tools.registry import ToolSpec

logger = logging.getLogger(__name__)

server = Server("dictionary-sync")

# Initialized in main()
_orchestrator: SyncOrchestrator | None = None
_registry: ToolRegistry | None = None


# ---------------------------------------------------------------------------
# Ping tool
# ---------------------------------------------------------------------------


async def _handle_ping(
    orchestrator: SyncOrchestrator, args: dict
) -> types.CallToolResult:
    """Handle ping tool -- report that the sync service is running."""
    return types.CallToolResult(
        content=[
            types.TextContent(
                type="text",
                text=(
                    f"Dictionary sync server running (version {__version__}). "
                    f"{len(orchestrator.words)} words, "
                    f"phase: {orchestrator.phase.value}."
                ),
            )
        ]
    )


PING_SPEC = ToolSpec(
    tool=types.Tool(
        name="ping",
        description="Check that the dictionary sync server is running",
        inputSchema={
            "type": "object",
            "properties": {},
            "required": [],
        },
    ),
    mutating=False,
    handler=_handle_ping,
)


# ---------------------------------------------------------------------------
# Global accessors
# ---------------------------------------------------------------------------


def get_orchestrator() -> SyncOrchestrator:
    """Get the global SyncOrchestrator instance.

    Raises:
        RuntimeError: If the orchestrator is not initialized
    """
    if _orchestrator is None:
        raise RuntimeError(
            "SyncOrchestrator not initialized. Server lifespan not started."
        )
    return _orchestrator


def set_orchestrator(orchestrator: SyncOrchestrator | None) -> None:
    global _orchestrator
    _orchestrator = orchestrator


def get_registry() -> ToolRegistry:
    """Get the global ToolRegistry instance.

    Raises:
        RuntimeError: If registry is not initialized
    """
    if _registry is None:
        raise RuntimeError("ToolRegistry not initialized.")
    return _registry


def set_registry(registry: ToolRegistry | None) -> None:
    global _registry
    _registry = registry


# ---------------------------------------------------------------------------
# MCP protocol handlers
# ---------------------------------------------------------------------------


@server.list_tools()
async def handle_list_tools() -> list[types.Tool]:
    """List available dictionary tools."""
    return get_registry().list_tools()


@server.call_tool()
async def handle_call_tool(
    name: str, arguments: dict | None
) -> types.CallToolResult:
    """Handle tool execution via ToolRegistry dispatch.

    Args:
        name: The name of the tool to execute.
        arguments: Tool arguments (optional).

    Returns:
        CallToolResult with tool output content and optional isError flag.
    """
    orchestrator = get_orchestrator()
    try:
        return await get_registry().call_tool(name, arguments, orchestrator)
    except ValueError as e:
        return build_error_response(
            "unknown_tool",
            str(e),
            "Use list_tools to see available tools.",
        )


# ---------------------------------------------------------------------------
# Server lifecycle
# ---------------------------------------------------------------------------


async def main(config_overrides: dict | None = None):
    """Run the MCP server with stdio transport.

    Args:
        config_overrides: Optional dict with config values to override
            (config, settings_file, store, store_path, log_file,
            read_only, debug).
    """
    overrides = dict(config_overrides or {})
    log_file = overrides.pop("log_file", None)
    read_only = overrides.pop("read_only", False)

    # Must run before stdio_server so nothing reaches stdout
    setup_logging(
        mode="mcp", debug=overrides.get("debug", False), log_file=log_file
    )

    all_specs = [PING_SPEC] + ALL_SPECS
    registry = ToolRegistry(all_specs, read_only=read_only)
    logger.info(
        "Registered %d tools (of %d total)",
        registry.tool_count(),
        len(all_specs),
    )
    if read_only:
        print(
            f"Read-only mode ({registry.tool_count()} of "
            f"{len(all_specs)} tools enabled)",
            file=sys.stderr,
        )
    set_registry(registry)

    # set_orchestrator() is called here rather than in the lifespan so the
    # right module global is set when this file runs as __main__.
    async with server_lifespan(config_overrides=overrides) as ctx:
        set_orchestrator(ctx["orchestrator"])
        try:
            async with mcp.server.stdio.stdio_server() as (
                read_stream,
                write_stream,
            ):
                init_options = InitializationOptions(
                    server_name="dictionary-sync",
                    server_version=__version__,
                    capabilities=server.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={},
                    ),
                )
                await server.run(read_stream, write_stream, init_options)
        finally:
            set_orchestrator(None)
            set_registry(None)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dictionary-sync-mcp",
        description="Dictionary Sync MCP Server - synced personal dictionary over MCP",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with default config (from .env or .dictionary_sync/config.yml)
  dictionary-sync-mcp

  # Share the list through a synced folder
  dictionary-sync-mcp --settings-file ~/Sync/dictionary.json

  # Expose only list, status and ping
  dictionary-sync-mcp --read-only

Note: This server uses stdio transport for JSON-RPC communication with MCP clients.
All user-facing messages are written to stderr.
        """,
    )
    parser.add_argument("--config", help="YAML config file (default: discovered)")
    parser.add_argument(
        "--settings-file",
        help="Shared settings file (overrides DICTIONARY_SYNC_SETTINGS_FILE)",
    )
    parser.add_argument(
        "--store", choices=STORE_KINDS, help="Native dictionary adapter"
    )
    parser.add_argument(
        "--store-path", help="Personal dictionary file for hunspell/aspell"
    )
    parser.add_argument(
        "--read-only",
        action="store_true",
        help="Only register tools that do not change the dictionary",
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--log-file",
        default=DEFAULT_MCP_LOG_FILE,
        help=f"Log file path (default: {DEFAULT_MCP_LOG_FILE})",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"dictionary-sync-mcp version {__version__}",
    )
    return parser


def run(argv: list[str] | None = None) -> None:
    """Entry point that handles errors gracefully and parses CLI arguments."""
    args = build_parser().parse_args(argv)

    config_overrides = {
        key: value
        for key, value in (
            ("config", args.config),
            ("settings_file", args.settings_file),
            ("store", args.store),
            ("store_path", args.store_path),
            ("log_file", args.log_file),
            ("read_only", args.read_only),
            ("debug", args.debug),
        )
        if value
    }

    overridden = [
        k for k in config_overrides if k not in ("log_file", "read_only")
    ]
    if overridden:
        print(
            f"Config overrides from CLI: {', '.join(overridden)}",
            file=sys.stderr,
        )

    try:
        asyncio.run(main(config_overrides=config_overrides))
    except RuntimeError:
        # Error already printed to stderr by lifespan manager
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    run()
