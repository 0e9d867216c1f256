"""Core helpers shared between the CLI and the MCP server."""

from .async_utils import run_detached, run_sync, run_with_timeout

__all__ = ["run_detached", "run_sync", "run_with_timeout"]
