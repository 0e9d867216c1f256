"""Lifespan management for MCP server startup and shutdown."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from ..bootstrap import build_orchestrator, resolve_config

logger = logging.getLogger(__name__)


def _stderr_print(msg: str) -> None:
    """Print message to stderr for user feedback (safe in MCP mode)."""
    print(msg, file=sys.stderr, flush=True)


@asynccontextmanager
async def server_lifespan(
    config_overrides: dict[str, Any] | None = None,
) -> AsyncIterator[dict[str, Any]]:
    """
    Manage server startup and shutdown lifecycle.

    On startup:
    - Resolve configuration: CLI > env vars (.env loaded first) > YAML > defaults
    - Build the SyncOrchestrator with unattended decision surfaces
    - Run the startup sync and start the periodic poller

    On shutdown:
    - Stop the poller and run the bounded final sync

    Args:
        config_overrides: Optional dict with config values from CLI.

    Yields:
        Dict with 'orchestrator' key containing the running SyncOrchestrator

    Raises:
        RuntimeError: If configuration is invalid.
    """
    logger.info("MCP server starting...")
    _stderr_print("Dictionary Sync MCP Server starting...")

    try:
        config, _, sources = resolve_config(config_overrides)
        orchestrator = build_orchestrator(config, unattended=True)
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        _stderr_print(f"ERROR: Configuration error: {e}")
        raise RuntimeError(f"Configuration error: {e}") from e

    source_desc = ", ".join(sources)
    _stderr_print(f"  Configuration loaded from: {source_desc}")
    _stderr_print(f"  Settings file: {config.settings_file}")
    _stderr_print(f"  Native store: {config.store}")

    report = await orchestrator.start()
    logger.info("Startup sync: %s", report.outcome.value)
    _stderr_print(
        f"  Startup sync: {report.outcome.value}, "
        f"{len(orchestrator.words)} words"
    )
    _stderr_print("Server ready. Waiting for MCP client connection...")

    try:
        yield {"orchestrator": orchestrator}
    finally:
        logger.info("MCP server shutting down")
        await orchestrator.shutdown()
        _stderr_print("Dictionary Sync MCP Server shut down.")
