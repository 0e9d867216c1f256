"""Build a ready-to-run ``SyncOrchestrator`` from all configuration sources.

Shared by the command line and the MCP server so both resolve settings the
same way: CLI args > env vars (.env loaded first) > YAML config > defaults.
"""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from .config import Config, load_config
from .config_loader import discover_config_files, load_hierarchical_config
from .config_schema import UnifiedConfig, build_config
from .errors import ConfigError
from .sync.orchestrator import SyncOrchestrator
from .sync.resolver import create_conflict_surface, create_threshold_surface
from .sync.state import SettingsStore
from .sync.store import create_word_store

logger = logging.getLogger(__name__)

# No human is attached to an unattended process; both fall back to the
# non-destructive answer.
UNATTENDED_CONFLICT_STRATEGY = "keep-all"
UNATTENDED_THRESHOLD_STRATEGY = "merge"


def resolve_config(
    overrides: dict[str, Any] | None = None,
) -> tuple[Config, UnifiedConfig, list[str]]:
    """Merge every configuration source into a validated ``Config``.

    Args:
        overrides: CLI values (``config``, ``settings_file``, ``store``,
            ``store_path``, ``conflict_strategy``, ``threshold_strategy``,
            ``debug``).  ``config`` names an explicit YAML file.

    Returns:
        ``(config, yaml_config, sources)`` where *sources* describes what
        contributed, for startup messages.

    Raises:
        ConfigError: If a file cannot be read or a value is invalid.
    """
    overrides = overrides or {}

    # .env first so ${VAR} interpolation in YAML can use its values
    load_dotenv()

    sources: list[str] = []
    explicit = overrides.get("config")
    if explicit:
        config_files = [Path(explicit).expanduser()]
        if not config_files[0].exists():
            raise ConfigError(f"Config file not found: {config_files[0]}")
    else:
        config_files = discover_config_files()

    try:
        raw = load_hierarchical_config(config_files) if config_files else {}
        yaml_config = build_config(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid config file {config_files[0]}: {e}") from e
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read config file: {e}") from e

    if config_files:
        sources.append(f"config file: {config_files[0]}")

    config = load_config(
        settings_file=overrides.get("settings_file"),
        store=overrides.get("store"),
        store_path=overrides.get("store_path"),
        conflict_strategy=overrides.get("conflict_strategy"),
        threshold_strategy=overrides.get("threshold_strategy"),
        debug=overrides.get("debug", False),
        yaml_config=yaml_config,
    )

    if any(v for k, v in overrides.items() if k != "config"):
        sources.append("CLI arguments")
    sources.append("environment variables")
    logger.info("Configuration loaded from: %s", ", ".join(sources))
    return config, yaml_config, sources


def build_orchestrator(
    config: Config,
    *,
    notifier: Callable[[str], None] | None = None,
    unattended: bool = False,
) -> SyncOrchestrator:
    """Wire stores and surfaces for *config* into a ``SyncOrchestrator``.

    Args:
        config: Resolved configuration.
        notifier: Receives user-facing notices.
        unattended: Replace ``interactive`` strategies with their
            non-destructive unattended counterparts.
    """
    conflict_strategy = config.conflict_strategy
    threshold_strategy = config.threshold_strategy
    if unattended:
        if conflict_strategy == "interactive":
            conflict_strategy = UNATTENDED_CONFLICT_STRATEGY
        if threshold_strategy == "interactive":
            threshold_strategy = UNATTENDED_THRESHOLD_STRATEGY

    orchestrator = SyncOrchestrator(
        word_store=create_word_store(config.store, config.store_path),
        settings_store=SettingsStore(config.settings_file),
        conflict_surface=create_conflict_surface(conflict_strategy),
        threshold_surface=create_threshold_surface(threshold_strategy),
        external_changes=config.external_changes,
        notifier=notifier,
        shutdown_timeout=config.shutdown_timeout,
    )
    logger.debug(
        "Orchestrator ready: settings=%s store=%s conflicts=%s threshold=%s",
        config.settings_file,
        config.store,
        conflict_strategy,
        threshold_strategy,
    )
    return orchestrator
