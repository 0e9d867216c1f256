"""Configuration schema for dictionary_sync.

Pydantic models for the YAML config with dedicated sections for the
dictionary locations, sync policy and logging.

Usage:
    from dictionary_sync.config_schema import build_config

    raw = load_hierarchical_config()
    unified = build_config(raw)
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

DEFAULT_SETTINGS_FILE = "~/.config/dictionary_sync/data.json"


class DictionaryConfig(BaseModel):
    """Where the word lists live."""

    settings_file: str = Field(
        default=DEFAULT_SETTINGS_FILE,
        description="Shared settings file holding the synced word list",
    )
    store: Literal["none", "hunspell", "aspell", "memory"] = Field(
        default="none", description="Native dictionary adapter"
    )
    store_path: str | None = Field(
        default=None,
        description="Personal dictionary file for hunspell/aspell",
    )

    model_config = {"frozen": True}


class SyncConfig(BaseModel):
    """How sync cycles make decisions."""

    conflict_strategy: Literal["interactive", "keep-all", "discard-all"] = (
        Field(default="interactive", description="Conflict surface")
    )
    threshold_strategy: Literal["interactive", "merge", "remove"] = Field(
        default="interactive", description="Bulk-removal surface"
    )
    external_changes: Literal["merge", "replace"] = Field(
        default="merge",
        description="How a settings file edited by others is applied",
    )
    shutdown_timeout: float = Field(
        default=5.0,
        gt=0,
        le=300,
        description="Seconds the final sync may take on shutdown",
    )

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


class UnifiedConfig(BaseModel):
    """Top-level configuration.

    Every section has defaults, so ``UnifiedConfig()`` is always valid.
    """

    dictionary: DictionaryConfig = Field(default_factory=DictionaryConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


def build_config(raw_data: dict | None) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from ``load_hierarchical_config()`` output.

    Missing sections get defaults.

    Raises:
        pydantic.ValidationError: If a value is invalid.
    """
    if not raw_data:
        return UnifiedConfig()
    return UnifiedConfig(**raw_data)
