"""Runtime configuration for dictionary-sync.

Resolves where the shared settings file and the native dictionary live and
how unattended decisions are made, from CLI args, environment variables,
.env files and the YAML config.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    DICTIONARY_SYNC_SETTINGS_FILE: Shared settings file (JSON)
    DICTIONARY_SYNC_STORE: Native dictionary adapter (none, hunspell, aspell, memory)
    DICTIONARY_SYNC_STORE_PATH: Personal dictionary file for hunspell/aspell
    DICTIONARY_SYNC_CONFLICT_STRATEGY: interactive, keep-all or discard-all
    DICTIONARY_SYNC_THRESHOLD_STRATEGY: interactive, merge or remove
    DICTIONARY_SYNC_EXTERNAL_CHANGES: merge or replace
    DICTIONARY_SYNC_SHUTDOWN_TIMEOUT: Seconds allowed for the final sync (default: 5)
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .config_schema import DEFAULT_SETTINGS_FILE, UnifiedConfig
from .errors import ConfigError
from .sync.orchestrator import EXTERNAL_CHANGE_MODES
from .sync.resolver import CONFLICT_STRATEGIES, THRESHOLD_STRATEGIES
from .sync.store import STORE_KINDS

logger = logging.getLogger(__name__)


@dataclass
class Config:
    settings_file: Path
    store: str = "none"
    store_path: Path | None = None
    conflict_strategy: str = "interactive"
    threshold_strategy: str = "interactive"
    external_changes: str = "merge"
    shutdown_timeout: float = 5.0
    debug: bool = False


def _choice(value: str, valid: tuple[str, ...], name: str, env: str) -> str:
    value = value.strip().lower()
    if value not in valid:
        raise ConfigError(
            f"Invalid {name} '{value}': must be one of {', '.join(valid)}. "
            f"Check {env} or the config file."
        )
    return value


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ConfigError if invalid.

    Args:
        config: Config instance to validate.

    Raises:
        ConfigError: If a choice is unknown, a path is missing or the
            timeout is out of range.
    """
    config.store = _choice(
        config.store, STORE_KINDS, "store", "DICTIONARY_SYNC_STORE"
    )
    config.conflict_strategy = _choice(
        config.conflict_strategy,
        CONFLICT_STRATEGIES,
        "conflict strategy",
        "DICTIONARY_SYNC_CONFLICT_STRATEGY",
    )
    config.threshold_strategy = _choice(
        config.threshold_strategy,
        THRESHOLD_STRATEGIES,
        "threshold strategy",
        "DICTIONARY_SYNC_THRESHOLD_STRATEGY",
    )
    config.external_changes = _choice(
        config.external_changes,
        EXTERNAL_CHANGE_MODES,
        "external changes mode",
        "DICTIONARY_SYNC_EXTERNAL_CHANGES",
    )

    if config.store in ("hunspell", "aspell") and config.store_path is None:
        raise ConfigError(
            f"Store '{config.store}' needs a personal dictionary path. "
            "Set DICTIONARY_SYNC_STORE_PATH, pass --store-path, "
            "or add 'store_path' to config.yml."
        )

    if not (0 < config.shutdown_timeout <= 300):
        raise ConfigError(
            f"Invalid shutdown timeout '{config.shutdown_timeout}': "
            "must be a number of seconds between 0 and 300"
        )

    if config.threshold_strategy == "remove":
        logger.warning(
            "WARNING: bulk removals are confirmed without asking "
            "(threshold_strategy=remove)."
        )


def _path(value: str | os.PathLike | None) -> Path | None:
    if value is None or str(value).strip() == "":
        return None
    return Path(str(value).strip()).expanduser()


def load_config(
    settings_file: str | None = None,
    store: str | None = None,
    store_path: str | None = None,
    conflict_strategy: str | None = None,
    threshold_strategy: str | None = None,
    debug: bool = False,
    yaml_config: UnifiedConfig | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_config > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        settings_file: Override the shared settings file.
        store: Override the native store kind.
        store_path: Override the personal dictionary path.
        conflict_strategy: Override the conflict surface strategy.
        threshold_strategy: Override the threshold surface strategy.
        debug: Enable debug logging (CLI flag).
        yaml_config: Parsed YAML config; defaults apply when omitted.

    Returns:
        Validated Config instance.

    Raises:
        ConfigError: If a resolved value is invalid.
    """
    yc = yaml_config or UnifiedConfig()

    final_settings_file = _path(
        settings_file
        or os.getenv("DICTIONARY_SYNC_SETTINGS_FILE")
        or yc.dictionary.settings_file
        or DEFAULT_SETTINGS_FILE
    )

    final_store = store or os.getenv("DICTIONARY_SYNC_STORE") or yc.dictionary.store

    final_store_path = _path(
        store_path
        or os.getenv("DICTIONARY_SYNC_STORE_PATH")
        or yc.dictionary.store_path
    )

    final_conflict = (
        conflict_strategy
        or os.getenv("DICTIONARY_SYNC_CONFLICT_STRATEGY")
        or yc.sync.conflict_strategy
    )
    final_threshold = (
        threshold_strategy
        or os.getenv("DICTIONARY_SYNC_THRESHOLD_STRATEGY")
        or yc.sync.threshold_strategy
    )
    final_external = (
        os.getenv("DICTIONARY_SYNC_EXTERNAL_CHANGES") or yc.sync.external_changes
    )

    # --- Numeric fields: env > YAML > default ---

    timeout_raw = os.getenv("DICTIONARY_SYNC_SHUTDOWN_TIMEOUT")
    if timeout_raw is not None:
        try:
            final_timeout = float(timeout_raw)
        except ValueError:
            raise ConfigError(
                f"Invalid DICTIONARY_SYNC_SHUTDOWN_TIMEOUT '{timeout_raw}': "
                "must be a number of seconds between 0 and 300"
            ) from None
    else:
        final_timeout = yc.sync.shutdown_timeout

    config = Config(
        settings_file=final_settings_file,
        store=final_store,
        store_path=final_store_path,
        conflict_strategy=final_conflict,
        threshold_strategy=final_threshold,
        external_changes=final_external,
        shutdown_timeout=final_timeout,
        debug=debug,
    )

    validate_config(config)

    return config
