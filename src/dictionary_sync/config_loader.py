"""
Hierarchical YAML configuration loader for dictionary_sync.

Discovers config files by convention, merges them with "most specific
wins" semantics and interpolates ``${VAR}`` references from the
environment.

Usage:
    from dictionary_sync.config_loader import load_hierarchical_config

    raw = load_hierarchical_config()
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "DICTIONARY_SYNC_CONFIG"
PROJECT_CONFIG_DIR = ".dictionary_sync"

# ---------------------------------------------------------------------------
# Env var interpolation
# ---------------------------------------------------------------------------

# ${VAR} and ${VAR:-default}
_ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+?)(?::-(.*?))?\}")


def interpolate_env_vars(value: str) -> str:
    """Replace ``${VAR}`` and ``${VAR:-default}`` with environment values.

    An unset or empty VAR becomes *default* when one is given, otherwise
    the empty string.  A ``${`` without a closing brace is left as is.
    """

    def _replace(match: re.Match) -> str:
        env_val = os.environ.get(match.group(1))
        if env_val:
            return env_val
        return match.group(2) or ""

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _interpolate_recursive(obj: Any) -> Any:
    if isinstance(obj, str):
        return interpolate_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _interpolate_recursive(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_interpolate_recursive(item) for item in obj]
    return obj


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def discover_config_files() -> list[Path]:
    """Return existing config file paths, highest precedence first.

    Search order:
        1. ``DICTIONARY_SYNC_CONFIG`` env var (explicit single path)
        2. ``.dictionary_sync/config.yml`` in CWD
        3. ``.dictionary_sync/config.yaml`` in CWD
        4. ``~/.config/dictionary_sync/config.yml`` (XDG global)
    """
    candidates: list[Path] = []

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        candidates.append(Path(env_path).expanduser().resolve())

    cwd = Path.cwd()
    candidates.append(cwd / PROJECT_CONFIG_DIR / "config.yml")
    candidates.append(cwd / PROJECT_CONFIG_DIR / "config.yaml")
    candidates.append(
        Path.home() / ".config" / "dictionary_sync" / "config.yml"
    )

    return [p for p in candidates if p.exists()]


# ---------------------------------------------------------------------------
# Bootstrapping
# ---------------------------------------------------------------------------

_STARTER_CONFIG = """\
# dictionary-sync configuration
#
# Every value can also be set through environment variables
# (DICTIONARY_SYNC_SETTINGS_FILE, DICTIONARY_SYNC_STORE, ...) or CLI flags.
#
# dictionary:
#   # Shared settings file; put it in a synced folder to share the list.
#   settings_file: ~/.config/dictionary_sync/data.json
#   # Native dictionary: hunspell, aspell, memory or none
#   store: hunspell
#   store_path: ~/.hunspell_en_US
#
# sync:
#   conflict_strategy: interactive    # interactive, keep-all, discard-all
#   threshold_strategy: interactive   # interactive, merge, remove
#   external_changes: merge           # merge or replace
#   shutdown_timeout: 5
#
# logging:
#   level: INFO
#   file: null
"""


def resolve_config_path() -> Path:
    """Return the active config path, or the project default if none exists."""
    existing = discover_config_files()
    if existing:
        return existing[0]
    return Path.cwd() / PROJECT_CONFIG_DIR / "config.yml"


def ensure_config(target: Path | None = None) -> Path:
    """Return the active config file, writing a commented starter if needed.

    Args:
        target: Where to create the starter file.  Defaults to
            ``resolve_config_path()``.
    """
    existing = discover_config_files()
    if existing:
        logger.debug("Config file already exists: %s", existing[0])
        return existing[0]

    config_path = target or resolve_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(_STARTER_CONFIG, encoding="utf-8")
    logger.info("Created starter config: %s", config_path)
    return config_path


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def load_yaml_file(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as fh:
        return yaml.safe_load(fh)


def load_hierarchical_config(
    paths: list[Path] | None = None,
) -> dict[str, Any]:
    """Load and merge config files.

    Files are applied from lowest precedence to highest; each file's
    top-level keys replace (not deep-merge) earlier ones.  Env var
    interpolation runs after the merge.

    Args:
        paths: Files in precedence order (highest first).  Defaults to
            ``discover_config_files()``.

    Returns:
        The merged dict; empty when no config file exists.
    """
    if paths is None:
        paths = discover_config_files()

    if not paths:
        logger.debug("No config files found; using defaults")
        return {}

    merged: dict[str, Any] = {}
    for path in reversed(paths):
        logger.debug("Loading config: %s", path)
        try:
            data = load_yaml_file(path)
        except Exception:
            logger.exception("Failed to load config file %s", path)
            raise

        if isinstance(data, dict):
            merged.update(data)
        elif data is not None:
            logger.warning(
                "Config file %s has non-dict root (%s); skipping",
                path,
                type(data).__name__,
            )

    return _interpolate_recursive(merged)
