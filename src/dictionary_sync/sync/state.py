"""Persisted settings store.

The settings file is the "remote" side of the three-way merge: it usually
lives in a folder synchronised between machines, so other processes may
rewrite it between two polls.  It holds the word list, the last snapshot
and the tuning values as one JSON object.

Key design choices:

* **Atomic writes** -- ``save()`` writes to a temp file in the same
  directory then calls ``os.replace()`` so readers never see partial data.
* **Absent is not an error** -- a missing file loads as ``None`` (first
  run); malformed content raises ``PersistenceReadError`` so the caller can
  decide how conservative to be.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from dictionary_sync.errors import PersistenceReadError, PersistenceWriteError
from dictionary_sync.sync.models import SyncSettings

logger = logging.getLogger(__name__)


class SettingsStore:
    """Load and save ``SyncSettings`` as a JSON file.

    Args:
        path: Location of the settings file.  The parent directory is
            created on first save.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> SyncSettings | None:
        """Read the settings file.

        Returns:
            The parsed settings, or ``None`` if the file does not exist.

        Raises:
            PersistenceReadError: If the file cannot be read or does not
                hold a valid settings object.
        """
        if not self._path.exists():
            return None
        try:
            with open(self._path, encoding="utf-8") as fh:
                raw = json.load(fh)
        except (OSError, ValueError) as exc:
            raise PersistenceReadError(
                f"Cannot read settings from {self._path}: {exc}"
            ) from exc

        if raw is None:
            return None
        if not isinstance(raw, dict):
            raise PersistenceReadError(
                f"Settings file {self._path} has non-object root "
                f"({type(raw).__name__})"
            )
        try:
            return SyncSettings.model_validate(raw)
        except ValidationError as exc:
            raise PersistenceReadError(
                f"Invalid settings in {self._path}: {exc}"
            ) from exc

    def save(self, settings: SyncSettings) -> None:
        """Persist *settings* atomically.

        Raises:
            PersistenceWriteError: If the file cannot be written.  The
                previous file content is left untouched.
        """
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=str(self._path.parent), suffix=".tmp"
            )
        except OSError as exc:
            raise PersistenceWriteError(
                f"Cannot write settings to {self._path}: {exc}"
            ) from exc

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(
                    settings.to_json_dict(), fh, indent=2, ensure_ascii=False
                )
            os.replace(tmp_path, self._path)
        except BaseException as exc:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            if isinstance(exc, OSError):
                raise PersistenceWriteError(
                    f"Cannot write settings to {self._path}: {exc}"
                ) from exc
            raise
        logger.debug(
            "Saved %d words to %s", len(settings.global_words), self._path
        )
