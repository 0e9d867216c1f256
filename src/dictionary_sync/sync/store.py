"""Native word-list store adapters.

The native store is the spell checker's own personal dictionary.  It is
treated as best-effort and possibly absent: calls never raise, they return
a ``StoreResult`` the orchestrator inspects and logs.

Adapters:

- ``NullWordStore``: no native dictionary on this platform; every call is
  a no-op reporting ``store_unavailable``.
- ``PersonalDictionaryStore``: a hunspell (one word per line) or aspell
  (``personal_ws-1.1`` header line, then one word per line) personal
  dictionary file.
- ``InMemoryWordStore``: process-local store for tests and dry runs.

The ``create_word_store()`` factory maps config strings to adapters.
"""

from __future__ import annotations

import codecs
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from charset_normalizer import from_bytes

from dictionary_sync.errors import ErrorKind
from dictionary_sync.sync.models import StoreResult

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class WordStore(Protocol):
    """Capability contract the orchestrator needs from a native store."""

    @property
    def available(self) -> bool:
        """Whether the backing dictionary can be used at all."""
        ...  # pragma: no cover

    def add_word(self, word: str) -> StoreResult:
        """Add *word*; adding a present word is a successful no-op."""
        ...  # pragma: no cover

    def remove_word(self, word: str) -> StoreResult:
        """Remove *word*; removing an absent word is a successful no-op."""
        ...  # pragma: no cover

    def list_words(self) -> list[str]:
        """Return the stored words, or ``[]`` when unavailable.  Never raises."""
        ...  # pragma: no cover


# ---------------------------------------------------------------------------
# Null store
# ---------------------------------------------------------------------------


class NullWordStore:
    """Store for platforms without a native dictionary."""

    def __init__(self) -> None:
        self._reported = False

    @property
    def available(self) -> bool:
        return False

    def _unavailable(self) -> StoreResult:
        if not self._reported:
            logger.debug(
                "Native dictionary not available; store calls are no-ops"
            )
            self._reported = True
        return StoreResult.failure(
            ErrorKind.STORE_UNAVAILABLE.value, "no native dictionary"
        )

    def add_word(self, word: str) -> StoreResult:
        return self._unavailable()

    def remove_word(self, word: str) -> StoreResult:
        return self._unavailable()

    def list_words(self) -> list[str]:
        return []


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------


class InMemoryWordStore:
    """Dictionary held in process memory.

    Args:
        words: Initial content.
    """

    def __init__(self, words: list[str] | None = None) -> None:
        self.words: list[str] = list(dict.fromkeys(words or []))

    @property
    def available(self) -> bool:
        return True

    def add_word(self, word: str) -> StoreResult:
        if word not in self.words:
            self.words.append(word)
        return StoreResult.success()

    def remove_word(self, word: str) -> StoreResult:
        if word in self.words:
            self.words.remove(word)
        return StoreResult.success()

    def list_words(self) -> list[str]:
        return list(self.words)


# ---------------------------------------------------------------------------
# Personal dictionary file
# ---------------------------------------------------------------------------

_ASPELL_MAGIC = "personal_ws-1.1"


class PersonalDictionaryStore:
    """Hunspell or aspell personal dictionary file.

    Hunspell files hold one word per line.  Aspell files start with a
    ``personal_ws-1.1 <lang> <count> [encoding]`` header; the header is
    kept on rewrite with its word count updated.  Files are read and
    written in the encoding the header names; headerless files are
    detected with charset-normalizer and written back the same way.

    Args:
        path: Dictionary file.  A missing file reads as empty and is
            created on first add; a missing parent directory makes the
            store unavailable.
        fmt: ``"hunspell"`` or ``"aspell"``.
        lang: Language written into a new aspell header.
    """

    def __init__(
        self, path: Path, fmt: str = "hunspell", lang: str = "en"
    ) -> None:
        if fmt not in ("hunspell", "aspell"):
            raise ValueError(
                f"Unknown personal dictionary format: '{fmt}'"
            )
        self._path = Path(path).expanduser()
        self._fmt = fmt
        self._lang = lang

    @property
    def path(self) -> Path:
        return self._path

    @property
    def available(self) -> bool:
        return self._path.parent.is_dir()

    # ------------------------------------------------------------------
    # WordStore API
    # ------------------------------------------------------------------

    def add_word(self, word: str) -> StoreResult:
        return self._update(word, add=True)

    def remove_word(self, word: str) -> StoreResult:
        return self._update(word, add=False)

    def list_words(self) -> list[str]:
        if not self.available:
            return []
        try:
            _, words, _ = self._read()
        except (OSError, UnicodeError) as exc:
            logger.warning(
                "Failed to list words from %s: %s", self._path, exc
            )
            return []
        return words

    # ------------------------------------------------------------------
    # File handling
    # ------------------------------------------------------------------

    def _update(self, word: str, *, add: bool) -> StoreResult:
        if not self.available:
            return StoreResult.failure(
                ErrorKind.STORE_UNAVAILABLE.value,
                f"directory of {self._path} does not exist",
            )
        try:
            header, words, encoding = self._read()
            if add and word not in words:
                words.append(word)
            elif not add and word in words:
                words = [w for w in words if w != word]
            else:
                return StoreResult.success()
            self._write(header, words, encoding)
        except (OSError, UnicodeError) as exc:
            action = "add" if add else "remove"
            return StoreResult.failure(
                ErrorKind.STORE_OPERATION_FAILED.value,
                f"failed to {action} '{word}' in {self._path}: {exc}",
            )
        return StoreResult.success()

    def _read(self) -> tuple[str | None, list[str], str]:
        """Return ``(aspell header, words, encoding)``.

        The encoding comes from the aspell header when it names one,
        otherwise it is detected with charset-normalizer.
        """
        if not self._path.exists():
            return None, [], "utf-8"
        raw = self._path.read_bytes()
        header = None
        if self._fmt == "aspell" and raw.startswith(_ASPELL_MAGIC.encode()):
            first, _, raw = raw.partition(b"\n")
            header = first.decode("latin-1").strip()
        encoding = self._header_encoding(header) or _detect_encoding(raw)
        words = (line.strip() for line in raw.decode(encoding).splitlines())
        return header, list(dict.fromkeys(w for w in words if w)), encoding

    def _header_encoding(self, header: str | None) -> str | None:
        parts = header.split() if header else []
        if len(parts) < 4:
            return None
        try:
            return codecs.lookup(parts[3]).name
        except LookupError:
            logger.warning(
                "Unknown encoding '%s' in header of %s; detecting instead",
                parts[3],
                self._path,
            )
            return None

    def _aspell_header(self, header: str | None, count: int) -> str:
        parts = header.split() if header else []
        lang = parts[1] if len(parts) > 1 else self._lang
        rest = parts[3:]
        return " ".join([_ASPELL_MAGIC, lang, str(count), *rest])

    def _write(
        self, header: str | None, words: list[str], encoding: str
    ) -> None:
        lines = list(words)
        if self._fmt == "aspell":
            lines.insert(0, self._aspell_header(header, len(words)))

        fd, tmp_path = tempfile.mkstemp(
            dir=str(self._path.parent), suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding=encoding) as fh:
                fh.write("\n".join(lines) + "\n" if lines else "")
            os.replace(tmp_path, self._path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise


def _detect_encoding(raw: bytes) -> str:
    """Guess the encoding of dictionary bytes; UTF-8 when empty or unsure."""
    if not raw:
        return "utf-8"
    result = from_bytes(raw).best()
    if result is None:
        return "utf-8"
    # ascii is a strict subset of utf-8
    if result.encoding == "ascii":
        return "utf-8"
    return result.encoding


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

STORE_KINDS = ("none", "hunspell", "aspell", "memory")


def create_word_store(kind: str, path: Path | None = None) -> WordStore:
    """Create a native store adapter for the given kind string.

    Args:
        kind: One of ``"none"``, ``"hunspell"``, ``"aspell"``, ``"memory"``.
        path: Dictionary file, required for ``hunspell`` and ``aspell``.

    Raises:
        ValueError: If the kind is not recognised or a file-backed kind
            has no path.
    """
    if kind == "none":
        return NullWordStore()
    if kind == "memory":
        return InMemoryWordStore()
    if kind in ("hunspell", "aspell"):
        if path is None:
            raise ValueError(f"Store '{kind}' requires a dictionary path")
        return PersonalDictionaryStore(path, fmt=kind)
    raise ValueError(
        f"Unknown word store: '{kind}'. Valid stores: {sorted(STORE_KINDS)}"
    )
