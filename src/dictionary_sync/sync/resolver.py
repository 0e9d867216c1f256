"""Decision surfaces for conflicts and bulk removals.

A sync cycle suspends at two decision points and hands them to a surface:

- ``ConflictSurface``: which conflicting words to keep.
- ``ThresholdSurface``: whether a bulk removal should go ahead or the
  words should be merged back into the synced dictionary.

Implementations:

- ``TerminalConflictSurface`` / ``TerminalThresholdSurface``: ask on the
  terminal.  Prompts run in a daemon thread through ``run_detached`` so
  the event loop is not blocked while a human thinks, and cancelling a
  pending prompt never holds up shutdown.
- ``KeepAllConflictSurface`` / ``DiscardAllConflictSurface``: unattended.
- ``FixedThresholdSurface``: unattended, always gives the same answer.

The ``create_conflict_surface()`` and ``create_threshold_surface()``
factories map config strategy strings to surface instances.
"""

from __future__ import annotations

import logging
import sys
from typing import Callable, Protocol, TextIO

from dictionary_sync.core.async_utils import run_detached
from dictionary_sync.sync.models import MergeConflict, ThresholdChoice
from dictionary_sync.sync.reporter import (
    REMOVAL_PREVIEW_CAP,
    describe_conflict,
    format_removal_preview,
)

logger = logging.getLogger(__name__)

_MAX_PROMPT_ATTEMPTS = 3


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


class ConflictSurface(Protocol):
    """Asks which conflicting words survive the merge."""

    async def present(self, conflicts: list[MergeConflict]) -> list[str]:
        """Return the words to keep.

        Every word defaults to "keep"; words not returned are discarded.
        """
        ...  # pragma: no cover


class ThresholdSurface(Protocol):
    """Asks whether a bulk removal from the native store may proceed."""

    async def present(
        self, words_to_remove: list[str], cap: int = REMOVAL_PREVIEW_CAP
    ) -> ThresholdChoice:
        """Show at most *cap* words plus an overflow count; return the choice."""
        ...  # pragma: no cover


# ---------------------------------------------------------------------------
# Terminal surfaces
# ---------------------------------------------------------------------------


class _TerminalPrompt:
    def __init__(
        self,
        input_func: Callable[[str], str] = input,
        output: TextIO | None = None,
    ) -> None:
        self._input = input_func
        self._output = output

    def _print(self, text: str = "") -> None:
        print(text, file=self._output or sys.stderr, flush=True)

    async def _ask(self, prompt: str) -> str:
        return (await run_detached(self._input, prompt)).strip().lower()


class TerminalConflictSurface(_TerminalPrompt):
    """Ask keep/delete for each conflicting word.  Empty answer keeps."""

    async def present(self, conflicts: list[MergeConflict]) -> list[str]:
        self._print("Dictionary Sync Conflicts")
        self._print(
            "The following words have conflicting changes between your "
            "local dictionary and the remote file."
        )
        keep: list[str] = []
        for conflict in conflicts:
            self._print(f"  {conflict.word}: {describe_conflict(conflict)}")
            answer = await self._ask(f"Keep '{conflict.word}'? [Y/n] ")
            if answer in ("n", "no", "d", "delete"):
                logger.info("Conflict on '%s' resolved: delete", conflict.word)
            else:
                keep.append(conflict.word)
                logger.info("Conflict on '%s' resolved: keep", conflict.word)
        return keep


class TerminalThresholdSurface(_TerminalPrompt):
    """Ask remove/merge for a bulk removal.

    There is no default answer.  After three unrecognised answers the
    non-destructive ``merge`` is chosen.
    """

    async def present(
        self, words_to_remove: list[str], cap: int = REMOVAL_PREVIEW_CAP
    ) -> ThresholdChoice:
        self._print("Dictionary Sync Conflict")
        self._print(format_removal_preview(words_to_remove, cap))
        prompt = (
            f"[r]emove {len(words_to_remove)} words or [m]erge words? "
        )
        for _ in range(_MAX_PROMPT_ATTEMPTS):
            answer = await self._ask(prompt)
            if answer in ("r", "remove"):
                return ThresholdChoice.CONFIRM
            if answer in ("m", "merge"):
                return ThresholdChoice.MERGE
            self._print("Please answer 'r' or 'm'.")
        logger.warning(
            "No valid answer to removal warning; merging %d words",
            len(words_to_remove),
        )
        return ThresholdChoice.MERGE


# ---------------------------------------------------------------------------
# Unattended surfaces
# ---------------------------------------------------------------------------


class KeepAllConflictSurface:
    """Keep every conflicting word (the default selection)."""

    async def present(self, conflicts: list[MergeConflict]) -> list[str]:
        logger.info("Keeping %d conflicting words (unattended)", len(conflicts))
        return [c.word for c in conflicts]


class DiscardAllConflictSurface:
    """Discard every conflicting word."""

    async def present(self, conflicts: list[MergeConflict]) -> list[str]:
        logger.info(
            "Discarding %d conflicting words (unattended)", len(conflicts)
        )
        return []


class FixedThresholdSurface:
    """Always answer a removal warning with *choice*."""

    def __init__(self, choice: ThresholdChoice) -> None:
        self.choice = choice

    async def present(
        self, words_to_remove: list[str], cap: int = REMOVAL_PREVIEW_CAP
    ) -> ThresholdChoice:
        logger.info(
            "Removal of %d words answered '%s' (unattended)",
            len(words_to_remove),
            self.choice.value,
        )
        return self.choice


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

CONFLICT_STRATEGIES = ("interactive", "keep-all", "discard-all")
THRESHOLD_STRATEGIES = ("interactive", "merge", "remove")


def create_conflict_surface(strategy: str) -> ConflictSurface:
    """Create a conflict surface for the given strategy string.

    Args:
        strategy: One of ``"interactive"``, ``"keep-all"``, ``"discard-all"``.

    Raises:
        ValueError: If the strategy string is not recognised.
    """
    if strategy == "interactive":
        return TerminalConflictSurface()
    if strategy == "keep-all":
        return KeepAllConflictSurface()
    if strategy == "discard-all":
        return DiscardAllConflictSurface()
    raise ValueError(
        f"Unknown conflict strategy: '{strategy}'. "
        f"Valid strategies: {sorted(CONFLICT_STRATEGIES)}"
    )


def create_threshold_surface(strategy: str) -> ThresholdSurface:
    """Create a threshold surface for the given strategy string.

    Args:
        strategy: One of ``"interactive"``, ``"merge"``, ``"remove"``.

    Raises:
        ValueError: If the strategy string is not recognised.
    """
    if strategy == "interactive":
        return TerminalThresholdSurface()
    if strategy == "merge":
        return FixedThresholdSurface(ThresholdChoice.MERGE)
    if strategy == "remove":
        return FixedThresholdSurface(ThresholdChoice.CONFIRM)
    raise ValueError(
        f"Unknown threshold strategy: '{strategy}'. "
        f"Valid strategies: {sorted(THRESHOLD_STRATEGIES)}"
    )
