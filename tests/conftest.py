"""Shared pytest fixtures for dictionary-sync tests."""

from __future__ import annotations

import asyncio

import pytest

from dictionary_sync.errors import (
    ErrorKind,
    PersistenceReadError,
    PersistenceWriteError,
)
from dictionary_sync.sync.models import (
    MergeConflict,
    StoreResult,
    SyncSettings,
    ThresholdChoice,
)
from dictionary_sync.sync.orchestrator import SyncOrchestrator
from dictionary_sync.sync.store import InMemoryWordStore


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeSettingsStore:
    """In-memory settings file with failure injection.

    ``persisted`` holds the last saved settings (or ``None`` for "no file");
    ``saves`` records every saved copy in order.
    """

    def __init__(self, persisted: SyncSettings | None = None) -> None:
        self.path = "memory://settings.json"
        self.persisted = persisted
        self.saves: list[SyncSettings] = []
        self.fail_read = False
        self.fail_write = False

    def exists(self) -> bool:
        return self.persisted is not None

    def load(self) -> SyncSettings | None:
        if self.fail_read:
            raise PersistenceReadError("simulated read failure")
        if self.persisted is None:
            return None
        return self.persisted.model_copy(deep=True)

    def save(self, settings: SyncSettings) -> None:
        if self.fail_write:
            raise PersistenceWriteError("simulated write failure")
        self.persisted = settings.model_copy(deep=True)
        self.saves.append(self.persisted)


class RecordingWordStore(InMemoryWordStore):
    """In-memory native store that records calls and can fail on words."""

    def __init__(self, words: list[str] | None = None) -> None:
        super().__init__(words)
        self.calls: list[tuple[str, str]] = []
        self.failing: set[str] = set()
        self.raising: set[str] = set()

    def _check(self, op: str, word: str) -> StoreResult | None:
        self.calls.append((op, word))
        if word in self.raising:
            raise RuntimeError(f"store exploded on {word}")
        if word in self.failing:
            return StoreResult.failure(
                ErrorKind.STORE_OPERATION_FAILED.value, f"cannot {op} {word}"
            )
        return None

    def add_word(self, word: str) -> StoreResult:
        return self._check("add", word) or super().add_word(word)

    def remove_word(self, word: str) -> StoreResult:
        return self._check("remove", word) or super().remove_word(word)


class ScriptedConflictSurface:
    """Returns a fixed keep-list (``None`` keeps everything)."""

    def __init__(self, keep: list[str] | None = None) -> None:
        self.keep = keep
        self.calls: list[list[MergeConflict]] = []

    async def present(self, conflicts: list[MergeConflict]) -> list[str]:
        self.calls.append(list(conflicts))
        if self.keep is None:
            return [c.word for c in conflicts]
        return list(self.keep)


class ScriptedThresholdSurface:
    """Answers with a fixed choice; can block until released."""

    def __init__(self, choice: ThresholdChoice = ThresholdChoice.CONFIRM):
        self.choice = choice
        self.calls: list[tuple[list[str], int]] = []
        self.release: asyncio.Event | None = None
        self.entered: asyncio.Event = asyncio.Event()

    async def present(self, words_to_remove: list[str], cap: int = 20):
        self.calls.append((list(words_to_remove), cap))
        self.entered.set()
        if self.release is not None:
            await self.release.wait()
        return self.choice


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings_store():
    return FakeSettingsStore()


@pytest.fixture
def word_store():
    return RecordingWordStore()


@pytest.fixture
def conflict_surface():
    return ScriptedConflictSurface()


@pytest.fixture
def threshold_surface():
    return ScriptedThresholdSurface()


@pytest.fixture
def notices():
    return []


@pytest.fixture
def make_orchestrator(
    settings_store, word_store, conflict_surface, threshold_surface, notices
):
    """Factory for a SyncOrchestrator wired to the fakes above."""

    def _make(**kwargs) -> SyncOrchestrator:
        kwargs.setdefault("notifier", notices.append)
        return SyncOrchestrator(
            word_store=word_store,
            settings_store=settings_store,
            conflict_surface=conflict_surface,
            threshold_surface=threshold_surface,
            **kwargs,
        )

    return _make


def make_settings(
    words: list[str] | None = None,
    snapshot: list[str] | None = None,
    threshold: int = 5,
    polling_rate: int = 15000,
) -> SyncSettings:
    return SyncSettings(
        global_words=list(words or []),
        last_snapshot=list(snapshot or []),
        warning_threshold=threshold,
        sync_polling_rate=polling_rate,
    )
