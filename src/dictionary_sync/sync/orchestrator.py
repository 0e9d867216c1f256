"""Sync orchestrator: the periodic three-way sync state machine.

The ``SyncOrchestrator`` owns the in-memory settings (word list, snapshot,
threshold, polling rate) and ties together the settings store, the merger,
the native word store and the decision surfaces.  One cycle:

1. Read the persisted settings (the remote side).
2. Merge snapshot / local / remote.
3. Suspend for the conflict surface when the merge reports conflicts.
4. Diff the merged list against the native store.
5. Suspend for the threshold surface when the diff removes at least
   ``warning_threshold`` words.
6. Finalize: apply the diff to the native store, replace the local word
   list, advance the snapshot, persist, notify observers.

Error handling is per call site: nothing raised by a collaborator escapes
a cycle.  At most one cycle runs at a time; a cycle requested while another
is in flight is dropped and reported as ``skipped_busy``.

Local edits (``add_word`` / ``remove_word``) bypass the cycle.  They update
the native store and the word list immediately and persist without moving
the snapshot, so the next cycle reconciles them like any other local
change.  Edits made while a cycle is suspended are re-applied on top of
that cycle's result.

While the settings file cannot be read, cycles only add: no native word is
removed, the snapshot stays put and nothing is saved.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import datetime, timezone
from typing import Any, Callable

from dictionary_sync.core.async_utils import run_sync, run_with_timeout
from dictionary_sync.errors import (
    ErrorKind,
    PersistenceReadError,
    PersistenceWriteError,
    StoreOperationError,
    StoreUnavailableError,
)
from dictionary_sync.sync.merger import merge_words
from dictionary_sync.sync.models import (
    CommitPlan,
    StoreResult,
    SyncOutcome,
    SyncPhase,
    SyncReport,
    SyncSettings,
    SyncTrigger,
    ThresholdChoice,
)
from dictionary_sync.sync.reporter import (
    REMOVAL_PREVIEW_CAP,
    format_sync_notice,
    report_to_json,
)
from dictionary_sync.sync.resolver import ConflictSurface, ThresholdSurface
from dictionary_sync.sync.state import SettingsStore
from dictionary_sync.sync.store import WordStore
from dictionary_sync.sync.words import (
    diff_words,
    filter_words,
    normalize_word,
    same_words,
    sort_words,
    union,
)

logger = logging.getLogger(__name__)

EXTERNAL_CHANGE_MODES = ("merge", "replace")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class _CycleAborted(Exception):
    """A non-interactive cycle reached a decision point."""


class SyncOrchestrator:
    """Drive periodic three-way syncs of the word list.

    Args:
        word_store: Native spell-check dictionary adapter.
        settings_store: Persisted settings file (the remote side).
        conflict_surface: Asked which conflicting words to keep.
        threshold_surface: Asked whether a bulk removal may proceed.
        external_changes: ``"merge"`` merges the persisted list like any
            remote change; ``"replace"`` makes a persisted list that
            differs from memory overwrite the local list before merging.
        notifier: Receives the user-facing notice lines.  Defaults to
            logging them at INFO.
        shutdown_timeout: Seconds the final sync may take on shutdown.
    """

    def __init__(
        self,
        word_store: WordStore,
        settings_store: SettingsStore,
        conflict_surface: ConflictSurface,
        threshold_surface: ThresholdSurface,
        *,
        external_changes: str = "merge",
        notifier: Callable[[str], None] | None = None,
        shutdown_timeout: float = 5.0,
    ) -> None:
        if external_changes not in EXTERNAL_CHANGE_MODES:
            raise ValueError(
                f"Unknown external change mode: '{external_changes}'. "
                f"Valid modes: {list(EXTERNAL_CHANGE_MODES)}"
            )
        self.word_store = word_store
        self.settings_store = settings_store
        self.conflict_surface = conflict_surface
        self.threshold_surface = threshold_surface
        self.external_changes = external_changes
        self.shutdown_timeout = shutdown_timeout

        self.settings = SyncSettings()
        self.last_report: SyncReport | None = None

        self._notifier = notifier
        self._phase = SyncPhase.IDLE
        self._listeners: list[Callable[[], None]] = []
        self._late_adds: list[str] = []
        self._late_removes: list[str] = []
        self._poll_task: asyncio.Task | None = None
        # Set while the settings file exists but cannot be read.
        self._settings_unreadable = False

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def phase(self) -> SyncPhase:
        return self._phase

    @property
    def busy(self) -> bool:
        return self._phase != SyncPhase.IDLE

    @property
    def words(self) -> list[str]:
        return list(self.settings.global_words)

    @property
    def snapshot(self) -> list[str]:
        return list(self.settings.last_snapshot)

    @property
    def running(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    def search(self, query: str | None) -> list[str]:
        return filter_words(self.settings.global_words, query)

    def status(self) -> dict[str, Any]:
        """Summarise the current state for status output."""
        words = set(self.settings.global_words)
        snapshot = set(self.settings.last_snapshot)
        return {
            "settings_file": str(self.settings_store.path),
            "store": type(self.word_store).__name__,
            "store_available": self.word_store.available,
            "phase": self._phase.value,
            "running": self.running,
            "words": len(words),
            "snapshot_words": len(snapshot),
            "pending_changes": len(words ^ snapshot),
            "warning_threshold": self.settings.warning_threshold,
            "polling_interval": self.settings.polling_interval,
            "last_sync": report_to_json(self.last_report)
            if self.last_report
            else None,
        }

    # ------------------------------------------------------------------
    # Observers and notices
    # ------------------------------------------------------------------

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Call *callback* after every commit and local edit.

        Returns:
            A function that removes the subscription.
        """
        self._listeners.append(callback)

        def _unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return _unsubscribe

    def _emit_change(self) -> None:
        for callback in list(self._listeners):
            try:
                callback()
            except Exception:
                logger.exception("Dictionary change listener failed")

    def _notify(self, message: str) -> None:
        if self._notifier is None:
            logger.info(message)
            return
        try:
            self._notifier(message)
        except Exception:
            logger.exception("Notifier failed for message: %s", message)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def load(self) -> SyncSettings:
        """Load persisted settings, defaulting when absent or unreadable.

        After a read failure the orchestrator runs read-only until the file
        can be read again: syncs remove nothing and nothing is saved.
        """
        self._settings_unreadable = False
        try:
            loaded = await run_sync(self.settings_store.load)
        except PersistenceReadError as exc:
            logger.error("Failed to load settings, using defaults: %s", exc)
            self._settings_unreadable = True
            loaded = None
        if loaded is None:
            logger.info(
                "No settings at %s; starting with an empty dictionary",
                self.settings_store.path,
            )
            loaded = SyncSettings()
        self.settings = loaded
        return self.settings

    async def start(self) -> SyncReport:
        """Load settings, run the startup sync and start the poller."""
        await self.load()
        report = await self.sync(SyncTrigger.STARTUP)
        if not self.running:
            self._poll_task = asyncio.create_task(
                self._poll_loop(), name="dictionary-sync-poller"
            )
        return report

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self.settings.polling_interval)
            await self.sync(SyncTrigger.TICK)

    async def shutdown(self) -> SyncReport | None:
        """Stop the poller and run a bounded, non-interactive final sync.

        A cycle suspended on a decision surface is cancelled.  The final
        sync never asks: a decision point ends it without changes.

        Returns:
            The final sync report, or ``None`` if it timed out.
        """
        if self._poll_task is not None:
            self._poll_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._poll_task
            self._poll_task = None

        finished, report = await run_with_timeout(
            self.sync(SyncTrigger.SHUTDOWN, interactive=False),
            self.shutdown_timeout,
        )
        if not finished:
            logger.warning(
                "Final sync did not finish within %.1fs; skipped",
                self.shutdown_timeout,
            )
        return report

    # ------------------------------------------------------------------
    # Sync cycle
    # ------------------------------------------------------------------

    async def sync(
        self,
        trigger: SyncTrigger = SyncTrigger.MANUAL,
        *,
        interactive: bool = True,
    ) -> SyncReport:
        """Run one sync cycle.

        Args:
            trigger: What started the cycle (recorded in the report).
            interactive: When ``False`` a conflict or a removal warning
                ends the cycle without changes instead of asking.

        Returns:
            A ``SyncReport``.  Never raises for collaborator failures.
        """
        started_at = _now()
        if self.busy:
            logger.debug(
                "Sync already in progress (%s); dropping %s request",
                self._phase.value,
                trigger.value,
            )
            return SyncReport(
                trigger=trigger,
                outcome=SyncOutcome.SKIPPED_BUSY,
                started_at=started_at,
                completed_at=_now(),
                message=f"sync already in progress ({self._phase.value})",
            )

        self._phase = SyncPhase.SYNCING
        try:
            report = await self._run_cycle(trigger, started_at, interactive)
        except _CycleAborted as exc:
            logger.info("Sync (%s) ended without changes: %s", trigger.value, exc)
            report = self._aborted(trigger, started_at, str(exc))
        except Exception as exc:
            logger.exception("Sync (%s) failed", trigger.value)
            report = self._aborted(trigger, started_at, str(exc))
        finally:
            self._phase = SyncPhase.IDLE
            self._late_adds.clear()
            self._late_removes.clear()

        self.last_report = report
        logger.debug("%s", report.summary())
        notice = format_sync_notice(report)
        if notice:
            self._notify(notice)
        return report

    def _aborted(
        self, trigger: SyncTrigger, started_at: str, message: str
    ) -> SyncReport:
        return SyncReport(
            trigger=trigger,
            outcome=SyncOutcome.ABORTED,
            started_at=started_at,
            completed_at=_now(),
            message=message,
        )

    async def _run_cycle(
        self, trigger: SyncTrigger, started_at: str, interactive: bool
    ) -> SyncReport:
        remote = await self._read_remote()
        local = list(self.settings.global_words)
        read_only = self._settings_unreadable

        if read_only:
            # Nothing persisted can be trusted; keep every native word.
            local = sort_words(union(local, self._list_native()))
            self.settings.global_words = list(local)

        if remote is None:
            remote = local
        elif self.external_changes == "replace" and not same_words(
            remote, local
        ):
            logger.warning(
                "Settings file changed externally; replacing %d local "
                "words with %d persisted words",
                len(local),
                len(remote),
            )
            local = sort_words(remote)
            self.settings.global_words = list(local)

        result = merge_words(self.settings.last_snapshot, local, remote)
        final_words = result.final_words

        if result.has_conflicts:
            if not interactive:
                raise _CycleAborted(
                    f"{len(result.conflicts)} conflicts need a decision"
                )
            self._phase = SyncPhase.AWAITING_CONFLICT_RESOLUTION
            keep = await self.conflict_surface.present(list(result.conflicts))
            final_words = sort_words(union(final_words, keep))
            self._phase = SyncPhase.SYNCING

        native = self._list_native()
        words_to_add, words_to_remove = diff_words(final_words, native)
        merged_back: list[str] = []
        if read_only:
            words_to_remove = []

        if (
            words_to_remove
            and len(words_to_remove) >= self.settings.warning_threshold
        ):
            if not interactive:
                raise _CycleAborted(
                    f"removal of {len(words_to_remove)} words needs "
                    "confirmation"
                )
            self._phase = SyncPhase.AWAITING_THRESHOLD_CONFIRMATION
            choice = await self.threshold_surface.present(
                list(words_to_remove), REMOVAL_PREVIEW_CAP
            )
            if choice == ThresholdChoice.MERGE:
                merged_back = words_to_remove
                final_words = sort_words(union(final_words, words_to_remove))
                words_to_remove = []

        self._phase = SyncPhase.COMMITTING
        plan = CommitPlan(
            final_words=final_words,
            words_to_add=words_to_add,
            words_to_remove=words_to_remove,
            merged_back=merged_back,
        )
        added, removed, failed = await self._finalize(plan)

        return SyncReport(
            trigger=trigger,
            outcome=SyncOutcome.COMMITTED,
            added=added,
            removed=removed,
            failed=failed,
            conflicts=list(result.conflicts),
            merged_back=merged_back,
            started_at=started_at,
            completed_at=_now(),
            message="settings file unreadable; nothing removed or saved"
            if read_only
            else None,
        )

    async def _read_remote(self) -> list[str] | None:
        """Return the persisted word list, or ``None`` for "no remote changes".

        Tuning values (threshold, polling rate) follow the file so edits
        made by another process take effect on the next cycle.
        """
        try:
            persisted = await run_sync(self.settings_store.load)
        except PersistenceReadError as exc:
            logger.error(
                "Failed to read settings file; assuming no remote "
                "changes this cycle: %s",
                exc,
            )
            self._settings_unreadable = True
            return None
        self._settings_unreadable = False
        if persisted is None:
            return None
        self.settings.warning_threshold = persisted.warning_threshold
        self.settings.sync_polling_rate = persisted.sync_polling_rate
        return list(persisted.global_words)

    def _list_native(self) -> list[str]:
        try:
            return list(self.word_store.list_words())
        except Exception:
            logger.exception("Failed to list words from native dictionary")
            return []

    # ------------------------------------------------------------------
    # Finalize
    # ------------------------------------------------------------------

    async def _finalize(
        self, plan: CommitPlan
    ) -> tuple[list[str], list[str], list[str]]:
        """Commit *plan*: native store, word list, snapshot, disk, observers.

        Returns:
            ``(added, removed, failed)`` word lists.
        """
        late_adds = list(self._late_adds)
        late_removes = set(self._late_removes)
        added: list[str] = []
        removed: list[str] = []
        failed: list[str] = []

        for word in plan.words_to_add:
            if word in late_removes:
                continue
            result = self._apply_to_store(self.word_store.add_word, word, "add")
            if result.ok:
                added.append(word)
            elif result.error_kind != ErrorKind.STORE_UNAVAILABLE.value:
                failed.append(word)

        for word in plan.words_to_remove:
            if word in late_adds:
                continue
            result = self._apply_to_store(
                self.word_store.remove_word, word, "remove"
            )
            if result.ok:
                removed.append(word)
            elif result.error_kind != ErrorKind.STORE_UNAVAILABLE.value:
                failed.append(word)

        words = [w for w in plan.final_words if w not in late_removes]
        self.settings.global_words = sort_words(union(words, late_adds))
        if not self._settings_unreadable:
            self.settings.last_snapshot = list(plan.final_words)

        await self._persist()
        self._emit_change()
        return added, removed, failed

    def _apply_to_store(
        self, operation: Callable[[str], StoreResult], word: str, action: str
    ) -> StoreResult:
        """Run one native store call; log its failure instead of raising.

        An adapter that raises despite the ``WordStore`` contract is
        reported as ``store_operation_failed``.
        """
        try:
            result = operation(word)
        except Exception as exc:
            result = StoreResult.failure(
                ErrorKind.STORE_OPERATION_FAILED.value, str(exc)
            )

        try:
            result.raise_for_error()
        except StoreUnavailableError:
            logger.debug(
                "Native dictionary unavailable; skipped %s of '%s'",
                action,
                word,
            )
        except StoreOperationError as exc:
            logger.warning(
                "Failed to %s '%s' in native dictionary: %s", action, word, exc
            )
        return result

    async def _persist(self) -> bool:
        """Save a copy of the settings; log and swallow write failures.

        Skipped while the settings file exists but cannot be read.
        """
        if self._settings_unreadable:
            logger.warning(
                "Settings file %s is unreadable; not saving until it can be "
                "read again",
                self.settings_store.path,
            )
            return False
        settings = self.settings.model_copy(deep=True)
        try:
            await run_sync(self.settings_store.save, settings)
        except PersistenceWriteError as exc:
            logger.error(
                "Failed to save settings; in-memory state is ahead of "
                "disk until the next successful save: %s",
                exc,
            )
            return False
        return True

    # ------------------------------------------------------------------
    # Local edits
    # ------------------------------------------------------------------

    async def add_word(self, text: str | None) -> str | None:
        """Add one word immediately (e.g. the current text selection).

        The word goes to the native store and the local list right away
        and is persisted without advancing the snapshot.

        Returns:
            The added word, or ``None`` when nothing was added.
        """
        word = normalize_word(text)
        if word is None:
            self._notify("No word selected.")
            return None
        if word in self.settings.global_words:
            self._notify(f"'{word}' is already in your dictionary.")
            return None

        self._apply_to_store(self.word_store.add_word, word, "add")
        self.settings.global_words = sort_words(
            [*self.settings.global_words, word]
        )
        if self.busy:
            self._late_adds.append(word)
            if word in self._late_removes:
                self._late_removes.remove(word)

        await self._persist()
        self._emit_change()
        self._notify(f"'{word}' added to dictionary.")
        return word

    async def remove_word(self, text: str | None) -> bool:
        """Remove one word immediately, without advancing the snapshot.

        Returns:
            ``True`` if the word was in the dictionary.
        """
        word = normalize_word(text)
        if word is None:
            self._notify("No word selected.")
            return False
        if word not in self.settings.global_words:
            self._notify(f"'{word}' is not in your dictionary.")
            return False

        self._apply_to_store(self.word_store.remove_word, word, "remove")
        self.settings.global_words = [
            w for w in self.settings.global_words if w != word
        ]
        if self.busy:
            self._late_removes.append(word)
            if word in self._late_adds:
                self._late_adds.remove(word)

        await self._persist()
        self._emit_change()
        self._notify(f"'{word}' removed from dictionary.")
        return True

    async def update_settings(
        self,
        warning_threshold: int | None = None,
        sync_polling_rate: int | None = None,
    ) -> SyncSettings:
        """Change tuning values and persist them.

        Args:
            warning_threshold: New removal warning threshold (``>= 0``).
            sync_polling_rate: New polling rate in milliseconds (``> 0``).

        Raises:
            ValueError: If a value is out of range.
        """
        updates: dict[str, int] = {}
        if warning_threshold is not None:
            updates["warning_threshold"] = warning_threshold
        if sync_polling_rate is not None:
            updates["sync_polling_rate"] = sync_polling_rate
        # Validate every value before assigning any.
        SyncSettings.model_validate({**self.settings.model_dump(), **updates})
        for name, value in updates.items():
            setattr(self.settings, name, value)
        await self._persist()
        return self.settings
