"""Pydantic models for the dictionary sync engine.

Defines the data contracts used across all sync modules:

- ``ChangeKind``: Direction of a change relative to the snapshot.
- ``MergeConflict``: A word changed in opposite directions on each side.
- ``WordDeltas`` / ``MergeResult``: Inputs and output of one merge.
- ``SyncSettings``: The durable settings blob (words, snapshot, tuning).
- ``CommitPlan``: The accepted outcome handed to finalize.
- ``StoreResult``: Result-style return of a native store call.
- ``SyncReport``: What one sync cycle did.

Everything except ``SyncSettings`` is frozen.  ``SyncSettings`` is owned
and mutated by the orchestrator for the lifetime of the process.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from dictionary_sync.errors import (
    ErrorKind,
    StoreOperationError,
    StoreUnavailableError,
)

DEFAULT_WARNING_THRESHOLD = 5
DEFAULT_SYNC_POLLING_RATE_MS = 15 * 1000


class ChangeKind(str, Enum):
    """Direction of a change to one word since the snapshot."""

    ADDED = "added"
    DELETED = "deleted"


class SyncPhase(str, Enum):
    """States of the orchestrator's sync cycle."""

    IDLE = "idle"
    SYNCING = "syncing"
    AWAITING_CONFLICT_RESOLUTION = "awaiting_conflict_resolution"
    AWAITING_THRESHOLD_CONFIRMATION = "awaiting_threshold_confirmation"
    COMMITTING = "committing"


class SyncTrigger(str, Enum):
    """What started a sync cycle."""

    STARTUP = "startup"
    TICK = "tick"
    MANUAL = "manual"
    SHUTDOWN = "shutdown"


class SyncOutcome(str, Enum):
    """How a sync cycle ended."""

    COMMITTED = "committed"
    SKIPPED_BUSY = "skipped_busy"
    ABORTED = "aborted"


class ThresholdChoice(str, Enum):
    """Answer to a bulk-removal warning."""

    CONFIRM = "confirm"
    MERGE = "merge"


class MergeConflict(BaseModel):
    """A word added on one side and deleted on the other.

    Attributes:
        word: The conflicting word.
        local_state: What the local side did to the word.
        remote_state: What the remote side did to the word.
    """

    word: str
    local_state: ChangeKind
    remote_state: ChangeKind

    model_config = ConfigDict(frozen=True)

    @property
    def remote_added(self) -> bool:
        return self.remote_state == ChangeKind.ADDED


class WordDeltas(BaseModel):
    """The four changes of a three-way merge, each relative to the snapshot."""

    remote_additions: list[str] = []
    remote_deletions: list[str] = []
    local_additions: list[str] = []
    local_deletions: list[str] = []

    model_config = ConfigDict(frozen=True)


class MergeResult(BaseModel):
    """Output of ``merge_words()``.

    Attributes:
        final_words: Merged word list, sorted case-insensitively.
        conflicts: Words needing a human decision.
    """

    final_words: list[str]
    conflicts: list[MergeConflict] = []

    model_config = ConfigDict(frozen=True)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)


class SyncSettings(BaseModel):
    """Durable sync state, persisted as JSON.

    The on-disk keys are camelCase (``globalWords``, ``lastSnapshot``,
    ``warningThreshold``, ``syncPollingRate``) and the polling rate is
    stored in milliseconds.  Unknown keys are ignored.

    Attributes:
        global_words: The local working copy of the word list.
        last_snapshot: Word list at the end of the last successful sync.
        warning_threshold: Removal count at or above which a sync asks
            for confirmation.
        sync_polling_rate: Milliseconds between periodic syncs.
    """

    global_words: list[str] = Field(default_factory=list, alias="globalWords")
    last_snapshot: list[str] = Field(
        default_factory=list, alias="lastSnapshot"
    )
    warning_threshold: int = Field(
        default=DEFAULT_WARNING_THRESHOLD, ge=0, alias="warningThreshold"
    )
    sync_polling_rate: int = Field(
        default=DEFAULT_SYNC_POLLING_RATE_MS, gt=0, alias="syncPollingRate"
    )

    model_config = ConfigDict(
        populate_by_name=True,
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def polling_interval(self) -> float:
        """Polling rate in seconds."""
        return self.sync_polling_rate / 1000

    def to_json_dict(self) -> dict:
        """Serialise with the on-disk key names."""
        return self.model_dump(by_alias=True)


class CommitPlan(BaseModel):
    """Accepted outcome of a cycle, ready for finalize.

    Attributes:
        final_words: Word list that becomes both local state and snapshot.
        words_to_add: Words to add to the native store.
        words_to_remove: Words to remove from the native store.
        merged_back: Words a "merge instead" answer kept.
    """

    final_words: list[str]
    words_to_add: list[str] = []
    words_to_remove: list[str] = []
    merged_back: list[str] = []

    model_config = ConfigDict(frozen=True)


class StoreResult(BaseModel):
    """Outcome of one native store call.

    Attributes:
        ok: Whether the call succeeded (adding a present word is ok).
        error_kind: ``ErrorKind`` value when the call failed.
        message: Failure detail for logging.
    """

    ok: bool = True
    error_kind: str | None = None
    message: str | None = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def success(cls) -> StoreResult:
        return cls()

    @classmethod
    def failure(cls, error_kind: str, message: str) -> StoreResult:
        return cls(ok=False, error_kind=error_kind, message=message)

    def raise_for_error(self) -> None:
        """Raise the store error matching ``error_kind`` if the call failed."""
        if self.ok:
            return
        if self.error_kind == ErrorKind.STORE_UNAVAILABLE.value:
            raise StoreUnavailableError(
                self.message or "native dictionary unavailable"
            )
        raise StoreOperationError(
            self.message or "native dictionary operation failed"
        )


class SyncReport(BaseModel):
    """What one sync cycle did.

    Attributes:
        trigger: What started the cycle.
        outcome: How it ended.
        added: Words added to the native store.
        removed: Words removed from the native store.
        failed: Words whose native store call failed.
        conflicts: Conflicts presented during the cycle.
        merged_back: Words kept by a "merge instead" answer.
        started_at: ISO 8601 timestamp when the cycle started.
        completed_at: ISO 8601 timestamp when it ended.
        message: Why the cycle was skipped, aborted or ran read-only.
    """

    trigger: SyncTrigger
    outcome: SyncOutcome
    added: list[str] = []
    removed: list[str] = []
    failed: list[str] = []
    conflicts: list[MergeConflict] = []
    merged_back: list[str] = []
    started_at: str
    completed_at: str | None = None
    message: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def committed(self) -> bool:
        return self.outcome == SyncOutcome.COMMITTED

    @property
    def changed(self) -> bool:
        """True when the native store was touched."""
        return bool(self.added or self.removed)

    def summary(self) -> str:
        """Format a short multi-line summary of the cycle."""
        lines = [
            f"Sync ({self.trigger.value}): {self.outcome.value}",
            f"  Added:       {len(self.added)}",
            f"  Removed:     {len(self.removed)}",
            f"  Merged back: {len(self.merged_back)}",
            f"  Conflicts:   {len(self.conflicts)}",
            f"  Failed:      {len(self.failed)}",
        ]
        if self.message:
            lines.append(f"  Note: {self.message}")
        return "\n".join(lines)
