"""Three-way dictionary sync engine.

Keeps a personal spell-check word list consistent between three places:
the in-memory working copy (local), the persisted settings file that
several machines may write (remote), and the word list recorded at the end
of the last successful sync (snapshot).

Architecture
------------
Every cycle merges local and remote changes against the snapshot.  Words
added or deleted on only one side, or changed the same way on both, merge
automatically.  A word added on one side and deleted on the other is a
conflict and goes to a human.  The merged list is then diffed against the
native spell-check dictionary; a diff that would remove many words asks for
confirmation first.  Only a committed cycle advances the snapshot.

Modules:

- ``words``        -- word-set helpers (sorting, diffing, search).
- ``models``       -- ``MergeConflict``, ``MergeResult``, ``SyncSettings``,
  ``SyncReport`` and the other data contracts.
- ``merger``       -- ``merge_words``: the pure three-way merge.
- ``state``        -- ``SettingsStore``: atomic JSON settings file.
- ``store``        -- native word-list adapters (hunspell, aspell, none).
- ``resolver``     -- conflict and threshold decision surfaces.
- ``reporter``     -- human-readable and JSON formatting.
- ``orchestrator`` -- ``SyncOrchestrator``: the sync state machine.

Usage example
-------------
::

    from pathlib import Path
    from dictionary_sync.sync import (
        SettingsStore,
        SyncOrchestrator,
        create_conflict_surface,
        create_threshold_surface,
        create_word_store,
    )

    orchestrator = SyncOrchestrator(
        word_store=create_word_store("hunspell", Path("~/.hunspell_en_US")),
        settings_store=SettingsStore(Path("~/Sync/dictionary.json")),
        conflict_surface=create_conflict_surface("interactive"),
        threshold_surface=create_threshold_surface("interactive"),
    )

    await orchestrator.start()       # startup sync + poller
    await orchestrator.add_word(" colour ")
    await orchestrator.shutdown()    # bounded final sync
"""

from .merger import compute_deltas, detect_conflicts, merge_words
from .models import (
    ChangeKind,
    CommitPlan,
    MergeConflict,
    MergeResult,
    StoreResult,
    SyncOutcome,
    SyncPhase,
    SyncReport,
    SyncSettings,
    SyncTrigger,
    ThresholdChoice,
    WordDeltas,
)
from .orchestrator import SyncOrchestrator
from .reporter import (
    format_sync_notice,
    format_sync_report,
    report_to_json,
)
from .resolver import create_conflict_surface, create_threshold_surface
from .state import SettingsStore
from .store import create_word_store

__all__ = [
    "ChangeKind",
    "CommitPlan",
    "MergeConflict",
    "MergeResult",
    "SettingsStore",
    "StoreResult",
    "SyncOrchestrator",
    "SyncOutcome",
    "SyncPhase",
    "SyncReport",
    "SyncSettings",
    "SyncTrigger",
    "ThresholdChoice",
    "WordDeltas",
    "compute_deltas",
    "create_conflict_surface",
    "create_threshold_surface",
    "create_word_store",
    "detect_conflicts",
    "format_sync_notice",
    "format_sync_report",
    "merge_words",
    "report_to_json",
]
