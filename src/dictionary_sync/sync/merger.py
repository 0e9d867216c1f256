"""Three-way merge of word lists.

Given the snapshot (common ancestor), the local list and the remote list,
``merge_words`` applies every non-conflicting change from both sides and
reports words that were added on one side and deleted on the other.

Key design choices:

* The merge is a pure function.  It never touches a store and never
  mutates its arguments, so calling it twice yields the same result.
* Conflicts are reported, never resolved here.  Neither side wins.
* A word added on both sides, or deleted on both sides, converges
  without a conflict.
* ``detect_conflicts`` is separate from ``compute_deltas`` so the
  intersection rules can be exercised with hand-built deltas.  With a
  single shared snapshot an addition (absent from snapshot) and a deletion
  (present in snapshot) can never name the same word, so ``merge_words``
  itself does not produce conflicts today.
"""

from __future__ import annotations

from collections.abc import Sequence

from dictionary_sync.sync.models import (
    ChangeKind,
    MergeConflict,
    MergeResult,
    WordDeltas,
)
from dictionary_sync.sync.words import difference, sort_words


def compute_deltas(
    snapshot: Sequence[str],
    local: Sequence[str],
    remote: Sequence[str],
) -> WordDeltas:
    """Compute the additions and deletions of each side since *snapshot*."""
    return WordDeltas(
        remote_additions=difference(remote, snapshot),
        remote_deletions=difference(snapshot, remote),
        local_additions=difference(local, snapshot),
        local_deletions=difference(snapshot, local),
    )


def detect_conflicts(deltas: WordDeltas) -> list[MergeConflict]:
    """Return one conflict per word changed in opposite directions.

    ``remote_additions & local_deletions`` yields ``(deleted, added)``
    conflicts, ``remote_deletions & local_additions`` yields
    ``(added, deleted)`` conflicts.
    """
    local_deletions = set(deltas.local_deletions)
    local_additions = set(deltas.local_additions)

    conflicts = [
        MergeConflict(
            word=word,
            local_state=ChangeKind.DELETED,
            remote_state=ChangeKind.ADDED,
        )
        for word in deltas.remote_additions
        if word in local_deletions
    ]
    conflicts.extend(
        MergeConflict(
            word=word,
            local_state=ChangeKind.ADDED,
            remote_state=ChangeKind.DELETED,
        )
        for word in deltas.remote_deletions
        if word in local_additions
    )
    return conflicts


def apply_deltas(
    snapshot: Sequence[str], deltas: WordDeltas
) -> list[str]:
    """Apply every non-conflicting change in *deltas* to *snapshot*.

    Conflicting words keep their snapshot presence; the caller decides
    what happens to them.
    """
    result = dict.fromkeys(snapshot)
    local_deletions = set(deltas.local_deletions)
    local_additions = set(deltas.local_additions)
    remote_additions = set(deltas.remote_additions)
    remote_deletions = set(deltas.remote_deletions)

    for word in deltas.remote_additions:
        if word not in local_deletions:
            result[word] = None

    for word in deltas.remote_deletions:
        if word not in local_additions:
            result.pop(word, None)

    # Re-adding a word the remote also added is a no-op.
    for word in deltas.local_additions:
        if word not in remote_deletions:
            result[word] = None

    for word in deltas.local_deletions:
        if word not in remote_additions:
            result.pop(word, None)

    return sort_words(result)


def merge_words(
    snapshot: Sequence[str],
    local: Sequence[str],
    remote: Sequence[str],
) -> MergeResult:
    """Perform a three-way merge: snapshot vs local vs remote.

    Args:
        snapshot: Word list at the end of the last successful sync.
        local: Current in-memory word list.
        remote: Word list currently persisted in the shared store.

    Returns:
        A ``MergeResult`` with the merged list (sorted case-insensitively)
        and the conflicts that need a human decision.
    """
    deltas = compute_deltas(snapshot, local, remote)
    return MergeResult(
        final_words=apply_deltas(snapshot, deltas),
        conflicts=detect_conflicts(deltas),
    )
