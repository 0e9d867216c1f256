"""Tests for the three-way word list merge."""

from __future__ import annotations

import itertools

import pytest

from dictionary_sync.sync.merger import (
    apply_deltas,
    compute_deltas,
    detect_conflicts,
    merge_words,
)
from dictionary_sync.sync.models import ChangeKind, WordDeltas
from dictionary_sync.sync.words import sort_words

# ---------------------------------------------------------------------------
# compute_deltas
# ---------------------------------------------------------------------------


class TestComputeDeltas:
    def test_four_change_sets(self):
        deltas = compute_deltas(
            snapshot=["cat", "dog"],
            local=["cat", "dog", "fox"],
            remote=["cat"],
        )
        assert deltas.remote_additions == []
        assert deltas.remote_deletions == ["dog"]
        assert deltas.local_additions == ["fox"]
        assert deltas.local_deletions == []

    def test_additions_and_deletions_never_share_a_word(self):
        deltas = compute_deltas(["a", "b"], ["b", "c"], ["a", "d"])
        assert not set(deltas.remote_additions) & set(deltas.local_deletions)
        assert not set(deltas.local_additions) & set(deltas.remote_deletions)


# ---------------------------------------------------------------------------
# detect_conflicts (hand-built deltas)
# ---------------------------------------------------------------------------


class TestDetectConflicts:
    def test_remote_added_local_deleted(self):
        deltas = WordDeltas(remote_additions=["cat"], local_deletions=["cat"])
        conflicts = detect_conflicts(deltas)
        assert len(conflicts) == 1
        assert conflicts[0].word == "cat"
        assert conflicts[0].local_state == ChangeKind.DELETED
        assert conflicts[0].remote_state == ChangeKind.ADDED
        assert conflicts[0].remote_added

    def test_local_added_remote_deleted(self):
        deltas = WordDeltas(local_additions=["dog"], remote_deletions=["dog"])
        conflicts = detect_conflicts(deltas)
        assert len(conflicts) == 1
        assert conflicts[0].word == "dog"
        assert conflicts[0].local_state == ChangeKind.ADDED
        assert conflicts[0].remote_state == ChangeKind.DELETED
        assert not conflicts[0].remote_added

    def test_exactly_one_conflict_per_overlapping_word(self):
        deltas = WordDeltas(
            remote_additions=["a", "b", "x"],
            local_deletions=["a", "b", "y"],
            local_additions=["c", "z"],
            remote_deletions=["c", "w"],
        )
        conflicts = detect_conflicts(deltas)
        states = {(c.word, c.local_state, c.remote_state) for c in conflicts}
        assert states == {
            ("a", ChangeKind.DELETED, ChangeKind.ADDED),
            ("b", ChangeKind.DELETED, ChangeKind.ADDED),
            ("c", ChangeKind.ADDED, ChangeKind.DELETED),
        }
        assert len(conflicts) == 3

    def test_same_direction_changes_do_not_conflict(self):
        deltas = WordDeltas(
            remote_additions=["a"],
            local_additions=["a"],
            remote_deletions=["b"],
            local_deletions=["b"],
        )
        assert detect_conflicts(deltas) == []

    def test_apply_leaves_conflicting_words_at_snapshot_presence(self):
        deltas = WordDeltas(
            remote_additions=["new"],
            local_deletions=["new"],
            local_additions=["kept"],
            remote_deletions=["kept"],
        )
        assert apply_deltas(["kept"], deltas) == ["kept"]
        assert apply_deltas([], deltas) == []


# ---------------------------------------------------------------------------
# merge_words
# ---------------------------------------------------------------------------


class TestMergeWords:
    def test_remote_delete_and_local_add(self):
        result = merge_words(
            ["cat", "dog"], ["cat", "dog", "fox"], ["cat"]
        )
        assert result.conflicts == []
        assert result.final_words == ["cat", "fox"]

    def test_local_delete_and_remote_add(self):
        result = merge_words(["cat"], [], ["cat", "bat"])
        assert result.conflicts == []
        assert result.final_words == ["bat"]

    def test_both_sides_add_same_word(self):
        result = merge_words([], ["fox"], ["fox"])
        assert result.final_words == ["fox"]
        assert not result.has_conflicts

    def test_both_sides_delete_same_word(self):
        result = merge_words(["fox", "owl"], ["owl"], ["owl"])
        assert result.final_words == ["owl"]

    def test_no_op_convergence(self):
        snapshot = ["apple", "Banana", "cherry"]
        result = merge_words(snapshot, snapshot, snapshot)
        assert result.final_words == sort_words(snapshot)
        assert result.conflicts == []

    def test_empty_everything(self):
        result = merge_words([], [], [])
        assert result.final_words == []
        assert result.conflicts == []

    def test_result_is_sorted_case_insensitively(self):
        result = merge_words([], ["zebra", "Apple"], ["mango"])
        assert result.final_words == ["Apple", "mango", "zebra"]

    def test_idempotent_and_inputs_untouched(self):
        snapshot = ["a", "b"]
        local = ["b", "c"]
        remote = ["a", "b", "d"]
        copies = (list(snapshot), list(local), list(remote))

        first = merge_words(snapshot, local, remote)
        second = merge_words(snapshot, local, remote)

        assert first == second
        assert (snapshot, local, remote) == copies

    @pytest.mark.parametrize(
        "snapshot,local,remote",
        [
            (["a", "b", "c"], ["a", "d"], ["b", "c", "e"]),
            (["x"], ["x", "y"], []),
            ([], ["p"], ["q"]),
            (["m", "n"], [], ["m", "n", "o"]),
        ],
    )
    def test_convergence_formula(self, snapshot, local, remote):
        deltas = compute_deltas(snapshot, local, remote)
        expected = (
            set(snapshot)
            | set(deltas.remote_additions)
            | set(deltas.local_additions)
        ) - (set(deltas.remote_deletions) | set(deltas.local_deletions))

        result = merge_words(snapshot, local, remote)

        assert result.conflicts == []
        assert set(result.final_words) == expected
        assert len(result.final_words) == len(expected)

    def test_no_conflicts_over_small_universe(self):
        # Every combination of three words across three sides.
        universe = ["a", "b", "c"]
        subsets = [
            list(c)
            for n in range(len(universe) + 1)
            for c in itertools.combinations(universe, n)
        ]
        for snapshot in subsets:
            for local in subsets:
                for remote in subsets:
                    assert not merge_words(snapshot, local, remote).conflicts
