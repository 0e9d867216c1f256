"""Sync report formatting functions.

Provides human-readable and machine-readable output for sync operations:

- ``format_sync_notice`` -- the single user notice of a completed cycle.
- ``format_sync_report`` -- full post-sync summary.
- ``format_removal_preview`` -- body of the bulk-removal warning.
- ``format_conflicts`` -- one line per conflicting word.
- ``format_word_list`` -- dictionary listing with optional filter.
- ``format_status`` -- orchestrator status summary.
- ``report_to_json`` -- structured dict for MCP tool and ``--json`` output.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .words import filter_words

if TYPE_CHECKING:
    from .models import MergeConflict, SyncReport

REMOVAL_PREVIEW_CAP = 20

# ------------------------------------------------------------------
# Notices
# ------------------------------------------------------------------


def format_sync_notice(report: SyncReport) -> str | None:
    """One-line notice for a committed cycle, or ``None`` if nothing changed."""
    if not report.committed or not report.changed:
        return None
    return (
        f"Dictionary sync complete: {len(report.added)} words added "
        f"to system, {len(report.removed)} removed from system"
    )


# ------------------------------------------------------------------
# Human-readable report
# ------------------------------------------------------------------


def format_sync_report(report: SyncReport) -> str:
    """Format a sync report as human-readable text.

    Sections are only included when they contain at least one word.

    Args:
        report: The completed sync report.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []

    header = f"Sync ({report.trigger.value}): {report.outcome.value}"
    lines.append(header)
    lines.append(f"Started: {report.started_at}")
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    if report.message:
        lines.append(f"Note: {report.message}")
    lines.append("")

    lines.append(
        f"{len(report.added)} added, {len(report.removed)} removed, "
        f"{len(report.merged_back)} merged back, "
        f"{len(report.conflicts)} conflicts, {len(report.failed)} failed"
    )
    lines.append("")

    sections = [
        ("Added to system dictionary:", report.added),
        ("Removed from system dictionary:", report.removed),
        ("Kept instead of removed:", report.merged_back),
        ("Failed:", report.failed),
    ]
    for title, words in sections:
        if words:
            lines.append(title)
            lines.extend(f"  {word}" for word in words)
            lines.append("")

    if report.conflicts:
        lines.append("Conflicts:")
        lines.extend(f"  {line}" for line in format_conflicts(report.conflicts))
        lines.append("")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# Decision surfaces
# ------------------------------------------------------------------


def format_removal_preview(
    words: list[str], cap: int = REMOVAL_PREVIEW_CAP
) -> str:
    """Format the bulk-removal warning.

    At most *cap* words are listed, followed by a count of the rest.
    """
    lines = [
        f"{len(words)} words (shown below) will be removed from your "
        "local dictionary based on the synced dictionary.",
        "Do you want to remove these, or merge them into the global "
        "synced dictionary?",
        "",
    ]
    lines.extend(f"  - {word}" for word in words[:cap])
    if len(words) > cap:
        lines.append(f"...and {len(words) - cap} more words")
    return "\n".join(lines)


def describe_conflict(conflict: MergeConflict) -> str:
    if conflict.remote_added:
        return "Remote added this, but you deleted it."
    return "You added this, but remote deleted it."


def format_conflicts(conflicts: list[MergeConflict]) -> list[str]:
    """One ``word: description`` line per conflict."""
    return [f"{c.word}: {describe_conflict(c)}" for c in conflicts]


# ------------------------------------------------------------------
# Listings
# ------------------------------------------------------------------


def format_word_list(words: list[str], query: str | None = None) -> str:
    """Format the dictionary for display, optionally filtered by *query*."""
    shown = filter_words(words, query)
    if not shown:
        if query:
            body = "No matching words found."
        else:
            body = (
                "No words in the dictionary yet. Use "
                "'dictionary-sync add <word>' to add some!"
            )
        return f"{body}\nTotal words in dictionary: {len(words)}"

    lines = list(shown)
    lines.append(f"Total words in dictionary: {len(words)}")
    return "\n".join(lines)


def format_status(status: dict[str, Any]) -> str:
    """Format the dict returned by ``SyncOrchestrator.status()``."""
    lines = [
        f"Settings file:     {status['settings_file']}",
        f"Native store:      {status['store']}"
        + ("" if status["store_available"] else " (unavailable)"),
        f"Phase:             {status['phase']}",
        f"Words:             {status['words']}",
        f"Snapshot words:    {status['snapshot_words']}",
        f"Unsynced changes:  {status['pending_changes']}",
        f"Warning threshold: {status['warning_threshold']}",
        f"Polling rate:      {status['polling_interval']:g}s",
    ]
    last = status.get("last_sync")
    if last:
        lines.append(
            f"Last sync:         {last['completed_at'] or last['started_at']}"
            f" ({last['outcome']})"
        )
    else:
        lines.append("Last sync:         never")
    return "\n".join(lines)


# ------------------------------------------------------------------
# JSON
# ------------------------------------------------------------------


def report_to_json(report: SyncReport) -> dict[str, Any]:
    """Convert a ``SyncReport`` to a plain dict."""
    return {
        "trigger": report.trigger.value,
        "outcome": report.outcome.value,
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "message": report.message,
        "summary": {
            "added": len(report.added),
            "removed": len(report.removed),
            "merged_back": len(report.merged_back),
            "conflicts": len(report.conflicts),
            "failed": len(report.failed),
        },
        "added": list(report.added),
        "removed": list(report.removed),
        "merged_back": list(report.merged_back),
        "failed": list(report.failed),
        "conflicts": [
            {
                "word": c.word,
                "local_state": c.local_state.value,
                "remote_state": c.remote_state.value,
            }
            for c in report.conflicts
        ],
    }
