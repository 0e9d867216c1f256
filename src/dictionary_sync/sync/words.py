"""Word-set utilities shared by the merger, orchestrator and reporters.

A word set is a plain ``list[str]``.  Uniqueness is exact string equality
("Cat" and "cat" are two words); only the display order folds case.

None of these helpers mutate their arguments.
"""

from __future__ import annotations

import locale
from collections.abc import Iterable


def _sort_key(word: str) -> tuple[str, str]:
    # Raw string as tie-break keeps "Cat"/"cat" in a stable order.
    return locale.strxfrm(word.casefold()), word


def sort_words(words: Iterable[str]) -> list[str]:
    """Return *words* sorted case-insensitively in locale order."""
    return sorted(words, key=_sort_key)


def unique_words(words: Iterable[str]) -> list[str]:
    """Drop exact duplicates, keeping the first occurrence."""
    seen: set[str] = set()
    result: list[str] = []
    for word in words:
        if word not in seen:
            seen.add(word)
            result.append(word)
    return result


def difference(a: Iterable[str], b: Iterable[str]) -> list[str]:
    """Members of *a* that are not in *b*, in the order of *a*."""
    exclude = set(b)
    return [word for word in unique_words(a) if word not in exclude]


def union(a: Iterable[str], b: Iterable[str]) -> list[str]:
    """*a* followed by the members of *b* not already in *a*."""
    return unique_words([*a, *b])


def diff_words(
    target: Iterable[str], current: Iterable[str]
) -> tuple[list[str], list[str]]:
    """Compute the edits that turn *current* into *target*.

    Returns:
        ``(to_add, to_remove)`` where *to_add* are words in *target*
        missing from *current* and *to_remove* the reverse.
    """
    target = list(target)
    current = list(current)
    return difference(target, current), difference(current, target)


def same_words(a: Iterable[str], b: Iterable[str]) -> bool:
    """True when *a* and *b* hold the same words, ignoring order."""
    return set(a) == set(b)


def normalize_word(text: str | None) -> str | None:
    """Trim surrounding whitespace; ``None`` for empty input."""
    if text is None:
        return None
    word = text.strip()
    return word or None


def filter_words(words: Iterable[str], query: str | None) -> list[str]:
    """Case-insensitive substring search over *words*."""
    if not query:
        return list(words)
    needle = query.casefold()
    return [word for word in words if needle in word.casefold()]
