"""Tag frequency counting over candidate entities."""

from __future__ import annotations

from collections.abc import Collection, Iterable

from tagtree.models.tree_models import TagCandidate


def available_tags(candidate: TagCandidate, used_tags: Collection[str]) -> list[str]:
    """The candidate's tags not yet used on its path, relevance order, no repeats."""
    return [t for t in dict.fromkeys(candidate.new_tags) if t not in used_tags]


def count_tags(
    candidates: Iterable[TagCandidate], used_tags: Collection[str]
) -> dict[str, int]:
    """Map each unused tag to the number of candidates exposing it."""
    counts: dict[str, int] = {}
    for candidate in candidates:
        for tag in available_tags(candidate, used_tags):
            counts[tag] = counts.get(tag, 0) + 1
    return counts


def rank_tags(counts: dict[str, int]) -> list[str]:
    """Tags by descending count; equal counts ordered by label."""
    return sorted(counts, key=lambda t: (-counts[t], t))
