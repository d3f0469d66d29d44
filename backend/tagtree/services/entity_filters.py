"""Candidate selection: media kind, streaming service and tag filters."""

from __future__ import annotations

import re
from collections.abc import Collection

from tagtree.models.graph_models import Entity, Filters

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_title(title: str) -> str:
    """Lowercase and strip everything but ascii letters and digits.

    Catches the same series under apostrophe/punctuation variants.
    """
    return _NON_ALNUM.sub("", title.lower())


def primary_tag(entity: Entity, root_tags: Collection[str]) -> str | None:
    """First of the entity's tags that the root also carries."""
    return next((t for t in entity.tags if t in root_tags), None)


def _passes_media(entity: Entity, filters: Filters) -> bool:
    if filters.media_filter == "BOTH":
        return True
    return entity.media_type == filters.media_filter


def _passes_services(entity: Entity, filters: Filters) -> bool:
    if not filters.deselected_services:
        return True
    platforms = entity.streaming_platforms
    if platforms:
        return any(p not in filters.deselected_services for p in platforms)
    return entity.provider not in filters.deselected_services


def _passes_tags(entity: Entity, filters: Filters, mode: str, root_tags: Collection[str]) -> bool:
    if mode == "primary":
        primary = primary_tag(entity, root_tags)
        if filters.required_tags and (primary is None or primary not in filters.required_tags):
            return False
        if filters.excluded_tags and primary is not None and primary in filters.excluded_tags:
            return False
        return True

    if filters.required_tags and not any(t in filters.required_tags for t in entity.tags):
        return False
    if filters.excluded_tags and any(t in filters.excluded_tags for t in entity.tags):
        return False
    return True


def passes_filters(
    entity: Entity,
    filters: Filters,
    root_tags: Collection[str] = (),
    *,
    allow_primary: bool = True,
) -> bool:
    """Whether an entity survives every active filter.

    ``filter_mode="primary"`` judges tags by the entity's primary tag against
    ``root_tags``; with ``allow_primary=False`` (multi-seed queries) tag
    filters always look at all tags.
    """
    mode = filters.filter_mode if allow_primary else "all"
    return (
        _passes_media(entity, filters)
        and _passes_services(entity, filters)
        and _passes_tags(entity, filters, mode, root_tags)
    )


def filter_candidates(
    entities: list[Entity],
    filters: Filters,
    exclude_ids: Collection[str],
    exclude_titles: Collection[str],
    root_tags: Collection[str] = (),
    *,
    allow_primary: bool = True,
) -> list[Entity]:
    """Entities other than the roots/seeds that pass the filters, in input order."""
    return [
        e
        for e in entities
        if e.id not in exclude_ids
        and normalize_title(e.title) not in exclude_titles
        and passes_filters(e, filters, root_tags, allow_primary=allow_primary)
    ]
