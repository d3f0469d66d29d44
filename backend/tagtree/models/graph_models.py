"""Pydantic models for the relationship graph handed to the tree engine."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel


class Entity(BaseModel):
    """A series/publication node. Tags are in relevance order."""

    id: str
    title: str
    tags: list[str] = []
    cluster: str | None = None
    media_type: Literal["ANIME", "MANGA"] = "ANIME"
    provider: str = ""
    metadata: dict[str, Any] = {}

    @property
    def streaming_platforms(self) -> list[str]:
        links = self.metadata.get("streamingLinks") or {}
        return list(links.keys()) if isinstance(links, dict) else []


class RelationshipEdge(BaseModel):
    """Directed edge: ``from_id`` recommends / relates to ``to_id``."""

    from_id: str
    to_id: str
    similarity: float | None = None
    shared_tags: list[str] = []


class Graph(BaseModel):
    entities: list[Entity] = []
    edges: list[RelationshipEdge] = []


class Seeds(BaseModel):
    root_id: str | None = None
    seed_ids: list[str] = []


class Filters(BaseModel):
    required_tags: set[str] = set()
    excluded_tags: set[str] = set()
    filter_mode: Literal["primary", "all"] = "all"
    deselected_services: set[str] = set()
    media_filter: Literal["ANIME", "MANGA", "BOTH"] = "BOTH"
    # Overrides the root entity's own tags as the primary-tag reference
    root_tags: list[str] | None = None
