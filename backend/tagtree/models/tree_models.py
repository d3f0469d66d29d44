"""Tree structures produced by the tag tree builder."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from tagtree.models.graph_models import Entity


class TagCandidate(BaseModel):
    """An entity waiting to be placed, with the tags it can still branch on."""

    entity: Entity
    new_tags: list[str] = []


class TreeNode(BaseModel):
    """A tag group (``type="tag"``) or an entity leaf (``type="series"``)."""

    id: str
    type: Literal["series", "tag"]
    label: str | None = None
    color: str
    is_root: bool = False
    is_seed: bool = False
    entity: Entity | None = None
    new_tags: list[str] = []
    children: list[TreeNode] = []

    @property
    def is_tag(self) -> bool:
        return self.type == "tag"

    @property
    def is_leaf_series(self) -> bool:
        return self.type == "series" and not self.children


class TreeStructureResponse(BaseModel):
    mode: Literal["single", "multi", "empty"]
    roots: list[TreeNode] = []
