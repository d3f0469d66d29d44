"""Pydantic models for the positioned tree returned to renderers."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from tagtree.models.graph_models import Entity, Filters, Graph, Seeds


class Position(BaseModel):
    x: float
    y: float


class OverRoute(BaseModel):
    """Connector that travels along a shared horizontal line above a card group.

    ``over_route_y`` is the travel line, ``over_route_x`` the column the
    connector drops down at (just left of the target card).
    """

    over_route_x: float
    over_route_y: float

    def polyline(self, source: Position, target: Position) -> list[Position]:
        """Waypoints from the source anchor to the target anchor."""
        return [
            source,
            Position(x=source.x, y=self.over_route_y),
            Position(x=self.over_route_x, y=self.over_route_y),
            Position(x=self.over_route_x, y=target.y),
            target,
        ]


class PositionedNode(BaseModel):
    id: str
    kind: Literal["tagGroup", "entityLeaf"]
    x: float
    y: float
    color: str
    label: str | None = None
    entity: Entity | None = None
    new_tags: list[str] = []
    is_root: bool = False
    is_seed: bool = False


class RoutedEdge(BaseModel):
    id: str  # "{from_id}->{to_id}"
    from_id: str
    to_id: str
    color: str
    path: Literal["direct"] | OverRoute = "direct"


class Viewport(BaseModel):
    """Last pan/zoom of the caller's canvas, passed through untouched."""

    x: float = 0.0
    y: float = 0.0
    zoom: float = 1.0


class TreeLayoutRequest(BaseModel):
    graph: Graph
    seeds: Seeds = Seeds()
    filters: Filters = Filters()
    max_depth: int = 3
    viewport: Viewport | None = None


class TreeLayoutResponse(BaseModel):
    mode: Literal["single", "multi", "empty"]
    nodes: list[PositionedNode] = []
    edges: list[RoutedEdge] = []
    viewport: Viewport | None = None
