"""Flatten a laid-out tree into positioned nodes and colored connectors."""

from __future__ import annotations

from tagtree.models.layout_models import OverRoute, Position, PositionedNode, RoutedEdge
from tagtree.models.tree_models import TreeNode
from tagtree.services.layout_config import CLEARANCE, ROUTE_INSET
from tagtree.services.tree_layout import has_only_leaf_series


def _positioned(node: TreeNode, pos: Position, color: str) -> PositionedNode:
    entity = node.entity
    if node.is_tag:
        label = node.label
    else:
        label = entity.title if entity else None
    new_tags = node.new_tags
    if node.is_root and entity is not None:
        new_tags = list(entity.tags)
    return PositionedNode(
        id=node.id,
        kind="tagGroup" if node.is_tag else "entityLeaf",
        x=pos.x,
        y=pos.y,
        color=color,
        label=label,
        entity=entity,
        new_tags=new_tags,
        is_root=node.is_root,
        is_seed=node.is_seed,
    )


def over_route_y(node: TreeNode, positions: dict[str, Position]) -> float:
    """Shared travel line of a multi-column group, above its top card row."""
    first_row_y = min(positions[c.id].y for c in node.children if c.id in positions)
    return first_row_y - CLEARANCE


def collect_nodes_edges(
    node: TreeNode,
    positions: dict[str, Position],
    nodes_out: list[PositionedNode],
    edges_out: list[RoutedEdge],
    inherited_color: str | None = None,
) -> None:
    """Emit ``node`` and its subtree, depth-first.

    Leaves take the color of their nearest tag ancestor so each branch is
    traceable by color; tag groups and roots keep their own. Edges out of a
    tag group use its color, edges out of an entity use the child's color.
    """
    pos = positions.get(node.id) or Position(x=0, y=0)
    if node.is_root or node.is_tag:
        display_color = node.color
    else:
        display_color = inherited_color or node.color
    nodes_out.append(_positioned(node, pos, display_color))

    edge_color = node.color if node.is_tag else None
    child_inherited = node.color if node.is_tag else inherited_color

    route_y: float | None = None
    if has_only_leaf_series(node) and node.id in positions:
        route_y = over_route_y(node, positions)

    for child in node.children:
        color = edge_color or child.color
        child_pos = positions.get(child.id)
        path: str | OverRoute = "direct"
        if route_y is not None and child_pos is not None:
            # Drop just left of the card so the last segment enters it left-to-right
            path = OverRoute(over_route_x=child_pos.x - ROUTE_INSET, over_route_y=route_y)
        edges_out.append(
            RoutedEdge(
                id=f"{node.id}->{child.id}",
                from_id=node.id,
                to_id=child.id,
                color=color,
                path=path,
            )
        )
        collect_nodes_edges(child, positions, nodes_out, edges_out, child_inherited)
