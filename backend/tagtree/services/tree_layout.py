"""Left-to-right tree layout: depth maps to x, siblings stack along y.

A node whose children are all childless entity leaves (two or more) is laid
out in multi-column mode: cards fill columns of at most ``MAX_ROWS`` and the
group grows sideways instead of down.
"""

from __future__ import annotations

import math

from tagtree.models.layout_models import Position
from tagtree.models.tree_models import TreeNode
from tagtree.services.layout_config import (
    CARD_GAP,
    CARD_H,
    CARD_W,
    CLEARANCE,
    COL_GAP,
    LEVEL_STEP,
    MAX_ROWS,
    SIBLING_GAP,
    TAG_H,
    TAG_ROW_H,
)


def has_only_leaf_series(node: TreeNode) -> bool:
    return len(node.children) >= 2 and all(c.is_leaf_series for c in node.children)


def node_height(node: TreeNode) -> float:
    if node.is_tag:
        return TAG_H
    entity_tags = node.entity.tags if node.entity else []
    if node.is_root:
        tag_count = len(entity_tags)
    else:
        tag_count = len(node.new_tags) if node.new_tags else len(entity_tags)
    extra_rows = max(0, math.ceil(tag_count / 2) - 2)
    return CARD_H + extra_rows * TAG_ROW_H


def subtree_height(node: TreeNode) -> float:
    if not node.children:
        return node_height(node)
    if has_only_leaf_series(node):
        rows = min(MAX_ROWS, len(node.children))
        row_h = max(node_height(c) for c in node.children)
        return CLEARANCE + rows * row_h + (rows - 1) * CARD_GAP
    child_sum = sum(subtree_height(c) for c in node.children)
    return child_sum + (len(node.children) - 1) * SIBLING_GAP


def column_of(index: int) -> tuple[int, int]:
    """(column, row) of the index-th card in a multi-column group."""
    return index // MAX_ROWS, index % MAX_ROWS


def layout_tree(
    node: TreeNode,
    depth: int,
    start_y: float,
    positions: dict[str, Position],
) -> None:
    """Assign a position to ``node`` and every descendant, in place."""
    nh = node_height(node)
    x = depth * LEVEL_STEP

    if not node.children:
        positions[node.id] = Position(x=x, y=start_y)
        return

    if has_only_leaf_series(node):
        # Centered on the routing line, cards below it after the clearance
        positions[node.id] = Position(x=x, y=start_y - nh / 2)
        row_h = max(node_height(c) for c in node.children)
        for i, child in enumerate(node.children):
            col, row = column_of(i)
            positions[child.id] = Position(
                x=(depth + 1) * LEVEL_STEP + col * (CARD_W + COL_GAP),
                y=start_y + CLEARANCE + row * (row_h + CARD_GAP),
            )
        return

    sh = subtree_height(node)
    positions[node.id] = Position(x=x, y=start_y + max(0.0, (sh - nh) / 2))
    child_y = start_y
    for child in node.children:
        layout_tree(child, depth + 1, child_y, positions)
        child_y += subtree_height(child) + SIBLING_GAP
