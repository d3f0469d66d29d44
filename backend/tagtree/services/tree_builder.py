"""Recursive tag-group tree construction.

Every candidate picks its own first qualifying tag (one shared by at least two
candidates) in its relevance order, rather than being handed to the globally
most popular tag. Groups that end up with a single member are re-pooled and
given a second chance among themselves before the leftovers are attached to
an existing group, seeded into a new one, or emitted as bare leaves.
"""

from __future__ import annotations

import logging
from collections.abc import Collection

from tagtree.models.tree_models import TagCandidate, TreeNode
from tagtree.services.layout_config import MAX_NEW_TAGS
from tagtree.services.tag_colors import hash_color
from tagtree.services.tag_frequency import available_tags, count_tags

logger = logging.getLogger(__name__)

MIN_GROUP_SUPPORT = 2


def tag_node_id(depth: int, path: list[str]) -> str:
    return f"tag:{depth}:{'>'.join(path)}"


def make_leaf(candidate: TagCandidate, used_tags: Collection[str]) -> TreeNode:
    """Leaf for an entity, showing only tags not consumed by its ancestors."""
    entity = candidate.entity
    return TreeNode(
        id=entity.id,
        type="series",
        entity=entity,
        new_tags=available_tags(candidate, used_tags)[:MAX_NEW_TAGS],
        color=hash_color(entity.cluster or "default"),
    )


def _assign_items(
    items: list[TagCandidate],
    counts: dict[str, int],
    used_tags: set[str],
    groups: dict[str, list[TagCandidate]],
    fallback: list[TagCandidate],
) -> None:
    for item in items:
        tag = next(
            (t for t in available_tags(item, used_tags) if counts.get(t, 0) >= MIN_GROUP_SUPPORT),
            None,
        )
        if tag is None:
            fallback.append(item)
        else:
            groups.setdefault(tag, []).append(item)


def build_tag_tree(
    items: list[TagCandidate],
    used_tags: list[str],
    depth: int,
    max_depth: int,
    exclude_ids: Collection[str],
) -> list[TreeNode]:
    """Partition candidates into tag groups and leaves.

    Args:
        items: Candidates to place.
        used_tags: Tags already branched on along this path, outermost first.
        depth: Current builder depth.
        max_depth: At this depth every remaining candidate becomes a leaf.
        exclude_ids: Entity ids never placed (roots / seeds).

    Returns:
        Bare leaves first, then tag groups (largest first).
    """
    filtered = [i for i in items if i.entity.id not in exclude_ids]
    if not filtered:
        return []

    used = set(used_tags)

    if depth >= max_depth:
        return [make_leaf(i, used) for i in filtered]

    tag_counts = count_tags(filtered, used)
    if not tag_counts:
        # Nothing left to differentiate on
        return [make_leaf(i, used) for i in filtered]

    groups: dict[str, list[TagCandidate]] = {}
    unassigned: list[TagCandidate] = []
    _assign_items(filtered, tag_counts, used, groups, unassigned)

    regroup_pool: list[TagCandidate] = []
    for tag, members in list(groups.items()):
        if len(members) == 1:
            regroup_pool.append(members[0])
            del groups[tag]
    if len(regroup_pool) >= MIN_GROUP_SUPPORT:
        _assign_items(regroup_pool, count_tags(regroup_pool, used), used, groups, unassigned)
    else:
        unassigned.extend(regroup_pool)

    # Keyed by label so groups surfacing from collapsed levels merge
    tag_nodes: dict[str, TreeNode] = {}

    def add_tag_node(label: str, node_id: str, children: list[TreeNode]) -> None:
        existing = tag_nodes.get(label)
        if existing is not None:
            existing.children.extend(children)
        else:
            tag_nodes[label] = TreeNode(
                id=node_id,
                type="tag",
                label=label,
                color=hash_color(label),
                children=children,
            )

    for tag, members in sorted(groups.items(), key=lambda kv: -len(kv[1])):
        path = [*used_tags, tag]
        children = build_tag_tree(members, path, depth + 1, max_depth, exclude_ids)
        if children and all(c.is_tag for c in children):
            # No entity would sit directly under this tag; lift its groups up
            for child in children:
                add_tag_node(child.label or "", child.id, child.children)
        else:
            add_tag_node(tag, tag_node_id(depth, path), children)

    result: list[TreeNode] = []

    orphan_freq = count_tags(unassigned, used)
    for item in unassigned:
        remaining = sorted(available_tags(item, used), key=lambda t: -orphan_freq.get(t, 0))
        matching = next((t for t in remaining if t in tag_nodes), None)
        if matching is not None:
            tag_nodes[matching].children.append(make_leaf(item, used | {matching}))
        elif remaining:
            best = remaining[0]
            add_tag_node(best, tag_node_id(depth, [*used_tags, best]), [make_leaf(item, used | {best})])
        else:
            result.append(make_leaf(item, used))

    result.extend(tag_nodes.values())

    logger.debug(
        "build_tag_tree(depth=%d): %d candidates -> %d groups, %d bare leaves",
        depth, len(filtered), len(tag_nodes), len(result) - len(tag_nodes),
    )
    return result
