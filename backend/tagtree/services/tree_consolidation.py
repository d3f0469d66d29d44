"""Post-build cleanup: regroup singleton tag groups and drop tag-only levels."""

from __future__ import annotations

import logging

from tagtree.models.tree_models import TreeNode
from tagtree.services.tag_colors import OTHER_COLOR, hash_color
from tagtree.services.tag_frequency import rank_tags

logger = logging.getLogger(__name__)

OTHER_LABEL = "other"


def _is_singleton_group(node: TreeNode) -> bool:
    return node.is_tag and len(node.children) == 1 and node.children[0].type == "series"


def consolidate_singletons(node: TreeNode) -> None:
    """Merge sibling tag groups that hold a single entity each.

    Singletons sharing a tag are regrouped under it; whatever is left goes
    into an "other" bucket when there are two or more, otherwise the lone
    singleton keeps its original group. Applied depth-first, in place.
    """
    if not node.is_tag and not node.is_root:
        return

    for child in node.children:
        consolidate_singletons(child)

    singleton_groups: list[TreeNode] = []
    other_children: list[TreeNode] = []
    for child in node.children:
        if _is_singleton_group(child):
            singleton_groups.append(child)
        else:
            other_children.append(child)

    if len(singleton_groups) < 2:
        return

    leaves = [group.children[0] for group in singleton_groups]

    supporters: dict[str, list[TreeNode]] = {}
    for leaf in leaves:
        for tag in dict.fromkeys(leaf.new_tags):
            supporters.setdefault(tag, []).append(leaf)

    used: set[str] = set()
    counts = {tag: len(members) for tag, members in supporters.items()}
    for tag in rank_tags(counts):
        available = [leaf for leaf in supporters[tag] if leaf.id not in used]
        if len(available) < 2:
            continue
        moved = [
            leaf.model_copy(update={"new_tags": [t for t in leaf.new_tags if t != tag]})
            for leaf in available
        ]
        existing = next((c for c in other_children if c.is_tag and c.label == tag), None)
        if existing is not None:
            existing.children.extend(moved)
        else:
            other_children.append(
                TreeNode(
                    id=f"{node.id}:regrouped:{tag}",
                    type="tag",
                    label=tag,
                    color=hash_color(tag),
                    children=moved,
                )
            )
        used.update(leaf.id for leaf in available)

    isolated = [leaf for leaf in leaves if leaf.id not in used]
    if len(isolated) >= 2:
        other_children.append(
            TreeNode(
                id=f"{node.id}:{OTHER_LABEL}",
                type="tag",
                label=OTHER_LABEL,
                color=OTHER_COLOR,
                children=isolated,
            )
        )
    else:
        for leaf in isolated:
            other_children.append(next(g for g in singleton_groups if g.children[0] is leaf))

    logger.debug(
        "consolidate_singletons(%s): %d singletons, %d regrouped, %d isolated",
        node.id, len(singleton_groups), len(used), len(isolated),
    )
    node.children = other_children


def flatten_single_tag_children(nodes: list[TreeNode]) -> list[TreeNode]:
    """Replace tag groups whose only child is another tag group by that child."""
    flattened: list[TreeNode] = []
    for node in nodes:
        if node.children:
            node.children = flatten_single_tag_children(node.children)
        if node.is_tag and len(node.children) == 1 and node.children[0].is_tag:
            flattened.append(node.children[0])
        else:
            flattened.append(node)
    return flattened
