"""Tree orchestration: single-root and multi-seed trees, layout and emission.

Every call rebuilds the tree from the graph snapshot it is given; nothing is
kept between calls.
"""

from __future__ import annotations

import logging
from collections import defaultdict

from tagtree.models.graph_models import Entity, Filters, Graph, Seeds
from tagtree.models.layout_models import (
    Position,
    PositionedNode,
    RoutedEdge,
    TreeLayoutResponse,
)
from tagtree.models.tree_models import TagCandidate, TreeNode, TreeStructureResponse
from tagtree.services.edge_router import collect_nodes_edges
from tagtree.services.entity_filters import filter_candidates, normalize_title, primary_tag
from tagtree.services.layout_config import (
    DEFAULT_MAX_DEPTH,
    MAX_DEPTH_LIMIT,
    MAX_NEW_TAGS,
    ORPHAN_MAX_DEPTH,
)
from tagtree.services.tag_colors import (
    ORPHAN_COLOR,
    OTHER_COLOR,
    ROOT_COLOR,
    hash_color,
)
from tagtree.services.tree_builder import build_tag_tree, tag_node_id
from tagtree.services.tree_consolidation import (
    consolidate_singletons,
    flatten_single_tag_children,
)
from tagtree.services.tree_layout import layout_tree

logger = logging.getLogger(__name__)

VIRTUAL_ROOT_ID = "virtual-root"
ORPHANS_ID = "orphans"
ORPHANS_LABEL = "Other Recommendations"
RELATED_ID = "tag:0:related"
RELATED_LABEL = "related"


def clamp_depth(max_depth: int) -> int:
    return max(1, min(max_depth, MAX_DEPTH_LIMIT))


def _entity_index(graph: Graph) -> dict[str, Entity]:
    """Entities by id; the first occurrence of a repeated id wins."""
    index: dict[str, Entity] = {}
    for entity in graph.entities:
        index.setdefault(entity.id, entity)
    return index


def _edges_from(graph: Graph) -> dict[str, list[str]]:
    edges: dict[str, list[str]] = defaultdict(list)
    for edge in graph.edges:
        edges[edge.from_id].append(edge.to_id)
    return edges


def clone_with_prefix(tree: TreeNode, prefix: str) -> TreeNode:
    """Deep copy of ``tree`` with every id namespaced as ``prefix::id``."""
    return tree.model_copy(
        update={
            "id": f"{prefix}::{tree.id}",
            "children": [clone_with_prefix(c, prefix) for c in tree.children],
        }
    )


def seed_membership(
    seed_ids: list[str],
    edges_from: dict[str, list[str]],
    eligible: set[str],
) -> dict[str, set[str]]:
    """For each eligible entity, the seeds it can be reached from.

    Reachability follows edges forward from each seed through eligible
    entities only; other seeds are never walked through.
    """
    membership: dict[str, set[str]] = {eid: set() for eid in eligible}
    seed_set = set(seed_ids)
    for seed_id in seed_ids:
        visited: set[str] = {seed_id}
        queue: list[str] = [seed_id]
        while queue:
            current = queue.pop(0)
            for child_id in edges_from.get(current, []):
                if child_id in visited or child_id in seed_set or child_id not in eligible:
                    continue
                visited.add(child_id)
                membership[child_id].add(seed_id)
                queue.append(child_id)
    return membership


def _root_node(root: Entity, children: list[TreeNode]) -> TreeNode:
    root_node = TreeNode(
        id=root.id,
        type="series",
        is_root=True,
        entity=root,
        color=ROOT_COLOR,
        children=children,
    )
    consolidate_singletons(root_node)
    root_node.children = flatten_single_tag_children(root_node.children)
    return root_node


def build_single_root_tree(
    graph: Graph,
    root_id: str,
    filters: Filters,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> TreeNode | None:
    """Tree under one root entity, first branching on the root's own tags.

    Each candidate lands under its primary tag (its first tag the root also
    carries); branches are ordered by how many candidates they hold.
    Candidates sharing none of the root's tags go under "related".
    """
    entities = _entity_index(graph)
    root = entities.get(root_id)
    if root is None:
        logger.info("Root %s not found in graph (%d entities)", root_id, len(entities))
        return None

    root_tags = set(filters.root_tags if filters.root_tags is not None else root.tags)
    exclude_ids = {root.id}
    candidates = filter_candidates(
        list(entities.values()),
        filters,
        exclude_ids,
        {normalize_title(root.title)},
        root_tags,
    )
    items = [
        TagCandidate(entity=e, new_tags=[t for t in e.tags if t not in root_tags])
        for e in candidates
    ]

    if max_depth <= 1:
        # No room for the primary-tag level; candidates hang off the root
        return _root_node(root, build_tag_tree(items, [], 1, 1, exclude_ids))

    primary_groups: dict[str, list[TagCandidate]] = {}
    no_shared_tag: list[TagCandidate] = []
    for item in items:
        tag = primary_tag(item.entity, root_tags)
        if tag is None:
            no_shared_tag.append(item)
        else:
            primary_groups.setdefault(tag, []).append(item)

    # The primary-tag level is the first of the max_depth levels
    branch_depth = max_depth - 1
    children: list[TreeNode] = []
    for tag in sorted(primary_groups, key=lambda t: (-len(primary_groups[t]), t)):
        children.append(
            TreeNode(
                id=tag_node_id(0, [tag]),
                type="tag",
                label=tag,
                color=hash_color(tag),
                children=build_tag_tree(primary_groups[tag], [tag], 1, branch_depth, exclude_ids),
            )
        )
    if no_shared_tag:
        children.append(
            TreeNode(
                id=RELATED_ID,
                type="tag",
                label=RELATED_LABEL,
                color=OTHER_COLOR,
                children=build_tag_tree(no_shared_tag, [], 1, branch_depth, exclude_ids),
            )
        )

    logger.debug(
        "Single-root tree for %s: %d candidates, %d primary branches, %d related",
        root_id, len(items), len(primary_groups), len(no_shared_tag),
    )
    return _root_node(root, children)


def build_multi_root_tree(
    graph: Graph,
    seed_ids: list[str],
    filters: Filters,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> TreeNode | None:
    """One tree per seed under a virtual root that is never emitted.

    Entities follow relationship edges out of each seed. An entity reachable
    from several seeds is cloned under each of them with ``seedId::`` ids,
    so the result stays a tree. Entities no seed reaches are grouped by tag
    under "Other Recommendations".
    """
    entities = _entity_index(graph)
    seeds = [entities[sid] for sid in dict.fromkeys(seed_ids) if sid in entities]
    if not seeds:
        logger.info("None of %d seed ids found in graph", len(seed_ids))
        return None

    resolved_ids = [s.id for s in seeds]
    exclude_ids = set(resolved_ids)
    seed_tags = {t for s in seeds for t in s.tags}

    candidates = filter_candidates(
        list(entities.values()),
        filters,
        exclude_ids,
        {normalize_title(s.title) for s in seeds},
        allow_primary=False,
    )
    eligible = {e.id for e in candidates}
    edges_from = _edges_from(graph)
    membership = seed_membership(resolved_ids, edges_from, eligible)

    def new_tags_of(entity: Entity) -> list[str]:
        return [t for t in entity.tags if t not in seed_tags]

    def build_entity_subtree(
        entity_id: str, depth: int, color: str, visited: set[str]
    ) -> TreeNode | None:
        if entity_id in visited or entity_id not in eligible:
            return None
        visited.add(entity_id)
        entity = entities[entity_id]
        node = TreeNode(
            id=entity_id,
            type="series",
            entity=entity,
            new_tags=new_tags_of(entity)[:MAX_NEW_TAGS],
            color=color,
        )
        if depth < max_depth:
            for child_id in edges_from.get(entity_id, []):
                child = build_entity_subtree(child_id, depth + 1, color, visited)
                if child is not None:
                    node.children.append(child)
        return node

    def namespace_shared(tree: TreeNode, seed_id: str) -> TreeNode:
        if len(membership.get(tree.id, ())) > 1:
            return clone_with_prefix(tree, seed_id)
        tree.children = [namespace_shared(c, seed_id) for c in tree.children]
        return tree

    placed: set[str] = set()
    seed_trees: list[TreeNode] = []
    for idx, seed in enumerate(seeds):
        seed_node = TreeNode(
            id=seed.id,
            type="series",
            is_root=True,
            is_seed=True,
            entity=seed,
            color=hash_color(seed.cluster or f"seed-{idx}"),
        )
        visited: set[str] = {seed.id}
        for child_id in edges_from.get(seed.id, []):
            if seed.id not in membership.get(child_id, ()):
                continue
            child = build_entity_subtree(child_id, 1, seed_node.color, visited)
            if child is not None:
                seed_node.children.append(namespace_shared(child, seed.id))
        placed.update(visited)
        seed_trees.append(seed_node)

    orphans = [
        TagCandidate(entity=e, new_tags=new_tags_of(e))
        for e in candidates
        if e.id not in placed
    ]

    children = list(seed_trees)
    if orphans:
        children.append(
            TreeNode(
                id=ORPHANS_ID,
                type="tag",
                label=ORPHANS_LABEL,
                color=ORPHAN_COLOR,
                children=build_tag_tree(
                    orphans, [], 1, min(ORPHAN_MAX_DEPTH, max_depth), exclude_ids
                ),
            )
        )

    shared = sum(1 for seeds_of in membership.values() if len(seeds_of) > 1)
    logger.debug(
        "Multi-root tree: %d seeds, %d candidates, %d shared, %d orphans",
        len(seeds), len(candidates), shared, len(orphans),
    )

    virtual_root = TreeNode(
        id=VIRTUAL_ROOT_ID,
        type="tag",
        label="Tag Results",
        color=OTHER_COLOR,
        children=children,
    )
    consolidate_singletons(virtual_root)
    virtual_root.children = flatten_single_tag_children(virtual_root.children)
    return virtual_root


def build_tree(
    graph: Graph,
    seeds: Seeds,
    filters: Filters,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> tuple[str, TreeNode | None]:
    """Pick the mode from ``seeds`` and build the consolidated tree."""
    max_depth = clamp_depth(max_depth)
    if seeds.seed_ids:
        tree = build_multi_root_tree(graph, seeds.seed_ids, filters, max_depth)
        return ("multi", tree) if tree is not None else ("empty", None)
    if seeds.root_id:
        tree = build_single_root_tree(graph, seeds.root_id, filters, max_depth)
        return ("single", tree) if tree is not None else ("empty", None)
    return "empty", None


def compute_tree_layout(
    graph: Graph,
    seeds: Seeds,
    filters: Filters,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> TreeLayoutResponse:
    """Build, lay out and flatten the tree into renderable nodes and edges."""
    mode, tree = build_tree(graph, seeds, filters, max_depth)
    if tree is None:
        return TreeLayoutResponse(mode="empty")

    positions: dict[str, Position] = {}
    nodes: list[PositionedNode] = []
    edges: list[RoutedEdge] = []
    if tree.id == VIRTUAL_ROOT_ID:
        # Start one level left so the seeds land at x=0
        layout_tree(tree, -1, 0, positions)
        for child in tree.children:
            collect_nodes_edges(child, positions, nodes, edges)
    else:
        layout_tree(tree, 0, 0, positions)
        collect_nodes_edges(tree, positions, nodes, edges)

    logger.info("Tree layout (%s): %d nodes, %d edges", mode, len(nodes), len(edges))
    return TreeLayoutResponse(mode=mode, nodes=nodes, edges=edges)


def build_tree_structure(
    graph: Graph,
    seeds: Seeds,
    filters: Filters,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> TreeStructureResponse:
    """The consolidated tree without coordinates."""
    mode, tree = build_tree(graph, seeds, filters, max_depth)
    if tree is None:
        return TreeStructureResponse(mode="empty")
    roots = tree.children if tree.id == VIRTUAL_ROOT_ID else [tree]
    return TreeStructureResponse(mode=mode, roots=roots)

