"""Tests for recursive tag-group tree construction."""

import random

from tagtree.models.graph_models import Entity
from tagtree.models.tree_models import TagCandidate, TreeNode
from tagtree.services.tree_builder import build_tag_tree, make_leaf


def _candidate(entity_id: str, tags: list[str], cluster: str | None = None) -> TagCandidate:
    return TagCandidate(
        entity=Entity(id=entity_id, title=entity_id.title(), tags=tags, cluster=cluster),
        new_tags=tags,
    )


def _tags(nodes: list[TreeNode]) -> list[TreeNode]:
    return [n for n in nodes if n.type == "tag"]


def _leaf_ids(nodes: list[TreeNode]) -> set[str]:
    return {n.id for n in nodes if n.type == "series"}


def _walk(nodes: list[TreeNode], ancestors: tuple[str, ...] = ()):
    """Yield (node, labels of tag ancestors) for every node."""
    for node in nodes:
        yield node, ancestors
        child_ancestors = ancestors + (node.label,) if node.type == "tag" else ancestors
        yield from _walk(node.children, child_ancestors)


# --- Basic termination cases ---


def test_empty_input():
    assert build_tag_tree([], [], 0, 3, set()) == []


def test_excluded_ids_are_dropped():
    items = [_candidate("root", ["a"]), _candidate("x", ["a"])]
    result = build_tag_tree(items, [], 3, 3, {"root"})
    assert [n.id for n in result] == ["x"]


def test_max_depth_returns_leaves():
    items = [_candidate("a", ["x", "y"]), _candidate("b", ["x", "y"])]
    result = build_tag_tree(items, [], 2, 2, set())
    assert all(n.type == "series" for n in result)
    assert [n.id for n in result] == ["a", "b"]


def test_no_tags_flattens_to_leaves():
    items = [_candidate("a", []), _candidate("b", []), _candidate("c", ["used"])]
    result = build_tag_tree(items, ["used"], 0, 3, set())
    assert [n.type for n in result] == ["series", "series", "series"]


def test_leaf_shows_at_most_four_new_tags():
    leaf = make_leaf(_candidate("a", ["t1", "t2", "t3", "t4", "t5", "t6"]), {"t2"})
    assert leaf.new_tags == ["t1", "t3", "t4", "t5"]


def test_leaf_color_from_cluster():
    a = make_leaf(_candidate("a", [], cluster="shonen"), set())
    b = make_leaf(_candidate("b", [], cluster="shonen"), set())
    c = make_leaf(_candidate("c", []), set())
    d = make_leaf(_candidate("d", []), set())
    assert a.color == b.color
    assert c.color == d.color


# --- Grouping ---


def test_nested_branch_forms_inside_popular_tag():
    """Five share isekai, three of them also mecha."""
    items = [
        _candidate("a1", ["isekai", "mecha"]),
        _candidate("a2", ["isekai", "mecha"]),
        _candidate("a3", ["isekai", "mecha"]),
        _candidate("a4", ["isekai"]),
        _candidate("a5", ["isekai"]),
    ]
    result = build_tag_tree(items, [], 0, 2, set())

    assert len(result) == 1
    isekai = result[0]
    assert isekai.type == "tag"
    assert isekai.label == "isekai"
    assert isekai.id == "tag:0:isekai"

    assert _leaf_ids(isekai.children) == {"a4", "a5"}
    mecha_groups = _tags(isekai.children)
    assert len(mecha_groups) == 1
    mecha = mecha_groups[0]
    assert mecha.label == "mecha"
    assert mecha.id == "tag:1:isekai>mecha"
    assert _leaf_ids(mecha.children) == {"a1", "a2", "a3"}
    for leaf in mecha.children:
        assert leaf.new_tags == []


def test_each_item_selects_its_own_first_tag():
    """A globally more popular tag does not steal items from their own first choice."""
    items = [
        _candidate("x1", ["drama", "comedy"]),
        _candidate("x2", ["drama", "comedy"]),
        _candidate("x3", ["comedy"]),
        _candidate("x4", ["comedy"]),
    ]
    result = build_tag_tree(items, [], 0, 1, set())

    assert [n.label for n in result] == ["drama", "comedy"]
    assert _leaf_ids(result[0].children) == {"x1", "x2"}
    assert _leaf_ids(result[1].children) == {"x3", "x4"}
    assert result[0].children[0].new_tags == ["comedy"]


def test_groups_sorted_by_size():
    items = [
        _candidate("s1", ["small"]),
        _candidate("s2", ["small"]),
        _candidate("b1", ["big"]),
        _candidate("b2", ["big"]),
        _candidate("b3", ["big"]),
    ]
    result = build_tag_tree(items, [], 0, 1, set())
    assert [n.label for n in result] == ["big", "small"]


def test_singleton_groups_are_repooled():
    items = [
        _candidate("v1", ["x", "q"]),
        _candidate("v2", ["y", "q"]),
        _candidate("v3", ["x", "y"]),
        _candidate("v4", ["w", "q"]),
        _candidate("v5", ["x", "w"]),
    ]
    result = build_tag_tree(items, [], 0, 1, set())

    assert [n.label for n in result] == ["x", "q"]
    assert _leaf_ids(result[0].children) == {"v1", "v3", "v5"}
    assert _leaf_ids(result[1].children) == {"v2", "v4"}


def test_unassigned_attaches_to_existing_group():
    items = [
        _candidate("g1", ["k"]),
        _candidate("g2", ["k", "j"]),
        _candidate("o1", ["j", "k"]),
    ]
    result = build_tag_tree(items, [], 0, 1, set())

    assert len(result) == 1
    assert result[0].label == "k"
    assert [n.id for n in result[0].children] == ["g1", "g2", "o1"]
    o1 = result[0].children[2]
    assert o1.new_tags == ["j"]


def test_unassigned_seeds_new_group_from_best_tag():
    items = [
        _candidate("g1", ["k"]),
        _candidate("g2", ["k"]),
        _candidate("lone", ["unique"]),
    ]
    result = build_tag_tree(items, [], 0, 2, set())

    assert [n.label for n in result] == ["k", "unique"]
    assert result[1].id == "tag:0:unique"
    assert [n.id for n in result[1].children] == ["lone"]


def test_untagged_item_stays_bare_leaf():
    items = [
        _candidate("g1", ["k"]),
        _candidate("g2", ["k"]),
        _candidate("bare", []),
    ]
    result = build_tag_tree(items, [], 0, 2, set())

    assert result[0].type == "series"
    assert result[0].id == "bare"
    assert result[1].label == "k"


def test_tag_only_level_is_collapsed():
    items = [
        _candidate("a1", ["t", "a"]),
        _candidate("a2", ["t", "a"]),
        _candidate("b1", ["t", "b"]),
        _candidate("b2", ["t", "b"]),
    ]
    result = build_tag_tree(items, [], 0, 3, set())

    assert [n.label for n in result] == ["a", "b"]
    assert [n.id for n in result] == ["tag:1:t>a", "tag:1:t>b"]
    assert _leaf_ids(result[0].children) == {"a1", "a2"}
    assert _leaf_ids(result[1].children) == {"b1", "b2"}


# --- Properties over generated inputs ---


def _generated_items(seed: int, count: int = 40) -> list[TagCandidate]:
    rng = random.Random(seed)
    pool = [f"tag{i}" for i in range(12)]
    return [
        _candidate(f"e{i}", rng.sample(pool, rng.randint(0, 6)))
        for i in range(count)
    ]


def test_depth_bound_and_no_tag_reuse_on_path():
    for seed in range(5):
        items = _generated_items(seed)
        for max_depth in range(1, 5):
            result = build_tag_tree(items, [], 0, max_depth, set())
            for node, ancestors in _walk(result):
                assert len(ancestors) <= max_depth
                assert len(ancestors) == len(set(ancestors))
                if node.type == "tag":
                    assert node.label not in ancestors
                else:
                    assert not set(node.new_tags) & set(ancestors)


def test_every_item_placed_exactly_once():
    for seed in range(5):
        items = _generated_items(seed)
        result = build_tag_tree(items, [], 0, 3, set())
        leaf_ids = [n.id for n, _ in _walk(result) if n.type == "series"]
        assert sorted(leaf_ids) == sorted(i.entity.id for i in items)
