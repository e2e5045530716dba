"""Tests for tree construction and flattening."""

from __future__ import annotations

from collections import Counter

from component_map.analysis.adjacency import all_components
from component_map.analysis.path_finder import path_to
from component_map.analysis.tree_builder import (
    SYNTHETIC_ROOT,
    StatusValue,
    build_tree,
    iter_nodes,
    normalize_status,
    status_lookup,
    tree_to_dict,
    visible_elements,
)

DEEP = {"A": ["B", "C"], "B": ["D"], "D": ["E"], "E": ["F"]}
FOREST = {"FRAUDSYS": ["MONITOR", "TRIGGER"], "TRIGGER": ["ANALYZER"], "LOGIN": ["AUTH", "FA"], "AUTH": ["TOKEN"]}


def _unknown(_component: str) -> StatusValue:
    return StatusValue.UNKNOWN


def _by_id(tree) -> dict:
    return {node.id: node for node in iter_nodes(tree)}


def test_single_root_is_returned_directly() -> None:
    tree = build_tree(DEEP, _unknown)
    assert tree.id == "A"
    assert [child.id for child in tree.children] == ["B", "C"]


def test_multiple_roots_are_wrapped() -> None:
    tree = build_tree(FOREST, _unknown)
    assert tree.id == SYNTHETIC_ROOT
    assert tree.status is None
    assert tree.synthetic
    assert not tree.collapsed
    assert [child.id for child in tree.children] == ["FRAUDSYS", "LOGIN"]


def test_every_component_appears_exactly_once() -> None:
    for component_map in (DEEP, FOREST):
        counts = Counter(node.id for node in iter_nodes(build_tree(component_map, _unknown)))
        counts.pop(SYNTHETIC_ROOT, None)
        assert set(counts) == all_components(component_map)
        assert set(counts.values()) == {1}


def test_nodes_collapse_from_threshold_depth() -> None:
    nodes = _by_id(build_tree(DEEP, _unknown))
    assert not nodes["A"].collapsed
    assert not nodes["B"].collapsed
    assert nodes["D"].collapsed
    assert nodes["E"].collapsed


def test_custom_collapse_depth() -> None:
    nodes = _by_id(build_tree(DEEP, _unknown, collapse_depth=1))
    assert not nodes["A"].collapsed
    assert nodes["B"].collapsed


def test_force_expand_applies_per_node() -> None:
    nodes = _by_id(build_tree(DEEP, _unknown, force_expand={"E"}))
    assert nodes["D"].collapsed
    assert not nodes["E"].collapsed


def test_path_force_expansion_opens_all_ancestors() -> None:
    path = path_to(DEEP, "F")
    nodes = _by_id(build_tree(DEEP, _unknown, "F", path))
    for ancestor in path[:-1]:
        assert not nodes[ancestor].collapsed
    assert nodes["F"].highlighted


def test_only_matching_node_is_highlighted() -> None:
    tree = build_tree(DEEP, _unknown, "D")
    assert [node.id for node in iter_nodes(tree) if node.highlighted] == ["D"]
    tree = build_tree(DEEP, _unknown, None)
    assert not any(node.highlighted for node in iter_nodes(tree))


def test_statuses_come_from_lookup() -> None:
    tree = build_tree(DEEP, status_lookup({"A": "Incident", "B": "operational"}))
    nodes = _by_id(tree)
    assert nodes["A"].status is StatusValue.INCIDENT
    assert nodes["A"].at_risk
    assert nodes["B"].status is StatusValue.HEALTHY
    assert nodes["C"].status is StatusValue.UNKNOWN


def test_normalize_status_vocabulary() -> None:
    assert normalize_status("DOWN") is StatusValue.DOWN
    assert normalize_status(" maintenance ") is StatusValue.MAINTENANCE
    assert normalize_status("retired") is StatusValue.DOWN
    assert normalize_status("something else") is StatusValue.UNKNOWN
    assert normalize_status(None) is StatusValue.UNKNOWN


def test_tree_is_rebuilt_not_mutated() -> None:
    first = build_tree(DEEP, _unknown, "D")
    second = build_tree(DEEP, _unknown, None)
    assert _by_id(first)["D"].highlighted
    assert not _by_id(second)["D"].highlighted


def test_visible_elements_hide_collapsed_descendants() -> None:
    nodes, edges = visible_elements(build_tree(DEEP, _unknown))
    components = [node["component"] for node in nodes]
    assert components == ["A", "B", "D", "C"]
    assert {node["component"]: node["has_hidden"] for node in nodes}["D"] is True
    assert len(edges) == 3
    assert all(edge["target"].startswith(edge["source"] + "/") for edge in edges)


def test_tree_to_dict_shape() -> None:
    payload = tree_to_dict(build_tree({"A": ["B"]}, _unknown, "B"))
    assert payload["name"] == "A"
    assert payload["status"] == "unknown"
    assert payload["children"][0] == {"name": "B", "status": "unknown", "highlighted": True, "collapsed": False}


def test_force_collapse_closes_open_nodes() -> None:
    nodes = _by_id(build_tree(DEEP, _unknown, force_collapse={"B"}))
    assert nodes["B"].collapsed
    assert not nodes["A"].collapsed
    assert not nodes["C"].collapsed


def test_force_collapse_wins_over_force_expand() -> None:
    path = path_to(DEEP, "F")
    tree = build_tree(DEEP, _unknown, "F", path, force_collapse={"B"})
    assert _by_id(tree)["B"].collapsed
    components = [node["component"] for node in visible_elements(tree)[0]]
    assert components == ["A", "B", "C"]


def test_shared_children_are_built_under_each_parent() -> None:
    component_map = {"R": ["P", "Q"], "P": ["S"], "Q": ["S"], "S": ["LEAF"]}
    tree = build_tree(component_map, _unknown, collapse_depth=5)
    counts = Counter(node.id for node in iter_nodes(tree))
    assert counts["S"] == 2
    assert counts["LEAF"] == 2
