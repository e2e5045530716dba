"""Tests for the adjacency model."""

from __future__ import annotations

import pytest

from component_map.analysis.adjacency import (
    CycleDetected,
    EmptyRootSet,
    MapFormatError,
    all_components,
    find_cycle,
    normalize_map,
    ordered_roots,
    roots_of,
    to_digraph,
    validate_map,
)

SAMPLE = {"A": ["B", "C"], "B": ["D"]}


def test_roots_and_components() -> None:
    assert roots_of(SAMPLE) == {"A"}
    assert all_components(SAMPLE) == {"A", "B", "C", "D"}


def test_ordered_roots_follow_key_order() -> None:
    forest = {"Z": ["Y"], "M": ["N"], "Y": ["X"], "A": []}
    assert ordered_roots(forest) == ["Z", "M", "A"]


def test_validate_accepts_acyclic_map() -> None:
    assert validate_map(SAMPLE) is SAMPLE


def test_validate_rejects_two_node_cycle() -> None:
    with pytest.raises(CycleDetected) as excinfo:
        validate_map({"A": ["B"], "B": ["A"]})
    assert set(excinfo.value.cycle) == {"A", "B"}
    assert "Cycle detected" in str(excinfo.value)


def test_validate_rejects_self_loop() -> None:
    with pytest.raises(CycleDetected):
        validate_map({"A": ["A"]})


def test_cycle_below_a_root_is_detected() -> None:
    component_map = {"ROOT": ["A"], "A": ["B"], "B": ["C"], "C": ["A"]}
    assert set(find_cycle(component_map)) == {"A", "B", "C"}
    with pytest.raises(CycleDetected):
        validate_map(component_map)


def test_validate_rejects_empty_map() -> None:
    with pytest.raises(EmptyRootSet):
        validate_map({})


def test_missing_child_entry_is_a_leaf() -> None:
    validate_map({"A": ["GHOST"]})
    assert all_components({"A": ["GHOST"]}) == {"A", "GHOST"}


def test_normalize_map_uppercases_and_trims() -> None:
    assert normalize_map({" uldec ": ["pricing", "Umgm "]}) == {"ULDEC": ["PRICING", "UMGM"]}


def test_normalize_map_rejects_colliding_keys() -> None:
    with pytest.raises(MapFormatError):
        normalize_map({"auth": ["X"], "AUTH": ["Y"]})


def test_normalize_map_rejects_string_children() -> None:
    with pytest.raises(MapFormatError):
        normalize_map({"A": "B"})


def test_to_digraph_records_roots() -> None:
    graph = to_digraph(SAMPLE, name="sample")
    assert graph.number_of_nodes() == 4
    assert graph.number_of_edges() == 3
    assert graph.graph["roots"] == ["A"]
    assert graph.has_edge("B", "D")
