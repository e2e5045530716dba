"""Tests for cross-map component search."""

from __future__ import annotations

import pytest

from component_map.analysis.map_loader import NamedMap
from component_map.analysis.search import MapMatch, find_component, get_map

REGISTRY = [
    NamedMap("M1", "first", {"A": ["B", "C"], "B": ["D"]}),
    NamedMap("M2", "second", {"X": ["ULDEC"]}),
    NamedMap("M3", "third", {"ULDEC": ["D"]}),
]


def test_single_match() -> None:
    assert find_component(REGISTRY, "X") == [MapMatch("M2", "second")]


def test_matches_keep_registry_order() -> None:
    assert [match.name for match in find_component(REGISTRY, "D")] == ["M1", "M3"]


def test_search_normalizes_term() -> None:
    assert find_component(REGISTRY, "  uldec ") == find_component(REGISTRY, "ULDEC")
    assert len(find_component(REGISTRY, "uldec")) == 2


def test_no_match_and_blank_term() -> None:
    assert find_component(REGISTRY, "missing") == []
    assert find_component(REGISTRY, "   ") == []


def test_get_map() -> None:
    assert get_map(REGISTRY, "M3").description == "third"
    with pytest.raises(KeyError):
        get_map(REGISTRY, "M9")
