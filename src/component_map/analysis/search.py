"""Locate components across every registered map."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from component_map.analysis.adjacency import all_components, normalize_component_id
from component_map.analysis.map_loader import NamedMap


@dataclass(frozen=True)
class MapMatch:
    name: str
    description: str


def find_component(registry: Sequence[NamedMap], term: str) -> List[MapMatch]:
    """Every map containing ``term`` (trimmed, uppercased), in registry order."""

    component = normalize_component_id(term)
    if not component:
        return []
    return [
        MapMatch(name=named.name, description=named.description)
        for named in registry
        if component in all_components(named.component_map)
    ]


def get_map(registry: Sequence[NamedMap], name: str) -> NamedMap:
    """Look up a map by name, raising ``KeyError`` when it is not registered."""

    for named in registry:
        if named.name == name:
            return named
    raise KeyError(name)


__all__ = ["MapMatch", "find_component", "get_map"]
