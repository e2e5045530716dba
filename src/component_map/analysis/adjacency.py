"""Validated adjacency model for component dependency maps."""

from __future__ import annotations

from typing import Iterable, List, Mapping, Sequence

import networkx as nx

ComponentId = str
AdjacencyMap = Mapping[ComponentId, Sequence[ComponentId]]


class MapFormatError(ValueError):
    """Raised when raw map data cannot be turned into an adjacency map."""


class InvalidMapError(ValueError):
    """Structural defect that makes a map unrenderable."""


class CycleDetected(InvalidMapError):
    """The map contains a dependency cycle."""

    def __init__(self, cycle: Sequence[ComponentId]) -> None:
        self.cycle = list(cycle)
        chain = " -> ".join([*self.cycle, self.cycle[0]]) if self.cycle else "?"
        super().__init__(f"Cycle detected: {chain}")


class EmptyRootSet(InvalidMapError):
    """Every component is somebody's child, so there is nothing to start from."""

    def __init__(self) -> None:
        super().__init__("Map has no root component.")


def normalize_component_id(value: object) -> ComponentId:
    """Trim and uppercase a component identifier."""

    if not isinstance(value, str):
        raise MapFormatError(f"Component identifiers must be strings, got {value!r}")
    return value.strip().upper()


def normalize_map(raw: Mapping[str, Iterable[str]]) -> dict[ComponentId, list[ComponentId]]:
    """
    Return a case-normalized copy of ``raw`` preserving key and child order.

    Keys that collapse onto the same identifier after normalization are rejected, as are empty
    identifiers and non-list child collections.
    """

    if not isinstance(raw, Mapping):
        raise MapFormatError(f"Component map must be a mapping, got {type(raw).__name__}")

    normalized: dict[ComponentId, list[ComponentId]] = {}
    for key, children in raw.items():
        parent = normalize_component_id(key)
        if not parent:
            raise MapFormatError("Empty component identifier in map keys.")
        if parent in normalized:
            raise MapFormatError(f"Duplicate component {parent!r} after normalization.")
        if isinstance(children, (str, bytes)) or not isinstance(children, Iterable):
            raise MapFormatError(f"Children of {parent!r} must be a list of identifiers.")
        child_ids = [normalize_component_id(child) for child in children]
        if any(not child for child in child_ids):
            raise MapFormatError(f"Empty child identifier under {parent!r}.")
        normalized[parent] = child_ids
    return normalized


def _child_set(component_map: AdjacencyMap) -> set[ComponentId]:
    return {child for children in component_map.values() for child in children}


def all_components(component_map: AdjacencyMap) -> set[ComponentId]:
    """Union of every key and every listed child."""

    return set(component_map) | _child_set(component_map)


def ordered_roots(component_map: AdjacencyMap) -> List[ComponentId]:
    """Roots in first-appearance order of the map's keys."""

    children = _child_set(component_map)
    return [node for node in component_map if node not in children]


def roots_of(component_map: AdjacencyMap) -> set[ComponentId]:
    """Components never listed as anyone's child."""

    # A child without its own entry is always somebody's child, so keys are the only candidates.
    return set(ordered_roots(component_map))


def to_digraph(component_map: AdjacencyMap, *, name: str | None = None) -> nx.DiGraph:
    """Directed parent -> child graph of the map."""

    graph = nx.DiGraph(name=name or "component_map")
    for parent, children in component_map.items():
        graph.add_node(parent)
        for child in children:
            graph.add_edge(parent, child)
    graph.graph["roots"] = ordered_roots(component_map)
    graph.graph["node_count"] = graph.number_of_nodes()
    graph.graph["edge_count"] = graph.number_of_edges()
    return graph


def find_cycle(component_map: AdjacencyMap) -> List[ComponentId]:
    """Return the nodes of one cycle in the map, or an empty list when acyclic."""

    graph = to_digraph(component_map)
    try:
        edges = nx.find_cycle(graph, orientation="original")
    except nx.NetworkXNoCycle:
        return []
    return [source for source, _target, *_ in edges]


def validate_map(component_map: AdjacencyMap) -> AdjacencyMap:
    """
    Reject maps the tree builder and path finder cannot traverse.

    Cycles are checked before roots: every node of a finite cyclic component is someone's child,
    so the cycle is the more precise diagnosis.
    """

    cycle = find_cycle(component_map)
    if cycle:
        raise CycleDetected(cycle)
    if not ordered_roots(component_map):
        raise EmptyRootSet()
    return component_map


__all__ = [
    "AdjacencyMap",
    "ComponentId",
    "CycleDetected",
    "EmptyRootSet",
    "InvalidMapError",
    "MapFormatError",
    "all_components",
    "find_cycle",
    "normalize_component_id",
    "normalize_map",
    "ordered_roots",
    "roots_of",
    "to_digraph",
    "validate_map",
]
