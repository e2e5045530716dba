"""Utilities for loading, validating and exporting component map registries."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Mapping

import networkx as nx

from component_map.analysis.adjacency import (
    InvalidMapError,
    MapFormatError,
    all_components,
    normalize_map,
    ordered_roots,
    to_digraph,
    validate_map,
)

LOGGER = logging.getLogger(__name__)

MAP_SUFFIX = ".map.json"


class MapLoadError(ValueError):
    """A registry entry could not be loaded; the message names the map and source."""


@dataclass(frozen=True)
class NamedMap:
    name: str
    description: str
    component_map: dict[str, list[str]] = field(default_factory=dict)
    source: str | None = None

    def as_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "componentMap": {parent: list(children) for parent, children in self.component_map.items()},
        }


def named_map_from_mapping(name: str, entry: Mapping, *, source: str | None = None) -> NamedMap:
    """Normalize and validate one registry entry, failing fast on structural defects."""

    if not isinstance(entry, Mapping):
        raise MapLoadError(f"Map {name!r} in {source or '<memory>'} must be an object.")
    raw_map = entry.get("componentMap", entry.get("component_map"))
    if raw_map is None:
        raise MapLoadError(f"Map {name!r} in {source or '<memory>'} has no componentMap.")
    description = entry.get("description", entry.get("mapDescription", "")) or ""

    try:
        component_map = normalize_map(raw_map)
        validate_map(component_map)
    except (MapFormatError, InvalidMapError) as exc:
        raise MapLoadError(f"Map {name!r} in {source or '<memory>'}: {exc}") from exc

    return NamedMap(name=name, description=str(description), component_map=component_map, source=source)


def _entries(payload: object, source: str) -> Iterable[tuple[str, Mapping]]:
    if isinstance(payload, Mapping) and "maps" in payload:
        maps = payload["maps"]
        if not isinstance(maps, list):
            raise MapLoadError(f"'maps' in {source} must be a list.")
        for index, entry in enumerate(maps):
            if not isinstance(entry, Mapping) or not entry.get("name"):
                raise MapLoadError(f"Entry #{index} in {source} has no name.")
            yield str(entry["name"]), entry
    elif isinstance(payload, Mapping):
        for name, entry in payload.items():
            yield str(name), entry
    else:
        raise MapLoadError(f"Registry {source} must be a JSON object.")


def load_registry_payload(payload: object, *, source: str = "<memory>") -> List[NamedMap]:
    """Build a registry from already-parsed JSON data."""

    registry: List[NamedMap] = []
    seen: set[str] = set()
    for name, entry in _entries(payload, source):
        if name in seen:
            raise MapLoadError(f"Map {name!r} is defined twice in {source}.")
        seen.add(name)
        registry.append(named_map_from_mapping(name, entry, source=source))
    return registry


def _registry_files(path: Path) -> List[Path]:
    if path.is_file():
        return [path]
    return sorted(candidate for candidate in path.rglob(f"*{MAP_SUFFIX}") if candidate.is_file())


def load_registry(path: Path) -> List[NamedMap]:
    """
    Load every map from a registry JSON file or from a directory of ``*.map.json`` files.

    Maps keep file order, and directories are read in sorted path order. A map name may only
    be defined once across all files.
    """

    path = Path(path).expanduser().resolve()
    if not path.exists():
        raise FileNotFoundError(f"Map registry {path} not found.")

    files = _registry_files(path)
    if not files:
        raise FileNotFoundError(f"No *{MAP_SUFFIX} files found under {path}")

    registry: List[NamedMap] = []
    names: set[str] = set()
    for registry_file in files:
        try:
            with registry_file.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except json.JSONDecodeError as exc:
            raise MapLoadError(f"Registry {registry_file} is not valid JSON: {exc}") from exc

        for named in load_registry_payload(payload, source=str(registry_file)):
            if named.name in names:
                raise MapLoadError(f"Map {named.name!r} from {registry_file} is already registered.")
            names.add(named.name)
            registry.append(named)
        LOGGER.debug("Loaded %s", registry_file)

    LOGGER.info("Loaded %d component maps from %s", len(registry), path)
    return registry


def export_map_graph(named: NamedMap, destination: Path) -> None:
    """Persist a map as a flat nodes/edges JSON document."""

    destination = Path(destination)
    graph = to_digraph(named.component_map, name=named.name)
    payload = {
        "graph": named.name,
        "description": named.description,
        "roots": ordered_roots(named.component_map),
        "node_count": graph.number_of_nodes(),
        "edge_count": graph.number_of_edges(),
        "nodes": [],
        "edges": [],
    }

    for node in graph.nodes():
        payload["nodes"].append({"id": node, "leaf": graph.out_degree(node) == 0})

    for source, target in graph.edges():
        payload["edges"].append({"source": source, "target": target})

    destination.parent.mkdir(parents=True, exist_ok=True)
    with destination.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2)


def export_map_graphml(named: NamedMap, destination: Path) -> None:
    """Persist a map as GraphML for external graph tooling."""

    destination = Path(destination)
    graph = to_digraph(named.component_map, name=named.name)
    # GraphML only accepts scalar graph attributes.
    graph.graph["roots"] = ",".join(graph.graph["roots"])
    graph.graph["description"] = named.description
    destination.parent.mkdir(parents=True, exist_ok=True)
    nx.write_graphml(graph, destination)


def registry_summary(registry: Iterable[NamedMap]) -> List[dict]:
    """Per-map counts used by the CLI ``validate`` report."""

    rows = []
    for named in registry:
        rows.append(
            {
                "name": named.name,
                "roots": ordered_roots(named.component_map),
                "components": len(all_components(named.component_map)),
                "source": named.source,
            }
        )
    return rows


__all__ = [
    "MAP_SUFFIX",
    "MapLoadError",
    "NamedMap",
    "export_map_graph",
    "export_map_graphml",
    "load_registry",
    "load_registry_payload",
    "named_map_from_mapping",
    "registry_summary",
]
