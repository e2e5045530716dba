"""Root-to-target path lookup used to force-expand collapsed ancestors."""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Set

from component_map.analysis.adjacency import AdjacencyMap, ComponentId, all_components, ordered_roots


def _reaching(component_map: AdjacencyMap, target: ComponentId) -> Set[ComponentId]:
    """Every component with a downward path to ``target``, ``target`` included."""

    parents: Dict[ComponentId, List[ComponentId]] = defaultdict(list)
    for parent, children in component_map.items():
        for child in children or ():
            parents[child].append(parent)

    seen = {target}
    stack = [target]
    while stack:
        node = stack.pop()
        for parent in parents.get(node, ()):
            if parent not in seen:
                seen.add(parent)
                stack.append(parent)
    return seen


def path_to(component_map: AdjacencyMap, target: ComponentId) -> List[ComponentId]:
    """
    Return the first root-to-``target`` path found by a depth-first search.

    Roots are tried in key order and children in list order; the search stops at the first hit
    even when other paths exist. An empty list means ``target`` is absent or unreachable.
    """

    if target not in all_components(component_map):
        return []

    # Descending only into children that can reach the target picks the same path a full
    # DFS would, without re-walking shared subtrees.
    reaching = _reaching(component_map, target)
    for root in ordered_roots(component_map):
        if root not in reaching:
            continue
        path = [root]
        while path[-1] != target:
            children = component_map.get(path[-1]) or ()
            path.append(next(child for child in children if child in reaching))
        return path
    return []


def ancestors_on_path(component_map: AdjacencyMap, target: ComponentId) -> List[ComponentId]:
    """The path to ``target`` without ``target`` itself."""

    return path_to(component_map, target)[:-1]


__all__ = ["ancestors_on_path", "path_to"]
