"""Build renderable, status-annotated trees from adjacency maps."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from enum import Enum
from typing import Callable, Iterable, Iterator, List, Mapping, Optional, Tuple

from component_map.analysis.adjacency import AdjacencyMap, ComponentId, ordered_roots

SYNTHETIC_ROOT = "Root"
DEFAULT_COLLAPSE_DEPTH = 2


class StatusValue(str, Enum):
    HEALTHY = "healthy"
    INCIDENT = "incident"
    MAINTENANCE = "maintenance"
    DOWN = "down"
    UNKNOWN = "unknown"


AT_RISK = frozenset({StatusValue.INCIDENT, StatusValue.DOWN})

_STATUS_ALIASES = {
    "operational": StatusValue.HEALTHY,
    "ok": StatusValue.HEALTHY,
    "up": StatusValue.HEALTHY,
    "low": StatusValue.HEALTHY,
    "degraded": StatusValue.MAINTENANCE,
    "medium": StatusValue.MAINTENANCE,
    "high": StatusValue.INCIDENT,
    "critical": StatusValue.INCIDENT,
    "outage": StatusValue.DOWN,
    "retired": StatusValue.DOWN,
}


def normalize_status(raw: object) -> StatusValue:
    """Map an arbitrary status string onto the closed vocabulary."""

    if isinstance(raw, StatusValue):
        return raw
    if not isinstance(raw, str):
        return StatusValue.UNKNOWN
    value = raw.strip().lower()
    try:
        return StatusValue(value)
    except ValueError:
        return _STATUS_ALIASES.get(value, StatusValue.UNKNOWN)


def status_lookup(statuses: Mapping[str, object]) -> Callable[[ComponentId], StatusValue]:
    """Wrap a status mapping as a ``statusOf`` function defaulting to unknown."""

    def status_of(component: ComponentId) -> StatusValue:
        return normalize_status(statuses.get(component))

    return status_of


@dataclass(frozen=True)
class TreeNode:
    id: ComponentId
    status: Optional[StatusValue]
    highlighted: bool = False
    collapsed: bool = False
    children: Tuple["TreeNode", ...] = ()

    @property
    def synthetic(self) -> bool:
        return self.status is None

    @property
    def at_risk(self) -> bool:
        return self.status in AT_RISK


def build_tree(
    component_map: AdjacencyMap,
    status_of: Callable[[ComponentId], StatusValue],
    highlighted: ComponentId | None = None,
    force_expand: Iterable[ComponentId] = (),
    *,
    collapse_depth: int = DEFAULT_COLLAPSE_DEPTH,
    force_collapse: Iterable[ComponentId] = (),
) -> TreeNode:
    """
    Expand ``component_map`` depth-first from each root into an immutable tree.

    A node is collapsed once its depth reaches ``collapse_depth`` unless its id is listed in
    ``force_expand``; the rule is applied at every node on its own. Ids in ``force_collapse``
    are collapsed at any depth and win over ``force_expand``. The map must already have
    passed :func:`~component_map.analysis.adjacency.validate_map`: cycles are not guarded here.
    """

    forced = frozenset(force_expand)
    closed = frozenset(force_collapse)

    # Shared children reuse one subtree per (id, depth).
    @lru_cache(maxsize=None)
    def expand(node: ComponentId, depth: int) -> TreeNode:
        children = component_map.get(node) or ()
        return TreeNode(
            id=node,
            status=status_of(node),
            highlighted=node == highlighted,
            collapsed=node in closed or (depth >= collapse_depth and node not in forced),
            children=tuple(expand(child, depth + 1) for child in children),
        )

    trees = [expand(root, 0) for root in ordered_roots(component_map)]
    if len(trees) == 1:
        return trees[0]
    return TreeNode(id=SYNTHETIC_ROOT, status=None, children=tuple(trees))


def iter_nodes(tree: TreeNode) -> Iterator[TreeNode]:
    """Pre-order walk over every node, synthetic root included."""

    stack = [tree]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def tree_to_dict(tree: TreeNode) -> dict:
    """Nested ``name``/``children`` payload in the shape tree widgets expect."""

    payload: dict = {
        "name": tree.id,
        "status": tree.status.value if tree.status is not None else None,
        "highlighted": tree.highlighted,
        "collapsed": tree.collapsed,
    }
    if tree.children:
        payload["children"] = [tree_to_dict(child) for child in tree.children]
    return payload


def visible_elements(tree: TreeNode) -> Tuple[List[dict], List[dict]]:
    """
    Flatten ``tree`` into node and edge records, hiding descendants of collapsed nodes.

    Node ids are path-qualified so a component shared by several parents renders once per
    occurrence; ``component`` carries the plain identifier.
    """

    nodes: List[dict] = []
    edges: List[dict] = []

    def visit(node: TreeNode, element_id: str, depth: int) -> None:
        nodes.append(
            {
                "id": element_id,
                "component": node.id,
                "status": node.status.value if node.status is not None else None,
                "highlighted": node.highlighted,
                "collapsed": node.collapsed,
                "has_hidden": node.collapsed and bool(node.children),
                "synthetic": node.synthetic,
                "depth": depth,
            }
        )
        if node.collapsed:
            return
        for child in node.children:
            child_id = f"{element_id}/{child.id}"
            edges.append({"id": f"edge:{child_id}", "source": element_id, "target": child_id})
            visit(child, child_id, depth + 1)

    visit(tree, tree.id, 0)
    return nodes, edges


__all__ = [
    "AT_RISK",
    "DEFAULT_COLLAPSE_DEPTH",
    "SYNTHETIC_ROOT",
    "StatusValue",
    "TreeNode",
    "build_tree",
    "iter_nodes",
    "normalize_status",
    "status_lookup",
    "tree_to_dict",
    "visible_elements",
]
