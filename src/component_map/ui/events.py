"""Node-id keyed event dispatch for the rendered tree."""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable, Dict, Iterable, List, Tuple

from component_map.analysis.tree_builder import TreeNode, iter_nodes

CLICK = "click"
HOVER_ENTER = "hover-enter"
HOVER_LEAVE = "hover-leave"

Handler = Callable[[str], Any]


def risk_advisory(component: str) -> str:
    return f"{component} is causing instability due to deployment errors."


class NodeEventTable:
    """
    Handlers registered per component id and event name.

    The renderer only forwards ``(event, component)`` pairs; what a node does is decided here,
    so handlers never close over widget state. ``"*"`` registers a fallback for every node.
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, Dict[str, Handler]] = defaultdict(dict)

    def register(self, component: str, event: str, handler: Handler) -> None:
        self._handlers[component][event] = handler

    def handlers_for(self, component: str) -> Dict[str, Handler]:
        merged = dict(self._handlers.get("*", {}))
        merged.update(self._handlers.get(component, {}))
        return merged

    def dispatch(self, event: str, component: str | None) -> Any:
        """Run the handler for ``event`` on ``component``; ``None`` when nothing is registered."""

        if component is None:
            handler = self._handlers.get("*", {}).get(event)
            return handler("") if handler else None
        handler = self.handlers_for(component).get(event)
        if handler is None:
            return None
        return handler(component)


def build_event_table(tree: TreeNode | None, *, on_click: Handler | None = None) -> NodeEventTable:
    """Register the advisory tooltip for at-risk nodes and an optional click handler for all."""

    table = NodeEventTable()
    if on_click is not None:
        table.register("*", CLICK, on_click)
    table.register("*", HOVER_LEAVE, lambda _component: None)
    if tree is None:
        return table
    for node in iter_nodes(tree):
        if node.at_risk:
            table.register(node.id, HOVER_ENTER, risk_advisory)
    return table


def toggle_node(
    expanded: Iterable[str], collapsed: Iterable[str], component: str, tree: TreeNode | None
) -> Tuple[List[str], List[str]]:
    """
    Flip ``component`` between open and closed, returning the new ``(expanded, collapsed)`` overrides.

    A closed node is opened by dropping its collapse override or, failing that, by forcing it
    open; an open node is closed the same way round. Unknown components change nothing.
    """

    opened = list(dict.fromkeys(expanded))
    closed = list(dict.fromkeys(collapsed))
    node = next((node for node in iter_nodes(tree) if node.id == component), None) if tree else None
    if node is None or node.synthetic:
        return opened, closed

    if node.collapsed:
        if component in closed:
            closed.remove(component)
        else:
            opened.append(component)
    elif component in opened:
        opened.remove(component)
    else:
        closed.append(component)
    return opened, closed


__all__ = [
    "CLICK",
    "HOVER_ENTER",
    "HOVER_LEAVE",
    "NodeEventTable",
    "build_event_table",
    "risk_advisory",
    "toggle_node",
]
