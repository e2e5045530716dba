"""Tests for the node event table."""

from __future__ import annotations

from component_map.analysis.tree_builder import build_tree, status_lookup, visible_elements
from component_map.ui.events import (
    CLICK,
    HOVER_ENTER,
    HOVER_LEAVE,
    NodeEventTable,
    build_event_table,
    risk_advisory,
    toggle_node,
)

MAP = {"A": ["B", "C"], "B": ["D"], "D": ["E"]}


def _tree(statuses: dict | None = None):
    return build_tree(MAP, status_lookup(statuses or {}))


def test_hover_on_at_risk_node_shows_advisory() -> None:
    table = build_event_table(_tree({"B": "incident", "C": "healthy", "D": "down"}))

    assert table.dispatch(HOVER_ENTER, "B") == risk_advisory("B")
    assert table.dispatch(HOVER_ENTER, "D") == "D is causing instability due to deployment errors."
    assert table.dispatch(HOVER_ENTER, "C") is None
    assert table.dispatch(HOVER_LEAVE, "B") is None


def test_click_fallback_and_specific_handlers() -> None:
    table = NodeEventTable()
    table.register("*", CLICK, lambda component: f"any:{component}")
    table.register("B", CLICK, lambda component: f"b:{component}")

    assert table.dispatch(CLICK, "A") == "any:A"
    assert table.dispatch(CLICK, "B") == "b:B"
    assert table.dispatch("unregistered", "A") is None


def test_click_opens_collapsed_node_and_closes_it_again() -> None:
    # D sits at depth 2 and starts collapsed.
    opened, closed = toggle_node([], [], "D", _tree())
    assert (opened, closed) == (["D"], [])

    tree = build_tree(MAP, status_lookup({}), force_expand=opened)
    assert toggle_node(opened, closed, "D", tree) == ([], [])


def test_click_collapses_open_node() -> None:
    # B sits at depth 1 and starts open.
    opened, closed = toggle_node([], [], "B", _tree())
    assert (opened, closed) == ([], ["B"])

    tree = build_tree(MAP, status_lookup({}), force_collapse=closed)
    visible = [node["component"] for node in visible_elements(tree)[0]]
    assert "D" not in visible
    assert toggle_node(opened, closed, "B", tree) == ([], [])


def test_click_collapses_node_on_search_path() -> None:
    tree = build_tree(MAP, status_lookup({}), "E", ["A", "B", "D", "E"])
    assert toggle_node([], [], "D", tree) == ([], ["D"])


def test_click_on_unknown_component_changes_nothing() -> None:
    assert toggle_node(["D"], ["B"], "ZZZ", _tree()) == (["D"], ["B"])
    assert toggle_node([], [], "A", None) == ([], [])
