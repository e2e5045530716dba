"""Explicit view-state transitions for the explorer screens."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, Mapping, Optional, Sequence, Tuple, Union

from component_map.analysis.adjacency import ComponentId, normalize_component_id
from component_map.analysis.map_loader import NamedMap
from component_map.analysis.path_finder import path_to
from component_map.analysis.search import MapMatch, find_component, get_map
from component_map.analysis.tree_builder import (
    DEFAULT_COLLAPSE_DEPTH,
    TreeNode,
    build_tree,
    normalize_status,
    status_lookup,
)

LOGGER = logging.getLogger(__name__)


class Screen(str, Enum):
    IDLE = "idle"
    DISAMBIGUATION = "disambiguation"
    VIEWING = "viewing"


@dataclass(frozen=True)
class Notice:
    kind: str
    message: str


@dataclass(frozen=True)
class ViewState:
    active_map: Optional[NamedMap] = None
    highlighted: Optional[ComponentId] = None
    expanded_path: Tuple[ComponentId, ...] = ()
    screen: Screen = Screen.IDLE
    candidates: Tuple[MapMatch, ...] = ()
    statuses: Mapping[ComponentId, str] = field(default_factory=dict)
    status_generation: int = 0
    notice: Optional[Notice] = None


@dataclass(frozen=True)
class Search:
    term: str


@dataclass(frozen=True)
class ChooseMap:
    name: str


@dataclass(frozen=True)
class OpenMap:
    name: str


@dataclass(frozen=True)
class Reset:
    pass


@dataclass(frozen=True)
class StatusRefresh:
    statuses: Mapping[str, str]
    generation: int


Event = Union[Search, ChooseMap, OpenMap, Reset, StatusRefresh]


def _activate(state: ViewState, named: NamedMap, highlighted: Optional[ComponentId]) -> ViewState:
    """Show ``named``; a different map starts a fresh status batch."""

    same_map = state.active_map is not None and state.active_map.name == named.name
    expanded = tuple(path_to(named.component_map, highlighted)) if highlighted else ()
    return replace(
        state,
        active_map=named,
        highlighted=highlighted,
        expanded_path=expanded,
        screen=Screen.VIEWING,
        candidates=(),
        statuses=state.statuses if same_map else {},
        status_generation=state.status_generation if same_map else state.status_generation + 1,
        notice=None,
    )


def _search(state: ViewState, event: Search, registry: Sequence[NamedMap]) -> ViewState:
    term = normalize_component_id(event.term)
    if not term:
        return replace(state, notice=None)

    matches = find_component(registry, term)
    if not matches:
        LOGGER.info("Component %s not found in %d maps", term, len(registry))
        return replace(state, notice=Notice("not-found", f'Component "{term}" not found.'))
    if len(matches) == 1:
        return _activate(state, get_map(registry, matches[0].name), term)

    LOGGER.debug("Component %s found in %d maps", term, len(matches))
    return replace(
        state,
        highlighted=term,
        expanded_path=(),
        screen=Screen.DISAMBIGUATION,
        candidates=tuple(matches),
        notice=None,
    )


def _choose_map(state: ViewState, event: ChooseMap, registry: Sequence[NamedMap]) -> ViewState:
    if state.screen is not Screen.DISAMBIGUATION:
        return replace(state, notice=None)
    if event.name not in {match.name for match in state.candidates}:
        LOGGER.warning("Ignoring choice of %s: not among the candidates", event.name)
        return replace(state, notice=None)
    return _activate(state, get_map(registry, event.name), state.highlighted)


def _open_map(state: ViewState, event: OpenMap, registry: Sequence[NamedMap]) -> ViewState:
    try:
        named = get_map(registry, event.name)
    except KeyError:
        return replace(state, notice=Notice("unknown-map", f'Map "{event.name}" is not registered.'))
    return _activate(state, named, None)


def _reset(state: ViewState) -> ViewState:
    if state.active_map is None:
        return replace(state, notice=None)
    return replace(
        state,
        highlighted=None,
        expanded_path=(),
        screen=Screen.VIEWING,
        candidates=(),
        notice=None,
    )


def _status_refresh(state: ViewState, event: StatusRefresh) -> ViewState:
    if event.generation != state.status_generation:
        LOGGER.debug(
            "Discarding stale status batch %d (current %d)", event.generation, state.status_generation
        )
        return state
    merged = dict(state.statuses)
    merged.update({component: normalize_status(value).value for component, value in event.statuses.items()})
    return replace(state, statuses=merged)


def reduce(state: ViewState, event: Event, registry: Sequence[NamedMap]) -> ViewState:
    """Apply ``event`` to ``state`` and return the next state; ``state`` is never mutated."""

    if isinstance(event, Search):
        return _search(state, event, registry)
    if isinstance(event, ChooseMap):
        return _choose_map(state, event, registry)
    if isinstance(event, OpenMap):
        return _open_map(state, event, registry)
    if isinstance(event, Reset):
        return _reset(state)
    if isinstance(event, StatusRefresh):
        return _status_refresh(state, event)
    raise TypeError(f"Unsupported event: {event!r}")


def derive_tree(
    state: ViewState,
    *,
    collapse_depth: int = DEFAULT_COLLAPSE_DEPTH,
    extra_expanded: Iterable[ComponentId] = (),
    extra_collapsed: Iterable[ComponentId] = (),
) -> Optional[TreeNode]:
    """
    Rebuild the renderable tree for ``state`` from scratch; ``None`` when no map is active.

    ``extra_expanded`` and ``extra_collapsed`` carry per-node overrides chosen by clicking.
    """

    if state.active_map is None:
        return None
    return build_tree(
        state.active_map.component_map,
        status_lookup(state.statuses),
        state.highlighted,
        set(state.expanded_path) | set(extra_expanded),
        collapse_depth=collapse_depth,
        force_collapse=extra_collapsed,
    )


def state_to_dict(state: ViewState) -> dict:
    """JSON-friendly form; the active map is stored by name."""

    return {
        "active_map": state.active_map.name if state.active_map else None,
        "highlighted": state.highlighted,
        "expanded_path": list(state.expanded_path),
        "screen": state.screen.value,
        "candidates": [{"name": m.name, "description": m.description} for m in state.candidates],
        "statuses": dict(state.statuses),
        "status_generation": state.status_generation,
        "notice": {"kind": state.notice.kind, "message": state.notice.message} if state.notice else None,
    }


def state_from_dict(payload: Mapping | None, registry: Sequence[NamedMap]) -> ViewState:
    """Inverse of :func:`state_to_dict`; a map that is no longer registered resets to idle."""

    if not payload:
        return ViewState()

    active_map: Optional[NamedMap] = None
    name = payload.get("active_map")
    if name:
        try:
            active_map = get_map(registry, name)
        except KeyError:
            LOGGER.warning("Stored view references unknown map %s", name)
            return ViewState()

    notice_payload = payload.get("notice")
    return ViewState(
        active_map=active_map,
        highlighted=payload.get("highlighted"),
        expanded_path=tuple(payload.get("expanded_path") or ()),
        screen=Screen(payload.get("screen", Screen.IDLE.value)),
        candidates=tuple(MapMatch(**entry) for entry in payload.get("candidates") or ()),
        statuses=dict(payload.get("statuses") or {}),
        status_generation=int(payload.get("status_generation", 0)),
        notice=Notice(**notice_payload) if notice_payload else None,
    )


__all__ = [
    "ChooseMap",
    "Event",
    "Notice",
    "OpenMap",
    "Reset",
    "Screen",
    "Search",
    "StatusRefresh",
    "ViewState",
    "derive_tree",
    "reduce",
    "state_from_dict",
    "state_to_dict",
]
