"""Dash application rendering component maps as status-coloured trees."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

import dash
import dash_cytoscape as cyto
from dash import ALL, Input, Output, State, callback_context, dcc, html, no_update
from dash.exceptions import PreventUpdate

from component_map.analysis.adjacency import all_components
from component_map.analysis.map_loader import NamedMap
from component_map.analysis.tree_builder import TreeNode, visible_elements
from component_map.config import ViewerSettings
from component_map.io.status_client import StatusClient
from component_map.state.reducer import (
    ChooseMap,
    OpenMap,
    Reset,
    Screen,
    Search,
    StatusRefresh,
    ViewState,
    derive_tree,
    reduce,
    state_from_dict,
    state_to_dict,
)
from component_map.ui.events import CLICK, HOVER_ENTER, build_event_table, toggle_node

LOGGER = logging.getLogger(__name__)

STATUS_COLORS = {
    "healthy": "#4ade80",
    "maintenance": "#facc15",
    "incident": "#f97316",
    "down": "#e74c3c",
    "unknown": "#94a3b8",
}
SYNTHETIC_COLOR = "#334155"

LABEL_LIMIT = 10

LAYOUT = {"name": "breadthfirst", "directed": True, "spacingFactor": 1.15, "padding": 30, "animate": False}

STYLESHEET = [
    {
        "selector": "node",
        "style": {
            "label": "data(label)",
            "shape": "round-rectangle",
            "width": 120,
            "height": 40,
            "background-color": "data(color)",
            "color": "#0f172a",
            "font-size": "12px",
            "font-weight": "bold",
            "text-valign": "center",
            "text-halign": "center",
            "border-width": 2,
            "border-color": "#333333",
        },
    },
    {
        "selector": "node[synthetic = true]",
        "style": {"shape": "ellipse", "width": 40, "height": 40, "color": "#e2e8f0"},
    },
    {
        "selector": "node[has_hidden = true]",
        "style": {"border-style": "dashed", "border-color": "#e2e8f0"},
    },
    {
        "selector": "node[highlighted = true]",
        "style": {
            "border-width": 4,
            "border-color": "#facc15",
            "shadow-blur": 18,
            "shadow-color": "rgba(250, 204, 21, 0.9)",
            "shadow-opacity": 1.0,
        },
    },
    {
        "selector": "edge",
        "style": {
            "line-color": "#ffffff",
            "width": 2,
            "curve-style": "taxi",
            "taxi-direction": "downward",
            "opacity": 0.8,
        },
    },
]


def _label(component: str) -> str:
    if len(component) > LABEL_LIMIT:
        return component[:LABEL_LIMIT] + "…"
    return component


def _create_elements(tree: Optional[TreeNode]) -> List[dict]:
    if tree is None:
        return []
    nodes, edges = visible_elements(tree)
    elements: List[dict] = []
    for node in nodes:
        status = node["status"]
        elements.append(
            {
                "data": {
                    "id": node["id"],
                    "component": node["component"],
                    "label": _label(node["component"]),
                    "status": status,
                    "color": STATUS_COLORS.get(status, SYNTHETIC_COLOR) if status else SYNTHETIC_COLOR,
                    "highlighted": node["highlighted"],
                    "has_hidden": node["has_hidden"],
                    "synthetic": node["synthetic"],
                }
            }
        )
    elements.extend({"data": edge} for edge in edges)
    return elements


def _manual_toggles(payload: Optional[dict], state: ViewState) -> Tuple[List[str], List[str]]:
    """Click overrides for the active map as ``(expanded, collapsed)``."""

    if not payload or state.active_map is None or payload.get("map") != state.active_map.name:
        return [], []
    return list(payload.get("expanded") or []), list(payload.get("collapsed") or [])


def _toggles_after(state: ViewState, next_state: ViewState, event: object) -> object:
    # Click overrides belong to one view; reset, a new highlight or another map drops them.
    if isinstance(event, Reset):
        return None
    if next_state.highlighted != state.highlighted or next_state.active_map != state.active_map:
        return None
    return no_update


def _current_tree(state: ViewState, toggles: Optional[dict], settings: ViewerSettings) -> Optional[TreeNode]:
    expanded, collapsed = _manual_toggles(toggles, state)
    return derive_tree(
        state,
        collapse_depth=settings.collapse_depth,
        extra_expanded=expanded,
        extra_collapsed=collapsed,
    )


def _chooser(state: ViewState) -> html.Div:
    items = []
    for match in state.candidates:
        items.append(
            html.Li(
                [
                    html.Strong(match.name),
                    html.Span(f": {match.description}" if match.description else ""),
                    html.Br(),
                    html.Button(
                        "View this map",
                        id={"type": "choose-map", "index": match.name},
                        className="button button--secondary",
                        n_clicks=0,
                    ),
                ],
                className="chooser-item",
            )
        )
    return html.Div(
        [html.H3(f"{state.highlighted} found in multiple maps:", className="section-title"), html.Ul(items)],
        className="map-chooser",
    )


def create_app(
    registry: Sequence[NamedMap],
    settings: ViewerSettings | None = None,
    *,
    client: StatusClient | None = None,
) -> dash.Dash:
    if not registry:
        raise ValueError("At least one component map is required.")

    settings = settings or ViewerSettings()
    client = client or StatusClient.from_settings(settings)
    registry = list(registry)

    map_options = [{"label": named.name, "value": named.name} for named in registry]

    external_stylesheets = [
        "https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600;700&display=swap"
    ]
    app = dash.Dash(__name__, external_stylesheets=external_stylesheets)
    app.title = "Component Map Explorer"

    app.layout = html.Div(
        [
            dcc.Store(id="view-state", data=state_to_dict(ViewState())),
            dcc.Store(id="status-batch", data=None),
            dcc.Store(id="node-toggles", data=None),
            html.Div(
                [
                    html.Div(
                        [
                            html.H1("Component Map Explorer", className="title"),
                            html.P("Search components and inspect their health across maps.", className="subtitle"),
                        ],
                        className="header",
                    ),
                    html.Div(
                        [
                            html.Label("Search"),
                            dcc.Input(
                                id="search-term",
                                type="text",
                                placeholder="Search component (e.g., ULDEC)",
                                n_submit=0,
                            ),
                            html.Div(
                                [
                                    html.Button("Search", id="search-button", className="button", n_clicks=0),
                                    html.Button("Reset", id="reset-button", className="button button--secondary", n_clicks=0),
                                ],
                                className="button-row",
                            ),
                            html.Div(id="notice", className="notice"),
                        ],
                        className="control",
                    ),
                    html.Div(
                        [
                            html.Label("Browse map"),
                            dcc.Dropdown(
                                id="map-picker",
                                options=map_options,
                                placeholder="Select a map",
                                className="dropdown-control",
                                style={"zIndex": 1100},
                            ),
                        ],
                        className="control",
                    ),
                    html.Div(
                        [
                            html.Div(
                                [
                                    html.Span(className="legend-chip", style={"backgroundColor": color}),
                                    html.Span(status),
                                ],
                                className="legend-item",
                            )
                            for status, color in STATUS_COLORS.items()
                        ],
                        className="legend",
                    ),
                    html.Div(id="map-info", className="path-info"),
                ],
                className="sidebar",
            ),
            html.Div(
                [
                    html.Div(id="chooser"),
                    html.Div(
                        [
                            cyto.Cytoscape(
                                id="component-tree",
                                style={"width": "100%", "height": "100%", "minHeight": "72vh"},
                                layout=LAYOUT,
                                elements=[],
                                minZoom=0.2,
                                maxZoom=1.2,
                                stylesheet=STYLESHEET,
                            ),
                            html.Div(id="hover-dialog", className="hover-dialog", style={"display": "none"}),
                        ],
                        id="tree-container",
                        className="tree-container",
                    ),
                ],
                className="graph-panel",
            ),
        ],
        className="page",
    )

    @app.callback(
        Output("view-state", "data"),
        Output("search-term", "value"),
        Output("notice", "children"),
        Output("node-toggles", "data", allow_duplicate=True),
        Input("search-button", "n_clicks"),
        Input("search-term", "n_submit"),
        Input("reset-button", "n_clicks"),
        Input({"type": "choose-map", "index": ALL}, "n_clicks"),
        Input("map-picker", "value"),
        State("search-term", "value"),
        State("view-state", "data"),
        prevent_initial_call=True,
    )
    def dispatch(
        _search_clicks: int,
        _search_submits: int,
        _reset_clicks: int,
        _choose_clicks: List[int],
        picked_map: Optional[str],
        search_term: Optional[str],
        state_payload: dict,
    ) -> Tuple[dict, object, str, object]:
        triggered = callback_context.triggered or []
        if not triggered or not triggered[0].get("value"):
            # Pattern-matching buttons fire with n_clicks=0 when the chooser is rebuilt.
            raise PreventUpdate
        trigger = callback_context.triggered_id
        state = state_from_dict(state_payload, registry)

        clear_term: object = no_update
        if trigger in ("search-button", "search-term"):
            event = Search(search_term or "")
            clear_term = ""
        elif trigger == "reset-button":
            event = Reset()
        elif isinstance(trigger, dict) and trigger.get("type") == "choose-map":
            event = ChooseMap(trigger["index"])
        elif trigger == "map-picker" and picked_map:
            event = OpenMap(picked_map)
        else:
            raise PreventUpdate

        next_state = reduce(state, event, registry)
        LOGGER.debug("%s: %s -> %s", type(event).__name__, state.screen.value, next_state.screen.value)
        notice = next_state.notice.message if next_state.notice else ""
        return state_to_dict(next_state), clear_term, notice, _toggles_after(state, next_state, event)

    @app.callback(
        Output("status-batch", "data"),
        Input("view-state", "data"),
        State("status-batch", "data"),
    )
    def refresh_statuses(state_payload: dict, batch: Optional[dict]) -> dict:
        state = state_from_dict(state_payload, registry)
        if state.active_map is None:
            raise PreventUpdate
        if batch and batch.get("generation") == state.status_generation:
            raise PreventUpdate
        components = sorted(all_components(state.active_map.component_map))
        LOGGER.info(
            "Fetching %d statuses for %s (generation %d)",
            len(components),
            state.active_map.name,
            state.status_generation,
        )
        return client.fetch_batch(components, state.status_generation).as_dict()

    @app.callback(
        Output("view-state", "data", allow_duplicate=True),
        Input("status-batch", "data"),
        State("view-state", "data"),
        prevent_initial_call=True,
    )
    def merge_statuses(batch: Optional[dict], state_payload: dict) -> dict:
        if not batch:
            raise PreventUpdate
        state = state_from_dict(state_payload, registry)
        event = StatusRefresh(batch.get("statuses") or {}, int(batch.get("generation", -1)))
        next_state = reduce(state, event, registry)
        if next_state is state:
            raise PreventUpdate
        return state_to_dict(next_state)

    @app.callback(
        Output("component-tree", "elements"),
        Output("chooser", "children"),
        Output("tree-container", "style"),
        Output("map-info", "children"),
        Input("view-state", "data"),
        Input("node-toggles", "data"),
    )
    def render(state_payload: dict, toggles_payload: Optional[dict]):
        state = state_from_dict(state_payload, registry)
        tree = _current_tree(state, toggles_payload, settings)

        chooser = _chooser(state) if state.screen is Screen.DISAMBIGUATION else None
        visible = {"display": "block"} if state.screen is Screen.VIEWING and tree is not None else {"display": "none"}

        if state.active_map is None:
            info = "Search for a component or pick a map to begin."
        else:
            info = f"{state.active_map.name}: {state.active_map.description}"
            if state.highlighted and state.expanded_path:
                info += f" | Path: {' → '.join(state.expanded_path)}"
        return _create_elements(tree), chooser, visible, info

    @app.callback(
        Output("node-toggles", "data"),
        Input("component-tree", "tapNode"),
        State("view-state", "data"),
        State("node-toggles", "data"),
        prevent_initial_call=True,
    )
    def on_node_click(tapped: Optional[dict], state_payload: dict, toggles_payload: Optional[dict]):
        # tapNode carries a timestamp, so tapping the same node twice fires twice.
        node_data = (tapped or {}).get("data")
        if not node_data or node_data.get("synthetic"):
            raise PreventUpdate
        state = state_from_dict(state_payload, registry)
        if state.active_map is None:
            raise PreventUpdate
        expanded, collapsed = _manual_toggles(toggles_payload, state)
        tree = _current_tree(state, toggles_payload, settings)
        table = build_event_table(tree, on_click=lambda component: toggle_node(expanded, collapsed, component, tree))
        expanded, collapsed = table.dispatch(CLICK, node_data.get("component"))
        return {"map": state.active_map.name, "expanded": expanded, "collapsed": collapsed}

    @app.callback(
        Output("hover-dialog", "children"),
        Output("hover-dialog", "style"),
        Input("component-tree", "mouseoverNodeData"),
        State("view-state", "data"),
        State("node-toggles", "data"),
        prevent_initial_call=True,
    )
    def on_node_hover(node_data: Optional[dict], state_payload: dict, toggles_payload: Optional[dict]):
        state = state_from_dict(state_payload, registry)
        table = build_event_table(_current_tree(state, toggles_payload, settings))
        message = table.dispatch(HOVER_ENTER, (node_data or {}).get("component"))
        if not message:
            return "", {"display": "none"}
        return f"💬 {message}", {"display": "block"}

    app.index_string = """
<!DOCTYPE html>
<html>
    <head>
        {%metas%}
        <title>{%title%}</title>
        {%favicon%}
        {%css%}
        <style>
            body {
                margin: 0;
                background: radial-gradient(circle at top left, rgba(30, 64, 175, 0.15), rgba(15, 23, 42, 0.95));
                color: #e2e8f0;
                font-family: 'Inter', sans-serif;
            }

            .page {
                display: grid;
                grid-template-columns: 340px 1fr;
                height: 100vh;
            }

            .sidebar {
                padding: 1.35rem;
                background: rgba(15, 23, 42, 0.92);
                box-shadow: inset -1px 0 0 rgba(148, 163, 184, 0.12);
                display: flex;
                flex-direction: column;
                gap: 1.1rem;
                overflow-y: auto;
            }

            .graph-panel {
                padding: 1rem 1.7rem 1.7rem 1.5rem;
                position: relative;
            }

            .tree-container {
                width: 100%;
                height: 100%;
                position: relative;
            }

            .header .title {
                margin: 0;
                font-size: 1.35rem;
                font-weight: 600;
                color: #38bdf8;
            }

            .header .subtitle {
                margin: 0.3rem 0 0;
                color: #94a3b8;
                font-size: 0.9rem;
            }

            .control {
                display: flex;
                flex-direction: column;
                gap: 0.55rem;
            }

            .control label {
                font-size: 0.78rem;
                text-transform: uppercase;
                letter-spacing: 0.08em;
                color: #94a3b8;
            }

            .button-row {
                display: flex;
                gap: 0.6rem;
            }

            .button {
                padding: 0.45rem 0.9rem;
                border: none;
                border-radius: 8px;
                background: #2563eb;
                color: #f8fafc;
                cursor: pointer;
            }

            .button--secondary {
                background: rgba(148, 163, 184, 0.25);
            }

            .notice {
                color: #fca5a5;
                font-size: 0.85rem;
            }

            .legend, .path-info, .map-chooser {
                background: rgba(30, 41, 59, 0.7);
                border: 1px solid rgba(148, 163, 184, 0.18);
                border-radius: 14px;
                padding: 0.85rem;
            }

            .legend {
                display: grid;
                gap: 0.4rem 0.8rem;
                grid-template-columns: repeat(auto-fit, minmax(100px, 1fr));
            }

            .legend-item {
                display: flex;
                align-items: center;
                gap: 0.45rem;
                font-size: 0.84rem;
            }

            .legend-chip {
                width: 13px;
                height: 13px;
                border-radius: 4px;
                border: 1px solid rgba(226, 232, 240, 0.7);
            }

            .chooser-item {
                margin-bottom: 1em;
            }

            .hover-dialog {
                position: absolute;
                top: 1rem;
                right: 1rem;
                max-width: 260px;
                background: rgba(15, 23, 42, 0.95);
                border: 1px solid #e74c3c;
                border-radius: 10px;
                padding: 0.65rem 0.8rem;
                font-size: 0.85rem;
            }
        </style>
    </head>
    <body>
        {%app_entry%}
        <footer>
            {%config%}
            {%scripts%}
            {%renderer%}
        </footer>
    </body>
</html>
    """

    return app
