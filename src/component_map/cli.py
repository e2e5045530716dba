"""Command line entry points for the project."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer

from component_map import __version__
from component_map.analysis.adjacency import all_components, normalize_component_id
from component_map.analysis.map_loader import (
    MapLoadError,
    NamedMap,
    export_map_graph,
    export_map_graphml,
    load_registry,
    registry_summary,
)
from component_map.analysis.path_finder import path_to
from component_map.analysis.search import find_component, get_map
from component_map.analysis.tree_builder import TreeNode, build_tree, status_lookup
from component_map.analysis.visualization import plot_component_map
from component_map.config import ProjectPaths, ProxySettings, ViewerSettings
from component_map.io.itsm_proxy import create_status_proxy
from component_map.io.status_client import StatusClient
from component_map.ui import create_app

DEFAULT_REGISTRY = ProjectPaths().default_registry

STATUS_STYLES = {
    "healthy": typer.colors.GREEN,
    "maintenance": typer.colors.YELLOW,
    "incident": typer.colors.RED,
    "down": typer.colors.BRIGHT_RED,
    "unknown": typer.colors.WHITE,
}


def _load(registry_path: Path) -> List[NamedMap]:
    try:
        return load_registry(registry_path)
    except (FileNotFoundError, MapLoadError) as exc:
        raise typer.BadParameter(str(exc)) from exc


def _lookup(registry: List[NamedMap], name: str) -> NamedMap:
    try:
        return get_map(registry, name)
    except KeyError:
        known = ", ".join(named.name for named in registry)
        raise typer.BadParameter(f"Unknown map {name!r}. Known maps: {known}") from None


def _echo_tree(node: TreeNode, prefix: str = "", is_last: bool = True, is_root: bool = True) -> None:
    connector = "" if is_root else ("└── " if is_last else "├── ")
    marker = " *" if node.highlighted else ""
    collapsed = " [+]" if node.collapsed and node.children else ""
    status = f" ({node.status.value})" if node.status is not None else ""
    typer.echo(f"{prefix}{connector}{node.id}{status}{marker}{collapsed}")
    if node.collapsed:
        return
    child_prefix = prefix if is_root else prefix + ("    " if is_last else "│   ")
    for idx, child in enumerate(node.children):
        _echo_tree(child, child_prefix, idx == len(node.children) - 1, is_root=False)


app = typer.Typer(help="Utilities for exploring component dependency maps.")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    display_version: bool = typer.Option(False, "--version", "-V", help="Show version and exit."),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level (DEBUG, INFO, WARNING, ...)."),
) -> None:
    """Configure logging and print the package version when requested."""

    if display_version:
        typer.echo(__version__)
        raise typer.Exit()
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise typer.BadParameter(f"Unknown log level: {log_level}")
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


@app.command("validate")
def validate(
    registry_path: Path = typer.Option(DEFAULT_REGISTRY, "--registry", "-r", help="Map registry JSON file or directory."),
) -> None:
    """Load every map, rejecting cycles and root-less maps."""

    registry = _load(registry_path)
    for row in registry_summary(registry):
        typer.echo(f"{row['name']}: {row['components']} components, roots: {', '.join(row['roots'])}")
    typer.secho(f"{len(registry)} maps are valid.", fg=typer.colors.GREEN)


@app.command("search")
def search(
    term: str = typer.Argument(..., help="Component identifier (case-insensitive)."),
    registry_path: Path = typer.Option(DEFAULT_REGISTRY, "--registry", "-r", help="Map registry JSON file or directory."),
) -> None:
    """List the maps containing a component."""

    registry = _load(registry_path)
    component = normalize_component_id(term)
    matches = find_component(registry, component)
    if not matches:
        typer.secho(f'Component "{component}" not found.', fg=typer.colors.YELLOW)
        raise typer.Exit(code=1)
    for match in matches:
        named = get_map(registry, match.name)
        path = path_to(named.component_map, component)
        typer.echo(f"{match.name}: {match.description}")
        typer.echo(f"  path: {' -> '.join(path)}")


@app.command("path")
def path(
    map_name: str = typer.Argument(..., help="Name of the map to search."),
    target: str = typer.Argument(..., help="Component to reach."),
    registry_path: Path = typer.Option(DEFAULT_REGISTRY, "--registry", "-r", help="Map registry JSON file or directory."),
) -> None:
    """Print the first root-to-component path within a map."""

    named = _lookup(_load(registry_path), map_name)
    component = normalize_component_id(target)
    found = path_to(named.component_map, component)
    if not found:
        typer.secho(f"{component} is not part of {map_name}.", fg=typer.colors.YELLOW)
        raise typer.Exit(code=1)
    typer.echo(" -> ".join(found))


def _fetch_statuses(named: NamedMap, status_url: Optional[str]) -> dict:
    if not status_url:
        return {}
    settings = ViewerSettings.from_env()
    client = StatusClient(status_url, timeout=settings.timeout, max_workers=settings.max_workers)
    return {name: value.value for name, value in client.fetch_statuses(sorted(all_components(named.component_map))).items()}


@app.command("tree")
def tree(
    map_name: str = typer.Argument(..., help="Name of the map to print."),
    highlight: Optional[str] = typer.Option(None, "--highlight", "-H", help="Component to highlight and expand."),
    status_url: Optional[str] = typer.Option(None, help="Status proxy base URL; omit to show unknown statuses."),
    collapse_depth: int = typer.Option(2, help="Depth at which nodes start collapsed."),
    registry_path: Path = typer.Option(DEFAULT_REGISTRY, "--registry", "-r", help="Map registry JSON file or directory."),
) -> None:
    """Print the collapsed tree of a map, expanding the path to a highlighted component."""

    named = _lookup(_load(registry_path), map_name)
    target = normalize_component_id(highlight) if highlight else None
    expanded = path_to(named.component_map, target) if target else []
    if target and not expanded:
        typer.secho(f"Warning: {target} is not part of {map_name}.", fg=typer.colors.YELLOW)

    root = build_tree(
        named.component_map,
        status_lookup(_fetch_statuses(named, status_url)),
        target,
        expanded,
        collapse_depth=collapse_depth,
    )
    _echo_tree(root)


@app.command("export")
def export(
    map_name: str = typer.Argument(..., help="Name of the map to export."),
    output: Path = typer.Option(..., "--output", "-o", help="Destination file."),
    export_format: str = typer.Option("json", "--format", help="Output format (json or graphml)."),
    registry_path: Path = typer.Option(DEFAULT_REGISTRY, "--registry", "-r", help="Map registry JSON file or directory."),
) -> None:
    """Write a map as nodes/edges JSON or GraphML."""

    named = _lookup(_load(registry_path), map_name)
    destination = output.expanduser().resolve()
    fmt = export_format.lower()
    if fmt == "json":
        export_map_graph(named, destination)
    elif fmt == "graphml":
        export_map_graphml(named, destination)
    else:
        raise typer.BadParameter(f"Unsupported format: {export_format}")
    typer.echo(f"{map_name} written to {destination}")


@app.command("render")
def render(
    map_name: str = typer.Argument(..., help="Name of the map to render."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Destination PNG (defaults to data/figures/<map>.png)."),
    highlight: Optional[str] = typer.Option(None, "--highlight", "-H", help="Component to outline."),
    status_url: Optional[str] = typer.Option(None, help="Status proxy base URL; omit to render unknown statuses."),
    registry_path: Path = typer.Option(DEFAULT_REGISTRY, "--registry", "-r", help="Map registry JSON file or directory."),
) -> None:
    """Render a map into a static image."""

    named = _lookup(_load(registry_path), map_name)
    output_path = (output or ProjectPaths().figures / f"{map_name}.png").expanduser().resolve()
    png_path = plot_component_map(
        named.component_map,
        output_path,
        statuses=_fetch_statuses(named, status_url),
        highlight=normalize_component_id(highlight) if highlight else None,
        title=f"{named.name} ({len(all_components(named.component_map))} components)",
    )
    typer.echo(f"Visualization saved to {png_path}")


@app.command("status")
def status(
    components: List[str] = typer.Argument(..., help="Components to query."),
    status_url: Optional[str] = typer.Option(None, help="Status proxy base URL (defaults to COMPONENT_MAP_STATUS_URL)."),
) -> None:
    """Query the status proxy for the given components."""

    settings = ViewerSettings.from_env()
    client = StatusClient(status_url or settings.status_url, timeout=settings.timeout, max_workers=settings.max_workers)
    results = client.fetch_statuses(normalize_component_id(component) for component in components)
    for component, value in results.items():
        typer.secho(f"{component}: {value.value}", fg=STATUS_STYLES[value.value])


@app.command("proxy")
def proxy(
    host: str = typer.Option("127.0.0.1", help="Host interface for the status proxy."),
    port: int = typer.Option(3001, help="Port for the status proxy."),
    debug: bool = typer.Option(False, help="Enable Flask debug mode."),
) -> None:
    """Serve ITSM statuses at /status/<component> (configured through ITSM_* variables)."""

    try:
        settings = ProxySettings.from_env()
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    server = create_status_proxy(settings)
    typer.echo(f"Status proxy running at http://{host}:{port}")
    server.run(host=host, port=port, debug=debug)


@app.command("ui")
def ui(
    registry_path: Path = typer.Option(DEFAULT_REGISTRY, "--registry", "-r", help="Map registry JSON file or directory."),
    status_url: Optional[str] = typer.Option(None, help="Status proxy base URL (defaults to COMPONENT_MAP_STATUS_URL)."),
    host: str = typer.Option("127.0.0.1", help="Host interface for the Dash server."),
    port: int = typer.Option(8050, help="Port for the Dash server."),
    debug: bool = typer.Option(False, help="Enable Dash debug mode."),
) -> None:
    """Launch the interactive Dash application."""

    registry = _load(registry_path)
    settings = ViewerSettings.from_env()
    if status_url:
        settings.status_url = status_url.rstrip("/")
    app_instance = create_app(registry, settings)
    app_instance.run(host=host, port=port, debug=debug)


def run() -> None:
    """Entry point used by ``python -m component_map.cli``."""

    app()


if __name__ == "__main__":
    run()
