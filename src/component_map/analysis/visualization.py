"""Static rendering of component maps."""

from __future__ import annotations

from collections import Counter
from pathlib import Path
from typing import Mapping

import matplotlib.pyplot as plt
import networkx as nx

from component_map.analysis.adjacency import AdjacencyMap, ordered_roots, to_digraph
from component_map.analysis.tree_builder import StatusValue, normalize_status

STATUS_COLORS = {
    StatusValue.HEALTHY: "#2ecc71",
    StatusValue.MAINTENANCE: "#f1c40f",
    StatusValue.INCIDENT: "#e67e22",
    StatusValue.DOWN: "#e74c3c",
    StatusValue.UNKNOWN: "#bdc3c7",
}


def _depths(component_map: AdjacencyMap) -> dict[str, int]:
    """Breadth-first depth of every component; shared children keep their shallowest depth."""

    depths: dict[str, int] = {}
    queue = [(root, 0) for root in ordered_roots(component_map)]
    while queue:
        node, depth = queue.pop(0)
        if node in depths:
            continue
        depths[node] = depth
        queue.extend((child, depth + 1) for child in component_map.get(node) or ())
    return depths


def plot_component_map(
    component_map: AdjacencyMap,
    output_path: Path,
    *,
    statuses: Mapping[str, object] | None = None,
    highlight: str | None = None,
    title: str | None = None,
) -> Path:
    """
    Render a validated map top-down to ``output_path`` using matplotlib.

    Nodes are coloured by status and the ``highlight`` component gets a thick outline. The map
    must be acyclic.
    """

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    graph = to_digraph(component_map)
    if graph.number_of_nodes() == 0:
        raise ValueError("Map contains no components to visualize.")

    statuses = statuses or {}
    for node, depth in _depths(component_map).items():
        graph.nodes[node]["layer"] = depth

    positions = nx.multipartite_layout(graph, subset_key="layer", align="horizontal", scale=2.0)
    # multipartite stacks layers bottom-up; flip so roots sit on top.
    positions = {node: (x, -y) for node, (x, y) in positions.items()}

    node_status = {node: normalize_status(statuses.get(node)) for node in graph.nodes()}
    node_colours = [STATUS_COLORS[node_status[node]] for node in graph.nodes()]
    edge_widths = [3.0 if node == highlight else 1.0 for node in graph.nodes()]
    edge_colours = ["#facc15" if node == highlight else "#333333" for node in graph.nodes()]

    width = max(8, 1.4 * max(Counter(nx.get_node_attributes(graph, "layer").values()).values()))
    plt.figure(figsize=(width, 8))
    nx.draw_networkx_edges(graph, positions, arrows=False, width=1.2, edge_color="#64748b")
    nx.draw_networkx_nodes(
        graph,
        positions,
        node_color=node_colours,
        node_shape="s",
        node_size=1400,
        linewidths=edge_widths,
        edgecolors=edge_colours,
    )
    nx.draw_networkx_labels(graph, positions, font_size=7, font_weight="bold")

    if title is None:
        summary = Counter(status.value for status in node_status.values())
        title = ", ".join(f"{status}: {count}" for status, count in sorted(summary.items()))

    plt.title(title)
    plt.axis("off")
    plt.tight_layout()
    plt.savefig(output_path, dpi=200)
    plt.close()
    return output_path


__all__ = ["STATUS_COLORS", "plot_component_map"]
