"""Interactive explorer built on Dash and Cytoscape."""

from component_map.ui.app import create_app

__all__ = ["create_app"]
