"""Core package for the Component Map Explorer."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("component-map")
except PackageNotFoundError:  # pragma: no cover - package metadata absent in dev mode
    __version__ = "0.0.0"

__all__ = ["__version__"]
