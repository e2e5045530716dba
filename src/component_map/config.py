"""Configuration primitives for the project."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_STATUS_URL = "http://localhost:3001"


def _env_float(env: Mapping[str, str], key: str) -> Optional[float]:
    raw = env.get(key, "").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{key} must be a number, got {raw!r}") from exc


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from exc


@dataclass(slots=True)
class ProjectPaths:
    """Paths to key project directories relative to the repository root."""

    root: Path = Path(__file__).resolve().parents[2]
    data: Path = field(init=False)
    default_registry: Path = field(init=False)
    figures: Path = field(init=False)

    def __post_init__(self) -> None:
        self.data = self.root / "data"
        self.default_registry = self.data / "maps.json"
        self.figures = self.data / "figures"


@dataclass(slots=True)
class ViewerSettings:
    """Settings for the map viewer and its status fetches."""

    status_url: str = DEFAULT_STATUS_URL
    collapse_depth: int = 2
    max_workers: int = 8
    timeout: float | None = None

    def __post_init__(self) -> None:
        if self.collapse_depth < 0:
            raise ValueError("collapse_depth must be non-negative.")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1.")
        self.status_url = self.status_url.rstrip("/")

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "ViewerSettings":
        """Build settings from ``COMPONENT_MAP_*`` environment variables."""

        env = os.environ if env is None else env
        return cls(
            status_url=env.get("COMPONENT_MAP_STATUS_URL", "").strip() or DEFAULT_STATUS_URL,
            collapse_depth=_env_int(env, "COMPONENT_MAP_COLLAPSE_DEPTH", 2),
            max_workers=_env_int(env, "COMPONENT_MAP_MAX_WORKERS", 8),
            timeout=_env_float(env, "COMPONENT_MAP_STATUS_TIMEOUT"),
        )


@dataclass(slots=True)
class ProxySettings:
    """Connection details for the ITSM instance behind the status proxy."""

    instance: str
    username: str
    password: str
    table: str = "cmdb_ci_application"
    timeout: float | None = None

    def __post_init__(self) -> None:
        self.instance = self.instance.rstrip("/")

    @property
    def table_url(self) -> str:
        return f"{self.instance}/api/now/table/{self.table}"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "ProxySettings":
        """Read ``ITSM_*`` variables; the instance URL is mandatory."""

        env = os.environ if env is None else env
        instance = env.get("ITSM_INSTANCE", "").strip()
        if not instance:
            raise ValueError("ITSM_INSTANCE is not set.")
        return cls(
            instance=instance,
            username=env.get("ITSM_USERNAME", ""),
            password=env.get("ITSM_PASSWORD", ""),
            table=env.get("ITSM_TABLE", "").strip() or "cmdb_ci_application",
            timeout=_env_float(env, "ITSM_TIMEOUT"),
        )
