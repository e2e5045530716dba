"""Client for the per-component status endpoint."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Iterable, Optional
from urllib.parse import quote

import requests

from component_map.analysis.tree_builder import StatusValue, normalize_status
from component_map.config import ViewerSettings

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatusBatch:
    generation: int
    statuses: Dict[str, str]

    def as_dict(self) -> dict:
        return {"generation": self.generation, "statuses": dict(self.statuses)}


class StatusClient:
    """
    Fetch statuses from ``GET {base_url}/status/{component}``.

    Every failure (transport error, non-2xx answer, malformed body) is logged and reported as
    ``unknown`` for that one component; nothing is raised to the caller.
    """

    def __init__(
        self,
        base_url: str,
        *,
        session: Optional[requests.Session] = None,
        timeout: float | None = None,
        max_workers: int = 8,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.max_workers = max_workers

    @classmethod
    def from_settings(cls, settings: ViewerSettings, session: Optional[requests.Session] = None) -> "StatusClient":
        return cls(
            settings.status_url,
            session=session,
            timeout=settings.timeout,
            max_workers=settings.max_workers,
        )

    def status_url(self, component: str) -> str:
        return f"{self.base_url}/status/{quote(component, safe='')}"

    def fetch_status(self, component: str) -> StatusValue:
        url = self.status_url(component)
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            LOGGER.warning("Status fetch for %s failed: %s", component, exc)
            return StatusValue.UNKNOWN

        if not isinstance(payload, dict) or "status" not in payload:
            LOGGER.warning("Status response for %s has no status field", component)
            return StatusValue.UNKNOWN
        return normalize_status(payload["status"])

    def fetch_statuses(self, components: Iterable[str]) -> Dict[str, StatusValue]:
        """
        Fetch every component concurrently and return once all requests have settled.

        Results keep the order of first appearance in ``components``.
        """

        unique = list(dict.fromkeys(components))
        if not unique:
            return {}

        workers = min(self.max_workers, len(unique))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="status") as executor:
            futures = {component: executor.submit(self.fetch_status, component) for component in unique}
            results = {component: future.result() for component, future in futures.items()}

        failed = sum(1 for value in results.values() if value is StatusValue.UNKNOWN)
        LOGGER.debug("Fetched %d statuses (%d unknown)", len(results), failed)
        return results

    def fetch_batch(self, components: Iterable[str], generation: int) -> StatusBatch:
        """Fetch a batch tagged with the view-state generation it was requested for."""

        statuses = self.fetch_statuses(components)
        return StatusBatch(
            generation=generation,
            statuses={component: value.value for component, value in statuses.items()},
        )


__all__ = ["StatusBatch", "StatusClient"]
