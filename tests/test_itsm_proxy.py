"""Tests for the ITSM status proxy."""

from __future__ import annotations

import requests

from component_map.config import ProxySettings
from component_map.io.itsm_proxy import create_status_proxy, query_itsm_status

SETTINGS = ProxySettings(instance="https://itsm.example.com/", username="svc", password="secret")


class _FakeResponse:
    def __init__(self, payload: object, status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self) -> object:
        return self._payload


class _RecordingSession:
    def __init__(self, response: object) -> None:
        self.response = response
        self.calls: list[dict] = []

    def get(self, url: str, **kwargs):
        self.calls.append({"url": url, **kwargs})
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def test_query_builds_table_request() -> None:
    session = _RecordingSession(_FakeResponse({"result": [{"status": "Operational"}]}))

    assert query_itsm_status(SETTINGS, "ULDEC", session) == "operational"
    call = session.calls[0]
    assert call["url"] == "https://itsm.example.com/api/now/table/cmdb_ci_application"
    assert call["params"] == {"sysparm_query": "name=ULDEC"}
    assert call["auth"] == ("svc", "secret")
    assert call["headers"] == {"Accept": "application/json"}


def test_query_without_records_is_unknown() -> None:
    session = _RecordingSession(_FakeResponse({"result": []}))
    assert query_itsm_status(SETTINGS, "NOPE", session) == "unknown"


def test_status_route_returns_status() -> None:
    session = _RecordingSession(_FakeResponse({"result": [{"status": "DOWN"}]}))
    client = create_status_proxy(SETTINGS, session=session).test_client()

    response = client.get("/status/ULDEC")
    assert response.status_code == 200
    assert response.get_json() == {"status": "down"}
    assert response.headers["Access-Control-Allow-Origin"] == "*"


def test_status_route_upstream_failure_is_unknown_500() -> None:
    session = _RecordingSession(requests.ConnectionError("unreachable"))
    client = create_status_proxy(SETTINGS, session=session).test_client()

    response = client.get("/status/ULDEC")
    assert response.status_code == 500
    assert response.get_json() == {"status": "unknown"}


def test_health_route() -> None:
    client = create_status_proxy(SETTINGS, session=_RecordingSession(None)).test_client()
    assert client.get("/health").get_json() == {"ok": True}
