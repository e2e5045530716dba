"""Thin HTTP proxy exposing ITSM application status as ``/status/<name>``."""

from __future__ import annotations

import logging
from typing import Optional

import requests
from flask import Flask, Response, jsonify

from component_map.config import ProxySettings

LOGGER = logging.getLogger(__name__)

UNKNOWN_STATUS = "unknown"


def query_itsm_status(settings: ProxySettings, name: str, session: requests.Session) -> str:
    """
    Return the lowercased status of the first CMDB record named ``name``.

    Missing records or records without a status resolve to ``unknown``; transport and decoding
    errors propagate to the caller.
    """

    response = session.get(
        settings.table_url,
        params={"sysparm_query": f"name={name}"},
        auth=(settings.username, settings.password),
        headers={"Accept": "application/json"},
        timeout=settings.timeout,
    )
    response.raise_for_status()
    records = response.json().get("result") or []
    if not records:
        return UNKNOWN_STATUS
    status = records[0].get("status")
    if not isinstance(status, str) or not status:
        return UNKNOWN_STATUS
    return status.lower()


def create_status_proxy(settings: ProxySettings, *, session: Optional[requests.Session] = None) -> Flask:
    """Create the Flask proxy application."""

    server = Flask(__name__)
    http = session or requests.Session()

    @server.after_request
    def _allow_cors(response: Response) -> Response:
        response.headers["Access-Control-Allow-Origin"] = "*"
        return response

    @server.route("/status/<path:name>")
    def _status(name: str):
        try:
            status = query_itsm_status(settings, name, http)
        except (requests.RequestException, ValueError, AttributeError) as exc:
            LOGGER.error("ITSM lookup for %s failed: %s", name, exc)
            return jsonify({"status": UNKNOWN_STATUS}), 500
        return jsonify({"status": status})

    @server.route("/health")
    def _health():
        return jsonify({"ok": True})

    return server


__all__ = ["UNKNOWN_STATUS", "create_status_proxy", "query_itsm_status"]
