"""Client for the Lightning Talks HTTP API."""
from __future__ import annotations

import os
import logging
from typing import Any

import requests
from dotenv import load_dotenv

load_dotenv()

API_BASE_URL = os.getenv("API_URL", "http://localhost:8001")

logger = logging.getLogger(__name__)
if os.getenv("LIGHTNING_DEBUG"):
    logging.basicConfig(level=logging.INFO, format="%(message)s")


def _make_headers() -> dict[str, str]:
    """Return headers for API requests, including the auth token if set."""
    token = os.getenv("API_TOKEN")
    headers: dict[str, str] = {"Content-Type": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def _log_request(method: str, url: str, payload: Any | None = None) -> None:
    """Log details about an outgoing HTTP request."""
    logger.info("%s %s", method.upper(), url)
    if payload is not None:
        logger.info("Payload: %s", payload)


def get_events(event_filter: str = "all") -> list[dict[str, Any]]:
    """Return the merged event list, narrowed by ``event_filter``."""
    url = f"{API_BASE_URL}/events"
    _log_request("get", url, {"filter": event_filter})
    response = requests.get(url, params={"filter": event_filter}, headers=_make_headers(), timeout=30)
    response.raise_for_status()
    return response.json()


def get_event(event_id: str, sort: str = "votes") -> dict[str, Any]:
    """Return one event with its talks in ``sort`` order."""
    url = f"{API_BASE_URL}/events/{event_id}"
    _log_request("get", url, {"sort": sort})
    response = requests.get(url, params={"sort": sort}, headers=_make_headers(), timeout=30)
    response.raise_for_status()
    return response.json()


def post_talk(event_id: str, talk: dict[str, Any]) -> dict[str, Any]:
    """Submit a talk to ``event_id``."""
    url = f"{API_BASE_URL}/events/{event_id}/talks"
    _log_request("post", url, talk)
    response = requests.post(url, json=talk, headers=_make_headers(), timeout=30)
    response.raise_for_status()
    return response.json()
