"""Tests for the Lightning Talks HTTP API."""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, Mock
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from api.main import app, get_service
from ingest.local_store import LocalOverrideStore, MemoryKeyValueStore
from ingest.store_client import Identity, InMemoryStoreClient
from sync.event_service import EventService

ME = "0x1111111111111111111111111111111111111111"

client = TestClient(app)


@pytest.fixture
def service():
    svc = EventService(InMemoryStoreClient(Identity(ME)), LocalOverrideStore(MemoryKeyValueStore()))
    app.dependency_overrides[get_service] = lambda: svc
    yield svc
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_service():
    svc = EventService(InMemoryStoreClient(), LocalOverrideStore(MemoryKeyValueStore()))
    app.dependency_overrides[get_service] = lambda: svc
    yield svc
    app.dependency_overrides.clear()


def create_event(**overrides):
    payload = {"title": "Lightning Night", "description": "Short talks", "event_date": "2099-01-01T18:00:00Z"}
    payload.update(overrides)
    response = client.post("/events", json=payload)
    assert response.status_code == 200
    return response.json()["id"]


def test_health_endpoint():
    """Test the health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "timestamp" in data
    assert "version" in data


def test_root_endpoint():
    """Test the root endpoint returns API info."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert "Lightning Talks API" in data["name"]
    assert "docs" in data


def test_service_unavailable_without_lifespan():
    response = client.get("/events")
    assert response.status_code == 503


def test_create_and_list_events(service):
    event_id = create_event()
    response = client.get("/events")
    assert response.status_code == 200
    events = response.json()
    assert [e["id"] for e in events] == [event_id]
    assert events[0]["description"] == "Short talks"
    assert events[0]["is_creator"] is True

    assert [e["id"] for e in client.get("/events", params={"filter": "created"}).json()] == [event_id]
    assert [e["id"] for e in client.get("/events", params={"filter": "upcoming"}).json()] == [event_id]
    assert client.get("/events", params={"filter": "voted"}).json() == []


def test_invalid_filter_is_rejected(service):
    assert client.get("/events", params={"filter": "popular"}).status_code == 422


def test_identity_filter_without_wallet(anonymous_service):
    response = client.get("/events", params={"filter": "submitted"})
    assert response.status_code == 409
    assert client.get("/events", params={"filter": "all"}).status_code == 200


def test_talk_flow_with_sorting(service):
    event_id = create_event()
    first = client.post(f"/events/{event_id}/talks", json={"title": "First", "speaker": "Ada"}).json()["id"]
    second = client.post(f"/events/{event_id}/talks", json={"title": "Second", "speaker": "Bob"}).json()["id"]

    assert client.post(f"/events/{event_id}/talks/{second}/vote").json() == {"success": True}
    # second vote from the same wallet is refused by the store
    assert client.post(f"/events/{event_id}/talks/{second}/vote").status_code == 400

    data = client.get(f"/events/{event_id}", params={"sort": "votes"}).json()
    assert [t["id"] for t in data["talks"]] == [second, first]
    assert data["talks"][0]["has_voted"] is True
    assert data["talks"][0]["is_my_talk"] is True


def test_unknown_event_is_404(service):
    assert client.get("/events/nope").status_code == 404


def test_close_blocks_new_talks(service):
    event_id = create_event()
    assert client.post(f"/events/{event_id}/close").status_code == 200
    response = client.post(f"/events/{event_id}/talks", json={"title": "Late"})
    assert response.status_code == 400
    assert client.get(f"/events/{event_id}").json()["enabled"] is False


def test_accept_talk(service):
    event_id = create_event()
    talk_id = client.post(f"/events/{event_id}/talks", json={"title": "Pick me"}).json()["id"]
    response = client.post(f"/events/{event_id}/talks/{talk_id}/accept", json={"feedback": "Welcome aboard"})
    assert response.status_code == 200
    talk = client.get(f"/events/{event_id}").json()["talks"][0]
    assert talk["answer"] == "Welcome aboard"


def test_announce_event(service):
    event_id = create_event(announce=False)
    assert client.post(f"/events/{event_id}/announce").status_code == 200
    assert client.post("/events/missing/announce").status_code == 400


def test_hidden_events(service):
    event_id = create_event()
    client.post(f"/hidden/{event_id}")
    assert client.get("/events").json() == []
    client.delete(f"/hidden/{event_id}")
    assert len(client.get("/events").json()) == 1


def test_profile_and_api_key(service):
    assert client.get("/profile").json() == {"name": "", "bio": ""}
    client.put("/profile", json={"name": "Ada", "bio": "Engines"})
    assert client.get("/profile").json() == {"name": "Ada", "bio": "Engines"}
    assert client.put("/api-key", json={"api_key": "sk-1"}).json() == {"success": True}
    assert service.overrides.get_api_key() == "sk-1"


def test_suggestion_requires_api_key(service):
    event_id = create_event()
    assert client.post(f"/events/{event_id}/suggestion").status_code == 400


def test_suggestion_endpoint(service):
    event_id = create_event()
    service.overrides.save_api_key("sk-1")
    service.generator = Mock()
    service.generator.complete = AsyncMock(return_value="Title: Bytes\nDescription: All about bytes.")
    response = client.post(f"/events/{event_id}/suggestion")
    assert response.status_code == 200
    assert response.json()["title"] == "Bytes"
    assert response.json()["description"] == "All about bytes."


def test_suggestion_failure_is_502(service):
    event_id = create_event()
    service.overrides.save_api_key("sk-1")
    service.generator = Mock()
    service.generator.complete = AsyncMock(side_effect=RuntimeError("down"))
    assert client.post(f"/events/{event_id}/suggestion").status_code == 502


def test_my_talks(service):
    event_id = create_event()
    client.post(f"/events/{event_id}/talks", json={"title": "Mine", "speaker": "Ada"})
    data = client.get("/my-talks").json()
    assert len(data["talks"]) == 1
    assert data["talks"][0]["event_id"] == event_id
    assert data["stats"] == {"total_submissions": 1, "total_votes": 0, "events_participated": 1}
