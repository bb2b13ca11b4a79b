"""Interface to the decentralized event store.

The store itself (peer discovery, signing, persistence) lives outside this
project. ``StoreClient`` describes the capabilities the sync layer relies on;
a client is created, connected, used and closed by its owner and handed to
``sync.event_service.EventService``.

``InMemoryStoreClient`` implements the same capabilities in process so the
rest of the pipeline can be exercised without a network.
"""
from __future__ import annotations

import copy
import hashlib
import logging
import time
import uuid
from typing import Any, Callable, Dict, List, Optional, Protocol

from parsing.payloads import build_talk_payload

logger = logging.getLogger(__name__)

Listener = Callable[[str, Dict[str, Any]], None]


class Identity:
    """The current viewer's wallet address and optional name resolver."""

    def __init__(self, address: Optional[str] = None, names: Optional[Dict[str, str]] = None):
        self.address = address
        self._names = {k.lower(): v for k, v in (names or {}).items()}

    async def get_name(self, address: str) -> Optional[str]:
        return self._names.get(address.lower()) if address else None


class StoreClient(Protocol):
    """Capabilities consumed from the decentralized store."""

    @property
    def identity(self) -> Identity: ...

    @property
    def announced_events(self) -> List[Dict[str, Any]]: ...

    async def connect(self) -> None: ...

    async def close(self) -> None: ...

    def on(self, kind: str, callback: Listener) -> None: ...

    async def get_events(self) -> List[Dict[str, Any]]: ...

    async def get_event_by_id(self, event_id: str) -> Optional[Dict[str, Any]]: ...

    async def get_talks(self, event_id: str) -> List[Dict[str, Any]]: ...

    async def publish_event(
        self, title: str, description: str, moderation: bool, use_external_wallet: bool = False
    ) -> str: ...

    async def submit_talk(
        self,
        event_id: str,
        title: str,
        description: str,
        speaker: str,
        bio: Optional[str] = None,
        use_external_wallet: bool = False,
    ) -> Optional[str]: ...

    async def vote_talk(self, event_id: str, talk_id: str) -> bool: ...

    async def close_event(self, event_id: str) -> bool: ...

    async def accept_talk(self, event_id: str, talk_id: str, feedback: Optional[str] = None) -> bool: ...

    async def announce_event(self, payload: Dict[str, Any]) -> bool: ...


def _same_address(a: Optional[str], b: Optional[str]) -> bool:
    return bool(a) and bool(b) and a.lower() == b.lower()


class InMemoryStoreClient:
    """Process-local store with the behavior of the decentralized one.

    Raw records use the store's own key names (``owner``, ``timestamp``,
    ``question``, ``upvotes``, ``signer``...). Per-viewer flags such as
    ``isCreator`` and ``upvotedByMe`` are computed for ``identity`` on read.
    """

    def __init__(self, identity: Optional[Identity] = None):
        self._identity = identity or Identity()
        self._events: Dict[str, Dict[str, Any]] = {}
        self._talks: Dict[str, List[Dict[str, Any]]] = {}
        self._announced: List[Dict[str, Any]] = []
        self._listeners: List[tuple[str, Listener]] = []
        self.connected = False

    @property
    def identity(self) -> Identity:
        return self._identity

    @property
    def announced_events(self) -> List[Dict[str, Any]]:
        return list(self._announced)

    async def connect(self) -> None:
        self.connected = True
        logger.info("In-memory store ready for %s", self._identity.address or "anonymous viewer")

    async def close(self) -> None:
        self._listeners.clear()
        self.connected = False

    def on(self, kind: str, callback: Listener) -> None:
        """Register ``callback`` for ``kind`` notifications, or all of them with ``"*"``."""
        self._listeners.append((kind, callback))

    def _emit(self, kind: str, data: Dict[str, Any]) -> None:
        for wanted, callback in list(self._listeners):
            if wanted in ("*", kind):
                callback(kind, data)

    def _talk_view(self, talk: Dict[str, Any]) -> Dict[str, Any]:
        me = self._identity.address
        view = copy.deepcopy(talk)
        view["isAuthor"] = _same_address(talk.get("signer"), me)
        view["upvotedByMe"] = any(_same_address(v, me) for v in talk.get("voters", []))
        return view

    def _event_view(self, event: Dict[str, Any]) -> Dict[str, Any]:
        view = copy.deepcopy(event)
        view["isCreator"] = _same_address(event.get("owner"), self._identity.address)
        view["talks"] = [self._talk_view(t) for t in self._talks.get(event["id"], [])]
        return view

    def _find_talk(self, event_id: str, talk_id: str) -> Optional[Dict[str, Any]]:
        for talk in self._talks.get(event_id, []):
            if talk["hash"] == talk_id:
                return talk
        return None

    async def get_events(self) -> List[Dict[str, Any]]:
        return [self._event_view(e) for e in self._events.values()]

    async def get_event_by_id(self, event_id: str) -> Optional[Dict[str, Any]]:
        event = self._events.get(event_id)
        return self._event_view(event) if event else None

    async def get_talks(self, event_id: str) -> List[Dict[str, Any]]:
        return [self._talk_view(t) for t in self._talks.get(event_id, [])]

    async def publish_event(
        self, title: str, description: str, moderation: bool, use_external_wallet: bool = False
    ) -> str:
        event_id = uuid.uuid4().hex
        self._events[event_id] = {
            "id": event_id,
            "title": title,
            "description": description,
            "owner": self._identity.address,
            "moderation": moderation,
            "enabled": True,
            "timestamp": int(time.time() * 1000),
        }
        self._talks[event_id] = []
        self._emit("event", {"id": event_id})
        return event_id

    async def submit_talk(
        self,
        event_id: str,
        title: str,
        description: str,
        speaker: str,
        bio: Optional[str] = None,
        use_external_wallet: bool = False,
    ) -> Optional[str]:
        if event_id not in self._events:
            return None
        payload = build_talk_payload(title, description, speaker, bio)
        timestamp = int(time.time() * 1000)
        talk_hash = hashlib.sha256(f"{event_id}|{payload}|{timestamp}|{uuid.uuid4()}".encode()).hexdigest()
        self._talks[event_id].append(
            {
                "hash": talk_hash,
                "question": payload,
                "upvotes": 0,
                "voters": [],
                "signer": self._identity.address,
                "timestamp": timestamp,
                "answer": None,
            }
        )
        self._emit("talk", {"eventId": event_id, "hash": talk_hash})
        return talk_hash

    async def vote_talk(self, event_id: str, talk_id: str) -> bool:
        me = self._identity.address
        talk = self._find_talk(event_id, talk_id)
        if talk is None or not me:
            return False
        if any(_same_address(v, me) for v in talk["voters"]):
            return False
        talk["voters"].append(me)
        talk["upvotes"] += 1
        self._emit("vote", {"eventId": event_id, "hash": talk_id})
        return True

    async def close_event(self, event_id: str) -> bool:
        event = self._events.get(event_id)
        if event is None or not _same_address(event.get("owner"), self._identity.address):
            return False
        event["enabled"] = False
        return True

    async def accept_talk(self, event_id: str, talk_id: str, feedback: Optional[str] = None) -> bool:
        event = self._events.get(event_id)
        talk = self._find_talk(event_id, talk_id)
        if event is None or talk is None:
            return False
        if not _same_address(event.get("owner"), self._identity.address):
            return False
        talk["answer"] = feedback or "Accepted"
        return True

    async def announce_event(self, payload: Dict[str, Any]) -> bool:
        self._announced.append(dict(payload))
        self._emit("announcement", {"id": payload.get("id")})
        return True
