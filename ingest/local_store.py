"""Client-local key/value state the decentralized store knows nothing about.

Holds the set of hidden event ids, the speaker profile and the text-generation
API key. Values are strings stored under a single key each and every write
replaces the whole value.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict
from pathlib import Path
from typing import Dict, Optional, Set

from dotenv import load_dotenv

from ingest.schemas import UserProfile

load_dotenv()

DEFAULT_STATE_PATH = Path(os.getenv("LOCAL_STATE_PATH", "~/.lightning_talks/local_state.json")).expanduser()

HIDDEN_EVENTS_KEY = "hiddenEvents"
USER_INFO_KEY = "userInfo"
API_KEY_KEY = "akash_api_key"

logger = logging.getLogger(__name__)


class MemoryKeyValueStore:
    """Volatile key/value backend."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)


class FileKeyValueStore:
    """Key/value backend persisted as a JSON object on disk.

    A missing or unreadable file behaves like an empty store. Writes go to a
    temporary file that is then moved over the original.
    """

    def __init__(self, path: str | Path = DEFAULT_STATE_PATH):
        self.path = Path(path)

    def _read(self) -> Dict[str, str]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable local state %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring local state %s: not a JSON object", self.path)
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        os.replace(tmp, self.path)

    def get_item(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove_item(self, key: str) -> None:
        data = self._read()
        if data.pop(key, None) is not None:
            self._write(data)


class LocalOverrideStore:
    """Hidden events, speaker profile and API key for the current client."""

    def __init__(self, backend=None):
        self.backend = backend if backend is not None else FileKeyValueStore()

    # hidden events

    def hidden_event_ids(self) -> Set[str]:
        """Return the hidden event ids; corrupt or missing state yields an empty set."""
        raw = self.backend.get_item(HIDDEN_EVENTS_KEY)
        if not raw:
            return set()
        try:
            ids = json.loads(raw)
        except ValueError:
            logger.warning("Hidden events value is not valid JSON, ignoring it")
            return set()
        if not isinstance(ids, list):
            return set()
        return {str(i) for i in ids}

    def is_hidden(self, event_id: str) -> bool:
        return event_id in self.hidden_event_ids()

    def hide_event(self, event_id: str) -> None:
        ids = self.hidden_event_ids()
        ids.add(event_id)
        self.backend.set_item(HIDDEN_EVENTS_KEY, json.dumps(sorted(ids)))

    def unhide_event(self, event_id: str) -> None:
        ids = self.hidden_event_ids()
        if event_id in ids:
            ids.discard(event_id)
            self.backend.set_item(HIDDEN_EVENTS_KEY, json.dumps(sorted(ids)))

    # speaker profile

    def get_user_profile(self) -> UserProfile:
        raw = self.backend.get_item(USER_INFO_KEY)
        if not raw:
            return UserProfile()
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("User profile value is not valid JSON, ignoring it")
            return UserProfile()
        if not isinstance(data, dict):
            return UserProfile()
        return UserProfile(name=str(data.get("name") or ""), bio=str(data.get("bio") or ""))

    def save_user_profile(self, name: str, bio: str) -> None:
        self.backend.set_item(USER_INFO_KEY, json.dumps(asdict(UserProfile(name=name, bio=bio))))

    # text-generation API key

    def get_api_key(self) -> Optional[str]:
        return self.backend.get_item(API_KEY_KEY)

    def save_api_key(self, api_key: str) -> None:
        self.backend.set_item(API_KEY_KEY, api_key)

    def has_api_key(self) -> bool:
        return bool(self.get_api_key())
