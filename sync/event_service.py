"""Read and command surface over the decentralized event store.

``EventService`` merges materialized and announced events, applies the
client-local overrides, extracts the JSON envelopes hidden in text fields and
annotates talks for the current viewer. Commands are forwarded to the store
client. Nothing raised by a collaborator crosses this boundary: reads return
an empty list or ``None`` and commands return ``False``/``None``.
"""
from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, Iterable, List, Optional

from ingest.local_store import LocalOverrideStore
from ingest.schemas import Event, Talk, TalkSuggestion, UserProfile
from ingest.store_client import StoreClient
from ingest.text_generation import TextGenerator, build_suggestion_prompt
from parsing.payloads import build_event_envelope, extract_talk_data, parse_event_metadata
from parsing.suggestion_parser import parse_suggestion
from parsing.utils import to_iso_timestamp
from views.view_state import annotate_talk, exclude_hidden, merge_announced

logger = logging.getLogger(__name__)
if os.getenv("LIGHTNING_DEBUG"):
    logging.basicConfig(level=logging.INFO, format="%(message)s")


def normalize_talk(raw: Dict[str, Any], identity: Optional[str] = None) -> Talk:
    """Convert a raw store talk into a ``Talk`` annotated for ``identity``."""
    payload = extract_talk_data(raw.get("question"))
    talk = Talk(
        id=str(raw.get("hash") or raw.get("id") or ""),
        title=payload.title or "Unknown Talk",
        description=payload.description or "",
        speaker=payload.speaker or "Anonymous",
        bio=payload.bio,
        votes=max(int(raw.get("upvotes") or 0), 0),
        voter_addresses=[str(v) for v in raw.get("voters") or []],
        wallet_address=raw.get("signer") or None,
        is_author=bool(raw.get("isAuthor")),
        upvoted_by_me=bool(raw.get("upvotedByMe")),
        created_at=to_iso_timestamp(raw.get("timestamp")),
        answer=raw.get("answer") or None,
    )
    return annotate_talk(talk, identity)


# Raised by malformed peer records: missing keys, wrong types, failed validation.
MALFORMED_RECORD_ERRORS = (AttributeError, KeyError, TypeError, ValueError)


def normalize_talks(records: Iterable[Dict[str, Any]], identity: Optional[str] = None) -> List[Talk]:
    """Normalize each talk record, skipping the ones that cannot be read."""
    talks = []
    for raw in records:
        try:
            talks.append(normalize_talk(raw, identity))
        except MALFORMED_RECORD_ERRORS:
            logger.warning("Skipping malformed talk record %r", raw, exc_info=True)
    return talks


def normalize_event(
    raw: Dict[str, Any],
    identity: Optional[str] = None,
    talks: Optional[Iterable[Dict[str, Any]]] = None,
) -> Event:
    """Convert a raw store or announcement record into an ``Event``.

    Top-level metadata (as found on announcements) wins over the values
    carried in the description envelope.
    """
    event_id = raw.get("id")
    if event_id is None or event_id == "":
        raise KeyError("id")
    meta = parse_event_metadata(raw.get("description"))
    event_date = raw.get("eventDate") or meta.event_date
    raw_talks = talks if talks is not None else raw.get("talks") or []
    return Event(
        id=str(event_id),
        title=raw.get("title") or "",
        description=meta.description,
        owner_address=raw.get("owner") or raw.get("ownerAddress"),
        is_creator=bool(raw.get("isCreator")),
        event_date=to_iso_timestamp(event_date) if event_date else None,
        date=to_iso_timestamp(raw.get("timestamp")),
        location=raw.get("location") or meta.location,
        website=raw.get("website") or meta.website,
        contact=raw.get("contact") or meta.contact,
        banner_image=raw.get("bannerImage") or meta.banner_image,
        enabled=raw.get("enabled", True) is not False,
        talks=normalize_talks(raw_talks, identity),
    )


def normalize_events(
    records: Iterable[Dict[str, Any]],
    identity: Optional[str] = None,
    with_talks: bool = True,
) -> List[Event]:
    """Normalize each event record, skipping the ones that cannot be read."""
    events = []
    for raw in records:
        try:
            events.append(normalize_event(raw, identity, talks=None if with_talks else []))
        except MALFORMED_RECORD_ERRORS:
            logger.warning("Skipping malformed event record %r", raw, exc_info=True)
    return events


def announcement_payload(
    event_id: str,
    title: str,
    description: str,
    event_date: Optional[str] = None,
    location: Optional[str] = None,
    website: Optional[str] = None,
    contact: Optional[str] = None,
    banner_image: Optional[str] = None,
) -> Dict[str, Any]:
    """Return the record broadcast on the announcement channel."""
    return {
        "id": event_id,
        "title": title,
        "description": description,
        "eventDate": event_date,
        "location": location,
        "website": website,
        "contact": contact,
        "bannerImage": banner_image,
        "timestamp": int(time.time() * 1000),
    }


class EventService:
    """Facade used by the UI layer.

    Parameters
    ----------
    client:
        Connected or connectable ``StoreClient``.
    overrides:
        Client-local hidden events, profile and API key.
    generator:
        Text generation backend for ``generate_suggestion``.
    enforce_closed_events:
        Refuse talk submissions and votes on closed events, and votes on
        accepted talks, before reaching the store. ``False`` forwards them.
    """

    def __init__(
        self,
        client: StoreClient,
        overrides: Optional[LocalOverrideStore] = None,
        generator: Optional[TextGenerator] = None,
        enforce_closed_events: bool = True,
    ):
        self.client = client
        self.overrides = overrides or LocalOverrideStore()
        self.generator = generator or TextGenerator()
        self.enforce_closed_events = enforce_closed_events

    async def start(self) -> None:
        await self.client.connect()
        self.client.on("*", self._log_notification)

    async def stop(self) -> None:
        await self.client.close()

    async def __aenter__(self) -> "EventService":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    @staticmethod
    def _log_notification(kind: str, data: Dict[str, Any]) -> None:
        logger.info("Store notification %s: %s", kind, data)

    @property
    def identity(self) -> Optional[str]:
        return self.client.identity.address

    # reads

    async def fetch_events(self) -> List[Event]:
        """Return materialized plus announced events, minus hidden ones."""
        identity = self.identity
        try:
            raw_events = await self.client.get_events()
            raw_announced = self.client.announced_events
        except Exception:
            logger.exception("Failed to fetch events")
            return []
        materialized = normalize_events(raw_events or [], identity)
        announced = normalize_events(raw_announced or [], identity, with_talks=False)
        merged = merge_announced(materialized, announced)
        hidden = self.overrides.hidden_event_ids()
        events = exclude_hidden(merged, hidden.__contains__)
        logger.info("Fetched %d event(s) (%d materialized, %d hidden)", len(events), len(materialized), len(merged) - len(events))
        return events

    async def fetch_event_by_id(self, event_id: str) -> Optional[Event]:
        """Return one event with its talks, or ``None``.

        Events known only from the announcement channel are returned with
        ``announced`` set and no talks.
        """
        identity = self.identity
        try:
            raw = await self.client.get_event_by_id(event_id)
            if raw is None:
                for item in self.client.announced_events:
                    if isinstance(item, dict) and str(item.get("id")) == event_id:
                        event = normalize_event(item, identity, talks=[])
                        return event.model_copy(update={"announced": True})
                return None
            talks = await self.client.get_talks(event_id)
            return normalize_event(raw, identity, talks=talks or [])
        except Exception:
            logger.exception("Failed to fetch event %s", event_id)
            return None

    # commands

    async def create_event(
        self,
        title: str,
        description: str,
        event_date: Optional[str] = None,
        location: Optional[str] = None,
        website: Optional[str] = None,
        contact: Optional[str] = None,
        banner_image: Optional[str] = None,
        announce: bool = True,
        use_external_wallet: bool = False,
    ) -> Optional[str]:
        envelope = build_event_envelope(description, event_date, location, website, contact, banner_image)
        try:
            event_id = await self.client.publish_event(title, envelope, False, use_external_wallet)
        except Exception:
            logger.exception("Failed to create event %r", title)
            return None
        if not event_id:
            return None
        logger.info("Event created with id %s", event_id)

        if announce:
            payload = announcement_payload(
                event_id, title, description, event_date, location, website, contact, banner_image
            )
            try:
                if not await self.client.announce_event(payload):
                    logger.warning("Announcement of event %s was rejected", event_id)
            except Exception:
                logger.exception("Failed to announce event %s", event_id)
        return event_id

    async def _event_is_closed(self, event_id: str) -> bool:
        raw = await self.client.get_event_by_id(event_id)
        return raw is not None and raw.get("enabled", True) is False

    async def _resolve_speaker(self, speaker: str, bio: Optional[str]) -> tuple[str, Optional[str]]:
        profile = self.overrides.get_user_profile()
        if not speaker or not speaker.strip():
            name = None
            if self.identity:
                name = await self.client.identity.get_name(self.identity)
            speaker = name or profile.name or "Anonymous"
        if not bio:
            bio = profile.bio or None
        return speaker, bio

    async def create_talk(
        self,
        event_id: str,
        title: str,
        description: str,
        speaker: str,
        bio: Optional[str] = None,
        use_external_wallet: bool = False,
    ) -> Optional[str]:
        try:
            if self.enforce_closed_events and await self._event_is_closed(event_id):
                logger.warning("Refusing talk submission to closed event %s", event_id)
                return None
            speaker, bio = await self._resolve_speaker(speaker, bio)
            talk_id = await self.client.submit_talk(event_id, title, description, speaker, bio, use_external_wallet)
        except Exception:
            logger.exception("Failed to create talk for event %s", event_id)
            return None
        return talk_id or None

    async def upvote_talk(self, event_id: str, talk_id: str) -> bool:
        try:
            if self.enforce_closed_events:
                if await self._event_is_closed(event_id):
                    logger.warning("Refusing vote on closed event %s", event_id)
                    return False
                for raw in await self.client.get_talks(event_id) or []:
                    if str(raw.get("hash")) == talk_id and raw.get("answer"):
                        logger.warning("Refusing vote on accepted talk %s", talk_id)
                        return False
            return bool(await self.client.vote_talk(event_id, talk_id))
        except Exception:
            logger.exception("Failed to upvote talk %s in event %s", talk_id, event_id)
            return False

    async def close_event(self, event_id: str) -> bool:
        try:
            return bool(await self.client.close_event(event_id))
        except Exception:
            logger.exception("Failed to close event %s", event_id)
            return False

    async def accept_talk(self, event_id: str, talk_id: str, feedback: Optional[str] = None) -> bool:
        try:
            return bool(await self.client.accept_talk(event_id, talk_id, feedback))
        except Exception:
            logger.exception("Failed to accept talk %s in event %s", talk_id, event_id)
            return False

    async def announce_event(self, event_id: str) -> bool:
        event = await self.fetch_event_by_id(event_id)
        if event is None:
            logger.warning("Cannot announce unknown event %s", event_id)
            return False
        try:
            payload = announcement_payload(
                event.id,
                event.title,
                event.description,
                event.event_date,
                event.location,
                event.website,
                event.contact,
                event.banner_image,
            )
            return bool(await self.client.announce_event(payload))
        except Exception:
            logger.exception("Failed to announce event %s", event_id)
            return False

    async def generate_suggestion(
        self,
        talks: Iterable[Talk],
        event_details: Optional[Event] = None,
        profile: Optional[UserProfile] = None,
    ) -> Optional[TalkSuggestion]:
        """Ask the text generator for a complementary talk.

        Returns ``None`` when no API key is stored or the request fails.
        """
        api_key = self.overrides.get_api_key()
        if not api_key:
            logger.warning("No text generation API key stored")
            return None
        prompt = build_suggestion_prompt(talks, event_details)
        try:
            text = await self.generator.complete(prompt, api_key)
        except Exception:
            logger.exception("Failed to generate talk suggestion")
            return None
        title, description = parse_suggestion(text)
        profile = profile or self.overrides.get_user_profile()
        return TalkSuggestion(title=title, description=description, speaker=profile.name, bio=profile.bio)
