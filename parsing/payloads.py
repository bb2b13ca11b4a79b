"""Extract structured fields from the JSON envelopes smuggled into text fields.

The decentralized store only keeps a flat title/description pair per event and
a single opaque string per talk. Richer data is serialized as JSON into those
strings when it is published, so every read has to try a structured parse and
fall back to treating the value as plain text.
"""
from __future__ import annotations

import json
from typing import Any

from ingest.schemas import EventMetadata, TalkPayload

TALK_FIELDS = ("title", "description", "speaker", "bio")


def _load_object(raw: Any) -> dict[str, Any] | None:
    """Return ``raw`` decoded as a JSON object, or ``None``."""
    if isinstance(raw, dict):
        return raw
    if not isinstance(raw, str) or not raw:
        return None
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        return None
    return parsed if isinstance(parsed, dict) else None


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def extract_talk_data(raw: Any) -> TalkPayload:
    """Return the title/description/speaker/bio encoded in a talk payload.

    Fields missing from a JSON payload stay ``None`` so the caller can apply
    its own defaults. Anything that is not a JSON object is taken to be a
    plain-text title.
    """
    parsed = _load_object(raw)
    if parsed is None:
        text = "" if raw is None else str(raw)
        return TalkPayload(title=text, description="", speaker="Anonymous")
    return TalkPayload(**{field: _optional_str(parsed.get(field)) for field in TALK_FIELDS})


def parse_event_description(raw: Any) -> str:
    """Return the display description of an event.

    When ``raw`` is a JSON envelope with a string ``description`` member that
    inner string is returned, otherwise ``raw`` is returned unchanged.
    """
    if not raw:
        return ""
    parsed = _load_object(raw)
    if parsed is not None and isinstance(parsed.get("description"), str):
        return parsed["description"]
    return raw if isinstance(raw, str) else str(raw)


def parse_event_metadata(raw: Any) -> EventMetadata:
    """Return the description plus the sibling metadata fields of an envelope."""
    parsed = _load_object(raw) or {}
    return EventMetadata(
        description=parse_event_description(raw),
        event_date=_optional_str(parsed.get("eventDate")),
        location=_optional_str(parsed.get("location")),
        website=_optional_str(parsed.get("website")),
        contact=_optional_str(parsed.get("contact")),
        banner_image=_optional_str(parsed.get("bannerImage")),
    )


def build_event_envelope(
    description: str,
    event_date: str | None = None,
    location: str | None = None,
    website: str | None = None,
    contact: str | None = None,
    banner_image: str | None = None,
) -> str:
    """Serialize extended metadata into the string stored as the description."""
    return json.dumps(
        {
            "description": description,
            "eventDate": event_date,
            "location": location,
            "website": website,
            "contact": contact,
            "bannerImage": banner_image,
        }
    )


def build_talk_payload(title: str, description: str, speaker: str, bio: str | None = None) -> str:
    """Serialize a talk submission into the opaque payload string."""
    payload = {"title": title, "description": description, "speaker": speaker}
    if bio:
        payload["bio"] = bio
    return json.dumps(payload)
