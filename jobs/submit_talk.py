"""Submit a lightning talk to an event through the Lightning Talks API."""
from __future__ import annotations

import argparse
import sys
from typing import Any

import requests

from ingest.api_client import post_talk


def build_talk(title: str, description: str = "", speaker: str = "", bio: str | None = None) -> dict[str, Any]:
    talk: dict[str, Any] = {"title": title, "description": description, "speaker": speaker}
    if bio:
        talk["bio"] = bio
    return talk


def submit(event_id: str, talk: dict[str, Any]) -> str | None:
    """Post ``talk`` and return the new talk id, or ``None`` on failure."""
    try:
        result = post_talk(event_id, talk)
    except requests.RequestException as exc:
        print("❌ Failed to submit talk:", talk.get("title", "<untitled>"), exc)
        return None
    print("✅ Submitted:", talk.get("title"), f"(id: {result.get('id')})")
    return result.get("id")


def main() -> None:
    parser = argparse.ArgumentParser(description="Submit a lightning talk")
    parser.add_argument("event", help="Event id")
    parser.add_argument("title", help="Talk title")
    parser.add_argument("--description", default="", help="Talk description")
    parser.add_argument("--speaker", default="", help="Speaker name (default: wallet or profile name)")
    parser.add_argument("--bio", help="Speaker bio")
    args = parser.parse_args()

    talk = build_talk(args.title, args.description, args.speaker, args.bio)
    if submit(args.event, talk) is None:
        sys.exit(1)


if __name__ == "__main__":
    main()
