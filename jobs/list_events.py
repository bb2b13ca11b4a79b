"""Print events from the Lightning Talks API, optionally polling for changes."""
from __future__ import annotations

import argparse
import os
import time
from typing import Any, Callable

import requests

from ingest.api_client import get_event, get_events
from parsing.utils import format_event_date, format_wallet_address

POLL_INTERVAL_SECONDS = float(os.getenv("POLL_INTERVAL_SECONDS", "5"))


def format_event(event: dict[str, Any]) -> str:
    status = "closed" if not event.get("enabled", True) else "open"
    source = " [announced]" if event.get("announced") else ""
    when = format_event_date(event.get("event_date") or event.get("date"))
    return (
        f"{event['title']} ({when}, {status}){source}\n"
        f"  id: {event['id']}  owner: {format_wallet_address(event.get('owner_address'))}"
        f"  talks: {len(event.get('talks', []))}"
    )


def format_talk(talk: dict[str, Any]) -> str:
    marks = ""
    if talk.get("answer"):
        marks += " ✅"
    if talk.get("has_voted"):
        marks += " 👍"
    return f"  [{talk['votes']:>3}] {talk['title']} - {talk['speaker']}{marks}"


def run(event_filter: str = "all", event_id: str | None = None, sort: str = "votes") -> None:
    """Print one snapshot of the event list or of a single event."""
    if event_id:
        event = get_event(event_id, sort=sort)
        print(format_event(event))
        for talk in event.get("talks", []):
            print(format_talk(talk))
        return

    events = get_events(event_filter)
    if not events:
        print("No events found")
        return
    for event in events:
        print(format_event(event))


def watch(snapshot: Callable[[], None], interval: float = POLL_INTERVAL_SECONDS, rounds: int | None = None) -> None:
    """Call ``snapshot`` every ``interval`` seconds, ``rounds`` times or forever."""
    done = 0
    while rounds is None or done < rounds:
        try:
            snapshot()
        except requests.RequestException as exc:
            print("❌ Failed to fetch events:", exc)
        done += 1
        if rounds is None or done < rounds:
            time.sleep(interval)


def main() -> None:
    parser = argparse.ArgumentParser(description="List lightning talk events")
    parser.add_argument(
        "--filter",
        default="all",
        choices=["all", "upcoming", "created", "submitted", "voted"],
        help="Event filter (default: all)"
    )
    parser.add_argument("--event", help="Show a single event with its talks")
    parser.add_argument(
        "--sort",
        default="votes",
        choices=["votes", "time", "random"],
        help="Talk order when --event is given (default: votes)"
    )
    parser.add_argument("--watch", action="store_true", help="Poll the API until interrupted")
    args = parser.parse_args()

    def snapshot() -> None:
        run(args.filter, args.event, args.sort)

    try:
        watch(snapshot, rounds=None if args.watch else 1)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
