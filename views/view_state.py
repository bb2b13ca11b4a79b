"""Per-viewer state derived from merged event data.

Two sources disagree about who voted for and who wrote a talk: the store
reports ``upvoted_by_me``/``is_author`` flags for the querying identity, and
the talk itself carries voter and signer addresses. Either signal is enough.
"""
from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional

from ingest.schemas import Event, Talk


def _same_address(a: Optional[str], b: Optional[str]) -> bool:
    return bool(a) and bool(b) and a.lower() == b.lower()


def has_voted(talk: Talk, identity: Optional[str]) -> bool:
    if talk.upvoted_by_me:
        return True
    return any(_same_address(voter, identity) for voter in talk.voter_addresses)


def is_my_talk(talk: Talk, identity: Optional[str]) -> bool:
    return talk.is_author or _same_address(talk.wallet_address, identity)


def annotate_talk(talk: Talk, identity: Optional[str]) -> Talk:
    """Return a copy of ``talk`` with ``has_voted`` and ``is_my_talk`` filled in."""
    return talk.model_copy(
        update={"has_voted": has_voted(talk, identity), "is_my_talk": is_my_talk(talk, identity)}
    )


def merge_announced(materialized: Iterable[Event], announced: Iterable[Event]) -> List[Event]:
    """Combine store events with announcement-only events.

    Materialized records are kept as they are. An announced record survives
    only when no materialized record has its id, and is marked ``announced``.
    Duplicates inside ``announced`` itself are not collapsed.
    """
    materialized = list(materialized)
    known = {event.id for event in materialized}
    extra = [
        event.model_copy(update={"announced": True})
        for event in announced
        if event.id not in known
    ]
    return materialized + extra


def exclude_hidden(events: Iterable[Event], is_hidden: Callable[[str], bool]) -> List[Event]:
    return [event for event in events if not is_hidden(event.id)]


def collect_my_talks(events: Iterable[Event], identity: Optional[str]) -> List[Dict]:
    """Return the viewer's talks across ``events`` with their event context."""
    if not identity:
        return []
    mine = []
    for event in events:
        for talk in event.talks:
            if is_my_talk(talk, identity):
                mine.append(
                    {
                        "talk": talk,
                        "event_id": event.id,
                        "event_title": event.title,
                        "event_date": event.event_date or event.date,
                    }
                )
    return mine


def summarize_my_talks(entries: Iterable[Dict]) -> Dict[str, int]:
    entries = list(entries)
    return {
        "total_submissions": len(entries),
        "total_votes": sum(entry["talk"].votes for entry in entries),
        "events_participated": len({entry["event_id"] for entry in entries}),
    }
