"""Sort orders for talks and list filters for events."""
from __future__ import annotations

import logging
import random
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, List, Optional

from ingest.schemas import Event, Talk
from parsing.utils import parse_timestamp

logger = logging.getLogger(__name__)

TOP_TALK_VOTES = 10

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class SortOption(str, Enum):
    VOTES = "votes"
    TIME = "time"
    RANDOM = "random"


class EventFilter(str, Enum):
    ALL = "all"
    UPCOMING = "upcoming"
    CREATED = "created"
    SUBMITTED = "submitted"
    VOTED = "voted"


IDENTITY_FILTERS = {EventFilter.CREATED, EventFilter.SUBMITTED, EventFilter.VOTED}


def requires_identity(option: EventFilter | str) -> bool:
    """Return True when ``option`` is meaningless without a connected wallet."""
    return EventFilter(option) in IDENTITY_FILTERS


def sort_talks(
    talks: Iterable[Talk],
    option: SortOption | str,
    rng: Optional[random.Random] = None,
) -> List[Talk]:
    """Return a new list of ``talks`` in the requested order.

    ``votes`` and ``time`` are descending and stable. ``random`` shuffles on
    every call; pass ``rng`` for a reproducible order. Unknown options keep
    the input order.
    """
    result = list(talks)
    try:
        option = SortOption(option)
    except ValueError:
        logger.info("Unknown sort option %r, keeping input order", option)
        return result

    if option is SortOption.VOTES:
        result.sort(key=lambda talk: talk.votes, reverse=True)
    elif option is SortOption.TIME:
        result.sort(key=lambda talk: parse_timestamp(talk.created_at) or _EPOCH, reverse=True)
    else:
        (rng or random).shuffle(result)
    return result


def event_start(event: Event) -> Optional[datetime]:
    """Return the event's scheduled date, preferring ``event_date`` over ``date``."""
    return parse_timestamp(event.event_date) or parse_timestamp(event.date)


def is_upcoming(event: Event, now: Optional[datetime] = None) -> bool:
    start = event_start(event)
    if start is None:
        return False
    return start >= (now or datetime.now(timezone.utc))


def filter_events(
    events: Iterable[Event],
    option: EventFilter | str,
    now: Optional[datetime] = None,
) -> List[Event]:
    option = EventFilter(option)
    events = list(events)
    if option is EventFilter.ALL:
        return events
    if option is EventFilter.UPCOMING:
        return [e for e in events if is_upcoming(e, now)]
    if option is EventFilter.CREATED:
        return [e for e in events if e.is_creator]
    if option is EventFilter.SUBMITTED:
        return [e for e in events if any(t.is_author for t in e.talks)]
    return [e for e in events if any(t.upvoted_by_me for t in e.talks)]


def top_talks(talks: Iterable[Talk], threshold: int = TOP_TALK_VOTES) -> List[Talk]:
    return [talk for talk in talks if talk.votes >= threshold]


def accepted_talks(talks: Iterable[Talk]) -> List[Talk]:
    return [talk for talk in talks if talk.accepted]
