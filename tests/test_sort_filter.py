import os
import random
import sys
from datetime import datetime, timezone

import pytest

# Ensure the project root is on the import path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from ingest.schemas import Event, Talk
from views.sort_filter import (
    EventFilter,
    SortOption,
    accepted_talks,
    filter_events,
    requires_identity,
    sort_talks,
    top_talks,
)

NOW = datetime(2030, 6, 1, tzinfo=timezone.utc)


def make_talk(talk_id, votes=0, created_at="2030-01-01T00:00:00+00:00", **kwargs):
    return Talk(id=talk_id, votes=votes, created_at=created_at, **kwargs)


def make_event(event_id, date="2030-01-01T00:00:00+00:00", **kwargs):
    return Event(id=event_id, date=date, **kwargs)


def ids(items):
    return [item.id for item in items]


def test_sort_by_votes_is_descending_and_stable():
    talks = [make_talk("a", 1), make_talk("b", 5), make_talk("c", 1), make_talk("d", 5)]
    assert ids(sort_talks(talks, SortOption.VOTES)) == ["b", "d", "a", "c"]


def test_sort_by_time_newest_first_and_stable():
    talks = [
        make_talk("old", created_at="2030-01-01T00:00:00+00:00"),
        make_talk("new", created_at="2030-03-01T00:00:00Z"),
        make_talk("tie1", created_at="2030-02-01T00:00:00+00:00"),
        make_talk("tie2", created_at="2030-02-01T00:00:00+00:00"),
    ]
    assert ids(sort_talks(talks, "time")) == ["new", "tie1", "tie2", "old"]


def test_sort_does_not_mutate_input():
    talks = [make_talk("a", 1), make_talk("b", 2)]
    sort_talks(talks, "votes")
    assert ids(talks) == ["a", "b"]


def test_random_sort_with_injected_rng_is_reproducible():
    talks = [make_talk(str(i)) for i in range(10)]
    first = sort_talks(talks, "random", rng=random.Random(7))
    second = sort_talks(talks, "random", rng=random.Random(7))
    assert ids(first) == ids(second)
    assert sorted(ids(first)) == sorted(ids(talks))


def test_unknown_sort_keeps_order():
    talks = [make_talk("a", 1), make_talk("b", 2)]
    assert ids(sort_talks(talks, "alphabetical")) == ["a", "b"]


def test_filter_all():
    events = [make_event("a"), make_event("b")]
    assert ids(filter_events(events, EventFilter.ALL)) == ["a", "b"]


def test_filter_upcoming_prefers_event_date():
    events = [
        make_event("past", date="2030-01-01T00:00:00+00:00"),
        make_event("future", date="2031-01-01T00:00:00+00:00"),
        make_event("scheduled", date="2020-01-01T00:00:00+00:00", event_date="2030-07-01T00:00:00Z"),
        make_event("held", date="2031-01-01T00:00:00+00:00", event_date="2030-01-01"),
        make_event("now", date="2030-06-01T00:00:00+00:00"),
    ]
    assert ids(filter_events(events, "upcoming", now=NOW)) == ["future", "scheduled", "now"]


def test_identity_filters():
    events = [
        make_event("mine", is_creator=True),
        make_event("submitted", talks=[make_talk("t1", is_author=True)]),
        make_event("voted", talks=[make_talk("t2", upvoted_by_me=True)]),
        make_event("other", talks=[make_talk("t3")]),
    ]
    assert ids(filter_events(events, "created")) == ["mine"]
    assert ids(filter_events(events, "submitted")) == ["submitted"]
    assert ids(filter_events(events, "voted")) == ["voted"]


def test_identity_filters_on_anonymous_data_are_empty():
    events = [make_event("a", talks=[make_talk("t1")])]
    for option in ("created", "submitted", "voted"):
        assert filter_events(events, option) == []


def test_requires_identity():
    assert requires_identity("created")
    assert requires_identity(EventFilter.VOTED)
    assert not requires_identity("all")
    assert not requires_identity("upcoming")
    with pytest.raises(ValueError):
        requires_identity("bogus")


def test_top_and_accepted_talks():
    talks = [make_talk("a", 12), make_talk("b", 10, answer="See you there"), make_talk("c", 3)]
    assert ids(top_talks(talks)) == ["a", "b"]
    assert ids(accepted_talks(talks)) == ["b"]
