"""Timestamp and display helpers shared by the extractors and views."""
from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

_ISO_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}")

# Epoch values above this are treated as milliseconds.
_MS_THRESHOLD = 10**11


def parse_timestamp(value: Any) -> datetime | None:
    """Return an aware ``datetime`` for ``value`` or ``None``.

    Parameters
    ----------
    value:
        Epoch seconds or milliseconds (int/float), or a date/datetime string.
        ``YYYY-MM-DD`` strings are read as midnight UTC and a trailing ``Z``
        is accepted. Naive values are assumed to be UTC.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        seconds = value / 1000 if value > _MS_THRESHOLD else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if not isinstance(value, str):
        return None

    text = value.strip()
    if text.isdigit():
        return parse_timestamp(int(text))
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def to_iso_timestamp(value: Any) -> str:
    """Return an ISO8601 string for ``value``, falling back to now.

    Strings already in ``YYYY-MM-DDTHH:MM:SS`` form are returned untouched.
    """
    if isinstance(value, str) and _ISO_PREFIX.match(value):
        return value
    dt = parse_timestamp(value)
    if dt is None:
        dt = datetime.now(timezone.utc)
    return dt.isoformat()


def format_wallet_address(address: str | None) -> str:
    """Shorten ``0x1234...abcd`` style addresses for display."""
    if not address:
        return "Unknown"
    return f"{address[:6]}...{address[-4:]}"


def format_event_date(value: str | None) -> str:
    """Return ``Month D, YYYY`` for ``value`` or ``"Date TBD"``."""
    dt = parse_timestamp(value)
    if dt is None:
        return "Date TBD"
    return f"{dt.strftime('%B')} {dt.day}, {dt.year}"
