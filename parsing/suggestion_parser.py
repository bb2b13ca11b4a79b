"""Turn a free-text talk suggestion from an LLM into a title and description."""
from __future__ import annotations

import re
from typing import Tuple

FALLBACK_TITLE = "AI Generated Talk"
MAX_DESCRIPTION_LENGTH = 200
ELLIPSIS = "..."

# Labels may be wrapped in markdown emphasis, e.g. "**Title:** Foo".
TITLE_RE = re.compile(r"^[ \t]*(?:\*\*|__)?(?:Title:|#+)(?:\*\*|__)?[ \t]*(.*?)[ \t]*$", re.IGNORECASE | re.MULTILINE)
DESCRIPTION_RE = re.compile(r"^[ \t]*(?:\*\*|__)?Description:(?:\*\*|__)?[ \t]*(.*?)[ \t]*$", re.IGNORECASE | re.MULTILINE)
EMPHASIS_MARKERS = ("**", "__")


def _strip_emphasis(value: str) -> str:
    """Remove emphasis markers that wrap the whole value in a matched pair."""
    for marker in EMPHASIS_MARKERS:
        if len(value) > 2 * len(marker) and value.startswith(marker) and value.endswith(marker):
            return value[len(marker):-len(marker)].strip()
    return value


def _non_empty_lines(text: str) -> list[str]:
    return [line for line in text.split("\n") if line.strip()]


def _description_after_title(text: str, title: str) -> str:
    lines = _non_empty_lines(text)
    if len(lines) > 1:
        for i, line in enumerate(lines):
            if title in line:
                return " ".join(lines[i + 1:]).strip()
    return ""


def parse_suggestion(text: str) -> Tuple[str, str]:
    """Return ``(title, description)`` extracted from ``text``.

    The model is asked for ``Title: ...`` and ``Description: ...`` lines but
    does not always comply, so each field falls back through progressively
    looser heuristics. The title is never empty and the description never
    exceeds ``MAX_DESCRIPTION_LENGTH`` characters.
    """
    text = text or ""
    title = ""
    description = ""

    match = TITLE_RE.search(text)
    if match:
        title = _strip_emphasis(match.group(1).strip())

    match = DESCRIPTION_RE.search(text)
    if match:
        description = _strip_emphasis(match.group(1).strip())
    else:
        description = _description_after_title(text, title)
        if not description and title:
            index = text.find(title)
            if index >= 0:
                description = text[index + len(title):].strip()

    if not title:
        lines = _non_empty_lines(text)
        title = lines[0].strip() if lines else FALLBACK_TITLE

    if not description:
        description = text.replace(title, "", 1).strip()

    if len(description) > MAX_DESCRIPTION_LENGTH:
        description = description[:MAX_DESCRIPTION_LENGTH - len(ELLIPSIS)] + ELLIPSIS

    return title, description
