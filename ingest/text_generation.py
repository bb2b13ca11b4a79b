"""Generate talk suggestions through an OpenAI-compatible chat API."""
from __future__ import annotations

import os
import time
from typing import Any, Iterable, Optional

from dotenv import load_dotenv
from openai import APIStatusError, AsyncOpenAI

from ingest.schemas import Event, Talk

load_dotenv()

AKASH_API_URL = os.getenv("AKASH_API_URL", "https://chatapi.akash.network/api/v1")
SUGGESTION_MODEL = os.getenv("SUGGESTION_MODEL", "Meta-Llama-3-3-70B-Instruct")

MAX_PROMPT_TALKS = 10

TALK_TEMPLATE = (
    "Talk {index}:\n"
    "Title: {title}\n"
    "Description: {description}\n"
)

PROMPT_TEMPLATE = (
    "{event_section}"
    "Here are some recent lightning talk submissions:\n"
    "{talks}\n"
    "Based on these submissions, suggest a new original lightning talk (5-10 minutes) "
    "that would complement these topics but cover something missing.\n"
    "Answer in exactly this format:\n"
    "Title: <title>\n"
    "Description: <description>\n"
    "Make sure the description is at least 100 and at most 200 characters!\n"
    "\n"
    "(note: {nonce})"
)


def build_suggestion_prompt(talks: Iterable[Talk], event: Optional[Event] = None) -> str:
    """Return the prompt asking for a talk that complements ``talks``.

    Only the first ``MAX_PROMPT_TALKS`` talks are included. The trailing nonce
    keeps the API from serving a cached completion.
    """
    latest = list(talks)[:MAX_PROMPT_TALKS]
    rendered = "\n".join(
        TALK_TEMPLATE.format(
            index=i,
            title=talk.title,
            description=talk.description or "No description provided",
        )
        for i, talk in enumerate(latest, start=1)
    ) or "(no talks submitted yet)\n"

    event_section = ""
    if event is not None:
        event_section = f"The event is called \"{event.title}\".\n"
        if event.description:
            event_section += f"Event description: {event.description}\n"
        if event.location:
            event_section += f"Location: {event.location}\n"
        event_section += "\n"

    return PROMPT_TEMPLATE.format(
        event_section=event_section,
        talks=rendered,
        nonce=int(time.time() * 1000),
    )


class TextGenerator:
    """Thin wrapper around the chat completion endpoint."""

    def __init__(self, base_url: str = AKASH_API_URL, model: str = SUGGESTION_MODEL):
        self.base_url = base_url
        self.model = model

    def _client(self, api_key: str) -> Any:
        return AsyncOpenAI(api_key=api_key, base_url=self.base_url)

    async def complete(self, prompt: str, api_key: str) -> str:
        """Return the completion text for ``prompt``."""
        client = self._client(api_key)
        try:
            resp = await client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
            )
        except APIStatusError as exc:
            if exc.response.status_code == 429:
                raise RuntimeError("Text generation API returned status 429: rate limited or out of credits") from exc
            raise RuntimeError("Text generation API request failed") from exc
        return (resp.choices[0].message.content or "").strip()
