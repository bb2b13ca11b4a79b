import asyncio
import os
import sys
from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest
from openai import APIStatusError

# Ensure the project root is on the import path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from ingest.schemas import Event, Talk
from ingest.text_generation import MAX_PROMPT_TALKS, TextGenerator, build_suggestion_prompt


def make_talk(i, description="Something"):
    return Talk(id=f"t{i}", title=f"Talk number {i}", description=description, created_at="2030-01-01T00:00:00+00:00")


def fake_openai(content=None, error=None):
    client = Mock()
    client.chat.completions.create = AsyncMock()
    if error is not None:
        client.chat.completions.create.side_effect = error
    else:
        message = Mock()
        message.content = content
        choice = Mock()
        choice.message = message
        resp = Mock()
        resp.choices = [choice]
        client.chat.completions.create.return_value = resp
    return client


def test_prompt_limits_talks_and_mentions_event():
    talks = [make_talk(i) for i in range(1, 13)]
    event = Event(id="e1", title="PyData Night", description="Data talks", location="Oslo", date="2030-01-01")
    prompt = build_suggestion_prompt(talks, event)
    assert f"Talk {MAX_PROMPT_TALKS}:" in prompt
    assert f"Talk {MAX_PROMPT_TALKS + 1}:" not in prompt
    assert "PyData Night" in prompt
    assert "Location: Oslo" in prompt
    assert "Title: <title>" in prompt


def test_prompt_without_talks_or_description():
    prompt = build_suggestion_prompt([make_talk(1, description="")])
    assert "No description provided" in prompt
    assert "no talks submitted yet" in build_suggestion_prompt([])


def test_complete_returns_stripped_text():
    fake = fake_openai(content="  Title: X\nDescription: Y \n")
    with patch("ingest.text_generation.AsyncOpenAI", return_value=fake) as factory:
        text = asyncio.run(TextGenerator(base_url="https://llm.example/v1", model="m").complete("hi", "sk-1"))
    assert text == "Title: X\nDescription: Y"
    factory.assert_called_once_with(api_key="sk-1", base_url="https://llm.example/v1")
    kwargs = fake.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "m"
    assert kwargs["messages"] == [{"role": "user", "content": "hi"}]


def test_complete_wraps_rate_limit():
    response = httpx.Response(429, request=httpx.Request("POST", "https://llm.example/v1/chat/completions"))
    error = APIStatusError("rate limited", response=response, body=None)
    with patch("ingest.text_generation.AsyncOpenAI", return_value=fake_openai(error=error)):
        with pytest.raises(RuntimeError, match="429"):
            asyncio.run(TextGenerator().complete("hi", "sk-1"))
