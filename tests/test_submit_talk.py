from unittest.mock import Mock, patch
import os
import sys

import pytest
import requests

# Ensure the project root is on the import path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from jobs.submit_talk import build_talk, main, submit

TALKS_URL = "http://localhost:8001/events/e1/talks"


def fake_post(url, json=None, **kwargs):  # pylint: disable=unused-argument,redefined-outer-name
    if url != TALKS_URL:
        raise ValueError(f"Unexpected URL {url}")
    resp = Mock()
    resp.raise_for_status = lambda: None
    resp.json = lambda: {"id": "t1"}
    return resp


def test_build_talk_omits_empty_bio():
    assert build_talk("Async", "Event loops", "Ada") == {"title": "Async", "description": "Event loops", "speaker": "Ada"}
    assert build_talk("Async", bio="Engines")["bio"] == "Engines"


def test_submit_posts_talk(capsys):
    talk = build_talk("Async", "Event loops", "Ada")
    with patch("ingest.api_client.requests.post", side_effect=fake_post) as mock_post:
        assert submit("e1", talk) == "t1"
    assert mock_post.call_args.kwargs["json"] == talk
    assert "✅ Submitted: Async" in capsys.readouterr().out


def test_submit_reports_http_errors(capsys):
    resp = Mock()
    resp.raise_for_status = Mock(side_effect=requests.HTTPError("400 Client Error"))
    with patch("ingest.api_client.requests.post", return_value=resp):
        assert submit("e1", build_talk("Late")) is None
    assert "Failed to submit talk" in capsys.readouterr().out


def test_main_exits_nonzero_on_failure():
    with patch("sys.argv", ["submit_talk", "e1", "Late"]), \
            patch("jobs.submit_talk.post_talk", side_effect=requests.ConnectionError("refused")):
        with pytest.raises(SystemExit) as exc:
            main()
    assert exc.value.code == 1
