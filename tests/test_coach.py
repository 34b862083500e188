import json

import pytest
import requests

from app import coach
from app.coach import CoachError, FALLBACK_QUOTE, generate_practice_plan, get_inspirational_quote


class FakeResponse:
    def __init__(self, payload=None, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON")
        return self._payload


def gemini_text(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


@pytest.fixture
def posted(monkeypatch):
    """Record requests and answer with whatever the test queues up."""
    calls = []
    answers = []

    def fake_post(url, headers=None, json=None, timeout=None):
        calls.append({"url": url, "headers": headers, "json": json})
        answer = answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer

    monkeypatch.setattr(coach, "GEMINI_API_KEY", "test-key")
    monkeypatch.setattr(coach.requests, "post", fake_post)
    return calls, answers


def test_generate_plan(posted):
    calls, answers = posted
    plan = {
        "title": "Chopin Nocturne",
        "steps": [
            {"duration": "10", "action": "Scales", "description": "C minor", "type": "study"},
            {"duration": "5", "action": "Rest", "description": "", "type": "BREAK"},
            {"duration": "15", "action": "Play", "description": "Full piece", "type": "jam"},
        ],
        "techniqueTip": "Relax the wrist.",
    }
    answers.append(FakeResponse(gemini_text(json.dumps(plan))))

    result = generate_practice_plan("Chopin Nocturne", 30)

    assert result["title"] == "Chopin Nocturne"
    assert result["techniqueTip"] == "Relax the wrist."
    assert [s["type"] for s in result["steps"]] == ["study", "break", "practice"]

    request = calls[0]
    assert request["headers"] == {"x-goog-api-key": "test-key"}
    assert request["json"]["generationConfig"]["responseMimeType"] == "application/json"
    assert "EXACTLY 30 minutes" in request["json"]["contents"][0]["parts"][0]["text"]


def test_missing_key(monkeypatch):
    monkeypatch.setattr(coach, "GEMINI_API_KEY", "")
    with pytest.raises(CoachError):
        generate_practice_plan("Scales", 20)


@pytest.mark.parametrize("answer", [
    requests.exceptions.ConnectionError("offline"),
    FakeResponse(status_code=500),
    FakeResponse(None),
    FakeResponse({"candidates": []}),
    FakeResponse(gemini_text("not json at all")),
    FakeResponse(gemini_text('{"title": "No steps"}')),
])
def test_generate_failures_raise_coach_error(posted, answer):
    _, answers = posted
    answers.append(answer)
    with pytest.raises(CoachError):
        generate_practice_plan("Scales", 20)


def test_quote(posted):
    _, answers = posted
    answers.append(FakeResponse(gemini_text("  Practice makes progress.\n")))
    assert get_inspirational_quote() == "Practice makes progress."


def test_quote_falls_back(posted):
    _, answers = posted
    answers.append(FakeResponse(status_code=429))
    assert get_inspirational_quote() == FALLBACK_QUOTE


def test_quote_without_key(monkeypatch):
    monkeypatch.setattr(coach, "GEMINI_API_KEY", None)
    assert get_inspirational_quote() == FALLBACK_QUOTE
