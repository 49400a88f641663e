"""
Tests for the completion-service client, against httpx.MockTransport.
"""
from __future__ import annotations

import json

import httpx
import pytest

from slopcheck.errors import ScoringError
from slopcheck.scoring import FACTOR_KEYS, SYSTEM_PROMPT, PostScorer

VERDICT = {
    "slopScore": 17,
    "factors": {key: False for key in FACTOR_KEYS},
    "summary": "Clear and informative.",
    "recommendations": ["Add a question to invite replies."],
}


def _completion(content) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _scorer(handler, api_key="sk-test") -> PostScorer:
    return PostScorer(
        api_key=api_key,
        base_url="https://llm.example.com/v1/",
        model="test-model",
        transport=httpx.MockTransport(handler),
    )


def test_score_parses_verdict():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_completion(json.dumps(VERDICT)))

    analysis = _scorer(handler).score("hello world", display_name="Ada")

    assert analysis.slop_score == 17
    assert analysis.summary == "Clear and informative."
    assert analysis.factors["informative"] is False
    assert seen["url"] == "https://llm.example.com/v1/chat/completions"
    assert seen["auth"] == "Bearer sk-test"
    body = seen["body"]
    assert body["model"] == "test-model"
    assert body["response_format"] == {"type": "json_object"}
    assert body["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
    assert "hello world" in body["messages"][1]["content"]
    assert "Ada" in body["messages"][1]["content"]


def test_serialises_with_original_field_names():
    def handler(request):
        return httpx.Response(200, json=_completion(json.dumps(VERDICT)))

    dumped = _scorer(handler).score("hi").model_dump(by_alias=True)
    assert dumped["slopScore"] == 17


def test_missing_api_key_raises_without_calling_out():
    def handler(request):
        raise AssertionError("should not be called")

    with pytest.raises(ScoringError):
        _scorer(handler, api_key=None).score("hi")


def test_upstream_error_status_raises():
    with pytest.raises(ScoringError):
        _scorer(lambda request: httpx.Response(500, json={"error": "boom"})).score("hi")


def test_transport_error_raises():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ScoringError):
        _scorer(handler).score("hi")


@pytest.mark.parametrize("content", [
    "not json",
    json.dumps({"slopScore": 250}),
    json.dumps({"summary": "no score"}),
])
def test_unusable_verdict_raises(content):
    with pytest.raises(ScoringError):
        _scorer(lambda request: httpx.Response(200, json=_completion(content))).score("hi")


def test_malformed_envelope_raises():
    with pytest.raises(ScoringError):
        _scorer(lambda request: httpx.Response(200, json={"choices": []})).score("hi")
