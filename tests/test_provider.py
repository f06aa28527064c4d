from __future__ import annotations

import json

import pytest
import requests

from sentinel_llm.errors import AnalysisFailure
from sentinel_llm.provider import GeminiAnalysisProvider, parse_analysis_text
from sentinel_llm.schemas import Severity


VALID_PAYLOAD = {
    "threats": [{
        "id": "T1",
        "category": "LLM01: Prompt Injection",
        "title": "Indirect prompt injection",
        "description": "Retrieved documents carry instructions.",
        "severity": "Critical",
        "mitigation": "Segregate untrusted content.",
        "impact": "Data exfiltration.",
    }],
    "scores": [{"category": "LLM01: Prompt Injection", "score": 32, "details": "Weak isolation."}],
    "overallRiskScore": 78,
}


class FakeResponse:
    def __init__(self, status_code: int = 200, body=None, text: str | None = None):
        self.status_code = status_code
        self._body = body
        self.text = text if text is not None else json.dumps(body)

    def json(self):
        if self._body is None:
            raise ValueError("no json")
        return self._body


class FakeSession:
    def __init__(self, response=None, error: Exception | None = None):
        self.response = response
        self.error = error
        self.requests: list[dict] = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.requests.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


def _gemini_body(text: str) -> dict:
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


def _provider(session: FakeSession, api_key: str | None = "secret") -> GeminiAnalysisProvider:
    return GeminiAnalysisProvider(api_key=api_key, model="gemini-test", timeout=5, session=session)


def test_analyze_returns_validated_result() -> None:
    session = FakeSession(FakeResponse(body=_gemini_body(json.dumps(VALID_PAYLOAD))))

    result = _provider(session).analyze("GPT-4o", "Public API + RAG", "Support bot")

    assert result.overallRisk == 78
    assert result.threats[0].severity is Severity.CRITICAL
    assert result.scores[0].score == 32


def test_analyze_sends_one_request_with_schema() -> None:
    session = FakeSession(FakeResponse(body=_gemini_body(json.dumps(VALID_PAYLOAD))))

    _provider(session).analyze("GPT-4o", "Public API + RAG", "Support bot")

    assert len(session.requests) == 1
    sent = session.requests[0]
    assert sent["url"].endswith("/models/gemini-test:generateContent")
    assert sent["headers"]["x-goog-api-key"] == "secret"
    assert sent["timeout"] == 5
    config = sent["json"]["generationConfig"]
    assert config["responseMimeType"] == "application/json"
    assert config["responseSchema"]["required"] == ["threats", "scores", "overallRiskScore"]
    assert "GPT-4o" in sent["json"]["contents"][0]["parts"][0]["text"]


def test_missing_api_key_fails_without_network() -> None:
    session = FakeSession(FakeResponse(body=_gemini_body(json.dumps(VALID_PAYLOAD))))

    with pytest.raises(AnalysisFailure):
        _provider(session, api_key=None).analyze("m", "a", "u")

    assert session.requests == []


def test_transport_error_is_analysis_failure() -> None:
    session = FakeSession(error=requests.ConnectionError("unreachable"))

    with pytest.raises(AnalysisFailure, match="unreachable"):
        _provider(session).analyze("m", "a", "u")


def test_http_error_is_analysis_failure() -> None:
    session = FakeSession(FakeResponse(status_code=403, body={"error": {"message": "denied"}}))

    with pytest.raises(AnalysisFailure, match="HTTP 403"):
        _provider(session).analyze("m", "a", "u")


@pytest.mark.parametrize("body", [
    {},
    {"candidates": []},
    {"candidates": [{"content": {"parts": []}}]},
    {"candidates": [{"finishReason": "SAFETY"}]},
    {"candidates": ["oops"]},
    {"candidates": [{"content": "text"}]},
    {"candidates": {"a": 1}},
    {"candidates": [{"content": {"parts": "text"}}]},
    {"candidates": [{"content": {"parts": [{"text": 5}]}}]},
])
def test_empty_response_is_analysis_failure(body) -> None:
    session = FakeSession(FakeResponse(body=body))

    with pytest.raises(AnalysisFailure, match="empty"):
        _provider(session).analyze("m", "a", "u")


def test_non_json_body_is_analysis_failure() -> None:
    session = FakeSession(FakeResponse(body=None, text="<html>oops</html>"))

    with pytest.raises(AnalysisFailure):
        _provider(session).analyze("m", "a", "u")


def test_parse_rejects_non_json_text() -> None:
    with pytest.raises(AnalysisFailure, match="not valid JSON"):
        parse_analysis_text("Here is your threat model: ...")


@pytest.mark.parametrize("mutate", [
    lambda p: p.pop("threats"),
    lambda p: p.pop("overallRiskScore"),
    lambda p: p["threats"][0].pop("mitigation"),
    lambda p: p["scores"][0].pop("details"),
    lambda p: p["threats"][0].update(severity="Catastrophic"),
    lambda p: p.update(scores="none"),
])
def test_parse_rejects_wrong_shape(mutate) -> None:
    payload = json.loads(json.dumps(VALID_PAYLOAD))
    mutate(payload)

    with pytest.raises(AnalysisFailure, match="unexpected shape"):
        parse_analysis_text(json.dumps(payload))


def test_parse_accepts_empty_lists() -> None:
    result = parse_analysis_text(json.dumps({"threats": [], "scores": [], "overallRiskScore": 0}))

    assert result.threats == []
    assert result.scores == []
    assert result.overallRisk == 0
