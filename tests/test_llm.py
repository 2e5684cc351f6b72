"""Tests for the OpenAI client wrapper."""

from __future__ import annotations

import asyncio
import io
import json
import urllib.error

import pytest

from docsbuddy import llm as llm_module
from docsbuddy.config import Settings
from docsbuddy.llm import LLMClient, LLMError, build_llm_client


class _FakeResponse(io.BytesIO):
    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


def _http_error(status: int, body: dict) -> urllib.error.HTTPError:
    return urllib.error.HTTPError(
        "https://api.openai.com/v1/chat/completions",
        status,
        "error",
        {},
        io.BytesIO(json.dumps(body).encode("utf-8")),
    )


def test_call_sync_sends_openai_request(monkeypatch):
    captured = {}

    def fake_urlopen(req, timeout):
        captured["url"] = req.full_url
        captured["headers"] = dict(req.header_items())
        captured["body"] = json.loads(req.data.decode("utf-8"))
        payload = {"choices": [{"message": {"role": "assistant", "content": "hello"}}]}
        return _FakeResponse(json.dumps(payload).encode("utf-8"))

    monkeypatch.setattr(llm_module.urllib.request, "urlopen", fake_urlopen)
    client = LLMClient(api_key="sk-test")
    result = client._call_sync([{"role": "user", "content": "hi"}], max_tokens=150, temperature=0.3)

    assert result == "hello"
    assert captured["url"] == "https://api.openai.com/v1/chat/completions"
    assert captured["headers"]["Authorization"] == "Bearer sk-test"
    assert captured["body"]["model"] == "gpt-4o-mini"
    assert captured["body"]["max_tokens"] == 150
    assert captured["body"]["temperature"] == 0.3
    assert captured["body"]["messages"] == [{"role": "user", "content": "hi"}]


@pytest.mark.parametrize(
    ("status", "code"),
    [(401, "invalid_api_key"), (429, "insufficient_quota")],
)
def test_provider_error_codes_are_preserved(monkeypatch, status, code):
    def fake_urlopen(req, timeout):
        raise _http_error(status, {"error": {"message": "nope", "code": code, "type": "x"}})

    monkeypatch.setattr(llm_module.urllib.request, "urlopen", fake_urlopen)
    with pytest.raises(LLMError) as info:
        LLMClient(api_key="sk-test")._call_sync([{"role": "user", "content": "hi"}])

    assert info.value.code == code
    assert info.value.status == status
    assert info.value.retryable is False


def test_missing_choices_raise(monkeypatch):
    monkeypatch.setattr(
        llm_module.urllib.request,
        "urlopen",
        lambda req, timeout: _FakeResponse(b'{"choices": []}'),
    )
    with pytest.raises(LLMError):
        LLMClient(api_key="sk-test")._call_sync([{"role": "user", "content": "hi"}])


def test_chat_does_not_retry_by_default():
    client = LLMClient(api_key="dummy")
    calls = []

    def failing(messages, max_tokens=None, temperature=None):
        calls.append(messages)
        raise LLMError("server error", status=500)

    client._call_sync = failing
    with pytest.raises(LLMError):
        asyncio.run(client.chat([{"role": "user", "content": "hi"}]))
    assert len(calls) == 1


def test_chat_retries_transient_errors_when_enabled():
    client = LLMClient(api_key="dummy", max_retries=2, base_backoff_seconds=0.0)
    calls = []

    def flaky(messages, max_tokens=None, temperature=None):
        calls.append(messages)
        if len(calls) < 2:
            raise LLMError("rate limited", code="rate_limit_exceeded", status=429)
        return "ok"

    client._call_sync = flaky
    assert asyncio.run(client.chat([{"role": "user", "content": "hi"}])) == "ok"
    assert len(calls) == 2


def test_ask_builds_system_and_user_messages():
    client = LLMClient(api_key="dummy")
    seen = {}

    def capture(messages, max_tokens=None, temperature=None):
        seen["messages"] = messages
        seen["max_tokens"] = max_tokens
        return "answer"

    client._call_sync = capture
    assert asyncio.run(client.ask("Define REST", system="Be brief", max_tokens=50)) == "answer"
    assert seen["messages"] == [
        {"role": "system", "content": "Be brief"},
        {"role": "user", "content": "Define REST"},
    ]
    assert seen["max_tokens"] == 50


def test_build_llm_client_requires_key():
    assert build_llm_client(Settings()) is None
    client = build_llm_client(Settings(openai_api_key="sk-x", model="gpt-4o", llm_retries=2))
    assert client.model == "gpt-4o"
    assert client.max_retries == 2
