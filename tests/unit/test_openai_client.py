# ABOUTME: Unit tests for the OpenAI-backed LlmClient.
# ABOUTME: A fake httpx transport answers the SDK's requests; no network calls are made.

import json
from pathlib import Path

import httpx
import pytest

from shelver.errors import ConfigurationError, UpstreamError
from shelver.extraction.llm import LlmClient, OpenAILlmClient

_COMPLETION = {
    "id": "chatcmpl-1",
    "object": "chat.completion",
    "created": 0,
    "model": "gpt-4o",
    "choices": [
        {
            "index": 0,
            "message": {"role": "assistant", "content": '{"books": []}'},
            "finish_reason": "stop",
        }
    ],
}


class FakeTransport(httpx.BaseTransport):
    """Transport returning one canned response and recording requests."""

    def __init__(self, response: httpx.Response) -> None:
        self._response = response
        self.requests: list[httpx.Request] = []

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._response


def _client(transport: FakeTransport) -> OpenAILlmClient:
    return OpenAILlmClient(
        api_key="sk-test",
        model="gpt-4o",
        base_url="https://llm.test/v1",
        http_client=httpx.Client(transport=transport),
    )


class TestOpenAILlmClient:
    """Tests for OpenAILlmClient."""

    def test_requires_api_key(self) -> None:
        with pytest.raises(ConfigurationError):
            OpenAILlmClient(api_key=None)

    def test_satisfies_protocol(self) -> None:
        transport = FakeTransport(httpx.Response(200, json=_COMPLETION))
        assert isinstance(_client(transport), LlmClient)

    def test_complete_returns_content(self) -> None:
        transport = FakeTransport(httpx.Response(200, json=_COMPLETION))
        answer = _client(transport).complete([{"role": "user", "content": "hi"}], max_tokens=50)
        assert answer == '{"books": []}'

    def test_request_forces_schema(self) -> None:
        """Extraction requests pin temperature 0 and the books JSON schema."""
        transport = FakeTransport(httpx.Response(200, json=_COMPLETION))
        _client(transport).complete([{"role": "user", "content": "hi"}], max_tokens=50)

        request = transport.requests[0]
        assert request.url.path.endswith("/chat/completions")
        body = json.loads(request.content)
        assert body["temperature"] == 0
        assert body["max_tokens"] == 50
        assert body["response_format"]["json_schema"]["name"] == "books_list"

    def test_server_error_not_retried(self) -> None:
        transport = FakeTransport(httpx.Response(500, json={"error": {"message": "down"}}))
        with pytest.raises(UpstreamError):
            _client(transport).complete([{"role": "user", "content": "hi"}], max_tokens=50)
        assert len(transport.requests) == 1

    def test_empty_content(self) -> None:
        completion = json.loads(json.dumps(_COMPLETION))
        completion["choices"][0]["message"]["content"] = ""
        transport = FakeTransport(httpx.Response(200, json=completion))
        with pytest.raises(UpstreamError):
            _client(transport).complete([{"role": "user", "content": "hi"}], max_tokens=50)

    def test_transcribe(self, tmp_path: Path) -> None:
        audio = tmp_path / "note.m4a"
        audio.write_bytes(b"\x00\x01")
        transport = FakeTransport(httpx.Response(200, json={"text": " I read Dune. "}))

        assert _client(transport).transcribe(audio) == "I read Dune."
        assert transport.requests[0].url.path.endswith("/audio/transcriptions")

    def test_transcribe_failure(self, tmp_path: Path) -> None:
        audio = tmp_path / "note.m4a"
        audio.write_bytes(b"\x00\x01")
        transport = FakeTransport(httpx.Response(401, json={"error": {"message": "bad key"}}))
        with pytest.raises(UpstreamError):
            _client(transport).transcribe(audio)
