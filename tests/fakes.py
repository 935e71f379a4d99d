# ABOUTME: Test doubles for the network-backed collaborators.
# ABOUTME: Fake HTTP client, metadata provider, and language-model client.

import json
from pathlib import Path
from typing import Any

from shelver.metadata.candidate import ExternalCandidate


class FakeHttpClient:
    """Fake HTTP client that returns canned responses based on URL patterns."""

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self._responses = responses or {}
        self.request_log: list[tuple[str, dict[str, str] | None]] = []

    def get(self, url: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        self.request_log.append((url, params))
        for pattern, response in self._responses.items():
            if pattern in url:
                if isinstance(response, Exception):
                    raise response
                return response
        return {}


class FakeProvider:
    """MetadataProvider returning a fixed candidate list and counting calls."""

    def __init__(self, name: str, candidates: list[ExternalCandidate] | None = None) -> None:
        self._name = name
        self._candidates = candidates or []
        self.calls: list[tuple[str, str, int]] = []

    @property
    def name(self) -> str:
        return self._name

    def search(self, title: str, author: str, limit: int = 5) -> list[ExternalCandidate]:
        self.calls.append((title, author, limit))
        return list(self._candidates[:limit])


def candidate(
    title: str,
    author: str,
    *,
    source: str = "openlibrary",
    score: float = 50.0,
    isbn: str | None = None,
    year: int | None = None,
) -> ExternalCandidate:
    return ExternalCandidate(
        title=title, author=author, source=source, score=score, isbn=isbn, year=year
    )


class FakeLlm:
    """LlmClient that answers every completion with the same books."""

    def __init__(
        self,
        books: list[dict[str, str]] | None = None,
        *,
        raw: str | None = None,
        transcript: str = "I just finished reading Dune by Frank Herbert.",
        error: Exception | None = None,
    ) -> None:
        self._raw = raw if raw is not None else json.dumps({"books": books or []})
        self._transcript = transcript
        self._error = error
        self.completions: list[tuple[list[dict[str, Any]], int]] = []
        self.transcriptions: list[Path] = []

    def complete(self, messages: list[dict[str, Any]], *, max_tokens: int) -> str:
        self.completions.append((messages, max_tokens))
        if self._error is not None:
            raise self._error
        return self._raw

    def transcribe(self, audio_path: Path) -> str:
        self.transcriptions.append(audio_path)
        if self._error is not None:
            raise self._error
        return self._transcript
