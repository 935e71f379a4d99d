# ABOUTME: Language-model and speech-to-text client used for extraction.
# ABOUTME: Wraps the OpenAI SDK with bounded timeouts, no automatic retries, and typed errors.

import logging
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import httpx
import openai
from openai import OpenAI

from shelver.errors import ConfigurationError, UpstreamError
from shelver.extraction.schema import BOOKS_RESPONSE_FORMAT

logger = logging.getLogger(__name__)


@runtime_checkable
class LlmClient(Protocol):
    """Protocol for the extraction collaborator."""

    def complete(self, messages: list[dict[str, Any]], *, max_tokens: int) -> str: ...

    def transcribe(self, audio_path: Path) -> str: ...


class OpenAILlmClient:
    """LlmClient backed by the OpenAI chat completions and transcription APIs.

    Chat calls force the books JSON schema and temperature 0. Failures of
    any kind surface as UpstreamError; nothing is retried.
    """

    def __init__(
        self,
        *,
        api_key: str | None,
        model: str = "gpt-4o",
        transcription_model: str = "whisper-1",
        timeout: float = 90.0,
        transcription_timeout: float = 60.0,
        base_url: str | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("No OpenAI API key configured (set SHELVER_OPENAI_API_KEY)")
        self._client = OpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
            http_client=http_client,
        )
        self._model = model
        self._transcription_model = transcription_model
        self._transcription_timeout = transcription_timeout

    def complete(self, messages: list[dict[str, Any]], *, max_tokens: int) -> str:
        """Run one chat completion and return the message content."""
        try:
            response = self._client.chat.completions.create(
                model=self._model,
                messages=messages,  # type: ignore[arg-type]
                temperature=0,
                max_tokens=max_tokens,
                response_format=BOOKS_RESPONSE_FORMAT,  # type: ignore[arg-type]
            )
        except openai.APIError as exc:
            logger.warning("Chat completion failed (model=%s): %s", self._model, exc)
            raise UpstreamError("Extraction request failed", detail=str(exc)) from exc

        if not response.choices:
            raise UpstreamError("Extraction returned no choices")
        content = response.choices[0].message.content
        if not content:
            raise UpstreamError("Extraction returned an empty answer")
        return content

    def transcribe(self, audio_path: Path) -> str:
        """Transcribe an audio file to plain text."""
        try:
            with open(audio_path, "rb") as f:
                transcript = self._client.audio.transcriptions.create(
                    model=self._transcription_model,
                    file=f,
                    timeout=self._transcription_timeout,
                )
        except openai.APIError as exc:
            logger.warning("Transcription failed for %s: %s", audio_path, exc)
            raise UpstreamError("Transcription request failed", detail=str(exc)) from exc

        text = (transcript.text or "").strip()
        if not text:
            raise UpstreamError("Transcription returned no text")
        return text
