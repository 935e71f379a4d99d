# ABOUTME: Turns typed text, dictated audio, or a shelf photo into extracted (title, author) pairs.
# ABOUTME: Validates input before any upstream call and the answer against the books schema.

import base64
import logging
import mimetypes
from dataclasses import dataclass, field
from pathlib import Path

from shelver.errors import InvalidInputError, UpstreamError
from shelver.extraction.llm import LlmClient
from shelver.extraction.schema import ExtractedBook, parse_books_response
from shelver.metadata.normalizer import needs_splitting, split_concatenated

logger = logging.getLogger(__name__)

TEXT_MAX_TOKENS = 1500
IMAGE_MAX_TOKENS = 2000


@dataclass
class ExtractionResult:
    """Books read from one input, plus the raw model answer for auditing."""

    books: list[ExtractedBook] = field(default_factory=list)
    raw_response: str = ""
    transcript: str | None = None


def build_prompt(instruction: str, text: str) -> str:
    return f'{instruction}\n\nText:\n"{text}"'


def _image_data_url(image: str | Path) -> str:
    """Accept a data URL as-is; read a file path into a base64 data URL."""
    if isinstance(image, str) and image.startswith("data:image/"):
        return image
    path = Path(image)
    if not path.is_file():
        raise InvalidInputError(f"Image not found: {path}")
    mime, _ = mimetypes.guess_type(path.name)
    if not mime or not mime.startswith("image/"):
        raise InvalidInputError(f"Not an image file: {path}")
    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime};base64,{encoded}"


class BookExtractor:
    """Runs the extraction collaborator for each input modality."""

    def __init__(
        self,
        llm: LlmClient,
        *,
        text_instruction: str,
        image_instruction: str,
        audio_instruction: str | None = None,
    ) -> None:
        self._llm = llm
        self._text_instruction = text_instruction
        self._audio_instruction = audio_instruction or text_instruction
        self._image_instruction = image_instruction

    def extract_text(self, text: str) -> ExtractionResult:
        """Extract books mentioned in typed text."""
        text = (text or "").strip()
        if not text:
            raise InvalidInputError("Text is empty")
        return self._run_text(self._text_instruction, text)

    def extract_audio(self, audio_path: Path) -> ExtractionResult:
        """Transcribe an audio file, then extract books from the transcript."""
        audio_path = Path(audio_path)
        if not audio_path.is_file():
            raise InvalidInputError(f"Audio file not found: {audio_path}")
        if audio_path.stat().st_size == 0:
            raise InvalidInputError(f"Audio file is empty: {audio_path}")

        transcript = self._llm.transcribe(audio_path).strip()
        if not transcript:
            raise UpstreamError("Transcription returned no text")
        result = self._run_text(self._audio_instruction, transcript)
        result.transcript = transcript
        return result

    def extract_image(self, image: str | Path) -> ExtractionResult:
        """Read books from a photo of spines or covers.

        Spine text that comes back run together ("TheNameOfTheWind") is
        split into words before it is returned.
        """
        data_url = _image_data_url(image)
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": self._image_instruction},
                    {"type": "image_url", "image_url": {"url": data_url}},
                ],
            }
        ]
        raw = self._llm.complete(messages, max_tokens=IMAGE_MAX_TOKENS)
        books = [
            ExtractedBook(title=self._repair(book.title), author=self._repair(book.author))
            for book in parse_books_response(raw)
        ]
        return ExtractionResult(books=books, raw_response=raw)

    def _run_text(self, instruction: str, text: str) -> ExtractionResult:
        messages = [{"role": "user", "content": build_prompt(instruction, text)}]
        raw = self._llm.complete(messages, max_tokens=TEXT_MAX_TOKENS)
        books = parse_books_response(raw)
        logger.debug("Extracted %d books from %d characters", len(books), len(text))
        return ExtractionResult(books=books, raw_response=raw)

    @staticmethod
    def _repair(value: str) -> str:
        if needs_splitting(value):
            return split_concatenated(value)
        return value
