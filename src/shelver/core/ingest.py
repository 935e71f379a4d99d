# ABOUTME: Ingestion pipeline: input modality -> extraction -> confirmation queue.
# ABOUTME: Input and upstream failures raise before any queue row is written.

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from shelver.core.queue import Candidate, ConfirmationQueue, EnqueueResult, QueueMeta
from shelver.errors import ConfigurationError
from shelver.extraction.extractor import BookExtractor, ExtractionResult

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    """Queue summary for one ingestion, plus what the model returned."""

    queued: int = 0
    skipped: int = 0
    items: list[dict[str, Any]] = field(default_factory=list)
    raw_response: str | None = None
    transcript: str | None = None

    @classmethod
    def from_enqueue(
        cls, result: EnqueueResult, extraction: ExtractionResult | None = None
    ) -> "IngestResult":
        return cls(
            queued=result.queued,
            skipped=result.skipped,
            items=result.items,
            raw_response=extraction.raw_response if extraction else None,
            transcript=extraction.transcript if extraction else None,
        )


class Ingestor:
    """Feeds extracted candidates from any modality into the confirmation queue."""

    def __init__(self, queue: ConfirmationQueue, extractor: BookExtractor | None = None) -> None:
        self._queue = queue
        self._extractor = extractor

    def ingest(
        self,
        user_id: int,
        candidates: Iterable[Candidate | Mapping[str, Any]],
        meta: QueueMeta | None = None,
    ) -> IngestResult:
        """Queue already-extracted candidates."""
        return IngestResult.from_enqueue(self._queue.enqueue(user_id, candidates, meta))

    def ingest_text(self, user_id: int, text: str) -> IngestResult:
        extraction = self._require_extractor(user_id).extract_text(text)
        return self._enqueue(user_id, extraction, QueueMeta(input_type="text", source_note="text"))

    def ingest_audio(self, user_id: int, audio_path: Path) -> IngestResult:
        extraction = self._require_extractor(user_id).extract_audio(audio_path)
        return self._enqueue(
            user_id, extraction, QueueMeta(input_type="audio", source_note="audio")
        )

    def ingest_image(self, user_id: int, image: str | Path) -> IngestResult:
        extraction = self._require_extractor(user_id).extract_image(image)
        return self._enqueue(
            user_id, extraction, QueueMeta(input_type="image", source_note="vision")
        )

    def _enqueue(self, user_id: int, extraction: ExtractionResult, meta: QueueMeta) -> IngestResult:
        meta.raw_response = json.dumps(
            {"raw": extraction.raw_response, "transcript": extraction.transcript},
            ensure_ascii=False,
        )
        logger.info(
            "ingest: user %d %s extraction returned %d books",
            user_id,
            meta.input_type,
            len(extraction.books),
        )
        result = self._queue.enqueue(
            user_id, [book.to_dict() for book in extraction.books], meta
        )
        return IngestResult.from_enqueue(result, extraction)

    def _require_extractor(self, user_id: int) -> BookExtractor:
        if self._extractor is None:
            raise ConfigurationError("No extraction collaborator configured")
        self._queue.preflight(user_id)
        return self._extractor
