# ABOUTME: The {"books": [{title, author}]} contract enforced on extraction output.
# ABOUTME: Builds the JSON-schema response_format and validates what the model sends back.

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from shelver.errors import ExtractionSchemaError

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)

BOOKS_JSON_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "books": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "title": {"type": "string"},
                    "author": {"type": "string"},
                },
                "required": ["title", "author"],
                "additionalProperties": False,
            },
        }
    },
    "required": ["books"],
    "additionalProperties": False,
}

BOOKS_RESPONSE_FORMAT: dict[str, Any] = {
    "type": "json_schema",
    "json_schema": {"name": "books_list", "strict": True, "schema": BOOKS_JSON_SCHEMA},
}


@dataclass
class ExtractedBook:
    """One (title, author) pair read by the model."""

    title: str
    author: str

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "author": self.author}


def strip_json_fences(text: str) -> str:
    """Return the body of a ```json fenced block, or the text unchanged."""
    match = _FENCE_RE.search(text)
    return match.group(1).strip() if match else text.strip()


def parse_books_response(text: str) -> list[ExtractedBook]:
    """Validate a model answer and return its books.

    Accepts {"books": [...]} or a bare list. Entries that are not objects
    are dropped with a warning; missing fields become empty strings.

    Raises:
        ExtractionSchemaError: If the answer is not JSON or has the wrong shape.
    """
    body = strip_json_fences(text or "")
    try:
        data = json.loads(body)
    except json.JSONDecodeError as exc:
        raise ExtractionSchemaError("Model answer is not valid JSON", detail=body[:500]) from exc

    if isinstance(data, dict):
        if "books" not in data:
            raise ExtractionSchemaError("Model answer has no 'books' key", detail=body[:500])
        data = data["books"]
    if not isinstance(data, list):
        raise ExtractionSchemaError("'books' is not a list", detail=body[:500])

    books = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            logger.warning("Dropping malformed extraction entry %d: %r", index, entry)
            continue
        books.append(
            ExtractedBook(
                title=str(entry.get("title") or "").strip(),
                author=str(entry.get("author") or "").strip(),
            )
        )
    return books
