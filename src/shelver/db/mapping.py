# ABOUTME: Dataclasses for catalog books and pending candidates, plus sqlite row converters.
# ABOUTME: Field names follow the table columns; the title_author_hash column maps to fingerprint.

from dataclasses import asdict, dataclass
from typing import Any


@dataclass
class CanonicalBook:
    """One distinct work in the catalog."""

    id: int
    title: str
    author: str
    normalized_title: str
    normalized_author: str
    fingerprint: str
    year: int | None = None
    isbn: str | None = None


@dataclass
class PendingCandidate:
    """A queued candidate awaiting user confirmation."""

    id: int
    user_id: int
    input_type: str
    title: str
    author: str
    normalized_title: str
    normalized_author: str
    fingerprint: str
    status: str
    source_note: str | None = None
    year: int | None = None
    external_isbn: str | None = None
    external_source: str | None = None
    external_score: float | None = None
    match_method: str | None = None
    matched_book_id: int | None = None
    raw_response: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def row_to_book(row: Any) -> CanonicalBook:
    """Convert a books row (dict-like) to a CanonicalBook."""
    return CanonicalBook(
        id=row["id"],
        title=row["title"],
        author=row["author"],
        normalized_title=row["normalized_title"],
        normalized_author=row["normalized_author"],
        fingerprint=row["title_author_hash"],
        year=row["year"],
        isbn=row["isbn"],
    )


def row_to_pending(row: Any) -> PendingCandidate:
    """Convert a book_confirm row (dict-like) to a PendingCandidate."""
    return PendingCandidate(
        id=row["id"],
        user_id=row["user_id"],
        input_type=row["input_type"],
        title=row["title"],
        author=row["author"],
        normalized_title=row["normalized_title"],
        normalized_author=row["normalized_author"],
        fingerprint=row["title_author_hash"],
        status=row["status"],
        source_note=row["source_note"],
        year=row["year"],
        external_isbn=row["external_isbn"],
        external_source=row["external_source"],
        external_score=row["external_score"],
        match_method=row["match_method"],
        matched_book_id=row["matched_book_id"],
        raw_response=row["raw_response"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
