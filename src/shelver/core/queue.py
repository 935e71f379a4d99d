# ABOUTME: The confirmation queue: staging of extracted candidates before they join the catalog.
# ABOUTME: Enqueue with shelf and queue dedup, inline edits with deterministic merges, discard.

import logging
import re
import sqlite3
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from rapidfuzz.distance import Levenshtein

from shelver.core.matcher import Matcher
from shelver.db.catalog import CatalogStore
from shelver.db.hashing import fingerprint
from shelver.db.mapping import CanonicalBook, PendingCandidate
from shelver.db.queue import (
    STATUS_DISCARDED,
    STATUS_PENDING,
    DuplicatePendingError,
    PendingStore,
)
from shelver.errors import (
    InvalidInputError,
    RowAccessError,
    RowNotEditableError,
    RowNotFoundError,
)
from shelver.metadata.normalizer import normalize_key, normalize_text
from shelver.metadata.resolver import MetadataResolver

logger = logging.getLogger(__name__)

INPUT_TYPES = ("text", "audio", "image")
EDITABLE_FIELDS = ("title", "author", "year", "isbn")

# Results requested per provider when enriching a queued candidate.
_ENRICH_LIMIT = 3
# Relative edit distance at or below which a pending row counts as already owned.
IN_SHELF_THRESHOLD = 0.25

_NON_DIGIT_RE = re.compile(r"[^0-9]")
_NON_ISBN_RE = re.compile(r"[^0-9Xx\-]")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass
class Candidate:
    """A (title, author) pair offered to the queue, with optional enrichment."""

    title: str
    author: str
    year: int | None = None
    isbn: str | None = None
    source: str | None = None
    score: float | None = None
    match_method: str | None = None
    matched_book_id: int | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Candidate":
        """Build a Candidate from a loosely-typed dict (extraction output, JSON)."""
        return cls(
            title=str(data.get("title") or ""),
            author=str(data.get("author") or ""),
            year=parse_year(data.get("year")),
            isbn=parse_isbn(data.get("isbn")),
            source=data.get("source"),
            score=data.get("score"),
            match_method=data.get("match_method") or data.get("method"),
            matched_book_id=data.get("matched_book_id"),
        )


@dataclass
class QueueMeta:
    """Per-request context stored alongside every queued row."""

    input_type: str = "text"
    source_note: str | None = None
    raw_response: str | None = None


@dataclass
class EnqueueResult:
    """Summary of an enqueue call."""

    queued: int = 0
    skipped: int = 0
    items: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class UpdateResult:
    """Outcome of an inline edit.

    Attributes:
        row: The surviving row after the edit.
        merged_into: Set when the edited row was folded into an older duplicate.
        removed_id: ID of the row deleted by a merge, if any.
    """

    row: PendingCandidate
    merged_into: int | None = None
    removed_id: int | None = None


@dataclass
class PendingView:
    """A pending row plus whether the user already owns the book."""

    row: PendingCandidate
    in_shelf: bool = False
    shelf_book_id: int | None = None


def parse_year(value: Any) -> int | None:
    """Keep only digits; zero, negative, or empty becomes None."""
    if value is None:
        return None
    digits = _NON_DIGIT_RE.sub("", str(value))
    if not digits:
        return None
    year = int(digits)
    return year if year > 0 else None


def parse_isbn(value: Any) -> str | None:
    """Strip everything but digits, X, and hyphens; empty becomes None."""
    if value is None:
        return None
    cleaned = _NON_ISBN_RE.sub("", str(value))
    return cleaned or None


def _clean_text(value: Any) -> str:
    return _WHITESPACE_RE.sub(" ", str(value or "")).strip()


def _relative_distance(a: str, b: str) -> float:
    """Levenshtein distance scaled by the longer string (0 = identical)."""
    return Levenshtein.distance(a, b) / max(1, len(a), len(b))


class ConfirmationQueue:
    """Per-user staging area for candidates awaiting confirmation.

    Holds at most one pending row per (user, fingerprint) and never queues
    a book the user already owns. All coordination with concurrent requests
    goes through the table's unique index; network lookups happen before
    any write transaction is opened.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        *,
        matcher: Matcher | None = None,
        resolver: MetadataResolver | None = None,
    ) -> None:
        self._conn = conn
        self._catalog = CatalogStore(conn)
        self._pending = PendingStore(conn)
        self._matcher = matcher or Matcher(self._catalog)
        self._resolver = resolver

    def enqueue(
        self,
        user_id: int,
        candidates: Iterable[Candidate | Mapping[str, Any]],
        meta: QueueMeta | None = None,
    ) -> EnqueueResult:
        """Queue novel candidates for a user.

        For each candidate in order: blank title/author is skipped; a
        fingerprint seen earlier in the batch is skipped; a book the user
        owns is reported with in_shelf=True and skipped; an existing pending
        row is skipped silently; anything else is inserted. Losing an insert
        race to a concurrent request counts as a skip.

        Raises:
            InvalidInputError: For a bad user id or input type.
            CatalogNotReadyError: If the catalog tables are missing.
        """
        meta = meta or QueueMeta()
        self._validate_user(user_id)
        if meta.input_type not in INPUT_TYPES:
            raise InvalidInputError(f"Unknown input type: {meta.input_type!r}")
        self._catalog.check_ready()

        result = EnqueueResult()
        seen: set[str] = set()

        for raw in candidates:
            candidate = raw if isinstance(raw, Candidate) else Candidate.from_mapping(raw)
            title = _clean_text(candidate.title)
            author = _clean_text(candidate.author)
            if not title or not author:
                result.skipped += 1
                continue

            fp = fingerprint(title, author)
            if fp in seen:
                result.skipped += 1
                continue
            seen.add(fp)

            owned = self._catalog.find_owned(user_id, fp)
            if owned is not None:
                result.skipped += 1
                result.items.append(
                    {"title": title, "author": author, "year": owned.year, "in_shelf": True}
                )
                continue

            if self._pending.find_pending(user_id, fp) is not None:
                result.skipped += 1
                continue

            fields = self._prepare_fields(title, author, candidate)
            try:
                with self._conn:
                    self._pending.insert(
                        user_id,
                        meta.input_type,
                        title,
                        author,
                        source_note=meta.source_note,
                        raw_response=meta.raw_response,
                        **fields,
                    )
            except DuplicatePendingError:
                logger.warning(
                    "enqueue: concurrent insert for user %d hash %s, skipping", user_id, fp[:12]
                )
                result.skipped += 1
                continue

            result.queued += 1
            result.items.append(
                {"title": title, "author": author, "year": candidate.year, "in_shelf": False}
            )

        logger.info(
            "enqueue: user %d queued=%d skipped=%d", user_id, result.queued, result.skipped
        )
        return result

    def preflight(self, user_id: int) -> None:
        """Fail fast on a bad user id or a missing catalog, before any upstream call."""
        self._validate_user(user_id)
        self._catalog.check_ready()

    def update_field(self, user_id: int, row_id: int, field_name: str, value: Any) -> UpdateResult:
        """Apply an inline edit to one of the user's pending rows.

        `year` keeps digits only; `isbn` keeps digits, X, and hyphens. A
        title or author edit re-derives the fingerprint, refreshes the
        catalog match and external enrichment, and merges with any other
        pending row of the user that now shares the fingerprint: the lower
        row ID survives and carries the edited values.

        Raises:
            InvalidInputError: For an unknown field or a blank title/author.
            RowNotFoundError, RowAccessError, RowNotEditableError.
        """
        if field_name not in EDITABLE_FIELDS:
            raise InvalidInputError(f"Field {field_name!r} cannot be edited")
        row = self._load_editable(user_id, row_id)

        if field_name == "year":
            with self._conn:
                self._pending.update_fields(row_id, {"year": parse_year(value)})
            return UpdateResult(row=self._reload(row_id))

        if field_name == "isbn":
            with self._conn:
                self._pending.update_fields(row_id, {"external_isbn": parse_isbn(value)})
            return UpdateResult(row=self._reload(row_id))

        text = _clean_text(value)
        if not text:
            raise InvalidInputError(f"{field_name} cannot be empty")
        title = text if field_name == "title" else row.title
        author = text if field_name == "author" else row.author

        self._catalog.check_ready()
        fields = self._identity_fields(title, author, row)
        try:
            return self._apply_identity_edit(user_id, row, fields)
        except DuplicatePendingError:
            # A concurrent request created the colliding row after our lookup.
            logger.warning("update_field: collision on row %d, retrying merge", row_id)
            return self._apply_identity_edit(user_id, row, fields)

    def list_pending(self, user_id: int, *, limit: int = 200, offset: int = 0) -> list[PendingView]:
        """The user's pending rows, newest first, flagged when already owned.

        A row is in-shelf when its fingerprint matches an owned book, or
        when the stopword-free sorted key of title + author is within a
        relative edit distance of 0.25 of an owned book's key.
        """
        self._validate_user(user_id)
        self._catalog.check_ready()
        rows = self._pending.list_for_user(user_id, limit=limit, offset=offset)
        if not rows:
            return []

        owned = self._catalog.list_owned(user_id)
        by_hash: dict[str, CanonicalBook] = {book.fingerprint: book for book in owned}
        keyed = [(normalize_key(f"{b.title} {b.author}"), b) for b in owned]

        views = []
        for row in rows:
            hit = by_hash.get(row.fingerprint)
            if hit is None and keyed:
                key = normalize_key(f"{row.normalized_title} {row.normalized_author}")
                best_distance = 1.0
                for book_key, book in keyed:
                    distance = _relative_distance(key, book_key)
                    if distance < best_distance:
                        best_distance = distance
                        hit = book
                if best_distance > IN_SHELF_THRESHOLD:
                    hit = None
            views.append(
                PendingView(
                    row=row, in_shelf=hit is not None, shelf_book_id=hit.id if hit else None
                )
            )
        return views

    def discard(self, user_id: int, row_id: int) -> PendingCandidate:
        """Move a pending row to discarded, replacing any older discarded twin."""
        row = self._load_editable(user_id, row_id)
        with self._conn:
            self._pending.delete_with_status(user_id, row.fingerprint, STATUS_DISCARDED)
            self._pending.update_fields(row_id, {"status": STATUS_DISCARDED})
        logger.info("discard: user %d row %d", user_id, row_id)
        return self._reload(row_id)

    def _apply_identity_edit(
        self, user_id: int, row: PendingCandidate, fields: dict[str, Any]
    ) -> UpdateResult:
        fp = fields["title_author_hash"]
        with self._conn:
            twin = self._pending.find_pending(user_id, fp, exclude_id=row.id)
            if twin is None:
                self._pending.update_fields(row.id, fields)
                return UpdateResult(row=self._reload(row.id))

            keep_id = min(row.id, twin.id)
            drop_id = max(row.id, twin.id)
            self._pending.delete(drop_id)
            self._pending.update_fields(keep_id, fields)
            logger.info(
                "update_field: merged pending rows %d and %d for user %d, kept %d",
                row.id,
                twin.id,
                user_id,
                keep_id,
            )
            return UpdateResult(
                row=self._reload(keep_id),
                merged_into=keep_id if drop_id == row.id else None,
                removed_id=drop_id,
            )

    def _identity_fields(self, title: str, author: str, row: PendingCandidate) -> dict[str, Any]:
        """Columns to write for a title/author edit, including refreshed enrichment."""
        match = self._matcher.find_best_match(title, author)
        fields: dict[str, Any] = {
            "title": title,
            "author": author,
            "normalized_title": normalize_text(title),
            "normalized_author": normalize_text(author),
            "title_author_hash": fingerprint(title, author),
            "match_method": match.method,
            "matched_book_id": match.book.id if match.book else None,
        }
        if self._resolver is not None:
            best = self._resolver.search_best_match(title, author, _ENRICH_LIMIT)
            refreshed = {
                "external_isbn": (best.isbn if best else None) or row.external_isbn,
                "external_source": (best.source if best else None) or row.external_source,
                "external_score": best.score if best else row.external_score,
                "year": (best.year if best else None) or row.year,
            }
            # Columns with nothing to write keep whatever the surviving row holds.
            fields.update({k: v for k, v in refreshed.items() if v is not None})
        return fields

    def _prepare_fields(self, title: str, author: str, candidate: Candidate) -> dict[str, Any]:
        """Enrichment and match columns for a new pending row."""
        fields: dict[str, Any] = {
            "year": candidate.year,
            "external_isbn": candidate.isbn,
            "external_source": candidate.source,
            "external_score": candidate.score,
            "match_method": candidate.match_method,
            "matched_book_id": candidate.matched_book_id,
        }
        if candidate.match_method is None:
            match = self._matcher.find_best_match(title, author)
            fields["match_method"] = match.method
            fields["matched_book_id"] = match.book.id if match.book else None
        if self._resolver is not None and not candidate.isbn:
            best = self._resolver.search_best_match(title, author, _ENRICH_LIMIT)
            if best is not None:
                fields["external_isbn"] = best.isbn
                fields["external_source"] = best.source
                fields["external_score"] = best.score
                if fields["year"] is None:
                    fields["year"] = best.year
        return fields

    def _load_editable(self, user_id: int, row_id: int) -> PendingCandidate:
        row = self._pending.get(row_id)
        if row is None:
            raise RowNotFoundError(f"Pending row {row_id} not found")
        if row.user_id != user_id:
            raise RowAccessError(f"Row {row_id} does not belong to user {user_id}")
        if row.status != STATUS_PENDING:
            raise RowNotEditableError(f"Row {row_id} is {row.status}, not pending")
        return row

    def _reload(self, row_id: int) -> PendingCandidate:
        row = self._pending.get(row_id)
        if row is None:
            raise RowNotFoundError(f"Pending row {row_id} not found")
        return row

    @staticmethod
    def _validate_user(user_id: int) -> None:
        if not isinstance(user_id, int) or isinstance(user_id, bool) or user_id <= 0:
            raise InvalidInputError(f"Invalid user id: {user_id!r}")
