# ABOUTME: CRUD for the book_confirm table holding candidates awaiting confirmation.
# ABOUTME: At most one row per (user_id, status, title_author_hash) is enforced by a unique index.

import sqlite3
from typing import Any

from shelver.db.hashing import fingerprint
from shelver.db.mapping import PendingCandidate, row_to_pending
from shelver.metadata.normalizer import normalize_text

STATUS_PENDING = "pending"
STATUS_CONFIRMED = "confirmed"
STATUS_DISCARDED = "discarded"

# Columns update_fields() is allowed to touch.
_UPDATABLE_COLUMNS = frozenset(
    {
        "title",
        "author",
        "normalized_title",
        "normalized_author",
        "title_author_hash",
        "year",
        "external_isbn",
        "external_source",
        "external_score",
        "match_method",
        "matched_book_id",
        "status",
    }
)


class DuplicatePendingError(Exception):
    """Raised when a row with the same (user, status, fingerprint) already exists."""


class PendingStore:
    """Typed access to the confirmation queue table.

    Methods never commit; callers own the transaction.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def get(self, row_id: int) -> PendingCandidate | None:
        """Retrieve a queue row by ID regardless of owner or status."""
        cursor = self._conn.execute("SELECT * FROM book_confirm WHERE id = ?", (row_id,))
        row = cursor.fetchone()
        return row_to_pending(row) if row else None

    def find_pending(
        self, user_id: int, fp: str, *, exclude_id: int | None = None
    ) -> PendingCandidate | None:
        """Return the user's pending row with this fingerprint, optionally skipping one ID."""
        sql = (
            "SELECT * FROM book_confirm "
            "WHERE user_id = ? AND status = ? AND title_author_hash = ?"
        )
        params: list[Any] = [user_id, STATUS_PENDING, fp]
        if exclude_id is not None:
            sql += " AND id != ?"
            params.append(exclude_id)
        cursor = self._conn.execute(sql + " ORDER BY id LIMIT 1", params)
        row = cursor.fetchone()
        return row_to_pending(row) if row else None

    def insert(
        self,
        user_id: int,
        input_type: str,
        title: str,
        author: str,
        *,
        source_note: str | None = None,
        year: int | None = None,
        external_isbn: str | None = None,
        external_source: str | None = None,
        external_score: float | None = None,
        match_method: str | None = None,
        matched_book_id: int | None = None,
        raw_response: str | None = None,
    ) -> int:
        """Insert a pending row, deriving its normalized fields and fingerprint.

        Returns:
            The row ID of the inserted row.

        Raises:
            DuplicatePendingError: If the user already has a pending row with
                the same fingerprint.
        """
        fp = fingerprint(title, author)
        try:
            cursor = self._conn.execute(
                "INSERT INTO book_confirm (user_id, input_type, source_note, title, author, "
                "normalized_title, normalized_author, title_author_hash, year, external_isbn, "
                "external_source, external_score, match_method, matched_book_id, status, "
                "raw_response) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    user_id,
                    input_type,
                    source_note,
                    title,
                    author,
                    normalize_text(title),
                    normalize_text(author),
                    fp,
                    year,
                    external_isbn,
                    external_source,
                    external_score,
                    match_method,
                    matched_book_id,
                    STATUS_PENDING,
                    raw_response,
                ),
            )
        except sqlite3.IntegrityError as exc:
            if "UNIQUE constraint failed: book_confirm" in str(exc):
                raise DuplicatePendingError(
                    f"Pending row for user {user_id} with hash {fp} already exists"
                ) from exc
            raise
        return cursor.lastrowid  # type: ignore[return-value]

    def update_fields(self, row_id: int, fields: dict[str, Any]) -> None:
        """Update the given columns of one row and bump updated_at.

        Raises:
            ValueError: If a column is not updatable.
            DuplicatePendingError: If the change collides with another row.
        """
        if not fields:
            return
        unknown = set(fields) - _UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update columns: {', '.join(sorted(unknown))}")

        assignments = ", ".join(f"{column} = ?" for column in fields)
        try:
            self._conn.execute(
                f"UPDATE book_confirm SET {assignments}, "
                "updated_at = strftime('%Y-%m-%dT%H:%M:%S', 'now') WHERE id = ?",
                [*fields.values(), row_id],
            )
        except sqlite3.IntegrityError as exc:
            if "UNIQUE constraint failed: book_confirm" in str(exc):
                raise DuplicatePendingError(f"Update of row {row_id} collides") from exc
            raise

    def delete(self, row_id: int) -> None:
        self._conn.execute("DELETE FROM book_confirm WHERE id = ?", (row_id,))

    def delete_pending_for(self, user_id: int, fp: str) -> int:
        """Delete every pending row of the user with this fingerprint. Returns the count."""
        return self.delete_with_status(user_id, fp, STATUS_PENDING)

    def delete_with_status(self, user_id: int, fp: str, status: str) -> int:
        cursor = self._conn.execute(
            "DELETE FROM book_confirm "
            "WHERE user_id = ? AND status = ? AND title_author_hash = ?",
            (user_id, status, fp),
        )
        return cursor.rowcount

    def list_for_user(
        self,
        user_id: int,
        *,
        status: str = STATUS_PENDING,
        limit: int = 200,
        offset: int = 0,
    ) -> list[PendingCandidate]:
        """Rows of one user and status, newest first."""
        cursor = self._conn.execute(
            "SELECT * FROM book_confirm WHERE user_id = ? AND status = ? "
            "ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?",
            (user_id, status, limit, offset),
        )
        return [row_to_pending(row) for row in cursor.fetchall()]

    def list_oldest_pending(self, user_id: int, limit: int) -> list[PendingCandidate]:
        """Pending rows of one user in insertion order."""
        cursor = self._conn.execute(
            "SELECT * FROM book_confirm WHERE user_id = ? AND status = ? "
            "ORDER BY id ASC LIMIT ?",
            (user_id, STATUS_PENDING, limit),
        )
        return [row_to_pending(row) for row in cursor.fetchall()]

    def count_pending(self, user_id: int) -> int:
        cursor = self._conn.execute(
            "SELECT COUNT(*) FROM book_confirm WHERE user_id = ? AND status = ?",
            (user_id, STATUS_PENDING),
        )
        return cursor.fetchone()[0]
