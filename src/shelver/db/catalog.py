# ABOUTME: Query and insert operations on the collaborator-owned catalog tables.
# ABOUTME: Books are keyed by title_author_hash; ownership lives in user_books.

import logging
import sqlite3

from shelver.db.hashing import fingerprint
from shelver.db.mapping import CanonicalBook, row_to_book
from shelver.db.schema import CATALOG_TABLES
from shelver.errors import CatalogNotReadyError
from shelver.metadata.normalizer import normalize_text

logger = logging.getLogger(__name__)

# Upper bound on rows pulled by a substring tier before scoring.
SEARCH_LIMIT = 20


class DuplicateBookError(Exception):
    """Raised when inserting a book whose fingerprint already exists."""


def _like_pattern(value: str) -> str:
    """Wrap a value in % wildcards, escaping LIKE metacharacters."""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class CatalogStore:
    """Wraps a sqlite3 connection and provides typed access to books and user_books.

    Methods never commit; callers own the transaction.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def check_ready(self) -> None:
        """Verify the catalog tables exist.

        Raises:
            CatalogNotReadyError: Naming every missing table.
        """
        placeholders = ", ".join("?" for _ in CATALOG_TABLES)
        cursor = self._conn.execute(
            f"SELECT name FROM sqlite_master WHERE type='table' AND name IN ({placeholders})",
            CATALOG_TABLES,
        )
        present = {row["name"] for row in cursor.fetchall()}
        missing = [name for name in CATALOG_TABLES if name not in present]
        if missing:
            raise CatalogNotReadyError(missing)

    def get_by_id(self, book_id: int) -> CanonicalBook | None:
        """Retrieve a book by its row ID."""
        cursor = self._conn.execute("SELECT * FROM books WHERE id = ?", (book_id,))
        row = cursor.fetchone()
        return row_to_book(row) if row else None

    def get_by_fingerprint(self, fp: str) -> CanonicalBook | None:
        """Retrieve a book by its identity fingerprint."""
        cursor = self._conn.execute(
            "SELECT * FROM books WHERE title_author_hash = ? LIMIT 1", (fp,)
        )
        row = cursor.fetchone()
        return row_to_book(row) if row else None

    def search_normalized(
        self, normalized_title: str, normalized_author: str, limit: int = SEARCH_LIMIT
    ) -> list[CanonicalBook]:
        """Books whose normalized title AND author contain the given fragments."""
        cursor = self._conn.execute(
            "SELECT * FROM books "
            "WHERE normalized_title LIKE ? ESCAPE '\\' "
            "AND normalized_author LIKE ? ESCAPE '\\' "
            "LIMIT ?",
            (_like_pattern(normalized_title), _like_pattern(normalized_author), limit),
        )
        return [row_to_book(row) for row in cursor.fetchall()]

    def search_raw(self, title: str, author: str, limit: int = SEARCH_LIMIT) -> list[CanonicalBook]:
        """Books whose stored title AND author contain the given fragments."""
        cursor = self._conn.execute(
            "SELECT * FROM books "
            "WHERE title LIKE ? ESCAPE '\\' AND author LIKE ? ESCAPE '\\' "
            "LIMIT ?",
            (_like_pattern(title), _like_pattern(author), limit),
        )
        return [row_to_book(row) for row in cursor.fetchall()]

    def insert_book(
        self,
        title: str,
        author: str,
        *,
        year: int | None = None,
        isbn: str | None = None,
    ) -> int:
        """Insert a new catalog book with its normalized fields and fingerprint.

        Returns:
            The row ID of the inserted book.

        Raises:
            DuplicateBookError: If a book with the same fingerprint already exists.
        """
        fp = fingerprint(title, author)
        try:
            cursor = self._conn.execute(
                "INSERT INTO books "
                "(title, author, normalized_title, normalized_author, title_author_hash, "
                "year, isbn) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (title, author, normalize_text(title), normalize_text(author), fp, year, isbn),
            )
        except sqlite3.IntegrityError as exc:
            if "UNIQUE constraint failed: books.title_author_hash" in str(exc):
                raise DuplicateBookError(f"Book with hash {fp} already exists") from exc
            raise
        return cursor.lastrowid  # type: ignore[return-value]

    def set_year_if_missing(self, book_id: int, year: int) -> bool:
        """Fill in a book's year only when it has none. Returns True if updated."""
        cursor = self._conn.execute(
            "UPDATE books SET year = ?, date_modified = strftime('%Y-%m-%dT%H:%M:%S', 'now') "
            "WHERE id = ? AND (year IS NULL OR year = 0)",
            (year, book_id),
        )
        return cursor.rowcount > 0

    def set_isbn_if_missing(self, book_id: int, isbn: str) -> bool:
        """Fill in a book's ISBN only when it has none. Returns True if updated."""
        cursor = self._conn.execute(
            "UPDATE books SET isbn = ?, date_modified = strftime('%Y-%m-%dT%H:%M:%S', 'now') "
            "WHERE id = ? AND (isbn IS NULL OR isbn = '')",
            (isbn, book_id),
        )
        return cursor.rowcount > 0

    def update_identity(self, book_id: int, title: str, author: str) -> int:
        """Correct a book's title/author, re-deriving its fingerprint.

        If another book already carries the new fingerprint, the two are
        merged: ownership links move to the existing book and the edited row
        is deleted.

        Returns:
            The ID of the surviving book.

        Raises:
            KeyError: If book_id does not exist.
        """
        if self.get_by_id(book_id) is None:
            raise KeyError(f"Book {book_id} not found")

        fp = fingerprint(title, author)
        existing = self.get_by_fingerprint(fp)
        if existing is not None and existing.id != book_id:
            self._conn.execute(
                "INSERT OR IGNORE INTO user_books (user_id, book_id) "
                "SELECT user_id, ? FROM user_books WHERE book_id = ?",
                (existing.id, book_id),
            )
            self._conn.execute("DELETE FROM user_books WHERE book_id = ?", (book_id,))
            self._conn.execute("DELETE FROM books WHERE id = ?", (book_id,))
            logger.info("Merged book %d into %d after identity edit", book_id, existing.id)
            return existing.id

        self._conn.execute(
            "UPDATE books SET title = ?, author = ?, normalized_title = ?, "
            "normalized_author = ?, title_author_hash = ?, "
            "date_modified = strftime('%Y-%m-%dT%H:%M:%S', 'now') WHERE id = ?",
            (title, author, normalize_text(title), normalize_text(author), fp, book_id),
        )
        return book_id

    def link_user(self, user_id: int, book_id: int) -> bool:
        """Record that a user owns a book. Returns False if the link already existed."""
        cursor = self._conn.execute(
            "INSERT OR IGNORE INTO user_books (user_id, book_id) VALUES (?, ?)",
            (user_id, book_id),
        )
        return cursor.rowcount > 0

    def find_owned(self, user_id: int, fp: str) -> CanonicalBook | None:
        """Return the user's book with this fingerprint, if they own one."""
        cursor = self._conn.execute(
            "SELECT b.* FROM books b JOIN user_books ub ON ub.book_id = b.id "
            "WHERE ub.user_id = ? AND b.title_author_hash = ? LIMIT 1",
            (user_id, fp),
        )
        row = cursor.fetchone()
        return row_to_book(row) if row else None

    def list_owned(self, user_id: int) -> list[CanonicalBook]:
        """Return every book the user owns, ordered by title."""
        cursor = self._conn.execute(
            "SELECT b.* FROM books b JOIN user_books ub ON ub.book_id = b.id "
            "WHERE ub.user_id = ? ORDER BY b.title",
            (user_id,),
        )
        return [row_to_book(row) for row in cursor.fetchall()]
