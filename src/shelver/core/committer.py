# ABOUTME: Turns confirmed candidates into catalog books owned by the user.
# ABOUTME: Each item commits independently; one failure never aborts the rest of the batch.

import logging
import sqlite3
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from shelver.core.matcher import Matcher
from shelver.core.queue import parse_isbn, parse_year
from shelver.db.catalog import CatalogStore
from shelver.db.hashing import fingerprint
from shelver.db.queue import PendingStore
from shelver.errors import InvalidInputError

logger = logging.getLogger(__name__)

# Upper bound on rows processed by a confirm-all request.
CONFIRM_ALL_LIMIT = 500


@dataclass
class ConfirmDetail:
    """Outcome of one confirmed item."""

    title: str
    author: str
    ok: bool
    book_id: int | None = None
    created: bool = False
    method: str | None = None
    cleared: int = 0
    error: str | None = None


@dataclass
class ConfirmResult:
    """Summary of a confirm operation."""

    confirmed: int = 0
    errors: int = 0
    details: list[ConfirmDetail] = field(default_factory=list)


class ConfirmationCommitter:
    """Adds confirmed candidates to the catalog and retires their queue rows.

    Per item: get-or-create the catalog book through the Matcher, backfill a
    missing year, link the user (idempotent), and delete every pending row
    of the user with the item's fingerprint, all in one transaction.
    """

    def __init__(self, conn: sqlite3.Connection, *, matcher: Matcher | None = None) -> None:
        self._conn = conn
        self._catalog = CatalogStore(conn)
        self._pending = PendingStore(conn)
        self._matcher = matcher or Matcher(self._catalog)

    def confirm(self, user_id: int, items: Iterable[Mapping[str, Any]]) -> ConfirmResult:
        """Confirm a batch of {title, author, year?, isbn?} items for a user.

        Raises:
            InvalidInputError: For a bad user id.
            CatalogNotReadyError: If the catalog tables are missing.
        """
        if not isinstance(user_id, int) or isinstance(user_id, bool) or user_id <= 0:
            raise InvalidInputError(f"Invalid user id: {user_id!r}")
        self._catalog.check_ready()

        result = ConfirmResult()
        for item in items:
            detail = self._confirm_one(user_id, item)
            result.details.append(detail)
            if detail.ok:
                result.confirmed += 1
            else:
                result.errors += 1

        logger.info(
            "confirm: user %d confirmed=%d errors=%d", user_id, result.confirmed, result.errors
        )
        return result

    def confirm_all(self, user_id: int, *, limit: int = CONFIRM_ALL_LIMIT) -> ConfirmResult:
        """Confirm the user's pending rows, oldest first, up to `limit`."""
        if not isinstance(user_id, int) or isinstance(user_id, bool) or user_id <= 0:
            raise InvalidInputError(f"Invalid user id: {user_id!r}")
        self._catalog.check_ready()
        rows = self._pending.list_oldest_pending(user_id, limit)
        items = [
            {"title": row.title, "author": row.author, "year": row.year, "isbn": row.external_isbn}
            for row in rows
        ]
        return self.confirm(user_id, items)

    def _confirm_one(self, user_id: int, item: object) -> ConfirmDetail:
        if not isinstance(item, Mapping):
            return ConfirmDetail(
                title="", author="", ok=False, error=f"Malformed item: {type(item).__name__}"
            )
        title = str(item.get("title") or "").strip()
        author = str(item.get("author") or "").strip()
        detail = ConfirmDetail(title=title, author=author, ok=False)
        if not title or not author:
            detail.error = "title and author are required"
            return detail

        year = parse_year(item.get("year"))
        isbn = parse_isbn(item.get("isbn"))
        try:
            with self._conn:
                ensured = self._matcher.ensure(title, author, year=year, isbn=isbn)
                if not ensured.created:
                    if year is not None:
                        self._catalog.set_year_if_missing(ensured.book_id, year)
                    if isbn is not None:
                        self._catalog.set_isbn_if_missing(ensured.book_id, isbn)
                self._catalog.link_user(user_id, ensured.book_id)
                detail.cleared = self._pending.delete_pending_for(
                    user_id, fingerprint(title, author)
                )
        except Exception as exc:
            logger.exception("confirm: user %d item %r failed", user_id, title)
            detail.error = str(exc)
            return detail

        detail.ok = True
        detail.book_id = ensured.book_id
        detail.created = ensured.created
        detail.method = ensured.method
        return detail
