# ABOUTME: Finds the catalog book a (title, author) pair refers to, or creates it.
# ABOUTME: Tiers: exact fingerprint, normalized substring, raw substring; fuzzy tiers are scored.

import logging
from dataclasses import dataclass

from shelver.db.catalog import CatalogStore, DuplicateBookError
from shelver.db.hashing import fingerprint
from shelver.db.mapping import CanonicalBook
from shelver.metadata.normalizer import normalize_text
from shelver.metadata.scoring import CATALOG_MIN_SCORE, score_pair

logger = logging.getLogger(__name__)

METHOD_HASH = "hash"
METHOD_NORMALIZED_LIKE = "normalized_like"
METHOD_RAW_LIKE = "raw_like"
METHOD_NONE = "none"
METHOD_INSERTED = "inserted"


@dataclass
class MatchResult:
    """Outcome of find_best_match: the book (if any) and the tier that found it."""

    book: CanonicalBook | None
    method: str


@dataclass
class EnsureResult:
    """Outcome of ensure: the catalog row to use and whether it was just created."""

    book_id: int
    created: bool
    method: str


class Matcher:
    """Resolves (title, author) pairs against the canonical catalog."""

    def __init__(self, catalog: CatalogStore, *, min_score: float = CATALOG_MIN_SCORE) -> None:
        self._catalog = catalog
        self._min_score = min_score

    def find_best_match(self, title: str, author: str) -> MatchResult:
        """Search the catalog tier by tier, stopping at the first hit.

        1. Exact fingerprint.
        2. Normalized title AND author contain the normalized query; best
           similarity must reach min_score.
        3. Same against the raw title/author columns.
        """
        book = self._catalog.get_by_fingerprint(fingerprint(title, author))
        if book is not None:
            return MatchResult(book=book, method=METHOD_HASH)

        nt = normalize_text(title)
        na = normalize_text(author)

        picked = self._pick_best(self._catalog.search_normalized(nt, na), nt, na, normalized=True)
        if picked is not None:
            return MatchResult(book=picked, method=METHOD_NORMALIZED_LIKE)

        raw_title = str(title or "").strip()
        raw_author = str(author or "").strip()
        picked = self._pick_best(
            self._catalog.search_raw(raw_title, raw_author), nt, na, normalized=False
        )
        if picked is not None:
            return MatchResult(book=picked, method=METHOD_RAW_LIKE)

        return MatchResult(book=None, method=METHOD_NONE)

    def ensure(
        self,
        title: str,
        author: str,
        *,
        year: int | None = None,
        isbn: str | None = None,
    ) -> EnsureResult:
        """Return the matching catalog book, inserting one on a miss.

        When a concurrent caller inserts the same work first, the unique
        fingerprint rejects our insert and the winner's row is returned.
        """
        match = self.find_best_match(title, author)
        if match.book is not None:
            return EnsureResult(book_id=match.book.id, created=False, method=match.method)

        try:
            book_id = self._catalog.insert_book(title, author, year=year, isbn=isbn)
        except DuplicateBookError:
            # Lost the insert race; the other writer's row is the canonical one.
            fp = fingerprint(title, author)
            winner = self._catalog.get_by_fingerprint(fp)
            if winner is None:
                raise
            logger.warning(
                "ensure: concurrent insert for hash %s, using book %d", fp[:12], winner.id
            )
            return EnsureResult(book_id=winner.id, created=False, method=METHOD_HASH)

        return EnsureResult(book_id=book_id, created=True, method=METHOD_INSERTED)

    def _pick_best(
        self, books: list[CanonicalBook], nt: str, na: str, *, normalized: bool
    ) -> CanonicalBook | None:
        """Highest-scoring book at or above min_score; ties keep the first row."""
        best: CanonicalBook | None = None
        best_score = -1.0
        for book in books:
            if normalized:
                ct, ca = book.normalized_title, book.normalized_author
            else:
                ct, ca = book.title, book.author
            score = score_pair(nt, na, normalize_text(ct), normalize_text(ca))
            if score > best_score:
                best_score = score
                best = book
        if best is None or best_score < self._min_score:
            return None
        return best
