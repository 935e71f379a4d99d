# ABOUTME: Unit tests for the tiered catalog matcher and get-or-create.
# ABOUTME: Exercises each tier, the score floor, and losing a concurrent insert race.

import sqlite3
from pathlib import Path
from unittest.mock import patch

from shelver.core.matcher import (
    METHOD_HASH,
    METHOD_INSERTED,
    METHOD_NONE,
    METHOD_NORMALIZED_LIKE,
    METHOD_RAW_LIKE,
    Matcher,
    MatchResult,
)
from shelver.db.catalog import CatalogStore
from shelver.db.connection import open_store


class TestFindBestMatch:
    """Tests for Matcher.find_best_match."""

    def test_hash_tier(self, catalog: CatalogStore) -> None:
        book_id = catalog.insert_book("The Hobbit", "J.R.R. Tolkien")
        result = Matcher(catalog).find_best_match("the hobbit", "j.r.r. tolkien")
        assert result.method == METHOD_HASH
        assert result.book is not None
        assert result.book.id == book_id

    def test_normalized_tier(self, catalog: CatalogStore) -> None:
        """A longer catalog title containing the query scores above the floor."""
        book_id = catalog.insert_book("The Hobbit (Illustrated)", "J.R.R. Tolkien")
        result = Matcher(catalog).find_best_match("The Hobbit", "J.R.R. Tolkien")
        assert result.method == METHOD_NORMALIZED_LIKE
        assert result.book is not None
        assert result.book.id == book_id

    def test_best_scoring_candidate_wins(self, catalog: CatalogStore) -> None:
        catalog.insert_book("Dune Messiah and Other Stories of Arrakis", "Frank Herbert")
        closer = catalog.insert_book("Dune (Special)", "Frank Herbert")
        result = Matcher(catalog).find_best_match("Dune", "Frank Herbert")
        assert result.book is not None
        assert result.book.id == closer

    def test_below_floor_is_no_match(self, catalog: CatalogStore) -> None:
        """Substring hits that score under the floor are rejected."""
        catalog.insert_book("The Hobbit: or There and Back Again", "J.R.R. Tolkien")
        result = Matcher(catalog).find_best_match("The Hobbit", "Tolkien")
        assert result.method == METHOD_NONE
        assert result.book is None

    def test_floor_is_configurable(self, catalog: CatalogStore) -> None:
        catalog.insert_book("The Hobbit: or There and Back Again", "J.R.R. Tolkien")
        result = Matcher(catalog, min_score=50).find_best_match("The Hobbit", "Tolkien")
        assert result.method == METHOD_NORMALIZED_LIKE

    def test_raw_tier(self, conn: sqlite3.Connection, catalog: CatalogStore) -> None:
        """Rows whose normalized columns are stale are still found by raw title/author."""
        conn.execute(
            "INSERT INTO books (title, author, normalized_title, normalized_author, "
            "title_author_hash) VALUES (?, ?, ?, ?, ?)",
            ("Dune", "Frank Herbert", "legacy", "legacy", "legacy-hash"),
        )
        result = Matcher(catalog).find_best_match("Dune", "Frank Herbert")
        assert result.method == METHOD_RAW_LIKE
        assert result.book is not None
        assert result.book.title == "Dune"

    def test_empty_catalog(self, catalog: CatalogStore) -> None:
        assert Matcher(catalog).find_best_match("Dune", "Frank Herbert") == MatchResult(
            book=None, method=METHOD_NONE
        )


class TestEnsure:
    """Tests for Matcher.ensure."""

    def test_inserts_on_miss(self, catalog: CatalogStore) -> None:
        result = Matcher(catalog).ensure("Dune", "Frank Herbert", year=1965, isbn="9780441013593")
        assert result.created is True
        assert result.method == METHOD_INSERTED
        book = catalog.get_by_id(result.book_id)
        assert book is not None
        assert book.year == 1965
        assert book.isbn == "9780441013593"

    def test_returns_existing(self, catalog: CatalogStore) -> None:
        matcher = Matcher(catalog)
        first = matcher.ensure("Dune", "Frank Herbert")
        second = matcher.ensure("DUNE", "frank herbert")
        assert second.created is False
        assert second.method == METHOD_HASH
        assert second.book_id == first.book_id

    def test_lost_race_returns_winner(self, db_path: Path) -> None:
        """If another writer inserts between our lookup and insert, we use its row."""
        winner_conn = open_store(db_path)
        loser_conn = open_store(db_path)
        try:
            loser = Matcher(CatalogStore(loser_conn))
            with patch.object(
                loser, "find_best_match", return_value=MatchResult(book=None, method=METHOD_NONE)
            ):
                with winner_conn:
                    winner_id = CatalogStore(winner_conn).insert_book("Dune", "Frank Herbert")
                result = loser.ensure("Dune", "Frank Herbert")
        finally:
            winner_conn.close()
            loser_conn.close()

        assert result.created is False
        assert result.method == METHOD_HASH
        assert result.book_id == winner_id
