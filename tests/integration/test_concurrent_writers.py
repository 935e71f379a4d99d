# ABOUTME: Two connections to one database file racing on the unique fingerprints.
# ABOUTME: Interleaves the steps deterministically to hit each recovery path.

import sqlite3
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest

from shelver.core.committer import ConfirmationCommitter
from shelver.core.matcher import METHOD_NONE, Matcher, MatchResult
from shelver.core.queue import ConfirmationQueue
from shelver.db.catalog import CatalogStore
from shelver.db.connection import open_store
from shelver.db.hashing import fingerprint
from shelver.db.queue import PendingStore


@pytest.fixture
def two_conns(db_path: Path) -> Iterator[tuple[sqlite3.Connection, sqlite3.Connection]]:
    first = open_store(db_path)
    second = open_store(db_path)
    yield first, second
    first.close()
    second.close()


class TestConcurrentWriters:
    """Races between two writers on the same user or book."""

    def test_enqueue_race_counts_as_skip(
        self, two_conns: tuple[sqlite3.Connection, sqlite3.Connection]
    ) -> None:
        """The loser of a simultaneous enqueue skips instead of duplicating."""
        first, second = two_conns
        late = ConfirmationQueue(second)
        item = [{"title": "Dune", "author": "Frank Herbert"}]

        # The late writer's dedup lookup ran before the early writer's commit.
        with patch.object(late._pending, "find_pending", return_value=None):
            ConfirmationQueue(first).enqueue(1, item)
            result = late.enqueue(1, item)

        assert result.queued == 0
        assert result.skipped == 1
        assert PendingStore(first).count_pending(1) == 1

    def test_confirm_race_shares_one_book(
        self, two_conns: tuple[sqlite3.Connection, sqlite3.Connection]
    ) -> None:
        """Two users confirming the same new book end up linked to one catalog row."""
        first, second = two_conns
        item = [{"title": "Dune", "author": "Frank Herbert", "year": 1965}]
        late_matcher = Matcher(CatalogStore(second))

        with patch.object(
            late_matcher, "find_best_match", return_value=MatchResult(None, METHOD_NONE)
        ):
            early = ConfirmationCommitter(first).confirm(1, item)
            late = ConfirmationCommitter(second, matcher=late_matcher).confirm(2, item)

        assert early.details[0].created is True
        assert late.details[0].ok is True
        assert late.details[0].created is False
        assert late.details[0].book_id == early.details[0].book_id

        catalog = CatalogStore(first)
        fp = fingerprint("Dune", "Frank Herbert")
        assert catalog.find_owned(1, fp) is not None
        assert catalog.find_owned(2, fp) is not None
        count = first.execute("SELECT COUNT(*) FROM books").fetchone()[0]
        assert count == 1

    def test_writes_visible_across_connections(
        self, two_conns: tuple[sqlite3.Connection, sqlite3.Connection]
    ) -> None:
        first, second = two_conns
        ConfirmationQueue(first).enqueue(1, [{"title": "Emma", "author": "Jane Austen"}])
        result = ConfirmationQueue(second).enqueue(1, [{"title": "Emma", "author": "Jane Austen"}])
        assert result.skipped == 1
