# ABOUTME: Unit tests for PendingStore CRUD on the book_confirm table.
# ABOUTME: Covers the per-user unique fingerprint, column whitelisting, and ordering.

import sqlite3

import pytest

from shelver.db.hashing import fingerprint
from shelver.db.queue import (
    STATUS_DISCARDED,
    STATUS_PENDING,
    DuplicatePendingError,
    PendingStore,
)


class TestInsert:
    """Tests for PendingStore.insert."""

    def test_insert_derives_fields(self, pending_store: PendingStore) -> None:
        row_id = pending_store.insert(
            7, "text", "Cien años de soledad", "García Márquez", year=1967, source_note="text"
        )
        row = pending_store.get(row_id)

        assert row is not None
        assert row.user_id == 7
        assert row.status == STATUS_PENDING
        assert row.normalized_title == "cien anos de soledad"
        assert row.fingerprint == fingerprint("Cien años de soledad", "García Márquez")
        assert row.year == 1967
        assert row.created_at is not None

    def test_duplicate_pending_rejected(self, pending_store: PendingStore) -> None:
        pending_store.insert(1, "text", "Dune", "Frank Herbert")
        with pytest.raises(DuplicatePendingError):
            pending_store.insert(1, "audio", "DUNE", "frank herbert")

    def test_same_book_other_user_allowed(self, pending_store: PendingStore) -> None:
        pending_store.insert(1, "text", "Dune", "Frank Herbert")
        pending_store.insert(2, "text", "Dune", "Frank Herbert")
        assert pending_store.count_pending(1) == 1
        assert pending_store.count_pending(2) == 1

    def test_bad_input_type_is_not_a_duplicate(self, pending_store: PendingStore) -> None:
        """CHECK constraint failures surface as IntegrityError, not as duplicates."""
        with pytest.raises(sqlite3.IntegrityError):
            pending_store.insert(1, "video", "Dune", "Frank Herbert")


class TestFindAndUpdate:
    """Tests for find_pending and update_fields."""

    def test_find_pending_with_exclusion(self, pending_store: PendingStore) -> None:
        row_id = pending_store.insert(1, "text", "Dune", "Frank Herbert")
        fp = fingerprint("Dune", "Frank Herbert")
        assert pending_store.find_pending(1, fp).id == row_id  # type: ignore[union-attr]
        assert pending_store.find_pending(1, fp, exclude_id=row_id) is None
        assert pending_store.find_pending(2, fp) is None

    def test_update_fields(self, pending_store: PendingStore) -> None:
        row_id = pending_store.insert(1, "text", "Dune", "Frank Herbert")
        pending_store.update_fields(row_id, {"year": 1965, "external_isbn": "9780441013593"})
        row = pending_store.get(row_id)
        assert row is not None
        assert row.year == 1965
        assert row.external_isbn == "9780441013593"

    def test_update_rejects_unknown_columns(self, pending_store: PendingStore) -> None:
        row_id = pending_store.insert(1, "text", "Dune", "Frank Herbert")
        with pytest.raises(ValueError, match="user_id"):
            pending_store.update_fields(row_id, {"user_id": 2})

    def test_update_collision(self, pending_store: PendingStore) -> None:
        pending_store.insert(1, "text", "Dune", "Frank Herbert")
        other = pending_store.insert(1, "text", "Emma", "Jane Austen")
        with pytest.raises(DuplicatePendingError):
            pending_store.update_fields(
                other, {"title_author_hash": fingerprint("Dune", "Frank Herbert")}
            )


class TestDeleteAndList:
    """Tests for deletion and listing."""

    def test_delete_pending_for(self, pending_store: PendingStore) -> None:
        pending_store.insert(1, "text", "Dune", "Frank Herbert")
        pending_store.insert(2, "text", "Dune", "Frank Herbert")
        removed = pending_store.delete_pending_for(1, fingerprint("Dune", "Frank Herbert"))
        assert removed == 1
        assert pending_store.count_pending(1) == 0
        assert pending_store.count_pending(2) == 1

    def test_status_scoped_delete(self, pending_store: PendingStore) -> None:
        row_id = pending_store.insert(1, "text", "Dune", "Frank Herbert")
        pending_store.update_fields(row_id, {"status": STATUS_DISCARDED})
        fp = fingerprint("Dune", "Frank Herbert")
        assert pending_store.delete_pending_for(1, fp) == 0
        assert pending_store.delete_with_status(1, fp, STATUS_DISCARDED) == 1
        assert pending_store.get(row_id) is None

    def test_list_newest_first(self, pending_store: PendingStore) -> None:
        first = pending_store.insert(1, "text", "Dune", "Frank Herbert")
        second = pending_store.insert(1, "text", "Emma", "Jane Austen")
        third = pending_store.insert(1, "text", "Beloved", "Toni Morrison")

        ids = [row.id for row in pending_store.list_for_user(1)]
        assert ids == [third, second, first]
        assert [row.id for row in pending_store.list_for_user(1, limit=1, offset=1)] == [second]

    def test_list_by_status(self, pending_store: PendingStore) -> None:
        row_id = pending_store.insert(1, "text", "Dune", "Frank Herbert")
        pending_store.update_fields(row_id, {"status": STATUS_DISCARDED})
        assert pending_store.list_for_user(1) == []
        assert [r.id for r in pending_store.list_for_user(1, status=STATUS_DISCARDED)] == [row_id]

    def test_list_oldest_pending(self, pending_store: PendingStore) -> None:
        first = pending_store.insert(1, "text", "Dune", "Frank Herbert")
        second = pending_store.insert(1, "text", "Emma", "Jane Austen")
        pending_store.insert(1, "text", "Beloved", "Toni Morrison")
        assert [r.id for r in pending_store.list_oldest_pending(1, 2)] == [first, second]

    def test_to_dict(self, pending_store: PendingStore) -> None:
        row_id = pending_store.insert(1, "image", "Dune", "Frank Herbert")
        data = pending_store.get(row_id).to_dict()  # type: ignore[union-attr]
        assert data["input_type"] == "image"
        assert data["fingerprint"] == fingerprint("Dune", "Frank Herbert")
