# ABOUTME: Shared pytest fixtures for Shelver tests.
# ABOUTME: Provides temporary databases with and without the collaborator-owned catalog tables.

import sqlite3
from collections.abc import Iterator
from pathlib import Path

import pytest

from shelver.db.catalog import CatalogStore
from shelver.db.connection import install_catalog_schema, open_store
from shelver.db.queue import PendingStore


@pytest.fixture
def fixtures_dir() -> Path:
    """Path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Path for a fresh database file with the catalog installed."""
    path = tmp_path / "shelver.db"
    conn = open_store(path)
    install_catalog_schema(conn)
    conn.close()
    return path


@pytest.fixture
def conn(db_path: Path) -> Iterator[sqlite3.Connection]:
    """Open connection to a database that has both queue and catalog tables."""
    connection = open_store(db_path)
    yield connection
    connection.close()


@pytest.fixture
def bare_conn(tmp_path: Path) -> Iterator[sqlite3.Connection]:
    """Open connection to a database WITHOUT the catalog tables."""
    connection = open_store(tmp_path / "bare.db")
    yield connection
    connection.close()


@pytest.fixture
def catalog(conn: sqlite3.Connection) -> CatalogStore:
    return CatalogStore(conn)


@pytest.fixture
def pending_store(conn: sqlite3.Connection) -> PendingStore:
    return PendingStore(conn)

