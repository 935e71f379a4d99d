# ABOUTME: SQLite connection management for the Shelver store.
# ABOUTME: Opens or creates the database, applies queue migrations, and installs catalog DDL.

import sqlite3
from pathlib import Path

from shelver.db.schema import CATALOG_SCHEMA, MIGRATIONS, QUEUE_SCHEMA_V1

DEFAULT_DB_PATH = Path.home() / ".shelver" / "shelver.db"

# Milliseconds a writer waits on a locked database before failing.
_BUSY_TIMEOUT_MS = 5000

_PRAGMAS = (
    "journal_mode=WAL",
    "foreign_keys=ON",
    f"busy_timeout={_BUSY_TIMEOUT_MS}",
)


def _queue_version(conn: sqlite3.Connection) -> int | None:
    """Highest applied queue schema version, or None on a database Shelver never opened."""
    known = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'schema_version'"
    ).fetchone()
    if known is None:
        return None
    row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    return row[0] or 0


def _migrate(conn: sqlite3.Connection) -> None:
    """Bring the queue tables up to the newest version in MIGRATIONS."""
    version = _queue_version(conn)
    if version is None:
        conn.executescript(QUEUE_SCHEMA_V1)
        version = 1
    for target, script in MIGRATIONS:
        if target > version:
            conn.executescript(script)
            version = target


def open_store(path: Path | None = None) -> sqlite3.Connection:
    """Open the Shelver database, creating and migrating it as needed.

    The connection uses WAL so readers never block the writer, a busy
    timeout so concurrent writers wait for each other instead of failing
    at once, and sqlite3.Row for column access by name.

    Only the queue tables are managed here. The catalog tables belong to
    the collaborator; see install_catalog_schema().

    Args:
        path: Database file. Defaults to ~/.shelver/shelver.db; missing
            parent directories are created.
    """
    target = path or DEFAULT_DB_PATH
    target.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(target), timeout=_BUSY_TIMEOUT_MS / 1000)
    conn.row_factory = sqlite3.Row
    for pragma in _PRAGMAS:
        conn.execute(f"PRAGMA {pragma}")
    _migrate(conn)
    return conn


def install_catalog_schema(conn: sqlite3.Connection) -> None:
    """Create the catalog and ownership tables if they are missing.

    Stands in for the collaborator that owns the catalog. The engine itself
    never calls this.
    """
    conn.executescript(CATALOG_SCHEMA)
