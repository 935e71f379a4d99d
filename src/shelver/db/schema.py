# ABOUTME: SQL DDL statements for the Shelver database.
# ABOUTME: Queue schema and migrations are owned here; catalog DDL belongs to the collaborator.

# Catalog and ownership tables. The collaborator system owns these; they are
# only installed by `shelver init-catalog` or by test fixtures.
CATALOG_SCHEMA = """
CREATE TABLE IF NOT EXISTS books (
    id                INTEGER PRIMARY KEY AUTOINCREMENT,
    title             TEXT NOT NULL,
    author            TEXT NOT NULL,
    normalized_title  TEXT NOT NULL,
    normalized_author TEXT NOT NULL,
    title_author_hash TEXT NOT NULL,
    year              INTEGER,
    isbn              TEXT,
    date_added        TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now')),
    date_modified     TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now'))
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_books_title_author_hash ON books(title_author_hash);
CREATE INDEX IF NOT EXISTS idx_books_normalized ON books(normalized_title, normalized_author);
CREATE INDEX IF NOT EXISTS idx_books_isbn ON books(isbn) WHERE isbn IS NOT NULL;

CREATE TABLE IF NOT EXISTS user_books (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id    INTEGER NOT NULL,
    book_id    INTEGER NOT NULL REFERENCES books(id) ON DELETE CASCADE,
    date_added TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now')),
    UNIQUE (user_id, book_id)
);

CREATE INDEX IF NOT EXISTS idx_user_books_book ON user_books(book_id);
"""

CATALOG_TABLES = ("books", "user_books")

QUEUE_SCHEMA_V1 = """
-- Candidates awaiting user confirmation
CREATE TABLE book_confirm (
    id                INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id           INTEGER NOT NULL,
    input_type        TEXT NOT NULL CHECK (input_type IN ('text', 'audio', 'image')),
    source_note       TEXT,
    title             TEXT NOT NULL,
    author            TEXT NOT NULL,
    normalized_title  TEXT NOT NULL,
    normalized_author TEXT NOT NULL,
    title_author_hash TEXT NOT NULL,
    year              INTEGER,
    external_isbn     TEXT,
    external_source   TEXT,
    external_score    REAL,
    match_method      TEXT,
    matched_book_id   INTEGER,
    status            TEXT NOT NULL DEFAULT 'pending'
                      CHECK (status IN ('pending', 'confirmed', 'discarded')),
    raw_response      TEXT,
    created_at        TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now')),
    updated_at        TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now'))
);

CREATE UNIQUE INDEX idx_book_confirm_user_status_hash
    ON book_confirm(user_id, status, title_author_hash);
CREATE INDEX idx_book_confirm_user_status ON book_confirm(user_id, status);
CREATE INDEX idx_book_confirm_hash ON book_confirm(title_author_hash);

-- Schema versioning for future migrations
CREATE TABLE schema_version (
    version    INTEGER NOT NULL,
    applied_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now'))
);

INSERT INTO schema_version (version) VALUES (1);
"""

MIGRATION_V2 = """
-- Short-lived cache for external year lookups
CREATE TABLE lookup_cache (
    cache_key  TEXT PRIMARY KEY,
    value      TEXT NOT NULL,
    expires_at REAL NOT NULL
);

CREATE INDEX idx_lookup_cache_expires ON lookup_cache(expires_at);

INSERT INTO schema_version (version) VALUES (2);
"""

MIGRATIONS: list[tuple[int, str]] = [
    (2, MIGRATION_V2),
]
