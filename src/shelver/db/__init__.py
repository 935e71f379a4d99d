# ABOUTME: SQLite persistence for the catalog, the confirmation queue, and the lookup cache.
# ABOUTME: Re-exports the connection helpers and store classes.

from shelver.db.catalog import CatalogStore, DuplicateBookError
from shelver.db.connection import DEFAULT_DB_PATH, install_catalog_schema, open_store
from shelver.db.queue import DuplicatePendingError, PendingStore

__all__ = [
    "DEFAULT_DB_PATH",
    "CatalogStore",
    "DuplicateBookError",
    "DuplicatePendingError",
    "PendingStore",
    "install_catalog_schema",
    "open_store",
]
