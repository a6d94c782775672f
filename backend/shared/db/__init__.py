"""SQLite database layer: connection management and the durable blob store."""

from shared.db.blob_store import SqliteBlobStore, SqliteBlobStoreFactory
from shared.db.connection import Database

__all__ = [
    "Database",
    "SqliteBlobStore",
    "SqliteBlobStoreFactory",
]
