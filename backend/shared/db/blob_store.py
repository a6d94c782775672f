"""SQLite-backed blob store."""

from __future__ import annotations

import asyncio
import sqlite3
from typing import TYPE_CHECKING

import structlog

from shared.storage import DEFAULT_PAGE_SIZE, BlobStore, StorageReadError, StorageWriteError

if TYPE_CHECKING:
    from shared.db.connection import Database

logger = structlog.get_logger()


class SqliteBlobStore(BlobStore):
    """SQLite implementation of BlobStore.

    All logical stores share one ``blobs`` table keyed by ``(store, key)``.
    Create-if-absent relies on the primary key (``ON CONFLICT DO NOTHING``),
    so the first writer wins even across processes sharing the file.
    Writes are serialized under an asyncio lock within a process.
    """

    def __init__(self, db: Database, name: str, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        super().__init__(name, page_size)
        self._db = db
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> str | None:
        try:
            row = self._db.connection.execute(
                "SELECT value FROM blobs WHERE store = ? AND key = ?",
                (self.name, key),
            ).fetchone()
        except sqlite3.Error as exc:
            raise StorageReadError(f"Failed to read '{key}' from store '{self.name}'") from exc
        return None if row is None else row[0]

    async def set(self, key: str, value: str) -> None:
        await self._write(
            "INSERT INTO blobs (store, key, value) VALUES (?, ?, ?) "
            "ON CONFLICT (store, key) DO UPDATE SET value = excluded.value, "
            "updated_at = strftime('%Y-%m-%dT%H:%M:%fZ', 'now')",
            (self.name, key, value),
        )

    async def set_if_absent(self, key: str, value: str) -> bool:
        inserted = await self._write(
            "INSERT INTO blobs (store, key, value) VALUES (?, ?, ?) ON CONFLICT (store, key) DO NOTHING",
            (self.name, key, value),
        )
        return inserted > 0

    async def delete(self, key: str) -> None:
        await self._write("DELETE FROM blobs WHERE store = ? AND key = ?", (self.name, key))

    async def _page_after(self, prefix: str, after: str | None, limit: int) -> list[str]:
        try:
            rows = self._db.connection.execute(
                "SELECT key FROM blobs WHERE store = ? AND substr(key, 1, ?) = ? AND key > ? ORDER BY key LIMIT ?",
                (self.name, len(prefix), prefix, after or "", limit),
            ).fetchall()
        except sqlite3.Error as exc:
            raise StorageReadError(f"Failed to list store '{self.name}' with prefix '{prefix}'") from exc
        return [row[0] for row in rows]

    async def _write(self, sql: str, params: tuple[str, ...]) -> int:
        """Run one statement in its own transaction. Return the affected row count."""
        async with self._lock:
            conn = self._db.connection
            try:
                cursor = conn.execute(sql, params)
                conn.commit()
            except sqlite3.Error as exc:
                conn.rollback()
                raise StorageWriteError(f"Failed to write to store '{self.name}'") from exc
            return cursor.rowcount


class SqliteBlobStoreFactory:
    """Opens SqliteBlobStore instances over one shared Database."""

    def __init__(self, db: Database, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        self._db = db
        self._page_size = page_size

    def open(self, name: str) -> SqliteBlobStore:
        return SqliteBlobStore(self._db, name, page_size=self._page_size)
