"""Storage abstraction for leaderboard and challenge persistence.

A blob store is one named logical key-value space (for example
``leaderboard-daily``). Values are JSON text. Every store supports an
unconditional overwrite, a create-if-absent write, deletion, and a lazy
paginated listing of keys by prefix.

The in-memory implementation is meant for a single local process and for
tests. The durable implementation lives in ``shared.db.blob_store``.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = structlog.get_logger()

DEFAULT_PAGE_SIZE = 100


class StorageError(Exception):
    """Base error for blob store failures."""


class StorageReadError(StorageError):
    """A store or an individual value could not be read or decoded."""


class StorageWriteError(StorageError):
    """A write to a store failed."""


class BlobStore(ABC):
    """Abstract interface for a named key-value store.

    Implementations can use process memory, SQLite, a hosted blob service, etc.
    """

    def __init__(self, name: str, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self.name = name
        self.page_size = page_size

    @abstractmethod
    async def get(self, key: str) -> str | None: ...

    @abstractmethod
    async def set(self, key: str, value: str) -> None: ...

    @abstractmethod
    async def set_if_absent(self, key: str, value: str) -> bool:
        """Create the entry only when the key is unused. Return True if this call created it."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove the entry. Deleting a missing key is a no-op."""

    @abstractmethod
    async def _page_after(self, prefix: str, after: str | None, limit: int) -> list[str]:
        """Return up to ``limit`` keys with ``prefix`` sorted ascending, strictly after ``after``."""

    async def list_pages(self, prefix: str = "", page_size: int | None = None) -> AsyncIterator[list[str]]:
        """Yield batches of keys under ``prefix`` in lexicographic order.

        Each call starts a fresh scan from the beginning. Pages are fetched
        lazily, so keys written behind the cursor during a scan are not seen.
        ``page_size`` defaults to the store's own.
        """
        page_size = page_size or self.page_size
        after: str | None = None
        while True:
            page = await self._page_after(prefix, after, page_size)
            if not page:
                return
            yield page
            if len(page) < page_size:
                return
            after = page[-1]

    async def list_keys(self, prefix: str = "") -> list[str]:
        """Drain ``list_pages`` into a single list."""
        keys: list[str] = []
        async for page in self.list_pages(prefix):
            keys.extend(page)
        return keys

    async def get_json(self, key: str) -> Any | None:  # noqa: ANN401
        """Read and decode a JSON value. Raises StorageReadError on malformed JSON."""
        raw = await self.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            msg = f"Malformed JSON in store '{self.name}' at key '{key}'"
            raise StorageReadError(msg) from exc

    async def set_json(self, key: str, value: Any) -> None:  # noqa: ANN401
        await self.set(key, json.dumps(value))

    async def set_json_if_absent(self, key: str, value: Any) -> bool:  # noqa: ANN401
        return await self.set_if_absent(key, json.dumps(value))


class BlobStoreFactory(Protocol):
    """Opens blob stores by logical name."""

    def open(self, name: str) -> BlobStore: ...


class InMemoryBlobStore(BlobStore):
    """Dict-backed blob store for local development and tests.

    State lives only in this process. Every operation completes without
    yielding to the event loop, so create-if-absent is atomic within a
    single event loop.
    """

    def __init__(self, name: str, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        super().__init__(name, page_size)
        self._values: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self._values.get(key)

    async def set(self, key: str, value: str) -> None:
        self._values[key] = value

    async def set_if_absent(self, key: str, value: str) -> bool:
        if key in self._values:
            return False
        self._values[key] = value
        return True

    async def delete(self, key: str) -> None:
        self._values.pop(key, None)

    async def _page_after(self, prefix: str, after: str | None, limit: int) -> list[str]:
        matching = sorted(k for k in self._values if k.startswith(prefix) and (after is None or k > after))
        return matching[:limit]

    def __len__(self) -> int:
        return len(self._values)


class InMemoryBlobStoreFactory:
    """Hands out one shared InMemoryBlobStore per name."""

    def __init__(self, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        self._page_size = page_size
        self._stores: dict[str, InMemoryBlobStore] = {}

    def open(self, name: str) -> InMemoryBlobStore:
        store = self._stores.get(name)
        if store is None:
            store = InMemoryBlobStore(name, page_size=self._page_size)
            self._stores[name] = store
            logger.debug("opened in-memory blob store", store=name)
        return store
