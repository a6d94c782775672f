"""Deletion jobs for raw score records.

``DevDataPurge`` removes synthetic (``dev_``) records from both raw stores
and only runs on local deployments. ``StaleDailyPurge`` is the scheduled
job that clears daily records from before today.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog

from leaderboard.access import require_local
from leaderboard.errors import StorageError
from leaderboard.keys import DEV_PREFIX, Partition, date_from_daily_key, is_date_string, today_utc

if TYPE_CHECKING:
    from leaderboard.stores import LeaderboardStores
    from shared.storage import BlobStore

logger = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class DevPurgeResult:
    deleted_count: int

    @property
    def message(self) -> str:
        return f"Cleared {self.deleted_count} development entries from leaderboards"


class DevDataPurge:
    def __init__(self, stores: LeaderboardStores) -> None:
        self._stores = stores

    async def run(self, *, is_local: bool) -> DevPurgeResult:
        """Delete every dev-prefixed raw record. Raises ForbiddenError on hosted deployments.

        Each deletion is best effort: a failing key is logged and skipped.
        """
        require_local(is_local=is_local, operation="clear-dev-data")

        deleted = 0
        for store in (self._stores.daily_raw, self._stores.alltime_raw):
            deleted += await self._purge_store(store)

        await self._drop_dev_indexes()
        logger.info("cleared development data", count=deleted)
        return DevPurgeResult(deleted_count=deleted)

    async def _drop_dev_indexes(self) -> None:
        """Dev index entries would otherwise keep serving purged players."""
        try:
            await self._stores.alltime_index.delete(Partition.alltime(is_local=True).index_key)
            for key in await self._stores.daily_index.list_keys(DEV_PREFIX):
                await self._stores.daily_index.delete(key)
        except StorageError:
            logger.warning("failed to drop dev leaderboard indexes", exc_info=True)

    @staticmethod
    async def _purge_store(store: BlobStore) -> int:
        # Collect first: deleting while paging would shift the cursor.
        keys = await store.list_keys(DEV_PREFIX)
        deleted = 0
        for key in keys:
            try:
                await store.delete(key)
            except StorageError:
                logger.exception("failed to delete dev entry", store=store.name, key=key)
                continue
            deleted += 1
            logger.debug("deleted dev entry", store=store.name, key=key)
        return deleted


@dataclass(slots=True)
class DailyPurgeSummary:
    timestamp: datetime
    today_date: str
    checked_entries: int = 0
    deleted_entries: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def kept_entries(self) -> int:
        return self.checked_entries - self.deleted_entries

    def to_wire(self) -> dict[str, Any]:
        return {
            "success": True,
            "timestamp": self.timestamp.isoformat(),
            "todayDate": self.today_date,
            "checkedEntries": self.checked_entries,
            "deletedEntries": self.deleted_entries,
            "keptEntries": self.kept_entries,
            "errors": list(self.errors),
        }


class StaleDailyPurge:
    """Delete raw daily records (production and dev) dated before today, UTC."""

    def __init__(self, stores: LeaderboardStores) -> None:
        self._stores = stores

    async def run(self, now: datetime | None = None) -> DailyPurgeSummary:
        now = now or datetime.now(tz=UTC)
        summary = DailyPurgeSummary(timestamp=now, today_date=today_utc(now))
        store = self._stores.daily_raw

        for key in await store.list_keys():
            summary.checked_entries += 1
            entry_date = date_from_daily_key(key)
            if not is_date_string(entry_date):
                logger.warning("skipping daily key with invalid date", key=key)
                continue
            # ISO dates compare correctly as strings.
            if entry_date >= summary.today_date:
                continue
            try:
                await store.delete(key)
            except StorageError as exc:
                msg = f"Error processing entry {key}: {exc}"
                logger.exception("failed to delete stale daily entry", key=key)
                summary.errors.append(msg)
                continue
            summary.deleted_entries += 1

        await self._drop_stale_indexes(summary.today_date)
        logger.info(
            "daily leaderboard purge completed",
            today=summary.today_date,
            checked=summary.checked_entries,
            deleted=summary.deleted_entries,
            errors=len(summary.errors),
        )
        return summary

    async def _drop_stale_indexes(self, today: str) -> None:
        index = self._stores.daily_index
        for key in await index.list_keys():
            entry_date = key.removeprefix(DEV_PREFIX)
            if is_date_string(entry_date) and entry_date < today:
                try:
                    await index.delete(key)
                except StorageError:
                    logger.warning("failed to delete stale daily index", key=key, exc_info=True)
