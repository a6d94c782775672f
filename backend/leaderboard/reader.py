"""Ranked leaderboard reads with build-on-read.

The index entry for a partition is read first. When it is missing or
malformed, the partition is rebuilt from the raw store and written back
with create-if-absent, so two concurrent readers filling the same empty
slot cannot overwrite each other. The loser of that race still returns
the payload it computed. No lock is taken: the fold is deterministic, so
racing readers converge on the same result for the same raw snapshot.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError

from leaderboard.builder import IndexBuilder, sort_leaderboard
from leaderboard.errors import InvalidRequestError, StorageReadError, StorageWriteError
from leaderboard.keys import LeaderboardKind, Partition, today_utc
from leaderboard.models import IndexPayload, LeaderboardView, RankedEntry

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from leaderboard.models import ScoreRecord
    from leaderboard.stores import LeaderboardStores

logger = structlog.get_logger()

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


def parse_kind(value: str | LeaderboardKind) -> LeaderboardKind:
    try:
        return LeaderboardKind(value)
    except ValueError:
        raise InvalidRequestError('Invalid type parameter. Must be "daily" or "alltime"') from None


def clamp_limit(limit: int, max_limit: int = MAX_LIMIT) -> int:
    if limit < 1:
        raise InvalidRequestError("Invalid limit parameter. Must be a positive integer")
    return min(limit, max_limit)


def rank_entries(records: Iterable[ScoreRecord], limit: int) -> list[RankedEntry]:
    """Sort, truncate to ``limit``, and number entries from 1."""
    ordered = sort_leaderboard(records)[:limit]
    return [RankedEntry.model_validate({**record.model_dump(), "rank": i}) for i, record in enumerate(ordered, start=1)]


class LeaderboardReader:
    def __init__(
        self,
        stores: LeaderboardStores,
        *,
        max_limit: int = MAX_LIMIT,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._stores = stores
        self._max_limit = max_limit
        self._clock = clock or (lambda: datetime.now(tz=UTC))

    async def get_leaderboard(
        self,
        kind: str | LeaderboardKind,
        limit: int = DEFAULT_LIMIT,
        *,
        is_local: bool,
    ) -> LeaderboardView:
        """Return the top ``limit`` entries of today's daily or the all-time leaderboard.

        Raises InvalidRequestError for a bad ``kind`` or ``limit``. Any other
        failure is logged and answered with an empty leaderboard.
        """
        kind = parse_kind(kind)
        limit = clamp_limit(limit, self._max_limit)
        now = self._clock()
        if kind is LeaderboardKind.DAILY:
            partition = Partition.daily(today_utc(now), is_local=is_local)
        else:
            partition = Partition.alltime(is_local=is_local)

        try:
            payload = await self.load_or_build(partition, now)
        except Exception:
            logger.exception("failed to read leaderboard, serving empty result", kind=kind, key=partition.index_key)
            return LeaderboardView(kind=kind, date=partition.date)

        entries = payload.leaderboard
        return LeaderboardView(
            kind=kind,
            date=partition.date,
            leaderboard=rank_entries(entries, limit),
            total_entries=len(entries),
        )

    async def load_or_build(self, partition: Partition, now: datetime | None = None) -> IndexPayload:
        payload = await self._read_index(partition)
        if payload is not None:
            return payload

        payload = await IndexBuilder(self._stores.raw(partition.kind)).build(partition, now=now)
        await self._persist_if_absent(partition, payload)
        return payload

    async def _read_index(self, partition: Partition) -> IndexPayload | None:
        store = self._stores.index(partition.kind)
        try:
            data = await store.get_json(partition.index_key)
        except StorageReadError:
            logger.warning("unreadable leaderboard index, rebuilding", key=partition.index_key)
            await self._discard_index(partition)
            return None
        if data is None:
            return None
        try:
            return IndexPayload.model_validate(data)
        except ValidationError:
            logger.warning("malformed leaderboard index, rebuilding", key=partition.index_key)
            await self._discard_index(partition)
            return None

    async def _discard_index(self, partition: Partition) -> None:
        """Drop a corrupt entry so the rebuilt payload can take its slot."""
        try:
            await self._stores.index(partition.kind).delete(partition.index_key)
        except StorageWriteError:
            logger.warning("could not discard corrupt leaderboard index", key=partition.index_key, exc_info=True)

    async def _persist_if_absent(self, partition: Partition, payload: IndexPayload) -> None:
        store = self._stores.index(partition.kind)
        try:
            created = await store.set_json_if_absent(partition.index_key, payload.to_wire())
        except StorageWriteError:
            logger.warning("could not cache built leaderboard index", key=partition.index_key, exc_info=True)
            return
        if not created:
            logger.info("leaderboard index already filled by a concurrent reader", key=partition.index_key)
