"""Full re-aggregation of the all-time index from every raw record."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from leaderboard.builder import BestScoreTable, IndexBuilder
from leaderboard.keys import Partition, is_dev_key

if TYPE_CHECKING:
    from leaderboard.stores import LeaderboardStores

logger = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class RebuildResult:
    prod: int
    dev: int

    def to_wire(self) -> dict[str, int]:
        return {"prod": self.prod, "dev": self.dev}


class RebuildJob:
    """Recompute both all-time index entries (production and dev) in one scan.

    Unlike build-on-read this overwrites unconditionally: it is the
    authoritative repair pass. Each index entry is replaced by a single
    write, so concurrent readers see either the old or the new payload.
    The job must not run concurrently with itself.
    """

    def __init__(self, stores: LeaderboardStores) -> None:
        self._stores = stores

    async def run(self, now: datetime | None = None) -> RebuildResult:
        now = now or datetime.now(tz=UTC)
        prod = BestScoreTable()
        dev = BestScoreTable()

        builder = IndexBuilder(self._stores.alltime_raw)
        async for key, record in builder.iter_records():
            (dev if is_dev_key(key) else prod).offer(record)

        for table, partition in (
            (prod, Partition.alltime(is_local=False)),
            (dev, Partition.alltime(is_local=True)),
        ):
            payload = table.to_payload(now=now)
            await self._stores.alltime_index.set_json(partition.index_key, payload.to_wire())

        result = RebuildResult(prod=len(prod), dev=len(dev))
        logger.info("rebuilt all-time index", prod=result.prod, dev=result.dev)
        return result
