"""Fold raw score records into a best-per-player index.

The fold is pure: the same set of raw records always yields the same
``leaderboard`` and ``total_entries``; only ``updated_at`` differs between
runs.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from leaderboard.errors import StorageReadError
from leaderboard.models import IndexPayload, ScoreRecord

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Iterable, Iterator

    from leaderboard.keys import Partition
    from shared.storage import BlobStore

logger = structlog.get_logger()


def leaderboard_sort_key(record: ScoreRecord) -> tuple[int, datetime, str]:
    """Score descending, then earliest submission, then name for a total order."""
    return (-record.score, record.submitted_at, record.player_name)


def sort_leaderboard(records: Iterable[ScoreRecord]) -> list[ScoreRecord]:
    return sorted(records, key=leaderboard_sort_key)


def decode_record(data: Any) -> ScoreRecord | None:  # noqa: ANN401
    """Validate a decoded raw value. Return None for anything that is not a usable score record."""
    if not isinstance(data, dict) or data.get("score") is None or not data.get("playerName"):
        return None
    try:
        return ScoreRecord.model_validate(data)
    except ValidationError:
        return None


class BestScoreTable:
    """Mapping of player name to that player's best record seen so far."""

    def __init__(self) -> None:
        self._best: dict[str, ScoreRecord] = {}

    def offer(self, record: ScoreRecord) -> bool:
        """Keep ``record`` if it beats the player's current best. Return True when kept."""
        current = self._best.get(record.player_name)
        if current is None or record.ranks_above(current):
            self._best[record.player_name] = record
            return True
        return False

    def get(self, player_name: str) -> ScoreRecord | None:
        return self._best.get(player_name)

    def __len__(self) -> int:
        return len(self._best)

    def __iter__(self) -> Iterator[ScoreRecord]:
        return iter(self._best.values())

    def to_payload(self, date: str | None = None, now: datetime | None = None) -> IndexPayload:
        ordered = sort_leaderboard(self._best.values())
        return IndexPayload(
            date=date,
            leaderboard=ordered,
            total_entries=len(ordered),
            updated_at=now or datetime.now(tz=UTC),
        )


def fold_records(records: Iterable[ScoreRecord]) -> BestScoreTable:
    table = BestScoreTable()
    for record in records:
        table.offer(record)
    return table


class IndexBuilder:
    """Scans a raw score store and materializes IndexPayloads.

    Individual records that cannot be read or decoded are skipped. A failure
    to list the store itself propagates to the caller.
    """

    def __init__(self, raw_store: BlobStore) -> None:
        self._raw_store = raw_store

    async def iter_records(
        self,
        prefix: str = "",
        accept: Callable[[str], bool] | None = None,
    ) -> AsyncIterator[tuple[str, ScoreRecord]]:
        """Yield ``(key, record)`` for every decodable record under ``prefix``."""
        skipped = 0
        async for page in self._raw_store.list_pages(prefix):
            for key in page:
                if accept is not None and not accept(key):
                    continue
                try:
                    data = await self._raw_store.get_json(key)
                except StorageReadError:
                    logger.warning("unreadable raw score record", store=self._raw_store.name, key=key)
                    skipped += 1
                    continue
                record = decode_record(data)
                if record is None:
                    skipped += 1
                    continue
                yield key, record
        if skipped:
            logger.info("skipped invalid raw score records", store=self._raw_store.name, prefix=prefix, count=skipped)

    async def build(self, partition: Partition, now: datetime | None = None) -> IndexPayload:
        table = BestScoreTable()
        async for _key, record in self.iter_records(partition.scan_prefix, partition.accepts):
            table.offer(record)
        payload = table.to_payload(date=partition.date, now=now)
        logger.info(
            "built leaderboard index",
            kind=partition.kind,
            index_key=partition.index_key,
            count=payload.total_entries,
        )
        return payload
