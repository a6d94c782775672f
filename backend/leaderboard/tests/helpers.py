"""Builders for raw score fixtures."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from shared.storage import BlobStore

TODAY = "2024-01-15"
NOW = datetime(2024, 1, 15, 12, 0, tzinfo=UTC)


def at(minutes: int) -> datetime:
    """A submission time ``minutes`` after 08:00 UTC on TODAY."""
    return datetime(2024, 1, 15, 8, 0, tzinfo=UTC) + timedelta(minutes=minutes)


def raw_score(player: str, score: int, submitted_at: datetime, date: str = TODAY, **extra: Any) -> dict[str, Any]:  # noqa: ANN401
    record = {
        "playerName": player,
        "score": score,
        "round": 3,
        "totalWords": 12,
        "longestWord": "QUIXOTIC",
        "timeSpent": 240,
        "date": date,
        "submittedAt": submitted_at.isoformat().replace("+00:00", "Z"),
    }
    record.update(extra)
    return record


async def put_raw(store: BlobStore, key: str, record: dict[str, Any]) -> None:
    await store.set(key, json.dumps(record))
