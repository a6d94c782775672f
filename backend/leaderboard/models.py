"""Score and index documents as stored in the blob stores.

Stored JSON uses camelCase field names; Python code uses snake_case.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from leaderboard.keys import LeaderboardKind


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ScoreRecord(WireModel):
    """One already-scored game submission.

    Identity for de-duplication is ``player_name``: two people sharing a
    name are treated as one player.
    """

    player_name: str = Field(min_length=1)
    score: int = Field(ge=0)
    round: int = 0
    total_words: int = 0
    longest_word: str = ""
    time_spent: int = 0  # seconds
    date: str = ""
    submitted_at: datetime

    @field_validator("submitted_at")
    @classmethod
    def _assume_utc(cls, v: datetime) -> datetime:
        return v if v.tzinfo is not None else v.replace(tzinfo=UTC)

    def ranks_above(self, other: ScoreRecord) -> bool:
        """Higher score wins; among equal scores the earlier submission wins."""
        if self.score != other.score:
            return self.score > other.score
        return self.submitted_at < other.submitted_at


class RankedEntry(ScoreRecord):
    rank: int = Field(ge=1)


class IndexPayload(WireModel):
    """Materialized best-per-player leaderboard for one partition."""

    date: str | None = None
    leaderboard: list[ScoreRecord]
    total_entries: int = 0
    updated_at: datetime | None = None


class LeaderboardView(WireModel):
    """Ranked, truncated slice of a partition returned to API callers."""

    kind: LeaderboardKind
    date: str | None = None
    leaderboard: list[RankedEntry] = Field(default_factory=list)
    total_entries: int = 0

    def to_response(self) -> dict[str, Any]:
        body: dict[str, Any] = {"success": True, "type": self.kind.value}
        if self.date is not None:
            body["date"] = self.date
        body["leaderboard"] = [entry.to_wire() for entry in self.leaderboard]
        body["totalEntries"] = self.total_entries
        return body
