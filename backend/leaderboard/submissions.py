"""Append already-scored games to the raw score stores.

Scoring itself happens in the game client; this module only validates the
submission envelope, sanitizes the player name, and appends one record per
submission to both raw stores. The affected index entries are dropped
afterwards so the next read folds the new record in.
The caller gets back the stored record along with the player's daily
standing and a personal-best flag.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from leaderboard.builder import BestScoreTable, IndexBuilder
from leaderboard.errors import InvalidRequestError, StorageError
from leaderboard.keys import (
    DEV_PREFIX,
    Partition,
    alltime_raw_key,
    daily_raw_key,
    environment_prefix,
    today_utc,
)
from leaderboard.models import ScoreRecord, WireModel

if TYPE_CHECKING:
    from collections.abc import Callable

    from leaderboard.stores import LeaderboardStores

logger = structlog.get_logger()

MAX_SCORE = 10_000
MAX_ROUND = 100
MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 20

# Letters, digits, whitespace, and - _ . ' survive; everything else is dropped.
_NAME_DISALLOWED = re.compile(r"[^\w\s\-.']", re.ASCII)


def sanitize_player_name(name: object) -> str | None:
    """Return a display-safe player name, or None if nothing usable remains."""
    if not isinstance(name, str):
        return None
    sanitized = _NAME_DISALLOWED.sub("", name.strip())[:MAX_NAME_LENGTH]
    # A bare "dev" would produce a production all-time key of "dev_<id>".
    if len(sanitized) < MIN_NAME_LENGTH or f"{sanitized}_".lower().startswith(DEV_PREFIX):
        return None
    return sanitized


class ScoreSubmission(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    player_name: str
    score: int
    round: int
    total_words: int = 0
    longest_word: str = ""
    time_spent: int = 0
    date: str

    @field_validator("total_words", "time_spent", mode="before")
    @classmethod
    def _lenient_int(cls, v: Any) -> int:  # noqa: ANN401
        try:
            return int(v)
        except (TypeError, ValueError):
            return 0

    @field_validator("longest_word", mode="before")
    @classmethod
    def _lenient_str(cls, v: Any) -> str:  # noqa: ANN401
        return v if isinstance(v, str) else ""


class DailyRank(WireModel):
    rank: int
    total_players: int


class SubmissionResult(WireModel):
    score_entry: ScoreRecord
    daily_rank: DailyRank
    # True when no earlier all-time record of the player scored as high.
    is_personal_best: bool


class ScoreSubmissionService:
    def __init__(
        self,
        stores: LeaderboardStores,
        *,
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._stores = stores
        self._clock = clock or (lambda: datetime.now(tz=UTC))
        self._id_factory = id_factory or (lambda: uuid4().hex)

    def validate(self, data: object, now: datetime) -> ScoreSubmission:
        """Check the submission envelope. Raises InvalidRequestError with a caller-facing message."""
        if not isinstance(data, dict):
            raise InvalidRequestError("Invalid JSON body")
        if not data.get("playerName") or data.get("score") is None or not data.get("round") or not data.get("date"):
            raise InvalidRequestError("Missing required fields: playerName, score, round, date")

        name = sanitize_player_name(data["playerName"])
        if name is None:
            raise InvalidRequestError("Invalid player name")

        try:
            submission = ScoreSubmission.model_validate({**data, "playerName": name})
        except ValidationError:
            raise InvalidRequestError("Invalid score or round values") from None

        if submission.date != today_utc(now):
            raise InvalidRequestError("Can only submit scores for today's challenge")
        if not 0 <= submission.score <= MAX_SCORE or not 1 <= submission.round <= MAX_ROUND:
            raise InvalidRequestError("Invalid score or round values")
        return submission

    async def submit(self, data: object, *, is_local: bool) -> SubmissionResult:
        now = self._clock()
        submission = self.validate(data, now)
        record = ScoreRecord(
            player_name=submission.player_name,
            score=submission.score,
            round=submission.round,
            total_words=submission.total_words,
            longest_word=submission.longest_word,
            time_spent=submission.time_spent,
            date=submission.date,
            submitted_at=now,
        )

        prefix = environment_prefix(is_local=is_local)
        previous_best = await self._previous_best(prefix, record.player_name)
        submission_id = self._id_factory()
        payload = record.to_wire()
        await self._stores.daily_raw.set_json(
            daily_raw_key(prefix, record.date, record.player_name, submission_id),
            payload,
        )
        await self._stores.alltime_raw.set_json(
            alltime_raw_key(prefix, record.player_name, submission_id),
            payload,
        )
        logger.info("score submitted", player=record.player_name, score=record.score, date=record.date)

        daily = Partition.daily(record.date, is_local=is_local)
        await self._invalidate(daily, Partition.alltime(is_local=is_local))
        return SubmissionResult(
            score_entry=record,
            daily_rank=await self._daily_rank(daily, record.player_name, now),
            is_personal_best=previous_best is None or record.score > previous_best.score,
        )

    async def _previous_best(self, prefix: str, player_name: str) -> ScoreRecord | None:
        """The player's best all-time record before this submission, if any."""
        table = BestScoreTable()
        try:
            # Names may contain "_", so the key prefix can also match other players.
            async for _key, record in IndexBuilder(self._stores.alltime_raw).iter_records(f"{prefix}{player_name}_"):
                if record.player_name == player_name:
                    table.offer(record)
        except StorageError:
            logger.warning("failed to read previous best", player=player_name, exc_info=True)
            return None
        return table.get(player_name)

    async def _daily_rank(self, partition: Partition, player_name: str, now: datetime) -> DailyRank:
        try:
            payload = await IndexBuilder(self._stores.daily_raw).build(partition, now=now)
        except StorageError:
            logger.warning("failed to compute daily rank", key=partition.index_key, exc_info=True)
            return DailyRank(rank=1, total_players=1)
        for position, entry in enumerate(payload.leaderboard, start=1):
            if entry.player_name == player_name:
                return DailyRank(rank=position, total_players=payload.total_entries)
        # The new record was unreadable during the scan; it would rank last.
        return DailyRank(rank=payload.total_entries + 1, total_players=payload.total_entries + 1)

    async def _invalidate(self, *partitions: Partition) -> None:
        for partition in partitions:
            try:
                await self._stores.index(partition.kind).delete(partition.index_key)
            except StorageError:
                # The raw append already succeeded; the index catches up on the next rebuild.
                logger.warning("failed to invalidate leaderboard index", key=partition.index_key, exc_info=True)
