"""Daily challenge seeds.

The seed and starting tiles for a date are pure functions of the date
string. The first record generated for a date is persisted with
create-if-absent and returned unchanged from then on, so every player on
that date starts from identical state.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from challenge.rng import SeededRNG, generate_seeded_letter, hash_string
from shared.storage import StorageReadError, StorageWriteError

if TYPE_CHECKING:
    from collections.abc import Callable

    from shared.storage import BlobStore

logger = structlog.get_logger()

DAILY_CHALLENGE_STORE = "daily-challenges"
TILES_PER_DRAW = 3


class _SeedModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class DailyGameState(_SeedModel):
    starting_letters: list[str] = Field(min_length=TILES_PER_DRAW, max_length=TILES_PER_DRAW)
    first_drop: list[str] = Field(min_length=TILES_PER_DRAW, max_length=TILES_PER_DRAW)
    second_drop: list[str] = Field(min_length=TILES_PER_DRAW, max_length=TILES_PER_DRAW)
    rng_state: int = Field(ge=0)


class SeedRecord(_SeedModel):
    date: str
    seed: int = Field(ge=0)
    game_state: DailyGameState
    created_at: datetime


def challenge_date(now: datetime | None = None) -> str:
    """The challenge date for ``now``: its calendar day at UTC midnight, as YYYY-MM-DD."""
    now = now or datetime.now(tz=UTC)
    midnight = now.astimezone(UTC).replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight.date().isoformat()


def generate_daily_game_state(seed: int) -> DailyGameState:
    """Draw the starting tiles and the two preview drops from ``seed``.

    Draw order is fixed: three starting letters, then the two drops
    alternate (first[0], second[0], first[1], ...). Clients replay the same
    stream, so this order must not change.
    """
    rng = SeededRNG(seed)
    starting_letters = [generate_seeded_letter(rng) for _ in range(TILES_PER_DRAW)]
    first_drop: list[str] = []
    second_drop: list[str] = []
    for _ in range(TILES_PER_DRAW):
        first_drop.append(generate_seeded_letter(rng))
        second_drop.append(generate_seeded_letter(rng))
    return DailyGameState(
        starting_letters=starting_letters,
        first_drop=first_drop,
        second_drop=second_drop,
        rng_state=rng.state,
    )


def generate_seed_record(date: str, now: datetime | None = None) -> SeedRecord:
    seed = hash_string(date)
    return SeedRecord(
        date=date,
        seed=seed,
        game_state=generate_daily_game_state(seed),
        created_at=now or datetime.now(tz=UTC),
    )


class DailySeedService:
    def __init__(self, store: BlobStore, *, clock: Callable[[], datetime] | None = None) -> None:
        self._store = store
        self._clock = clock or (lambda: datetime.now(tz=UTC))

    async def get_or_create(self, date: str | None = None) -> SeedRecord:
        """Return the stored record for ``date`` (default: today), creating it on first request.

        When two requests race to create the record, the first write wins
        and the loser returns the stored winner.
        """
        now = self._clock()
        date = date or challenge_date(now)

        existing = await self._load(date)
        if existing is not None:
            return existing

        record = generate_seed_record(date, now)
        if await self._store.set_json_if_absent(date, record.to_wire()):
            logger.info("created daily seed", date=date, seed=record.seed)
            return record

        winner = await self._load(date)
        return winner if winner is not None else record

    async def _load(self, date: str) -> SeedRecord | None:
        try:
            data = await self._store.get_json(date)
        except StorageReadError:
            logger.exception("unreadable daily seed record", date=date)
            await self._discard(date)
            return None
        if data is None:
            return None
        try:
            return SeedRecord.model_validate(data)
        except ValidationError:
            logger.exception("malformed daily seed record", date=date)
            await self._discard(date)
            return None

    async def _discard(self, date: str) -> None:
        """Drop a corrupt record so a regenerated one can take its slot."""
        try:
            await self._store.delete(date)
        except StorageWriteError:
            logger.warning("could not discard corrupt daily seed record", date=date, exc_info=True)
