"""Tests for daily seed generation and persistence."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from challenge.daily_seed import (
    DailySeedService,
    SeedRecord,
    challenge_date,
    generate_daily_game_state,
    generate_seed_record,
)
from shared.storage import InMemoryBlobStore

DATE = "2024-01-15"
NOW = datetime(2024, 1, 15, 9, 30, tzinfo=UTC)


@pytest.fixture
def store() -> InMemoryBlobStore:
    return InMemoryBlobStore("daily-challenges")


@pytest.fixture
def service(store) -> DailySeedService:
    return DailySeedService(store, clock=lambda: NOW)


class TestGeneration:
    def test_reference_game_state(self):
        state = generate_daily_game_state(613341597)
        assert state.starting_letters == ["I", "R", "E"]
        assert state.first_drop == ["U", "W", "O"]
        assert state.second_drop == ["I", "E", "P"]
        assert state.rng_state == 3671898368

    def test_seed_record(self):
        record = generate_seed_record(DATE, NOW)
        assert record.date == DATE
        assert record.seed == 613341597
        assert record.created_at == NOW
        assert record.game_state == generate_daily_game_state(613341597)

    def test_same_date_same_state(self):
        first = generate_seed_record(DATE, NOW)
        later = generate_seed_record(DATE, NOW + timedelta(hours=5))
        assert first.game_state == later.game_state

    def test_other_date_differs(self):
        assert generate_seed_record("2024-01-16").seed != generate_seed_record(DATE).seed

    def test_wire_format(self):
        wire = generate_seed_record(DATE, NOW).to_wire()
        assert wire["date"] == DATE
        assert wire["seed"] == 613341597
        assert wire["createdAt"] == "2024-01-15T09:30:00Z"
        assert wire["gameState"] == {
            "startingLetters": ["I", "R", "E"],
            "firstDrop": ["U", "W", "O"],
            "secondDrop": ["I", "E", "P"],
            "rngState": 3671898368,
        }

    def test_challenge_date_is_utc_day(self):
        assert challenge_date(NOW) == DATE
        east = datetime(2024, 1, 16, 2, 0, tzinfo=timezone(timedelta(hours=5)))
        assert challenge_date(east) == DATE


class TestDailySeedService:
    async def test_creates_and_persists_on_first_request(self, service, store):
        record = await service.get_or_create(DATE)

        assert record.seed == 613341597
        assert await store.get_json(DATE) == record.to_wire()

    async def test_defaults_to_today(self, service):
        record = await service.get_or_create()
        assert record.date == DATE

    async def test_returns_stored_record_unchanged(self, store):
        first = await DailySeedService(store, clock=lambda: NOW).get_or_create(DATE)
        later_clock = NOW + timedelta(hours=3)
        second = await DailySeedService(store, clock=lambda: later_clock).get_or_create(DATE)

        assert second == first
        assert second.created_at == NOW

    async def test_stored_record_wins_over_regeneration(self, service, store):
        stored = generate_seed_record(DATE, NOW).to_wire()
        stored["gameState"]["startingLetters"] = ["Q", "Q", "Q"]
        await store.set_json(DATE, stored)

        record = await service.get_or_create(DATE)

        assert record.game_state.starting_letters == ["Q", "Q", "Q"]

    async def test_concurrent_creation_returns_winner(self, service, store):
        winner = generate_seed_record(DATE, NOW - timedelta(seconds=1))
        original = store.set_if_absent

        async def racing_set_if_absent(key, value):
            await store.set(key, json.dumps(winner.to_wire()))
            return await original(key, value)

        with patch.object(store, "set_if_absent", side_effect=racing_set_if_absent):
            record = await service.get_or_create(DATE)

        assert record == winner
        assert SeedRecord.model_validate(await store.get_json(DATE)) == winner

    @pytest.mark.parametrize("corrupt", ["{not json", json.dumps({"date": DATE, "seed": -1})])
    async def test_corrupt_record_is_replaced(self, service, store, corrupt):
        await store.set(DATE, corrupt)

        record = await service.get_or_create(DATE)

        assert record.game_state.starting_letters == ["I", "R", "E"]
        assert await store.get_json(DATE) == record.to_wire()
