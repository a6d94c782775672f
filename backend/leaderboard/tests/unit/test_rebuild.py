"""Tests for the all-time index rebuild job."""

from __future__ import annotations

import json

from leaderboard.rebuild import RebuildJob, RebuildResult
from leaderboard.submissions import ScoreSubmissionService
from leaderboard.tests.helpers import NOW, TODAY, at, put_raw, raw_score


class TestRebuildJob:
    async def test_segregates_prod_and_dev_counts(self, stores):
        await put_raw(stores.alltime_raw, "Alice_1", raw_score("Alice", 10, at(0)))
        await put_raw(stores.alltime_raw, "Alice_2", raw_score("Alice", 30, at(1)))
        await put_raw(stores.alltime_raw, "Bob_1", raw_score("Bob", 20, at(2)))
        await put_raw(stores.alltime_raw, "dev_Carol_1", raw_score("Carol", 99, at(3)))

        result = await RebuildJob(stores).run(now=NOW)

        assert result == RebuildResult(prod=2, dev=1)
        prod = await stores.alltime_index.get_json("all")
        dev = await stores.alltime_index.get_json("dev_all")
        assert [(e["playerName"], e["score"]) for e in prod["leaderboard"]] == [("Alice", 30), ("Bob", 20)]
        assert prod["totalEntries"] == 2
        assert [e["playerName"] for e in dev["leaderboard"]] == ["Carol"]

    async def test_overwrites_existing_index(self, stores):
        stale = {"leaderboard": [raw_score("Ghost", 5000, at(0))], "totalEntries": 1}
        await stores.alltime_index.set("all", json.dumps(stale))
        await put_raw(stores.alltime_raw, "Alice_1", raw_score("Alice", 10, at(0)))

        await RebuildJob(stores).run(now=NOW)

        rebuilt = await stores.alltime_index.get_json("all")
        assert [e["playerName"] for e in rebuilt["leaderboard"]] == ["Alice"]
        assert rebuilt["updatedAt"].startswith("2024-01-15T12:00:00")

    async def test_empty_store_writes_empty_indexes(self, stores):
        result = await RebuildJob(stores).run(now=NOW)

        assert result.to_wire() == {"prod": 0, "dev": 0}
        assert (await stores.alltime_index.get_json("all"))["leaderboard"] == []
        assert (await stores.alltime_index.get_json("dev_all"))["totalEntries"] == 0

    async def test_corrupt_records_are_not_counted(self, stores):
        await put_raw(stores.alltime_raw, "Alice_1", raw_score("Alice", 10, at(0)))
        await stores.alltime_raw.set("Broken_1", "not json")
        await stores.alltime_raw.set("dev_Broken_1", json.dumps({"score": 5}))

        result = await RebuildJob(stores).run(now=NOW)

        assert result == RebuildResult(prod=1, dev=0)


class TestRebuildAfterSubmissions:
    async def test_dev_lookalike_names_are_counted_as_production(self, stores):
        ids = iter(["abc", "def"])
        service = ScoreSubmissionService(stores, clock=lambda: NOW, id_factory=lambda: next(ids))
        for name in ("devon", "dev-ops"):
            data = {"playerName": name, "score": 50, "round": 2, "date": TODAY}
            await service.submit(data, is_local=False)

        result = await RebuildJob(stores).run(now=NOW)

        assert result == RebuildResult(prod=2, dev=0)
        prod = await stores.alltime_index.get_json("all")
        assert sorted(e["playerName"] for e in prod["leaderboard"]) == ["dev-ops", "devon"]

    async def test_local_submissions_only_reach_the_dev_bucket(self, stores):
        service = ScoreSubmissionService(stores, clock=lambda: NOW, id_factory=lambda: "abc")
        await service.submit({"playerName": "Tester", "score": 50, "round": 2, "date": TODAY}, is_local=True)

        result = await RebuildJob(stores).run(now=NOW)

        assert result == RebuildResult(prod=0, dev=1)
