"""Tests for dev data cleanup and the stale daily purge."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from unittest.mock import AsyncMock, patch

import pytest

from leaderboard.errors import ForbiddenError, StorageWriteError
from leaderboard.purge import DevDataPurge, StaleDailyPurge
from leaderboard.tests.helpers import NOW, TODAY, at, put_raw, raw_score


class TestDevDataPurge:
    async def test_deletes_only_dev_records(self, stores):
        await put_raw(stores.daily_raw, f"{TODAY}_Alice_1", raw_score("Alice", 10, at(0)))
        await put_raw(stores.daily_raw, f"dev_{TODAY}_Bob_1", raw_score("Bob", 10, at(0)))
        await put_raw(stores.daily_raw, f"dev_{TODAY}_Bob_2", raw_score("Bob", 20, at(1)))
        await put_raw(stores.alltime_raw, "Alice_1", raw_score("Alice", 10, at(0)))
        await put_raw(stores.alltime_raw, "dev_Bob_1", raw_score("Bob", 10, at(0)))

        result = await DevDataPurge(stores).run(is_local=True)

        assert result.deleted_count == 3
        assert result.message == "Cleared 3 development entries from leaderboards"
        assert await stores.daily_raw.list_keys() == [f"{TODAY}_Alice_1"]
        assert await stores.alltime_raw.list_keys() == ["Alice_1"]

    async def test_drops_dev_indexes_and_keeps_production_ones(self, stores):
        for key in (TODAY, f"dev_{TODAY}", "dev_2024-01-14"):
            await stores.daily_index.set(key, json.dumps({"leaderboard": []}))
        await stores.alltime_index.set("all", json.dumps({"leaderboard": []}))
        await stores.alltime_index.set("dev_all", json.dumps({"leaderboard": []}))

        await DevDataPurge(stores).run(is_local=True)

        assert await stores.daily_index.list_keys() == [TODAY]
        assert await stores.alltime_index.list_keys() == ["all"]

    async def test_refused_on_hosted_deployment(self, stores):
        await put_raw(stores.daily_raw, f"dev_{TODAY}_Bob_1", raw_score("Bob", 10, at(0)))

        with pytest.raises(ForbiddenError):
            await DevDataPurge(stores).run(is_local=False)

        assert await stores.daily_raw.list_keys() == [f"dev_{TODAY}_Bob_1"]

    async def test_failed_delete_is_skipped(self, stores):
        await put_raw(stores.alltime_raw, "dev_Bob_1", raw_score("Bob", 10, at(0)))
        await put_raw(stores.alltime_raw, "dev_Bob_2", raw_score("Bob", 20, at(1)))
        original = stores.alltime_raw.delete

        async def flaky_delete(key):
            if key == "dev_Bob_1":
                raise StorageWriteError("locked")
            await original(key)

        with patch.object(stores.alltime_raw, "delete", side_effect=flaky_delete):
            result = await DevDataPurge(stores).run(is_local=True)

        assert result.deleted_count == 1
        assert await stores.alltime_raw.list_keys() == ["dev_Bob_1"]

    async def test_nothing_to_delete(self, stores):
        result = await DevDataPurge(stores).run(is_local=True)
        assert result.deleted_count == 0


class TestStaleDailyPurge:
    async def test_deletes_entries_before_today(self, stores):
        await put_raw(stores.daily_raw, "2024-01-13_Alice_1", raw_score("Alice", 1, at(0), date="2024-01-13"))
        await put_raw(stores.daily_raw, "2024-01-14_Bob_1", raw_score("Bob", 1, at(0), date="2024-01-14"))
        await put_raw(stores.daily_raw, f"{TODAY}_Carol_1", raw_score("Carol", 1, at(0)))
        await put_raw(stores.daily_raw, "dev_2024-01-14_Dan_1", raw_score("Dan", 1, at(0), date="2024-01-14"))

        summary = await StaleDailyPurge(stores).run(now=NOW)

        assert summary.checked_entries == 4
        assert summary.deleted_entries == 3
        assert summary.kept_entries == 1
        assert summary.errors == []
        assert await stores.daily_raw.list_keys() == [f"{TODAY}_Carol_1"]

    async def test_summary_wire_format(self, stores):
        await put_raw(stores.daily_raw, "2024-01-14_Bob_1", raw_score("Bob", 1, at(0), date="2024-01-14"))

        wire = (await StaleDailyPurge(stores).run(now=NOW)).to_wire()

        assert wire == {
            "success": True,
            "timestamp": NOW.isoformat(),
            "todayDate": TODAY,
            "checkedEntries": 1,
            "deletedEntries": 1,
            "keptEntries": 0,
            "errors": [],
        }

    async def test_keys_without_a_date_are_kept(self, stores):
        await stores.daily_raw.set("garbage", "{}")

        summary = await StaleDailyPurge(stores).run(now=NOW)

        assert summary.checked_entries == 1
        assert summary.deleted_entries == 0
        assert await stores.daily_raw.list_keys() == ["garbage"]

    async def test_today_follows_utc(self, stores):
        await put_raw(stores.daily_raw, f"{TODAY}_Alice_1", raw_score("Alice", 1, at(0)))
        just_after_midnight = datetime(2024, 1, 16, 0, 5, tzinfo=UTC)

        summary = await StaleDailyPurge(stores).run(now=just_after_midnight)

        assert summary.today_date == "2024-01-16"
        assert summary.deleted_entries == 1

    async def test_delete_errors_are_collected(self, stores):
        await put_raw(stores.daily_raw, "2024-01-14_Bob_1", raw_score("Bob", 1, at(0), date="2024-01-14"))

        with patch.object(stores.daily_raw, "delete", AsyncMock(side_effect=StorageWriteError("locked"))):
            summary = await StaleDailyPurge(stores).run(now=NOW)

        assert summary.deleted_entries == 0
        assert summary.errors == ["Error processing entry 2024-01-14_Bob_1: locked"]

    async def test_stale_indexes_are_dropped(self, stores):
        for key in ("2024-01-14", "dev_2024-01-14", TODAY, f"dev_{TODAY}"):
            await stores.daily_index.set(key, json.dumps({"leaderboard": []}))

        await StaleDailyPurge(stores).run(now=NOW)

        assert await stores.daily_index.list_keys() == [TODAY, f"dev_{TODAY}"]
