"""Store names and key layout for raw scores and materialized indexes.

Raw daily record:    ``{prefix}{date}_{playerName}_{submissionId}``
Raw all-time record: ``{prefix}{playerName}_{submissionId}``
Daily index:         ``{prefix}{date}``
All-time index:      ``{prefix}all``

``prefix`` is ``dev_`` for local deployments and empty otherwise, so
synthetic traffic shares the physical stores with production entries.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum

DEV_PREFIX = "dev_"
ALLTIME_INDEX_SUFFIX = "all"

DAILY_RAW_STORE = "leaderboard-daily"
ALLTIME_RAW_STORE = "leaderboard-alltime"
DAILY_INDEX_STORE = "leaderboard-daily-index"
ALLTIME_INDEX_STORE = "leaderboard-alltime-index"

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class LeaderboardKind(StrEnum):
    DAILY = "daily"
    ALLTIME = "alltime"


def environment_prefix(*, is_local: bool) -> str:
    return DEV_PREFIX if is_local else ""


def is_dev_key(key: str) -> bool:
    return key.startswith(DEV_PREFIX)


def today_utc(now: datetime | None = None) -> str:
    """Return the UTC calendar date as YYYY-MM-DD."""
    now = now or datetime.now(tz=UTC)
    return now.astimezone(UTC).date().isoformat()


def is_date_string(value: str) -> bool:
    return bool(_DATE_RE.match(value))


def daily_raw_key(prefix: str, date: str, player_name: str, submission_id: str) -> str:
    return f"{prefix}{date}_{player_name}_{submission_id}"


def alltime_raw_key(prefix: str, player_name: str, submission_id: str) -> str:
    return f"{prefix}{player_name}_{submission_id}"


def date_from_daily_key(key: str) -> str:
    """Extract the date segment of a raw daily key, ignoring the dev prefix."""
    body = key.removeprefix(DEV_PREFIX)
    return body.split("_", 1)[0]


@dataclass(frozen=True, slots=True)
class Partition:
    """One materialized leaderboard slot: a kind, an environment, and (for daily) a date."""

    kind: LeaderboardKind
    prefix: str
    date: str | None = None

    def __post_init__(self) -> None:
        if self.kind is LeaderboardKind.DAILY and self.date is None:
            raise ValueError("daily partitions require a date")

    @classmethod
    def daily(cls, date: str, *, is_local: bool) -> Partition:
        return cls(LeaderboardKind.DAILY, environment_prefix(is_local=is_local), date)

    @classmethod
    def alltime(cls, *, is_local: bool) -> Partition:
        return cls(LeaderboardKind.ALLTIME, environment_prefix(is_local=is_local))

    @property
    def is_dev(self) -> bool:
        return self.prefix == DEV_PREFIX

    @property
    def raw_store_name(self) -> str:
        return DAILY_RAW_STORE if self.kind is LeaderboardKind.DAILY else ALLTIME_RAW_STORE

    @property
    def index_store_name(self) -> str:
        return DAILY_INDEX_STORE if self.kind is LeaderboardKind.DAILY else ALLTIME_INDEX_STORE

    @property
    def index_key(self) -> str:
        if self.kind is LeaderboardKind.DAILY:
            return f"{self.prefix}{self.date}"
        return f"{self.prefix}{ALLTIME_INDEX_SUFFIX}"

    @property
    def scan_prefix(self) -> str:
        if self.kind is LeaderboardKind.DAILY:
            return f"{self.prefix}{self.date}_"
        return self.prefix

    def accepts(self, key: str) -> bool:
        """Whether a raw key listed under ``scan_prefix`` belongs to this partition.

        A production scan prefix is empty for all-time records, so dev keys
        would otherwise be folded into the production index.
        """
        return key.startswith(self.scan_prefix) and (self.is_dev or not is_dev_key(key))
