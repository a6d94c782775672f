"""The four blob stores behind the leaderboards, opened from one factory."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from leaderboard.keys import (
    ALLTIME_INDEX_STORE,
    ALLTIME_RAW_STORE,
    DAILY_INDEX_STORE,
    DAILY_RAW_STORE,
    LeaderboardKind,
)

if TYPE_CHECKING:
    from shared.storage import BlobStore, BlobStoreFactory


@dataclass(frozen=True, slots=True)
class LeaderboardStores:
    daily_raw: BlobStore
    alltime_raw: BlobStore
    daily_index: BlobStore
    alltime_index: BlobStore

    @classmethod
    def open(cls, factory: BlobStoreFactory) -> LeaderboardStores:
        return cls(
            daily_raw=factory.open(DAILY_RAW_STORE),
            alltime_raw=factory.open(ALLTIME_RAW_STORE),
            daily_index=factory.open(DAILY_INDEX_STORE),
            alltime_index=factory.open(ALLTIME_INDEX_STORE),
        )

    def raw(self, kind: LeaderboardKind) -> BlobStore:
        return self.daily_raw if kind is LeaderboardKind.DAILY else self.alltime_raw

    def index(self, kind: LeaderboardKind) -> BlobStore:
        return self.daily_index if kind is LeaderboardKind.DAILY else self.alltime_index
