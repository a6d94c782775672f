"""Shared fixtures for leaderboard tests."""

import pytest

from leaderboard.stores import LeaderboardStores
from shared.storage import InMemoryBlobStoreFactory


@pytest.fixture
def stores() -> LeaderboardStores:
    # Small pages so every scan crosses page boundaries.
    return LeaderboardStores.open(InMemoryBlobStoreFactory(page_size=2))
