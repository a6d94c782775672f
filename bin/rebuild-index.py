"""Recompute the all-time leaderboard index from every raw score record.

Usage: uv run python bin/rebuild-index.py

Runs against the SQLite store at WAXLE_DATABASE_PATH and overwrites both the
production and the dev all-time index entries.
"""

import asyncio
import sys
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "backend"))

from api.server.settings import ApiServerSettings
from leaderboard.rebuild import RebuildJob
from leaderboard.stores import LeaderboardStores
from shared.db import Database, SqliteBlobStoreFactory
from shared.logging import setup_logging


async def main() -> None:
    settings = ApiServerSettings()
    setup_logging()

    db = Database(settings.database_path)
    db.connect()
    try:
        stores = LeaderboardStores.open(SqliteBlobStoreFactory(db, page_size=settings.list_page_size))
        result = await RebuildJob(stores).run()
        print(f"Rebuilt all-time index: {result.prod} production entries, {result.dev} dev entries")
    finally:
        db.close()


if __name__ == "__main__":
    asyncio.run(main())
