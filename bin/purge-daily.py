"""Delete raw daily scores dated before today (UTC).

Usage: uv run python bin/purge-daily.py

Intended for cron shortly after midnight UTC, e.g. ``5 0 * * *``.
Exits non-zero when any entry failed to delete.
"""

import asyncio
import json
import sys
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "backend"))

from api.server.settings import ApiServerSettings
from leaderboard.purge import StaleDailyPurge
from leaderboard.stores import LeaderboardStores
from shared.db import Database, SqliteBlobStoreFactory
from shared.logging import setup_logging


async def main() -> int:
    settings = ApiServerSettings()
    setup_logging()

    db = Database(settings.database_path)
    db.connect()
    try:
        stores = LeaderboardStores.open(SqliteBlobStoreFactory(db, page_size=settings.list_page_size))
        summary = await StaleDailyPurge(stores).run()
    finally:
        db.close()

    print(json.dumps(summary.to_wire(), indent=2))
    return 1 if summary.errors else 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
