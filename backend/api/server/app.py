from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING

import structlog
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Route

from api.server.settings import ApiServerSettings
from api.views import (
    clear_dev_data,
    daily_seed,
    get_leaderboard,
    purge_daily,
    rebuild_alltime_index,
    submit_score,
)
from challenge.daily_seed import DAILY_CHALLENGE_STORE, DailySeedService
from leaderboard.purge import DevDataPurge, StaleDailyPurge
from leaderboard.reader import LeaderboardReader
from leaderboard.rebuild import RebuildJob
from leaderboard.stores import LeaderboardStores
from leaderboard.submissions import ScoreSubmissionService
from shared.db import Database, SqliteBlobStoreFactory
from shared.logging import setup_logging
from shared.storage import InMemoryBlobStoreFactory

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from starlette.requests import Request

    from shared.storage import BlobStoreFactory


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


def open_storage(settings: ApiServerSettings) -> tuple[BlobStoreFactory, Database | None]:
    """Open the configured blob store backend. Returns the factory and the database to close, if any."""
    if settings.storage_backend == "sqlite":
        db = Database(settings.database_path)
        db.connect()
        return SqliteBlobStoreFactory(db, page_size=settings.list_page_size), db
    if not settings.is_local:
        logger.warning("in-memory storage on a hosted deployment, data is lost on restart")
    return InMemoryBlobStoreFactory(page_size=settings.list_page_size), None


def create_app(
    settings: ApiServerSettings | None = None,
    store_factory: BlobStoreFactory | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = ApiServerSettings()

    db: Database | None = None
    if store_factory is None:
        store_factory, db = open_storage(settings)

    routes = [
        Route("/health", health, methods=["GET"], name="health"),
        Route("/api/leaderboard", get_leaderboard, methods=["GET"], name="get_leaderboard"),
        Route("/api/scores", submit_score, methods=["POST"], name="submit_score"),
        Route("/api/daily-seed", daily_seed, methods=["GET"], name="daily_seed"),
        Route(
            "/api/admin/rebuild-alltime-index",
            rebuild_alltime_index,
            methods=["POST"],
            name="rebuild_alltime_index",
        ),
        # No method restriction: the handler answers non-POST with a JSON 405.
        Route("/api/admin/clear-dev-data", clear_dev_data, name="clear_dev_data"),
        Route("/api/admin/purge-daily", purge_daily, methods=["POST"], name="purge_daily"),
    ]

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncGenerator[None]:
        yield
        if db is not None:
            db.close()

    app = Starlette(routes=routes, lifespan=lifespan)
    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,  # type: ignore[arg-type]
            allow_origins=settings.cors_origins,
            allow_methods=["GET", "POST"],
            allow_headers=["Content-Type", "X-Admin-Key"],
        )

    stores = LeaderboardStores.open(store_factory)
    app.state.settings = settings
    app.state.db = db
    app.state.stores = stores
    app.state.reader = LeaderboardReader(stores, max_limit=settings.max_limit)
    app.state.submissions = ScoreSubmissionService(stores)
    app.state.rebuild_job = RebuildJob(stores)
    app.state.dev_purge = DevDataPurge(stores)
    app.state.daily_purge = StaleDailyPurge(stores)
    app.state.seed_service = DailySeedService(store_factory.open(DAILY_CHALLENGE_STORE))

    logger.info(
        "api server ready",
        storage=settings.storage_backend,
        deployment="local" if settings.is_local else "hosted",
    )
    return app


def get_app() -> Starlette:  # pragma: no cover
    """Factory function for uvicorn --factory api.server.app:get_app."""
    s = ApiServerSettings()
    setup_logging(log_dir=s.log_dir)
    return create_app(settings=s)
