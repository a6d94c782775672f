"""Daily challenge seed handler."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from api.views.responses import success_response, unexpected_error_response
from shared.logging import bind_request_context

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response

    from challenge.daily_seed import DailySeedService

logger = structlog.get_logger()

SEED_CACHE_HEADERS = {"Cache-Control": "public, max-age=3600"}


async def daily_seed(request: Request) -> Response:
    """GET /api/daily-seed - today's seed record, created on first request."""
    seed_service: DailySeedService = request.app.state.seed_service

    bind_request_context(operation="daily_seed")
    try:
        record = await seed_service.get_or_create()
    except Exception:
        logger.exception("error in daily-seed")
        return unexpected_error_response("Failed to generate daily seed")

    return success_response({"data": record.to_wire()}, headers=SEED_CACHE_HEADERS)
