"""Leaderboard read and score submission handlers."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from api.views.responses import (
    error_response,
    read_json_body,
    success_response,
    unexpected_error_response,
)
from leaderboard.errors import InvalidRequestError, LeaderboardError
from leaderboard.keys import LeaderboardKind
from shared.logging import bind_request_context

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response

    from api.server.settings import ApiServerSettings
    from leaderboard.reader import LeaderboardReader
    from leaderboard.submissions import ScoreSubmissionService

logger = structlog.get_logger()

# The daily board changes in real time: keep every cache layer out of the way.
DAILY_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "CDN-Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "Expires": "0",
}
ALLTIME_CACHE_HEADERS = {"Cache-Control": "public, max-age=30"}


def cache_headers_for(kind: LeaderboardKind | str) -> dict[str, str]:
    return ALLTIME_CACHE_HEADERS if kind == LeaderboardKind.ALLTIME else DAILY_CACHE_HEADERS


async def get_leaderboard(request: Request) -> Response:
    """GET /api/leaderboard?type=daily|alltime&limit=N"""
    settings: ApiServerSettings = request.app.state.settings
    reader: LeaderboardReader = request.app.state.reader

    kind = request.query_params.get("type", LeaderboardKind.DAILY.value)
    bind_request_context(operation="get_leaderboard", kind=kind)
    try:
        raw_limit = request.query_params.get("limit")
        try:
            limit = settings.default_limit if raw_limit is None else int(raw_limit)
        except ValueError:
            raise InvalidRequestError("Invalid limit parameter. Must be a positive integer") from None
        view = await reader.get_leaderboard(kind, limit, is_local=settings.is_local)
    except LeaderboardError as e:
        return error_response(e)
    except Exception:
        logger.exception("error in get-leaderboard")
        return unexpected_error_response("Failed to fetch leaderboard")

    return success_response(view.to_response(), headers=cache_headers_for(view.kind))


async def submit_score(request: Request) -> Response:
    """POST /api/scores - append an already-scored game."""
    settings: ApiServerSettings = request.app.state.settings
    submissions: ScoreSubmissionService = request.app.state.submissions

    bind_request_context(operation="submit_score")
    try:
        body = await read_json_body(request)
        result = await submissions.submit(body, is_local=settings.is_local)
    except LeaderboardError as e:
        return error_response(e)
    except Exception:
        logger.exception("error in submit-score")
        return unexpected_error_response("Failed to submit score")

    return success_response(result.to_wire())
