"""Administrative handlers: index rebuild and data purges."""

from __future__ import annotations

from http import HTTPStatus
from typing import TYPE_CHECKING

import structlog

from api.views.responses import error_response, success_response, unexpected_error_response
from leaderboard.access import require_admin_key
from leaderboard.errors import LeaderboardError, MethodNotAllowedError
from shared.logging import bind_request_context

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response

    from api.server.settings import ApiServerSettings
    from leaderboard.purge import DevDataPurge, StaleDailyPurge
    from leaderboard.rebuild import RebuildJob

logger = structlog.get_logger()

ADMIN_KEY_HEADER = "x-admin-key"


def _check_admin(request: Request) -> None:
    settings: ApiServerSettings = request.app.state.settings
    provided = request.headers.get(ADMIN_KEY_HEADER) or request.query_params.get("key")
    require_admin_key(is_local=settings.is_local, expected=settings.admin_key, provided=provided)


async def rebuild_alltime_index(request: Request) -> Response:
    """POST /api/admin/rebuild-alltime-index"""
    rebuild_job: RebuildJob = request.app.state.rebuild_job

    bind_request_context(operation="rebuild_alltime_index")
    try:
        _check_admin(request)
        result = await rebuild_job.run()
    except LeaderboardError as e:
        return error_response(e)
    except Exception:
        logger.exception("error rebuilding all-time index")
        return unexpected_error_response("Failed to rebuild all-time index")

    return success_response({"imported": result.to_wire()})


async def clear_dev_data(request: Request) -> Response:
    """POST /api/admin/clear-dev-data - local deployments only."""
    settings: ApiServerSettings = request.app.state.settings
    dev_purge: DevDataPurge = request.app.state.dev_purge

    bind_request_context(operation="clear_dev_data")
    try:
        if request.method != "POST":
            raise MethodNotAllowedError
        result = await dev_purge.run(is_local=settings.is_local)
    except LeaderboardError as e:
        headers = {"Allow": "POST"} if e.status_code == HTTPStatus.METHOD_NOT_ALLOWED else None
        return error_response(e, headers=headers)
    except Exception:
        logger.exception("error clearing dev data")
        return unexpected_error_response("Failed to clear development data")

    return success_response({"message": result.message, "deletedCount": result.deleted_count})


async def purge_daily(request: Request) -> Response:
    """POST /api/admin/purge-daily - drop raw daily scores from before today."""
    daily_purge: StaleDailyPurge = request.app.state.daily_purge

    bind_request_context(operation="purge_daily")
    try:
        _check_admin(request)
        summary = await daily_purge.run()
    except LeaderboardError as e:
        return error_response(e)
    except Exception:
        logger.exception("error purging daily leaderboard")
        return unexpected_error_response("Failed to purge daily leaderboard")

    return success_response(summary.to_wire())
