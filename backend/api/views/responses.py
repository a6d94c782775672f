"""JSON response helpers shared by every API handler.

Error bodies are always ``{"success": false, "error": <message>}``.
"""

from __future__ import annotations

import json
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

from starlette.responses import JSONResponse

from leaderboard.errors import InvalidRequestError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from starlette.requests import Request

    from leaderboard.errors import LeaderboardError


def success_response(body: dict[str, Any], headers: Mapping[str, str] | None = None) -> JSONResponse:
    return JSONResponse({"success": True, **body}, headers=dict(headers) if headers else None)


def failure_response(message: str, status_code: int, headers: Mapping[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        {"success": False, "error": message},
        status_code=status_code,
        headers=dict(headers) if headers else None,
    )


def error_response(exc: LeaderboardError, headers: Mapping[str, str] | None = None) -> JSONResponse:
    return failure_response(exc.message, exc.status_code, headers)


def unexpected_error_response(message: str) -> JSONResponse:
    return failure_response(message, HTTPStatus.INTERNAL_SERVER_ERROR)


async def read_json_body(request: Request) -> object:
    """Decode the request body as JSON. An empty body decodes to an empty object."""
    raw_body = await request.body()
    if not raw_body.strip():
        return {}
    try:
        return json.loads(raw_body)
    except ValueError:
        raise InvalidRequestError("Invalid JSON body") from None
