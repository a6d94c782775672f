"""Deployment gates for administrative operations."""

from __future__ import annotations

import secrets

import structlog

from leaderboard.errors import ForbiddenError

logger = structlog.get_logger()


def require_admin_key(*, is_local: bool, expected: str | None, provided: str | None) -> None:
    """Check the shared admin secret on hosted deployments.

    Local deployments are always allowed. A hosted deployment without a
    configured secret is open, matching how the rebuild endpoint has always
    been deployed; set the secret to close it.
    """
    if is_local or not expected:
        return
    if provided is None or not secrets.compare_digest(provided.encode(), expected.encode()):
        logger.warning("admin key rejected", provided=provided is not None)
        raise ForbiddenError


def require_local(*, is_local: bool, operation: str) -> None:
    if not is_local:
        logger.warning("local-only operation attempted on hosted deployment", operation=operation)
        raise ForbiddenError
