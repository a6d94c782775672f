"""Error taxonomy for leaderboard and challenge operations.

Storage failures are re-exported from ``shared.storage`` so callers can
catch every recoverable condition from one module.
"""

from shared.storage import StorageError, StorageReadError, StorageWriteError


class LeaderboardError(Exception):
    """Base error for failures surfaced to API callers."""

    status_code = 500
    public_message = "Internal error"

    @property
    def message(self) -> str:
        return self.public_message


class InvalidRequestError(LeaderboardError):
    """A request parameter is invalid. The message is shown to the caller verbatim."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self._message = message

    @property
    def message(self) -> str:
        return self._message


class ForbiddenError(LeaderboardError):
    """The caller may not run this operation here. Details stay in the server log."""

    status_code = 403
    public_message = "Forbidden"


class MethodNotAllowedError(LeaderboardError):
    status_code = 405
    public_message = "Method not allowed"


__all__ = [
    "ForbiddenError",
    "InvalidRequestError",
    "LeaderboardError",
    "MethodNotAllowedError",
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
]
