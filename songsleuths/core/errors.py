"""Error hierarchy for every failure the game services can report.

Services raise these; the FastAPI handlers registered in ``songsleuths.main``
turn them into ``{"error": {"code", "message"}}`` responses with the
matching status code. Nothing here is retried by the core.
"""

from __future__ import annotations


class SongSleuthsError(Exception):
    code = "internal_error"
    http_status = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_response(self) -> dict:
        return {"error": {"code": self.code, "message": self.message}}


class AuthError(SongSleuthsError):
    """Missing or invalid credential."""

    code = "auth_error"
    http_status = 401


class ValidationError(SongSleuthsError):
    """Malformed input: bad song id, wrong song count, out-of-range fields."""

    code = "validation_error"
    http_status = 400


class PhaseError(SongSleuthsError):
    """Operation not legal in the game's current phase."""

    code = "phase_error"
    http_status = 409


class ConflictError(SongSleuthsError):
    """A uniqueness rule was violated (submission, nickname, song, ranking)."""

    code = "conflict"
    http_status = 409


class PrecedenceError(SongSleuthsError):
    """Ranking attempted before the player submitted their guesses."""

    code = "precedence_error"
    http_status = 403


class NotFoundError(SongSleuthsError):
    code = "not_found"
    http_status = 404


class UpstreamError(SongSleuthsError):
    """The music catalog or playlist service failed."""

    code = "upstream_error"
    http_status = 502


class RevealPendingError(SongSleuthsError):
    """Another caller holds the reveal; the game becomes readable once it finishes."""

    code = "reveal_pending"
    http_status = 503
