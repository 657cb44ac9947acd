"""
agora.errors — Application exception taxonomy
===============================================

Services raise these; :mod:`agora.api.main` renders them as
``{"detail": message}`` with the matching HTTP status.
"""

from __future__ import annotations


class AgoraError(Exception):
    """Base exception for all Agora application errors."""

    status_code: int = 500
    default_message: str = "Internal Server Error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequestError(AgoraError):
    """Missing or invalid input, detected before touching the database."""
    status_code = 400
    default_message = "Bad Request"


class UnauthorizedError(AgoraError):
    """Missing/invalid/expired token or wrong credentials."""
    status_code = 401
    default_message = "Unauthorized"


class NotFoundError(AgoraError):
    """The requested entity does not exist."""
    status_code = 404
    default_message = "Not Found"


class InternalError(AgoraError):
    """Any persistence-layer failure.  Detail stays in the server log."""
    status_code = 500
