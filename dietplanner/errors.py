# dietplanner/errors.py
# Closed error taxonomy for the API. Services raise these; observability.py maps
# each class to exactly one HTTP status and the unified JSON error body.

from __future__ import annotations

from typing import Any, List, Optional


class AppError(Exception):
    """Base class for every error the API turns into a JSON response."""

    status_code = 500
    public_message = "Internal Server Error"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class ValidationError(AppError):
    """Client input failed schema or business validation (400)."""

    status_code = 400
    public_message = "Validation failed"

    def __init__(self, message: Optional[str] = None, details: Optional[List[Any]] = None) -> None:
        super().__init__(message)
        self.details = details


class UnauthorizedError(AppError):
    """No verifiable identity on the request (401)."""

    status_code = 401
    public_message = "Unauthorized"

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None) -> None:
        super().__init__(message)
        self.details = details


class NotFoundError(AppError):
    """Resource missing or owned by someone else; both look the same (404)."""

    status_code = 404
    public_message = "Not found"


class ConflictError(AppError):
    """Row changed since it was read; the caller may retry (409)."""

    status_code = 409
    public_message = "Resource was modified concurrently"


class UpstreamUnavailableError(AppError):
    """Completion API failed or timed out (502 to the client).

    ``upstream_status`` keeps what the upstream reported (504 timeout, 503
    network, 4xx/5xx API status) for logs; it is never sent to the client.
    """

    status_code = 502
    public_message = "AI service unavailable"

    def __init__(self, message: Optional[str] = None, upstream_status: Optional[int] = None) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status


class DatabaseError(AppError):
    """Persistence failure (500); the original cause is for logs only."""

    status_code = 500
    public_message = "An internal error occurred"

    def __init__(self, message: Optional[str] = None, original_error: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.original_error = original_error
