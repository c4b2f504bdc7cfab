# backend/errors.py

from typing import Any


class AppError(Exception):
    """Base for every failure the API maps to a fixed HTTP status."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message}


class Unauthenticated(AppError):
    status_code = 401
    default_message = "Authentication required"


class Forbidden(AppError):
    status_code = 403
    default_message = "Admin privileges required"


class Conflict(AppError):
    status_code = 409
    default_message = "Already exists"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class InvalidInput(AppError):
    status_code = 400
    default_message = "Invalid request"


class MissingCredential(AppError):
    status_code = 400
    default_message = "Missing API key"


class UpstreamUnavailable(AppError):
    status_code = 502
    default_message = "Upstream request failed"


class UpstreamError(AppError):
    """Upstream answered with a non-success status; status and body pass through."""

    def __init__(self, message: str, status: int, body: Any = None):
        super().__init__(message)
        self.status_code = status
        self.body = body

    def to_dict(self) -> dict:
        return {"error": self.message, "status": self.status_code, "body": self.body}
