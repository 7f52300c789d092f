"""
backend/errors.py

Domain error taxonomy. Every error carries the HTTP status it maps to;
main.create_app() registers a single handler that renders them.
"""

from __future__ import annotations


class AppError(Exception):
    """Base error for request-level failures."""

    status_code = 500
    default_message = "Something went wrong!"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    """Missing or invalid input."""

    status_code = 400
    default_message = "Invalid request."


class AuthError(AppError):
    """Missing/invalid/expired token or bad credentials."""

    status_code = 401
    default_message = "You are not logged in! Please log in to get access."


class ForbiddenError(AppError):
    """Role or ownership violation."""

    status_code = 403
    default_message = "You do not have permission to perform this action."


class NotFoundError(AppError):
    """Resource absent or not publicly visible."""

    status_code = 404
    default_message = "Not found."


class UpstreamError(AppError):
    """External service (image store, email) failed."""

    status_code = 502
    default_message = "An external service failed. Please try again later."


class ConfigError(RuntimeError):
    """Required configuration missing or malformed. Raised at startup only."""
