"""
core/errors.py
────────────────────────────────────────────────────────────────────────
Exception hierarchy raised by the plan / meal services.

Every error carries the HTTP status it maps to, so the API layer renders
them through a single exception handler (see `main.py`).
"""
from __future__ import annotations

from typing import Optional


class PlanServiceError(Exception):
    """
    Base class for all errors surfaced by the core services.

    Attributes:
        message: Human-readable error message.
        status_code: HTTP status code for the error.
        detail: Additional error details.
    """

    status_code: int = 500

    def __init__(self, message: str = "An error occurred", detail: Optional[str] = None):
        self.message = message
        self.detail = detail or message
        super().__init__(self.message)


class NotFoundError(PlanServiceError):
    """The requested plan, meal, patient or recipe does not exist (or is inactive)."""

    status_code = 404

    def __init__(self, message: str = "Resource not found", detail: Optional[str] = None):
        super().__init__(message, detail)


class ForbiddenError(PlanServiceError):
    """The resource exists but the actor lacks the role or ownership to touch it."""

    status_code = 403

    def __init__(self, message: str = "Access denied", detail: Optional[str] = None):
        super().__init__(message, detail)


class InvalidInputError(PlanServiceError):
    """Malformed plan structure: empty days/meals, day out of range, unknown enum value."""

    status_code = 400

    def __init__(self, message: str = "Invalid input", detail: Optional[str] = None):
        super().__init__(message, detail)


class ConflictError(PlanServiceError):
    # Not raised today: concurrent meal writes are last-writer-wins.
    status_code = 409

    def __init__(self, message: str = "Resource conflict", detail: Optional[str] = None):
        super().__init__(message, detail)
