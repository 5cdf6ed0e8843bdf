"""
Domain Exceptions

Every error a service can raise maps to exactly one HTTP status code.
The FastAPI handlers in lunadine.main render them as ``{"error": message}``.
"""

from typing import Optional


class LunaDineError(Exception):
    """Base class for all errors surfaced to API callers."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        """Convert to the JSON error body."""
        return {"error": self.message}


class ValidationError(LunaDineError):
    """Missing or malformed input, detected before any write."""
    status_code = 400


class InvalidItemError(ValidationError):
    """A cart line references an unknown menu item or a bad quantity."""


class NotFoundError(LunaDineError):
    """Branch, order, table or promo code does not exist."""
    status_code = 404


class MethodNotAllowedError(LunaDineError):
    status_code = 405


class InternalError(LunaDineError):
    """Storage failure or unexpected exception."""
    status_code = 500
