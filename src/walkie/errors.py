"""
Walkie error taxonomy.

Raised synchronously by the tracker, the scorer and the store, or delivered
through a position source's error callback. The API layer maps each class to
an HTTP status (see api/main.py).
"""
from typing import Optional


class WalkieError(Exception):
    """Base class for all errors raised by walkie."""


class CapabilityUnavailable(WalkieError, RuntimeError):
    """Raised when no position source is available to start a walk."""


class PositionUnavailable(WalkieError, RuntimeError):
    """
    A position source failure reported mid-walk.

    reason mirrors the three failure kinds a device reports:
    "permission_denied", "position_unavailable" or "timeout".
    """

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.reason = reason or "position_unavailable"


class InvalidState(WalkieError, RuntimeError):
    """Raised when an operation needs an active walk and there is none (or vice versa)."""


class InvalidInput(WalkieError, ValueError):
    """Raised when a numeric input is missing, non-numeric or not finite."""
