"""
Domain-specific exception hierarchy for the slot booking application.
"""

from typing import Any, Dict, Optional


class BookingError(Exception):
    """Base class for all application-level errors."""


class InvalidRequest(BookingError):
    """
    Raised when a booking request is malformed or breaks a booking rule.

    ``rule`` names the failed check (e.g. ``"missing fields"``) and
    ``details`` carries the offending values.
    """

    def __init__(self, rule: str, details: Optional[Dict[str, Any]] = None):
        self.rule = rule
        self.details = details or {}
        super().__init__(rule)


class Conflict(BookingError):
    """Raised when a well-formed request collides with an existing booking."""

    def __init__(self, reason: str, details: Optional[Dict[str, Any]] = None):
        self.reason = reason
        self.details = details or {}
        super().__init__(reason)


class StorageFailure(BookingError):
    """Raised when bookings cannot be read from or written to storage."""


class NotifierFailure(BookingError):
    """Raised when a booking notification cannot be delivered."""


class DuplicateError(Exception):
    """
    Raised by repositories when a unique constraint is violated.

    ``field`` is either ``"email"`` or ``"slot"``.
    """

    def __init__(self, field: str, value: Any = None):
        self.field = field
        self.value = value
        super().__init__(f"Duplicate {field}: {value}")
