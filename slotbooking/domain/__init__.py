"""
Domain layer - Pure business logic without external dependencies.
"""

from .exceptions import (
    BookingError,
    Conflict,
    DuplicateError,
    InvalidRequest,
    NotifierFailure,
    StorageFailure,
)
from .formatting import format_slot_time
from .models import (
    Booking,
    BookingRecord,
    BookingRequest,
    SlotView,
    SlotWindow,
    TimeRange,
    Year,
)
from .slot_grid import floor_to_granularity, generate_slots, is_aligned

__all__ = [
    "Booking",
    "BookingError",
    "BookingRecord",
    "BookingRequest",
    "Conflict",
    "DuplicateError",
    "InvalidRequest",
    "NotifierFailure",
    "SlotView",
    "SlotWindow",
    "StorageFailure",
    "TimeRange",
    "Year",
    "floor_to_granularity",
    "format_slot_time",
    "generate_slots",
    "is_aligned",
]
