"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import AvailabilityChecker
from .booking_service import BookingRepositoryProtocol, BookingService, NotifierProtocol

__all__ = [
    "AvailabilityChecker",
    "BookingRepositoryProtocol",
    "BookingService",
    "NotifierProtocol",
]
