"""
In-memory booking repository for tests and throwaway runs.
"""

import asyncio
import uuid
from dataclasses import replace
from typing import Dict, List, Optional

import pendulum
from pendulum import DateTime

from ..domain.exceptions import DuplicateError
from ..domain.models import Booking
from ..domain.slot_grid import floor_to_granularity


class InMemoryBookingRepository:
    """
    Keeps bookings in a dict, enforcing the same unique constraints as the
    SQL repository: one booking per email and one per slot.

    ``create`` holds an asyncio lock across the check-and-insert so that
    concurrent coroutines cannot both claim a slot.
    """

    def __init__(self, granularity_minutes: int = 15):
        self.granularity_minutes = granularity_minutes
        self._bookings: Dict[str, Booking] = {}
        self._by_email: Dict[str, str] = {}
        self._by_slot: Dict[DateTime, str] = {}
        self._lock = asyncio.Lock()

    async def create(self, booking: Booking) -> Booking:
        email = booking.email.lower()
        slot_key = floor_to_granularity(booking.preferred_time, self.granularity_minutes)

        async with self._lock:
            if email in self._by_email:
                raise DuplicateError("email", email)
            if slot_key in self._by_slot:
                raise DuplicateError("slot", slot_key.to_iso8601_string())

            saved = replace(
                booking,
                id=uuid.uuid4().hex,
                email=email,
                created_at=pendulum.now("UTC"),
            )
            self._bookings[saved.id] = saved
            self._by_email[email] = saved.id
            self._by_slot[slot_key] = saved.id

        return saved

    async def find_by_email(self, email: str) -> Optional[Booking]:
        booking_id = self._by_email.get(email.strip().lower())
        if booking_id is None:
            return None
        return self._bookings[booking_id]

    async def find_in_range(self, start: DateTime, end: DateTime) -> List[Booking]:
        matches = [
            booking for booking in self._bookings.values()
            if start <= booking.preferred_time < end
        ]
        return sorted(matches, key=lambda b: b.preferred_time)

    async def list_all_sorted_by_time(self) -> List[Booking]:
        return sorted(self._bookings.values(), key=lambda b: b.preferred_time)

    def __len__(self) -> int:
        return len(self._bookings)
