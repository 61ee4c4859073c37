"""
Slot occupancy queries against the booking repository.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Set

from pendulum import DateTime

from ..domain.models import SlotWindow
from ..domain.slot_grid import generate_slots

if TYPE_CHECKING:
    from .booking_service import BookingRepositoryProtocol


class AvailabilityChecker:
    """
    Answers whether slots are free, based on the bookings in a repository.

    Queries are read-only snapshots. A slot reported free may be claimed by a
    concurrent writer before a dependent booking commits; the repository's
    unique constraints decide that race.
    """

    def __init__(self, repository: "BookingRepositoryProtocol", window: SlotWindow) -> None:
        self._repository = repository
        self._window = window

    @property
    def window(self) -> SlotWindow:
        return self._window

    async def is_occupied(self, slot_time: DateTime) -> bool:
        """Return True if any booking falls in ``[slot_time, slot_time + granularity)``."""
        slot = self._window.slot_range(slot_time)
        bookings = await self._repository.find_in_range(slot.start, slot.end)
        return bool(bookings)

    async def list_available(self, window: Optional[SlotWindow] = None) -> List[DateTime]:
        """
        Return the grid slots of the window that hold no booking.

        Bookings for the whole window are fetched in one query and matched to
        the slot whose interval contains them.
        """
        if window is None:
            window = self._window
        slots = generate_slots(window)

        bookings = await self._repository.find_in_range(window.start, window.end)
        occupied: Set[int] = set()
        for booking in bookings:
            occupied.add(_slot_index(window, booking.preferred_time))

        return [slot for index, slot in enumerate(slots) if index not in occupied]


def _slot_index(window: SlotWindow, moment: DateTime) -> int:
    offset = (moment - window.start).total_seconds()
    return int(offset // (window.granularity_minutes * 60))
