"""
Slot grid computation.

Pure functions over a ``SlotWindow`` - no repository access, no I/O. The grid
and the alignment rule both derive from ``SlotWindow.granularity_minutes``.
"""

from typing import List

from pendulum import DateTime

from .models import SlotWindow


def generate_slots(window: SlotWindow) -> List[DateTime]:
    """
    Compute every slot start time in the window.

    The sequence starts at ``window.start`` (inclusive), advances by the
    granularity and stops strictly before ``window.end``.

    Example:
    Window: 09:00 - 09:30, granularity 15
    Result: [09:00, 09:15]
    """
    slots: List[DateTime] = []
    current = window.start

    while current < window.end:
        slots.append(current)
        current = current.add(minutes=window.granularity_minutes)

    return slots


def is_aligned(window: SlotWindow, moment: DateTime) -> bool:
    """
    Check if a moment sits exactly on the window's slot grid.

    The offset from ``window.start`` must be a whole number of granularity
    steps, with no leftover seconds or microseconds.
    """
    if moment.microsecond != window.start.microsecond:
        return False
    offset_seconds = moment.int_timestamp - window.start.int_timestamp
    return offset_seconds % (window.granularity_minutes * 60) == 0


def floor_to_granularity(moment: DateTime, granularity_minutes: int) -> DateTime:
    """
    Round a moment down to the start of its granularity bucket.

    Buckets are aligned on the Unix epoch, so the result does not depend on
    the configured window. Used by repositories as the slot uniqueness key.
    """
    step = granularity_minutes * 60
    remainder = moment.int_timestamp % step
    return moment.subtract(seconds=remainder, microseconds=moment.microsecond)
