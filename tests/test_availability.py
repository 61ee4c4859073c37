"""
Tests for the AvailabilityChecker.
"""

import asyncio

import pendulum

from slotbooking.adapters.memory_repository import InMemoryBookingRepository
from slotbooking.domain.models import Booking, SlotWindow, Year
from slotbooking.services.availability import AvailabilityChecker

WINDOW = SlotWindow(
    start=pendulum.parse("2024-01-01T09:00:00Z"),
    end=pendulum.parse("2024-01-01T10:00:00Z"),
)


def _booking(email: str, at: str) -> Booking:
    return Booking(
        name="Candidate",
        email=email,
        phone_no="5550100",
        year=Year.THIRD,
        branch="ECE",
        preferred_time=pendulum.parse(at),
        resume_url="https://example.com/cv.pdf",
    )


def _checker_with(*bookings: Booking) -> AvailabilityChecker:
    repository = InMemoryBookingRepository()
    for booking in bookings:
        asyncio.run(repository.create(booking))
    return AvailabilityChecker(repository=repository, window=WINDOW)


def test_empty_repository_leaves_every_slot_free():
    checker = _checker_with()

    available = asyncio.run(checker.list_available())

    assert available == [
        pendulum.parse("2024-01-01T09:00:00Z"),
        pendulum.parse("2024-01-01T09:15:00Z"),
        pendulum.parse("2024-01-01T09:30:00Z"),
        pendulum.parse("2024-01-01T09:45:00Z"),
    ]


def test_is_occupied_uses_half_open_interval():
    """A booking at 09:15 occupies the 09:15 slot only."""
    checker = _checker_with(_booking("a@example.com", "2024-01-01T09:15:00Z"))

    assert asyncio.run(checker.is_occupied(pendulum.parse("2024-01-01T09:15:00Z")))
    assert not asyncio.run(checker.is_occupied(pendulum.parse("2024-01-01T09:00:00Z")))
    assert not asyncio.run(checker.is_occupied(pendulum.parse("2024-01-01T09:30:00Z")))


def test_booking_inside_interval_occupies_slot():
    """Any preferred time within [t, t + granularity) marks slot t occupied."""
    checker = _checker_with(_booking("a@example.com", "2024-01-01T09:20:00Z"))

    assert asyncio.run(checker.is_occupied(pendulum.parse("2024-01-01T09:15:00Z")))
    assert pendulum.parse("2024-01-01T09:15:00Z") not in asyncio.run(checker.list_available())


def test_list_available_filters_occupied_slots():
    checker = _checker_with(
        _booking("a@example.com", "2024-01-01T09:00:00Z"),
        _booking("b@example.com", "2024-01-01T09:45:00Z"),
    )

    available = asyncio.run(checker.list_available())

    assert available == [
        pendulum.parse("2024-01-01T09:15:00Z"),
        pendulum.parse("2024-01-01T09:30:00Z"),
    ]


def test_list_available_is_idempotent():
    checker = _checker_with(_booking("a@example.com", "2024-01-01T09:30:00Z"))

    first = asyncio.run(checker.list_available())
    second = asyncio.run(checker.list_available())

    assert first == second


def test_bookings_outside_window_are_ignored():
    checker = _checker_with(_booking("a@example.com", "2024-01-01T10:00:00Z"))

    assert len(asyncio.run(checker.list_available())) == 4


def test_list_available_for_other_window():
    checker = _checker_with(_booking("a@example.com", "2024-01-01T11:00:00Z"))
    later = SlotWindow(
        start=pendulum.parse("2024-01-01T11:00:00Z"),
        end=pendulum.parse("2024-01-01T11:30:00Z"),
    )

    available = asyncio.run(checker.list_available(later))

    assert available == [pendulum.parse("2024-01-01T11:15:00Z")]
