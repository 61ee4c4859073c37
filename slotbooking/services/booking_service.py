"""
Application service for booking interview slots.

The service validates booking requests, asks the ``AvailabilityChecker``
whether the slot is free, writes through a repository adapter and hands the
new booking to a notifier. Storage and notification are reached through
simple protocols so the SQLAlchemy and SMTP adapters can be swapped for
in-memory doubles in tests.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import List, Optional, Protocol, Set, Union

import pendulum
from pendulum import DateTime

from ..domain.exceptions import Conflict, DuplicateError, InvalidRequest
from ..domain.formatting import format_slot_time
from ..domain.models import Booking, BookingRecord, BookingRequest, SlotView, SlotWindow, Year
from ..domain.slot_grid import is_aligned
from .availability import AvailabilityChecker

logger = logging.getLogger(__name__)

NOTIFICATION_SUBJECT = "new entry"


class BookingRepositoryProtocol(Protocol):
    """
    Protocol describing the storage behaviour needed by the service.

    Implementations must enforce two unique constraints - the booking's slot
    (preferred time floored to the granularity) and the email - and raise
    ``DuplicateError`` when ``create`` would violate either.
    """

    async def create(self, booking: Booking) -> Booking:
        """Persist a booking and return it with ``id`` assigned."""

    async def find_by_email(self, email: str) -> Optional[Booking]:
        """Return the booking made with this email, if any."""

    async def find_in_range(self, start: DateTime, end: DateTime) -> List[Booking]:
        """Return bookings whose preferred time lies in ``[start, end)``."""

    async def list_all_sorted_by_time(self) -> List[Booking]:
        """Return every booking ordered by preferred time."""


class NotifierProtocol(Protocol):
    """Protocol describing the notifier behaviour needed by the service."""

    async def notify(self, subject: str, booking: Booking) -> None:
        """Announce a booking. Delivery is best-effort."""


class BookingService:
    """
    Validates and records interview bookings.

    Each ``book`` call runs the checks below in order and stops at the first
    failure:

    1. required fields present and of the expected type
    2. year recognised
    3. email not booked yet
    4. time inside the window
    5. time aligned to the slot grid
    6. slot free
    7. persist, then notify without waiting
    """

    def __init__(
        self,
        repository: BookingRepositoryProtocol,
        window: SlotWindow,
        notifier: Optional[NotifierProtocol] = None,
        *,
        timezone: str = "UTC",
        locale: str = "en",
    ) -> None:
        self._repository = repository
        self._window = window
        self._notifier = notifier
        self._timezone = timezone
        self._locale = locale
        self._availability = AvailabilityChecker(repository=repository, window=window)
        self._pending_notifications: Set[asyncio.Task] = set()

    @property
    def availability(self) -> AvailabilityChecker:
        return self._availability

    async def book(self, request: BookingRequest) -> BookingRecord:
        """
        Validate a request and reserve its slot.

        Returns:
            The persisted booking with its id and formatted time

        Raises:
            InvalidRequest: If the request is incomplete or breaks a booking rule
            Conflict: If the email or the slot is already taken
            StorageFailure: If the repository cannot be reached
        """
        missing = request.missing_fields()
        if missing:
            raise self._reject(InvalidRequest("missing fields", {"fields": missing}))
        invalid = request.invalid_fields()
        if invalid:
            raise self._reject(InvalidRequest("invalid fields", {"fields": invalid}))

        try:
            year = Year.parse(request.year)
        except ValueError:
            raise self._reject(
                InvalidRequest(
                    "invalid year",
                    {"year": request.year, "allowed": Year.allowed_values()},
                )
            ) from None

        email = request.email.strip().lower()
        if await self._repository.find_by_email(email) is not None:
            raise self._reject(Conflict("duplicate email", {"email": email}))

        slot_time = self._parse_time(request.preferred_time)

        if not self._window.contains(slot_time):
            raise self._reject(
                InvalidRequest(
                    "out of range",
                    {
                        "requested_time": slot_time.to_iso8601_string(),
                        "window_start": self._window.start.to_iso8601_string(),
                        "window_end": self._window.end.to_iso8601_string(),
                    },
                )
            )

        if not is_aligned(self._window, slot_time):
            raise self._reject(
                InvalidRequest(
                    "misaligned slot",
                    {
                        "requested_time": slot_time.to_iso8601_string(),
                        "granularity_minutes": self._window.granularity_minutes,
                    },
                )
            )

        if await self._availability.is_occupied(slot_time):
            raise self._reject(
                Conflict("slot already booked", {"requested_time": slot_time.to_iso8601_string()})
            )

        booking = Booking(
            name=request.name.strip(),
            email=email,
            phone_no=request.phone_no.strip(),
            year=year,
            branch=request.branch.strip(),
            preferred_time=slot_time,
            resume_url=request.resume_url.strip(),
        )

        try:
            saved = await self._repository.create(booking)
        except DuplicateError as exc:
            # Lost a race against a concurrent booking after the pre-checks passed.
            reason = "duplicate email" if exc.field == "email" else "slot already booked"
            raise self._reject(Conflict(reason, {exc.field: str(exc.value)})) from exc

        logger.info("Booked slot %s for %s (id=%s)", saved.preferred_time, saved.email, saved.id)
        self._dispatch_notification(saved)

        return self._to_record(saved)

    async def list_bookings(self) -> List[BookingRecord]:
        """Return all bookings ordered by preferred time."""
        bookings = await self._repository.list_all_sorted_by_time()
        return [self._to_record(booking) for booking in bookings]

    async def list_available_slots(self) -> List[SlotView]:
        """Return the free slots of the window with their display strings."""
        slots = await self._availability.list_available()
        return [SlotView(time=slot, formatted_time=self.format_time(slot)) for slot in slots]

    async def wait_for_notifications(self) -> None:
        """Wait until every scheduled notification has finished."""
        if self._pending_notifications:
            await asyncio.gather(*list(self._pending_notifications))

    def format_time(self, moment: DateTime) -> str:
        return format_slot_time(moment, timezone=self._timezone, locale=self._locale)

    def _parse_time(self, value: Union[str, datetime]) -> DateTime:
        """Parse the requested time; naive values use the configured timezone."""
        if isinstance(value, datetime):
            if value.tzinfo is None:
                return pendulum.instance(value, tz=self._timezone)
            return pendulum.instance(value)

        try:
            parsed = pendulum.parse(str(value), tz=self._timezone)
        except ValueError:
            parsed = None

        if not isinstance(parsed, DateTime):
            raise self._reject(InvalidRequest("invalid time", {"requested_time": value}))
        return parsed

    def _to_record(self, booking: Booking) -> BookingRecord:
        return BookingRecord(booking=booking, formatted_time=self.format_time(booking.preferred_time))

    def _dispatch_notification(self, booking: Booking) -> None:
        if self._notifier is None:
            return
        task = asyncio.get_running_loop().create_task(self._notify_safely(booking))
        self._pending_notifications.add(task)
        task.add_done_callback(self._pending_notifications.discard)

    async def _notify_safely(self, booking: Booking) -> None:
        try:
            await self._notifier.notify(NOTIFICATION_SUBJECT, booking)
        except Exception:
            logger.exception("Notification for booking %s failed", booking.id)

    @staticmethod
    def _reject(error: Union[InvalidRequest, Conflict]) -> Union[InvalidRequest, Conflict]:
        label = error.rule if isinstance(error, InvalidRequest) else error.reason
        logger.info("Booking rejected (%s): %s", label, error.details)
        return error
