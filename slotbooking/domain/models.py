"""
Domain models for slot windows, bookings and booking requests.
"""

from dataclasses import dataclass, fields
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from pendulum import DateTime


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open time range ``[start, end)``.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")


@dataclass(frozen=True)
class SlotWindow:
    """
    The configured booking window and its slot granularity.

    Every valid slot starts at ``start + k * granularity`` and lies strictly
    before ``end``.
    """
    start: DateTime
    end: DateTime
    granularity_minutes: int = 15

    def __post_init__(self):
        if self.granularity_minutes <= 0:
            raise ValueError(
                f"Granularity must be a positive number of minutes, got {self.granularity_minutes}"
            )
        if self.start >= self.end:
            raise ValueError(f"Window start {self.start} must be before window end {self.end}")

    def contains(self, moment: DateTime) -> bool:
        """Check if a moment lies inside ``[start, end)``."""
        return self.start <= moment < self.end

    def slot_range(self, slot_time: DateTime) -> TimeRange:
        """Return the interval ``[slot_time, slot_time + granularity)``."""
        return TimeRange(start=slot_time, end=slot_time.add(minutes=self.granularity_minutes))


class Year(str, Enum):
    """Academic year of a candidate."""
    FIRST = "1st Year"
    SECOND = "2nd Year"
    THIRD = "3rd Year"
    FOURTH = "4th Year"

    @classmethod
    def allowed_values(cls) -> List[str]:
        return [member.value for member in cls]

    @classmethod
    def parse(cls, value: Union[str, "Year"]) -> "Year":
        """
        Resolve a year label to its enum member.

        Raises:
            ValueError: If the label is not one of the recognised values
        """
        if isinstance(value, cls):
            return value
        for member in cls:
            if member.value == value:
                return member
        raise ValueError(
            f"Invalid year {value!r}. Must be one of: {', '.join(cls.allowed_values())}"
        )


@dataclass(frozen=True)
class Booking:
    """
    A persisted interview booking.

    ``id`` and ``created_at`` are assigned by the repository on create.
    """
    name: str
    email: str
    phone_no: str
    year: Year
    branch: str
    preferred_time: DateTime
    resume_url: str
    id: Optional[str] = None
    created_at: Optional[DateTime] = None


# External (camelCase) request keys mapped to BookingRequest fields.
_REQUEST_KEY_ALIASES = {
    "phoneNo": "phone_no",
    "preferredTime": "preferred_time",
    "resumeUrl": "resume_url",
}


@dataclass(frozen=True)
class BookingRequest:
    """
    Raw booking request as received from a transport layer.

    Fields may be missing or blank; the booking service validates them.
    """
    name: Optional[str] = None
    email: Optional[str] = None
    phone_no: Optional[str] = None
    year: Optional[str] = None
    branch: Optional[str] = None
    preferred_time: Union[str, datetime, None] = None
    resume_url: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BookingRequest":
        """
        Build a request from a mapping using snake_case or camelCase keys.

        String values are trimmed and unknown keys are ignored.
        """
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}

        for key, value in data.items():
            name = _REQUEST_KEY_ALIASES.get(key, key)
            if name not in known:
                continue
            if isinstance(value, str):
                value = value.strip()
            values[name] = value

        return cls(**values)

    def missing_fields(self) -> List[str]:
        """Return the names of required fields that are absent or blank."""
        missing: List[str] = []
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(f.name)
        return missing

    def invalid_fields(self) -> List[str]:
        """Return the names of fields holding a value of the wrong type."""
        invalid: List[str] = []
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            allowed = (str, datetime) if f.name == "preferred_time" else str
            if not isinstance(value, allowed):
                invalid.append(f.name)
        return invalid


@dataclass(frozen=True)
class BookingRecord:
    """A persisted booking together with its display string."""
    booking: Booking
    formatted_time: str

    @property
    def id(self) -> Optional[str]:
        return self.booking.id

    @property
    def preferred_time(self) -> DateTime:
        return self.booking.preferred_time

    def to_dict(self) -> Dict[str, Any]:
        """Return the external representation of the booking."""
        booking = self.booking
        return {
            "id": booking.id,
            "name": booking.name,
            "email": booking.email,
            "phoneNo": booking.phone_no,
            "year": booking.year.value,
            "branch": booking.branch,
            "preferredTime": booking.preferred_time.to_iso8601_string(),
            "formattedTime": self.formatted_time,
            "resumeUrl": booking.resume_url,
        }


@dataclass(frozen=True)
class SlotView:
    """An available slot together with its display string."""
    time: DateTime
    formatted_time: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "time": self.time.to_iso8601_string(),
            "formattedTime": self.formatted_time,
        }
