"""
Tests for domain models.
"""

import pendulum
import pytest

from slotbooking.domain.formatting import format_slot_time
from slotbooking.domain.models import (
    Booking,
    BookingRecord,
    BookingRequest,
    SlotView,
    SlotWindow,
    TimeRange,
    Year,
)


class TestTimeRange:
    """Tests for TimeRange model."""

    def test_create_valid_time_range(self):
        """Test creating a valid time range."""
        start = pendulum.parse("2024-01-01T09:00:00Z")
        end = pendulum.parse("2024-01-01T17:00:00Z")

        tr = TimeRange(start=start, end=end)

        assert tr.start == start
        assert tr.end == end

    def test_invalid_time_range_raises_error(self):
        """Test that creating an invalid time range raises ValueError."""
        start = pendulum.parse("2024-01-01T17:00:00Z")
        end = pendulum.parse("2024-01-01T09:00:00Z")

        with pytest.raises(ValueError, match="Start time .* must be before end time"):
            TimeRange(start=start, end=end)


class TestSlotWindow:
    """Tests for SlotWindow model."""

    def test_defaults_to_fifteen_minutes(self):
        window = SlotWindow(
            start=pendulum.parse("2024-01-01T09:00:00Z"),
            end=pendulum.parse("2024-01-01T17:00:00Z")
        )

        assert window.granularity_minutes == 15

    def test_start_must_precede_end(self):
        with pytest.raises(ValueError, match="must be before window end"):
            SlotWindow(
                start=pendulum.parse("2024-01-01T17:00:00Z"),
                end=pendulum.parse("2024-01-01T17:00:00Z")
            )

    def test_granularity_must_be_positive(self):
        with pytest.raises(ValueError, match="positive"):
            SlotWindow(
                start=pendulum.parse("2024-01-01T09:00:00Z"),
                end=pendulum.parse("2024-01-01T17:00:00Z"),
                granularity_minutes=0
            )

    def test_contains_excludes_end(self):
        window = SlotWindow(
            start=pendulum.parse("2024-01-01T09:00:00Z"),
            end=pendulum.parse("2024-01-01T09:30:00Z")
        )

        assert window.contains(pendulum.parse("2024-01-01T09:00:00Z"))
        assert window.contains(pendulum.parse("2024-01-01T09:15:00Z"))
        assert not window.contains(pendulum.parse("2024-01-01T09:30:00Z"))
        assert not window.contains(pendulum.parse("2024-01-01T08:45:00Z"))

    def test_slot_range_spans_one_granularity(self):
        window = SlotWindow(
            start=pendulum.parse("2024-01-01T09:00:00Z"),
            end=pendulum.parse("2024-01-01T17:00:00Z"),
            granularity_minutes=30
        )

        slot = window.slot_range(pendulum.parse("2024-01-01T10:00:00Z"))

        assert slot.start == pendulum.parse("2024-01-01T10:00:00Z")
        assert slot.end == pendulum.parse("2024-01-01T10:30:00Z")


class TestYear:
    """Tests for the Year enum."""

    def test_parse_known_labels(self):
        assert Year.parse("1st Year") is Year.FIRST
        assert Year.parse("4th Year") is Year.FOURTH
        assert Year.parse(Year.SECOND) is Year.SECOND

    def test_parse_rejects_unknown_label(self):
        with pytest.raises(ValueError, match="Must be one of"):
            Year.parse("5th Year")

    def test_allowed_values(self):
        assert Year.allowed_values() == ["1st Year", "2nd Year", "3rd Year", "4th Year"]


class TestBookingRequest:
    """Tests for BookingRequest parsing."""

    def test_from_mapping_accepts_camel_case_and_trims(self):
        request = BookingRequest.from_mapping({
            "name": "  Ada Lovelace ",
            "email": "ada@example.com",
            "phoneNo": "5550100",
            "year": "2nd Year",
            "branch": "CSE",
            "preferredTime": " 2024-01-01T09:15:00Z ",
            "resumeUrl": "https://example.com/ada.pdf",
            "unexpected": "ignored",
        })

        assert request.name == "Ada Lovelace"
        assert request.phone_no == "5550100"
        assert request.preferred_time == "2024-01-01T09:15:00Z"
        assert request.resume_url == "https://example.com/ada.pdf"
        assert request.missing_fields() == []

    def test_missing_fields_reports_absent_and_blank_values(self):
        request = BookingRequest.from_mapping({
            "name": "Ada",
            "email": "   ",
            "year": "2nd Year",
        })

        assert request.missing_fields() == [
            "email",
            "phone_no",
            "branch",
            "preferred_time",
            "resume_url",
        ]

    def test_invalid_fields_reports_non_string_values(self):
        request = BookingRequest.from_mapping({
            "name": 7,
            "email": 12345,
            "phoneNo": 5550100,
            "year": "2nd Year",
            "branch": "CSE",
            "preferredTime": 1704100500,
            "resumeUrl": "https://example.com/ada.pdf",
        })

        assert request.missing_fields() == []
        assert request.invalid_fields() == ["name", "email", "phone_no", "preferred_time"]

    def test_invalid_fields_accepts_datetime_preferred_time(self):
        request = BookingRequest(preferred_time=pendulum.parse("2024-01-01T09:15:00Z"))

        assert request.invalid_fields() == []


class TestBookingRecord:
    """Tests for the external booking representation."""

    def test_to_dict_uses_external_keys(self):
        booking = Booking(
            id="abc123",
            name="Ada",
            email="ada@example.com",
            phone_no="5550100",
            year=Year.SECOND,
            branch="CSE",
            preferred_time=pendulum.parse("2024-01-01T09:15:00Z"),
            resume_url="https://example.com/ada.pdf",
        )
        record = BookingRecord(booking=booking, formatted_time="formatted")

        assert record.to_dict() == {
            "id": "abc123",
            "name": "Ada",
            "email": "ada@example.com",
            "phoneNo": "5550100",
            "year": "2nd Year",
            "branch": "CSE",
            "preferredTime": "2024-01-01T09:15:00Z",
            "formattedTime": "formatted",
            "resumeUrl": "https://example.com/ada.pdf",
        }
        assert record.id == "abc123"

    def test_slot_view_to_dict(self):
        view = SlotView(time=pendulum.parse("2024-01-01T09:00:00Z"), formatted_time="x")

        assert view.to_dict() == {"time": "2024-01-01T09:00:00Z", "formattedTime": "x"}


class TestFormatting:
    """Tests for slot time formatting."""

    def test_long_format_in_utc(self):
        moment = pendulum.parse("2024-01-01T09:00:00Z")

        assert format_slot_time(moment) == "Monday, January 1, 2024 at 09:00 AM UTC"

    def test_display_timezone_is_applied(self):
        moment = pendulum.parse("2024-01-01T13:30:00Z")

        formatted = format_slot_time(moment, timezone="Europe/Berlin")

        assert formatted.startswith("Monday, January 1, 2024 at 02:30 PM")
