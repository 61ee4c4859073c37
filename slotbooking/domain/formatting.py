"""
Display formatting for slot timestamps.
"""

from pendulum import DateTime

# e.g. "Monday, January 1, 2024 at 09:00 AM UTC"
LONG_FORMAT = "dddd, MMMM D, YYYY [at] hh:mm A zz"


def format_slot_time(
    moment: DateTime,
    timezone: str = "UTC",
    locale: str = "en",
) -> str:
    """
    Format a timestamp as a long, human-readable date and time.

    Args:
        moment: Aware timestamp to format
        timezone: IANA timezone identifier used for display
        locale: Pendulum locale for weekday and month names

    Returns:
        Weekday, full month, day, year, hour:minute and time-zone label
    """
    return moment.in_timezone(timezone).format(LONG_FORMAT, locale=locale)
