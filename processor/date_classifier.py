"""Lifecycle status classification for event dates."""
from datetime import date, datetime, timedelta
from typing import Union

from processor.errors import InvalidInput
from processor.models import Status

ONGOING_WINDOW_DAYS = 2

DATE_FORMATS = [
    '%Y-%m-%d',      # ISO 8601
    '%m/%d/%Y',      # US format
    '%m-%d-%Y',      # US format with dashes
    '%B %d, %Y',     # Full month name
    '%b %d, %Y',     # Abbreviated month name
    '%Y/%m/%d',      # Alternative ISO format
]


def _to_day(value: Union[date, datetime]) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def classify(event_date: Union[date, datetime], now: Union[date, datetime]) -> Status:
    """
    Classify an event date relative to now.

    Both values are compared at day granularity. Dates before today are
    expired, dates from today through today + 2 days (inclusive) are
    ongoing, anything later is upcoming.

    Args:
        event_date: Day the event occurs
        now: Instant of classification

    Returns:
        Status of the event
    """
    event_day = _to_day(event_date)
    today = _to_day(now)

    if event_day < today:
        return Status.EXPIRED
    if event_day <= today + timedelta(days=ONGOING_WINDOW_DAYS):
        return Status.ONGOING
    return Status.UPCOMING


def parse_event_date(value: Union[date, datetime, str, None]) -> date:
    """
    Parse an event date into a calendar date.

    Args:
        value: date/datetime object or date text in a supported format

    Returns:
        Calendar date

    Raises:
        InvalidInput: If the value is missing or cannot be parsed
    """
    if value is None:
        raise InvalidInput("missing date")

    if isinstance(value, date):
        return _to_day(value)

    if not isinstance(value, str) or not value.strip():
        raise InvalidInput(f"missing date: {value!r}")

    text = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    # ISO timestamps such as 2024-12-15T19:30:00+05:30
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise InvalidInput(f"unparsable date: {value!r}") from None
