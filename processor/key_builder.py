"""Identity keys for event deduplication."""
from datetime import date

SEPARATOR = '|'
ESCAPE = '\\'


def _escape(field: str) -> str:
    return field.replace(ESCAPE, ESCAPE * 2).replace(SEPARATOR, ESCAPE + SEPARATOR)


def compose_key(name: str, event_date: date, venue: str) -> str:
    """
    Build the identity key for a (name, date, venue) triple.

    Fields are joined with '|'. Backslashes and '|' inside a field are
    backslash-escaped, so distinct triples never share a key. Comparison is
    exact and case-sensitive.

    Args:
        name: Event name
        event_date: Day the event occurs
        venue: Venue name

    Returns:
        Identity key string
    """
    return SEPARATOR.join([
        _escape(name),
        event_date.isoformat(),
        _escape(venue),
    ])


def build_key(record) -> str:
    """Identity key for any object exposing name, date and venue."""
    return compose_key(record.name, record.date, record.venue)
