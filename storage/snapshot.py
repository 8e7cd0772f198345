"""Conversion between core models and plain JSON-ready dictionaries."""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from activity.activity_log import MAX_ENTRIES, ActivityLog
from processor.date_classifier import parse_event_date
from processor.errors import InvalidInput
from processor.models import (
    ActivityEntry,
    CandidateEvent,
    ChangeSummary,
    EventRecord,
    FilterCriteria,
    Stats,
    Status,
)

logger = logging.getLogger(__name__)

OPTIONAL_FIELDS = ('url', 'price', 'description', 'image_url')


def parse_timestamp(value: Any) -> datetime:
    """
    Parse an ISO 8601 timestamp.

    Raises:
        InvalidInput: If the value is not an ISO 8601 timestamp
    """
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"invalid timestamp: {value!r}") from None


def parse_status(value: Any) -> Status:
    """Parse a status value, raising InvalidInput for unknown ones."""
    try:
        return Status(value)
    except ValueError:
        raise InvalidInput(f"unknown status: {value!r}") from None


def _require_text(item: dict, field_name: str) -> str:
    value = item[field_name]
    if not isinstance(value, str):
        raise InvalidInput(f"stored record field '{field_name}' is not text: {value!r}")
    return value


def item_to_record(item: dict) -> EventRecord:
    """
    Convert a stored item dictionary to an EventRecord.

    Args:
        item: Dictionary produced by record_to_item

    Returns:
        EventRecord object

    Raises:
        InvalidInput: If a required key is missing or a value is malformed
    """
    try:
        return EventRecord(
            id=item['id'],
            name=_require_text(item, 'name'),
            venue=_require_text(item, 'venue'),
            city=item['city'],
            category=item['category'],
            source=item['source'],
            date=parse_event_date(item['date']),
            status=parse_status(item['status']),
            url=item.get('url'),
            last_updated=parse_timestamp(item['last_updated']),
            price=item.get('price'),
            description=item.get('description'),
            image_url=item.get('image_url')
        )
    except KeyError as e:
        raise InvalidInput(f"stored record missing field: {e}") from None
    except TypeError as e:
        raise InvalidInput(f"stored record is not a mapping: {e}") from None


def record_to_item(record: EventRecord) -> dict:
    """
    Convert an EventRecord to a plain dictionary.

    Optional payload fields are omitted when None.
    """
    item = {
        'id': record.id,
        'name': record.name,
        'venue': record.venue,
        'city': record.city,
        'category': record.category,
        'source': record.source,
        'date': record.date.isoformat(),
        'status': Status(record.status).value,
        'last_updated': record.last_updated.isoformat()
    }

    for field_name in OPTIONAL_FIELDS:
        value = getattr(record, field_name)
        if value is not None:
            item[field_name] = value

    return item


def item_to_candidate(item: dict) -> CandidateEvent:
    """
    Convert a scraped item dictionary to a CandidateEvent.

    Missing keys become None; field validation happens during reconciliation
    so a bad item is reported instead of dropped.

    Raises:
        InvalidInput: If the item is not a mapping
    """
    if not isinstance(item, dict):
        raise InvalidInput(f"scraped item is not a mapping: {item!r}")

    return CandidateEvent(
        name=item.get('name'),
        date=item.get('date'),
        venue=item.get('venue'),
        city=item.get('city', ''),
        category=item.get('category', ''),
        source=item.get('source') or item.get('platform', ''),
        url=item.get('url'),
        price=item.get('price'),
        description=item.get('description'),
        image_url=item.get('image_url') or item.get('imageUrl')
    )


def items_to_records(items: Optional[List[dict]]) -> List[EventRecord]:
    return [item_to_record(item) for item in items or []]


def items_to_candidates(
    items: Optional[List[dict]]
) -> Tuple[List[CandidateEvent], List[str]]:
    """
    Convert scraped items, setting aside the ones that are not mappings.

    Args:
        items: Scraped item dictionaries

    Returns:
        Tuple of (candidates, error messages for rejected items)
    """
    candidates = []
    errors = []

    for index, item in enumerate(items or []):
        try:
            candidates.append(item_to_candidate(item))
        except InvalidInput as e:
            error_msg = f"Skipped item #{index}: {e}"
            logger.warning(error_msg)
            errors.append(error_msg)

    return candidates, errors


def criteria_from_dict(data: Optional[Dict[str, Any]]) -> Optional[FilterCriteria]:
    """
    Build FilterCriteria from a dictionary of optional predicates.

    Returns:
        FilterCriteria, or None when no predicate is supplied

    Raises:
        InvalidInput: If the status predicate is not a known status
    """
    if not data:
        return None

    status = data.get('status')
    return FilterCriteria(
        text=data.get('text'),
        status=parse_status(status) if status is not None else None,
        category=data.get('category'),
        source=data.get('source'),
        city=data.get('city')
    )


def log_to_items(log: ActivityLog) -> List[dict]:
    return [
        {'message': entry.message, 'timestamp': entry.timestamp.isoformat()}
        for entry in log.entries
    ]


def items_to_log(items: Optional[List[dict]]) -> ActivityLog:
    """
    Rebuild an ActivityLog from newest-first item dictionaries.

    Raises:
        InvalidInput: If an entry lacks a message or timestamp
    """
    entries = []
    for item in (items or [])[:MAX_ENTRIES]:
        try:
            entries.append(ActivityEntry(
                message=item['message'],
                timestamp=parse_timestamp(item['timestamp'])
            ))
        except KeyError as e:
            raise InvalidInput(f"activity entry missing field: {e}") from None
    return ActivityLog(entries=tuple(entries))


def summary_to_dict(summary: ChangeSummary) -> dict:
    return {
        'added': summary.added,
        'updated': summary.updated,
        'expired_total': summary.expired_total,
        'errors': list(summary.errors)
    }


def stats_to_dict(stats: Stats) -> dict:
    return {
        'total': stats.total,
        'by_status': {
            Status(status).value: count for status, count in stats.by_status.items()
        },
        'by_source': dict(stats.by_source),
        'by_city': dict(stats.by_city)
    }
