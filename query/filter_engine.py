"""Multi-criteria filtering over a reconciled event collection."""
from typing import Iterable, List, Optional

from processor.models import EventRecord, FilterCriteria


def _matches_text(record: EventRecord, needle: str) -> bool:
    return any(
        needle in (value or '').lower()
        for value in (record.name, record.venue, record.category)
    )


def matches(record: EventRecord, criteria: FilterCriteria) -> bool:
    """
    Check a record against every supplied criterion.

    Text is a case-insensitive substring match against name, venue or
    category. Status, category, source and city require exact equality.
    Criteria left as None (or blank text) are ignored.
    """
    if criteria.text and not _matches_text(record, criteria.text.lower()):
        return False
    if criteria.status is not None and record.status != criteria.status:
        return False
    if criteria.category is not None and record.category != criteria.category:
        return False
    if criteria.source is not None and record.source != criteria.source:
        return False
    if criteria.city is not None and record.city != criteria.city:
        return False
    return True


def filter_events(
    collection: Iterable[EventRecord],
    criteria: Optional[FilterCriteria] = None
) -> List[EventRecord]:
    """
    Derive the display subset of a collection.

    Args:
        collection: Reconciled records
        criteria: Predicates to apply; None returns every record

    Returns:
        Matching records in the collection's iteration order
    """
    if criteria is None:
        return list(collection)
    return [record for record in collection if matches(record, criteria)]
