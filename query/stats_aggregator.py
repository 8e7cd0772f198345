"""Aggregate counts over a reconciled event collection."""
from collections import Counter
from typing import Iterable

from processor.models import EventRecord, Stats, Status


def aggregate(collection: Iterable[EventRecord]) -> Stats:
    """
    Count records by status, source and city in a single pass.

    Every status is present in by_status, with zero when no record has it,
    so sum(by_status.values()) always equals total.
    """
    by_status = {status: 0 for status in Status}
    by_source = Counter()
    by_city = Counter()
    total = 0

    for record in collection:
        total += 1
        by_status[Status(record.status)] += 1
        by_source[record.source] += 1
        by_city[record.city] += 1

    return Stats(
        total=total,
        by_status=by_status,
        by_source=dict(by_source),
        by_city=dict(by_city)
    )
