"""Unit tests for snapshot conversion helpers."""
from dataclasses import replace
from datetime import date, datetime, timezone

import pytest

from activity.activity_log import MAX_ENTRIES, ActivityLog, append
from processor.errors import InvalidInput
from processor.models import ChangeSummary, EventRecord, FilterCriteria, Status
from query.stats_aggregator import aggregate
from storage import snapshot


@pytest.fixture
def sample_record():
    """Create a sample EventRecord for testing."""
    return EventRecord(
        id='abc123',
        name='Tech Conference 2024',
        venue='Bandra Kurla Complex',
        city='Mumbai',
        category='Technology',
        source='BookMyShow',
        date=date(2024, 12, 15),
        status=Status.UPCOMING,
        url='https://bookmyshow.com/events/tech-conference-2024',
        last_updated=datetime(2024, 12, 1, 8, 30, tzinfo=timezone.utc),
        price='1499'
    )


def test_record_to_item(sample_record):
    """Test conversion to a JSON-ready dictionary."""
    item = snapshot.record_to_item(sample_record)

    assert item == {
        'id': 'abc123',
        'name': 'Tech Conference 2024',
        'venue': 'Bandra Kurla Complex',
        'city': 'Mumbai',
        'category': 'Technology',
        'source': 'BookMyShow',
        'date': '2024-12-15',
        'status': 'upcoming',
        'last_updated': '2024-12-01T08:30:00+00:00',
        'url': 'https://bookmyshow.com/events/tech-conference-2024',
        'price': '1499'
    }


def test_item_to_record(sample_record):
    """Test rebuilding a record from a stored item."""
    item = snapshot.record_to_item(sample_record)

    assert snapshot.item_to_record(item) == sample_record


def test_falsy_payload_survives_round_trip(sample_record):
    """Test that zero and empty payload values are carried through unchanged."""
    free_event = replace(sample_record, price=0, description='', url='', image_url='')

    item = snapshot.record_to_item(free_event)

    assert item['price'] == 0
    assert item['description'] == ''
    assert snapshot.item_to_record(item) == free_event


def test_item_to_record_missing_field():
    """Test that a stored item without an id is rejected."""
    with pytest.raises(InvalidInput, match='id'):
        snapshot.item_to_record({'name': 'Orphan'})


@pytest.mark.parametrize('field, value', [
    ('date', 'someday'),
    ('status', 'cancelled'),
    ('last_updated', 'yesterday'),
    ('name', None),
    ('venue', 42),
])
def test_item_to_record_malformed_values(sample_record, field, value):
    """Test that malformed stored values raise InvalidInput."""
    item = snapshot.record_to_item(sample_record)
    item[field] = value

    with pytest.raises(InvalidInput):
        snapshot.item_to_record(item)


def test_item_to_candidate_defaults():
    """Test that missing scraped fields become None or empty."""
    candidate = snapshot.item_to_candidate({'name': 'Jazz Night', 'platform': 'District', 'imageUrl': 'x.png'})

    assert candidate.name == 'Jazz Night'
    assert candidate.date is None
    assert candidate.venue is None
    assert candidate.city == ''
    assert candidate.source == 'District'
    assert candidate.image_url == 'x.png'


def test_item_to_candidate_rejects_non_mapping():
    """Test that a scraped item that is not a mapping raises InvalidInput."""
    with pytest.raises(InvalidInput):
        snapshot.item_to_candidate('garbage')


def test_items_to_candidates_sets_aside_non_mappings():
    """Test that bad items are reported while the rest are converted."""
    candidates, errors = snapshot.items_to_candidates([
        'garbage',
        {'name': 'Jazz Night', 'date': '2024-12-11', 'venue': 'Hall A'},
        None,
    ])

    assert [candidate.name for candidate in candidates] == ['Jazz Night']
    assert len(errors) == 2
    assert errors[0].startswith('Skipped item #0')
    assert errors[1].startswith('Skipped item #2')


def test_criteria_from_dict():
    """Test building filter criteria."""
    assert snapshot.criteria_from_dict(None) is None
    assert snapshot.criteria_from_dict({}) is None

    criteria = snapshot.criteria_from_dict({'text': 'jazz', 'status': 'ongoing', 'city': 'Mumbai'})

    assert criteria == FilterCriteria(text='jazz', status=Status.ONGOING, city='Mumbai')


def test_criteria_from_dict_unknown_status():
    """Test that an unknown status filter is rejected."""
    with pytest.raises(InvalidInput):
        snapshot.criteria_from_dict({'status': 'active'})


def test_log_items_preserve_order():
    """Test that the activity log survives conversion newest first."""
    log = append(ActivityLog(), 'older', datetime(2024, 12, 1, 9, 0))
    log = append(log, 'newer', datetime(2024, 12, 1, 10, 0))

    items = snapshot.log_to_items(log)
    assert [item['message'] for item in items] == ['newer', 'older']
    assert snapshot.items_to_log(items) == log


def test_items_to_log_applies_bound():
    """Test that an oversized stored log is cut to the bound."""
    items = [
        {'message': f'entry {i}', 'timestamp': '2024-12-01T09:00:00'}
        for i in range(MAX_ENTRIES + 5)
    ]

    log = snapshot.items_to_log(items)

    assert len(log) == MAX_ENTRIES
    assert log.entries[0].message == 'entry 0'


def test_items_to_log_missing_timestamp():
    with pytest.raises(InvalidInput):
        snapshot.items_to_log([{'message': 'no time'}])


def test_summary_and_stats_to_dict(sample_record):
    """Test plain representations of summary and stats."""
    summary = ChangeSummary(added=1, updated=0, expired_total=0, errors=['bad'])

    assert snapshot.summary_to_dict(summary) == {
        'added': 1, 'updated': 0, 'expired_total': 0, 'errors': ['bad']
    }
    assert snapshot.stats_to_dict(aggregate([sample_record])) == {
        'total': 1,
        'by_status': {'upcoming': 1, 'ongoing': 0, 'expired': 0},
        'by_source': {'BookMyShow': 1},
        'by_city': {'Mumbai': 1}
    }
