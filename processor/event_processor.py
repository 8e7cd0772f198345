"""Reconciliation of freshly scraped events into the owned collection."""
import logging
import uuid
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Optional

from processor.date_classifier import classify, parse_event_date
from processor.errors import InvalidInput
from processor.key_builder import compose_key
from processor.models import (
    CandidateEvent,
    ChangeSummary,
    EventRecord,
    ReconcileResult,
    Status,
)

logger = logging.getLogger(__name__)


def _new_event_id() -> str:
    return uuid.uuid4().hex


class EventReconciler:
    """Merges candidate batches into an event collection without duplicates."""

    def __init__(self, id_factory: Optional[Callable[[], str]] = None):
        """
        Initialize the reconciler.

        Args:
            id_factory: Callable returning a fresh unique record id
                (default: random UUID hex)
        """
        self.id_factory = id_factory or _new_event_id

    def reconcile(
        self,
        collection: Iterable[EventRecord],
        incoming: Iterable[CandidateEvent],
        now: datetime
    ) -> ReconcileResult:
        """
        Merge a batch of candidates into the collection.

        New identity keys are added with a fresh id. Known keys are replaced
        with the incoming payload only when their status changed, keeping the
        original id. Records missing from the batch are kept with their
        status recomputed. Nothing is ever removed.

        Args:
            collection: Current records
            incoming: Freshly observed candidates
            now: Instant of this reconciliation pass

        Returns:
            ReconcileResult with the updated collection and change summary
        """
        existing = list(collection)

        # Recompute status for every stored record; "now" moves between passes
        records: List[EventRecord] = [
            self._refresh_status(record, now) for record in existing
        ]
        lookup: Dict[str, int] = {
            compose_key(record.name, record.date, record.venue): index
            for index, record in enumerate(records)
        }
        stored_status = {
            index: record.status for index, record in enumerate(existing)
        }

        added = 0
        updated = 0
        errors: List[str] = []
        seen = 0

        for candidate in incoming:
            seen += 1
            try:
                event_date = self._validate_candidate(candidate)
            except InvalidInput as e:
                error_msg = f"Skipped event '{candidate.name}': {e}"
                logger.warning(error_msg)
                errors.append(error_msg)
                continue

            key = compose_key(candidate.name, event_date, candidate.venue)
            status = classify(event_date, now)
            index = lookup.get(key)

            if index is None:
                records.append(self._build_record(
                    self.id_factory(), candidate, event_date, status, now
                ))
                lookup[key] = len(records) - 1
                added += 1
                continue

            if status != stored_status.get(index, records[index].status):
                records[index] = self._build_record(
                    records[index].id, candidate, event_date, status, now
                )
                # Later duplicates in the same batch compare against this status
                stored_status[index] = status
                updated += 1

        expired_total = sum(
            1 for record in records if record.status == Status.EXPIRED
        )

        logger.info(
            f"Reconciled {seen} candidates: {added} added, {updated} updated, "
            f"{len(errors)} skipped, {expired_total} expired of {len(records)} total"
        )

        return ReconcileResult(
            collection=tuple(records),
            summary=ChangeSummary(
                added=added,
                updated=updated,
                expired_total=expired_total,
                errors=errors
            )
        )

    def _validate_candidate(self, candidate: CandidateEvent) -> date:
        """
        Validate identity fields and parse the event date.

        Args:
            candidate: Candidate to validate

        Returns:
            Parsed calendar date

        Raises:
            InvalidInput: If name, venue or date is missing or unusable
        """
        if not isinstance(candidate.name, str) or not candidate.name.strip():
            raise InvalidInput("missing required field: name")

        if not isinstance(candidate.venue, str) or not candidate.venue.strip():
            raise InvalidInput("missing required field: venue")

        return parse_event_date(candidate.date)

    def _refresh_status(self, record: EventRecord, now: datetime) -> EventRecord:
        status = classify(record.date, now)
        if status == record.status:
            return record
        return replace(record, status=status)

    def _build_record(
        self,
        event_id: str,
        candidate: CandidateEvent,
        event_date: date,
        status: Status,
        now: datetime
    ) -> EventRecord:
        return EventRecord(
            id=event_id,
            name=candidate.name,
            venue=candidate.venue,
            city=candidate.city,
            category=candidate.category,
            source=candidate.source,
            date=event_date,
            status=status,
            url=candidate.url,
            last_updated=now,
            price=candidate.price,
            description=candidate.description,
            image_url=candidate.image_url
        )
