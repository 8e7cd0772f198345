"""Single-writer handle over the authoritative event collection."""
import logging
import threading
from dataclasses import replace
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from activity.activity_log import ActivityLog, append, summary_message
from processor.errors import InvalidInput
from processor.event_processor import EventReconciler
from processor.models import (
    CandidateEvent,
    ChangeSummary,
    EventRecord,
    FilterCriteria,
    Stats,
)
from query.filter_engine import filter_events
from query.stats_aggregator import aggregate

logger = logging.getLogger(__name__)


class EventStore:
    """Owner of the event collection and its activity log."""

    def __init__(
        self,
        records: Iterable[EventRecord] = (),
        activity_log: Optional[ActivityLog] = None,
        reconciler: Optional[EventReconciler] = None
    ):
        """
        Initialize the store from an existing snapshot.

        Args:
            records: Previously reconciled records
            activity_log: Previously recorded activity (default: empty)
            reconciler: Reconciler to merge batches with
        """
        self._records: Tuple[EventRecord, ...] = tuple(records)
        self._activity_log = activity_log or ActivityLog()
        self._reconciler = reconciler or EventReconciler()
        self._lock = threading.Lock()
        self._last_pass: Optional[datetime] = None
        self.version = 0
        logger.info(f"Initialized EventStore with {len(self._records)} events")

    @property
    def activity_log(self) -> ActivityLog:
        return self._activity_log

    @property
    def last_pass(self) -> Optional[datetime]:
        return self._last_pass

    def snapshot(self) -> Tuple[EventRecord, ...]:
        """Current collection; safe to read while another pass runs."""
        return self._records

    def sync(
        self,
        incoming: List[CandidateEvent],
        now: datetime,
        rejected: Optional[List[str]] = None
    ) -> ChangeSummary:
        """
        Reconcile a batch into the collection and log the outcome.

        Passes are serialized. Each pass must use a now no earlier than the
        previous one, and either every pass passes a timezone-aware now or
        every pass passes a naive one.

        Args:
            incoming: Freshly observed candidates
            now: Instant of this pass
            rejected: Errors for items dropped before they became candidates;
                reported ahead of the reconciliation errors

        Returns:
            ChangeSummary of the pass

        Raises:
            InvalidInput: If now is earlier than the previous pass, or mixes
                naive and aware datetimes with it
        """
        with self._lock:
            self._check_pass_time(now)

            logger.info(
                f"Starting sync of {len(incoming)} candidates "
                f"against {len(self._records)} stored events"
            )
            result = self._reconciler.reconcile(self._records, incoming, now)
            summary = result.summary
            if rejected:
                summary = replace(summary, errors=list(rejected) + summary.errors)

            self._records = result.collection
            self._activity_log = append(
                self._activity_log, summary_message(summary), now
            )
            self._last_pass = now
            self.version += 1

            return summary

    def _check_pass_time(self, now: datetime) -> None:
        if self._last_pass is None:
            return

        if (now.tzinfo is None) != (self._last_pass.tzinfo is None):
            raise InvalidInput(
                f"reconciliation time {now.isoformat()} mixes naive and "
                f"timezone-aware datetimes with previous pass "
                f"{self._last_pass.isoformat()}"
            )

        if now < self._last_pass:
            raise InvalidInput(
                f"reconciliation time {now.isoformat()} is earlier than "
                f"previous pass {self._last_pass.isoformat()}"
            )

    def record_activity(self, message: str, timestamp: datetime) -> None:
        """Append a caller-supplied notable event to the activity log."""
        with self._lock:
            self._activity_log = append(self._activity_log, message, timestamp)

    def search(self, criteria: Optional[FilterCriteria] = None) -> List[EventRecord]:
        return filter_events(self.snapshot(), criteria)

    def stats(self) -> Stats:
        return aggregate(self.snapshot())
