"""Bounded activity log of reconciliation outcomes."""
from dataclasses import dataclass
from datetime import datetime
from typing import Tuple

from processor.models import ActivityEntry, ChangeSummary

MAX_ENTRIES = 50


@dataclass(frozen=True)
class ActivityLog:
    """Newest-first log holding at most MAX_ENTRIES entries."""
    entries: Tuple[ActivityEntry, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)


def append(log: ActivityLog, message: str, timestamp: datetime) -> ActivityLog:
    """
    Return a new log with the message prepended.

    Entries beyond MAX_ENTRIES are dropped from the old end. The message is
    stored as given.
    """
    entries = (ActivityEntry(message=message, timestamp=timestamp),) + log.entries
    return ActivityLog(entries=entries[:MAX_ENTRIES])


def summary_message(summary: ChangeSummary) -> str:
    """Render a change summary as a single log line."""
    message = (
        f"Scrape complete: {summary.added} new, {summary.updated} updated, "
        f"{summary.expired_total} expired"
    )
    if summary.errors:
        message += f", {len(summary.errors)} skipped"
    return message
