"""Data models for event reconciliation."""
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union


class Status(str, Enum):
    """Lifecycle status of an event relative to "now"."""
    UPCOMING = 'upcoming'
    ONGOING = 'ongoing'
    EXPIRED = 'expired'


@dataclass
class CandidateEvent:
    """Raw event record as delivered by a discovery collaborator."""
    name: str
    date: Union[date, str, None]
    venue: str
    city: str
    category: str
    source: str
    url: Optional[str] = None
    price: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None


@dataclass(frozen=True)
class EventRecord:
    """Reconciled event owned by the collection."""
    id: str
    name: str
    venue: str
    city: str
    category: str
    source: str
    date: date
    status: Status
    url: Optional[str]
    last_updated: datetime
    price: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None


@dataclass
class ChangeSummary:
    """Result of a reconciliation pass."""
    added: int
    updated: int
    expired_total: int
    errors: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ReconcileResult:
    """Updated collection plus the change summary that produced it."""
    collection: Tuple[EventRecord, ...]
    summary: ChangeSummary


@dataclass(frozen=True)
class FilterCriteria:
    """Optional predicates combined with logical AND."""
    text: Optional[str] = None
    status: Optional[Status] = None
    category: Optional[str] = None
    source: Optional[str] = None
    city: Optional[str] = None


@dataclass
class Stats:
    """Aggregate counts over a collection."""
    total: int
    by_status: Dict[Status, int]
    by_source: Dict[str, int]
    by_city: Dict[str, int]


@dataclass(frozen=True)
class ActivityEntry:
    """Single human-readable activity log line."""
    message: str
    timestamp: datetime
