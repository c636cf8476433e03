"""Core data models for the MLS feed sync engine."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Callable, Dict, List, Optional

SYNC_TRIGGERS = ("manual", "scheduled", "webhook")
SYNC_STATUSES = ("pending", "running", "completed", "failed")
TERMINAL_STATUSES = ("completed", "failed")

# Raw feed records are the nested dicts produced by the feed parser.
RawRecord = Dict[str, Any]
ProgressCallback = Callable[[int, int], None]


@dataclass
class SyncStats:
    """The nine per-run counters persisted on every ledger entry."""

    listings_created: int = 0
    listings_updated: int = 0
    listings_deleted: int = 0
    agents_created: int = 0
    agents_updated: int = 0
    offices_created: int = 0
    offices_updated: int = 0
    photos_processed: int = 0
    open_houses_processed: int = 0

    def merge(self, other: "SyncStats") -> None:
        for item in fields(self):
            setattr(self, item.name, getattr(self, item.name) + getattr(other, item.name))

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass
class SyncOptions:
    """Parameters for a single sync invocation."""

    trigger: str = "manual"
    triggered_by: Optional[str] = None
    feed_id: Optional[int] = None
    feed_url: Optional[str] = None
    # Inline feed payload; bypasses URL resolution entirely.
    feed_content: Optional[str | bytes] = None
    on_progress: Optional[ProgressCallback] = None


@dataclass(frozen=True)
class RecordError:
    """A record-local failure captured during a run."""

    mls_id: Optional[str]
    message: str


@dataclass
class SyncResult:
    """Outcome returned by the orchestrator."""

    success: bool
    stats: SyncStats
    duration: int
    sync_log_id: Optional[int] = None
    error_message: Optional[str] = None
    error_stack: Optional[str] = None
    record_errors: List[RecordError] = field(default_factory=list)


@dataclass(frozen=True)
class UpsertResult:
    action: str
    mls_id: str


@dataclass
class SyncLog:
    """Represents one persisted Run Ledger entry."""

    id: int
    status: str
    trigger: str
    triggered_by: Optional[str]
    feed_id: Optional[int]
    created_at: str
    started_at: Optional[str]
    completed_at: Optional[str]
    stats: SyncStats
    error_message: Optional[str] = None
    error_stack: Optional[str] = None


@dataclass
class SyncFeed:
    """Configured feed source."""

    id: int
    name: str
    slug: str
    feed_url: Optional[str]
    feed_type: str = "xml"
    is_enabled: bool = True
    schedule_enabled: bool = False
    schedule_frequency: str = "daily"
    schedule_time: str = "03:00:00"
    schedule_day_of_week: Optional[int] = None
    last_scheduled_run: Optional[str] = None
    next_scheduled_run: Optional[str] = None


@dataclass
class AgentRecord:
    id: int
    first_name: Optional[str]
    last_name: Optional[str]
    email: Optional[str]
    license_num: Optional[str]
    phone: Optional[str]
    photo_url: Optional[str]


@dataclass
class OfficeRecord:
    id: int
    name: Optional[str]
    brokerage_name: Optional[str]
    phone: Optional[str]
    email: Optional[str]
    street_address: Optional[str]
    city: Optional[str]
    state: Optional[str]
    zip: Optional[str]


@dataclass
class ListingRecord:
    """Represents a persisted listing from the database."""

    id: int
    mls_id: str
    street_address: str
    city: str
    state: str
    zip: str
    status: str
    price: float
    agent_id: Optional[int]
    office_id: Optional[int]
    created_at: str
    updated_at: str
    synced_at: str
    attributes: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PhotoRecord:
    url: str
    caption: Optional[str]
    sort_order: int


@dataclass(frozen=True)
class OpenHouseRecord:
    date: str
    start_time: str
    end_time: str
