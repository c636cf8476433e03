"""MLS listing feed synchronization engine."""

from .config import SyncConfig
from .db import Database, SyncAlreadyRunningError
from .feed import FeedError, FeedFetchError, FeedParseError, fetch_feed, parse_feed
from .models import (
    RecordError,
    SyncFeed,
    SyncLog,
    SyncOptions,
    SyncResult,
    SyncStats,
    UpsertResult,
)
from .normalize import clean_value, parse_integer, parse_number
from .resolver import EntityResolver
from .runner import FeedSyncRunner
from .scheduler import next_run
from .upsert import InvalidListingError, ListingUpserter

__all__ = [
    "Database",
    "EntityResolver",
    "FeedError",
    "FeedFetchError",
    "FeedParseError",
    "FeedSyncRunner",
    "InvalidListingError",
    "ListingUpserter",
    "RecordError",
    "SyncAlreadyRunningError",
    "SyncConfig",
    "SyncFeed",
    "SyncLog",
    "SyncOptions",
    "SyncResult",
    "SyncStats",
    "UpsertResult",
    "clean_value",
    "fetch_feed",
    "next_run",
    "parse_feed",
    "parse_integer",
    "parse_number",
]
