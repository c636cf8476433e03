"""Core execution workflow for feed synchronization."""

from __future__ import annotations

import datetime as dt
import logging
import sqlite3
import time
import traceback
from contextlib import closing
from dataclasses import dataclass, field
from functools import partial
from typing import Callable, Dict, List, Optional, Union

from .config import SyncConfig
from .db import Database, SyncAlreadyRunningError, utc_timestamp
from .feed import FeedError, fetch_feed, parse_feed
from .models import (
    RawRecord,
    RecordError,
    SyncFeed,
    SyncLog,
    SyncOptions,
    SyncResult,
    SyncStats,
)
from .scheduler import DEFAULT_FREQUENCY, DEFAULT_TIME_OF_DAY, next_run, parse_time_of_day
from .upsert import ListingUpserter, mls_id_of

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], Union[str, bytes]]


@dataclass
class FeedSyncRunner:
    """Coordinates fetch, parse, upsert and ledger steps."""

    database: Database
    config: SyncConfig = field(default_factory=SyncConfig)
    fetcher: Optional[Fetcher] = None

    def __post_init__(self) -> None:
        if self.fetcher is None:
            self.fetcher = partial(fetch_feed, timeout=self.config.request_timeout)
        self.upserter = ListingUpserter(self.database)

    def init(self) -> None:
        """Initialize required persistence structures."""
        logger.info("Initializing database at %s", self.database.path)
        self.database.initialize()

    def run_sync(self, options: SyncOptions | None = None) -> SyncResult:
        """Execute one sync run.

        Raises ``SyncAlreadyRunningError`` when another run holds the slot.
        Any other failure after the claim marks the run failed, releases the
        slot and is reported through the returned result.
        """
        options = options or SyncOptions()
        started = time.monotonic()
        stats = SyncStats()
        record_errors: List[RecordError] = []

        self.recover_stale_runs()
        sync_log_id = self.database.claim_sync_log(
            trigger=options.trigger,
            triggered_by=options.triggered_by,
            feed_id=options.feed_id,
        )
        logger.info("Starting %s sync (log %d)", options.trigger, sync_log_id)

        try:
            self.database.mark_sync_running(sync_log_id)
            content = self._acquire_content(options)
            records = parse_feed(content)
            logger.info("Parsed %d listings from feed", len(records))
            self._sync_records(sync_log_id, records, stats, record_errors, options)
            self.database.finish_sync_log(sync_log_id, "completed", stats)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Sync %d failed: %s", sync_log_id, exc)
            error_message = str(exc) or type(exc).__name__
            error_stack = traceback.format_exc()
            self.database.finish_sync_log(
                sync_log_id,
                "failed",
                stats,
                error_message=error_message,
                error_stack=error_stack,
            )
            return SyncResult(
                success=False,
                stats=stats,
                duration=_elapsed_ms(started),
                sync_log_id=sync_log_id,
                error_message=error_message,
                error_stack=error_stack,
                record_errors=record_errors,
            )

        duration = _elapsed_ms(started)
        logger.info(
            "Sync %d completed in %dms: %d created, %d updated, %d failed",
            sync_log_id,
            duration,
            stats.listings_created,
            stats.listings_updated,
            len(record_errors),
        )
        return SyncResult(
            success=True,
            stats=stats,
            duration=duration,
            sync_log_id=sync_log_id,
            record_errors=record_errors,
        )

    def _sync_records(
        self,
        sync_log_id: int,
        records: List[RawRecord],
        stats: SyncStats,
        record_errors: List[RecordError],
        options: SyncOptions,
    ) -> None:
        total = len(records)
        with closing(self.database.connect()) as conn:
            for index, record in enumerate(records, start=1):
                error = self._sync_record(conn, record, stats)
                if error is not None:
                    record_errors.append(error)
                    self.database.add_record_error(sync_log_id, error.mls_id, error.message)
                _report_progress(options, index, total)

    def _acquire_content(self, options: SyncOptions) -> Union[str, bytes]:
        if options.feed_content:
            logger.debug("Using inline feed content")
            return options.feed_content

        feed_url = options.feed_url
        if not feed_url and options.feed_id is not None:
            feed = self.database.get_feed(options.feed_id)
            feed_url = feed.feed_url if feed else None
        feed_url = feed_url or self.config.default_feed_url
        if not feed_url:
            raise FeedError(
                "No feed URL configured. Set MLS_FEED_URL or configure the feed URL."
            )

        logger.info("Fetching feed from %s", feed_url)
        return self.fetcher(feed_url)

    def _sync_record(
        self, conn: sqlite3.Connection, record: RawRecord, stats: SyncStats
    ) -> Optional[RecordError]:
        # Counters are staged per listing and merged only after commit.
        listing_stats = SyncStats()
        try:
            with conn:
                result = self.upserter.upsert_listing(conn, record, listing_stats)
        except Exception as exc:  # noqa: BLE001
            mls_id = mls_id_of(record)
            logger.exception("Error syncing listing %s", mls_id)
            return RecordError(mls_id=mls_id, message=str(exc) or type(exc).__name__)

        if result.action == "created":
            listing_stats.listings_created += 1
        else:
            listing_stats.listings_updated += 1
        stats.merge(listing_stats)
        return None

    def recover_stale_runs(self, now: dt.datetime | None = None) -> int:
        """Fail runs left non-terminal longer than the configured threshold."""
        now = now or dt.datetime.now(dt.timezone.utc)
        cutoff = utc_timestamp(now - self.config.stale_run_after)
        recovered = self.database.reconcile_stale_runs(cutoff)
        if recovered:
            logger.warning("Marked %d abandoned sync run(s) as failed", recovered)
        return recovered

    # ------------------------------------------------------------------
    # Ledger queries

    def is_sync_running(self) -> bool:
        return self.database.is_sync_running()

    def get_sync_status(self, sync_log_id: int) -> Optional[SyncLog]:
        return self.database.get_sync_log(sync_log_id)

    def get_recent_sync_logs(self, limit: int = 10) -> List[SyncLog]:
        return self.database.recent_sync_logs(limit)

    def get_last_sync(self) -> Optional[SyncLog]:
        return self.database.last_completed_sync()

    # ------------------------------------------------------------------
    # Scheduled feeds

    def update_feed_schedule(
        self,
        feed_id: int,
        schedule_enabled: bool,
        frequency: str = DEFAULT_FREQUENCY,
        time_of_day: str = DEFAULT_TIME_OF_DAY,
        day_of_week: int | None = None,
        now: dt.datetime | None = None,
    ) -> Optional[str]:
        """Persist schedule settings and return the recomputed next run.

        Raises ``ValueError`` for a malformed ``time_of_day`` whether or not
        scheduling is enabled.
        """
        frequency = frequency or DEFAULT_FREQUENCY
        time_of_day = time_of_day or DEFAULT_TIME_OF_DAY
        parse_time_of_day(time_of_day)
        next_scheduled = None
        if schedule_enabled:
            next_scheduled = utc_timestamp(next_run(frequency, time_of_day, day_of_week, now=now))
        self.database.update_feed_schedule(
            feed_id,
            schedule_enabled=schedule_enabled,
            frequency=frequency,
            time_of_day=time_of_day,
            day_of_week=day_of_week,
            next_scheduled_run=next_scheduled,
        )
        return next_scheduled

    def run_scheduled_feeds(self, now: dt.datetime | None = None) -> Dict[int, SyncResult]:
        """Run every enabled feed whose next scheduled run is due."""
        now = now or dt.datetime.now(dt.timezone.utc)
        ran_at = utc_timestamp(now)
        due_feeds = self.database.fetch_due_feeds(ran_at)
        if not due_feeds:
            logger.info("No feeds due to run")
            return {}

        logger.info("Found %d feed(s) due to run", len(due_feeds))
        results: Dict[int, SyncResult] = {}
        for feed in due_feeds:
            try:
                results[feed.id] = self._run_scheduled_feed(feed, ran_at, now)
            except SyncAlreadyRunningError:
                logger.warning("Skipping feed %s: another sync is running", feed.name)
            except Exception:  # noqa: BLE001
                logger.exception("Error running sync for feed %d", feed.id)
        return results

    def _run_scheduled_feed(self, feed: SyncFeed, ran_at: str, now: dt.datetime) -> SyncResult:
        upcoming = _upcoming_run(feed, now)
        logger.info("Running scheduled sync for feed %s (ID: %d)", feed.name, feed.id)
        result = self.run_sync(SyncOptions(trigger="scheduled", feed_id=feed.id))
        self.database.record_scheduled_run(feed.id, ran_at, utc_timestamp(upcoming))
        if result.success:
            logger.info(
                "Feed %s completed: %d created, %d updated in %dms",
                feed.name,
                result.stats.listings_created,
                result.stats.listings_updated,
                result.duration,
            )
        else:
            logger.error("Feed %s failed: %s", feed.name, result.error_message)
        return result


def _report_progress(options: SyncOptions, current: int, total: int) -> None:
    if options.on_progress is None:
        return
    try:
        options.on_progress(current, total)
    except Exception:  # noqa: BLE001
        logger.exception("Progress callback raised; continuing")


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def _upcoming_run(feed: SyncFeed, now: dt.datetime) -> dt.datetime:
    frequency = feed.schedule_frequency or DEFAULT_FREQUENCY
    try:
        return next_run(frequency, feed.schedule_time or DEFAULT_TIME_OF_DAY, feed.schedule_day_of_week, now=now)
    except ValueError:
        logger.warning(
            "Feed %s has an invalid schedule time %r; using %s",
            feed.name,
            feed.schedule_time,
            DEFAULT_TIME_OF_DAY,
        )
        return next_run(frequency, DEFAULT_TIME_OF_DAY, feed.schedule_day_of_week, now=now)
