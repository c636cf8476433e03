"""SQLite-backed persistence for listings, feeds and the sync run ledger."""

from __future__ import annotations

import datetime as dt
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from openpyxl import Workbook

from .models import (
    AgentRecord,
    ListingRecord,
    OfficeRecord,
    OpenHouseRecord,
    PhotoRecord,
    RecordError,
    SyncFeed,
    SyncLog,
    SyncStats,
)


SQLITE_PREFIX = "sqlite://"

LISTING_COLUMNS = (
    "mls_id",
    "internal_mls_id",
    "mls_board",
    "street_address",
    "unit_number",
    "city",
    "state",
    "zip",
    "latitude",
    "longitude",
    "status",
    "price",
    "listing_url",
    "virtual_tour_url",
    "property_type",
    "description",
    "bedrooms",
    "bathrooms",
    "full_bathrooms",
    "half_bathrooms",
    "living_area",
    "lot_size",
    "year_built",
    "pets_allowed",
    "agent_id",
    "office_id",
    "synced_at",
)

AGENT_COLUMNS = ("first_name", "last_name", "email", "license_num", "phone", "photo_url")

OFFICE_COLUMNS = (
    "name",
    "brokerage_name",
    "phone",
    "email",
    "street_address",
    "city",
    "state",
    "zip",
)

STAT_COLUMNS = tuple(SyncStats().as_dict().keys())

SYNC_LOG_COLUMNS = (
    "id",
    "status",
    "trigger_type",
    "triggered_by",
    "feed_id",
    "created_at",
    "started_at",
    "completed_at",
) + STAT_COLUMNS + ("error_message", "error_stack")


class SyncAlreadyRunningError(RuntimeError):
    """Raised when another sync already holds the single-flight slot."""


def resolve_sqlite_path(database_url: str) -> Path:
    """Translate a DATABASE_URL into a filesystem path."""
    if not database_url:
        raise ValueError("DATABASE_URL must not be empty")

    if database_url.startswith(SQLITE_PREFIX):
        raw_path = database_url[len(SQLITE_PREFIX) :]
        # Allow sqlite:///path/to/file and sqlite://path/to/file styles.
        if raw_path.startswith("/"):
            raw_path = raw_path[1:]
        path = Path(raw_path)
    else:
        path = Path(database_url)

    if not path.is_absolute():
        path = Path.cwd() / path

    return path.expanduser().resolve()


def utc_timestamp(moment: dt.datetime | None = None) -> str:
    """ISO-8601 UTC timestamp; comparable as text."""
    moment = moment or dt.datetime.now(dt.timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=dt.timezone.utc)
    return moment.astimezone(dt.timezone.utc).isoformat(timespec="microseconds")


@dataclass
class Database:
    """Thin wrapper around sqlite3 for listings and the sync ledger."""

    path: Path
    timeout: float = 30.0

    def connect(self) -> sqlite3.Connection:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.path, timeout=self.timeout)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def initialize(self) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS agents (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    first_name TEXT,
                    last_name TEXT,
                    email TEXT,
                    license_num TEXT,
                    phone TEXT,
                    photo_url TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_agents_email ON agents(email)")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS offices (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT,
                    brokerage_name TEXT,
                    phone TEXT,
                    email TEXT,
                    street_address TEXT,
                    city TEXT,
                    state TEXT,
                    zip TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_offices_name ON offices(name)")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS listings (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    mls_id TEXT NOT NULL UNIQUE,
                    internal_mls_id TEXT,
                    mls_board TEXT,
                    street_address TEXT NOT NULL,
                    unit_number TEXT,
                    city TEXT NOT NULL,
                    state TEXT NOT NULL,
                    zip TEXT NOT NULL,
                    latitude REAL,
                    longitude REAL,
                    status TEXT NOT NULL,
                    price REAL NOT NULL,
                    listing_url TEXT,
                    virtual_tour_url TEXT,
                    property_type TEXT,
                    description TEXT,
                    bedrooms INTEGER,
                    bathrooms REAL,
                    full_bathrooms INTEGER,
                    half_bathrooms INTEGER,
                    living_area INTEGER,
                    lot_size REAL,
                    year_built INTEGER,
                    pets_allowed INTEGER,
                    agent_id INTEGER REFERENCES agents(id),
                    office_id INTEGER REFERENCES offices(id),
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    synced_at TEXT NOT NULL
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_listings_status ON listings(status)")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS listing_photos (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    listing_id INTEGER NOT NULL REFERENCES listings(id) ON DELETE CASCADE,
                    url TEXT NOT NULL,
                    caption TEXT,
                    sort_order INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_photos_listing ON listing_photos(listing_id, sort_order)"
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS open_houses (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    listing_id INTEGER NOT NULL REFERENCES listings(id) ON DELETE CASCADE,
                    date TEXT NOT NULL,
                    start_time TEXT NOT NULL,
                    end_time TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_open_houses_listing ON open_houses(listing_id)"
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS sync_feeds (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    slug TEXT NOT NULL UNIQUE,
                    feed_url TEXT,
                    feed_type TEXT NOT NULL DEFAULT 'xml',
                    is_enabled INTEGER NOT NULL DEFAULT 1,
                    schedule_enabled INTEGER NOT NULL DEFAULT 0,
                    schedule_frequency TEXT NOT NULL DEFAULT 'daily',
                    schedule_time TEXT NOT NULL DEFAULT '03:00:00',
                    schedule_day_of_week INTEGER,
                    last_scheduled_run TEXT,
                    next_scheduled_run TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            # active_slot is 1 while a run is pending/running and NULL once terminal;
            # the UNIQUE constraint admits at most one non-terminal run.
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS sync_logs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    feed_id INTEGER REFERENCES sync_feeds(id) ON DELETE SET NULL,
                    status TEXT NOT NULL DEFAULT 'pending',
                    trigger_type TEXT NOT NULL,
                    triggered_by TEXT,
                    active_slot INTEGER UNIQUE,
                    created_at TEXT NOT NULL,
                    started_at TEXT,
                    completed_at TEXT,
                    listings_created INTEGER NOT NULL DEFAULT 0,
                    listings_updated INTEGER NOT NULL DEFAULT 0,
                    listings_deleted INTEGER NOT NULL DEFAULT 0,
                    agents_created INTEGER NOT NULL DEFAULT 0,
                    agents_updated INTEGER NOT NULL DEFAULT 0,
                    offices_created INTEGER NOT NULL DEFAULT 0,
                    offices_updated INTEGER NOT NULL DEFAULT 0,
                    photos_processed INTEGER NOT NULL DEFAULT 0,
                    open_houses_processed INTEGER NOT NULL DEFAULT 0,
                    error_message TEXT,
                    error_stack TEXT
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_sync_logs_status ON sync_logs(status)")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS sync_record_errors (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    sync_log_id INTEGER NOT NULL REFERENCES sync_logs(id) ON DELETE CASCADE,
                    mls_id TEXT,
                    message TEXT NOT NULL,
                    occurred_at TEXT NOT NULL
                )
                """
            )
            conn.commit()

    # ------------------------------------------------------------------
    # Run ledger

    def claim_sync_log(
        self,
        trigger: str,
        triggered_by: str | None = None,
        feed_id: int | None = None,
    ) -> int:
        """Insert a pending ledger entry holding the single-flight slot."""
        try:
            with self.connect() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO sync_logs (feed_id, status, trigger_type, triggered_by, active_slot, created_at)
                    VALUES (?, 'pending', ?, ?, 1, ?)
                    """,
                    (feed_id, trigger, triggered_by, utc_timestamp()),
                )
                conn.commit()
                return int(cursor.lastrowid)
        except sqlite3.IntegrityError as exc:
            raise SyncAlreadyRunningError("A sync is already running") from exc

    def mark_sync_running(self, sync_log_id: int) -> None:
        with self.connect() as conn:
            conn.execute(
                "UPDATE sync_logs SET status = 'running', started_at = ? WHERE id = ?",
                (utc_timestamp(), sync_log_id),
            )
            conn.commit()

    def finish_sync_log(
        self,
        sync_log_id: int,
        status: str,
        stats: SyncStats,
        error_message: str | None = None,
        error_stack: str | None = None,
    ) -> None:
        """Record a terminal state and release the single-flight slot."""
        assignments = ", ".join(f"{column} = ?" for column in STAT_COLUMNS)
        counters = stats.as_dict()
        with self.connect() as conn:
            conn.execute(
                f"""
                UPDATE sync_logs
                SET status = ?, completed_at = ?, active_slot = NULL,
                    error_message = ?, error_stack = ?, {assignments}
                WHERE id = ?
                """,
                (
                    status,
                    utc_timestamp(),
                    error_message,
                    error_stack,
                    *(counters[column] for column in STAT_COLUMNS),
                    sync_log_id,
                ),
            )
            conn.commit()

    def reconcile_stale_runs(self, started_before: str) -> int:
        """Fail non-terminal runs created before the cutoff and free their slot."""
        with self.connect() as conn:
            cursor = conn.execute(
                """
                UPDATE sync_logs
                SET status = 'failed', completed_at = ?, active_slot = NULL,
                    error_message = 'Sync abandoned before reaching a terminal state'
                WHERE status IN ('pending', 'running') AND created_at < ?
                """,
                (utc_timestamp(), started_before),
            )
            conn.commit()
            return cursor.rowcount

    def add_record_error(self, sync_log_id: int, mls_id: str | None, message: str) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO sync_record_errors (sync_log_id, mls_id, message, occurred_at)
                VALUES (?, ?, ?, ?)
                """,
                (sync_log_id, mls_id, message, utc_timestamp()),
            )
            conn.commit()

    def fetch_record_errors(self, sync_log_id: int) -> List[RecordError]:
        with self.connect() as conn:
            rows = conn.execute(
                "SELECT mls_id, message FROM sync_record_errors WHERE sync_log_id = ? ORDER BY id",
                (sync_log_id,),
            ).fetchall()
        return [RecordError(mls_id=row["mls_id"], message=row["message"]) for row in rows]

    def get_sync_log(self, sync_log_id: int) -> Optional[SyncLog]:
        with self.connect() as conn:
            row = conn.execute(
                f"SELECT {', '.join(SYNC_LOG_COLUMNS)} FROM sync_logs WHERE id = ?",
                (sync_log_id,),
            ).fetchone()
        return _row_to_sync_log(row) if row else None

    def recent_sync_logs(self, limit: int = 10) -> List[SyncLog]:
        with self.connect() as conn:
            rows = conn.execute(
                f"SELECT {', '.join(SYNC_LOG_COLUMNS)} FROM sync_logs ORDER BY id DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [_row_to_sync_log(row) for row in rows]

    def last_completed_sync(self) -> Optional[SyncLog]:
        with self.connect() as conn:
            row = conn.execute(
                f"""
                SELECT {', '.join(SYNC_LOG_COLUMNS)} FROM sync_logs
                WHERE status = 'completed'
                ORDER BY completed_at DESC, id DESC
                LIMIT 1
                """
            ).fetchone()
        return _row_to_sync_log(row) if row else None

    def is_sync_running(self) -> bool:
        with self.connect() as conn:
            row = conn.execute(
                "SELECT id FROM sync_logs WHERE status = 'running' LIMIT 1"
            ).fetchone()
        return row is not None

    def export_sync_logs_to_xlsx(self, path: Path) -> None:
        """Write the run ledger to an Excel workbook."""
        workbook = Workbook()
        worksheet = workbook.active
        worksheet.title = "sync_logs"
        worksheet.append(list(SYNC_LOG_COLUMNS))
        with self.connect() as conn:
            for row in conn.execute(
                f"SELECT {', '.join(SYNC_LOG_COLUMNS)} FROM sync_logs ORDER BY id"
            ):
                worksheet.append([row[column] for column in SYNC_LOG_COLUMNS])
        path.parent.mkdir(parents=True, exist_ok=True)
        workbook.save(path)

    # ------------------------------------------------------------------
    # Feed configuration

    def add_feed(
        self,
        name: str,
        slug: str,
        feed_url: str | None = None,
        feed_type: str = "xml",
        is_enabled: bool = True,
    ) -> int:
        now = utc_timestamp()
        with self.connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO sync_feeds (name, slug, feed_url, feed_type, is_enabled, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (name, slug, feed_url, feed_type, int(is_enabled), now, now),
            )
            conn.commit()
            return int(cursor.lastrowid)

    def get_feed(self, feed_id: int) -> Optional[SyncFeed]:
        with self.connect() as conn:
            row = conn.execute("SELECT * FROM sync_feeds WHERE id = ?", (feed_id,)).fetchone()
        return _row_to_feed(row) if row else None

    def fetch_due_feeds(self, now: str) -> List[SyncFeed]:
        with self.connect() as conn:
            rows = conn.execute(
                """
                SELECT * FROM sync_feeds
                WHERE is_enabled = 1
                  AND schedule_enabled = 1
                  AND next_scheduled_run IS NOT NULL
                  AND next_scheduled_run <= ?
                ORDER BY id
                """,
                (now,),
            ).fetchall()
        return [_row_to_feed(row) for row in rows]

    def update_feed_schedule(
        self,
        feed_id: int,
        schedule_enabled: bool,
        frequency: str,
        time_of_day: str,
        day_of_week: int | None,
        next_scheduled_run: str | None,
    ) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                UPDATE sync_feeds
                SET schedule_enabled = ?, schedule_frequency = ?, schedule_time = ?,
                    schedule_day_of_week = ?, next_scheduled_run = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    int(schedule_enabled),
                    frequency,
                    time_of_day,
                    day_of_week,
                    next_scheduled_run,
                    utc_timestamp(),
                    feed_id,
                ),
            )
            conn.commit()

    def record_scheduled_run(self, feed_id: int, ran_at: str, next_scheduled_run: str) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                UPDATE sync_feeds
                SET last_scheduled_run = ?, next_scheduled_run = ?, updated_at = ?
                WHERE id = ?
                """,
                (ran_at, next_scheduled_run, ran_at, feed_id),
            )
            conn.commit()

    # ------------------------------------------------------------------
    # Listing writes; callers own the transaction on ``conn``.

    def find_agent_id_by_email(self, conn: sqlite3.Connection, email: str) -> Optional[int]:
        row = conn.execute("SELECT id FROM agents WHERE email = ? LIMIT 1", (email,)).fetchone()
        return int(row["id"]) if row else None

    def insert_agent(self, conn: sqlite3.Connection, values: Mapping[str, Any]) -> int:
        return _insert(conn, "agents", AGENT_COLUMNS, values, timestamps=("created_at", "updated_at"))

    def find_office_id_by_name(self, conn: sqlite3.Connection, name: str) -> Optional[int]:
        row = conn.execute("SELECT id FROM offices WHERE name = ? LIMIT 1", (name,)).fetchone()
        return int(row["id"]) if row else None

    def insert_office(self, conn: sqlite3.Connection, values: Mapping[str, Any]) -> int:
        return _insert(conn, "offices", OFFICE_COLUMNS, values, timestamps=("created_at", "updated_at"))

    def find_listing_id(self, conn: sqlite3.Connection, mls_id: str) -> Optional[int]:
        row = conn.execute("SELECT id FROM listings WHERE mls_id = ? LIMIT 1", (mls_id,)).fetchone()
        return int(row["id"]) if row else None

    def insert_listing(self, conn: sqlite3.Connection, values: Mapping[str, Any]) -> int:
        return _insert(conn, "listings", LISTING_COLUMNS, values, timestamps=("created_at", "updated_at"))

    def update_listing(self, conn: sqlite3.Connection, listing_id: int, values: Mapping[str, Any]) -> None:
        assignments = ", ".join(f"{column} = ?" for column in LISTING_COLUMNS)
        conn.execute(
            f"UPDATE listings SET {assignments}, updated_at = ? WHERE id = ?",
            (*(values.get(column) for column in LISTING_COLUMNS), utc_timestamp(), listing_id),
        )

    def delete_listing_children(self, conn: sqlite3.Connection, listing_id: int) -> None:
        conn.execute("DELETE FROM listing_photos WHERE listing_id = ?", (listing_id,))
        conn.execute("DELETE FROM open_houses WHERE listing_id = ?", (listing_id,))

    def insert_photos(
        self, conn: sqlite3.Connection, listing_id: int, photos: Sequence[PhotoRecord]
    ) -> None:
        now = utc_timestamp()
        conn.executemany(
            """
            INSERT INTO listing_photos (listing_id, url, caption, sort_order, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            [(listing_id, photo.url, photo.caption, photo.sort_order, now) for photo in photos],
        )

    def insert_open_houses(
        self, conn: sqlite3.Connection, listing_id: int, open_houses: Sequence[OpenHouseRecord]
    ) -> None:
        now = utc_timestamp()
        conn.executemany(
            """
            INSERT INTO open_houses (listing_id, date, start_time, end_time, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            [
                (listing_id, item.date, item.start_time, item.end_time, now)
                for item in open_houses
            ],
        )

    # ------------------------------------------------------------------
    # Reads

    def fetch_listings(self) -> Dict[str, ListingRecord]:
        """Return listings keyed by mls_id."""
        with self.connect() as conn:
            rows = conn.execute("SELECT * FROM listings ORDER BY id").fetchall()
        records = {}
        for row in rows:
            data = dict(row)
            record = ListingRecord(
                id=data.pop("id"),
                mls_id=data.pop("mls_id"),
                street_address=data.pop("street_address"),
                city=data.pop("city"),
                state=data.pop("state"),
                zip=data.pop("zip"),
                status=data.pop("status"),
                price=data.pop("price"),
                agent_id=data.pop("agent_id"),
                office_id=data.pop("office_id"),
                created_at=data.pop("created_at"),
                updated_at=data.pop("updated_at"),
                synced_at=data.pop("synced_at"),
                attributes=data,
            )
            records[record.mls_id] = record
        return records

    def fetch_photos(self, mls_id: str) -> List[PhotoRecord]:
        with self.connect() as conn:
            rows = conn.execute(
                """
                SELECT p.url, p.caption, p.sort_order
                FROM listing_photos p JOIN listings l ON l.id = p.listing_id
                WHERE l.mls_id = ?
                ORDER BY p.sort_order, p.id
                """,
                (mls_id,),
            ).fetchall()
        return [PhotoRecord(url=row[0], caption=row[1], sort_order=row[2]) for row in rows]

    def fetch_open_houses(self, mls_id: str) -> List[OpenHouseRecord]:
        with self.connect() as conn:
            rows = conn.execute(
                """
                SELECT o.date, o.start_time, o.end_time
                FROM open_houses o JOIN listings l ON l.id = o.listing_id
                WHERE l.mls_id = ?
                ORDER BY o.id
                """,
                (mls_id,),
            ).fetchall()
        return [OpenHouseRecord(date=row[0], start_time=row[1], end_time=row[2]) for row in rows]

    def fetch_agents(self) -> List[AgentRecord]:
        with self.connect() as conn:
            rows = conn.execute(
                f"SELECT id, {', '.join(AGENT_COLUMNS)} FROM agents ORDER BY id"
            ).fetchall()
        return [AgentRecord(**dict(row)) for row in rows]

    def fetch_offices(self) -> List[OfficeRecord]:
        with self.connect() as conn:
            rows = conn.execute(
                f"SELECT id, {', '.join(OFFICE_COLUMNS)} FROM offices ORDER BY id"
            ).fetchall()
        return [OfficeRecord(**dict(row)) for row in rows]

    def listing_totals(self) -> Dict[str, Any]:
        """Aggregate counts for operational dashboards."""
        with self.connect() as conn:
            totals = {
                table: conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
                for table in ("listings", "agents", "offices", "listing_photos")
            }
            by_status = {
                row[0] or "unknown": row[1]
                for row in conn.execute(
                    "SELECT status, COUNT(*) FROM listings GROUP BY status ORDER BY status"
                )
            }
            last_updated = conn.execute("SELECT MAX(updated_at) FROM listings").fetchone()[0]
        return {"totals": totals, "by_status": by_status, "last_updated": last_updated}


def _insert(
    conn: sqlite3.Connection,
    table: str,
    columns: Iterable[str],
    values: Mapping[str, Any],
    timestamps: Sequence[str] = (),
) -> int:
    columns = tuple(columns) + tuple(timestamps)
    now = utc_timestamp()
    params = [values.get(column) for column in columns[: len(columns) - len(timestamps)]]
    params.extend(now for _ in timestamps)
    placeholders = ", ".join("?" for _ in columns)
    cursor = conn.execute(
        f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})",
        params,
    )
    return int(cursor.lastrowid)


def _row_to_sync_log(row: sqlite3.Row) -> SyncLog:
    return SyncLog(
        id=row["id"],
        status=row["status"],
        trigger=row["trigger_type"],
        triggered_by=row["triggered_by"],
        feed_id=row["feed_id"],
        created_at=row["created_at"],
        started_at=row["started_at"],
        completed_at=row["completed_at"],
        stats=SyncStats(**{column: row[column] for column in STAT_COLUMNS}),
        error_message=row["error_message"],
        error_stack=row["error_stack"],
    )


def _row_to_feed(row: sqlite3.Row) -> SyncFeed:
    return SyncFeed(
        id=row["id"],
        name=row["name"],
        slug=row["slug"],
        feed_url=row["feed_url"],
        feed_type=row["feed_type"],
        is_enabled=bool(row["is_enabled"]),
        schedule_enabled=bool(row["schedule_enabled"]),
        schedule_frequency=row["schedule_frequency"],
        schedule_time=row["schedule_time"],
        schedule_day_of_week=row["schedule_day_of_week"],
        last_scheduled_run=row["last_scheduled_run"],
        next_scheduled_run=row["next_scheduled_run"],
    )
