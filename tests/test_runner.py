import datetime as dt
import sqlite3

import pytest

from mlsfeed.config import SyncConfig
from mlsfeed.db import Database, SyncAlreadyRunningError, utc_timestamp
from mlsfeed.feed import FeedFetchError
from mlsfeed.models import SyncOptions, SyncStats
from mlsfeed.runner import FeedSyncRunner

DEFAULT_URL = "https://feeds.example.com/default.xml"


def listing_xml(mls_id: str, price: str = "450000", photos=(), extra: str = "") -> str:
    pictures = "".join(f"<Picture><PictureUrl>{url}</PictureUrl></Picture>" for url in photos)
    return f"""
  <Listing>
    <Location>
      <StreetAddress>{mls_id} Lake Dr</StreetAddress>
      <City>Madison</City><State>WI</State><Zip>53703</Zip>
    </Location>
    <ListingDetails><MlsId>{mls_id}</MlsId><Status>Active</Status><Price>{price}</Price></ListingDetails>
    <Agent><FirstName>Lee</FirstName><EmailAddress>lee@example.com</EmailAddress></Agent>
    <Office><OfficeName>Lakeside Homes</OfficeName></Office>
    <Pictures>{pictures}</Pictures>
    {extra}
  </Listing>"""


def feed_xml(*listings: str) -> str:
    return "<Listings>" + "".join(listings) + "</Listings>"


SAMPLE_FEED = feed_xml(
    listing_xml("W-1", photos=["https://img.example.com/w1-a.jpg", "https://img.example.com/w1-b.jpg"]),
    listing_xml(
        "W-2",
        extra="<OpenHouses><OpenHouse><Date>2024-07-06</Date>"
        "<StartTime>11:00</StartTime><EndTime>13:00</EndTime></OpenHouse></OpenHouses>",
    ),
)


def build_runner(tmp_path, fetcher=None, default_feed_url=DEFAULT_URL) -> FeedSyncRunner:
    database = Database(path=tmp_path / "runs.db")
    runner = FeedSyncRunner(
        database=database,
        config=SyncConfig(default_feed_url=default_feed_url),
        fetcher=fetcher or (lambda url: SAMPLE_FEED),
    )
    runner.init()
    return runner


def test_runner_initializes_schema(tmp_path):
    runner = build_runner(tmp_path)
    assert runner.database.path.exists()


def test_run_sync_persists_listings_and_ledger(tmp_path):
    runner = build_runner(tmp_path)

    result = runner.run_sync()

    assert result.success is True
    assert result.error_message is None
    assert result.record_errors == []
    assert result.duration >= 0
    stats = result.stats
    assert stats.listings_created == 2
    assert stats.listings_updated == 0
    assert stats.agents_created == 1
    assert stats.agents_updated == 1
    assert stats.offices_created == 1
    assert stats.offices_updated == 1
    assert stats.photos_processed == 2
    assert stats.open_houses_processed == 1
    assert stats.listings_deleted == 0

    log = runner.get_sync_status(result.sync_log_id)
    assert log.status == "completed"
    assert log.trigger == "manual"
    assert log.stats == stats
    assert runner.is_sync_running() is False

    assert sorted(runner.database.fetch_listings()) == ["W-1", "W-2"]
    assert [p.sort_order for p in runner.database.fetch_photos("W-1")] == [0, 1]


def test_second_run_updates_without_creating(tmp_path):
    runner = build_runner(tmp_path)
    runner.run_sync()

    result = runner.run_sync()

    assert result.stats.listings_created == 0
    assert result.stats.listings_updated == 2
    assert result.stats.agents_created == 0
    assert result.stats.offices_created == 0
    assert len(runner.database.fetch_listings()) == 2
    assert len(runner.database.fetch_agents()) == 1
    assert len(runner.database.fetch_offices()) == 1
    assert len(runner.database.fetch_photos("W-1")) == 2


def test_photo_set_is_replaced_on_resync(tmp_path):
    feeds = iter([
        feed_xml(listing_xml("W-1", photos=["https://img.example.com/old-1.jpg", "https://img.example.com/old-2.jpg"])),
        feed_xml(listing_xml("W-1", price="440000", photos=["https://img.example.com/new.jpg"])),
    ])
    runner = build_runner(tmp_path, fetcher=lambda url: next(feeds))

    runner.run_sync()
    runner.run_sync()

    assert [p.url for p in runner.database.fetch_photos("W-1")] == ["https://img.example.com/new.jpg"]
    assert runner.database.fetch_listings()["W-1"].price == 440000.0


def test_bad_record_does_not_abort_the_run(tmp_path):
    broken = """
  <Listing>
    <Location><StreetAddress>9 Nowhere</StreetAddress><City>Madison</City><State>WI</State><Zip>53703</Zip></Location>
    <ListingDetails><MlsId>BAD-1</MlsId><Status>Active</Status></ListingDetails>
    <Agent><FirstName>Ghost</FirstName><EmailAddress>ghost@example.com</EmailAddress></Agent>
    <Pictures><Picture><PictureUrl>https://img.example.com/ghost.jpg</PictureUrl></Picture></Pictures>
  </Listing>"""
    missing_id = "<Listing><ListingDetails><Price>1</Price></ListingDetails></Listing>"
    feed = feed_xml(listing_xml("W-1"), broken, missing_id, listing_xml("W-3"))
    runner = build_runner(tmp_path, fetcher=lambda url: feed)

    result = runner.run_sync()

    assert result.success is True
    assert result.stats.listings_created == 2
    assert [error.mls_id for error in result.record_errors] == ["BAD-1", None]
    assert sorted(runner.database.fetch_listings()) == ["W-1", "W-3"]
    # The failed listing's agent and photos were rolled back with it.
    assert [agent.email for agent in runner.database.fetch_agents()] == ["lee@example.com"]
    assert result.stats.agents_created == 1
    assert result.stats.photos_processed == 0
    assert runner.database.fetch_record_errors(result.sync_log_id) == result.record_errors
    assert runner.get_sync_status(result.sync_log_id).status == "completed"


def test_progress_is_reported_per_record(tmp_path):
    runner = build_runner(tmp_path)
    calls = []

    runner.run_sync(SyncOptions(on_progress=lambda current, total: calls.append((current, total))))

    assert calls == [(1, 2), (2, 2)]


def test_failing_progress_callback_is_ignored(tmp_path, caplog):
    runner = build_runner(tmp_path)

    def explode(current, total):
        raise RuntimeError("ui went away")

    result = runner.run_sync(SyncOptions(on_progress=explode))

    assert result.success is True
    assert result.stats.listings_created == 2
    assert "Progress callback raised" in caplog.text


def test_missing_feed_url_fails_the_run(tmp_path):
    runner = build_runner(tmp_path, default_feed_url=None)

    result = runner.run_sync()

    assert result.success is False
    assert "No feed URL configured" in result.error_message
    assert result.error_stack
    assert result.stats == SyncStats()
    log = runner.get_sync_status(result.sync_log_id)
    assert log.status == "failed"
    assert log.error_message == result.error_message
    assert runner.get_last_sync() is None


def test_fetch_failure_is_recorded(tmp_path):
    def failing_fetch(url):
        raise FeedFetchError("Failed to fetch feed: 500 Internal Server Error")

    runner = build_runner(tmp_path, fetcher=failing_fetch)

    result = runner.run_sync()

    assert result.success is False
    assert result.error_message == "Failed to fetch feed: 500 Internal Server Error"
    assert runner.database.fetch_listings() == {}
    # The slot was released, so another run may start.
    assert runner.run_sync().success is False


def test_unparseable_feed_is_recorded(tmp_path):
    runner = build_runner(tmp_path, fetcher=lambda url: "<Feed><Item/></Feed>")

    result = runner.run_sync()

    assert result.success is False
    assert "Listings" in result.error_message


def test_truncated_feed_fails_without_touching_listings(tmp_path):
    feeds = iter([SAMPLE_FEED, SAMPLE_FEED[: SAMPLE_FEED.index("</Pictures>")]])
    runner = build_runner(tmp_path, fetcher=lambda url: next(feeds))
    runner.run_sync()

    result = runner.run_sync()

    assert result.success is False
    assert "could not be parsed" in result.error_message
    assert result.stats == SyncStats()
    assert runner.get_sync_status(result.sync_log_id).status == "failed"
    assert len(runner.database.fetch_photos("W-1")) == 2
    assert len(runner.database.fetch_open_houses("W-2")) == 1


def test_feed_url_precedence(tmp_path):
    requested = []

    def fetcher(url):
        requested.append(url)
        return feed_xml()

    runner = build_runner(tmp_path, fetcher=fetcher)
    feed_id = runner.database.add_feed("Primary", "primary", feed_url="https://feeds.example.com/primary.xml")
    bare_feed_id = runner.database.add_feed("Bare", "bare")

    runner.run_sync(SyncOptions(feed_id=feed_id, feed_url="https://feeds.example.com/override.xml"))
    runner.run_sync(SyncOptions(feed_id=feed_id))
    runner.run_sync(SyncOptions(feed_id=bare_feed_id))
    runner.run_sync()

    assert requested == [
        "https://feeds.example.com/override.xml",
        "https://feeds.example.com/primary.xml",
        DEFAULT_URL,
        DEFAULT_URL,
    ]


def test_inline_content_skips_fetching(tmp_path):
    def fetcher(url):
        raise AssertionError("fetcher should not be called")

    runner = build_runner(tmp_path, fetcher=fetcher)

    result = runner.run_sync(SyncOptions(feed_content=SAMPLE_FEED.encode("utf-8"), trigger="webhook"))

    assert result.success is True
    assert runner.get_sync_status(result.sync_log_id).trigger == "webhook"


def test_concurrent_run_is_rejected(tmp_path):
    runner = build_runner(tmp_path)
    held = runner.database.claim_sync_log("manual")

    with pytest.raises(SyncAlreadyRunningError):
        runner.run_sync()

    assert [log.id for log in runner.get_recent_sync_logs()] == [held]


def test_stale_run_is_recovered_before_claiming(tmp_path):
    runner = build_runner(tmp_path)
    stale = runner.database.claim_sync_log("scheduled")
    runner.database.mark_sync_running(stale)

    later = dt.datetime.now(dt.timezone.utc) + runner.config.stale_run_after + dt.timedelta(minutes=1)
    assert runner.recover_stale_runs(now=later) == 1
    assert runner.get_sync_status(stale).status == "failed"

    assert runner.run_sync().success is True


def test_sync_history_is_newest_first(tmp_path):
    runner = build_runner(tmp_path)
    ids = [runner.run_sync().sync_log_id for _ in range(3)]

    assert [log.id for log in runner.get_recent_sync_logs(2)] == [ids[2], ids[1]]
    assert runner.get_last_sync().id == ids[2]


def test_update_feed_schedule(tmp_path):
    runner = build_runner(tmp_path)
    feed_id = runner.database.add_feed("Primary", "primary")
    now = dt.datetime(2024, 1, 3, 8, 15, tzinfo=dt.timezone.utc)

    next_scheduled = runner.update_feed_schedule(feed_id, True, "every_6_hours", now=now)
    assert next_scheduled == utc_timestamp(dt.datetime(2024, 1, 3, 12, 0, tzinfo=dt.timezone.utc))

    feed = runner.database.get_feed(feed_id)
    assert feed.schedule_enabled is True
    assert feed.schedule_frequency == "every_6_hours"
    assert feed.next_scheduled_run == next_scheduled

    assert runner.update_feed_schedule(feed_id, False, now=now) is None
    assert runner.database.get_feed(feed_id).next_scheduled_run is None


def test_run_scheduled_feeds_runs_due_feeds_and_reschedules(tmp_path):
    requested = []

    def fetcher(url):
        requested.append(url)
        return SAMPLE_FEED

    runner = build_runner(tmp_path, fetcher=fetcher)
    due_id = runner.database.add_feed("Due", "due", feed_url="https://feeds.example.com/due.xml")
    later_id = runner.database.add_feed("Later", "later", feed_url="https://feeds.example.com/later.xml")

    configured_at = dt.datetime(2024, 1, 3, 8, 15, tzinfo=dt.timezone.utc)
    runner.update_feed_schedule(due_id, True, "hourly", now=configured_at)
    runner.update_feed_schedule(later_id, True, "daily", "23:00", now=configured_at)

    now = dt.datetime(2024, 1, 3, 9, 5, tzinfo=dt.timezone.utc)
    results = runner.run_scheduled_feeds(now=now)

    assert list(results) == [due_id]
    assert results[due_id].success is True
    assert requested == ["https://feeds.example.com/due.xml"]

    log = runner.get_sync_status(results[due_id].sync_log_id)
    assert log.trigger == "scheduled"
    assert log.feed_id == due_id

    feed = runner.database.get_feed(due_id)
    assert feed.last_scheduled_run == utc_timestamp(now)
    assert feed.next_scheduled_run == utc_timestamp(dt.datetime(2024, 1, 3, 10, 0, tzinfo=dt.timezone.utc))
    assert runner.run_scheduled_feeds(now=now) == {}


def test_run_scheduled_feeds_skips_when_sync_is_running(tmp_path):
    runner = build_runner(tmp_path)
    feed_id = runner.database.add_feed("Due", "due")
    runner.update_feed_schedule(
        feed_id, True, "hourly", now=dt.datetime(2024, 1, 3, 8, 15, tzinfo=dt.timezone.utc)
    )
    runner.database.claim_sync_log("manual")
    before = runner.database.get_feed(feed_id).next_scheduled_run

    results = runner.run_scheduled_feeds(now=dt.datetime(2024, 1, 3, 9, 5, tzinfo=dt.timezone.utc))

    assert results == {}
    assert runner.database.get_feed(feed_id).next_scheduled_run == before


def test_ledger_write_failure_releases_the_slot(tmp_path, monkeypatch):
    feed = feed_xml(listing_xml("W-1"), "<Listing><ListingDetails><Price>1</Price></ListingDetails></Listing>")
    runner = build_runner(tmp_path, fetcher=lambda url: feed)

    def locked(*args, **kwargs):
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(runner.database, "add_record_error", locked)

    result = runner.run_sync()

    assert result.success is False
    assert result.error_message == "database is locked"
    assert result.error_stack
    assert result.stats.listings_created == 1
    log = runner.get_sync_status(result.sync_log_id)
    assert log.status == "failed"
    assert log.stats.listings_created == 1
    assert runner.is_sync_running() is False

    monkeypatch.undo()
    retry = runner.run_sync()
    assert retry.success is True
    assert [error.mls_id for error in retry.record_errors] == [None]


def test_update_feed_schedule_rejects_bad_time(tmp_path):
    runner = build_runner(tmp_path)
    feed_id = runner.database.add_feed("Primary", "primary")

    for enabled in (True, False):
        with pytest.raises(ValueError):
            runner.update_feed_schedule(feed_id, enabled, "daily", "25:00")

    assert runner.database.get_feed(feed_id).schedule_time == "03:00:00"


def test_scheduled_feed_with_bad_stored_time_still_advances(tmp_path, caplog):
    runner = build_runner(tmp_path)
    feed_id = runner.database.add_feed("Due", "due")
    runner.database.update_feed_schedule(
        feed_id, True, "daily", "noon", None, "2024-01-03T00:00:00.000000+00:00"
    )
    now = dt.datetime(2024, 1, 3, 9, 5, tzinfo=dt.timezone.utc)

    results = runner.run_scheduled_feeds(now=now)

    assert results[feed_id].success is True
    feed = runner.database.get_feed(feed_id)
    assert feed.last_scheduled_run == utc_timestamp(now)
    assert feed.next_scheduled_run == utc_timestamp(dt.datetime(2024, 1, 4, 3, 0, tzinfo=dt.timezone.utc))
    assert "invalid schedule time" in caplog.text
    assert runner.run_scheduled_feeds(now=now) == {}
