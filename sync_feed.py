"""CLI entrypoint for the MLS feed sync engine."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from mlsfeed.config import SyncConfig
from mlsfeed.db import Database, SyncAlreadyRunningError, resolve_sqlite_path
from mlsfeed.models import SYNC_TRIGGERS, SyncLog, SyncOptions
from mlsfeed.runner import FeedSyncRunner

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="MLS listing feed sync")
    parser.add_argument("--init", action="store_true", help="initialize storage and exit")
    parser.add_argument("--run", action="store_true", help="execute one sync run")
    parser.add_argument(
        "--scheduled",
        action="store_true",
        help="run every configured feed whose schedule is due",
    )
    parser.add_argument("--feed-id", type=int, help="configured feed to sync")
    parser.add_argument("--feed-url", help="feed URL (overrides the configured feed and MLS_FEED_URL)")
    parser.add_argument("--feed-file", type=Path, help="read feed XML from a local file")
    parser.add_argument("--trigger", choices=SYNC_TRIGGERS, default="manual")
    parser.add_argument("--triggered-by", help="principal recorded on the run ledger")
    parser.add_argument(
        "--status",
        nargs="?",
        const=0,
        type=int,
        metavar="ID",
        help="show a sync run (default: the last completed run)",
    )
    parser.add_argument("--history", type=int, metavar="N", help="list the N most recent runs")
    parser.add_argument("--export", type=Path, metavar="PATH", help="export the run ledger to .xlsx")
    parser.add_argument("--verbose", action="store_true", help="enable debug logging")
    return parser


def format_sync_log(log: SyncLog) -> str:
    stats = log.stats
    line = (
        f"#{log.id} {log.status} ({log.trigger}) created={log.created_at} "
        f"completed={log.completed_at or '-'} "
        f"listings(+{stats.listings_created} / ~{stats.listings_updated}) "
        f"agents(+{stats.agents_created} / ~{stats.agents_updated}) "
        f"offices(+{stats.offices_created} / ~{stats.offices_updated}) "
        f"photos={stats.photos_processed} open_houses={stats.open_houses_processed}"
    )
    if log.error_message:
        line += f" error={log.error_message}"
    return line


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    config = SyncConfig.from_env()
    database = Database(path=resolve_sqlite_path(config.database_url))
    runner = FeedSyncRunner(database=database, config=config)

    if args.init:
        runner.init()
        return 0

    if args.status is not None:
        log = runner.get_sync_status(args.status) if args.status else runner.get_last_sync()
        if log is None:
            logger.info("No matching sync run found.")
            return 1
        logger.info("%s", format_sync_log(log))
        logger.info("Sync currently running: %s", "yes" if runner.is_sync_running() else "no")
        return 0

    if args.history:
        for log in runner.get_recent_sync_logs(args.history):
            logger.info("%s", format_sync_log(log))
        return 0

    if args.export:
        database.export_sync_logs_to_xlsx(args.export)
        logger.info("Exported run ledger to %s", args.export)
        return 0

    if args.scheduled:
        runner.init()
        results = runner.run_scheduled_feeds()
        return 0 if all(result.success for result in results.values()) else 1

    if not args.run:
        parser.print_help()
        return 1

    runner.init()
    options = SyncOptions(
        trigger=args.trigger,
        triggered_by=args.triggered_by,
        feed_id=args.feed_id,
        feed_url=args.feed_url,
        feed_content=args.feed_file.read_bytes() if args.feed_file else None,
    )
    try:
        result = runner.run_sync(options)
    except SyncAlreadyRunningError:
        logger.error("A sync is already running; try again later.")
        return 2

    if not result.success:
        logger.error("Sync failed: %s", result.error_message)
        return 1

    for error in result.record_errors:
        logger.warning("Listing %s skipped: %s", error.mls_id or "<unknown>", error.message)
    logger.info("Sync finished in %dms: %s", result.duration, result.stats.as_dict())
    return 0


if __name__ == "__main__":
    sys.exit(main())
