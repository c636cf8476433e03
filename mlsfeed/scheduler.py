"""Next-run computation for scheduled feed syncs.

All arithmetic happens in UTC. ``day_of_week`` follows the feed
configuration convention: 0 = Sunday through 6 = Saturday.
"""

from __future__ import annotations

import datetime as dt
from typing import Optional, Tuple

FREQUENCIES = ("hourly", "every_6_hours", "every_12_hours", "daily", "weekly")
DEFAULT_FREQUENCY = "daily"
DEFAULT_TIME_OF_DAY = "03:00:00"


def parse_time_of_day(value: str) -> Tuple[int, int]:
    """Parse "HH:MM" or "HH:MM:SS"; seconds are accepted but ignored."""
    parts = (value or "").strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid time of day: {value!r}")
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError as exc:
        raise ValueError(f"Invalid time of day: {value!r}") from exc
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValueError(f"Invalid time of day: {value!r}")
    return hours, minutes


def next_run(
    frequency: str,
    time_of_day: str = DEFAULT_TIME_OF_DAY,
    day_of_week: Optional[int] = None,
    now: Optional[dt.datetime] = None,
) -> dt.datetime:
    """Return the next scheduled invocation strictly after ``now``."""
    now = _as_utc(now or dt.datetime.now(dt.timezone.utc))
    top_of_hour = now.replace(minute=0, second=0, microsecond=0)

    if frequency == "hourly":
        return top_of_hour + dt.timedelta(hours=1)

    if frequency == "every_6_hours":
        return _next_boundary(top_of_hour, 6)

    if frequency == "every_12_hours":
        return _next_boundary(top_of_hour, 12)

    hours, minutes = parse_time_of_day(time_of_day)
    candidate = now.replace(hour=hours, minute=minutes, second=0, microsecond=0)

    if frequency == "weekly":
        target = 0 if day_of_week is None else int(day_of_week) % 7
        current = (now.weekday() + 1) % 7  # Monday=0 -> Sunday-based index
        days_until = target - current
        if days_until < 0 or (days_until == 0 and candidate <= now):
            days_until += 7
        return candidate + dt.timedelta(days=days_until)

    # "daily" and anything unrecognised.
    if candidate <= now:
        candidate += dt.timedelta(days=1)
    return candidate


def _next_boundary(top_of_hour: dt.datetime, step: int) -> dt.datetime:
    midnight = top_of_hour.replace(hour=0)
    boundary = (top_of_hour.hour // step + 1) * step
    return midnight + dt.timedelta(hours=boundary)


def _as_utc(moment: dt.datetime) -> dt.datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=dt.timezone.utc)
    return moment.astimezone(dt.timezone.utc)
