"""Runtime configuration for the sync engine."""

from __future__ import annotations

import datetime as dt
import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_DATABASE_URL = "sqlite:///mls_feed.db"
DEFAULT_TIMEOUT = 60
DEFAULT_STALE_MINUTES = 120


@dataclass(frozen=True)
class SyncConfig:
    """Process-wide settings handed to the orchestrator explicitly."""

    database_url: str = DEFAULT_DATABASE_URL
    default_feed_url: Optional[str] = None
    request_timeout: int = DEFAULT_TIMEOUT
    stale_run_after: dt.timedelta = dt.timedelta(minutes=DEFAULT_STALE_MINUTES)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "SyncConfig":
        env = os.environ if environ is None else environ
        return cls(
            database_url=env.get("DATABASE_URL", DEFAULT_DATABASE_URL),
            default_feed_url=env.get("MLS_FEED_URL") or None,
            request_timeout=_int_setting(env, "FEED_TIMEOUT_SECONDS", DEFAULT_TIMEOUT),
            stale_run_after=dt.timedelta(
                minutes=_int_setting(env, "STALE_SYNC_MINUTES", DEFAULT_STALE_MINUTES)
            ),
        )


def _int_setting(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc
