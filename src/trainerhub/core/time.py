"""
Timestamp helpers.

TrainerHub stores timestamps in UTC. SQLite drops tzinfo on round-trip, so values
read back from the store are normalized with `ensure_tz` before they leave the API.
"""

from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_tz(dt: datetime | None, tz: str = "UTC") -> datetime | None:
    """Ensure `dt` has tzinfo; attach `tz` if naive."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=ZoneInfo(tz))
    return dt
