# Overview: UTC timestamp helpers shared by models, backends and sales history.

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

PERIODS = ("today", "week", "month", "all")


def utcnow() -> datetime:
    """Current time as a naive UTC datetime (the canonical in-process form)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    ISO-8601 string -> naive UTC datetime.

    - None or blank -> None
    - no offset: taken as UTC
    - trailing "Z" or "+HH:MM": shifted to UTC, tzinfo dropped
    """
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None

    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        return parsed
    return parsed.astimezone(timezone.utc).replace(tzinfo=None)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Naive (UTC) or aware datetime -> "YYYY-MM-DDTHH:MM:SS.ffffffZ".

    Microseconds are always written so the strings sort chronologically.
    """
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.isoformat(timespec="microseconds") + "Z"


def period_start(period: str, now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Lower bound for a sales-history period.

    - today: UTC midnight
    - week:  last 7 days
    - month: last 30 days
    - all:   None (no bound)
    """
    if period not in PERIODS:
        raise ValueError(f"Unknown period: {period}")
    now = now or utcnow()
    if period == "today":
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == "week":
        return now - timedelta(days=7)
    if period == "month":
        return now - timedelta(days=30)
    return None
