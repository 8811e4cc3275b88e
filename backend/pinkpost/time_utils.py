# Overview: UTC clock and the ISO-8601 conversions used by forms, columns and JSON.

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

# Every datetime column holds naive UTC; offsets only exist at the API edge.


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Read a scheduled/removal/requested date sent by the dashboard.

    Blank input gives None. A bare "2026-03-14" means midnight UTC on that
    day. Values carrying "Z" or an offset are shifted to UTC; values without
    one are taken as UTC already. Malformed text raises ValueError, which
    validation.coerce_datetime turns into a field error.
    """
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None

    if text[-1] in "zZ":
        text = text[:-1] + "+00:00"

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """Column value -> "2026-03-14T15:30:00Z" for JSON, whole seconds only."""
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.replace(microsecond=0).isoformat() + "Z"


def to_iso_date(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None
