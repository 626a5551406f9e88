from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from dateutil.parser import isoparse

from ..models import is_finite

# Epoch values below this are seconds, at or above it milliseconds.
EPOCH_MS_THRESHOLD = 1e11


def to_iso_timestamp(value: Any) -> str | None:
    """Turn a provider timestamp into a string.

    - Non-empty strings are returned trimmed (providers mix ISO flavours).
    - Positive numbers are epoch seconds or milliseconds and become ISO-8601 UTC.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        trimmed = value.strip()
        return trimmed or None
    if is_finite(value) and value > 0:
        seconds = value if value < EPOCH_MS_THRESHOLD else value / 1000
        try:
            dt = datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
        return format_iso(dt)
    return None


def format_iso(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        dt = isoparse(value)
    except (ValueError, TypeError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def earliest_iso(current: str | None, incoming: datetime | None) -> str | None:
    """Earliest of an ISO string and a datetime; unparseable strings lose."""
    if incoming is None:
        return current
    if incoming.tzinfo is None:
        incoming = incoming.replace(tzinfo=timezone.utc)
    current_dt = parse_timestamp(current)
    if current_dt is None or incoming < current_dt:
        return format_iso(incoming)
    return current
