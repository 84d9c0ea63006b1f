from __future__ import annotations

from datetime import datetime, timezone


def now_utc() -> datetime:
    """Return the current time as an aware UTC datetime."""

    return datetime.now(tz=timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Convert a datetime to UTC, assuming naive values are already in UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def epoch_millis(value: datetime) -> int:
    return int(ensure_utc(value).timestamp() * 1000)


def parse_iso_to_utc(value: str) -> datetime:
    """Parse an ISO 8601 string and normalize it to UTC."""

    candidate = value.strip()
    if not candidate:
        raise ValueError("Empty datetime string")
    normalized = candidate.replace("Z", "+00:00")
    return ensure_utc(datetime.fromisoformat(normalized))
