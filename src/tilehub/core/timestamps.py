"""
UTC time helpers and source response ids.

Cache rows, breaker retry times and citations all carry timezone-aware UTC
datetimes and cross the wire as ISO 8601 strings. Source responses get ids
that sort by fetch time so extraction results can name the responses they
used.

Tags:
    timestamps, utc, ids, tilehub
"""

import secrets
import time
from datetime import UTC, datetime


def utc_now() -> datetime:
    return datetime.now(UTC)


def new_response_id() -> str:
    """12 hex digits of epoch milliseconds followed by 8 random hex digits."""
    return f"{time.time_ns() // 1_000_000:012x}{secrets.token_hex(4)}"


def to_iso8601(dt: datetime | None) -> str | None:
    return None if dt is None else dt.isoformat()


def from_iso8601(value: str | datetime | None) -> datetime | None:
    """Parse to an aware datetime. Naive values and a trailing ``Z`` are read as UTC."""
    if value is None:
        return None
    if not isinstance(value, datetime):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


__all__ = ["utc_now", "new_response_id", "to_iso8601", "from_iso8601"]
