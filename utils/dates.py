from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional, Union

DB_DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S"


def utc_now() -> datetime:
    """Current UTC time as a naive datetime, matching what the database stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)


def to_utc_naive(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.replace(microsecond=0)


def to_db_datetime(value: Optional[Union[datetime, str]]) -> Optional[str]:
    """Normalize a datetime (or ISO string) to the stored UTC text format."""
    if value is None:
        return None
    if isinstance(value, str):
        value = parse_datetime(value)
    return to_utc_naive(value).strftime(DB_DATETIME_FORMAT)


def parse_datetime(value: str) -> datetime:
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return to_utc_naive(datetime.fromisoformat(text))


def now_db() -> str:
    return utc_now().strftime(DB_DATETIME_FORMAT)


def days_from_now_db(days: int) -> str:
    return (utc_now() + timedelta(days=days)).strftime(DB_DATETIME_FORMAT)
