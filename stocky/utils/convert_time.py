from datetime import date, datetime, time, timedelta, timezone
from typing import Optional


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_rfc3339(value: str) -> datetime:
    """
    Parse an RFC 3339 timestamp into an aware UTC datetime.

    Raises ValueError for anything without an explicit offset.
    """
    if not value or "T" not in value.upper():
        raise ValueError(f"not an RFC 3339 timestamp: {value!r}")
    normalized = value.strip()
    if normalized[-1] in ("Z", "z"):
        normalized = normalized[:-1] + "+00:00"
    parsed = datetime.fromisoformat(normalized)
    if parsed.tzinfo is None:
        raise ValueError(f"timestamp has no UTC offset: {value!r}")
    return parsed.astimezone(timezone.utc)


def format_rfc3339(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def utc_day_bounds(day: date) -> tuple:
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    end = datetime.combine(day, time.max, tzinfo=timezone.utc)
    return start, end


def to_timestamp_us(value: datetime) -> int:
    delta = value - _EPOCH
    return (delta.days * 86400 + delta.seconds) * 1_000_000 + delta.microseconds


def from_timestamp_us(value: int) -> datetime:
    return _EPOCH + timedelta(microseconds=int(value))


def parse_optional_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return date.fromisoformat(value)
