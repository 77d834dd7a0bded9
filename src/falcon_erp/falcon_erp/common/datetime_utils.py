from __future__ import annotations

from datetime import date, datetime, timezone


def now_utc() -> datetime:
    """Current UTC time as a naive datetime (MySQL DATETIME has no zone).

    Note: Wrapped so tests can patch/mock it easily.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_date(value: str) -> date:
    """Parse 'YYYY-MM-DD' (or a full ISO datetime) into a date."""
    return parse_iso_datetime(value).date() if "T" in value else date.fromisoformat(value)


def parse_iso_datetime(value: str) -> datetime:
    """Parse ISO-8601 text, accepting a trailing 'Z', into a naive UTC datetime."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def to_iso_utc(value: datetime) -> str:
    """Naive UTC datetime -> 'YYYY-MM-DDTHH:MM:SS.mmmZ'."""
    return value.isoformat(timespec="milliseconds") + "Z"
