"""Timestamp parsing and calendar helpers. All results are UTC."""

from __future__ import annotations

from datetime import date, datetime, timezone


def parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO 8601 timestamp into an aware UTC datetime.

    Accepts ``datetime`` objects and strings such as ``2025-01-15T10:30:00Z``.
    Naive values are taken to be UTC.

    Returns:
        The UTC datetime, or None when the value is missing or unparsable.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        # GitHub returns ISO 8601 with a trailing Z
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError:
        # Offsets at the edges of the datetime range cannot be shifted to UTC
        return None


def utc_date(moment: datetime) -> date:
    """Calendar date of a moment in UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).date()


def inclusive_day_span(first: datetime, last: datetime) -> int:
    """Number of calendar days from first to last, counting both ends."""
    return (utc_date(last) - utc_date(first)).days + 1
