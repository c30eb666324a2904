"""Parsing and timezone helpers shared by the scheduling services."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo

from muabook.core.config import settings
from muabook.core.errors import ValidationError

HHMM_FORMAT = "%H:%M"


def provider_timezone(name: str | None = None) -> ZoneInfo:
    """Return the zone slot wall-clock times are expressed in."""

    return ZoneInfo(name or settings.provider_timezone)


def ensure_utc(value: datetime) -> datetime:
    """Coerce a datetime into UTC timezone-aware form."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_naive_utc(value: datetime) -> datetime:
    """Return the naive UTC form used for storage."""

    return ensure_utc(value).replace(tzinfo=None)


def isoformat_utc(value: datetime | None) -> str | None:
    if value is None:
        return None
    return ensure_utc(value).isoformat()


def parse_hhmm(value: str, field: str) -> time:
    """Parse a 24h ``HH:MM`` string."""

    try:
        return datetime.strptime(value.strip(), HHMM_FORMAT).time()
    except (AttributeError, ValueError) as exc:
        raise ValidationError(
            f"Invalid {field} format: {value!r}. Expected HH:MM"
        ) from exc


def format_hhmm(value: time) -> str:
    return value.strftime(HHMM_FORMAT)


def _fromisoformat(value: str) -> datetime:
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def parse_event_timestamp(value: str) -> datetime:
    """Parse a strict RFC 3339 timestamp; an explicit offset is required."""

    try:
        parsed = _fromisoformat(value)
    except (AttributeError, ValueError) as exc:
        raise ValidationError(f"Invalid event_date format: {value!r}") from exc
    if "T" not in value.upper() or parsed.tzinfo is None:
        raise ValidationError(
            f"Invalid event_date format: {value!r}. Expected RFC 3339 with offset"
        )
    return ensure_utc(parsed)


def parse_specific_date(value: str, tz: tzinfo | None = None) -> datetime:
    """Parse a one-off slot date into a naive provider-local timestamp.

    Accepts RFC 3339, ``YYYY-MM-DD HH:MM:SS`` and ``YYYY-MM-DD`` (midnight).
    """

    text = (value or "").strip()
    try:
        if len(text) == 10:
            return datetime.combine(date.fromisoformat(text), time.min)
        if "T" in text.upper():
            parsed = _fromisoformat(text)
            if parsed.tzinfo is not None:
                parsed = parsed.astimezone(tz or provider_timezone())
            return parsed.replace(tzinfo=None)
        return datetime.strptime(text, "%Y-%m-%d %H:%M:%S")
    except ValueError as exc:
        raise ValidationError(
            f"Invalid date format: {value!r}. Expected RFC3339, YYYY-MM-DD, "
            "or YYYY-MM-DD HH:MM:SS"
        ) from exc


def parse_range_bound(value: str | None, *, end: bool, tz: tzinfo | None = None) -> datetime | None:
    """Parse an optional calendar bound into naive UTC.

    Empty strings mean "no bound". End bounds are returned exclusive: a
    date-only end covers the whole day (next local midnight) and a timestamp
    end is pushed one microsecond forward so the instant itself is included.
    """

    if value is None or not value.strip():
        return None
    text = value.strip()
    zone = tz or provider_timezone()
    try:
        if len(text) == 10:
            day = date.fromisoformat(text)
            if end:
                day += timedelta(days=1)
            return to_naive_utc(datetime.combine(day, time.min, tzinfo=zone))
        parsed = _fromisoformat(text)
    except ValueError as exc:
        raise ValidationError(f"Invalid date bound: {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=zone)
    if end:
        parsed += timedelta(microseconds=1)
    return to_naive_utc(parsed)


def weekday_index(day: date) -> int:
    """Return 0 for Sunday through 6 for Saturday."""

    return (day.weekday() + 1) % 7


def local_interval(start: datetime, end: datetime, tz: tzinfo | None = None) -> tuple[datetime, datetime]:
    """Convert an absolute interval to provider-local wall clock."""

    zone = tz or provider_timezone()
    return ensure_utc(start).astimezone(zone), ensure_utc(end).astimezone(zone)
