"""Time-of-day parsing shared by provider adapters and the summarizers. Bad input returns None, never raises."""
import math
import re
from datetime import datetime, timezone

_TIME_RE = re.compile(r"^(\d{1,2})(?::(\d{2}))?(?::\d{2})?\s*(am|pm)?$")
_ISO_TIME_RE = re.compile(r"T(\d{2}:\d{2})")
_OFFSET_RE = re.compile(r"([+-]\d{2}):?(\d{2})$")


def parse_time_string(value: str | None) -> str | None:
    """'9:30am', '09:30', '17:00:00' -> 'HH:MM' (24h)."""
    if not value or not isinstance(value, str):
        return None
    m = _TIME_RE.match(value.strip().lower())
    if not m:
        return None
    hours = int(m.group(1))
    minutes = int(m.group(2)) if m.group(2) else 0
    meridiem = m.group(3)
    if meridiem == "pm" and hours < 12:
        hours += 12
    if meridiem == "am" and hours == 12:
        hours = 0
    if hours > 23 or minutes > 59:
        return None
    return f"{hours:02d}:{minutes:02d}"


def time_from_datetime(value: str | None) -> str | None:
    """'2026-02-18T09:30:00-05:00' -> '09:30'."""
    if not value or not isinstance(value, str):
        return None
    m = _ISO_TIME_RE.search(value)
    return m.group(1) if m else None


def timezone_offset(value: str | None) -> str | None:
    """'2026-02-18T09:30:00-0500' -> '-05:00'."""
    if not value or not isinstance(value, str):
        return None
    m = _OFFSET_RE.search(value.strip())
    return f"{m.group(1)}:{m.group(2)}" if m else None


def minutes_since_midnight(value: str | None) -> int | None:
    hhmm = parse_time_string(value)
    if hhmm is None:
        return None
    hours, minutes = hhmm.split(":")
    return int(hours) * 60 + int(minutes)


def format_minutes(total: int) -> str:
    """570 -> '09:30'."""
    return f"{total // 60:02d}:{total % 60:02d}"


def finite_number(value: object) -> float | None:
    """Numbers and numeric strings -> float; NaN, inf, bools and junk -> None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        num = float(value)
    elif isinstance(value, str):
        try:
            num = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return num if math.isfinite(num) else None


def as_utc(value: datetime | None) -> datetime | None:
    """Naive datetimes are UTC (database rows, callers' clocks); aware ones are converted."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
