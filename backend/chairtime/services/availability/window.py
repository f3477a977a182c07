"""Reporting window: the Mon-Sun business week in a fixed timezone, shifted by whole weeks."""
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from chairtime.config import settings
from chairtime.core.times import as_utc
from chairtime.services.providers.types import DateRange

WEEK_DAYS = 7


def resolve_week_range(week_offset: int = 0, *, now: datetime | None = None, tz_name: str | None = None) -> DateRange:
    """
    Week containing `now` (in tz_name), moved by week_offset * 7 days.
    A naive now is read as UTC. now and tz_name default to the wall clock and
    settings.availability_timezone; pass both for tests.
    """
    tz = ZoneInfo(tz_name or settings.availability_timezone)
    local = as_utc(now).astimezone(tz) if now is not None else datetime.now(tz)
    monday = local.date() - timedelta(days=local.weekday()) + timedelta(days=WEEK_DAYS * week_offset)
    dates = tuple((monday + timedelta(days=i)).isoformat() for i in range(WEEK_DAYS))
    return DateRange(start_date=dates[0], end_date=dates[-1], dates=dates)
