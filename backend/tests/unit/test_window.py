"""Business-week window resolution with an explicit clock and timezone."""
from datetime import datetime, timezone

from chairtime.services.availability.window import resolve_week_range

from tests.utils import FIXED_NOW, WEEK_DATES

TZ = "America/New_York"


class TestResolveWeekRange:
    def test_current_week_is_monday_to_sunday(self):
        r = resolve_week_range(0, now=FIXED_NOW, tz_name=TZ)
        assert r.dates == WEEK_DATES
        assert (r.start_date, r.end_date) == ("2026-02-16", "2026-02-22")

    def test_offsets_shift_by_whole_weeks(self):
        assert resolve_week_range(1, now=FIXED_NOW, tz_name=TZ).start_date == "2026-02-23"
        assert resolve_week_range(1, now=FIXED_NOW, tz_name=TZ).end_date == "2026-03-01"
        assert resolve_week_range(-1, now=FIXED_NOW, tz_name=TZ).start_date == "2026-02-09"

    def test_uses_business_timezone_not_utc(self):
        # Monday 03:00 UTC is still Sunday evening in New York
        now = datetime(2026, 2, 23, 3, 0, tzinfo=timezone.utc)
        assert resolve_week_range(0, now=now, tz_name=TZ).start_date == "2026-02-16"
        assert resolve_week_range(0, now=now, tz_name="UTC").start_date == "2026-02-23"

    def test_defaults_to_configured_timezone(self):
        assert resolve_week_range(0, now=FIXED_NOW).dates == WEEK_DATES

    def test_membership(self):
        r = resolve_week_range(0, now=FIXED_NOW, tz_name=TZ)
        assert "2026-02-18" in r
        assert "2026-02-23" not in r
        assert None not in r

    def test_to_dict(self):
        d = resolve_week_range(0, now=FIXED_NOW, tz_name=TZ).to_dict()
        assert d["startDate"] == "2026-02-16"
        assert d["endDate"] == "2026-02-22"
        assert len(d["dates"]) == 7

    def test_naive_now_is_utc(self):
        # Monday 03:00 naive means UTC, i.e. Sunday evening in New York
        naive = datetime(2026, 2, 23, 3, 0)
        assert resolve_week_range(0, now=naive, tz_name=TZ).start_date == "2026-02-16"
