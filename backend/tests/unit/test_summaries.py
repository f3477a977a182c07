"""Daily summaries: canonical-length interval scheduling per day."""
import itertools
import random

import pytest

from chairtime.services.availability.dedupe import dedupe_slots
from chairtime.services.availability.summaries import (
    Interval,
    build_daily_summaries,
    select_non_overlapping,
)

from tests.utils import FIXED_NOW, make_slot


def _brute_force_max(intervals):
    for size in range(len(intervals), 0, -1):
        for combo in itertools.combinations(intervals, size):
            ordered = sorted(combo, key=lambda i: i.start)
            if all(a.end <= b.start for a, b in zip(ordered, ordered[1:])):
                return size
    return 0


class TestSelectNonOverlapping:
    @pytest.mark.parametrize("seed", range(25))
    def test_matches_brute_force_maximum(self, seed):
        rng = random.Random(seed)
        length = rng.choice((30, 45, 60))
        starts = {rng.randrange(9 * 60, 13 * 60, 15) for _ in range(rng.randint(1, 9))}
        intervals = [Interval(start=s, end=s + length, weight=1.0) for s in starts]
        accepted = select_non_overlapping(intervals)
        assert len(accepted) == _brute_force_max(intervals)
        for a, b in zip(accepted, accepted[1:]):
            assert a.end <= b.start

    def test_touching_intervals_both_accepted(self):
        accepted = select_non_overlapping([Interval(570, 600, 1.0), Interval(540, 570, 1.0)])
        assert [i.start for i in accepted] == [540, 570]

    def test_empty(self):
        assert select_non_overlapping([]) == []


class TestBuildDailySummaries:
    def test_end_to_end_example(self):
        slots = [
            make_slot("09:00", price=40),
            make_slot("09:00", price=50),
            make_slot("09:30", price=45),
        ]
        deduped = dedupe_slots(slots)
        assert sorted((s.start_time, s.price) for s in deduped) == [("09:00", 40), ("09:30", 45)]
        (summary,) = build_daily_summaries(deduped, slot_length=30, fetched_at=FIXED_NOW)
        assert summary.slot_count == 2
        assert summary.slot_units == 2
        assert summary.estimated_revenue == 85.00
        assert summary.fetched_at == FIXED_NOW
        assert summary.timezone == "America/New_York"

    def test_same_start_keeps_cheaper(self):
        slots = [make_slot("10:00", calendar_id="a", price=60), make_slot("10:00", calendar_id="b", price=40)]
        (summary,) = build_daily_summaries(slots, slot_length=30, fetched_at=FIXED_NOW)
        assert summary.slot_count == 1
        assert summary.estimated_revenue == 40.0

    def test_overlaps_count_once(self):
        slots = [make_slot(t, price=40) for t in ("09:00", "09:15", "09:30", "09:45", "10:00")]
        (summary,) = build_daily_summaries(slots, slot_length=30, fetched_at=FIXED_NOW)
        assert summary.slot_count == 3
        assert summary.estimated_revenue == 120.0

    def test_only_adult_cuts_of_canonical_length(self):
        slots = [
            make_slot("09:00", name="Kids Haircut", price=20),
            make_slot("10:00", duration=45, price=55),
            make_slot("11:00", name="Beard Trim", price=15),
            make_slot("12:00", name="Scissor Cut", price=50),
        ]
        (summary,) = build_daily_summaries(slots, slot_length=30, fetched_at=FIXED_NOW)
        assert summary.slot_count == 1
        assert summary.estimated_revenue == 50.0

    def test_unpriced_slots_use_fallback_price(self):
        slots = [make_slot("09:00", price=None), make_slot("10:00", price=40)]
        (summary,) = build_daily_summaries(slots, slot_length=30, fetched_at=FIXED_NOW, fallback_price=42.5)
        assert summary.estimated_revenue == 82.5

    def test_days_without_qualifying_slots_have_no_row(self):
        slots = [
            make_slot("09:00", slot_date="2026-02-17"),
            make_slot("09:00", slot_date="2026-02-18", name="Beard Trim"),
            make_slot("bogus", slot_date="2026-02-19"),
        ]
        summaries = build_daily_summaries(slots, slot_length=30, fetched_at=FIXED_NOW)
        assert [s.slot_date for s in summaries] == ["2026-02-17"]

    def test_grouped_per_source(self):
        slots = [make_slot("09:00", source="acuity"), make_slot("09:00", source="square")]
        summaries = build_daily_summaries(slots, slot_length=30, fetched_at=FIXED_NOW)
        assert [(s.source, s.slot_count) for s in summaries] == [("acuity", 1), ("square", 1)]
