"""Hour-of-day slot counts (every provider) and half-hour staff capacity (capacity provider only)."""
from collections import defaultdict

from chairtime.core.constants import CAPACITY_BLOCK_MINUTES, CAPACITY_MIN_DURATION_MINUTES, CAPACITY_SOURCE
from chairtime.core.times import format_minutes, minutes_since_midnight
from chairtime.services.availability.types import CapacityBucket, HourlyBucket
from chairtime.services.providers.types import Slot


def build_hourly_buckets(slots: list[Slot]) -> list[HourlyBucket]:
    """Count of slots starting in each hour, regardless of service or duration."""
    counts: dict[tuple[str, str, str, int], int] = defaultdict(int)
    tz_by_key: dict[tuple[str, str, str, int], str | None] = {}
    for slot in slots:
        start = minutes_since_midnight(slot.start_time)
        if start is None:
            continue
        key = (slot.user_id, slot.source, slot.slot_date, start // 60)
        counts[key] += 1
        tz_by_key.setdefault(key, slot.timezone)
    return [
        HourlyBucket(user_id=u, source=s, slot_date=d, hour=h, slot_count=n, timezone=tz_by_key[(u, s, d, h)])
        for (u, s, d, h), n in sorted(counts.items())
    ]


def build_capacity_buckets(slots: list[Slot], source: str = CAPACITY_SOURCE) -> list[CapacityBucket]:
    """Distinct resources (calendar_id) with an open slot in each half-hour block."""
    resources: dict[tuple[str, str, str, int], set[str]] = defaultdict(set)
    for slot in slots:
        if slot.source != source:
            continue
        if slot.duration_minutes is None or slot.duration_minutes < CAPACITY_MIN_DURATION_MINUTES:
            continue
        start = minutes_since_midnight(slot.start_time)
        if start is None:
            continue
        block = start - start % CAPACITY_BLOCK_MINUTES
        resources[(slot.user_id, slot.source, slot.slot_date, block)].add(slot.calendar_id)
    return [
        CapacityBucket(user_id=u, source=s, slot_date=d, block=format_minutes(b), capacity=len(ids))
        for (u, s, d, b), ids in sorted(resources.items())
    ]
