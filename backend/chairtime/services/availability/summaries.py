"""
Daily summaries: how many more standard cuts could this shop fit in on a given day.

Per (user, source, day):
  1. keep adult-haircut slots whose duration equals the canonical slot length;
  2. parse start times to minutes since midnight (unparseable slots are dropped);
  3. one candidate per start minute, the cheapest (several staff or types reporting the same instant);
  4. intervals (start, start + length) weighted by price, or the fallback price when unpriced;
  5. activity selection: sort by end then start, take every interval starting at or after
     the last accepted end. This maximizes the count, not the revenue.
Days with no qualifying slot produce no row (absence means no data, not zero opportunity).
"""
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime

from chairtime.core.times import finite_number, minutes_since_midnight
from chairtime.services.availability.service_names import is_haircut_like
from chairtime.services.availability.types import DailySummary
from chairtime.services.providers.types import Slot


@dataclass(frozen=True)
class Interval:
    start: int
    end: int
    weight: float


def select_non_overlapping(intervals: list[Interval]) -> list[Interval]:
    """Greedy earliest-finish selection; touching intervals (end == next start) do not overlap."""
    accepted: list[Interval] = []
    last_end: int | None = None
    for interval in sorted(intervals, key=lambda i: (i.end, i.start)):
        if last_end is None or interval.start >= last_end:
            accepted.append(interval)
            last_end = interval.end
    return accepted


def day_intervals(slots: list[Slot], slot_length: int, fallback_price: float) -> list[Interval]:
    cheapest: dict[int, float | None] = {}
    for slot in slots:
        if not is_haircut_like(slot.appointment_type_name) or slot.duration_minutes != slot_length:
            continue
        start = minutes_since_midnight(slot.start_time)
        if start is None:
            continue
        price = finite_number(slot.price)
        if start not in cheapest:
            cheapest[start] = price
        elif price is not None and (cheapest[start] is None or price < cheapest[start]):
            cheapest[start] = price
    return [
        Interval(start=start, end=start + slot_length, weight=price if price is not None else fallback_price)
        for start, price in cheapest.items()
    ]


def build_daily_summaries(
    slots: list[Slot], *, slot_length: int, fetched_at: datetime, fallback_price: float = 0.0
) -> list[DailySummary]:
    by_day: dict[tuple[str, str, str], list[Slot]] = defaultdict(list)
    for slot in slots:
        by_day[(slot.user_id, slot.source, slot.slot_date)].append(slot)

    summaries: list[DailySummary] = []
    for (user_id, source, slot_date), day_slots in sorted(by_day.items()):
        accepted = select_non_overlapping(day_intervals(day_slots, slot_length, fallback_price))
        if not accepted:
            continue
        tz = next((s.timezone for s in day_slots if s.timezone), None)
        summaries.append(
            DailySummary(
                user_id=user_id,
                source=source,
                slot_date=slot_date,
                slot_count=len(accepted),
                slot_units=len(accepted),
                estimated_revenue=round(sum(i.weight for i in accepted), 2),
                timezone=tz,
                fetched_at=fetched_at,
            )
        )
    return summaries
