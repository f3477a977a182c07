"""Derived records and pull request/response shapes for the availability engine."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from chairtime.services.providers.base import AvailabilityAdapter
from chairtime.services.providers.types import DateRange, ProviderContext, Slot


@dataclass(frozen=True)
class DailySummary:
    """Max non-overlapping canonical-length opportunities for one (user, source, day)."""

    user_id: str
    source: str
    slot_date: str
    slot_count: int
    slot_units: int
    estimated_revenue: float
    timezone: str | None
    fetched_at: datetime

    def to_row(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "source": self.source,
            "slot_date": self.slot_date,
            "slot_count": self.slot_count,
            "slot_units": self.slot_units,
            "estimated_revenue": self.estimated_revenue,
            "timezone": self.timezone,
            "fetched_at": self.fetched_at,
            "updated_at": self.fetched_at,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "source": self.source,
            "slotDate": self.slot_date,
            "slotCount": self.slot_count,
            "slotUnits": self.slot_units,
            "estimatedRevenue": self.estimated_revenue,
            "timezone": self.timezone,
            "fetchedAt": self.fetched_at.isoformat(),
        }


@dataclass(frozen=True)
class HourlyBucket:
    user_id: str
    source: str
    slot_date: str
    hour: int
    slot_count: int
    timezone: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "source": self.source,
            "slotDate": self.slot_date,
            "hour": self.hour,
            "slotCount": self.slot_count,
            "timezone": self.timezone,
        }


@dataclass(frozen=True)
class CapacityBucket:
    user_id: str
    source: str
    slot_date: str
    block: str  # half-hour block start, 'HH:00' or 'HH:30'
    capacity: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "source": self.source,
            "slotDate": self.slot_date,
            "block": self.block,
            "capacity": self.capacity,
        }


@dataclass(frozen=True)
class PullOptions:
    week_offset: int = 0
    force_refresh: bool = False  # skip the cache gateway
    dry_run: bool = False  # compute only, no writes
    update_mode: bool = False  # patch summary counters only; no slot upsert, no cleanup


@dataclass(frozen=True)
class SourceConfig:
    """One provider to pull for this user: its adapter and the credentials to call it with."""

    adapter: AvailabilityAdapter
    ctx: ProviderContext

    @property
    def name(self) -> str:
        return self.adapter.name


@dataclass
class SourcePullResult:
    """In-memory result of one provider's pipeline, before merging."""

    source: str
    slots: list[Slot]
    summaries: list[DailySummary]
    capacity_buckets: list[CapacityBucket]
    fetched_at: datetime
    cache_hit: bool
    default_service: dict[str, Any] | None = None


@dataclass
class SourceResult:
    slot_count: int = 0
    day_count: int = 0
    estimated_revenue: float = 0.0
    fetched_at: datetime | None = None
    cache_hit: bool = False
    default_service: dict[str, Any] | None = None
    errors: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "slotCount": self.slot_count,
            "dayCount": self.day_count,
            "estimatedRevenue": self.estimated_revenue,
        }
        if self.fetched_at is not None:
            out["fetchedAt"] = self.fetched_at.isoformat()
            out["cacheHit"] = self.cache_hit
        if self.default_service is not None:
            out["defaultService"] = self.default_service
        if self.errors:
            out["errors"] = list(self.errors)
        return out


@dataclass
class AvailabilityPullResult:
    success: bool
    fetched_at: datetime
    cache_hit: bool
    range: DateRange
    slot_length_minutes: int
    slots: list[Slot] = field(default_factory=list)
    summaries: list[DailySummary] = field(default_factory=list)
    hourly_buckets: list[HourlyBucket] = field(default_factory=list)
    capacity_buckets: list[CapacityBucket] = field(default_factory=list)
    sources: dict[str, SourceResult] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)

    @property
    def total_slots(self) -> int:
        return len(self.slots)

    @property
    def total_estimated_revenue(self) -> float:
        return round(sum(s.estimated_revenue for s in self.summaries), 2)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "success": self.success,
            "fetchedAt": self.fetched_at.astimezone(timezone.utc).isoformat(),
            "cacheHit": self.cache_hit,
            "range": self.range.to_dict(),
            "slotLengthMinutes": self.slot_length_minutes,
            "totalSlots": self.total_slots,
            "totalEstimatedRevenue": self.total_estimated_revenue,
            "slots": [s.to_dict() for s in self.slots],
            "summaries": [s.to_dict() for s in self.summaries],
            "hourlyBuckets": [b.to_dict() for b in self.hourly_buckets],
            "capacityBuckets": [b.to_dict() for b in self.capacity_buckets],
            "sources": {name: r.to_dict() for name, r in self.sources.items()},
        }
        if self.errors:
            out["errors"] = list(self.errors)
        return out
