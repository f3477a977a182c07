"""Normalized types for all scheduling providers. Same shape regardless of Acuity/Square/etc."""
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class DateRange:
    """Inclusive Mon-Sun window. Dates are ISO strings so they compare and store as-is."""

    start_date: str
    end_date: str
    dates: tuple[str, ...]

    def __contains__(self, slot_date: object) -> bool:
        return isinstance(slot_date, str) and self.start_date <= slot_date <= self.end_date

    def to_dict(self) -> dict[str, Any]:
        return {"startDate": self.start_date, "endDate": self.end_date, "dates": list(self.dates)}


@dataclass(frozen=True)
class ProviderContext:
    """What an adapter needs to call its provider for one user. Built from the store."""

    user_id: str
    access_token: str
    calendar: str | None = None


@dataclass(frozen=True)
class AppointmentType:
    id: str
    name: str | None
    duration_minutes: int | None
    price: float | None


SlotKey = tuple[str, str, str, str, str, str]


@dataclass(frozen=True)
class Slot:
    """One bookable instant reported by one provider. Replaced wholesale each pull, never patched."""

    user_id: str
    source: str
    calendar_id: str
    appointment_type_id: str
    slot_date: str
    start_time: str
    appointment_type_name: str | None = None
    duration_minutes: int | None = None
    price: float | None = None
    timezone: str | None = None
    start_at: str | None = None
    fetched_at: datetime | None = None

    def key(self) -> SlotKey:
        """Dedup/storage identity: same key = same underlying bookable instant."""
        return (
            self.user_id,
            self.source,
            self.appointment_type_id,
            self.calendar_id,
            self.slot_date,
            self.start_time,
        )

    def with_fetched_at(self, fetched_at: datetime) -> "Slot":
        return replace(self, fetched_at=fetched_at)

    def to_row(self) -> dict[str, Any]:
        """Column dict for availability_slots upserts."""
        return {
            "user_id": self.user_id,
            "source": self.source,
            "calendar_id": self.calendar_id,
            "appointment_type_id": self.appointment_type_id,
            "appointment_type_name": self.appointment_type_name,
            "slot_date": self.slot_date,
            "start_time": self.start_time,
            "start_at": self.start_at,
            "duration_minutes": self.duration_minutes,
            "price": self.price,
            "timezone": self.timezone,
            "fetched_at": self.fetched_at,
            "updated_at": self.fetched_at,
        }

    @classmethod
    def from_model(cls, row: Any) -> "Slot":
        fetched_at = row.fetched_at
        if fetched_at is not None and fetched_at.tzinfo is None:
            fetched_at = fetched_at.replace(tzinfo=timezone.utc)
        return cls(
            user_id=row.user_id,
            source=row.source,
            calendar_id=row.calendar_id,
            appointment_type_id=row.appointment_type_id,
            appointment_type_name=row.appointment_type_name,
            slot_date=row.slot_date,
            start_time=row.start_time,
            start_at=row.start_at,
            duration_minutes=row.duration_minutes,
            price=row.price,
            timezone=row.timezone,
            fetched_at=fetched_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "source": self.source,
            "calendarId": self.calendar_id,
            "appointmentTypeId": self.appointment_type_id,
            "appointmentTypeName": self.appointment_type_name,
            "slotDate": self.slot_date,
            "startTime": self.start_time,
            "startAt": self.start_at,
            "durationMinutes": self.duration_minutes,
            "price": self.price,
            "timezone": self.timezone,
            "fetchedAt": self.fetched_at.isoformat() if self.fetched_at else None,
        }
