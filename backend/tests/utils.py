"""Helpers shared by tests: slot builders and in-memory provider adapters."""
import threading
import time
from datetime import datetime, timezone

from chairtime.core.errors import ProviderError
from chairtime.models import BookingConnection, Profile
from chairtime.services.providers.types import AppointmentType, Slot

# Wednesday 10:00 in America/New_York; business week is 2026-02-16 .. 2026-02-22
FIXED_NOW = datetime(2026, 2, 18, 15, 0, tzinfo=timezone.utc)
WEEK_DATES = (
    "2026-02-16",
    "2026-02-17",
    "2026-02-18",
    "2026-02-19",
    "2026-02-20",
    "2026-02-21",
    "2026-02-22",
)


def make_slot(
    start_time: str = "09:00",
    *,
    user_id: str = "user-a",
    source: str = "acuity",
    slot_date: str = "2026-02-18",
    calendar_id: str = "cal-1",
    appointment_type_id: str = "type-haircut",
    name: str | None = "Haircut",
    duration: int | None = 30,
    price: float | None = 40.0,
    tz: str | None = "America/New_York",
    fetched_at=None,
) -> Slot:
    return Slot(
        user_id=user_id,
        source=source,
        calendar_id=calendar_id,
        appointment_type_id=appointment_type_id,
        appointment_type_name=name,
        slot_date=slot_date,
        start_time=start_time,
        duration_minutes=duration,
        price=price,
        timezone=tz,
        fetched_at=fetched_at,
    )


class FakeAdapter:
    """Returns canned slots for whichever user asks; records calls."""

    def __init__(self, name: str, slots: list[Slot] | None = None, error: str | None = None, delay: float = 0.0):
        self._name = name
        self.slots = slots or []
        self.error = error
        self.delay = delay
        self.calls = 0
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._name

    def fetch_availability_slots(self, ctx, date_range):
        with self._lock:
            self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        if self.error:
            raise ProviderError(self._name, self.error)
        return [s for s in self.slots if s.user_id == ctx.user_id]


class FakeCatalogAdapter(FakeAdapter):
    """FakeAdapter that also lists appointment types."""

    def __init__(self, name: str, appointment_types: list[AppointmentType], **kwargs):
        super().__init__(name, **kwargs)
        self.appointment_types = appointment_types
        self.catalog_calls = 0

    def fetch_appointment_types(self, ctx):
        self.catalog_calls += 1
        return list(self.appointment_types)


def connect_user(
    db_session,
    user_id: str,
    providers: list[str],
    calendar: str | None = "Main Chair",
    slot_length: int | None = None,
) -> None:
    """Profile plus one booking connection per provider; committed."""
    db_session.add(
        Profile(user_id=user_id, full_name=f"{user_id} Barbers", calendar=calendar, slot_length_minutes=slot_length)
    )
    for provider in providers:
        db_session.add(BookingConnection(user_id=user_id, provider=provider, access_token=f"{provider}-token"))
    db_session.commit()


class WeekAdapter:
    """Two priced haircut slots on the first day of whatever window is requested; fails for listed users."""

    def __init__(self, name: str = "acuity", fail_for: tuple[str, ...] = ()):
        self.name = name
        self.fail_for = fail_for
        self.users: list[str] = []

    def fetch_availability_slots(self, ctx, date_range):
        self.users.append(ctx.user_id)
        if ctx.user_id in self.fail_for:
            raise ProviderError(self.name, "Acuity API error on /calendars: 401")
        day = date_range.dates[0]
        return [
            make_slot("09:00", user_id=ctx.user_id, source=self.name, slot_date=day, price=40),
            make_slot("09:30", user_id=ctx.user_id, source=self.name, slot_date=day, price=45),
        ]
