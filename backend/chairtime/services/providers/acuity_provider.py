"""Acuity Scheduling availability provider. Calendar -> appointment types -> available dates -> times."""
import logging
from typing import Any

import httpx

from chairtime.core.errors import ProviderError
from chairtime.core.times import finite_number, parse_time_string, time_from_datetime, timezone_offset
from chairtime.services.providers.types import AppointmentType, DateRange, ProviderContext, Slot

logger = logging.getLogger(__name__)

ACUITY_API_BASE = "https://acuityscheduling.com/api/v1"
REQUEST_TIMEOUT_SECONDS = 15.0

_DATETIME_KEYS = ("datetime", "dateTime", "start_at", "startAt", "start", "start_time")
_TIME_KEYS = ("time", "startTime", "start_time", "label")
_TZ_KEYS = ("timezone", "timeZone", "tz")


def _first_str(entry: dict[str, Any], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = entry.get(key)
        if isinstance(value, str):
            return value
    return None


def extract_time_data(entry: Any) -> tuple[str | None, str | None, str | None]:
    """One Acuity time entry -> (start_time 'HH:MM', start_at ISO, timezone). Entries may be strings or dicts."""
    if isinstance(entry, str):
        if "T" in entry:
            return time_from_datetime(entry), entry, timezone_offset(entry)
        return parse_time_string(entry), None, None
    if not isinstance(entry, dict):
        return None, None, None
    datetime_value = _first_str(entry, _DATETIME_KEYS)
    raw_time = _first_str(entry, _TIME_KEYS)
    if not datetime_value and raw_time and "T" in raw_time:
        datetime_value = raw_time
    plain_time = raw_time if raw_time and "T" not in raw_time else None
    tz = _first_str(entry, _TZ_KEYS) or timezone_offset(datetime_value)
    start_time = time_from_datetime(datetime_value) or parse_time_string(plain_time)
    return start_time, datetime_value, tz


def extract_date_strings(data: Any) -> list[str]:
    """availability/dates returns ['2026-02-18', ...] or [{'date': ...}] or {'dates': [...]}."""
    out: list[str] = []
    if isinstance(data, list):
        for item in data:
            if isinstance(item, str):
                out.append(item)
            elif isinstance(item, dict):
                value = item.get("date") or item.get("day")
                if isinstance(value, str):
                    out.append(value)
    elif isinstance(data, dict) and isinstance(data.get("dates"), list):
        out = [d for d in data["dates"] if isinstance(d, str)]
    return out


def parse_appointment_types(data: Any) -> list[AppointmentType]:
    if not isinstance(data, list):
        return []
    types: list[AppointmentType] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        type_id = item.get("id") or item.get("appointmentTypeID")
        if not type_id:
            continue
        duration = finite_number(item.get("duration", item.get("durationMinutes")))
        types.append(
            AppointmentType(
                id=str(type_id),
                name=str(item.get("name") or "") or None,
                duration_minutes=int(duration) if duration is not None and duration > 0 else None,
                price=finite_number(item.get("price", item.get("amount"))),
            )
        )
    return types


def month_keys(dates: tuple[str, ...]) -> list[str]:
    """Distinct YYYY-MM prefixes in window order."""
    seen: dict[str, None] = {}
    for d in dates:
        if d and len(d) >= 7:
            seen.setdefault(d[:7], None)
    return list(seen)


class AcuityAdapter:
    name = "acuity"

    def __init__(self, base_url: str = ACUITY_API_BASE, transport: httpx.BaseTransport | None = None) -> None:
        self._base_url = base_url
        self._transport = transport

    def _client(self, ctx: ProviderContext) -> httpx.Client:
        return httpx.Client(
            base_url=self._base_url,
            headers={"Authorization": f"Bearer {ctx.access_token}"},
            timeout=REQUEST_TIMEOUT_SECONDS,
            transport=self._transport,
        )

    def _get_required(self, client: httpx.Client, path: str, params: dict[str, str] | None = None) -> Any:
        try:
            r = client.get(path, params=params)
        except httpx.HTTPError as e:
            raise ProviderError(self.name, f"Acuity request failed: {e}") from e
        if not r.is_success:
            raise ProviderError(self.name, f"Acuity API error on {path}: {r.status_code}")
        return r.json() if r.content else None

    def _get_optional(self, client: httpx.Client, path: str, params: dict[str, str]) -> Any:
        """Per-date lookups: a failure skips that date instead of failing the pull."""
        try:
            r = client.get(path, params=params)
        except httpx.HTTPError as e:
            logger.warning("Acuity %s failed %s: %s", path, params, e)
            return None
        if not r.is_success:
            logger.warning("Acuity %s failed %s: %s", path, params, r.status_code)
            return None
        return r.json() if r.content else None

    def _calendar_id(self, client: httpx.Client, ctx: ProviderContext) -> str:
        target = (ctx.calendar or "").strip().lower()
        if not target:
            raise ProviderError(self.name, "No calendar configured in profile")
        calendars = self._get_required(client, "/calendars") or []
        for cal in calendars if isinstance(calendars, list) else []:
            if not isinstance(cal, dict) or cal.get("id") in (None, ""):
                continue
            if str(cal.get("name") or "").strip().lower() == target:
                return str(cal["id"])
        raise ProviderError(self.name, f"No matching calendar found for: {target}")

    def _available_dates(self, client: httpx.Client, type_id: str, calendar_id: str, month: str) -> list[str]:
        for month_param in (month, f"{month}-01"):
            data = self._get_optional(
                client,
                "/availability/dates",
                {"appointmentTypeID": type_id, "calendarID": calendar_id, "month": month_param},
            )
            dates = extract_date_strings(data)
            if dates:
                return dates
        return []

    def _times(self, client: httpx.Client, type_id: str, calendar_id: str, slot_date: str) -> list[Any]:
        data = self._get_optional(
            client,
            "/availability/times",
            {"appointmentTypeID": type_id, "calendarID": calendar_id, "date": slot_date},
        )
        if isinstance(data, list):
            return data
        if isinstance(data, dict) and isinstance(data.get("times"), list):
            return data["times"]
        return []

    def fetch_appointment_types(self, ctx: ProviderContext) -> list[AppointmentType]:
        with self._client(ctx) as client:
            return parse_appointment_types(self._get_required(client, "/appointment-types"))

    def fetch_availability_slots(self, ctx: ProviderContext, date_range: DateRange) -> list[Slot]:
        slots: list[Slot] = []
        with self._client(ctx) as client:
            calendar_id = self._calendar_id(client, ctx)
            appointment_types = parse_appointment_types(self._get_required(client, "/appointment-types"))
            for appt in appointment_types:
                available: list[str] = []
                for month in month_keys(date_range.dates):
                    available.extend(self._available_dates(client, appt.id, calendar_id, month))
                in_window = sorted({d for d in available if d in date_range})
                for slot_date in in_window or list(date_range.dates):
                    for entry in self._times(client, appt.id, calendar_id, slot_date):
                        start_time, start_at, tz = extract_time_data(entry)
                        if not start_time:
                            logger.debug("Acuity skip unparseable time entry: %r", entry)
                            continue
                        slots.append(
                            Slot(
                                user_id=ctx.user_id,
                                source=self.name,
                                calendar_id=calendar_id,
                                appointment_type_id=appt.id,
                                appointment_type_name=appt.name,
                                slot_date=slot_date,
                                start_time=start_time,
                                start_at=start_at,
                                duration_minutes=appt.duration_minutes,
                                price=appt.price,
                                timezone=tz,
                            )
                        )
        return slots
