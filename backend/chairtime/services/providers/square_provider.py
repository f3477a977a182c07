"""Square Bookings availability provider. Locations x service variations -> availability search."""
import logging
import time
from datetime import date, datetime, timedelta
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import httpx

from chairtime.config import settings
from chairtime.core.errors import ProviderError
from chairtime.core.times import finite_number, time_from_datetime
from chairtime.services.providers.types import AppointmentType, DateRange, ProviderContext, Slot

logger = logging.getLogger(__name__)

SQUARE_PRODUCTION_URL = "https://connect.squareup.com"
SQUARE_SANDBOX_URL = "https://connect.squareupsandbox.com"
REQUEST_TIMEOUT_SECONDS = 15.0
MAX_RANGE_DAYS = 27  # availability search rejects ranges over 28 days
MAX_SERVICE_VARIATIONS = 40
MAX_CATALOG_PAGES = 3
AVAILABILITY_DELAY_SECONDS = 0.12


def square_base_url() -> str:
    return SQUARE_PRODUCTION_URL if settings.square_env == "production" else SQUARE_SANDBOX_URL


def parse_location_ids(calendar: str | None) -> list[str] | None:
    """Profile calendar is 'all' or comma-separated location ids. None = every active location."""
    if not calendar or calendar.strip() == "all":
        return None
    ids = [s.strip() for s in calendar.split(",") if s.strip()]
    return ids or None


def filter_locations(locations: list[dict[str, Any]], selected: list[str] | None) -> list[dict[str, Any]]:
    active = [loc for loc in locations if loc.get("status") == "ACTIVE" and loc.get("id")]
    if not selected:
        return active
    return [loc for loc in active if loc["id"] in selected]


def build_date_chunks(start_date: str, end_date: str, max_days: int = MAX_RANGE_DAYS) -> list[tuple[date, date]]:
    try:
        current = date.fromisoformat(start_date)
        end = date.fromisoformat(end_date)
    except ValueError:
        return []
    chunks = []
    while current <= end:
        chunk_end = min(current + timedelta(days=max_days), end)
        chunks.append((current, chunk_end))
        current = chunk_end + timedelta(days=1)
    return chunks


def parse_service_variations(objects: Any) -> list[AppointmentType]:
    """Catalog ITEM objects -> bookable variations. Only variations with service_duration are appointment services."""
    out: list[AppointmentType] = []
    for item in objects if isinstance(objects, list) else []:
        item_data = (item or {}).get("item_data") or {}
        item_name = item_data.get("name") if isinstance(item_data.get("name"), str) else None
        for variation in item_data.get("variations") or []:
            variation = variation or {}
            data = variation.get("item_variation_data") or {}
            if not variation.get("id") or not data.get("service_duration"):
                continue
            duration_ms = finite_number(data.get("service_duration"))
            cents = finite_number((data.get("price_money") or {}).get("amount"))
            out.append(
                AppointmentType(
                    id=variation["id"],
                    name=data.get("name") or item_name,
                    duration_minutes=round(duration_ms / 60000) if duration_ms and duration_ms > 0 else None,
                    price=cents / 100 if cents is not None else None,
                )
            )
    return out


def _local_date_time(start_at: str, tz_name: str | None) -> tuple[str | None, str | None]:
    """Square returns UTC instants; report them on the location's wall clock when its timezone is known."""
    if tz_name:
        try:
            dt = datetime.fromisoformat(start_at.replace("Z", "+00:00")).astimezone(ZoneInfo(tz_name))
            return dt.date().isoformat(), dt.strftime("%H:%M")
        except (ValueError, ZoneInfoNotFoundError):
            pass
    slot_date = start_at.split("T")[0] if "T" in start_at else None
    return slot_date, time_from_datetime(start_at)


def build_slot(
    user_id: str,
    location: dict[str, Any],
    variation: AppointmentType,
    availability: dict[str, Any],
) -> Slot | None:
    start_at = availability.get("start_at")
    if not start_at or not isinstance(start_at, str):
        return None
    slot_date, start_time = _local_date_time(start_at, location.get("timezone"))
    if not slot_date or not start_time:
        return None
    segments = availability.get("appointment_segments") or []
    segment = segments[0] if segments and isinstance(segments[0], dict) else {}
    # Staff member is the bookable resource; capacity counts distinct calendar_ids
    resource = segment.get("team_member_id") or location["id"]
    duration = finite_number(segment.get("duration_minutes"))
    return Slot(
        user_id=user_id,
        source=SquareAdapter.name,
        calendar_id=str(resource),
        appointment_type_id=variation.id,
        appointment_type_name=variation.name,
        slot_date=slot_date,
        start_time=start_time,
        start_at=start_at,
        duration_minutes=int(duration) if duration is not None else variation.duration_minutes,
        price=variation.price,
        timezone=location.get("timezone"),
    )


class SquareAdapter:
    name = "square"

    def __init__(self, transport: httpx.BaseTransport | None = None, delay_seconds: float = AVAILABILITY_DELAY_SECONDS) -> None:
        self._transport = transport
        self._delay_seconds = delay_seconds

    def _client(self, ctx: ProviderContext) -> httpx.Client:
        return httpx.Client(
            base_url=square_base_url(),
            headers={
                "Authorization": f"Bearer {ctx.access_token}",
                "Square-Version": settings.square_version,
            },
            timeout=REQUEST_TIMEOUT_SECONDS,
            transport=self._transport,
        )

    def _request(self, client: httpx.Client, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            r = client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise ProviderError(self.name, f"Square request failed: {e}") from e
        if not r.is_success:
            raise ProviderError(self.name, f"Square API error on {path}: {r.status_code}")
        data = r.json() if r.content else {}
        return data if isinstance(data, dict) else {}

    def _service_variations(self, client: httpx.Client) -> list[AppointmentType]:
        variations: list[AppointmentType] = []
        cursor = None
        for _ in range(MAX_CATALOG_PAGES):
            params = {"types": "ITEM"}
            if cursor:
                params["cursor"] = cursor
            data = self._request(client, "GET", "/v2/catalog/list", params=params)
            variations.extend(parse_service_variations(data.get("objects")))
            cursor = data.get("cursor")
            if not cursor:
                break
        return variations

    def _search(self, client: httpx.Client, location_id: str, variation_id: str, start: date, end: date) -> list[dict[str, Any]]:
        body = {
            "query": {
                "filter": {
                    "location_id": location_id,
                    "start_at_range": {
                        "start_at": f"{start.isoformat()}T00:00:00Z",
                        "end_at": f"{end.isoformat()}T23:59:59Z",
                    },
                    "segment_filters": [{"service_variation_id": variation_id}],
                }
            }
        }
        try:
            data = self._request(client, "POST", "/v2/bookings/availability/search", json=body)
        except ProviderError as e:
            logger.warning("Square availability search failed location=%s variation=%s: %s", location_id, variation_id, e)
            return []
        availabilities = data.get("availabilities")
        return availabilities if isinstance(availabilities, list) else []

    def fetch_appointment_types(self, ctx: ProviderContext) -> list[AppointmentType]:
        with self._client(ctx) as client:
            return self._service_variations(client)

    def fetch_availability_slots(self, ctx: ProviderContext, date_range: DateRange) -> list[Slot]:
        with self._client(ctx) as client:
            locations = self._request(client, "GET", "/v2/locations").get("locations") or []
            active = filter_locations(locations, parse_location_ids(ctx.calendar))
            if not active:
                return []
            variations = self._service_variations(client)[:MAX_SERVICE_VARIATIONS]
            if not variations:
                return []
            chunks = build_date_chunks(date_range.start_date, date_range.end_date)
            by_key: dict[tuple, Slot] = {}
            for location in active:
                for variation in variations:
                    for start, end in chunks:
                        for availability in self._search(client, location["id"], variation.id, start, end):
                            slot = build_slot(ctx.user_id, location, variation, availability)
                            if slot is None or slot.slot_date not in date_range:
                                continue
                            by_key.setdefault(slot.key(), slot)
                        if self._delay_seconds:
                            time.sleep(self._delay_seconds)
        return list(by_key.values())
