"""
Fallback prices for slots that arrive without one.

Usage stats are per distinct appointment-type name: how many slots use it and the
lowest price seen. The most used names (ties: cheapest first) define the shop's
primary service and the price to assume when a slot has none.
"""
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from chairtime.core.constants import DEFAULT_PRIMARY_SERVICE, FALLBACK_PRICE_TOP_N
from chairtime.core.times import finite_number
from chairtime.services.availability.service_names import (
    is_default_service_name,
    is_haircut_like,
    normalize_service_name,
)
from chairtime.services.providers.types import Slot


@dataclass(frozen=True)
class ServiceUsage:
    name: str
    count: int
    min_price: float | None


@dataclass(frozen=True)
class DefaultService:
    normalized_name: str
    price: float

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.normalized_name, "price": self.price}


def service_usage(slots: Iterable[Slot], predicate: Callable[[str | None], bool] | None = None) -> list[ServiceUsage]:
    """Named slots grouped by trimmed name, ranked by count desc, then lowest price (unpriced last), then name."""
    counts: dict[str, int] = {}
    prices: dict[str, float] = {}
    for slot in slots:
        name = (slot.appointment_type_name or "").strip()
        if not name or (predicate is not None and not predicate(name)):
            continue
        counts[name] = counts.get(name, 0) + 1
        price = finite_number(slot.price)
        if price is not None and (name not in prices or price < prices[name]):
            prices[name] = price
    usage = [ServiceUsage(name=n, count=c, min_price=prices.get(n)) for n, c in counts.items()]
    usage.sort(key=lambda u: (-u.count, u.min_price is None, u.min_price or 0.0, u.name))
    return usage


def _top_price(usage: list[ServiceUsage]) -> float:
    prices = [u.min_price for u in usage[:FALLBACK_PRICE_TOP_N] if u.min_price is not None]
    if not prices:
        return 0.0
    return round(sum(prices) / len(prices), 2)


def resolve_default_service(slots: list[Slot]) -> DefaultService:
    """Most used primary-service name (falls back to all named slots) and its fallback price."""
    usage = service_usage(slots, is_default_service_name) or service_usage(slots)
    if not usage:
        return DefaultService(normalized_name=DEFAULT_PRIMARY_SERVICE, price=0.0)
    return DefaultService(normalized_name=normalize_service_name(usage[0].name), price=_top_price(usage))


def resolve_haircut_fallback_price(slots: list[Slot]) -> float:
    """Same as the default-service price, restricted to adult haircut names. 0 without price data."""
    return _top_price(service_usage(slots, is_haircut_like))
