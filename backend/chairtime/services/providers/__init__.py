"""
Scheduling providers: Acuity, Square, etc.
Each adapter fetches data in its own way but returns the same normalized Slot shape
so the availability engine (dedup, summaries, buckets, cache) stays provider-agnostic.
"""
from chairtime.services.providers.base import AvailabilityAdapter, supports_catalog
from chairtime.services.providers.registry import get_adapter, list_adapters
from chairtime.services.providers.types import AppointmentType, DateRange, ProviderContext, Slot

__all__ = [
    "AppointmentType",
    "AvailabilityAdapter",
    "DateRange",
    "ProviderContext",
    "Slot",
    "get_adapter",
    "list_adapters",
    "supports_catalog",
]
