"""Protocol for scheduling providers. All adapters return the same normalized shape."""
from typing import Protocol, runtime_checkable

from chairtime.services.providers.types import AppointmentType, DateRange, ProviderContext, Slot


class AvailabilityAdapter(Protocol):
    """Interface for Acuity, Square, etc. Same contract; only fetch differs."""

    @property
    def name(self) -> str:
        """Unique id (e.g. 'acuity', 'square'); stored as Slot.source."""
        ...

    def fetch_availability_slots(self, ctx: ProviderContext, date_range: DateRange) -> list[Slot]:
        """
        Fetch open slots for one user over the window.
        Raises ProviderError when the provider cannot be reached or is misconfigured.
        """
        ...


@runtime_checkable
class AppointmentTypeCatalog(Protocol):
    """Optional capability: adapters that can list the business's appointment types."""

    def fetch_appointment_types(self, ctx: ProviderContext) -> list[AppointmentType]:
        ...


def supports_catalog(adapter: object) -> bool:
    return isinstance(adapter, AppointmentTypeCatalog)
