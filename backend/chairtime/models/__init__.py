from chairtime.models.availability_daily_summary import AvailabilityDailySummary
from chairtime.models.availability_slot import AvailabilitySlot
from chairtime.models.booking_connection import BookingConnection
from chairtime.models.profile import Profile

__all__ = [
    "AvailabilityDailySummary",
    "AvailabilitySlot",
    "BookingConnection",
    "Profile",
]
