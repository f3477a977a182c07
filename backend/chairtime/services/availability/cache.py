"""
Cache gateway: reuse a persisted pull instead of calling the provider.

A hit needs the freshest summary row for (user, source) in the window to be at most
CACHE_TTL_MINUTES old, and slot rows stored under that same fetched_at. Any store error
is a miss (fail open to a live fetch).
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chairtime.core.constants import CACHE_TTL_MINUTES
from chairtime.core.times import as_utc
from chairtime.services.availability import store
from chairtime.services.providers.types import DateRange, Slot

logger = logging.getLogger(__name__)

CACHE_TTL = timedelta(minutes=CACHE_TTL_MINUTES)


@dataclass(frozen=True)
class CachedAvailability:
    fetched_at: datetime
    slots: list[Slot]


def is_fresh(fetched_at: datetime | None, now: datetime) -> bool:
    """Inclusive: a pull exactly CACHE_TTL old is still fresh."""
    if fetched_at is None:
        return False
    return as_utc(now) - as_utc(fetched_at) <= CACHE_TTL


def get_cached_availability(
    db: Session, user_id: str, source: str, date_range: DateRange, *, now: datetime
) -> CachedAvailability | None:
    """Return the cached raw slots for the window, or None on miss, stale data or store error."""
    try:
        fetched_at = store.latest_summary_fetched_at(db, user_id, source, date_range)
        if not is_fresh(fetched_at, now):
            return None
        slots = store.load_slots(db, user_id, source, date_range, fetched_at)
    except SQLAlchemyError as e:
        logger.warning("Availability cache lookup failed user=%s source=%s: %s", user_id, source, e)
        db.rollback()
        return None
    if not slots:
        # Summary without its slots: partial write, not a usable cache entry
        return None
    return CachedAvailability(fetched_at=fetched_at, slots=slots)
