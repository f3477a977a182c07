"""Canonical slot length (minutes) for a business: stored preference, else inferred from a provider catalog."""
import logging
from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chairtime.core.constants import (
    DEFAULT_SLOT_LENGTH_MINUTES,
    MIN_SLOT_LENGTH_MINUTES,
    SLOT_LENGTH_STEP_MINUTES,
    SOURCE_PREFERENCE_ORDER,
)
from chairtime.services.availability import store
from chairtime.services.availability.service_names import is_haircut_like
from chairtime.services.availability.types import SourceConfig
from chairtime.services.providers.base import supports_catalog
from chairtime.services.providers.types import AppointmentType

logger = logging.getLogger(__name__)


def normalize_slot_length(minutes: int | float) -> int:
    """Round down to the 15-minute step, never below 30."""
    floored = int(minutes) // SLOT_LENGTH_STEP_MINUTES * SLOT_LENGTH_STEP_MINUTES
    return max(MIN_SLOT_LENGTH_MINUTES, floored)


def derive_slot_length(appointment_types: Iterable[AppointmentType]) -> int | None:
    """Shortest adult haircut of at least 30 minutes, normalized. None when the catalog has none."""
    durations = [
        t.duration_minutes
        for t in appointment_types
        if is_haircut_like(t.name) and t.duration_minutes is not None and t.duration_minutes >= MIN_SLOT_LENGTH_MINUTES
    ]
    if not durations:
        return None
    return normalize_slot_length(min(durations))


def _preference_rank(name: str) -> int:
    try:
        return SOURCE_PREFERENCE_ORDER.index(name)
    except ValueError:
        return len(SOURCE_PREFERENCE_ORDER)


def _first_catalog(sources: list[SourceConfig]) -> list[AppointmentType]:
    """Ask providers in preference order; stop at the first non-empty catalog."""
    for src in sorted(sources, key=lambda s: _preference_rank(s.name)):
        if not supports_catalog(src.adapter):
            continue
        try:
            catalog = src.adapter.fetch_appointment_types(src.ctx)
        except Exception as e:
            logger.warning("Appointment types fetch failed source=%s user=%s: %s", src.name, src.ctx.user_id, e)
            continue
        if catalog:
            return catalog
    return []


def resolve_slot_length(db: Session, user_id: str, sources: list[SourceConfig]) -> int:
    stored = store.get_slot_length_preference(db, user_id)
    if stored and stored > 0:
        return normalize_slot_length(stored)

    derived = derive_slot_length(_first_catalog(sources))
    if derived is None:
        return DEFAULT_SLOT_LENGTH_MINUTES

    try:
        store.set_slot_length_preference(db, user_id, derived)
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("Could not store slot length for user=%s: %s", user_id, e)
    return derived
