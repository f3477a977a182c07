"""
Persistence and cleanup for availability pulls.

- availability_slots / availability_daily_summary are upserted by their natural keys
  (INSERT .. ON CONFLICT DO UPDATE), so retried or concurrent writes of the same pull are safe.
- cleanup removes, for one (user, source) only, rows outside the current window and rows in
  the window older than the pull just committed. Call it after the upserts are committed.
- Write failures raise PersistenceError (session rolled back); callers treat that as the
  provider's failure.
"""
import logging
from datetime import datetime
from typing import Iterable

from sqlalchemy import func, or_
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chairtime.core.errors import PersistenceError
from chairtime.core.times import as_utc
from chairtime.models.availability_daily_summary import AvailabilityDailySummary
from chairtime.models.availability_slot import AvailabilitySlot
from chairtime.models.booking_connection import BookingConnection
from chairtime.models.profile import Profile
from chairtime.services.availability.types import DailySummary
from chairtime.services.providers.types import DateRange, Slot

logger = logging.getLogger(__name__)

SLOT_KEY_COLUMNS = ("user_id", "source", "appointment_type_id", "calendar_id", "slot_date", "start_time")
SUMMARY_KEY_COLUMNS = ("user_id", "source", "slot_date")
SUMMARY_COUNTER_COLUMNS = ("slot_count", "slot_units", "estimated_revenue")
UPSERT_BATCH_SIZE = 500


def _insert(db: Session, model):
    """Dialect-specific INSERT so ON CONFLICT works on PostgreSQL and on SQLite (tests)."""
    if db.get_bind().dialect.name == "sqlite":
        return sqlite_insert(model)
    return pg_insert(model)


def _upsert(db: Session, model, rows: list[dict], key_columns: tuple[str, ...]) -> None:
    for i in range(0, len(rows), UPSERT_BATCH_SIZE):
        batch = rows[i : i + UPSERT_BATCH_SIZE]
        stmt = _insert(db, model).values(batch)
        update_cols = {c: stmt.excluded[c] for c in batch[0] if c not in key_columns}
        db.execute(stmt.on_conflict_do_update(index_elements=list(key_columns), set_=update_cols))


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def get_profile(db: Session, user_id: str) -> Profile | None:
    return db.query(Profile).filter(Profile.user_id == user_id).first()


def get_connections(db: Session, user_id: str) -> dict[str, BookingConnection]:
    """Connected providers for a user (rows with an access token), keyed by provider id."""
    rows = (
        db.query(BookingConnection)
        .filter(BookingConnection.user_id == user_id, BookingConnection.access_token.isnot(None))
        .all()
    )
    return {r.provider: r for r in rows if (r.access_token or "").strip()}


def get_slot_length_preference(db: Session, user_id: str) -> int | None:
    value = db.query(Profile.slot_length_minutes).filter(Profile.user_id == user_id).scalar()
    return int(value) if value else None


def latest_summary_fetched_at(db: Session, user_id: str, source: str, date_range: DateRange) -> datetime | None:
    """Most recent fetched_at among summary rows for (user, source) inside the window."""
    value = (
        db.query(func.max(AvailabilityDailySummary.fetched_at))
        .filter(
            AvailabilityDailySummary.user_id == user_id,
            AvailabilityDailySummary.source == source,
            AvailabilityDailySummary.slot_date >= date_range.start_date,
            AvailabilityDailySummary.slot_date <= date_range.end_date,
        )
        .scalar()
    )
    return as_utc(value)


def load_slots(db: Session, user_id: str, source: str, date_range: DateRange, fetched_at: datetime) -> list[Slot]:
    rows = (
        db.query(AvailabilitySlot)
        .filter(
            AvailabilitySlot.user_id == user_id,
            AvailabilitySlot.source == source,
            AvailabilitySlot.fetched_at == fetched_at,
            AvailabilitySlot.slot_date >= date_range.start_date,
            AvailabilitySlot.slot_date <= date_range.end_date,
        )
        .order_by(AvailabilitySlot.slot_date, AvailabilitySlot.start_time)
        .all()
    )
    return [Slot.from_model(r) for r in rows]


def list_profiles_with_calendar(db: Session) -> list[Profile]:
    return db.query(Profile).filter(Profile.calendar.isnot(None), Profile.calendar != "").all()


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def set_slot_length_preference(db: Session, user_id: str, minutes: int) -> None:
    """Store the derived slot length on the profile (creates the profile row if missing)."""
    row = get_profile(db, user_id)
    if row:
        row.slot_length_minutes = minutes
    else:
        db.add(Profile(user_id=user_id, slot_length_minutes=minutes))
    db.commit()


def upsert_slots(db: Session, slots: Iterable[Slot]) -> int:
    rows = [s.to_row() for s in slots]
    if not rows:
        return 0
    try:
        _upsert(db, AvailabilitySlot, rows, SLOT_KEY_COLUMNS)
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"Failed to upsert availability slots: {e}") from e
    return len(rows)


def upsert_summaries(db: Session, summaries: Iterable[DailySummary]) -> int:
    rows = [s.to_row() for s in summaries]
    if not rows:
        return 0
    try:
        _upsert(db, AvailabilityDailySummary, rows, SUMMARY_KEY_COLUMNS)
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"Failed to upsert availability daily summary: {e}") from e
    return len(rows)


def patch_summary_counters(db: Session, summaries: Iterable[DailySummary]) -> int:
    """
    Update mode: refresh counters on summary rows that already exist. Never inserts and never
    touches fetched_at, so the cache gateway keeps pointing at the pull whose slots are stored.
    """
    patched = 0
    try:
        for s in summaries:
            patched += (
                db.query(AvailabilityDailySummary)
                .filter(
                    AvailabilityDailySummary.user_id == s.user_id,
                    AvailabilityDailySummary.source == s.source,
                    AvailabilityDailySummary.slot_date == s.slot_date,
                )
                .update(
                    {
                        AvailabilityDailySummary.slot_count: s.slot_count,
                        AvailabilityDailySummary.slot_units: s.slot_units,
                        AvailabilityDailySummary.estimated_revenue: s.estimated_revenue,
                    },
                    synchronize_session=False,
                )
            )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"Failed to update availability daily summary: {e}") from e
    return patched


def commit(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"Failed to commit availability pull: {e}") from e


def cleanup_availability(
    db: Session, user_id: str, source: str, date_range: DateRange, fetched_at: datetime
) -> dict[str, int]:
    """
    Delete (user, source) rows outside the window, or inside it with fetched_at older than this pull.
    Other users and other sources are never touched. Returns deleted row counts per table.
    """
    deleted = {}
    try:
        for name, model in (("slots", AvailabilitySlot), ("summaries", AvailabilityDailySummary)):
            deleted[name] = (
                db.query(model)
                .filter(
                    model.user_id == user_id,
                    model.source == source,
                    or_(
                        model.slot_date < date_range.start_date,
                        model.slot_date > date_range.end_date,
                        model.fetched_at < fetched_at,
                    ),
                )
                .delete(synchronize_session=False)
            )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"Failed to clean up availability cache: {e}") from e
    if deleted["slots"] or deleted["summaries"]:
        logger.debug(
            "Availability cleanup user=%s source=%s: %s slots, %s summaries",
            user_id,
            source,
            deleted["slots"],
            deleted["summaries"],
        )
    return deleted
