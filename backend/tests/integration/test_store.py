"""Upserts, update-mode patching and cleanup scoping on the availability tables."""
from datetime import timedelta

import pytest

from chairtime.core.errors import PersistenceError
from chairtime.models import AvailabilityDailySummary, AvailabilitySlot, BookingConnection
from chairtime.services.availability import store
from chairtime.services.availability.types import DailySummary
from chairtime.services.availability.window import resolve_week_range

from tests.utils import FIXED_NOW, connect_user, make_slot

WEEK = resolve_week_range(0, now=FIXED_NOW, tz_name="America/New_York")
OLD = FIXED_NOW - timedelta(days=1)


def _summary(slot_date, fetched_at, user_id="user-a", source="acuity", count=1):
    return DailySummary(
        user_id=user_id,
        source=source,
        slot_date=slot_date,
        slot_count=count,
        slot_units=count,
        estimated_revenue=40.0 * count,
        timezone="America/New_York",
        fetched_at=fetched_at,
    )


class TestUpserts:
    def test_same_key_updates_in_place(self, db_session):
        store.upsert_slots(db_session, [make_slot(price=40, fetched_at=OLD)])
        store.upsert_slots(db_session, [make_slot(price=35, fetched_at=FIXED_NOW)])
        store.commit(db_session)
        rows = db_session.query(AvailabilitySlot).all()
        assert len(rows) == 1
        assert rows[0].price == 35
        assert store.load_slots(db_session, "user-a", "acuity", WEEK, FIXED_NOW)[0].fetched_at == FIXED_NOW

    def test_summary_upsert_and_latest_fetched_at(self, db_session):
        store.upsert_summaries(db_session, [_summary("2026-02-17", OLD), _summary("2026-02-18", FIXED_NOW)])
        store.upsert_summaries(db_session, [_summary("2026-02-18", FIXED_NOW, count=3)])
        store.commit(db_session)
        assert db_session.query(AvailabilityDailySummary).count() == 2
        assert store.latest_summary_fetched_at(db_session, "user-a", "acuity", WEEK) == FIXED_NOW
        assert store.latest_summary_fetched_at(db_session, "user-a", "square", WEEK) is None

    def test_empty_batches_are_noops(self, db_session):
        assert store.upsert_slots(db_session, []) == 0
        assert store.upsert_summaries(db_session, []) == 0

    def test_write_failure_is_persistence_error(self, db_session):
        # NOT NULL fetched_at
        with pytest.raises(PersistenceError):
            store.upsert_slots(db_session, [make_slot(fetched_at=None)])


class TestPatchSummaryCounters:
    def test_updates_existing_rows_only(self, db_session):
        store.upsert_summaries(db_session, [_summary("2026-02-18", OLD, count=2)])
        store.commit(db_session)

        patched = store.patch_summary_counters(
            db_session, [_summary("2026-02-18", FIXED_NOW, count=1), _summary("2026-02-19", FIXED_NOW, count=4)]
        )

        assert patched == 1
        rows = db_session.query(AvailabilityDailySummary).all()
        assert len(rows) == 1
        assert (rows[0].slot_count, rows[0].estimated_revenue) == (1, 40.0)
        assert store.latest_summary_fetched_at(db_session, "user-a", "acuity", WEEK) == OLD


class TestCleanup:
    def test_only_stale_rows_for_user_and_source(self, db_session):
        store.upsert_slots(
            db_session,
            [
                make_slot("09:00", slot_date="2026-02-10", fetched_at=OLD),
                make_slot("09:00", slot_date="2026-02-18", fetched_at=OLD),
                make_slot("10:00", slot_date="2026-02-18", fetched_at=FIXED_NOW),
                make_slot("09:00", source="square", fetched_at=OLD),
                make_slot("09:00", user_id="user-b", fetched_at=OLD),
                make_slot("09:00", user_id="user-b", slot_date="2026-02-10", fetched_at=OLD),
            ],
        )
        store.upsert_summaries(
            db_session,
            [
                _summary("2026-02-10", OLD),
                _summary("2026-02-17", OLD),
                _summary("2026-02-18", FIXED_NOW),
                _summary("2026-02-18", OLD, source="square"),
                _summary("2026-02-18", OLD, user_id="user-b"),
            ],
        )
        store.commit(db_session)

        deleted = store.cleanup_availability(db_session, "user-a", "acuity", WEEK, FIXED_NOW)

        assert deleted == {"slots": 2, "summaries": 2}
        remaining = db_session.query(AvailabilitySlot).filter_by(user_id="user-a", source="acuity").all()
        assert [(r.slot_date, r.start_time) for r in remaining] == [("2026-02-18", "10:00")]
        remaining_summaries = db_session.query(AvailabilityDailySummary).filter_by(user_id="user-a", source="acuity").all()
        assert [r.slot_date for r in remaining_summaries] == ["2026-02-18"]
        assert db_session.query(AvailabilitySlot).filter_by(source="square").count() == 1
        assert db_session.query(AvailabilitySlot).filter_by(user_id="user-b").count() == 2
        assert db_session.query(AvailabilityDailySummary).filter_by(user_id="user-b").count() == 1
        assert db_session.query(AvailabilityDailySummary).filter_by(source="square").count() == 1


class TestReads:
    def test_connections_require_token(self, db_session):
        connect_user(db_session, "user-a", ["acuity"])
        db_session.add(BookingConnection(user_id="user-a", provider="square", access_token="   "))
        db_session.commit()
        assert list(store.get_connections(db_session, "user-a")) == ["acuity"]
        assert store.get_connections(db_session, "nobody") == {}

    def test_profiles_with_calendar(self, db_session):
        connect_user(db_session, "user-a", [], calendar="Main Chair")
        connect_user(db_session, "user-b", [], calendar="")
        connect_user(db_session, "user-c", [], calendar=None)
        assert [p.user_id for p in store.list_profiles_with_calendar(db_session)] == ["user-a"]

    def test_slot_length_preference(self, db_session):
        assert store.get_slot_length_preference(db_session, "user-a") is None
        store.set_slot_length_preference(db_session, "user-a", 45)
        assert store.get_slot_length_preference(db_session, "user-a") == 45
        store.set_slot_length_preference(db_session, "user-a", 60)
        assert store.get_slot_length_preference(db_session, "user-a") == 60
