"""Daily availability pull over every profile with a calendar."""
from chairtime.models import AvailabilitySlot
from chairtime.scheduler.availability_pull_job import get_pull_job_heartbeat, run_availability_pull_job

from tests.utils import WeekAdapter, connect_user


class TestAvailabilityPullJob:
    def test_pulls_profiles_with_calendar_and_counts_failures(self, db_session, session_factory):
        connect_user(db_session, "user-a", ["acuity"], calendar="Main Chair")
        connect_user(db_session, "user-b", ["acuity"], calendar="Back Room")
        connect_user(db_session, "user-c", ["acuity"], calendar=None)
        adapter = WeekAdapter("acuity", fail_for=("user-b",))

        counts = run_availability_pull_job(session_factory=session_factory, adapters=[adapter])

        assert counts == {"users": 2, "succeeded": 1, "failed": 1}
        assert sorted(adapter.users) == ["user-a", "user-b"]
        assert db_session.query(AvailabilitySlot).filter_by(user_id="user-a").count() == 2

        heartbeat = get_pull_job_heartbeat()
        assert heartbeat["is_job_running"] is False
        assert heartbeat["users"] == 2
        assert heartbeat["failed"] == 1
        assert heartbeat["last_job_error"].startswith("user-b:")
        assert heartbeat["last_job_finished_at"] is not None

    def test_bypasses_cache(self, db_session, session_factory):
        connect_user(db_session, "user-a", ["acuity"])
        adapter = WeekAdapter("acuity")

        run_availability_pull_job(session_factory=session_factory, adapters=[adapter])
        run_availability_pull_job(session_factory=session_factory, adapters=[adapter])

        assert adapter.users == ["user-a", "user-a"]

    def test_no_profiles(self, session_factory):
        counts = run_availability_pull_job(session_factory=session_factory, adapters=[WeekAdapter()])
        assert counts == {"users": 0, "succeeded": 0, "failed": 0}
        assert get_pull_job_heartbeat()["last_job_error"] is None

    def test_listing_failure_never_raises(self, monkeypatch, session_factory):
        from chairtime.services.availability import store

        def broken(db):
            raise RuntimeError("db down")

        monkeypatch.setattr(store, "list_profiles_with_calendar", broken)
        counts = run_availability_pull_job(session_factory=session_factory, adapters=[WeekAdapter()])
        assert counts["users"] == 0
        assert get_pull_job_heartbeat()["last_job_error"] == "db down"
