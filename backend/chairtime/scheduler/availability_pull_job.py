"""
Daily availability refresh: pull every business that has a calendar configured,
bypassing the cache, so dashboards open on data at most a day old.

Users run concurrently (bounded by settings.pull_job_concurrency). One user's failure
is counted and logged; the job itself never raises. Heartbeat is in-memory.
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

from chairtime.config import settings
from chairtime.db.session import SessionLocal
from chairtime.services.availability import PullOptions, pull_availability
from chairtime.services.availability import store

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_job_last_started_at: datetime | None = None
_job_last_finished_at: datetime | None = None
_job_last_error: str | None = None
_job_running: bool = False
_last_users: int | None = None
_last_succeeded: int | None = None
_last_failed: int | None = None


def set_pull_job_heartbeat(
    started: datetime | None = None,
    finished: datetime | None = None,
    error: str | None = None,
    running: bool | None = None,
    users: int | None = None,
    succeeded: int | None = None,
    failed: int | None = None,
) -> None:
    global _job_last_started_at, _job_last_finished_at, _job_last_error, _job_running, _last_users, _last_succeeded, _last_failed
    with _lock:
        if started is not None:
            _job_last_started_at = started
        if finished is not None:
            _job_last_finished_at = finished
        if error is not None:
            _job_last_error = error
        if running is not None:
            _job_running = running
        if users is not None:
            _last_users = users
        if succeeded is not None:
            _last_succeeded = succeeded
        if failed is not None:
            _last_failed = failed


def get_pull_job_heartbeat() -> dict:
    with _lock:
        return {
            "last_job_started_at": _job_last_started_at.isoformat() if _job_last_started_at else None,
            "last_job_finished_at": _job_last_finished_at.isoformat() if _job_last_finished_at else None,
            "last_job_error": _job_last_error or None,
            "is_job_running": _job_running,
            "users": _last_users,
            "succeeded": _last_succeeded,
            "failed": _last_failed,
        }


def _pull_one(user_id: str, session_factory, adapters) -> str | None:
    """Returns None on success, else an error message for the heartbeat."""
    try:
        result = pull_availability(
            user_id,
            PullOptions(force_refresh=True),
            session_factory=session_factory,
            adapters=adapters,
        )
    except Exception as e:
        logger.exception("Daily availability pull failed for user=%s", user_id)
        return f"{user_id}: {e}"
    if not result.success:
        logger.warning("Daily availability pull had errors for user=%s: %s", user_id, result.errors)
        return f"{user_id}: {'; '.join(result.errors)}"
    return None


def run_availability_pull_job(session_factory=SessionLocal, adapters=None) -> dict:
    """One run over every profile with a calendar. Returns the counts also written to the heartbeat."""
    started = datetime.now(timezone.utc)
    set_pull_job_heartbeat(started=started, running=True)

    db = session_factory()
    try:
        user_ids = [p.user_id for p in store.list_profiles_with_calendar(db)]
    except Exception as e:
        logger.exception("Daily availability pull could not list profiles")
        set_pull_job_heartbeat(finished=datetime.now(timezone.utc), running=False, error=str(e))
        return {"users": 0, "succeeded": 0, "failed": 0}
    finally:
        db.close()

    errors: list[str] = []
    if user_ids:
        workers = min(len(user_ids), settings.pull_job_concurrency)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="availability_job") as pool:
            for outcome in pool.map(lambda uid: _pull_one(uid, session_factory, adapters), user_ids):
                if outcome is not None:
                    errors.append(outcome)

    counts = {"users": len(user_ids), "succeeded": len(user_ids) - len(errors), "failed": len(errors)}
    set_pull_job_heartbeat(
        finished=datetime.now(timezone.utc),
        running=False,
        error=errors[-1] if errors else "",
        **counts,
    )
    logger.info(
        "Daily availability pull: %s users, %s succeeded, %s failed",
        counts["users"],
        counts["succeeded"],
        counts["failed"],
    )
    return counts
