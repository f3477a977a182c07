"""
Availability API: on-demand pull for the signed-in business and daily job status.

Mounted under /availability.
"""
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Query

from chairtime.core.errors import pull_error_to_http
from chairtime.db.session import SessionLocal
from chairtime.scheduler.availability_pull_job import get_pull_job_heartbeat
from chairtime.services.availability import PullOptions, pull_availability

router = APIRouter()
logger = logging.getLogger(__name__)


def get_session_factory():
    """Sessions are opened per provider inside the pull, so routes hand over the factory, not a session."""
    return SessionLocal


def get_adapters():
    """None = every registered adapter. Overridden in tests."""
    return None


def require_user_id(x_user_id: str | None = Header(default=None)) -> str:
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user_id


@router.get("/pull")
def pull(
    week_offset: int = Query(0, alias="weekOffset"),
    force_refresh: bool = Query(False, alias="forceRefresh"),
    dry_run: bool = Query(False, alias="dryRun"),
    mode: str | None = Query(None),
    user_id: str = Depends(require_user_id),
    session_factory=Depends(get_session_factory),
    adapters=Depends(get_adapters),
):
    """
    Pull this week's (or weekOffset weeks away) availability from every connected provider.
    Provider failures come back inside result.sources / result.errors with a 200;
    only failures before any provider runs map to an error status.
    """
    options = PullOptions(
        week_offset=week_offset,
        force_refresh=force_refresh,
        dry_run=dry_run,
        update_mode=(mode or "").strip().lower() == "update",
    )
    try:
        result = pull_availability(user_id, options, session_factory=session_factory, adapters=adapters)
    except Exception as exc:
        logger.exception("Availability pull failed for user=%s", user_id)
        raise pull_error_to_http(exc) from exc
    return {
        "endpoint": "availability",
        "dryRun": options.dry_run,
        "forceRefresh": options.force_refresh,
        "result": result.to_dict(),
    }


@router.get("/job-status")
def job_status():
    """Last daily pull run: started/finished, users processed, failures. In-memory only."""
    return get_pull_job_heartbeat()
