"""
FastAPI app entrypoint.

Availability pulls on demand (/availability/pull) plus a daily refresh of every business with a calendar.
"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from apscheduler.schedulers.background import BackgroundScheduler
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load .env from backend/ before any app code
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from chairtime.api.routes import availability
from chairtime.config import settings
from chairtime.core.constants import AVAILABILITY_PULL_JOB_ID
from chairtime.scheduler.availability_pull_job import run_availability_pull_job

logger = logging.getLogger(__name__)

_scheduler = BackgroundScheduler(timezone=settings.availability_timezone)


@asynccontextmanager
async def lifespan(app: FastAPI):
    _scheduler.add_job(
        run_availability_pull_job,
        "cron",
        hour=settings.pull_job_hour,
        minute=settings.pull_job_minute,
        id=AVAILABILITY_PULL_JOB_ID,
        replace_existing=True,
    )
    _scheduler.start()
    app.state.scheduler = _scheduler
    logger.info(
        "Daily availability pull scheduled at %02d:%02d %s",
        settings.pull_job_hour,
        settings.pull_job_minute,
        settings.availability_timezone,
    )
    yield
    _scheduler.shutdown(wait=False)


app = FastAPI(title="Chairtime Availability", version="0.1.0", lifespan=lifespan)

# CORS: dev origins + optional CORS_ORIGINS (comma-separated) for the production dashboard
_cors_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
if settings.cors_origins:
    _cors_origins.extend(o.strip() for o in settings.cors_origins.split(",") if o.strip())
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(availability.router, prefix="/availability", tags=["availability"])


@app.get("/", include_in_schema=False)
def root():
    return {"message": "Chairtime API", "docs": "/docs", "health": "/health"}


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
