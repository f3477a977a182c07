"""
Test configuration and shared fixtures for the availability engine.

Store, orchestrator and API tests run against an in-memory SQLite database
(one connection shared through StaticPool) created fresh for every test.
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import chairtime.models  # noqa: F401  registers tables on Base.metadata
from chairtime.config import settings
from chairtime.db.base import Base


@pytest.fixture(autouse=True)
def pinned_settings(monkeypatch):
    """Fixed business timezone; provider pipelines run one at a time (SQLite shares one connection)."""
    monkeypatch.setattr(settings, "availability_timezone", "America/New_York")
    monkeypatch.setattr(settings, "max_concurrent_sources", 1)
    monkeypatch.setattr(settings, "pull_job_concurrency", 1)
    monkeypatch.setattr(settings, "provider_timeout_seconds", 5.0)
    monkeypatch.setattr(settings, "square_env", "sandbox")
    yield settings


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()
