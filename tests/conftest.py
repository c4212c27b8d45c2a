"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("GEMINI_API_KEY", "test-gemini-key")
os.environ["REDIS_URL"] = ""
os.environ["WHATSAPP_SEND_INTERVAL_SECONDS"] = "0"
os.environ["IP_LOOKUP_URL"] = "http://ip-lookup.invalid/"

from intranet.database import Base, get_db
import intranet.models  # noqa: F401 - register every table on the metadata
from intranet.services.confirmation_workflow import workflow_registry
from intranet.utils.rate_limiter import ai_rate_limiter


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine) -> Session:
    SessionLocal = sessionmaker(bind=engine, autoflush=False, future=True)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def reset_in_memory_state():
    workflow_registry.clear()
    ai_rate_limiter.reset()
    yield
    workflow_registry.clear()
    ai_rate_limiter.reset()


@pytest.fixture()
def client(db_session):
    """HTTP client bound to the test session"""
    from fastapi.testclient import TestClient

    from intranet.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
