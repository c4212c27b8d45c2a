"""
Database engine, session factory and declarative base
"""
import logging

from sqlalchemy import JSON, create_engine
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base, sessionmaker

from intranet.config import settings

logger = logging.getLogger(__name__)

# JSONB on PostgreSQL, plain JSON on every other backend (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency yielding one session per request"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create all tables that do not exist yet"""
    # Register every model on the metadata before create_all
    import intranet.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info(f"Database tables ensured: {len(Base.metadata.tables)}")
