"""
Engine, session factory and declarative base.

Models inherit from Base. Request handlers get their session
from get_db().
"""

from datetime import datetime, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from group_ledger.config import get_settings

settings = get_settings()

# SQLite connections are opened on one thread and may be used
# by FastAPI's worker threads.
_connect_args = (
    {"check_same_thread": False}
    if settings.DATABASE_URL.startswith("sqlite")
    else {}
)

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    connect_args=_connect_args,
)

# Services flush, endpoints commit: an expense and its split
# rows are saved together or not at all.
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


def utcnow() -> datetime:
    """Timezone-aware current time, used as a column default."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


def get_db():
    """
    FastAPI dependency: one session per request, always closed
    afterwards.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
