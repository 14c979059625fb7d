"""
Database engine and session management.
The engine (and its connection pool) is created lazily and reused across requests.
"""

import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()

SessionLocal = sessionmaker(autocommit=False, autoflush=False)

_engine: Optional[Engine] = None


def _build_engine(database_url: str) -> Engine:
    """Create an engine for the given URL with pool settings suited to the dialect"""
    if database_url.startswith("sqlite"):
        # In-memory SQLite must share one connection between threads
        return create_engine(
            database_url,
            echo=settings.DATABASE_ECHO,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    return create_engine(
        database_url,
        echo=settings.DATABASE_ECHO,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,
        connect_args={"connect_timeout": 10},
    )


def get_engine() -> Engine:
    """Return the process-wide engine, creating it on first use"""
    global _engine
    if _engine is None:
        _engine = _build_engine(settings.DATABASE_URL)
        SessionLocal.configure(bind=_engine)
        logger.info("Database engine created for %s", _engine.url.render_as_string(hide_password=True))
    return _engine


def reset_engine(database_url: Optional[str] = None) -> Engine:
    """Dispose the current engine and bind sessions to a new one"""
    global _engine
    if _engine is not None:
        _engine.dispose()
    _engine = _build_engine(database_url or settings.DATABASE_URL)
    SessionLocal.configure(bind=_engine)
    return _engine


def create_tables() -> None:
    """Create all tables known to the metadata"""
    # Import models so they register on Base.metadata
    import app.models  # noqa: F401

    Base.metadata.create_all(bind=get_engine())


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a database session"""
    get_engine()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Session for code running outside a request dependency"""
    get_engine()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
