"""
Database configuration and connection management.

The engine and session factory are created on first use from the
application settings, so importing this module never opens a connection.
"""

import logging
import os
import time
from typing import Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from .config import settings
from .models import Base

logger = logging.getLogger(__name__)

QUERY_LOGGING_THRESHOLD_MS = int(os.getenv("QUERY_LOG_THRESHOLD_MS", "100"))

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def get_connect_args(db_url: str) -> dict:
    """
    Get database-specific connection arguments.

    Args:
        db_url: Database connection URL

    Returns:
        Connection arguments dict
    """
    if "sqlite" in db_url:
        return {"check_same_thread": False}
    return {}


@event.listens_for(Engine, "before_cursor_execute")
def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    """Track query start time."""
    conn.info.setdefault("query_start_time", []).append(time.time())


@event.listens_for(Engine, "after_cursor_execute")
def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    """Log slow queries."""
    total_time_ms = (time.time() - conn.info["query_start_time"].pop()) * 1000

    if total_time_ms > QUERY_LOGGING_THRESHOLD_MS:
        logger.warning(
            f"Slow query detected: {total_time_ms:.2f}ms",
            extra={
                "query_time_ms": total_time_ms,
                "statement": statement[:200],
            },
        )


def create_db_engine(db_url: str) -> Engine:
    """
    Create an engine for the given URL.

    SQLite URLs get a static pool so in-memory databases survive across
    sessions; every other backend uses a sized queue pool.
    """
    if db_url.startswith("sqlite"):
        return create_engine(
            db_url, connect_args=get_connect_args(db_url), poolclass=StaticPool
        )

    return create_engine(
        db_url,
        connect_args=get_connect_args(db_url),
        pool_pre_ping=True,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        echo=False,
    )


def get_engine() -> Engine:
    """Return the process-wide engine, creating it on first call."""
    global _engine, _session_factory

    if _engine is None:
        db_url = settings.DATABASE_URL
        safe_url = db_url.split("@")[-1] if "@" in db_url else db_url
        logger.info(f"Using database: {safe_url}")

        _engine = create_db_engine(db_url)
        _session_factory = sessionmaker(autocommit=False, autoflush=False, bind=_engine)

    return _engine


def get_session_factory() -> sessionmaker:
    """Return the session factory bound to the process-wide engine."""
    get_engine()
    return _session_factory


def init_db() -> None:
    """
    Initialize database tables.

    Creates all tables on application startup.
    Uses checkfirst=True to safely handle existing tables.
    """
    logger.info("Initializing database tables...")
    Base.metadata.create_all(bind=get_engine(), checkfirst=True)
    logger.info("Database initialized successfully")


def check_db() -> bool:
    """Return True if the database answers a trivial query."""
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        return False
