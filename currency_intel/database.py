# currency_intel/database.py
"""
Engine and session wiring for the account/snapshot store.

The revaluation engine never writes. Sessions handed out here are consumed
by the read-only adapters in currency_intel/services/stores.py and by the
health probes in main.py.

Pool sizing comes from DB_POOL_SIZE, DB_POOL_MAX_OVERFLOW, DB_POOL_RECYCLE
and DB_POOL_PRE_PING.
"""

import logging
from collections.abc import Generator

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from .config import settings

logger = logging.getLogger(__name__)

# Seconds to wait for a pooled connection before giving up
POOL_CHECKOUT_TIMEOUT = 30


def build_engine(url: str, echo: bool = False) -> Engine:
    """
    Engine for ``url``.

    SQLite URLs get a single shared connection so an in-memory store
    survives across sessions; anything else gets a bounded QueuePool.
    """
    if url.startswith("sqlite"):
        return create_engine(
            url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
            echo=echo,
        )

    logger.info(
        "Snapshot store pool: size=%s overflow=%s recycle=%ss pre_ping=%s",
        settings.db_pool_size,
        settings.db_pool_max_overflow,
        settings.db_pool_recycle,
        settings.db_pool_pre_ping,
    )
    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_pool_max_overflow,
        pool_recycle=settings.db_pool_recycle,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_timeout=POOL_CHECKOUT_TIMEOUT,
        echo=echo,
    )


engine = build_engine(settings.database_url, echo=settings.debug)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def ping(db: Session) -> str | None:
    """Round-trip to the store. Returns None when healthy, else the error text."""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Snapshot store unreachable: {e}")
        return str(e)
    return None


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session, closed once the response is sent."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
