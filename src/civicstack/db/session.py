"""
Database Session Management

Provides database connection pooling and session management.
"""
from contextlib import contextmanager
from functools import lru_cache
from typing import Generator

from sqlalchemy import create_engine, event, exc, pool
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from config.settings import settings
from src.civicstack.utils.logger import get_logger

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """
    Create the database engine on first use.

    Pool sizing only applies to server databases; SQLite URLs get the
    dialect defaults.

    Returns:
        Shared SQLAlchemy engine
    """
    kwargs = {"echo": settings.database_echo, "pool_pre_ping": True}
    if not settings.database_url.startswith("sqlite"):
        kwargs.update(
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_timeout=settings.database_pool_timeout,
            pool_recycle=settings.database_pool_recycle,
        )

    engine = create_engine(settings.database_url, **kwargs)
    event.listen(engine, "connect", _receive_connect)
    logger.info("database_engine_created", dialect=engine.dialect.name)
    return engine


def _receive_connect(dbapi_conn, connection_record):
    """Log connection establishment."""
    logger.debug("database_connection_established")


@event.listens_for(pool.Pool, "invalidate")
def receive_invalidate(dbapi_conn, connection_record, exception):
    """
    Event listener for connection invalidation.

    Logs when a connection is marked as invalid and removed from pool.
    """
    logger.warning(
        "database_connection_invalidated",
        exception=str(exception) if exception else None
    )


@lru_cache(maxsize=1)
def get_session_factory() -> sessionmaker:
    return sessionmaker(
        bind=get_engine(),
        autocommit=False,
        autoflush=False,
        expire_on_commit=False
    )


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """
    Get database session with automatic cleanup.

    Usage:
        with get_db_session() as session:
            complaint = session.get(Complaint, complaint_id)

    Yields:
        Database session

    Raises:
        Exception: Re-raises any exception after rollback
    """
    session = get_session_factory()()
    try:
        logger.debug("database_session_created")
        yield session
        session.commit()
        logger.debug("database_session_committed")
    except exc.SQLAlchemyError as e:
        session.rollback()
        logger.error(
            "database_session_rollback",
            error=str(e),
            error_type=type(e).__name__
        )
        raise
    except Exception as e:
        session.rollback()
        logger.error(
            "database_session_error",
            error=str(e),
            error_type=type(e).__name__
        )
        raise
    finally:
        session.close()
        logger.debug("database_session_closed")


def close_connections():
    """
    Dispose of the engine.

    Should be called on application shutdown.
    """
    if get_engine.cache_info().currsize:
        get_engine().dispose()
        logger.info("database_connections_closed")
