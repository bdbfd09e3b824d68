"""Database connection and session management."""

import logging
from contextlib import contextmanager
from typing import Callable, Generator, Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from weather_analyzer.config import AppConfig, get_config

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]

# Base class for ORM models
Base = declarative_base()


def create_db_engine(config: AppConfig) -> Engine:
    """
    Create SQLAlchemy engine for the configured database.

    SQLite gets a single shared connection for in-memory databases and
    cross-thread access, since the ingestion thread and request handlers
    use the same engine. Other databases use a connection pool.
    """
    if config.is_sqlite:
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in config.database_url or config.database_url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
        return create_engine(config.database_url, **kwargs)

    return create_engine(
        config.database_url,
        poolclass=QueuePool,
        pool_size=config.pool_size,
        max_overflow=config.max_overflow,
        pool_timeout=config.pool_timeout,
        pool_recycle=config.pool_recycle,
        pool_pre_ping=True,  # Verify connections before using
        echo=False,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to an engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Process-wide engine and session factory
engine = create_db_engine(get_config())
SessionLocal = create_session_factory(engine)


def init_db(bind: Optional[Engine] = None) -> None:
    """Create all tables that do not exist yet."""
    # Register ORM models on Base.metadata
    from weather_analyzer import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Dependency for FastAPI endpoints to get database session.

    Sessions come from the factory the application was created with.

    Yields:
        Database session that is automatically closed after use.
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope(session_factory: SessionFactory) -> Iterator[Session]:
    """Open a session for a unit of work outside of a request."""
    session = session_factory()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def check_db_connection(session_factory: Optional[SessionFactory] = None) -> bool:
    """
    Check if database connection is healthy.

    Returns:
        True if connection successful, False otherwise.
    """
    try:
        with session_scope(session_factory or SessionLocal) as db:
            db.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"Database connection check failed: {e}")
        return False
