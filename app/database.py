"""
Database Configuration Module

This module sets up SQLAlchemy 2.0 as the aggregate store for the discovery
engine: users, books, reviews, follow edges and activity records.

Session Management Pattern
==========================
We use the "session per request" pattern:
1. Request arrives -> create a new session
2. Use session for all database operations in that request
3. Commit on success, rollback on failure
4. Close session when request ends

This is implemented using FastAPI's dependency injection.

The one exception is the activity dispatch worker, which opens its own
short-lived session per event through SessionLocal.
"""

from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from app.config import get_settings

settings = get_settings()


# =============================================================================
# Database Engine
# =============================================================================
# - pool_size / max_overflow: connection pool sizing (not valid for SQLite)
# - pool_pre_ping: Test connection health before using
# - echo: Log all SQL statements in debug mode

if settings.is_sqlite:
    engine = create_engine(
        settings.database_url,
        connect_args={"check_same_thread": False},
        echo=settings.debug,
    )
else:
    engine = create_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
        echo=settings.debug,
    )


# =============================================================================
# Session Factory
# =============================================================================
# - autocommit=False: We control when to commit
# - autoflush=False: Don't auto-flush before queries

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Alembic uses Base.metadata to discover models for migrations.
    """
    pass


# =============================================================================
# Dependency Injection
# =============================================================================
def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI.

    Creates a new session, yields it to the route handler and closes it
    when the request ends (in the finally block).

    Usage in Routes:
        @router.get("/feed/global")
        def global_feed(db: DbSession):
            ...

    Yields:
        SQLAlchemy Session instance
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# =============================================================================
# Utility Functions
# =============================================================================
def create_tables() -> None:
    """
    Create all database tables.

    WARNING: In production, use Alembic migrations instead!
    """
    Base.metadata.create_all(bind=engine)

