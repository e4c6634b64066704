"""
Database Session Management
Creates and manages SQLAlchemy database engine and session factory.

This module sets up the database connection using SQLAlchemy 2.0 style
and provides a session factory for creating database sessions in endpoints.
"""

from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from foodie.core.config import settings


def _engine_options(url: str) -> dict:
    """
    Engine keyword arguments for the configured backend.

    SQLite (used for local development and tests) needs
    check_same_thread disabled because FastAPI runs sync endpoints
    in a thread pool.
    """
    options = {
        "echo": settings.DEBUG,  # Log SQL queries in debug mode
        "pool_pre_ping": True,  # Check connection health before using
    }
    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
    else:
        options["pool_recycle"] = 3600  # Recycle connections every hour
    return options


# Create SQLAlchemy engine
# The engine maintains a pool of database connections.
engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

# Session factory
# - autocommit=False: Require explicit commit() calls
# - autoflush=False: Require explicit flush() calls
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency function that provides database sessions to FastAPI endpoints.

    One session per request. Services commit their own units of work and
    roll back on failure; the session is always closed when the request ends.

    Usage in FastAPI endpoint:
        @router.get("/collections")
        def list_collections(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
