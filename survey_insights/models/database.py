"""Database setup and session management using SQLAlchemy 2.0.

This module configures the engine and session factory of the local response
store, and builds engines for the analytical source.
"""

from typing import Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from survey_insights.config import get_settings


class Base(DeclarativeBase):
    """Base class for all ORM models.

    Uses SQLAlchemy 2.0's DeclarativeBase for modern type-safe models.
    All models should inherit from this class.
    """
    pass


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine with settings suited to the backend.

    SQLite connections are shared across FastAPI's worker threads, and an
    in-memory SQLite database must live on a single connection.

    Args:
        database_url: SQLAlchemy connection string
        echo: Log emitted SQL

    Returns:
        Engine: Configured SQLAlchemy engine
    """
    settings = get_settings()
    engine_kwargs = {
        "pool_pre_ping": True,  # Verify connections before using
        "echo": echo,
    }

    if database_url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url or database_url.rstrip("/") == "sqlite:":
            engine_kwargs["poolclass"] = StaticPool
    else:
        engine_kwargs["pool_size"] = settings.database_pool_size
        engine_kwargs["max_overflow"] = settings.database_max_overflow

    return create_engine(database_url, **engine_kwargs)


# Get database URL from settings
settings = get_settings()

engine = create_db_engine(settings.database_url, echo=settings.is_development)

# Create session factory
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,  # Prevent lazy loading after commit
)


def init_db(bind: Engine = engine) -> None:
    """Create the local store tables if they do not exist."""
    # Import models so they are registered on Base.metadata
    from survey_insights.models import stored_response  # noqa: F401

    Base.metadata.create_all(bind)


def get_db() -> Generator[Session, None, None]:
    """Dependency function for FastAPI to provide database sessions.

    Yields:
        Session: SQLAlchemy database session

    Note:
        The session is automatically closed after the request completes,
        even if an exception occurs.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
