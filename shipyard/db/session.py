"""Database engine utilities.

This module centralizes database connectivity primitives to enforce the db-layer
boundary for all SQLAlchemy usage.
"""

from sqlalchemy import Engine, create_engine
from sqlalchemy.pool import StaticPool

from .schema import metadata


def db_create_engine(database_url: str) -> Engine:
    """Create the SQLAlchemy engine for application database access.

    In-memory SQLite URLs share one connection so every repository sees the
    same database.

    Args:
        database_url: SQLAlchemy database URL.

    Returns:
        Engine: Configured SQLAlchemy engine.

    Raises:
        ValueError: Raised when the database URL is blank.
    """

    normalized_url = database_url.strip()
    if not normalized_url:
        raise ValueError("database_url must not be blank")

    if normalized_url.startswith("sqlite") and ":memory:" in normalized_url:
        return create_engine(
            normalized_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(normalized_url, pool_pre_ping=True)


def db_create_schema(engine: Engine) -> None:
    """Create all tables directly from metadata.

    Production databases are migrated with alembic; this helper serves local
    SQLite runs and tests.

    Args:
        engine: SQLAlchemy engine instance.

    Raises:
        ValueError: Raised when engine is invalid.
    """

    if engine is None:
        raise ValueError("engine must not be None")

    metadata.create_all(engine)
