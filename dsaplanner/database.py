"""
Database configuration and session management.
Supports both SQLite (local development) and PostgreSQL (production).
"""

import logging

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import get_settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def is_postgresql(database_url: str) -> bool:
    return "postgresql" in database_url or "postgres" in database_url


def build_engine(database_url: str) -> Engine:
    """Create an engine configured for the database type."""
    if is_postgresql(database_url):
        return create_engine(
            database_url,
            pool_pre_ping=True,  # Verify connections before using
            pool_size=5,
            max_overflow=10,
            pool_recycle=300,
        )
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        # One shared connection so every session sees the same in-memory database
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if "sqlite" in database_url:
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},  # Required for SQLite with FastAPI
        )
    return create_engine(database_url)


DATABASE_URL = get_settings().database_url

engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_database_type(database_url: str = DATABASE_URL) -> str:
    """Return a description of the current database type."""
    if is_postgresql(database_url):
        return "PostgreSQL"
    elif "sqlite" in database_url:
        return "SQLite (local)"
    else:
        return "Unknown"


def init_db(bind: Engine = engine) -> None:
    """Verify the connection and create tables."""
    from . import models  # noqa: F401  register models

    db_type = get_database_type(str(bind.url))
    logger.info("Connecting to database: %s", db_type)

    with bind.connect() as conn:
        conn.execute(text("SELECT 1"))

    Base.metadata.create_all(bind=bind)
    logger.info("Database tables initialized (%s)", db_type)
