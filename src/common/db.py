"""Postgres connection helpers."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from functools import lru_cache
from typing import Iterator

from dotenv import load_dotenv
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from common.config import require_env

load_dotenv()

logger = logging.getLogger(__name__)

# Constraints and columns the processing stage depends on. The unique indexes
# are the final guard for idempotent source and story creation.
SCHEMA_STATEMENTS = (
    "ALTER TABLE raw_articles ADD COLUMN IF NOT EXISTS claimed_at TIMESTAMPTZ",
    "ALTER TABLE raw_articles ADD COLUMN IF NOT EXISTS topic_ids UUID[] DEFAULT '{}'",
    "ALTER TABLE raw_articles ADD COLUMN IF NOT EXISTS content_quality NUMERIC(3,2)",
    "ALTER TABLE raw_articles ADD COLUMN IF NOT EXISTS video_url TEXT",
    "ALTER TABLE stories ADD COLUMN IF NOT EXISTS content_quality NUMERIC(3,2)",
    "ALTER TABLE stories ADD COLUMN IF NOT EXISTS video_url TEXT",
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_sources_name_unique ON sources(name)",
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_sources_url_unique ON sources(url)",
    """
    CREATE UNIQUE INDEX IF NOT EXISTS idx_stories_source_url_unique
    ON stories(source_id, original_url)
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_raw_articles_claimable
    ON raw_articles(status, retry_count, fetched_at)
    """,
)


def _normalize_url(database_url: str) -> str:
    # Managed Postgres hands out postgres:// URLs; SQLAlchemy wants a driver.
    if database_url.startswith("postgres://"):
        database_url = "postgresql://" + database_url[len("postgres://"):]
    if database_url.startswith("postgresql://"):
        database_url = "postgresql+psycopg://" + database_url[len("postgresql://"):]
    return database_url


@lru_cache(maxsize=None)
def get_engine(database_url: str | None = None) -> Engine:
    """Create (once) the engine for DATABASE_URL."""
    url = _normalize_url(database_url or require_env("DATABASE_URL"))
    return create_engine(url, pool_pre_ping=True)


@contextmanager
def get_session(database_url: str | None = None) -> Iterator[Session]:
    """Context manager for a session with rollback on error."""
    factory = sessionmaker(bind=get_engine(database_url), expire_on_commit=False)
    session = factory()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def check_connection(session: Session) -> None:
    """Fail fast if the database cannot be reached."""
    session.execute(text("SELECT 1"))


def ensure_schema(session: Session) -> None:
    """Create the indexes and columns the pipeline relies on if missing."""
    for statement in SCHEMA_STATEMENTS:
        session.execute(text(statement))
    session.commit()
    logger.info("Verified %d schema statements", len(SCHEMA_STATEMENTS))
