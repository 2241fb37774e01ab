"""
Database configuration and connection management.

This module provides:
- SQLAlchemy engine and session management
- Connection pooling with sane defaults
- Test database support (SQLite in-memory with a static pool)
- Table definitions for preferences, prompts and responses
"""
from typing import Optional
from contextlib import contextmanager
from sqlalchemy import create_engine, MetaData, Table, Column, String, DateTime, Boolean, JSON, Text, Index, text
from sqlalchemy.pool import QueuePool, StaticPool
from sqlalchemy.orm import sessionmaker
from sqlalchemy.sql import func
import logging
import os

from artspark.core.config import settings


# SQLAlchemy metadata for table definitions
metadata = MetaData()

# Connection pooling configuration
POOL_SIZE = 10
MAX_OVERFLOW = 20
POOL_TIMEOUT = 30
POOL_RECYCLE = 3600  # Recycle connections after 1 hour

# Global engine and session factory
_engine = None
_SessionLocal = None


def get_database_url() -> Optional[str]:
    """
    Get the database URL from settings or environment.

    For testing, use TEST_DATABASE_URL if available.
    """
    test_url = os.getenv("TEST_DATABASE_URL")
    if test_url:
        return test_url

    return settings.DATABASE_URL


def build_engine(url: str):
    """Create an engine; SQLite gets a single shared connection so in-memory data survives."""
    if url.startswith("sqlite"):
        return create_engine(
            url,
            echo=False,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=POOL_SIZE,
        max_overflow=MAX_OVERFLOW,
        pool_timeout=POOL_TIMEOUT,
        pool_recycle=POOL_RECYCLE,
        echo=False,  # Set to True for SQL query logging
    )


def init_engine(database_url: Optional[str] = None):
    """
    Initialize the SQLAlchemy engine.

    Args:
        database_url: Optional override for DATABASE_URL
    """
    global _engine, _SessionLocal

    url = database_url or get_database_url()

    if not url:
        raise ValueError(
            "DATABASE_URL is not configured. "
            "Set DATABASE_URL in environment or .env file."
        )

    _engine = build_engine(url)

    # Create session factory
    _SessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=_engine
    )

    return _engine


def get_engine():
    """Get the current SQLAlchemy engine."""
    global _engine
    if _engine is None:
        init_engine()
    return _engine


def get_session_factory():
    """Get the session factory."""
    global _SessionLocal
    if _SessionLocal is None:
        init_engine()
    return _SessionLocal


@contextmanager
def session_scope(session_factory=None):
    """
    Context manager for database sessions.

    Usage:
        with session_scope() as session:
            session.execute(...)
    """
    SessionLocal = session_factory or get_session_factory()
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_all_tables(engine=None):
    """
    Create all tables defined in metadata.

    This is idempotent - tables that already exist will not be recreated.
    """
    metadata.create_all(bind=engine or get_engine())


def check_connection() -> bool:
    """
    Check if database connection is available.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        engine = get_engine()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logging.getLogger("artspark").warning(f"Database connection check failed: {e}")
        return False


# User preferences (written by onboarding/settings, read-only for generation)
user_preferences = Table(
    'user_preferences',
    metadata,
    Column('user_id', String(100), primary_key=True),
    Column('art_mediums', JSON, nullable=False),
    Column('subjects', JSON, nullable=False),
    Column('color_palettes', JSON, nullable=False),
    Column('exclusions', JSON, nullable=False),
    Column('difficulty', String(50), nullable=True),
    Column('onboarding_completed', Boolean, nullable=False, server_default='false'),
    Column('updated_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
)

# Prompts (daily + manual)
prompts = Table(
    'prompts',
    metadata,
    Column('id', String(36), primary_key=True),
    Column('user_id', String(100), nullable=False),
    Column('date_key', String(10), nullable=False),
    Column('kind', String(10), nullable=False),
    Column('medium', String(100), nullable=False),
    Column('subject', String(100), nullable=False),
    Column('color_rule', String(100), nullable=True),
    Column('twist', Text, nullable=True),
    Column('prompt_text', Text, nullable=False),
    Column('created_at', DateTime(timezone=True), nullable=False),
    # At most one daily prompt per (user_id, date_key); manual prompts are unbounded
    Index(
        'uq_prompts_daily_user_date',
        'user_id',
        'date_key',
        unique=True,
        postgresql_where=text("kind = 'daily'"),
        sqlite_where=text("kind = 'daily'"),
    ),
    Index('idx_prompts_user_date', 'user_id', 'date_key'),
    # Rotation window lookups: (user_id, created_at)
    Index('idx_prompts_user_created', 'user_id', 'created_at'),
)

# Responses (persisted submissions)
responses = Table(
    'responses',
    metadata,
    Column('id', String(36), primary_key=True),
    Column('user_id', String(100), nullable=False),
    Column('prompt_id', String(36), nullable=False),
    Column('image_urls', JSON, nullable=False),
    Column('notes', Text, nullable=True),
    Column('tags', JSON, nullable=False),
    Column('created_at', DateTime(timezone=True), nullable=False),
    Index('idx_responses_user_created', 'user_id', 'created_at'),
    Index('idx_responses_prompt', 'prompt_id'),
)
