# artspark/conftest.py
import os
import random

import pytest

os.environ.setdefault("SKIP_ENV_VALIDATION", "1")
os.environ.setdefault("ENV", "test")

from artspark.core.config import Settings
from artspark.core.database import build_engine, create_all_tables
from artspark.core.environment import build_simulated_environment, configure_environment, reset_environment
from sqlalchemy.orm import sessionmaker


@pytest.fixture
def test_settings():
    """Settings isolated from any local .env file."""
    return Settings(_env_file=None, DATA_SOURCE="simulated", ONLINE_ATTEMPT_TIMEOUT_SECONDS=0.5)


@pytest.fixture
def env(test_settings):
    """Simulated environment with a seeded random source, installed as the app environment."""
    environment = build_simulated_environment(test_settings, rng=random.Random(42))
    configure_environment(environment)
    yield environment
    reset_environment()


@pytest.fixture
def sqlite_session_factory():
    """
    In-memory SQLite shared across threads (StaticPool), so the SQL stores can
    be exercised from asyncio.to_thread workers.
    """
    engine = build_engine("sqlite://")
    create_all_tables(engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()
