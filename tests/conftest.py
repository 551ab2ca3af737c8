"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DEFAULT_STRATEGY_TYPE", "1")
os.environ.setdefault("SEED_DEFAULT_STRATEGIES", "false")

# Make the repository root importable so tests can import `wordprogress` and `tests.utils`.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.append(str(PROJECT_ROOT))

from wordprogress.core.config import settings
from wordprogress.crud.progress_store import ProgressStore
from wordprogress.db.base import Base
from wordprogress.db.initial_data import seed_review_strategies
from wordprogress.services.container import build_services
from tests.utils import FixedAdaptive


@pytest.fixture()
def engine():
    # One shared connection so every session (and TestClient thread) sees the same in-memory database.
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def store(session_factory) -> ProgressStore:
    return ProgressStore(session_factory)


@pytest.fixture()
def seeded_store(store) -> ProgressStore:
    seed_review_strategies(store)
    return store


@pytest.fixture()
def adaptive():
    return FixedAdaptive()


@pytest.fixture()
def services(session_factory, adaptive):
    services = build_services(session_factory, settings, adaptive=adaptive)
    seed_review_strategies(services.store)
    return services
