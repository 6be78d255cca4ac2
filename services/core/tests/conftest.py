"""Pytest configuration and fixtures for outlets service tests.

This module provides fixtures for:
- Database: SQLite in-memory engine with foreign keys and SAVEPOINT support
- Services: one instance of each domain service bound to the test session
- HTTP client: AsyncClient for FastAPI testing
"""

from collections.abc import AsyncGenerator, Generator
from datetime import datetime, timezone

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session

from outlets_core.domain.models import Base
from outlets_core.infra.db import Database, configure_sqlite
from outlets_core.observability.metrics import get_collector


# Fixed clock for freshness classification tests
FIXED_NOW = datetime(2026, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


# -----------------------------------------------------------------------------
# Database Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def sync_engine():
    """Create a SQLite in-memory engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    configure_sqlite(engine)

    # Create all tables
    Base.metadata.create_all(bind=engine)

    yield engine

    # Cleanup
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def database(sync_engine) -> Database:
    """Storage client bound to the test engine."""
    return Database(sync_engine)


@pytest.fixture
def db_session(database) -> Generator[Session, None, None]:
    """Create a database session for testing."""
    session = database.session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# -----------------------------------------------------------------------------
# Service Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def registry(db_session):
    from outlets_core.domain.services.outlets import OutletRegistry

    return OutletRegistry(db_session)


@pytest.fixture
def ledger(db_session, registry):
    from outlets_core.domain.services.ledger import RelevanceLedger

    return RelevanceLedger(db_session, outlets=registry)


@pytest.fixture
def categories(db_session):
    from outlets_core.domain.services.categories import CategoryRegistry

    return CategoryRegistry(db_session)


@pytest.fixture
def links(db_session, categories, registry):
    from outlets_core.domain.services.categories import CategoryLinks

    return CategoryLinks(db_session, categories=categories, outlets=registry)


@pytest.fixture
def ratings(db_session, registry):
    from outlets_core.domain.services.domain_rating import DomainRatingStore

    return DomainRatingStore(db_session, outlets=registry)


@pytest.fixture
def classifier(db_session):
    from outlets_core.domain.services.freshness import FreshnessClassifier

    return FreshnessClassifier(db_session, now=FIXED_NOW)


# -----------------------------------------------------------------------------
# FastAPI Test Client Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def test_app(database, db_session) -> Generator[FastAPI, None, None]:
    """FastAPI application whose requests run on the test session.

    The SQLite engine shares one connection, so requests reuse db_session
    rather than opening a second transaction on it.
    """
    from outlets_core.api.deps import get_db
    from outlets_core.main import app

    app.state.database = database

    def override_get_db():
        try:
            yield db_session
            db_session.commit()
        except Exception:
            db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db

    yield app

    # Clean up overrides
    app.dependency_overrides.clear()
    app.state.database = None


@pytest.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing FastAPI endpoints."""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as ac:
        yield ac


# -----------------------------------------------------------------------------
# Cleanup Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def reset_settings_cache(monkeypatch):
    """Reset the settings cache and API key before each test."""
    from outlets_core.config import get_settings

    monkeypatch.delenv("API_KEY", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def reset_metrics():
    """Start every test with an empty metrics collector."""
    get_collector().reset()
    yield
    get_collector().reset()
