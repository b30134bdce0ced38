"""
Test fixtures for flapframes tests.

Provides database engines, circuit breaker services and an API client wired to them.
"""

import asyncio
import os

# Settings are read at import time; make auth deterministic before anything imports them
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ADMIN_EMAILS", "admin@example.com")
os.environ.setdefault("RUN_SCHEDULER", "false")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from typing import Generator

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from flapframes.core.circuit_breaker import CircuitBreakerService
from flapframes.models import CircuitBreakerState  # noqa: F401  (registers the table)
from flapframes.services.circuit_repository import InMemoryCircuitRepository, SQLModelCircuitRepository

# Use in-memory SQLite for unit tests (fast, isolated)
TEST_DATABASE_URL = "sqlite:///:memory:"

ADMIN_EMAIL = "admin@example.com"


@pytest.fixture(scope="function")
def test_engine():
    """Create a test database engine with in-memory SQLite."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def test_session(test_engine) -> Generator[Session, None, None]:
    """Provide a test database session."""
    with Session(test_engine) as session:
        yield session


@pytest.fixture
def memory_repository() -> InMemoryCircuitRepository:
    return InMemoryCircuitRepository()


@pytest.fixture
def sql_repository(test_engine) -> SQLModelCircuitRepository:
    return SQLModelCircuitRepository(test_engine)


@pytest.fixture
def circuit_breaker(memory_repository) -> CircuitBreakerService:
    """Service over the in-memory repository with every known circuit initialized."""
    service = CircuitBreakerService(memory_repository)
    asyncio.run(service.initialize())
    return service


@pytest.fixture
def sql_circuit_breaker(sql_repository) -> CircuitBreakerService:
    """Service over SQLite with every known circuit initialized."""
    service = CircuitBreakerService(sql_repository)
    asyncio.run(service.initialize())
    return service


@pytest.fixture
def admin_token() -> str:
    from flapframes.core.jwt import create_access_token

    return create_access_token(ADMIN_EMAIL)


@pytest.fixture
def admin_headers(admin_token) -> dict:
    return {"Authorization": f"Bearer {admin_token}"}


