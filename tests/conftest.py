"""
Shared pytest fixtures and configuration for all tests.
"""

from collections.abc import AsyncGenerator, Callable, Generator
from typing import Any
from unittest.mock import MagicMock
from uuid import UUID

import pytest
import pytest_asyncio
import strawberry

from schoolhub.auth.context import ActorContext
from schoolhub.auth.factory import get_auth_adapter_cached
from schoolhub.core.error_sink import ErrorLogSink
from schoolhub.graphql.context import build_context
from schoolhub.store.base import EntityKind, Record
from schoolhub.store.memory import MemoryEntityGateway


@pytest.fixture
def gateway() -> MemoryEntityGateway:
    """Fresh in-memory entity store for each test."""
    return MemoryEntityGateway()


@pytest_asyncio.fixture
async def error_sink(gateway: MemoryEntityGateway) -> AsyncGenerator[ErrorLogSink, None]:
    sink = ErrorLogSink(gateway)
    yield sink
    await sink.drain()


@pytest_asyncio.fixture
async def admin(gateway: MemoryEntityGateway) -> Record:
    """An active user holding the admin role."""
    return await gateway.create(
        EntityKind.USER,
        {
            "first_name": "Ada",
            "last_name": "Admin",
            "email": "ada@example.com",
            "password_hash": None,
            "roles": ["user", "admin"],
            "created_by": None,
        },
    )


@pytest_asyncio.fixture
async def plain_user(gateway: MemoryEntityGateway) -> Record:
    """An active user without the admin role."""
    return await gateway.create(
        EntityKind.USER,
        {
            "first_name": "Una",
            "last_name": "User",
            "email": "una@example.com",
            "password_hash": None,
            "roles": ["user"],
            "created_by": None,
        },
    )


@pytest_asyncio.fixture
async def school(gateway: MemoryEntityGateway) -> Record:
    return await gateway.create(
        EntityKind.SCHOOL,
        {
            "brand_name": "Northside",
            "long_name": "Northside High School",
            "address": None,
            "country": None,
            "city": None,
            "zipcode": None,
            "students": [],
            "created_by": None,
        },
    )


@pytest_asyncio.fixture
async def other_school(gateway: MemoryEntityGateway) -> Record:
    return await gateway.create(
        EntityKind.SCHOOL,
        {
            "brand_name": "Southside",
            "long_name": "Southside Academy",
            "address": None,
            "country": None,
            "city": None,
            "zipcode": None,
            "students": [],
            "created_by": None,
        },
    )


@pytest.fixture
def make_info(
    gateway: MemoryEntityGateway, error_sink: ErrorLogSink
) -> Callable[..., Any]:
    """Build a mock ``strawberry.Info`` carrying a real per-request context."""

    def _make(actor_id: UUID | None = None) -> Any:
        info = MagicMock(spec=strawberry.Info)
        info.context = build_context(
            gateway, ActorContext(user_id=actor_id), error_sink=error_sink
        )
        return info

    return _make


@pytest.fixture(autouse=True)
def reset_auth_adapter_cache() -> Generator[None, None, None]:
    get_auth_adapter_cached.cache_clear()
    yield
    get_auth_adapter_cached.cache_clear()


# Test markers
def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: mark test as slow running")
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "unit: mark test as unit test")
