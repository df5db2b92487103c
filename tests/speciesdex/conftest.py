"""Fixtures shared by the speciesdex tests."""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
import pytest_asyncio

from speciesdex.db.store import LocalStore
from speciesdex.services.repository import CatalogRepository

from .support.doubles import FakeClock, FakeRemoteSource


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """Return the URL of a fresh, not yet created cache file."""

    return f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}"


@pytest_asyncio.fixture
async def store(database_url: str) -> AsyncIterator[LocalStore]:
    local_store = LocalStore(database_url)
    await local_store.open()
    yield local_store
    await local_store.close()


@pytest.fixture
def remote() -> FakeRemoteSource:
    return FakeRemoteSource()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repository(store: LocalStore, remote: FakeRemoteSource, clock: FakeClock) -> CatalogRepository:
    return CatalogRepository(store, remote, clock=clock)
