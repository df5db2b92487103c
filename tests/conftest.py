"""Pytest configuration shared by the whole suite."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from speciesdex.settings import get_settings

_CATALOG_ENV_VARS = (
    "CATALOG_API_BASE_URL",
    "CATALOG_ITEMS_PATH",
    "CATALOG_PAGE_SIZE",
    "CATALOG_CONNECT_TIMEOUT",
    "CATALOG_READ_TIMEOUT",
    "CATALOG_DATABASE_URL",
    "CATALOG_USER_AGENT",
    "CATALOG_ARTWORK_URL_TEMPLATE",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep catalog environment variables and the settings cache from leaking between tests."""

    for name in _CATALOG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
