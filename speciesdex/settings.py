"""Centralized configuration management for the species catalog client."""

from __future__ import annotations

import logging
from functools import lru_cache

import httpx
from dotenv import load_dotenv
from pydantic import Field, PrivateAttr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load a local .env file before the settings singleton is built so scripts and
# tests importing :mod:`speciesdex.settings` observe the same environment.
load_dotenv()

# -- Application-wide constants -------------------------------------------------

DEFAULT_API_BASE_URL = "http://localhost:8000"
DEFAULT_ITEMS_PATH = "/catalog/items"
DEFAULT_PAGE_SIZE = 20
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./data/catalog.db"
SQLITE_ASYNC_PREFIX = "sqlite+aiosqlite://"
SQLITE_SYNC_PREFIX = "sqlite://"
DEFAULT_USER_AGENT = "SpeciesDex/0.1 (+local)"
DEFAULT_ARTWORK_URL_TEMPLATE = (
    "https://raw.githubusercontent.com/PokeAPI/sprites/master/sprites/pokemon/"
    "other/official-artwork/{id}.png"
)
DEFAULT_LOG_LEVEL = "INFO"


def normalize_database_url(url: str) -> str:
    """Return ``url`` coerced to the aiosqlite driver.

    Only SQLite files are supported as the backing medium. Plain ``sqlite://``
    URLs are upgraded to ``sqlite+aiosqlite://``; anything else is rejected.
    """

    normalized = url.strip()
    if not normalized:
        raise ValueError("CATALOG_DATABASE_URL is set but empty.")

    if normalized.startswith(SQLITE_ASYNC_PREFIX):
        return normalized
    if normalized.startswith(SQLITE_SYNC_PREFIX):
        return normalized.replace(SQLITE_SYNC_PREFIX, SQLITE_ASYNC_PREFIX, 1)

    raise ValueError(
        "CATALOG_DATABASE_URL must use the SQLite scheme. "
        "Expected a URL beginning with 'sqlite://' or 'sqlite+aiosqlite://'."
    )


class CatalogSettings(BaseSettings):
    """Typed configuration surface built on top of ``pydantic-settings``.

    Values come from environment variables (or a local ``.env`` file). The
    helper properties translate raw values into the objects consumers need, for
    example the :class:`httpx.Timeout` used by the remote client.
    """

    _explicit_api_base_url: bool = PrivateAttr(default=False)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    def __init__(self, **values: object) -> None:
        """Record whether the API base URL was supplied explicitly."""

        super().__init__(**values)
        # Values read from the environment are part of ``model_fields_set`` too.
        self._explicit_api_base_url = "api_base_url" in self.model_fields_set

    api_base_url: str = Field(
        default=DEFAULT_API_BASE_URL,
        alias="CATALOG_API_BASE_URL",
        description="Scheme and host of the remote catalog service.",
    )
    items_path: str = Field(
        default=DEFAULT_ITEMS_PATH,
        alias="CATALOG_ITEMS_PATH",
        description="Path of the list endpoint; detail lives at ``{items_path}/{key}``.",
    )
    page_size: int = Field(
        default=DEFAULT_PAGE_SIZE,
        alias="CATALOG_PAGE_SIZE",
        ge=1,
        le=100,
        description="Number of items requested per remote page.",
    )
    connect_timeout: float = Field(
        default=DEFAULT_TIMEOUT_SECONDS,
        alias="CATALOG_CONNECT_TIMEOUT",
        gt=0,
        description="Seconds allowed to establish a connection.",
    )
    read_timeout: float = Field(
        default=DEFAULT_TIMEOUT_SECONDS,
        alias="CATALOG_READ_TIMEOUT",
        gt=0,
        description="Seconds allowed for the response to arrive.",
    )
    database_url: str = Field(
        default=DEFAULT_DATABASE_URL,
        alias="CATALOG_DATABASE_URL",
        description="SQLAlchemy URL of the local cache file.",
    )
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        alias="CATALOG_USER_AGENT",
        description="User-Agent header sent with every remote request.",
    )
    artwork_url_template: str = Field(
        default=DEFAULT_ARTWORK_URL_TEMPLATE,
        alias="CATALOG_ARTWORK_URL_TEMPLATE",
        description="``str.format`` template with an ``{id}`` placeholder.",
    )
    log_level: str = Field(
        default=DEFAULT_LOG_LEVEL,
        alias="LOG_LEVEL",
        description="Root logging level (e.g. INFO, DEBUG, WARNING).",
    )

    @field_validator("items_path")
    @classmethod
    def _normalize_items_path(cls, value: str) -> str:
        cleaned = "/" + value.strip().strip("/")
        if cleaned == "/":
            raise ValueError("CATALOG_ITEMS_PATH must not be empty")
        return cleaned

    @field_validator("api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")

    @property
    def resolved_database_url(self) -> str:
        """Return the aiosqlite database URL after normalisation."""

        return normalize_database_url(self.database_url)

    @property
    def http_timeout(self) -> httpx.Timeout:
        """Return the explicit connect/read ceilings for remote calls."""

        return httpx.Timeout(
            self.read_timeout,
            connect=self.connect_timeout,
            read=self.read_timeout,
        )

    @property
    def log_level_numeric(self) -> int:
        """Translate ``log_level`` into the numeric constant expected by logging."""

        candidate = logging.getLevelName(self.log_level.upper())
        if isinstance(candidate, int):
            return candidate
        return logging.INFO

    def optional_config_warnings(self) -> list[str]:
        """Return human-readable warnings for unset optional configuration."""

        warnings: list[str] = []

        if not self._explicit_api_base_url and self.api_base_url == DEFAULT_API_BASE_URL:
            warnings.append(
                "CATALOG_API_BASE_URL is not set - remote fetches target "
                f"{DEFAULT_API_BASE_URL}"
            )

        if self.database_url == DEFAULT_DATABASE_URL:
            warnings.append(
                "CATALOG_DATABASE_URL is not set - caching to ./data/catalog.db"
            )

        return warnings


@lru_cache(maxsize=1)
def get_settings() -> CatalogSettings:
    """Return a cached instance of :class:`CatalogSettings`."""

    return CatalogSettings()


__all__ = [
    "CatalogSettings",
    "DEFAULT_API_BASE_URL",
    "DEFAULT_ARTWORK_URL_TEMPLATE",
    "DEFAULT_DATABASE_URL",
    "DEFAULT_ITEMS_PATH",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_TIMEOUT_SECONDS",
    "get_settings",
    "normalize_database_url",
]
