from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from speciesdex.settings import normalize_database_url

logger = logging.getLogger(__name__)


def sanitize_database_url(url: str) -> str:
    """Hide any password embedded in ``url`` before it reaches the logs."""

    if "://" not in url:
        return url

    scheme, rest = url.split("://", 1)
    if "@" in rest:
        auth, host_db = rest.split("@", 1)
        if ":" in auth:
            user, _ = auth.split(":", 1)
            return f"{scheme}://{user}:***@{host_db}"
        return f"{scheme}://{auth}@{host_db}"
    return url


def is_memory_database(url: str) -> bool:
    database = make_url(url).database
    return database in (None, "", ":memory:")


def database_path(url: str) -> Path | None:
    """Return the filesystem path behind a SQLite ``url`` (``None`` for memory)."""

    if is_memory_database(url):
        return None
    return Path(make_url(url).database)


def create_engine(database_url: str) -> AsyncEngine:
    """Create the async SQLAlchemy engine for the SQLite cache file.

    In-memory databases share a single connection so every session observes the
    same tables. File databases get their parent directory created on demand.
    """

    url = normalize_database_url(database_url)

    if is_memory_database(url):
        return create_async_engine(
            url,
            future=True,
            echo=False,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )

    path = database_path(url)
    if path is not None:
        path.parent.mkdir(parents=True, exist_ok=True)

    logger.debug("Creating cache engine for %s", sanitize_database_url(url))
    return create_async_engine(url, future=True, echo=False)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


__all__ = [
    "create_engine",
    "create_session_factory",
    "database_path",
    "is_memory_database",
    "sanitize_database_url",
]
