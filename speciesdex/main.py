"""Composition root: settings, logging, store, remote client and repository."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx

from speciesdex.db.connection import sanitize_database_url
from speciesdex.db.store import LocalStore
from speciesdex.remote.client import RemoteSource
from speciesdex.services.repository import CatalogRepository
from speciesdex.settings import CatalogSettings, get_settings
from speciesdex.state.pagination import PaginationCoordinator

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(settings: CatalogSettings | None = None) -> None:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level_numeric, format=LOG_FORMAT)


def validate_environment(settings: CatalogSettings | None = None) -> list[str]:
    """Log warnings for unset optional configuration and return them."""

    settings = settings or get_settings()
    warnings = settings.optional_config_warnings()

    if warnings:
        logger.warning("=" * 60)
        logger.warning("Environment Configuration Warnings:")
        for warning in warnings:
            logger.warning(f"  • {warning}")
        logger.warning("=" * 60)

    return warnings


@dataclass
class CatalogSession:
    """Wired components sharing one store and one HTTP client."""

    settings: CatalogSettings
    store: LocalStore
    remote: RemoteSource
    repository: CatalogRepository

    def pagination(self) -> PaginationCoordinator:
        return PaginationCoordinator(self.repository, page_size=self.settings.page_size)


@asynccontextmanager
async def catalog_session(
    settings: CatalogSettings | None = None,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> AsyncIterator[CatalogSession]:
    """Open the cache, build the remote client and yield a :class:`CatalogSession`.

    The store and the remote client are closed when the context exits, even if
    the body raised.
    """

    settings = settings or get_settings()
    configure_logging(settings)
    validate_environment(settings)

    database_url = settings.resolved_database_url
    logger.info("Catalog service: %s%s", settings.api_base_url, settings.items_path)
    logger.info("Catalog cache: %s", sanitize_database_url(database_url))

    remote = RemoteSource(settings, client=http_client)
    store = LocalStore(database_url)
    try:
        await store.open()
        yield CatalogSession(
            settings=settings,
            store=store,
            remote=remote,
            repository=CatalogRepository(
                store,
                remote,
                artwork_url_template=settings.artwork_url_template,
            ),
        )
    finally:
        await remote.aclose()
        await store.close()


__all__ = [
    "CatalogSession",
    "LOG_FORMAT",
    "catalog_session",
    "configure_logging",
    "validate_environment",
]
