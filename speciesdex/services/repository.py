"""Cache-first access to catalog data.

The repository is the only component that talks to both the
:class:`~speciesdex.db.store.LocalStore` and the
:class:`~speciesdex.remote.client.RemoteSource`. Reads consult the store first
and only go to the network on a miss or when the caller forces a refresh.
Writes back to the store after a remote fetch are best effort: a failing write
is logged and the freshly fetched data is still returned.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable
from typing import TypeVar

from speciesdex.db.store import LocalStore, now_epoch_ms
from speciesdex.errors import StoreIOError
from speciesdex.remote.client import RemoteSource
from speciesdex.schemas.catalog import DetailRecord, ListItem
from speciesdex.schemas.evolution import EvolutionChain
from speciesdex.settings import DEFAULT_ARTWORK_URL_TEMPLATE

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CatalogRepository:
    """Coordinate the local cache and the remote service for catalog reads."""

    def __init__(
        self,
        store: LocalStore,
        remote: RemoteSource,
        *,
        clock: Callable[[], int] = now_epoch_ms,
        artwork_url_template: str = DEFAULT_ARTWORK_URL_TEMPLATE,
    ) -> None:
        self._store = store
        self._remote = remote
        self._clock = clock
        self._artwork_url_template = artwork_url_template
        self._inflight: dict[Hashable, asyncio.Task] = {}
        self._favorite_lock = asyncio.Lock()

    @property
    def page_size(self) -> int:
        return self._remote.page_size

    def artwork_url(self, entry: ListItem | DetailRecord) -> str:
        """Return the artwork URL of ``entry`` using the configured template."""

        return entry.artwork_url(self._artwork_url_template)

    async def _deduplicated(self, key: Hashable, factory: Callable[[], Awaitable[T]]) -> T:
        """Share one in-flight task between concurrent identical requests.

        The task is shielded so a cancelled caller does not abort the request
        other callers are still waiting on.
        """

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._inflight[key] = task

            def _forget(finished: asyncio.Task, key: Hashable = key) -> None:
                if self._inflight.get(key) is finished:
                    del self._inflight[key]
                if not finished.cancelled():
                    finished.exception()

            task.add_done_callback(_forget)
        return await asyncio.shield(task)

    async def list_page(self, page: int, force_refresh: bool = False) -> list[ListItem]:
        """Return the items of ``page``, from the cache unless ``force_refresh``."""

        return await self._deduplicated(
            ("page", page, force_refresh),
            lambda: self._load_page(page, force_refresh),
        )

    async def _load_page(self, page: int, force_refresh: bool) -> list[ListItem]:
        if not force_refresh:
            cached = await self._store.get_page(page)
            if cached:
                logger.debug("Cache hit for page %s (%s items)", page, len(cached))
                return cached

        fetched = await self._remote.fetch_page(page)
        items = list(fetched.items)
        try:
            await self._store.put_page(items)
        except StoreIOError as exc:
            logger.warning("Failed to cache page %s: %s", page, exc.detail or exc.message)
        return items

    async def detail(self, key: str, force_refresh: bool = False) -> DetailRecord:
        """Return the detail record for ``key``, from the cache unless ``force_refresh``."""

        return await self._deduplicated(
            ("detail", key, force_refresh),
            lambda: self._load_detail(key, force_refresh),
        )

    async def _load_detail(self, key: str, force_refresh: bool) -> DetailRecord:
        if not force_refresh:
            cached = await self._store.get_detail(key)
            if cached is not None:
                logger.debug("Cache hit for detail %s", key)
                return cached

        record = await self._remote.fetch_detail(key)
        try:
            await self._store.put_detail(record)
        except StoreIOError as exc:
            logger.warning("Failed to cache detail %s: %s", key, exc.detail or exc.message)
        return record

    async def toggle_favorite(self, id: int, key: str) -> bool:
        """Flip the favorite state of ``id`` and return the new state."""

        async with self._favorite_lock:
            if await self._store.is_favorite(id):
                await self._store.remove_favorite(id)
                logger.info("Removed favorite %s (%s)", id, key)
                return False

            await self._store.add_favorite(id, key, self._clock())
            added = await self._store.is_favorite(id)
            if added:
                logger.info("Added favorite %s (%s)", id, key)
            else:
                logger.warning("Favorite %s was not saved; key %s is already taken", id, key)
            return added

    async def is_favorite(self, id: int) -> bool:
        return await self._store.is_favorite(id)

    async def favorite_ids(self) -> list[int]:
        return await self._store.list_favorite_ids()

    async def favorites(self) -> list[ListItem]:
        """Return favorited list items, most recently added first."""

        return await self._store.list_favorite_items()

    async def evolution_chain(self, record: DetailRecord) -> EvolutionChain | None:
        """Fetch the evolution chain referenced by ``record``; not cached."""

        if not record.evolution_ref:
            return None
        return await self._remote.fetch_evolution_chain(record.evolution_ref)


__all__ = ["CatalogRepository"]
