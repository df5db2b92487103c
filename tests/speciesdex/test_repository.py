"""Tests for the cache-first :class:`speciesdex.services.repository.CatalogRepository`."""

from __future__ import annotations

import asyncio
import logging

import pytest

from speciesdex.db.store import LocalStore
from speciesdex.errors import ConnectionFailureError, NotFoundError
from speciesdex.services.repository import CatalogRepository
from speciesdex.settings import DEFAULT_ARTWORK_URL_TEMPLATE

from .support.doubles import (
    FakeClock,
    FakeRemoteSource,
    WriteFailingStore,
    make_detail,
    make_items,
    simple_chain,
)


@pytest.mark.asyncio
async def test_cache_hit_never_consults_the_network(
    repository: CatalogRepository, store: LocalStore, remote: FakeRemoteSource
) -> None:
    await store.put_page(make_items(0, 20))
    remote.page_errors[0] = ConnectionFailureError()

    items = await repository.list_page(0)

    assert len(items) == 20
    assert remote.page_calls == []


@pytest.mark.asyncio
async def test_cold_start_fetches_each_page_once(
    repository: CatalogRepository, store: LocalStore, remote: FakeRemoteSource
) -> None:
    remote.pages[0] = make_items(0, 20)

    first = await repository.list_page(0)
    second = await repository.list_page(0)

    assert first == second
    assert remote.page_calls == [0]
    assert await store.get_page(0) == first


@pytest.mark.asyncio
async def test_concurrent_identical_requests_share_one_fetch(
    repository: CatalogRepository, remote: FakeRemoteSource
) -> None:
    remote.pages[0] = make_items(0, 20)
    remote.gate = asyncio.Event()

    tasks = [asyncio.create_task(repository.list_page(0)) for _ in range(5)]
    await asyncio.sleep(0.05)
    remote.gate.set()
    results = await asyncio.gather(*tasks)

    assert remote.page_calls == [0]
    assert all(result == results[0] for result in results)


@pytest.mark.asyncio
async def test_force_refresh_bypasses_and_overwrites_cache(
    repository: CatalogRepository, store: LocalStore, remote: FakeRemoteSource
) -> None:
    await store.put_page(make_items(0, 3, prefix="stale"))
    remote.pages[0] = make_items(0, 3, prefix="stale")[:1] + make_items(0, 3, prefix="fresh")[1:]

    items = await repository.list_page(0, force_refresh=True)

    assert remote.page_calls == [0]
    assert [item.key for item in items] == ["stale-1", "fresh-2", "fresh-3"]
    cached_keys = {item.key for item in await store.get_page(0)}
    assert {"fresh-2", "fresh-3"} <= cached_keys


@pytest.mark.asyncio
async def test_remote_errors_propagate_without_cached_fallback(
    repository: CatalogRepository, remote: FakeRemoteSource
) -> None:
    remote.page_errors[0] = ConnectionFailureError()

    with pytest.raises(ConnectionFailureError):
        await repository.list_page(0)


@pytest.mark.asyncio
async def test_failed_cache_write_still_returns_fetched_items(
    database_url: str, remote: FakeRemoteSource, caplog: pytest.LogCaptureFixture
) -> None:
    store = WriteFailingStore(database_url)
    await store.open()
    remote.pages[0] = make_items(0, 5)
    remote.details["pikachu"] = make_detail()
    repository = CatalogRepository(store, remote)

    try:
        with caplog.at_level(logging.WARNING, logger="speciesdex.services.repository"):
            items = await repository.list_page(0)
            record = await repository.detail("pikachu")
    finally:
        await store.close()

    assert len(items) == 5
    assert record.key == "pikachu"
    assert "Failed to cache page 0" in caplog.text
    assert "Failed to cache detail pikachu" in caplog.text


@pytest.mark.asyncio
async def test_detail_is_cached_by_key(
    repository: CatalogRepository, remote: FakeRemoteSource
) -> None:
    remote.details["pikachu"] = make_detail()

    first = await repository.detail("pikachu")
    second = await repository.detail("pikachu")

    assert first == second
    assert remote.detail_calls == ["pikachu"]


@pytest.mark.asyncio
async def test_detail_force_refresh_replaces_cached_record(
    repository: CatalogRepository, store: LocalStore, remote: FakeRemoteSource
) -> None:
    await store.put_detail(make_detail(experience_base=1))
    remote.details["pikachu"] = make_detail(experience_base=112)

    refreshed = await repository.detail("pikachu", force_refresh=True)

    assert refreshed.experience_base == 112
    cached = await store.get_detail("pikachu")
    assert cached is not None
    assert cached.experience_base == 112


@pytest.mark.asyncio
async def test_detail_not_found_propagates(
    repository: CatalogRepository, remote: FakeRemoteSource
) -> None:
    remote.detail_errors["missingno"] = NotFoundError(status_code=404)

    with pytest.raises(NotFoundError):
        await repository.detail("missingno")


@pytest.mark.asyncio
async def test_toggle_favorite_twice_restores_original_state(
    repository: CatalogRepository,
) -> None:
    assert await repository.toggle_favorite(25, "pikachu") is True
    assert await repository.is_favorite(25)

    assert await repository.toggle_favorite(25, "pikachu") is False
    assert not await repository.is_favorite(25)
    assert await repository.favorite_ids() == []


@pytest.mark.asyncio
async def test_concurrent_toggles_are_serialized(repository: CatalogRepository) -> None:
    results = await asyncio.gather(*(repository.toggle_favorite(7, "squirtle") for _ in range(4)))

    assert results == [True, False, True, False]
    assert not await repository.is_favorite(7)


@pytest.mark.asyncio
async def test_favorites_are_listed_newest_first(
    repository: CatalogRepository, store: LocalStore, clock: FakeClock
) -> None:
    await store.put_page(make_items(0, 3))

    await repository.toggle_favorite(2, "species-2")
    await repository.toggle_favorite(1, "species-1")
    await repository.toggle_favorite(3, "species-3")

    favorites = await repository.favorites()

    assert [item.key for item in favorites] == ["species-3", "species-1", "species-2"]
    assert all(item.is_favorite for item in favorites)
    assert await repository.favorite_ids() == [3, 1, 2]


@pytest.mark.asyncio
async def test_evolution_chain_uses_record_reference(
    repository: CatalogRepository, remote: FakeRemoteSource
) -> None:
    record = make_detail(evolution_ref="https://catalog.test/evolution-chain/10/")
    remote.chains[record.evolution_ref] = simple_chain("pichu")

    chain = await repository.evolution_chain(record)

    assert chain is not None
    assert chain.chain.species_name == "pichu"
    assert await repository.evolution_chain(make_detail(evolution_ref=None)) is None
    assert remote.chain_calls == ["https://catalog.test/evolution-chain/10/"]


def test_page_size_comes_from_remote(repository: CatalogRepository) -> None:
    assert repository.page_size == 20


@pytest.mark.asyncio
async def test_toggle_favorite_reports_false_when_key_is_taken(
    repository: CatalogRepository,
) -> None:
    assert await repository.toggle_favorite(1, "pikachu") is True

    assert await repository.toggle_favorite(2, "pikachu") is False
    assert not await repository.is_favorite(2)
    assert await repository.favorite_ids() == [1]


@pytest.mark.asyncio
async def test_artwork_url_uses_configured_template(
    store: LocalStore, remote: FakeRemoteSource
) -> None:
    repository = CatalogRepository(store, remote, artwork_url_template="https://img.test/{id}.png")

    assert repository.artwork_url(make_items(0, 1)[0]) == "https://img.test/1.png"
    assert repository.artwork_url(make_detail()) == "https://img.test/25.png"


def test_artwork_url_defaults_to_official_artwork(repository: CatalogRepository) -> None:
    assert repository.artwork_url(make_detail()) == DEFAULT_ARTWORK_URL_TEMPLATE.format(id=25)
