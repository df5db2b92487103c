"""Tests for the composition root in :mod:`speciesdex.main`."""

from __future__ import annotations

import logging
from pathlib import Path

import httpx
import pytest

import speciesdex.main as speciesdex_main
from speciesdex.settings import CatalogSettings

from .support.doubles import detail_payload, page_payload


def _settings(tmp_path: Path) -> CatalogSettings:
    return CatalogSettings(
        _env_file=None,
        api_base_url="https://catalog.test",
        database_url=f"sqlite:///{tmp_path / 'catalog.db'}",
    )


def _handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/catalog/items":
        return httpx.Response(200, json=page_payload([("bulbasaur", 1), ("ivysaur", 2)]))
    return httpx.Response(200, json=detail_payload())


def test_validate_environment_logs_warnings(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        warnings = speciesdex_main.validate_environment(CatalogSettings(_env_file=None))

    assert warnings
    assert "CATALOG_DATABASE_URL is not set" in caplog.text


@pytest.mark.asyncio
async def test_catalog_session_wires_components(tmp_path: Path) -> None:
    client = httpx.AsyncClient(transport=httpx.MockTransport(_handler))

    async with speciesdex_main.catalog_session(_settings(tmp_path), http_client=client) as session:
        coordinator = session.pagination()
        await coordinator.load_initial()
        record = await session.repository.detail("bulbasaur")
        toggled = await session.repository.toggle_favorite(record.id, record.key)

        assert [item.key for item in coordinator.state.items] == ["bulbasaur", "ivysaur"]
        assert not coordinator.state.has_more
        assert toggled is True
        assert [item.key for item in await session.repository.favorites()] == ["bulbasaur"]

    assert (tmp_path / "catalog.db").exists()
    assert not session.store.is_open
    await client.aclose()


@pytest.mark.asyncio
async def test_catalog_session_closes_store_when_body_raises(tmp_path: Path) -> None:
    client = httpx.AsyncClient(transport=httpx.MockTransport(_handler))

    with pytest.raises(RuntimeError):
        async with speciesdex_main.catalog_session(_settings(tmp_path), http_client=client) as session:
            raise RuntimeError("boom")

    assert not session.store.is_open
    await client.aclose()


@pytest.mark.asyncio
async def test_catalog_session_applies_artwork_url_template(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("CATALOG_ARTWORK_URL_TEMPLATE", "https://img.test/{id}.png")
    client = httpx.AsyncClient(transport=httpx.MockTransport(_handler))

    async with speciesdex_main.catalog_session(_settings(tmp_path), http_client=client) as session:
        items = await session.repository.list_page(0)

        assert session.repository.artwork_url(items[0]) == "https://img.test/1.png"

    await client.aclose()


@pytest.mark.asyncio
async def test_catalog_session_does_not_open_store_when_remote_setup_fails(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    def failing_remote(*_args: object, **_kwargs: object) -> None:
        raise RuntimeError("no client")

    monkeypatch.setattr(speciesdex_main, "RemoteSource", failing_remote)

    with pytest.raises(RuntimeError):
        async with speciesdex_main.catalog_session(_settings(tmp_path)):
            pass

    assert not (tmp_path / "catalog.db").exists()
