"""HTTP access to the remote catalog service."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from speciesdex.errors import (
    CatalogError,
    ConnectionFailureError,
    NotFoundError,
    RequestTimeoutError,
    ServerFailureError,
    UnknownTransportError,
)
from speciesdex.remote.parser import (
    evolution_chain_url,
    parse_detail_payload,
    parse_evolution_chain_payload,
    parse_page_payload,
)
from speciesdex.schemas.catalog import CatalogPage, DetailRecord
from speciesdex.schemas.evolution import EvolutionChain
from speciesdex.settings import CatalogSettings, get_settings

logger = logging.getLogger(__name__)


class RemoteSource:
    """Fetch catalog pages and detail records; one attempt per call, no caching.

    Every failure is re-raised as a :class:`~speciesdex.errors.CatalogError`
    subclass with the underlying exception chained as ``__cause__``.
    """

    def __init__(
        self,
        settings: CatalogSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self._settings.http_timeout)
        self._headers = {
            "User-Agent": self._settings.user_agent,
            "Accept": "application/json",
        }

    @property
    def page_size(self) -> int:
        return self._settings.page_size

    @property
    def items_url(self) -> str:
        return f"{self._settings.api_base_url}{self._settings.items_path}"

    async def fetch_page(self, page: int) -> CatalogPage:
        """Fetch the zero-based ``page`` of the ordered catalog list."""

        if page < 0:
            raise ValueError(f"page must be >= 0, got {page}")

        params = {"limit": self.page_size, "offset": page * self.page_size}
        payload = await self._get_json(self.items_url, params=params)
        return self._parse(parse_page_payload, payload, page, url=self.items_url)

    async def fetch_detail(self, key: str) -> DetailRecord:
        url = f"{self.items_url}/{quote(key, safe='')}"
        payload = await self._get_json(url)
        return self._parse(parse_detail_payload, payload, url=url)

    async def fetch_evolution_chain(self, ref: str) -> EvolutionChain:
        """Resolve ``ref`` into an evolution chain.

        ``ref`` is either a chain document or a species document; the latter is
        followed through its ``evolution_chain.url`` with one more request.
        """

        payload = await self._get_json(ref)
        chain_url = evolution_chain_url(payload)
        if chain_url is not None:
            payload = await self._get_json(chain_url)
            ref = chain_url
        return self._parse(parse_evolution_chain_payload, payload, url=ref)

    async def _get_json(self, url: str, *, params: dict[str, Any] | None = None) -> Any:
        try:
            response = await self._client.get(
                url,
                params=params,
                headers=self._headers,
                timeout=self._settings.http_timeout,
            )
        except httpx.TimeoutException as exc:
            raise self._log_failure(RequestTimeoutError(detail=str(exc)), url) from exc
        except httpx.NetworkError as exc:
            raise self._log_failure(ConnectionFailureError(detail=str(exc)), url) from exc
        except httpx.HTTPError as exc:
            raise self._log_failure(UnknownTransportError(detail=str(exc)), url) from exc

        if response.status_code == 404:
            raise self._log_failure(NotFoundError(status_code=404, detail=url), url)
        if not response.is_success:
            raise self._log_failure(
                ServerFailureError(
                    f"The catalog service returned HTTP {response.status_code}",
                    status_code=response.status_code,
                    detail=response.text[:200],
                ),
                url,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise self._log_failure(
                UnknownTransportError("The catalog service returned invalid JSON", detail=str(exc)),
                url,
            ) from exc

    def _parse(self, parser, payload: Any, *args: Any, url: str):
        try:
            return parser(payload, *args)
        except (KeyError, TypeError, ValueError) as exc:
            raise self._log_failure(
                UnknownTransportError(
                    "The catalog service returned an unexpected document",
                    detail=f"{type(exc).__name__}: {exc}",
                ),
                url,
            ) from exc

    @staticmethod
    def _log_failure(error: CatalogError, url: str) -> CatalogError:
        logger.debug("Remote request to %s failed with %s: %s", url, error.kind.value, error.detail)
        return error

    async def aclose(self) -> None:
        """Close the underlying client when this instance created it."""

        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> RemoteSource:
        return self

    async def __aexit__(self, *_exc_info: object) -> None:
        await self.aclose()


__all__ = ["RemoteSource"]
