"""HTTP transport for the catalog endpoints."""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import quote

import aiohttp
from pydantic import TypeAdapter, ValidationError

from storefront_sync._constants import USER_AGENT
from storefront_sync._redact import redact_for_log
from storefront_sync.config import StorefrontConfig
from storefront_sync.exceptions import MalformedResponseError, NetworkError, StorefrontError
from storefront_sync.models.fetch import ResourceKey
from storefront_sync.models.product import Product
from storefront_sync.sync.abort import AbortSignal

_logger = logging.getLogger(__name__)

_PRODUCT_LIST = TypeAdapter(list[Product])


def extract_product_items(body: Any, *, endpoint: str = "") -> list[Any]:
    """Pull the product array out of the envelopes the backend uses.

    Accepts a bare array, ``{"success": true, "data": [...]}``,
    ``{"products": [...]}`` or ``{"data": [...]}``.
    """
    if isinstance(body, list):
        return body
    if isinstance(body, dict):
        if body.get("success") is False:
            message = body.get("message") or "request unsuccessful"
            raise MalformedResponseError(f"{endpoint} reported failure: {message}", endpoint=endpoint)
        for field in ("data", "products"):
            candidate = body.get(field)
            if isinstance(candidate, list):
                return candidate
    raise MalformedResponseError(
        f"Unexpected payload shape from {endpoint}: {type(body).__name__}",
        endpoint=endpoint,
    )


def parse_products(items: list[Any], *, endpoint: str = "") -> list[Product]:
    try:
        return _PRODUCT_LIST.validate_python(items)
    except ValidationError as exc:
        raise MalformedResponseError(
            f"Invalid product data from {endpoint}: {exc.error_count()} error(s)",
            endpoint=endpoint,
        ) from exc


class CatalogFetcher:
    """Abortable fetcher for category product listings.

    Usable directly as the ``fetcher`` argument of
    :meth:`RequestCoordinator.request`::

        async with CatalogFetcher(config) as fetcher:
            coordinator.request("todos", fetcher)
    """

    def __init__(
        self,
        config: StorefrontConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config or StorefrontConfig()
        self._external_session = session is not None
        self._http: aiohttp.ClientSession | None = session

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> CatalogFetcher:
        if self._http is None:
            self._http = aiohttp.ClientSession()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http is not None:
            await self._http.close()
            self._http = None

    # ------------------------------------------------------------------
    # Fetcher protocol
    # ------------------------------------------------------------------

    def endpoint_for(self, key: ResourceKey) -> str:
        if key == self._config.all_categories_key:
            return "/products"
        return f"/products/by-category/{quote(str(key), safe='')}"

    async def __call__(self, key: ResourceKey, signal: AbortSignal) -> list[Product]:
        endpoint = self.endpoint_for(key)
        return await signal.guard(self.get_products(endpoint))

    async def get_products(self, endpoint: str) -> list[Product]:
        body = await self._get_json(endpoint)
        products = parse_products(extract_product_items(body, endpoint=endpoint), endpoint=endpoint)
        _logger.debug("Loaded %d products from %s", len(products), endpoint)
        return products

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_session(self) -> aiohttp.ClientSession:
        if self._http is None:
            raise StorefrontError("Fetcher not initialized. Use 'async with CatalogFetcher(...) as fetcher:'")
        return self._http

    async def _get_json(self, endpoint: str) -> Any:
        http = self._require_session()
        url = f"{self._config.base_url}{endpoint}"
        headers = {
            "accept": "application/json",
            "cache-control": "no-cache, no-store, must-revalidate",
            "pragma": "no-cache",
            "user-agent": USER_AGENT,
        }
        timeout = aiohttp.ClientTimeout(total=self._config.request_timeout)

        _logger.debug("GET %s", url)

        try:
            async with http.get(url, headers=headers, timeout=timeout) as resp:
                text = await resp.text()
                if not 200 <= resp.status < 300:
                    raise NetworkError(
                        f"HTTP {resp.status} from {endpoint}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
        except NetworkError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise NetworkError(
                f"Request to {endpoint} failed: {str(exc) or type(exc).__name__}",
                endpoint=endpoint,
            ) from exc

        try:
            body = json.loads(text)
        except json.JSONDecodeError as exc:
            raise MalformedResponseError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                endpoint=endpoint,
            ) from exc

        if self._config.api_trace_enabled:
            _logger.debug("Response from %s: %s", endpoint, redact_for_log(body))
        return body
