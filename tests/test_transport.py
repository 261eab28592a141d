from __future__ import annotations

import asyncio
import json
from typing import Any

import aiohttp
import pytest

from storefront_sync._transport import CatalogFetcher, extract_product_items
from storefront_sync.config import StorefrontConfig
from storefront_sync.exceptions import AbortedError, MalformedResponseError, NetworkError, StorefrontError
from storefront_sync.models.fetch import FetchStatus
from storefront_sync.models.location import Location
from storefront_sync.models.product import Product
from storefront_sync.sync.abort import AbortController
from storefront_sync.sync.coordinator import RequestCoordinator
from storefront_sync.sync.navigation import derive_category_key

_CONFIG = StorefrontConfig(base_url="https://shop.example.com/api/")


class _FakeResponse:
    def __init__(self, status: int, text: str, *, hang: asyncio.Event | None = None) -> None:
        self.status = status
        self._text = text
        self._hang = hang

    async def text(self) -> str:
        if self._hang is not None:
            await self._hang.wait()
        return self._text

    async def __aenter__(self) -> _FakeResponse:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None


class _FakeSession:
    def __init__(self, status: int = 200, body: Any = None, *, raw: str | None = None) -> None:
        self.status = status
        self.text = raw if raw is not None else json.dumps(body)
        self.urls: list[str] = []
        self.headers: list[dict[str, str]] = []
        self.error: Exception | None = None
        self.hang: asyncio.Event | None = None

    def get(self, url: str, *, headers: dict[str, str], timeout: aiohttp.ClientTimeout) -> _FakeResponse:
        self.urls.append(url)
        self.headers.append(headers)
        if self.error is not None:
            raise self.error
        return _FakeResponse(self.status, self.text, hang=self.hang)


_PRODUCTS = [
    {"_id": "p1", "name": "Rose bouquet", "price": 23, "images": [{"image": "rose.jpg"}]},
    {"_id": "p2", "name": "Giftbox", "price": "19.5", "categoryId": {"_id": "c1", "name": "Giftboxes"}},
]


def _fetcher(session: _FakeSession) -> CatalogFetcher:
    return CatalogFetcher(_CONFIG, session=session)  # type: ignore[arg-type]


def test_endpoint_for_all_and_category() -> None:
    fetcher = CatalogFetcher(_CONFIG)

    assert fetcher.endpoint_for("todos") == "/products"
    assert fetcher.endpoint_for("688175a69579a7cde1657aaa") == "/products/by-category/688175a69579a7cde1657aaa"


@pytest.mark.parametrize(
    ("key", "endpoint"),
    [
        ("a/../../admin", "/products/by-category/a%2F..%2F..%2Fadmin"),
        ("flores?sort=price", "/products/by-category/flores%3Fsort%3Dprice"),
        ("tarjetas#top", "/products/by-category/tarjetas%23top"),
        ("arreglos florales", "/products/by-category/arreglos%20florales"),
    ],
)
def test_endpoint_for_quotes_category_key(key: str, endpoint: str) -> None:
    assert CatalogFetcher(_CONFIG).endpoint_for(key) == endpoint


@pytest.mark.asyncio
async def test_decoded_route_key_stays_one_path_segment() -> None:
    session = _FakeSession(body=_PRODUCTS)
    key = derive_category_key(Location(pathname="/categoria/a%2F..%2F..%2Fadmin"))

    await _fetcher(session)(key, AbortController().signal)

    assert key == "a/../../admin"
    assert session.urls == ["https://shop.example.com/api/products/by-category/a%2F..%2F..%2Fadmin"]


@pytest.mark.parametrize(
    "body",
    [
        _PRODUCTS,
        {"success": True, "data": _PRODUCTS},
        {"products": _PRODUCTS},
        {"data": _PRODUCTS, "total": 2},
    ],
)
def test_extract_product_items_accepts_known_envelopes(body: Any) -> None:
    assert extract_product_items(body, endpoint="/products") == _PRODUCTS


@pytest.mark.parametrize(
    "body",
    [
        {"success": False, "message": "category not found"},
        {"items": _PRODUCTS},
        {"data": {"products": _PRODUCTS}},
        "products",
        None,
    ],
)
def test_extract_product_items_rejects_unknown_shapes(body: Any) -> None:
    with pytest.raises(MalformedResponseError) as exc_info:
        extract_product_items(body, endpoint="/products")

    assert isinstance(exc_info.value, NetworkError)
    assert exc_info.value.endpoint == "/products"


@pytest.mark.asyncio
async def test_fetch_parses_products() -> None:
    session = _FakeSession(body={"success": True, "data": _PRODUCTS})
    fetcher = _fetcher(session)

    products = await fetcher("c1", AbortController().signal)

    assert session.urls == ["https://shop.example.com/api/products/by-category/c1"]
    assert session.headers[0]["cache-control"].startswith("no-cache")
    assert [p.id for p in products] == ["p1", "p2"]
    assert products[0].image == "rose.jpg"
    assert products[1].price == 19.5
    assert products[1].category_id == "c1"
    assert products[1].category_name == "Giftboxes"


@pytest.mark.asyncio
async def test_non_2xx_raises_network_error() -> None:
    session = _FakeSession(status=503, raw="Service Unavailable")

    with pytest.raises(NetworkError) as exc_info:
        await _fetcher(session)("todos", AbortController().signal)

    assert exc_info.value.status_code == 503
    assert exc_info.value.endpoint == "/products"
    assert not isinstance(exc_info.value, MalformedResponseError)


@pytest.mark.asyncio
async def test_client_error_raises_network_error() -> None:
    session = _FakeSession(body=[])
    session.error = aiohttp.ClientConnectionError("connection reset")

    with pytest.raises(NetworkError) as exc_info:
        await _fetcher(session)("todos", AbortController().signal)

    assert "connection reset" in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, aiohttp.ClientConnectionError)


@pytest.mark.asyncio
async def test_invalid_json_raises_malformed_response() -> None:
    session = _FakeSession(raw="<html>maintenance</html>")

    with pytest.raises(MalformedResponseError):
        await _fetcher(session)("todos", AbortController().signal)


@pytest.mark.asyncio
async def test_invalid_product_entries_raise_malformed_response() -> None:
    session = _FakeSession(body=[{"_id": "p1"}, "not-a-product"])

    with pytest.raises(MalformedResponseError):
        await _fetcher(session)("todos", AbortController().signal)


@pytest.mark.asyncio
async def test_abort_cancels_in_flight_request() -> None:
    session = _FakeSession(body=_PRODUCTS)
    session.hang = asyncio.Event()
    controller = AbortController()

    task = asyncio.create_task(_fetcher(session)("todos", controller.signal))
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    controller.abort("superseded")

    with pytest.raises(AbortedError) as exc_info:
        await task
    assert exc_info.value.reason == "superseded"


@pytest.mark.asyncio
async def test_already_aborted_signal_skips_request() -> None:
    session = _FakeSession(body=_PRODUCTS)
    controller = AbortController()
    controller.abort()

    with pytest.raises(AbortedError):
        await _fetcher(session)("todos", controller.signal)
    assert session.urls == []


@pytest.mark.asyncio
async def test_uninitialized_fetcher_raises() -> None:
    with pytest.raises(StorefrontError):
        await CatalogFetcher(_CONFIG)("todos", AbortController().signal)


@pytest.mark.asyncio
async def test_coordinator_with_catalog_fetcher() -> None:
    session = _FakeSession(body={"products": _PRODUCTS})
    coordinator = RequestCoordinator(name="category")

    await coordinator.request("todos", _fetcher(session))

    state = coordinator.get_state()
    assert state.status == FetchStatus.SUCCESS
    assert all(isinstance(p, Product) for p in state.data)
    assert session.urls == ["https://shop.example.com/api/products"]


@pytest.mark.asyncio
async def test_coordinator_surfaces_http_failure() -> None:
    session = _FakeSession(status=404, raw="Not Found")
    coordinator = RequestCoordinator()

    await coordinator.request("missing", _fetcher(session))

    error = coordinator.get_state().error
    assert error is not None
    assert error.status_code == 404
    assert error.retryable is False
    assert error.endpoint == "/products/by-category/missing"
