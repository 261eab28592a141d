from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import pytest

from storefront_sync.favorites.reducer import ToggleReducer, ToggleResult
from storefront_sync.favorites.storage import MemoryKV
from storefront_sync.favorites.store import FavoritesStore


def _clock() -> datetime:
    return datetime(2026, 1, 1, tzinfo=UTC)


class _RejectingKV(MemoryKV):
    def set(self, key: str, value: str) -> bool:
        return False


@pytest.mark.asyncio
async def test_rapid_toggles_apply_in_call_order() -> None:
    store = FavoritesStore(MemoryKV(), owner_id="u1", clock=_clock)
    hook_calls: list[bool] = []

    async def on_toggled(result: ToggleResult) -> None:
        await asyncio.sleep(0.01)
        hook_calls.append(result.is_favorite)

    reducer = ToggleReducer(store, on_toggled=on_toggled)
    product = {"_id": "p1", "name": "Rose bouquet", "price": 23}

    first, second = await asyncio.gather(reducer.dispatch(product), reducer.dispatch(product))

    assert (first.is_favorite, second.is_favorite) == (True, False)
    assert hook_calls == [True, False]
    assert not store.is_favorite("p1")
    assert store.count == 0
    assert not reducer.pending("p1")


@pytest.mark.asyncio
async def test_second_gesture_waits_for_first_hook() -> None:
    store = FavoritesStore(MemoryKV(), clock=_clock)
    release = asyncio.Event()

    async def on_toggled(_result: ToggleResult) -> None:
        await release.wait()

    reducer = ToggleReducer(store, on_toggled=on_toggled)
    first = asyncio.create_task(reducer.dispatch({"id": "p1"}))
    second = asyncio.create_task(reducer.dispatch({"id": "p1"}))
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    assert reducer.pending("p1")
    assert store.is_favorite("p1")

    release.set()
    results = await asyncio.gather(first, second)

    assert [r.is_favorite for r in results] == [True, False]
    assert not store.is_favorite("p1")


@pytest.mark.asyncio
async def test_different_products_do_not_block_each_other() -> None:
    store = FavoritesStore(MemoryKV(), clock=_clock)
    release = asyncio.Event()

    async def on_toggled(result: ToggleResult) -> None:
        if result.product_id == "slow":
            await release.wait()

    reducer = ToggleReducer(store, on_toggled=on_toggled)
    slow = asyncio.create_task(reducer.dispatch({"id": "slow"}))
    await asyncio.sleep(0)

    fast = await reducer.dispatch({"id": "fast"})

    assert fast.is_favorite
    assert not slow.done()
    release.set()
    assert (await slow).is_favorite


@pytest.mark.asyncio
async def test_guest_rejected_when_owner_required() -> None:
    store = FavoritesStore(MemoryKV(), clock=_clock)
    reducer = ToggleReducer(store, require_owner=True)

    result = await reducer.dispatch({"id": "p1", "name": "Rose bouquet"})

    assert result.accepted is False
    assert result.reason == "login_required"
    assert result.name == "Rose bouquet"
    assert store.count == 0


@pytest.mark.asyncio
async def test_signed_in_user_accepted_when_owner_required() -> None:
    store = FavoritesStore(MemoryKV(), owner_id="u1", clock=_clock)
    reducer = ToggleReducer(store, require_owner=True)

    result = await reducer.dispatch({"id": "p1"})

    assert result.accepted is True
    assert result.is_favorite is True
    assert result.persisted is True


@pytest.mark.asyncio
async def test_invalid_product_is_rejected() -> None:
    reducer = ToggleReducer(FavoritesStore(MemoryKV(), clock=_clock))

    result = await reducer.dispatch({"name": "no id"})

    assert result.accepted is False
    assert result.product_id is None
    assert result.reason == "invalid_product"


@pytest.mark.asyncio
async def test_persistence_failure_is_reported_not_raised() -> None:
    store = FavoritesStore(_RejectingKV(), clock=_clock)
    reducer = ToggleReducer(store)

    result = await reducer.dispatch({"id": "p1"})

    assert result.accepted is True
    assert result.is_favorite is True
    assert result.persisted is False
    assert store.is_favorite("p1")


@pytest.mark.asyncio
async def test_failing_hook_does_not_propagate() -> None:
    store = FavoritesStore(MemoryKV(), clock=_clock)

    async def on_toggled(_result: ToggleResult) -> None:
        raise RuntimeError("toast service down")

    reducer = ToggleReducer(store, on_toggled=on_toggled)

    result = await reducer.dispatch({"id": "p1"})

    assert result.is_favorite is True
    assert not reducer.pending("p1")
