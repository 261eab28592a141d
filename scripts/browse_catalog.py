#!/usr/bin/env python3
"""Browse the live catalog through the sync layer.

Navigates an in-memory router through the given category routes, lets the
navigation binding drive the request coordinator, and prints every state
transition. Optionally toggles favorites into a JSON file store.

Usage
-----
::

    python scripts/browse_catalog.py /categoryProducts /categoria/688175a69579a7cde1657aaa

Options::

    --favorite ID        Toggle product ID in the favorites store (repeatable)
    --user ID            Signed-in user id (default: guest)
    --store-dir DIR      Directory for the favorites JSON files (default: ./.favorites)
    --json               Output final state as machine-readable JSON
    --verbose, -v        Enable debug logging (set STOREFRONT_API_TRACE_ENABLED=1 for payloads)
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from storefront_sync import (  # noqa: E402
    CatalogFetcher,
    FavoritesStore,
    FetchState,
    FetchStatus,
    JsonFileKV,
    MemoryRouter,
    NavigationBinding,
    RequestCoordinator,
    StorefrontConfig,
    ToggleReducer,
    ToggleResult,
)


def _section(title: str) -> str:
    line = "=" * 60
    return f"\n{line}\n  {title}\n{line}"


def _describe(state: FetchState) -> str:
    if state.status == FetchStatus.SUCCESS:
        detail = f"{len(state.data or [])} products"
    elif state.status == FetchStatus.ERROR and state.error is not None:
        detail = f"{state.error.message} (retryable={state.error.retryable})"
    else:
        detail = ""
    return f"  #{state.request_id:<3} {state.status.value:<8} key={state.key!r} {detail}".rstrip()


async def _wait_settled(coordinator: RequestCoordinator) -> FetchState:
    while coordinator.get_state().is_loading:
        await asyncio.sleep(0.05)
    return coordinator.get_state()


async def main() -> None:
    parser = argparse.ArgumentParser(description="Browse catalog categories through the sync layer.")
    parser.add_argument("routes", nargs="*", default=["/categoryProducts"], help="Routes to visit in order")
    parser.add_argument("--favorite", action="append", default=[], help="Toggle this product id in favorites")
    parser.add_argument("--user", help="Signed-in user id (default: guest)")
    parser.add_argument("--store-dir", default=".favorites", help="Directory for favorites JSON files")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    config = StorefrontConfig.from_env()
    print(_section(f"catalog @ {config.base_url}"), file=sys.stderr)

    catalog: dict[str, Any] = {}
    async with CatalogFetcher(config) as fetcher, RequestCoordinator(name="category") as coordinator:
        coordinator.subscribe(lambda state: print(_describe(state), file=sys.stderr))
        router = MemoryRouter(args.routes[0])

        with NavigationBinding(router, coordinator, fetcher, all_key=config.all_categories_key):
            state = await _wait_settled(coordinator)
            catalog[str(state.key)] = state
            for route in args.routes[1:]:
                router.navigate(route)
                state = await _wait_settled(coordinator)
                catalog[str(state.key)] = state

    store = FavoritesStore(JsonFileKV(args.store_dir), owner_id=args.user, config=config)
    known = {p.id: p for state in catalog.values() if state.data for p in state.data}

    async def _report(result: ToggleResult) -> None:
        verb = "added to" if result.is_favorite else "removed from"
        print(f"  {result.name or result.product_id} {verb} favorites", file=sys.stderr)

    reducer = ToggleReducer(store, on_toggled=_report)
    for product_id in args.favorite:
        result = await reducer.dispatch(known.get(product_id) or {"_id": product_id})
        if not result.persisted:
            print(f"  warning: could not persist favorites ({store.last_error})", file=sys.stderr)

    if args.json_mode:
        payload = {
            "categories": {key: state.model_dump(mode="json") for key, state in catalog.items()},
            "favorites": [record.to_snapshot() for record in store.list()],
        }
        print(json.dumps(payload, indent=2, default=str, ensure_ascii=False))
        return

    print(_section(f"favorites ({store.storage_key})"))
    for record in store.list():
        print(f"  {record.id:<28} {record.name:<32} {record.category:<32} {record.price:>8.2f}")
    if not store.count:
        print("  (none)")


if __name__ == "__main__":
    asyncio.run(main())
