"""Router → request coordinator binding."""

from __future__ import annotations

import contextlib
import functools
import logging
from collections.abc import Callable
from typing import Any, Protocol
from urllib.parse import quote, unquote

from storefront_sync._constants import ALL_CATEGORIES_KEY, ALL_PRODUCTS_PATH, CATEGORY_PATH_PREFIX
from storefront_sync.models.fetch import ResourceKey
from storefront_sync.models.location import Location
from storefront_sync.sync.coordinator import Fetcher, RequestCoordinator

_logger = logging.getLogger(__name__)

LocationListener = Callable[[Location], None]


class Router(Protocol):
    """Navigation event source."""

    def on_change(self, callback: LocationListener) -> Callable[[], None]:
        ...

    def current_location(self) -> Location:
        ...

    def navigate(self, url: str, *, replace: bool = False) -> Location:
        ...


def derive_category_key(location: Location, *, all_key: str = ALL_CATEGORIES_KEY) -> str:
    """Map a location to the category it displays.

    ``/categoryProducts`` and any unrecognized path mean "all products";
    ``/categoria/<id>`` means category ``<id>``.
    """
    if location.pathname == ALL_PRODUCTS_PATH:
        return all_key
    parts = location.pathname.split("/")
    if len(parts) > 2 and parts[1] == CATEGORY_PATH_PREFIX.strip("/") and parts[2]:
        return unquote(parts[2])
    return all_key


def category_path(key: str, *, all_key: str = ALL_CATEGORIES_KEY) -> str:
    """Inverse of :func:`derive_category_key`."""
    if key == all_key:
        return ALL_PRODUCTS_PATH
    return f"{CATEGORY_PATH_PREFIX}{quote(str(key), safe='')}"


class MemoryRouter:
    """In-process router with a simple history stack."""

    def __init__(self, initial: str = "/") -> None:
        self._history: list[Location] = [Location.from_url(initial)]
        self._listeners: list[LocationListener] = []

    def current_location(self) -> Location:
        return self._history[-1]

    @property
    def history(self) -> tuple[Location, ...]:
        return tuple(self._history)

    def on_change(self, callback: LocationListener) -> Callable[[], None]:
        self._listeners.append(callback)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(callback)

        return _unsubscribe

    def navigate(self, url: str, *, replace: bool = False) -> Location:
        location = Location.from_url(url)
        if replace:
            self._history[-1] = location
        else:
            self._history.append(location)
        self._emit(location)
        return location

    def back(self) -> Location:
        if len(self._history) > 1:
            self._history.pop()
            self._emit(self._history[-1])
        return self._history[-1]

    def _emit(self, location: Location) -> None:
        for listener in list(self._listeners):
            listener(location)


class NavigationBinding:
    """Turn every navigation event into a coordinator request.

    Keeps no "last key" of its own; repeated events for the
    same key are absorbed by the coordinator's in-flight guard.
    """

    def __init__(
        self,
        router: Router,
        coordinator: RequestCoordinator,
        fetcher: Fetcher,
        *,
        derive_key: Callable[[Location], ResourceKey] | None = None,
        all_key: str = ALL_CATEGORIES_KEY,
    ) -> None:
        self._router = router
        self._coordinator = coordinator
        self._fetcher = fetcher
        self._derive_key = derive_key or functools.partial(derive_category_key, all_key=all_key)
        self._all_key = all_key
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def mounted(self) -> bool:
        return self._unsubscribe is not None

    @property
    def coordinator(self) -> RequestCoordinator:
        return self._coordinator

    def mount(self) -> None:
        """Start following the router and fetch for the current location."""
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self._router.on_change(self._on_navigate)
        self._on_navigate(self._router.current_location())

    def unmount(self) -> None:
        """Stop following the router and cancel any outstanding fetch."""
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()
        self._coordinator.cancel()

    def select_category(self, key: str) -> None:
        """Navigate to the page for category *key*."""
        self._router.navigate(category_path(key, all_key=self._all_key), replace=True)

    def _on_navigate(self, location: Location) -> None:
        key = self._derive_key(location)
        _logger.debug("Navigation to %s -> %r", location.pathname, key)
        self._coordinator.request(key, self._fetcher)

    def __enter__(self) -> NavigationBinding:
        self.mount()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.unmount()
