"""Request coordination layer.

Keeps fetch state in step with the most recent navigation: one
coordinator per screen scope, fed by a navigation binding.
"""

from storefront_sync.sync.abort import AbortController, AbortSignal
from storefront_sync.sync.coordinator import Fetcher, RequestCoordinator
from storefront_sync.sync.navigation import (
    MemoryRouter,
    NavigationBinding,
    Router,
    category_path,
    derive_category_key,
)

__all__ = [
    "AbortController",
    "AbortSignal",
    "Fetcher",
    "MemoryRouter",
    "NavigationBinding",
    "RequestCoordinator",
    "Router",
    "category_path",
    "derive_category_key",
]
