"""Favorites layer.

The store is the single owner of the favorites set; UI gestures reach it
through the toggle reducer.
"""

from storefront_sync.favorites.normalize import normalize_product
from storefront_sync.favorites.reducer import ToggleReducer, ToggleResult
from storefront_sync.favorites.storage import JsonFileKV, MemoryKV, PersistentKV
from storefront_sync.favorites.store import FavoritesStore

__all__ = [
    "FavoritesStore",
    "JsonFileKV",
    "MemoryKV",
    "PersistentKV",
    "ToggleReducer",
    "ToggleResult",
    "normalize_product",
]
