"""storefront_sync - Async catalog fetch coordination and persisted favorites."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("storefront-sync")
except PackageNotFoundError:
    __version__ = "0+local"
from storefront_sync._transport import CatalogFetcher
from storefront_sync.config import StorefrontConfig
from storefront_sync.exceptions import (
    AbortedError,
    MalformedResponseError,
    NetworkError,
    PersistenceError,
    StorefrontConfigError,
    StorefrontError,
)
from storefront_sync.favorites import (
    FavoritesStore,
    JsonFileKV,
    MemoryKV,
    PersistentKV,
    ToggleReducer,
    ToggleResult,
    normalize_product,
)
from storefront_sync.models import (
    ErrorInfo,
    FavoriteRecord,
    FetchState,
    FetchStatus,
    Location,
    Product,
    ResourceKey,
)
from storefront_sync.sync import (
    AbortController,
    AbortSignal,
    Fetcher,
    MemoryRouter,
    NavigationBinding,
    RequestCoordinator,
    Router,
    category_path,
    derive_category_key,
)

__all__ = [
    "__version__",
    "AbortController",
    "AbortSignal",
    "AbortedError",
    "CatalogFetcher",
    "ErrorInfo",
    "FavoriteRecord",
    "FavoritesStore",
    "FetchState",
    "FetchStatus",
    "Fetcher",
    "JsonFileKV",
    "Location",
    "MalformedResponseError",
    "MemoryKV",
    "MemoryRouter",
    "NavigationBinding",
    "NetworkError",
    "PersistenceError",
    "PersistentKV",
    "Product",
    "RequestCoordinator",
    "ResourceKey",
    "Router",
    "StorefrontConfig",
    "StorefrontConfigError",
    "StorefrontError",
    "ToggleReducer",
    "ToggleResult",
    "category_path",
    "derive_category_key",
    "normalize_product",
]
