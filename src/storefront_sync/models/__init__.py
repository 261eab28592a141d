"""Data models for catalog payloads, favorites and fetch state."""

from storefront_sync.models.favorite import FavoriteRecord, parse_timestamp
from storefront_sync.models.fetch import ErrorInfo, FetchState, FetchStatus, ResourceKey
from storefront_sync.models.location import Location
from storefront_sync.models.product import Product

__all__ = [
    "ErrorInfo",
    "FavoriteRecord",
    "FetchState",
    "FetchStatus",
    "Location",
    "Product",
    "ResourceKey",
    "parse_timestamp",
]
