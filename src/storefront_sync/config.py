"""Client configuration for storefront_sync."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any

from storefront_sync._constants import (
    ALL_CATEGORIES_KEY,
    BASE_URL,
    DEFAULT_CATEGORIES,
    FAVORITES_GUEST_KEY,
    FAVORITES_USER_PREFIX,
    PLACEHOLDER_IMAGE,
)
from storefront_sync.exceptions import StorefrontConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_float(name: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise StorefrontConfigError(f"{name} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class StorefrontConfig:
    """Client configuration.

    Parameters
    ----------
    base_url : str
        REST API base URL (without trailing slash).
    request_timeout : float
        Total timeout in seconds applied to each catalog HTTP call by the
        transport. The request coordinator itself imposes no timeout.
    all_categories_key : str
        Resource key meaning "all products".
    placeholder_image : str
        Image URL stored on favorites whose product has no image.
    favorites_guest_key : str
        Storage key used for the favorites snapshot when no user is signed in.
    favorites_user_prefix : str
        Prefix of the per-user favorites storage key (``<prefix><user id>``).
    api_trace_enabled : bool
        Log redacted catalog payloads at DEBUG level.
    categories : Mapping[str, str]
        Category id to display name table used when normalizing favorites.
    """

    base_url: str = BASE_URL
    request_timeout: float = 30.0
    all_categories_key: str = ALL_CATEGORIES_KEY
    placeholder_image: str = PLACEHOLDER_IMAGE
    favorites_guest_key: str = FAVORITES_GUEST_KEY
    favorites_user_prefix: str = FAVORITES_USER_PREFIX
    api_trace_enabled: bool = False
    categories: Mapping[str, str] = dataclasses.field(default_factory=lambda: dict(DEFAULT_CATEGORIES))

    def __post_init__(self) -> None:
        if self.request_timeout <= 0:
            raise StorefrontConfigError("request_timeout must be positive")
        if not self.all_categories_key:
            raise StorefrontConfigError("all_categories_key must be non-empty")
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    def favorites_key(self, owner_id: str | None) -> str:
        """Storage key of the favorites snapshot for *owner_id* (``None`` = guest)."""
        if not owner_id:
            return self.favorites_guest_key
        return f"{self.favorites_user_prefix}{owner_id}"

    @classmethod
    def from_env(cls, **overrides: Any) -> StorefrontConfig:
        """Create configuration from ``STOREFRONT_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "STOREFRONT_BASE_URL": "base_url",
            "STOREFRONT_ALL_CATEGORIES_KEY": "all_categories_key",
            "STOREFRONT_PLACEHOLDER_IMAGE": "placeholder_image",
            "STOREFRONT_FAVORITES_GUEST_KEY": "favorites_guest_key",
            "STOREFRONT_FAVORITES_USER_PREFIX": "favorites_user_prefix",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        timeout_env = env.get("STOREFRONT_REQUEST_TIMEOUT")
        if timeout_env is not None and "request_timeout" not in overrides:
            config_kwargs["request_timeout"] = _env_float("STOREFRONT_REQUEST_TIMEOUT", timeout_env)

        if "api_trace_enabled" not in overrides:
            config_kwargs["api_trace_enabled"] = _env_bool(
                env.get("STOREFRONT_API_TRACE_ENABLED"),
                False,
            )

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
