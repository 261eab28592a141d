"""UI toggle gestures → favorites store."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import BaseModel, ConfigDict

from storefront_sync.favorites.store import FavoritesStore

_logger = logging.getLogger(__name__)


class ToggleResult(BaseModel):
    """Outcome of one toggle gesture, for toast/feedback rendering."""

    model_config = ConfigDict(frozen=True)

    product_id: str | None
    name: str | None = None
    accepted: bool
    is_favorite: bool
    persisted: bool = True
    reason: str | None = None


ToggleHook = Callable[[ToggleResult], Awaitable[None]]


class ToggleReducer:
    """Apply favorite toggles strictly in call order per product id.

    Each gesture holds a per-id lock for the toggle and for the optional
    async ``on_toggled`` hook (e.g. a server sync or a notification), so a
    second tap on the same product waits for the first to finish and then
    decides from the store's current membership.
    """

    def __init__(
        self,
        store: FavoritesStore,
        *,
        require_owner: bool = False,
        on_toggled: ToggleHook | None = None,
    ) -> None:
        self._store = store
        self._require_owner = require_owner
        self._on_toggled = on_toggled
        self._locks: dict[str, asyncio.Lock] = {}
        self._pending: dict[str, int] = {}

    def pending(self, product_id: str) -> bool:
        """Whether a gesture for *product_id* is queued or being applied."""
        return product_id in self._pending

    async def dispatch(self, product: Any) -> ToggleResult:
        record = self._store.normalize(product)
        if record is None:
            return ToggleResult(product_id=None, accepted=False, is_favorite=False, reason="invalid_product")

        if self._require_owner and self._store.owner_id is None:
            return ToggleResult(
                product_id=record.id,
                name=record.name,
                accepted=False,
                is_favorite=self._store.is_favorite(record.id),
                reason="login_required",
            )

        lock = self._locks.setdefault(record.id, asyncio.Lock())
        self._pending[record.id] = self._pending.get(record.id, 0) + 1
        try:
            async with lock:
                is_favorite = self._store.toggle(record)
                result = ToggleResult(
                    product_id=record.id,
                    name=record.name,
                    accepted=True,
                    is_favorite=is_favorite,
                    persisted=self._store.last_error is None,
                )
                _logger.debug("Toggled favorite %s -> %s", record.id, is_favorite)
                if self._on_toggled is not None:
                    try:
                        await self._on_toggled(result)
                    except Exception:
                        _logger.warning("on_toggled hook failed for %s", record.id, exc_info=True)
                return result
        finally:
            remaining = self._pending[record.id] - 1
            if remaining:
                self._pending[record.id] = remaining
            else:
                del self._pending[record.id]
                self._locks.pop(record.id, None)
