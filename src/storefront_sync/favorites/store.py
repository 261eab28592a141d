"""Persisted, deduplicated favorites.

The in-memory set is authoritative for the session. Every mutation writes
the full set back to storage; a failed write is reported (``persist()``
returns ``False`` and :attr:`FavoritesStore.last_error` is set) but never
rolls the in-memory set back.
"""

from __future__ import annotations

import contextlib
import json
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from storefront_sync._constants import GUEST_OWNER_ID
from storefront_sync._redact import redact_for_log
from storefront_sync.config import StorefrontConfig
from storefront_sync.exceptions import PersistenceError
from storefront_sync.favorites.normalize import normalize_product
from storefront_sync.favorites.storage import PersistentKV
from storefront_sync.models._normalize import safe_str
from storefront_sync.models.favorite import FavoriteRecord

_logger = logging.getLogger(__name__)

FavoritesListener = Callable[[tuple[FavoriteRecord, ...]], None]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class FavoritesStore:
    """Favorites for one owner (a signed-in user or the guest).

    ``add``, ``remove`` and ``toggle`` read and write the set without
    yielding to the event loop, so membership decisions always see the
    effect of every earlier call.
    """

    def __init__(
        self,
        storage: PersistentKV,
        *,
        owner_id: str | None = None,
        config: StorefrontConfig | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._storage = storage
        self._config = config or StorefrontConfig()
        self._clock = clock
        self._owner_id = safe_str(owner_id)
        self._items: dict[str, FavoriteRecord] = {}
        self._listeners: list[FavoritesListener] = []
        self._last_error: PersistenceError | None = None
        self.load()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def owner_id(self) -> str | None:
        return self._owner_id

    @property
    def storage_key(self) -> str:
        return self._config.favorites_key(self._owner_id)

    @property
    def count(self) -> int:
        return len(self._items)

    @property
    def last_error(self) -> PersistenceError | None:
        """Error from the most recent write, ``None`` if it succeeded."""
        return self._last_error

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, product_id: object) -> bool:
        return isinstance(product_id, str) and self.is_favorite(product_id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def normalize(self, product: Any) -> FavoriteRecord | None:
        """Normalize *product* for this store's owner and category table."""
        return normalize_product(
            product,
            owner_id=self._owner_id or GUEST_OWNER_ID,
            categories=self._config.categories,
            placeholder_image=self._config.placeholder_image,
            now=self._clock,
        )

    def is_favorite(self, product_id: str) -> bool:
        key = safe_str(product_id)
        return key is not None and key in self._items

    def get(self, product_id: str) -> FavoriteRecord | None:
        key = safe_str(product_id)
        return self._items.get(key) if key is not None else None

    def list(self) -> tuple[FavoriteRecord, ...]:
        return tuple(self._items.values())

    def subscribe(self, listener: FavoritesListener) -> Callable[[], None]:
        """Call *listener* with the full list after every change."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, product: Any) -> bool:
        """Insert *product* unless its id is already present.

        Returns ``True`` when the record was inserted.
        """
        record = self.normalize(product)
        if record is None:
            _logger.debug("Ignoring favorite without a usable id: %s", redact_for_log(product, max_string=64))
            return False
        if record.id in self._items:
            return False
        self._items[record.id] = record
        self._after_mutation()
        return True

    def remove(self, product_id: str) -> bool:
        """Remove *product_id*. Returns ``True`` when it was present."""
        key = safe_str(product_id)
        if key is None or key not in self._items:
            return False
        del self._items[key]
        self._after_mutation()
        return True

    def toggle(self, product: Any) -> bool:
        """Flip membership of *product* and return the resulting membership.

        Membership is read from the in-memory set at call time.
        """
        record = self.normalize(product)
        if record is None:
            _logger.debug("Cannot toggle favorite without a usable id")
            return False
        if record.id in self._items:
            self.remove(record.id)
            return False
        self.add(record)
        return True

    def clear(self) -> None:
        """Remove every favorite for the current owner."""
        if not self._items:
            return
        self._items.clear()
        self._after_mutation()

    def switch_owner(self, owner_id: str | None) -> None:
        """Point the store at another owner's snapshot and load it."""
        owner = safe_str(owner_id)
        if owner == self._owner_id:
            return
        self._owner_id = owner
        self.load()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Replace the in-memory set with the persisted snapshot.

        Missing data yields an empty set. Unreadable, non-array or partially
        invalid snapshots are repaired in storage. Never raises.
        """
        key = self.storage_key
        self._items = {}
        try:
            raw = self._storage.get(key)
        except Exception:
            _logger.warning("Failed to read favorites from %s", key, exc_info=True)
            raw = None

        if raw is not None and (not isinstance(raw, str) or raw.strip()):
            entries = self._parse_snapshot(key, raw) if isinstance(raw, str) else None
            needs_repair = entries is None
            for entry in entries or []:
                record = self.normalize(entry) if isinstance(entry, dict) else None
                if record is None or record.id in self._items:
                    needs_repair = True
                    continue
                if record.to_snapshot() != entry:
                    needs_repair = True
                self._items[record.id] = record
            if needs_repair:
                _logger.info("Repairing favorites snapshot %s (%d valid records)", key, len(self._items))
                self.persist()

        _logger.debug("Loaded %d favorites from %s", len(self._items), key)
        self._notify()

    def persist(self) -> bool:
        """Write the full set to storage. Returns ``False`` on failure."""
        key = self.storage_key
        snapshot = json.dumps(
            [record.to_snapshot() for record in self._items.values()],
            ensure_ascii=False,
            separators=(",", ":"),
        )
        error: PersistenceError | None = None
        try:
            if not self._storage.set(key, snapshot):
                error = PersistenceError(f"Storage rejected write to {key}", key=key)
        except Exception as exc:
            error = PersistenceError(f"Failed to write favorites to {key}: {exc}", key=key)
            error.__cause__ = exc

        self._last_error = error
        if error is not None:
            _logger.warning("%s; keeping %d favorites in memory", error, len(self._items))
            return False
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_snapshot(key: str, raw: str) -> list[Any] | None:
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            _logger.warning("Favorites snapshot %s is not valid JSON", key)
            return None
        if not isinstance(parsed, list):
            _logger.warning("Favorites snapshot %s is a %s, expected an array", key, type(parsed).__name__)
            return None
        return parsed

    def _after_mutation(self) -> None:
        self.persist()
        self._notify()

    def _notify(self) -> None:
        items = self.list()
        for listener in list(self._listeners):
            try:
                listener(items)
            except Exception:
                _logger.debug("Favorites listener failed", exc_info=True)
