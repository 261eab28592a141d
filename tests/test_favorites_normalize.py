from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import pytest

from storefront_sync.favorites.normalize import normalize_product
from storefront_sync.models.favorite import FavoriteRecord
from storefront_sync.models.product import Product

_NOW = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
_CATEGORIES = {"688176179579a7cde1657ace": "Giftboxes"}


def _normalize(product: Any, **kwargs: Any) -> FavoriteRecord | None:
    kwargs.setdefault("categories", _CATEGORIES)
    kwargs.setdefault("now", lambda: _NOW)
    return normalize_product(product, **kwargs)


@pytest.mark.parametrize(
    "product",
    [
        {"id": "p1", "name": "Rose bouquet", "price": 23},
        {"_id": "p2", "name": "Giftbox", "price": "19.90", "categoryId": "688176179579a7cde1657ace"},
        {
            "_id": "p3",
            "name": "  Dried flowers ",
            "images": [{"image": "https://cdn.example.com/p3.jpg"}],
            "categoryId": {"_id": "c9", "name": "Arreglos con flores secas"},
            "stock": "4",
        },
        {"id": 44, "images": ["https://cdn.example.com/p44.jpg"], "categoryId": "unknown-category"},
        {"id": "p5", "name": "Card", "image": "https://cdn.example.com/p5.jpg", "isPersonalizable": 1},
        {"_id": "p6", "addedAt": "2025-05-01T08:30:00Z", "ownerId": "u7", "category": "Tarjetas"},
    ],
)
def test_normalize_is_idempotent(product: dict[str, Any]) -> None:
    once = _normalize(product, owner_id="u1")
    assert once is not None

    twice = _normalize(once, owner_id="u1")
    assert twice == once

    from_snapshot = _normalize(once.to_snapshot(), owner_id="u1")
    assert from_snapshot == once

    without_owner = _normalize(once.to_snapshot())
    assert without_owner == once


def test_normalize_stamps_given_owner_over_record_owner() -> None:
    guest_record = _normalize({"_id": "p1", "ownerId": "guest", "addedAt": "2025-05-01T08:30:00Z"})
    assert guest_record is not None
    assert guest_record.owner_id == "guest"

    moved = _normalize(guest_record, owner_id="u1")

    assert moved is not None
    assert moved.owner_id == "u1"
    assert moved.added_at == guest_record.added_at


def test_normalize_resolves_canonical_shape() -> None:
    record = _normalize(
        {
            "_id": "p3",
            "name": "Dried flowers",
            "description": "Seasonal",
            "price": "35.5",
            "stock": 2,
            "images": [{"image": "https://cdn.example.com/p3.jpg"}, {"image": "second.jpg"}],
            "categoryId": {"_id": "688176179579a7cde1657ace"},
        },
        owner_id="u1",
    )

    assert record is not None
    assert record.id == "p3"
    assert record.price == 35.5
    assert record.stock == 2
    assert record.image == "https://cdn.example.com/p3.jpg"
    assert record.category == "Giftboxes"
    assert record.category_id == "688176179579a7cde1657ace"
    assert record.added_at == _NOW
    assert record.owner_id == "u1"


def test_normalize_prefers_underscore_id() -> None:
    record = _normalize({"_id": "mongo-id", "id": "other"})
    assert record is not None
    assert record.id == "mongo-id"


def test_normalize_defaults_for_sparse_product() -> None:
    record = _normalize({"id": "p1"}, placeholder_image="/missing.png")

    assert record is not None
    assert record.name == "Unnamed product"
    assert record.description == ""
    assert record.price == 0.0
    assert record.stock is None
    assert record.image == "/missing.png"
    assert record.category == "Uncategorized"
    assert record.owner_id == "guest"


@pytest.mark.parametrize(
    "product",
    [
        {"name": "no id"},
        {"id": "   "},
        {"_id": None, "id": ""},
        {"id": {"nested": True}},
        "p1",
        None,
        42,
    ],
)
def test_normalize_returns_none_without_usable_id(product: Any) -> None:
    assert _normalize(product) is None


def test_normalize_accepts_product_model() -> None:
    product = Product.model_validate(
        {
            "_id": "p9",
            "name": "Cuadro",
            "price": 40,
            "images": ["https://cdn.example.com/p9.jpg"],
            "categoryId": {"_id": "688175fd9579a7cde1657aca", "name": "Cuadros decorativos"},
        }
    )

    record = _normalize(product)

    assert record is not None
    assert record.id == "p9"
    assert record.image == "https://cdn.example.com/p9.jpg"
    assert record.category == "Cuadros decorativos"
    assert record.category_id == "688175fd9579a7cde1657aca"


def test_snapshot_uses_camel_case_and_omits_missing_stock() -> None:
    record = _normalize({"id": "p1", "name": "Rose bouquet", "price": 23}, owner_id="u1")
    assert record is not None

    snapshot = record.to_snapshot()

    assert snapshot["addedAt"].startswith("2026-01-01T12:00:00")
    assert snapshot["ownerId"] == "u1"
    assert snapshot["isPersonalizable"] is False
    assert "stock" not in snapshot
