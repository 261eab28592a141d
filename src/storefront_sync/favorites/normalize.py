"""Product → FavoriteRecord normalization.

Products reach the favorites layer from several screens and in several
shapes (catalog documents, search hits, already-stored records). Every one
of them is folded into the single :class:`FavoriteRecord` shape here, and
folding a record again leaves it unchanged.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ValidationError

from storefront_sync._constants import GUEST_OWNER_ID, PLACEHOLDER_IMAGE, UNCATEGORIZED, UNNAMED_PRODUCT
from storefront_sync.models._normalize import first_image, resolve_product_id, safe_float, safe_int, safe_str
from storefront_sync.models.favorite import FavoriteRecord, parse_timestamp
from storefront_sync.models.product import Product


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _as_dict(product: Any) -> dict[str, Any] | None:
    if isinstance(product, FavoriteRecord):
        return product.model_dump(by_alias=True)
    if isinstance(product, Product):
        category: Any = product.category_id
        if product.category_name:
            category = {"_id": product.category_id, "name": product.category_name}
        return {
            "id": product.id,
            "name": product.name,
            "description": product.description,
            "categoryId": category,
            "price": product.price,
            "stock": product.stock,
            "image": product.image,
            "isPersonalizable": product.is_personalizable,
        }
    if isinstance(product, BaseModel):
        return product.model_dump(by_alias=True)
    if isinstance(product, Mapping):
        return dict(product)
    return None


def _resolve_category(product: dict[str, Any], categories: Mapping[str, str]) -> tuple[str, str | None]:
    raw_category = product.get("categoryId")
    if isinstance(raw_category, Mapping):
        category_id = safe_str(raw_category.get("_id") or raw_category.get("id"))
        name = safe_str(raw_category.get("name"))
        if name is None and category_id is not None:
            name = categories.get(category_id)
        return name or UNCATEGORIZED, category_id

    category_id = safe_str(raw_category) if not isinstance(raw_category, (list, dict)) else None
    existing = product.get("category")
    name = safe_str(existing) if isinstance(existing, str) else None
    if name is None and category_id is not None:
        name = categories.get(category_id)
    return name or UNCATEGORIZED, category_id


def normalize_product(
    product: Any,
    *,
    owner_id: str | None = None,
    categories: Mapping[str, str] | None = None,
    placeholder_image: str = PLACEHOLDER_IMAGE,
    now: Callable[[], datetime] = _utcnow,
) -> FavoriteRecord | None:
    """Fold *product* into a :class:`FavoriteRecord`.

    Returns ``None`` (never raises) when no usable id can be resolved or
    the input is not a mapping/model. *owner_id* is stamped on the record;
    the input's own ``ownerId`` is used only when none is given. ``addedAt``
    already present on the input is preserved, so for a fixed owner
    ``normalize_product(normalize_product(p)) == normalize_product(p)``.
    """
    data = _as_dict(product)
    if data is None:
        return None
    product_id = resolve_product_id(data)
    if product_id is None:
        return None

    category, category_id = _resolve_category(data, categories or {})

    price = safe_float(data.get("price"))
    stock = safe_int(data.get("stock")) if data.get("stock") is not None else None
    added_at = parse_timestamp(data.get("addedAt")) or now()
    owner = safe_str(owner_id) or safe_str(data.get("ownerId")) or GUEST_OWNER_ID
    name = data.get("name")
    description = data.get("description")

    try:
        return FavoriteRecord(
            id=product_id,
            name=(safe_str(name) if isinstance(name, str) else None) or UNNAMED_PRODUCT,
            description=(safe_str(description) if isinstance(description, str) else None) or "",
            category=category,
            category_id=category_id,
            price=price if price is not None else 0.0,
            image=first_image(data) or placeholder_image,
            stock=stock,
            is_personalizable=bool(data.get("isPersonalizable")),
            added_at=added_at,
            owner_id=owner,
        )
    except ValidationError:
        return None
