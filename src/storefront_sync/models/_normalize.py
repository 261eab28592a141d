"""Normalization helpers.

Centralizes defensive parsing of loosely typed catalog payloads.
"""

from __future__ import annotations

import math
from typing import Any


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def resolve_product_id(product: Any) -> str | None:
    """Return the stable product id from ``_id`` or ``id``, or ``None``."""
    if not isinstance(product, dict):
        return None
    for key in ("_id", "id"):
        candidate = product.get(key)
        if isinstance(candidate, (dict, list)):
            continue
        resolved = safe_str(candidate)
        if resolved is not None:
            return resolved
    return None


def first_image(product: dict[str, Any]) -> str | None:
    """Pick the display image: ``image``, else ``images[0].image``, else ``images[0]``."""
    image = product.get("image")
    if isinstance(image, dict):
        image = image.get("uri") or image.get("image")
    resolved = safe_str(image) if isinstance(image, str) else None
    if resolved is not None:
        return resolved

    images = product.get("images")
    if isinstance(images, list) and images:
        head = images[0]
        if isinstance(head, dict):
            return safe_str(head.get("image")) if isinstance(head.get("image"), str) else None
        if isinstance(head, str):
            return safe_str(head)
    return None
