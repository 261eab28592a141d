"""Favorite record model."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

# Threshold to distinguish seconds from milliseconds.
_MS_THRESHOLD = 1_000_000_000_000


def parse_timestamp(value: Any) -> datetime | None:
    """Coerce an ISO string, epoch seconds/milliseconds or datetime to an aware UTC datetime.

    Returns ``None`` for anything that cannot be interpreted.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, (int, float)):
        ts = float(value)
        if ts >= _MS_THRESHOLD:
            ts /= 1000.0
        try:
            return datetime.fromtimestamp(ts, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
        return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)
    return None


class FavoriteRecord(BaseModel):
    """Normalized snapshot of a product at the time it was favorited.

    Serialized with camelCase keys (``addedAt``, ``ownerId``, ...), which
    is the persisted snapshot format.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    id: str
    name: str
    description: str = ""
    category: str
    category_id: str | None = None
    price: float = 0.0
    image: str
    stock: int | None = None
    is_personalizable: bool = False
    added_at: datetime
    owner_id: str

    @field_validator("id", "owner_id")
    @classmethod
    def _non_blank(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("must be non-empty")
        return stripped

    @field_validator("added_at")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    def to_snapshot(self) -> dict[str, Any]:
        """JSON-ready dict used in the persisted favorites array."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
