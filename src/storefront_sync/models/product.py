"""Catalog product model."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from storefront_sync.models._normalize import first_image, safe_float, safe_int, safe_str


class Product(BaseModel):
    """A catalog item as returned by the products endpoints.

    The backend is not consistent about field shapes: ids arrive as
    ``_id`` or ``id``, ``categoryId`` is either a plain id or an embedded
    ``{"_id": ..., "name": ...}`` document, and images come either as a
    single ``image`` URL or an ``images`` list.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    id: str | None = Field(default=None, validation_alias=AliasChoices("_id", "id"))
    """Stable product identifier."""
    name: str = ""
    description: str = ""
    price: float | None = None
    stock: int | None = None
    image: str | None = None
    """Primary image URL resolved from ``image`` or ``images``."""
    images: list[Any] = Field(default_factory=list)
    category_id: str | None = Field(default=None, validation_alias=AliasChoices("categoryId", "category_id"))
    category_name: str | None = None
    """Category display name when the backend embeds the category document."""
    is_personalizable: bool = Field(
        default=False,
        validation_alias=AliasChoices("isPersonalizable", "is_personalizable"),
    )

    raw: dict[str, Any] = Field(default_factory=dict)
    """Full API document for access to additional fields."""

    @model_validator(mode="before")
    @classmethod
    def _unpack(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        merged = dict(values)
        merged.setdefault("raw", values)

        category = values.get("categoryId")
        if isinstance(category, dict):
            merged["categoryId"] = safe_str(category.get("_id") or category.get("id"))
            merged.setdefault("category_name", safe_str(category.get("name")))

        merged["image"] = first_image(values)
        if not isinstance(values.get("images"), list):
            merged.pop("images", None)
        return merged

    @field_validator("id", "category_id", mode="before")
    @classmethod
    def _coerce_ids(cls, value: Any) -> str | None:
        if isinstance(value, (dict, list)):
            return None
        return safe_str(value)

    @field_validator("name", "description", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return safe_str(value) or ""

    @field_validator("price", mode="before")
    @classmethod
    def _coerce_float(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator("stock", mode="before")
    @classmethod
    def _coerce_int(cls, value: Any) -> int | None:
        return safe_int(value)

    @property
    def in_stock(self) -> bool:
        """Whether the product can be ordered (unknown stock counts as available)."""
        return self.stock is None or self.stock > 0
