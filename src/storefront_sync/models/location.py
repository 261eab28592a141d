"""Router location model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator


class Location(BaseModel):
    """Snapshot of the router's current location."""

    model_config = ConfigDict(frozen=True)

    pathname: str = "/"
    search: str = ""

    @field_validator("pathname")
    @classmethod
    def _normalize_pathname(cls, value: str) -> str:
        path = value.strip()
        if not path:
            return "/"
        if not path.startswith("/"):
            path = f"/{path}"
        if len(path) > 1:
            path = path.rstrip("/") or "/"
        return path

    @classmethod
    def from_url(cls, url: str) -> Location:
        """Build a location from a ``path?query`` string."""
        path, _, query = url.partition("?")
        return cls(pathname=path, search=f"?{query}" if query else "")
