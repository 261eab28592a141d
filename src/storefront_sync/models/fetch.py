"""Fetch state models for the request coordinator."""

from __future__ import annotations

from collections.abc import Hashable
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict

from storefront_sync.exceptions import NetworkError

#: Opaque identifier of what a fetch targets, compared by value.
ResourceKey = Hashable


class FetchStatus(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class ErrorInfo(BaseModel):
    """Normalized, UI-facing description of a failed fetch."""

    model_config = ConfigDict(frozen=True)

    kind: str = "network"
    message: str
    status_code: int | None = None
    endpoint: str = ""
    retryable: bool = True

    @classmethod
    def from_exception(cls, exc: BaseException) -> ErrorInfo:
        """Collapse any fetch failure into the single network error shape."""
        if isinstance(exc, NetworkError):
            retryable = exc.status_code is None or exc.status_code >= 500 or exc.status_code in (408, 429)
            return cls(
                message=str(exc) or type(exc).__name__,
                status_code=exc.status_code,
                endpoint=exc.endpoint,
                retryable=retryable,
            )
        return cls(message=str(exc) or type(exc).__name__)


class FetchState(BaseModel):
    """Immutable snapshot of a coordinator's state.

    ``request_id`` increases on every issued request and is the only value
    used to decide whether a settling fetch is stale.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    key: Any = None
    status: FetchStatus = FetchStatus.IDLE
    data: Any = None
    error: ErrorInfo | None = None
    request_id: int = 0

    @property
    def is_loading(self) -> bool:
        return self.status == FetchStatus.LOADING
