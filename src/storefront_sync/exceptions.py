"""Custom exception hierarchy for storefront_sync."""

from __future__ import annotations


class StorefrontError(Exception):
    """Base exception for all storefront_sync errors."""


class StorefrontConfigError(StorefrontError):
    """Invalid or missing configuration."""


class AbortedError(StorefrontError):
    """The operation was cancelled through its abort signal.

    This is the expected outcome of a request being superseded and is
    never surfaced into fetch state.
    """

    def __init__(self, message: str = "request aborted", *, reason: object = None) -> None:
        self.reason = reason
        super().__init__(message)


class NetworkError(StorefrontError):
    """Transport failure or non-2xx response."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class MalformedResponseError(NetworkError):
    """A response arrived but failed shape validation.

    Subclasses :class:`NetworkError` so consumers only branch on one
    error shape.
    """


class PersistenceError(StorefrontError):
    """Writing the favorites snapshot to storage failed."""

    def __init__(self, message: str, *, key: str = "") -> None:
        self.key = key
        super().__init__(message)
