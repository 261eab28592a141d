"""Cooperative cancellation tokens for in-flight fetches."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from storefront_sync.exceptions import AbortedError

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class AbortSignal:
    """Read-only side of an :class:`AbortController`.

    Passed to fetchers so they can stop work once the request that owns
    them has been superseded or cancelled. Honoring the signal is optional:
    a result produced after abort is discarded by the coordinator anyway.
    """

    def __init__(self) -> None:
        self._aborted = False
        self._reason: object = None
        self._event = asyncio.Event()
        self._callbacks: list[Callable[[object], None]] = []

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def reason(self) -> object:
        return self._reason

    def throw_if_aborted(self) -> None:
        if self._aborted:
            raise AbortedError(reason=self._reason)

    def add_callback(self, callback: Callable[[object], None]) -> Callable[[], None]:
        """Run *callback(reason)* on abort (immediately if already aborted).

        Returns a function that unregisters the callback.
        """
        if self._aborted:
            callback(self._reason)
            return lambda: None
        self._callbacks.append(callback)

        def _remove() -> None:
            with contextlib.suppress(ValueError):
                self._callbacks.remove(callback)

        return _remove

    async def wait(self) -> object:
        """Block until the signal is aborted and return the reason."""
        await self._event.wait()
        return self._reason

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await *awaitable* unless the signal fires first.

        On abort the wrapped operation is cancelled and :class:`AbortedError`
        is raised in its place.
        """
        if self._aborted and asyncio.iscoroutine(awaitable):
            awaitable.close()
        self.throw_if_aborted()

        task = asyncio.ensure_future(awaitable)
        remove = self.add_callback(lambda _reason: task.cancel())
        try:
            return await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if self._aborted and (current is None or current.cancelling() == 0):
                raise AbortedError(reason=self._reason) from None
            raise
        except Exception as exc:
            if self._aborted:
                _logger.debug("Aborted operation failed while cancelling", exc_info=True)
                raise AbortedError(reason=self._reason) from exc
            raise
        finally:
            remove()

    def _fire(self, reason: object) -> None:
        if self._aborted:
            return
        self._aborted = True
        self._reason = reason
        self._event.set()
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback(reason)
            except Exception:
                _logger.debug("Abort callback failed", exc_info=True)


class AbortController:
    """Owns an :class:`AbortSignal` and the right to fire it."""

    def __init__(self) -> None:
        self._signal = AbortSignal()

    @property
    def signal(self) -> AbortSignal:
        return self._signal

    def abort(self, reason: object = None) -> None:
        """Fire the signal. Calling it again is a no-op."""
        self._signal._fire(reason)
