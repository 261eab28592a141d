"""Single-flight fetch coordination with staleness guarding.

A :class:`RequestCoordinator` owns at most one in-flight fetch. Every new
request aborts the previous one and takes a fresh, strictly increasing
``request_id``; when a fetch settles, its result is committed only if that
id still belongs to the active request. Superseded and cancelled fetches
therefore never touch state, whether or not the transport honored the
abort signal.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from storefront_sync.exceptions import NetworkError
from storefront_sync.models.fetch import ErrorInfo, FetchState, FetchStatus, ResourceKey
from storefront_sync.sync.abort import AbortController, AbortSignal

_logger = logging.getLogger(__name__)

Fetcher = Callable[[ResourceKey, AbortSignal], Awaitable[Any]]
StateListener = Callable[[FetchState], None]


@dataclass(slots=True)
class _InFlight:
    request_id: int
    key: ResourceKey
    controller: AbortController
    task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self.task is not None and not self.task.done()


def _current_task_cancelling() -> bool:
    task = asyncio.current_task()
    return task is not None and task.cancelling() > 0


class RequestCoordinator:
    """Coordinate fetches for one scope (a screen or navigation context).

    Usage::

        async with RequestCoordinator(name="category") as coordinator:
            coordinator.subscribe(render)
            coordinator.request("todos", fetcher)

    The coordinator never raises from :meth:`request` or :meth:`cancel`;
    every outcome ends up in :meth:`get_state`.
    """

    def __init__(self, *, name: str = "default") -> None:
        self._name = name
        self._state = FetchState()
        self._inflight: _InFlight | None = None
        self._listeners: list[StateListener] = []

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> RequestCoordinator:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def in_flight(self) -> bool:
        return self._inflight is not None and self._inflight.running

    def get_state(self) -> FetchState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call *listener* with the new state on every committed transition."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return _unsubscribe

    def request(self, key: ResourceKey, fetcher: Fetcher) -> asyncio.Task[None]:
        """Start fetching *key*, superseding whatever is in flight.

        Re-requesting the key that is already in flight returns the
        existing task without calling *fetcher* again. Must be called from
        a running event loop. The returned task never raises.
        """
        current = self._inflight
        if current is not None and current.running and current.key == key:
            _logger.debug("[%s] %r already in flight (request %d)", self._name, key, current.request_id)
            assert current.task is not None  # noqa: S101
            return current.task

        loop = asyncio.get_running_loop()
        self._abort_inflight("superseded")

        request_id = self._state.request_id + 1
        inflight = _InFlight(request_id=request_id, key=key, controller=AbortController())
        self._inflight = inflight
        inflight.task = loop.create_task(
            self._run(inflight, fetcher),
            name=f"storefront-sync:{self._name}:{request_id}",
        )
        _logger.debug("[%s] request %d for %r", self._name, request_id, key)
        self._commit(
            self._state.model_copy(
                update={
                    "key": key,
                    "status": FetchStatus.LOADING,
                    "error": None,
                    "request_id": request_id,
                }
            )
        )
        return inflight.task

    def cancel(self) -> None:
        """Abort the active request and reset to idle, keeping the key."""
        if self._abort_inflight("cancelled"):
            _logger.debug("[%s] cancelled request for %r", self._name, self._state.key)
        idle = self._state.model_copy(update={"status": FetchStatus.IDLE, "data": None, "error": None})
        if idle != self._state:
            self._commit(idle)

    async def aclose(self) -> None:
        """Cancel and wait for the outstanding fetch task, if any."""
        inflight = self._inflight
        self.cancel()
        if inflight is None or inflight.task is None or inflight.task.done():
            return
        inflight.task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await inflight.task

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _abort_inflight(self, reason: str) -> bool:
        inflight = self._inflight
        self._inflight = None
        if inflight is None or not inflight.running:
            return False
        inflight.controller.abort(reason)
        return True

    def _is_current(self, inflight: _InFlight) -> bool:
        return self._inflight is inflight and inflight.request_id == self._state.request_id

    async def _run(self, inflight: _InFlight, fetcher: Fetcher) -> None:
        signal = inflight.controller.signal
        try:
            payload = await fetcher(inflight.key, signal)
        except asyncio.CancelledError as exc:
            if _current_task_cancelling():
                raise
            if signal.aborted:
                _logger.debug("[%s] request %d aborted", self._name, inflight.request_id)
                return
            self._settle_error(inflight, exc)
            return
        except Exception as exc:
            if signal.aborted:
                # Rejections after our own abort are the expected end of a superseded request.
                _logger.debug("[%s] request %d aborted: %s", self._name, inflight.request_id, exc)
                return
            self._settle_error(inflight, exc)
            return
        self._settle_success(inflight, payload)

    def _settle_success(self, inflight: _InFlight, payload: Any) -> None:
        if not self._is_current(inflight):
            _logger.debug("[%s] discarding stale response for request %d", self._name, inflight.request_id)
            return
        self._inflight = None
        self._commit(
            self._state.model_copy(
                update={"status": FetchStatus.SUCCESS, "data": payload, "error": None},
            )
        )

    def _settle_error(self, inflight: _InFlight, exc: BaseException) -> None:
        if not self._is_current(inflight):
            _logger.debug("[%s] discarding stale failure for request %d: %s", self._name, inflight.request_id, exc)
            return
        if isinstance(exc, NetworkError):
            _logger.debug("[%s] request %d for %r failed: %s", self._name, inflight.request_id, inflight.key, exc)
        else:
            _logger.warning(
                "[%s] fetcher for %r raised an unexpected error",
                self._name,
                inflight.key,
                exc_info=exc,
            )
        self._inflight = None
        self._commit(
            self._state.model_copy(
                update={"status": FetchStatus.ERROR, "data": None, "error": ErrorInfo.from_exception(exc)},
            )
        )

    def _commit(self, state: FetchState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                _logger.debug("[%s] state listener failed", self._name, exc_info=True)
