"""
Internal request pipeline primitives.

Interceptors run synchronously before dispatch and may return a modified
descriptor or raise to reject it. `Completion` bridges the transport's
callback to an awaitable and settles exactly once.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable, Sequence
from typing import Any, Generic, Protocol, TypeVar

from ..request import Header, RequestDescriptor

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Interceptor(Protocol):
    def __call__(self, request: RequestDescriptor) -> RequestDescriptor: ...


def chain_interceptors(interceptors: Sequence[Interceptor]) -> Interceptor:
    """Combine interceptors into one; each receives the previous one's result."""
    chain = tuple(interceptors)

    def _chained(request: RequestDescriptor) -> RequestDescriptor:
        for interceptor in chain:
            request = interceptor(request)
        return request

    return _chained


def default_headers_interceptor(headers: Sequence[Header]) -> Interceptor:
    """
    Interceptor appending `headers` to every request.

    Existing headers with the same names are kept; both values are sent.
    """
    pairs = tuple(headers)

    def _inject(request: RequestDescriptor) -> RequestDescriptor:
        return request.with_headers(pairs) if pairs else request

    return _inject


class Completion(Generic[T]):
    """
    One-shot result bound to an event loop.

    `resolve`/`reject` may be called from any thread; only the first call
    settles the result, later calls return False and are logged.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop or asyncio.get_running_loop()
        self._future: asyncio.Future[T] = self._loop.create_future()
        self._lock = threading.Lock()
        self._settled = False

    @property
    def settled(self) -> bool:
        return self._settled

    def resolve(self, value: T) -> bool:
        return self._settle(self._future.set_result, value)

    def reject(self, error: BaseException) -> bool:
        return self._settle(self._future.set_exception, error)

    def _settle(self, setter: Callable[[Any], None], arg: Any) -> bool:
        with self._lock:
            if self._settled:
                logger.warning("Ignoring repeated completion of an already settled request")
                return False
            self._settled = True

        def _apply() -> None:
            # The awaiting task may have been cancelled in the meantime.
            if not self._future.done():
                setter(arg)

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            _apply()
            return True
        try:
            self._loop.call_soon_threadsafe(_apply)
        except RuntimeError as e:
            logger.warning(f"Dropping completion of a request whose event loop is gone: {e}")
            return False
        return True

    async def wait(self) -> T:
        return await self._future
