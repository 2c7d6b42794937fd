"""
Transport boundary.

The core depends only on `Transport`: submit a request and get exactly one
callback with ``(content, response, error)``. `HTTPXTransport` is the default
implementation over `httpx.AsyncClient`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, TypeAlias

import httpx

from ..request import Header, RequestDescriptor

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class HTTPResponse:
    """Response metadata reported by a transport."""

    status_code: int
    headers: tuple[Header, ...] = ()
    url: str = ""

    def header(self, name: str) -> str | None:
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return None


ReplyCallback: TypeAlias = Callable[[bytes | None, Any, BaseException | None], None]


class Transport(Protocol):
    """
    Capability that moves a request over the network.

    `execute` must return without blocking and invoke `callback` exactly once,
    later, possibly from another thread. The response argument is normally an
    `HTTPResponse`; anything else is treated as a malformed response.
    """

    def execute(self, request: RequestDescriptor, callback: ReplyCallback) -> None: ...

    async def close(self) -> None: ...


class HTTPXTransport:
    """
    `Transport` backed by `httpx.AsyncClient`.

    Each request runs as its own task on the running event loop. `httpx`
    failures are reported through the callback's error argument.
    """

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, transport=transport)
        self._tasks: set[asyncio.Task[None]] = set()

    def execute(self, request: RequestDescriptor, callback: ReplyCallback) -> None:
        task = asyncio.get_running_loop().create_task(self._run(request, callback))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, request: RequestDescriptor, callback: ReplyCallback) -> None:
        try:
            response = await self._client.request(
                request.method.value,
                request.url,
                headers=list(request.headers),
                content=request.body,
            )
        except Exception as e:
            logger.debug(f"Transport failure for {request.method.value} {request.url}: {e!r}")
            callback(None, None, e)
            return
        metadata = HTTPResponse(
            status_code=response.status_code,
            headers=tuple(response.headers.multi_items()),
            url=str(response.url),
        )
        callback(response.content, metadata, None)

    async def close(self) -> None:
        """Wait for in-flight requests, then close the client if it is owned."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        if self._owns_client:
            await self._client.aclose()
