"""Shared test doubles and payload models."""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable
from typing import Any, ClassVar

from dispatchkit import HTTPResponse, KeyCasing, Payload, RequestDescriptor
from dispatchkit.clients.transport import ReplyCallback

Reply = tuple[bytes | None, Any, BaseException | None]

TEST_HOST = "http://example.com"


class Person(Payload):
    name: str
    age: int

    @classmethod
    def subject(cls) -> Person:
        return cls(name="X", age=1)


class CamelPerson(Payload):
    key_casing: ClassVar[KeyCasing] = KeyCasing.CAMEL_CASE

    first_name: str
    last_name: str


PERSON_JSON = b'{"name":"X","age":1}'


class RecordingTransport:
    """
    Transport double that records requests and replies on the next loop turn.

    `handler` computes a reply per request; otherwise the fixed reply set via
    `respond` is used. `repeat` invokes the callback more than once and
    `threaded` delivers it from a worker thread.
    """

    def __init__(
        self,
        handler: Callable[[RequestDescriptor], Reply] | None = None,
        *,
        repeat: int = 1,
        threaded: bool = False,
    ) -> None:
        self.handler = handler
        self.repeat = repeat
        self.threaded = threaded
        self.requests: list[RequestDescriptor] = []
        self.closed = False
        self._reply: Reply = (None, HTTPResponse(200, url=TEST_HOST), None)

    def respond(
        self,
        content: bytes | None = None,
        status_code: int = 200,
        *,
        response: Any = ...,
        error: BaseException | None = None,
    ) -> None:
        if response is ...:
            response = HTTPResponse(status_code, url=TEST_HOST)
        self._reply = (content, response, error)

    def execute(self, request: RequestDescriptor, callback: ReplyCallback) -> None:
        self.requests.append(request)
        reply = self.handler(request) if self.handler is not None else self._reply
        if self.threaded:

            def _deliver() -> None:
                for _ in range(self.repeat):
                    callback(*reply)

            threading.Thread(target=_deliver).start()
            return
        loop = asyncio.get_running_loop()
        for _ in range(self.repeat):
            loop.call_soon(callback, *reply)

    async def close(self) -> None:
        self.closed = True


