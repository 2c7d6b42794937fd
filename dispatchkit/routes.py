"""
Route descriptions.

A route packages path, method, query parameters and an optional identifier
(plus a payload, for uploads) into one value that `APIClient.send` can
dispatch. Applications may use the dataclasses below or any object that
satisfies the protocols.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from .request import Method, QueryParams


@runtime_checkable
class RequestableRoute(Protocol):
    @property
    def path(self) -> str: ...

    @property
    def method(self) -> Method | str: ...

    @property
    def params(self) -> QueryParams | None: ...

    @property
    def identifier(self) -> str | None: ...


@runtime_checkable
class RequestableUploadRoute(RequestableRoute, Protocol):
    @property
    def payload(self) -> Any: ...


@dataclass(frozen=True, slots=True)
class Route:
    path: str
    method: Method | str = Method.GET
    params: QueryParams | None = None
    identifier: str | None = None


@dataclass(frozen=True, slots=True)
class UploadRoute:
    path: str
    payload: Any
    method: Method | str = Method.POST
    params: QueryParams | None = None
    identifier: str | None = None
