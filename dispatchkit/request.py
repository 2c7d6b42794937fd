"""
Request descriptors and the functions that build them.

A `RequestDescriptor` is an immutable value describing one outgoing request.
Builders normalize host, path, query parameters, method and payload into a
descriptor, or raise a `RequestBuildError`.
"""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeAlias
from urllib.parse import quote, urlencode, urlsplit, urlunsplit

import httpx

from .codec import Codec, JSONCodec
from .exceptions import EncodingFailedError, FailedToCreateURLError, GetRequestCannotHaveBodyError
from .policies import KeyCasing, key_casing_for

Header: TypeAlias = tuple[str, str]
QueryParams: TypeAlias = Sequence[tuple[str, str | None]] | Mapping[str, str | None]

DEFAULT_CODEC: Codec = JSONCodec()

_INVALID_URL_CHARS = re.compile(r"[\s\x00-\x1f\x7f]")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_PATH_SAFE = "/:@!$&'()*+,;=-._~"


class Method(str, Enum):
    GET = "GET"
    PUT = "PUT"
    POST = "POST"
    DELETE = "DELETE"


@dataclass(frozen=True, slots=True)
class RequestDescriptor:
    """
    One outgoing HTTP request.

    Headers keep insertion order and duplicates; lookups by name are
    case-insensitive. `identifier` defaults to the URL when omitted (an empty
    string is kept as given) and exists only for correlation (logging,
    tests); dispatch never interprets it.

    Descriptors are immutable. Interceptors derive modified copies with
    `with_header`, `replacing_header`, `replace` and friends.
    """

    method: Method
    url: str
    headers: tuple[Header, ...] = ()
    body: bytes | None = None
    identifier: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.method, Method):
            object.__setattr__(self, "method", _coerce_method(self.method))
        if not isinstance(self.headers, tuple):
            object.__setattr__(self, "headers", tuple(self.headers))
        if self.identifier is None:
            object.__setattr__(self, "identifier", self.url)
        if self.method is Method.GET and self.body is not None:
            raise GetRequestCannotHaveBodyError()

    def header(self, name: str) -> str | None:
        """First value for `name`, or None."""
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return None

    def header_values(self, name: str) -> list[str]:
        lowered = name.lower()
        return [value for key, value in self.headers if key.lower() == lowered]

    def with_header(self, name: str, value: str) -> RequestDescriptor:
        """Append a header, keeping any existing values for the same name."""
        return dataclasses.replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Iterable[Header]) -> RequestDescriptor:
        return dataclasses.replace(self, headers=(*self.headers, *headers))

    def without_header(self, name: str) -> RequestDescriptor:
        lowered = name.lower()
        kept = tuple((k, v) for k, v in self.headers if k.lower() != lowered)
        return dataclasses.replace(self, headers=kept)

    def replacing_header(self, name: str, value: str) -> RequestDescriptor:
        """Drop every value for `name` and append a single new one."""
        return self.without_header(name).with_header(name, value)

    def replace(self, **changes: Any) -> RequestDescriptor:
        return dataclasses.replace(self, **changes)


def _coerce_method(value: Method | str) -> Method:
    if isinstance(value, Method):
        return value
    try:
        return Method(str(value).upper())
    except ValueError:
        raise ValueError(f"Unsupported HTTP method: {value!r}") from None


def _resolve_method(method: Method | str | None, payload: Any) -> Method:
    if method is None:
        return Method.GET if payload is None else Method.POST
    resolved = _coerce_method(method)
    if resolved is Method.GET and payload is not None:
        raise GetRequestCannotHaveBodyError()
    return resolved


def _split_base(value: str) -> tuple[str, str, str, str, str]:
    if not value or _INVALID_URL_CHARS.search(value):
        raise FailedToCreateURLError(value)
    try:
        parts = urlsplit(value)
        _ = parts.port
    except ValueError as e:
        raise FailedToCreateURLError(value) from e
    if not parts.scheme:
        raise FailedToCreateURLError(value)
    return parts.scheme, parts.netloc, parts.path, parts.query, parts.fragment


def _query_pairs(params: QueryParams | None) -> list[tuple[str, str]]:
    if not params:
        return []
    items = params.items() if isinstance(params, Mapping) else params
    return [(str(key), str(value)) for key, value in items if value is not None]


def compose_url(base: str, path: str | None = None, params: QueryParams | None = None) -> str:
    """
    Compose a fully resolved URL.

    `path`, when given, replaces the base path. It is taken as unencoded text:
    every character outside the path-safe set, `%` and spaces included, is
    percent-encoded. Query parameters are appended after any query already
    present on `base`, in order; duplicate keys are kept and pairs with a
    `None` value are dropped.

    Raises:
        FailedToCreateURLError: If `base` is not a URL, or the composed URL is invalid.
    """
    scheme, netloc, base_path, query, fragment = _split_base(base)

    if path is not None:
        if _CONTROL_CHARS.search(path):
            raise FailedToCreateURLError(path)
        if path and netloc and not path.startswith("/"):
            raise FailedToCreateURLError(f"{scheme}://{netloc}{path}")
        base_path = quote(path, safe=_PATH_SAFE)

    extra = urlencode(_query_pairs(params), quote_via=quote)
    if extra:
        query = f"{query}&{extra}" if query else extra

    url = urlunsplit((scheme, netloc, base_path, query, fragment))
    try:
        httpx.URL(url)
    except httpx.InvalidURL as e:
        raise FailedToCreateURLError(url) from e
    return url


def _build(
    method: Method,
    url: str,
    *,
    payload: Any,
    identifier: str | None,
    key_casing: KeyCasing | None,
    codec: Codec | None,
) -> RequestDescriptor:
    body: bytes | None = None
    headers: tuple[Header, ...] = ()
    if payload is not None:
        codec = codec or DEFAULT_CODEC
        try:
            body = codec.encode(payload, key_casing_for(type(payload), key_casing))
        except Exception as e:
            raise EncodingFailedError(payload) from e
        headers = (("Content-Type", codec.content_type),)
    return RequestDescriptor(
        method=method,
        url=url,
        headers=headers,
        body=body,
        identifier=url if identifier is None else identifier,
    )


def generate_request(
    host: str,
    path: str = "",
    *,
    params: QueryParams | None = None,
    payload: Any = None,
    method: Method | str | None = None,
    identifier: str | None = None,
    key_casing: KeyCasing | None = None,
    codec: Codec | None = None,
) -> RequestDescriptor:
    """
    Build a descriptor from a base host and a path.

    Args:
        host: Base URL, e.g. ``"https://api.example.com"``
        path: Path component; replaces any path on `host`
        params: Query parameters as pairs or a mapping
        payload: Optional body, encoded with `codec`
        method: Defaults to GET without a payload and POST with one
        identifier: Correlation string; defaults to the resolved URL
        key_casing: Overrides the payload type's declared key casing
        codec: Defaults to `JSONCodec`

    Raises:
        GetRequestCannotHaveBodyError: GET with a payload (checked first).
        FailedToCreateURLError: Invalid host, or invalid composed URL.
        EncodingFailedError: The codec could not encode `payload`.
    """
    resolved = _resolve_method(method, payload)
    url = compose_url(host, path, params)
    return _build(
        resolved,
        url,
        payload=payload,
        identifier=identifier,
        key_casing=key_casing,
        codec=codec,
    )


def generate_url_request(
    url: str,
    *,
    params: QueryParams | None = None,
    payload: Any = None,
    method: Method | str | None = None,
    identifier: str | None = None,
    key_casing: KeyCasing | None = None,
    codec: Codec | None = None,
) -> RequestDescriptor:
    """Like `generate_request`, for a complete URL whose path is kept as-is."""
    resolved = _resolve_method(method, payload)
    composed = compose_url(url, None, params)
    return _build(
        resolved,
        composed,
        payload=payload,
        identifier=identifier,
        key_casing=key_casing,
        codec=codec,
    )
