"""
Dispatch and decoding pipelines.

`HTTPClient.send` runs the interceptor, hands the descriptor to the transport,
classifies the single reply and settles once. `HTTPClient.send_decodable`
layers typed decoding on top.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, NoReturn, TypeAlias, TypeVar

import httpx

from ..codec import Codec, JSONCodec
from ..exceptions import (
    BadRequestError,
    DecodingFailedError,
    DispatchKitError,
    ServerError,
    TransportError,
    UnexpectedResponseError,
)
from ..policies import KeyCasing, key_casing_for
from ..request import Header, QueryParams, RequestDescriptor, generate_url_request
from .pipeline import Completion, Interceptor
from .transport import HTTPResponse, HTTPXTransport, Transport

logger = logging.getLogger(__name__)

T = TypeVar("T")

RawResponse: TypeAlias = tuple[HTTPResponse, bytes | None]


# =============================================================================
# Configuration
# =============================================================================


def _maybe_load_dotenv(dotenv_path: str | Path | None) -> None:
    try:
        from dotenv import load_dotenv
    except ImportError as e:
        raise ImportError(
            "Optional .env support requires python-dotenv; install `dispatchkit[dotenv]`."
        ) from e
    load_dotenv(dotenv_path=dotenv_path, override=False)


def _parse_header_list(raw: str) -> tuple[Header, ...]:
    headers: list[Header] = []
    for entry in raw.split(";"):
        if not entry.strip():
            continue
        name, sep, value = entry.partition(":")
        if not sep or not name.strip():
            raise ValueError(f"Malformed header entry {entry!r}; expected 'Name: value'")
        headers.append((name.strip(), value.strip()))
    return tuple(headers)


_TRUTHY = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """
    Long-lived client configuration.

    Attributes:
        host: Base URL every path is resolved against; validated by `APIClient`
        default_headers: Headers appended to every outgoing request, in order
        timeout: Request timeout in seconds for the default `httpx` transport
        log_requests: Log every dispatch at INFO instead of DEBUG
        transport: Optional `httpx` transport for the default adapter (e.g. `httpx.MockTransport`)
    """

    host: str
    default_headers: tuple[Header, ...] = ()
    timeout: float = 30.0
    log_requests: bool = False
    transport: httpx.AsyncBaseTransport | None = None

    def __post_init__(self) -> None:
        headers: Any = self.default_headers
        if isinstance(headers, Mapping):
            headers = headers.items()
        object.__setattr__(self, "default_headers", tuple((str(k), str(v)) for k, v in headers))

    @classmethod
    def from_env(
        cls,
        prefix: str = "DISPATCHKIT_",
        *,
        load_dotenv: bool = False,
        dotenv_path: str | Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> ClientConfig:
        """
        Build a config from environment variables.

        Reads ``{prefix}HOST`` (required), ``{prefix}DEFAULT_HEADERS``
        (``"Name: value; Other: value"``), ``{prefix}TIMEOUT`` and
        ``{prefix}LOG_REQUESTS``.
        """
        if load_dotenv:
            _maybe_load_dotenv(dotenv_path)
        env = os.environ if environ is None else environ

        host = env.get(f"{prefix}HOST", "").strip()
        if not host:
            raise ValueError(f"{prefix}HOST is not set")
        timeout_raw = env.get(f"{prefix}TIMEOUT", "").strip()
        return cls(
            host=host,
            default_headers=_parse_header_list(env.get(f"{prefix}DEFAULT_HEADERS", "")),
            timeout=float(timeout_raw) if timeout_raw else 30.0,
            log_requests=env.get(f"{prefix}LOG_REQUESTS", "").strip().lower() in _TRUTHY,
        )


# =============================================================================
# Outcomes
# =============================================================================


@dataclass(frozen=True, slots=True)
class Success:
    response: HTTPResponse
    content: bytes | None

    def unwrap(self) -> RawResponse:
        return self.response, self.content


@dataclass(frozen=True, slots=True)
class HTTPFailure:
    """Error-range status. `content` is kept here but never surfaced by `unwrap`."""

    response: HTTPResponse
    content: bytes | None = None

    def unwrap(self) -> NoReturn:
        code = self.response.status_code
        if 400 <= code <= 499:
            raise BadRequestError(code, response=self.response)
        raise ServerError(code, response=self.response)


@dataclass(frozen=True, slots=True)
class TransportFailure:
    error: BaseException

    def unwrap(self) -> NoReturn:
        raise TransportError(self.error) from self.error


ResponseOutcome: TypeAlias = Success | HTTPFailure | TransportFailure


def classify_reply(
    content: bytes | None, response: Any, error: BaseException | None
) -> ResponseOutcome:
    """
    Classify one transport reply.

    A transport error wins over everything else, including a response with an
    error-range status.

    Raises:
        UnexpectedResponseError: No error, but no well-formed `HTTPResponse` either.
    """
    if error is not None:
        return TransportFailure(error)
    if (
        not isinstance(response, HTTPResponse)
        or not isinstance(response.status_code, int)
        or isinstance(response.status_code, bool)
    ):
        raise UnexpectedResponseError(content, response)
    if 400 <= response.status_code <= 599:
        return HTTPFailure(response, content)
    return Success(response, content)


# =============================================================================
# Client
# =============================================================================


class HTTPClient:
    """
    Dispatch pipeline over a `Transport`.

    The single `interceptor` runs synchronously before every dispatch. It may
    return a modified descriptor, or raise to fail the call before the
    transport is invoked; the raised error reaches the caller unchanged.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        interceptor: Interceptor | None = None,
        codec: Codec | None = None,
        log_requests: bool = False,
    ):
        self._transport = transport
        self.interceptor = interceptor
        self._codec: Codec = codec or JSONCodec()
        self._log_level = logging.INFO if log_requests else logging.DEBUG

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def codec(self) -> Codec:
        return self._codec

    async def close(self) -> None:
        await self._transport.close()

    # =========================================================================
    # Dispatch
    # =========================================================================

    async def send(self, request: RequestDescriptor) -> RawResponse:
        """
        Dispatch a descriptor and return ``(response, content)``.

        Raises:
            TransportError: The transport reported a failure.
            UnexpectedResponseError: The transport returned no usable response.
            BadRequestError: Status 400-499.
            ServerError: Status 500-599.
        """
        if self.interceptor is not None:
            request = self.interceptor(request)

        logger.log(
            self._log_level,
            f"{request.method.value} {request.url} (identifier={request.identifier})",
        )
        completion: Completion[ResponseOutcome] = Completion()

        def on_reply(content: bytes | None, response: Any, error: BaseException | None) -> None:
            try:
                outcome = classify_reply(content, response, error)
            except UnexpectedResponseError as e:
                completion.reject(e)
            else:
                completion.resolve(outcome)

        try:
            self._transport.execute(request, on_reply)
        except Exception as e:
            raise TransportError(e) from e

        try:
            return (await completion.wait()).unwrap()
        except DispatchKitError as e:
            logger.debug(f"{request.method.value} {request.url} failed: {e}")
            raise

    async def send_decodable(
        self,
        request: RequestDescriptor,
        response_model: type[T],
        *,
        key_casing: KeyCasing | None = None,
    ) -> T:
        """
        Dispatch a descriptor and decode the body into `response_model`.

        Dispatch errors propagate unchanged.

        Raises:
            UnexpectedResponseError: The response has no body; no decode is attempted.
            DecodingFailedError: The body could not be decoded.
        """
        response, content = await self.send(request)
        if not content:
            raise UnexpectedResponseError(None, response)
        casing = key_casing_for(response_model, key_casing)
        try:
            return self._codec.decode(content, response_model, casing)
        except Exception as e:
            raise DecodingFailedError(response_model, content) from e

    # =========================================================================
    # URL conveniences
    # =========================================================================

    def _url_request(self, url: str, **kwargs: Any) -> RequestDescriptor:
        return generate_url_request(url, codec=self._codec, **kwargs)

    async def get(self, url: str, *, params: QueryParams | None = None) -> RawResponse:
        return await self.send(self._url_request(url, params=params))

    async def put(
        self,
        url: str,
        payload: Any,
        *,
        params: QueryParams | None = None,
        key_casing: KeyCasing | None = None,
    ) -> RawResponse:
        request = self._url_request(
            url, params=params, payload=payload, method="PUT", key_casing=key_casing
        )
        return await self.send(request)

    async def post(
        self,
        url: str,
        payload: Any,
        *,
        params: QueryParams | None = None,
        key_casing: KeyCasing | None = None,
    ) -> RawResponse:
        request = self._url_request(
            url, params=params, payload=payload, method="POST", key_casing=key_casing
        )
        return await self.send(request)

    async def delete(self, url: str, *, params: QueryParams | None = None) -> RawResponse:
        return await self.send(self._url_request(url, params=params, method="DELETE"))

    async def get_decodable(
        self,
        url: str,
        response_model: type[T],
        *,
        params: QueryParams | None = None,
        key_casing: KeyCasing | None = None,
    ) -> T:
        request = self._url_request(url, params=params)
        return await self.send_decodable(request, response_model, key_casing=key_casing)

    async def put_decodable(
        self,
        url: str,
        payload: Any,
        response_model: type[T],
        *,
        params: QueryParams | None = None,
        key_casing: KeyCasing | None = None,
    ) -> T:
        request = self._url_request(
            url, params=params, payload=payload, method="PUT", key_casing=key_casing
        )
        return await self.send_decodable(request, response_model, key_casing=key_casing)

    async def post_decodable(
        self,
        url: str,
        payload: Any,
        response_model: type[T],
        *,
        params: QueryParams | None = None,
        key_casing: KeyCasing | None = None,
    ) -> T:
        request = self._url_request(
            url, params=params, payload=payload, method="POST", key_casing=key_casing
        )
        return await self.send_decodable(request, response_model, key_casing=key_casing)


def build_transport(config: ClientConfig) -> Transport:
    """Default `httpx`-backed transport for a config."""
    return HTTPXTransport(timeout=config.timeout, transport=config.transport)
