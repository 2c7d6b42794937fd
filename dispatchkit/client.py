"""
Main API client.

Resolves paths and routes against a configured host and dispatches them
through the shared request pipeline.
"""

from __future__ import annotations

from typing import Any, TypeVar
from urllib.parse import urlsplit

from .clients.http import ClientConfig, HTTPClient, RawResponse, build_transport
from .clients.pipeline import Interceptor, default_headers_interceptor
from .clients.transport import Transport
from .codec import Codec, JSONCodec
from .exceptions import FailedToCreateURLError, InvalidHostError
from .policies import KeyCasing
from .request import Method, QueryParams, RequestDescriptor, compose_url, generate_request
from .routes import RequestableRoute

T = TypeVar("T")


def _validate_host(host: str) -> None:
    try:
        compose_url(host)
    except FailedToCreateURLError as e:
        raise InvalidHostError(host) from e
    parts = urlsplit(host)
    if parts.scheme.lower() not in {"http", "https"} or not parts.netloc:
        raise InvalidHostError(host)


class APIClient:
    """
    Asynchronous API client bound to one host.

    Example:
        ```python
        from dispatchkit import APIClient, ClientConfig

        config = ClientConfig(
            host="https://api.example.com",
            default_headers=[("Accept", "application/json")],
        )
        async with APIClient(config) as client:
            user = await client.get("/users/1", User)
            created = await client.post("/users", NewUser(name="X"), User)
        ```

    Every outgoing request passes through `will_send`, which appends the
    configured default headers and then runs the optional `interceptor`.
    An interceptor returns the (possibly modified) descriptor, or raises to
    reject the request before anything reaches the transport. Subclasses may
    override `will_send` instead.

    Raises:
        InvalidHostError: From the constructor, if `config.host` is not an
            absolute http(s) URL.
    """

    def __init__(
        self,
        config: ClientConfig | str,
        *,
        transport: Transport | None = None,
        interceptor: Interceptor | None = None,
        codec: Codec | None = None,
    ):
        """
        Initialize the client.

        Args:
            config: Client configuration, or just a host URL
            transport: Transport capability; defaults to `HTTPXTransport` built from `config`
            interceptor: Called with every descriptor after default headers are injected
            codec: Payload codec; defaults to `JSONCodec`
        """
        if isinstance(config, str):
            config = ClientConfig(host=config)
        _validate_host(config.host)

        self._config = config
        self._interceptor = interceptor
        self._inject_defaults = default_headers_interceptor(config.default_headers)
        self._codec = codec or JSONCodec()
        self._http = HTTPClient(
            transport or build_transport(config),
            interceptor=self.will_send,
            codec=self._codec,
            log_requests=config.log_requests,
        )

    async def __aenter__(self) -> APIClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the transport and release resources."""
        await self._http.close()

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def host(self) -> str:
        return self._config.host

    @property
    def http(self) -> HTTPClient:
        """Underlying dispatch pipeline."""
        return self._http

    # =========================================================================
    # Interception
    # =========================================================================

    def inject_default_headers(self, request: RequestDescriptor) -> RequestDescriptor:
        return self._inject_defaults(request)

    def will_send(self, request: RequestDescriptor) -> RequestDescriptor:
        """Hook run synchronously before every dispatch."""
        request = self.inject_default_headers(request)
        if self._interceptor is not None:
            request = self._interceptor(request)
        return request

    # =========================================================================
    # Requests
    # =========================================================================

    def _request(self, path: str, **kwargs: Any) -> RequestDescriptor:
        return generate_request(self._config.host, path, codec=self._codec, **kwargs)

    def _route_request(
        self, route: RequestableRoute, key_casing: KeyCasing | None
    ) -> RequestDescriptor:
        return self._request(
            route.path,
            params=route.params,
            payload=getattr(route, "payload", None),
            method=route.method,
            identifier=route.identifier,
            key_casing=key_casing,
        )

    async def get(
        self,
        path: str,
        response_model: type[T],
        *,
        params: QueryParams | None = None,
        identifier: str | None = None,
        key_casing: KeyCasing | None = None,
    ) -> T:
        """
        GET `path` and decode the body into `response_model`.

        Args:
            path: Path resolved against the configured host
            response_model: Type to decode into (a pydantic model, `dict`, `str`, ...)
            params: Query parameters; `None` values are dropped, duplicates kept
            identifier: Correlation string; defaults to the resolved URL
            key_casing: Overrides the declared key casing of `response_model`
        """
        request = self._request(path, params=params, identifier=identifier)
        return await self._http.send_decodable(request, response_model, key_casing=key_casing)

    async def put(
        self,
        path: str,
        payload: Any,
        response_model: type[T],
        *,
        params: QueryParams | None = None,
        identifier: str | None = None,
        key_casing: KeyCasing | None = None,
    ) -> T:
        """PUT `payload` to `path` and decode the body into `response_model`."""
        request = self._request(
            path,
            params=params,
            payload=payload,
            method=Method.PUT,
            identifier=identifier,
            key_casing=key_casing,
        )
        return await self._http.send_decodable(request, response_model, key_casing=key_casing)

    async def post(
        self,
        path: str,
        payload: Any,
        response_model: type[T],
        *,
        params: QueryParams | None = None,
        identifier: str | None = None,
        key_casing: KeyCasing | None = None,
    ) -> T:
        """POST `payload` to `path` and decode the body into `response_model`."""
        request = self._request(
            path,
            params=params,
            payload=payload,
            method=Method.POST,
            identifier=identifier,
            key_casing=key_casing,
        )
        return await self._http.send_decodable(request, response_model, key_casing=key_casing)

    async def delete(
        self,
        path: str,
        *,
        params: QueryParams | None = None,
        identifier: str | None = None,
    ) -> RawResponse:
        """DELETE `path`; returns the response metadata and raw body."""
        request = self._request(path, params=params, method=Method.DELETE, identifier=identifier)
        return await self._http.send(request)

    async def send(
        self,
        route: RequestableRoute,
        response_model: type[T],
        *,
        key_casing: KeyCasing | None = None,
    ) -> T:
        """Dispatch a route (uploads include their payload) and decode the body."""
        request = self._route_request(route, key_casing)
        return await self._http.send_decodable(request, response_model, key_casing=key_casing)

    async def send_raw(self, route: RequestableRoute) -> RawResponse:
        """Dispatch a route without decoding."""
        return await self._http.send(self._route_request(route, None))
