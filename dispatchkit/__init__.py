"""
dispatchkit: awaitable HTTP requests with typed decoding.

Describe a request (host, path, query, method, payload, identifier), let a
single interceptor inspect or reject it, and await a decoded result. Every
failure arrives as a `DispatchKitError` subclass.
"""

from __future__ import annotations

from .client import APIClient
from .clients.http import (
    ClientConfig,
    HTTPClient,
    HTTPFailure,
    ResponseOutcome,
    Success,
    TransportFailure,
    classify_reply,
)
from .clients.pipeline import (
    Completion,
    Interceptor,
    chain_interceptors,
    default_headers_interceptor,
)
from .clients.transport import HTTPResponse, HTTPXTransport, ReplyCallback, Transport
from .codec import Codec, JSONCodec, Payload
from .exceptions import (
    BadRequestError,
    DecodingFailedError,
    DispatchKitError,
    EncodingFailedError,
    FailedToCreateURLError,
    GetRequestCannotHaveBodyError,
    HTTPStatusError,
    InterceptionRejectedError,
    InvalidHostError,
    RequestBuildError,
    ServerError,
    TransportError,
    UnexpectedResponseError,
)
from .policies import KeyCasing, key_casing_for
from .request import (
    Method,
    RequestDescriptor,
    compose_url,
    generate_request,
    generate_url_request,
)
from .routes import RequestableRoute, RequestableUploadRoute, Route, UploadRoute

__version__ = "0.1.0"

__all__ = [
    # Clients
    "APIClient",
    "ClientConfig",
    "HTTPClient",
    # Requests
    "Method",
    "RequestDescriptor",
    "compose_url",
    "generate_request",
    "generate_url_request",
    # Routes
    "RequestableRoute",
    "RequestableUploadRoute",
    "Route",
    "UploadRoute",
    # Pipeline
    "Completion",
    "Interceptor",
    "chain_interceptors",
    "default_headers_interceptor",
    # Transport
    "HTTPResponse",
    "HTTPXTransport",
    "ReplyCallback",
    "Transport",
    # Outcomes
    "HTTPFailure",
    "ResponseOutcome",
    "Success",
    "TransportFailure",
    "classify_reply",
    # Codecs
    "Codec",
    "JSONCodec",
    "KeyCasing",
    "Payload",
    "key_casing_for",
    # Exceptions
    "BadRequestError",
    "DecodingFailedError",
    "DispatchKitError",
    "EncodingFailedError",
    "FailedToCreateURLError",
    "GetRequestCannotHaveBodyError",
    "HTTPStatusError",
    "InterceptionRejectedError",
    "InvalidHostError",
    "RequestBuildError",
    "ServerError",
    "TransportError",
    "UnexpectedResponseError",
]
