"""
Error taxonomy.

Every failure produced by the library derives from `DispatchKitError`. Request
building, transport, HTTP status and decoding failures all reach the caller
through the same awaitable channel; only `InvalidHostError` is raised
synchronously, from client construction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .clients.transport import HTTPResponse
    from .request import RequestDescriptor


class DispatchKitError(Exception):
    """Base class for all dispatchkit errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


# =============================================================================
# Configuration
# =============================================================================


class InvalidHostError(DispatchKitError):
    """The configured base host is not an absolute http(s) URL."""

    def __init__(self, host: str) -> None:
        super().__init__(f"Invalid host: {host!r} (expected an absolute http or https URL)")
        self.host = host


# =============================================================================
# Request building
# =============================================================================


class RequestBuildError(DispatchKitError):
    """A request descriptor could not be built."""


class GetRequestCannotHaveBodyError(RequestBuildError):
    def __init__(self) -> None:
        super().__init__("GET requests cannot carry a body")


class FailedToCreateURLError(RequestBuildError):
    """The base host, or the URL composed from it, is not a valid URL."""

    def __init__(self, value: str) -> None:
        super().__init__(f"Failed to create URL from {value!r}")
        self.value = value


class EncodingFailedError(RequestBuildError):
    """The payload could not be serialized."""

    def __init__(self, payload: Any) -> None:
        super().__init__(f"Failed to encode payload of type {type(payload).__name__}")
        self.payload = payload


# =============================================================================
# Interception
# =============================================================================


class InterceptionRejectedError(DispatchKitError):
    """Raised by an interceptor to reject a request before it is dispatched."""

    def __init__(self, message: str, *, request: RequestDescriptor | None = None) -> None:
        super().__init__(message)
        self.request = request


# =============================================================================
# Dispatch
# =============================================================================


class TransportError(DispatchKitError):
    """The transport reported a failure; `cause` holds the underlying error."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"Transport failed: {cause!r}")
        self.cause = cause


class UnexpectedResponseError(DispatchKitError):
    """
    The transport returned no usable HTTP response, or a decode was requested
    against an empty body.
    """

    def __init__(self, content: bytes | None, response: Any) -> None:
        if response is None:
            detail = "no response"
        elif content is None:
            detail = "response without a body"
        else:
            detail = f"malformed response {type(response).__name__}"
        super().__init__(f"Unexpected response: {detail}")
        self.content = content
        self.response = response


class HTTPStatusError(DispatchKitError):
    """Base class for error-range HTTP status codes. The body is not kept."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        response: HTTPResponse | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class BadRequestError(HTTPStatusError):
    """Status 400-499."""

    def __init__(self, status_code: int, *, response: HTTPResponse | None = None) -> None:
        super().__init__(
            f"Bad request: HTTP {status_code}", status_code=status_code, response=response
        )


class ServerError(HTTPStatusError):
    """Status 500-599."""

    def __init__(self, status_code: int, *, response: HTTPResponse | None = None) -> None:
        super().__init__(
            f"Server error: HTTP {status_code}", status_code=status_code, response=response
        )


# =============================================================================
# Decoding
# =============================================================================


class DecodingFailedError(DispatchKitError):
    """The response body could not be decoded; `content` keeps the raw bytes."""

    def __init__(self, target_type: Any, content: bytes) -> None:
        name = getattr(target_type, "__name__", repr(target_type))
        super().__init__(f"Failed to decode {len(content)} bytes into {name}")
        self.target_type = target_type
        self.content = content
