from .http import ClientConfig, HTTPClient
from .transport import HTTPResponse, HTTPXTransport, Transport

__all__ = [
    "ClientConfig",
    "HTTPClient",
    "HTTPResponse",
    "HTTPXTransport",
    "Transport",
]
