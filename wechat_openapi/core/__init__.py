"""Core primitives: transport and error hierarchy."""

from .errors import (
    CredentialUnavailable,
    HttpApiError,
    ResponseDecodeError,
    TransportFailure,
    WeChatApiError,
)
from .http_client import HttpClient, HttpRequest, HttpResponse

__all__ = [
    "CredentialUnavailable",
    "HttpApiError",
    "HttpClient",
    "HttpRequest",
    "HttpResponse",
    "ResponseDecodeError",
    "TransportFailure",
    "WeChatApiError",
]
