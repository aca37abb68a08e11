"""Client SDK for the WeChat Official Account HTTP APIs."""

from .app import WeChatApplication
from .core import (
    CredentialUnavailable,
    HttpApiError,
    ResponseDecodeError,
    TransportFailure,
    WeChatApiError,
)
from .settings import build_config, load_config

__all__ = [
    "CredentialUnavailable",
    "HttpApiError",
    "ResponseDecodeError",
    "TransportFailure",
    "WeChatApiError",
    "WeChatApplication",
    "build_config",
    "load_config",
]

__version__ = "0.1.0"
