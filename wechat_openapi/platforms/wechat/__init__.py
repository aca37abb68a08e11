"""WeChat Official Account API clients."""

from __future__ import annotations

from .api import AccessTokenResponse, TokenAuthority, WeChatApiClient, WeChatAuthorizerTokenClient
from .classifier import Classification, ErrorClassifier, Verdict
from .credentials import WeChatCredentialStore, WeChatToken
from .draft import WeChatDraftClient
from .materials import WeChatMaterialClient
from .menus import WeChatMenuClient
from .pipeline import RequestDescriptor, ResponseEnvelope, WeChatRequestPipeline
from .tags import WeChatTagClient
from .translation import CatalogTranslator, MessageTranslator
from .users import WeChatUserClient

__all__ = [
    "AccessTokenResponse",
    "CatalogTranslator",
    "Classification",
    "ErrorClassifier",
    "MessageTranslator",
    "RequestDescriptor",
    "ResponseEnvelope",
    "TokenAuthority",
    "Verdict",
    "WeChatApiClient",
    "WeChatAuthorizerTokenClient",
    "WeChatCredentialStore",
    "WeChatDraftClient",
    "WeChatMaterialClient",
    "WeChatMenuClient",
    "WeChatRequestPipeline",
    "WeChatTagClient",
    "WeChatToken",
    "WeChatUserClient",
]
