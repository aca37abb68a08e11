"""Application wiring and command-line entry point."""

from .application import WeChatApplication, build_secret_provider, build_token_authority

__all__ = ["WeChatApplication", "build_secret_provider", "build_token_authority"]
