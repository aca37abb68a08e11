"""Platform integration package."""

from __future__ import annotations

from .base import EndpointGroup

__all__ = ["EndpointGroup"]
