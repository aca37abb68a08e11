"""Base contracts for endpoint groups."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .wechat.pipeline import WeChatRequestPipeline


class EndpointGroup:
    """A set of related API endpoints sharing one request pipeline."""

    def __init__(self, pipeline: "WeChatRequestPipeline") -> None:
        self._pipeline = pipeline

    @property
    def pipeline(self) -> "WeChatRequestPipeline":
        return self._pipeline
