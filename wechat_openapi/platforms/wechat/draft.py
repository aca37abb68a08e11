"""WeChat draft box management."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from wechat_openapi.platforms.base import EndpointGroup

from .pipeline import ResponseEnvelope


class WeChatDraftClient(EndpointGroup):
    """Client for the ``cgi-bin/draft`` endpoints."""

    API_ADD = "https://api.weixin.qq.com/cgi-bin/draft/add"
    API_GET = "https://api.weixin.qq.com/cgi-bin/draft/get"
    API_DELETE = "https://api.weixin.qq.com/cgi-bin/draft/delete"
    API_COUNT = "https://api.weixin.qq.com/cgi-bin/draft/count"
    API_BATCH_GET = "https://api.weixin.qq.com/cgi-bin/draft/batchget"

    def add(self, articles: Sequence[Mapping[str, Any]]) -> ResponseEnvelope:
        """Submit articles as a new draft and return its ``media_id``."""
        if not articles:
            raise ValueError("At least one article is required")
        return self._pipeline.post_json(
            self.API_ADD, {"articles": [dict(article) for article in articles]}
        )

    def get(self, media_id: str) -> ResponseEnvelope:
        return self._pipeline.post_json(self.API_GET, {"media_id": media_id})

    def delete(self, media_id: str) -> ResponseEnvelope:
        return self._pipeline.post_json(self.API_DELETE, {"media_id": media_id})

    def count(self) -> ResponseEnvelope:
        return self._pipeline.get(self.API_COUNT)

    def batch_get(
        self, offset: int = 0, count: int = 20, *, no_content: bool = False
    ) -> ResponseEnvelope:
        return self._pipeline.post_json(
            self.API_BATCH_GET,
            {
                "offset": max(offset, 0),
                "count": min(max(count, 1), 20),
                "no_content": 1 if no_content else 0,
            },
        )
