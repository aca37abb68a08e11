"""Permanent material (素材) management."""

from __future__ import annotations

import json
import mimetypes
from pathlib import Path

from wechat_openapi.core import WeChatApiError
from wechat_openapi.platforms.base import EndpointGroup

from .pipeline import ResponseEnvelope


class WeChatMaterialClient(EndpointGroup):
    """Uploads and queries permanent materials.

    File bodies are read into memory before sending so that a token retry
    resends the same bytes.
    """

    API_UPLOAD = "https://api.weixin.qq.com/cgi-bin/material/add_material"
    API_UPLOAD_ARTICLE_IMAGE = "https://api.weixin.qq.com/cgi-bin/media/uploadimg"
    API_GET = "https://api.weixin.qq.com/cgi-bin/material/get_material"
    API_DELETE = "https://api.weixin.qq.com/cgi-bin/material/del_material"
    API_STATS = "https://api.weixin.qq.com/cgi-bin/material/get_materialcount"
    API_LISTS = "https://api.weixin.qq.com/cgi-bin/material/batchget_material"

    UPLOAD_TYPES = frozenset({"image", "voice", "video", "thumb"})
    LIST_TYPES = frozenset({"image", "voice", "video", "news"})

    def upload_image(self, path: Path) -> ResponseEnvelope:
        """Upload a permanent image and return ``media_id`` and ``url``."""
        data = self.upload(path, "image")
        if not data.get("url") or not data.get("media_id"):
            raise WeChatApiError(
                "上传成功但缺少 URL 或 media_id",
                details={"path": str(path), "response": dict(data)},
            )
        return data

    def upload_video(self, path: Path, title: str, description: str) -> ResponseEnvelope:
        form = {
            "description": json.dumps(
                {"title": title, "introduction": description}, ensure_ascii=False
            )
        }
        return self.upload(path, "video", form=form)

    def upload(
        self, path: Path, media_type: str, *, form: dict[str, str] | None = None
    ) -> ResponseEnvelope:
        if media_type not in self.UPLOAD_TYPES:
            raise ValueError(f"不支持的素材类型: {media_type}")
        return self._pipeline.upload(
            self.API_UPLOAD, self._files(path), query={"type": media_type}, form=form
        )

    def upload_article_image(self, path: Path) -> ResponseEnvelope:
        """Upload an image for use inside article HTML; the result only has ``url``."""
        return self._pipeline.upload(self.API_UPLOAD_ARTICLE_IMAGE, self._files(path))

    def get(self, media_id: str) -> ResponseEnvelope:
        """Fetch a news or video material. Binary materials are not JSON and fail to decode."""
        return self._pipeline.post_json(self.API_GET, {"media_id": media_id})

    def delete(self, media_id: str) -> ResponseEnvelope:
        return self._pipeline.post_json(self.API_DELETE, {"media_id": media_id})

    def stats(self) -> ResponseEnvelope:
        return self._pipeline.get(self.API_STATS)

    def lists(self, media_type: str, offset: int = 0, count: int = 20) -> ResponseEnvelope:
        if media_type not in self.LIST_TYPES:
            raise ValueError(f"不支持的素材类型: {media_type}")
        count = min(max(count, 1), 20)
        return self._pipeline.post_json(
            self.API_LISTS, {"type": media_type, "offset": max(offset, 0), "count": count}
        )

    def _files(self, path: Path) -> dict[str, tuple[str, bytes, str]]:
        if not path.is_file():
            raise FileNotFoundError(f"未找到素材文件: {path}")
        mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return {"media": (path.name, path.read_bytes(), mime_type)}
