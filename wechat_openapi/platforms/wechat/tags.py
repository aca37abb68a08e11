"""User tag management (``cgi-bin/tags``)."""

from __future__ import annotations

from typing import Sequence

from wechat_openapi.platforms.base import EndpointGroup

from .pipeline import ResponseEnvelope


class WeChatTagClient(EndpointGroup):
    API_GET = "https://api.weixin.qq.com/cgi-bin/tags/get"
    API_CREATE = "https://api.weixin.qq.com/cgi-bin/tags/create"
    API_UPDATE = "https://api.weixin.qq.com/cgi-bin/tags/update"
    API_DELETE = "https://api.weixin.qq.com/cgi-bin/tags/delete"
    API_USER_TAGS = "https://api.weixin.qq.com/cgi-bin/tags/getidlist"
    API_MEMBER_BATCH_TAG = "https://api.weixin.qq.com/cgi-bin/tags/members/batchtagging"
    API_MEMBER_BATCH_UNTAG = "https://api.weixin.qq.com/cgi-bin/tags/members/batchuntagging"
    API_USERS_OF_TAG = "https://api.weixin.qq.com/cgi-bin/user/tag/get"

    def create(self, name: str) -> ResponseEnvelope:
        return self._pipeline.post_json(self.API_CREATE, {"tag": {"name": name}})

    def lists(self) -> ResponseEnvelope:
        return self._pipeline.get(self.API_GET)

    def update(self, tag_id: int, name: str) -> ResponseEnvelope:
        return self._pipeline.post_json(self.API_UPDATE, {"tag": {"id": tag_id, "name": name}})

    def delete(self, tag_id: int) -> ResponseEnvelope:
        return self._pipeline.post_json(self.API_DELETE, {"tag": {"id": tag_id}})

    def user_tags(self, openid: str) -> ResponseEnvelope:
        """Tag ids attached to one follower."""
        return self._pipeline.post_json(self.API_USER_TAGS, {"openid": openid})

    def users_of_tag(self, tag_id: int, next_openid: str = "") -> ResponseEnvelope:
        """One page of followers carrying ``tag_id``; pass ``next_openid`` to continue."""
        return self._pipeline.post_json(
            self.API_USERS_OF_TAG, {"tagid": tag_id, "next_openid": next_openid}
        )

    def batch_tag_users(self, openids: Sequence[str], tag_id: int) -> ResponseEnvelope:
        return self._pipeline.post_json(
            self.API_MEMBER_BATCH_TAG, {"openid_list": list(openids), "tagid": tag_id}
        )

    def batch_untag_users(self, openids: Sequence[str], tag_id: int) -> ResponseEnvelope:
        return self._pipeline.post_json(
            self.API_MEMBER_BATCH_UNTAG, {"openid_list": list(openids), "tagid": tag_id}
        )
