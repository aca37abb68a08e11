"""Follower queries and blacklist management."""

from __future__ import annotations

from typing import Sequence

from wechat_openapi.platforms.base import EndpointGroup

from .pipeline import ResponseEnvelope


class WeChatUserClient(EndpointGroup):
    API_GET = "https://api.weixin.qq.com/cgi-bin/user/info"
    API_BATCH_GET = "https://api.weixin.qq.com/cgi-bin/user/info/batchget"
    API_LIST = "https://api.weixin.qq.com/cgi-bin/user/get"
    API_REMARK = "https://api.weixin.qq.com/cgi-bin/user/info/updateremark"
    API_GET_BLACK_LIST = "https://api.weixin.qq.com/cgi-bin/tags/members/getblacklist"
    API_BATCH_BLACK_LIST = "https://api.weixin.qq.com/cgi-bin/tags/members/batchblacklist"
    API_BATCH_UNBLACK_LIST = "https://api.weixin.qq.com/cgi-bin/tags/members/batchunblacklist"

    _BATCH_GET_LIMIT = 100
    _BLACKLIST_LIMIT = 20

    def get(self, openid: str, lang: str = "zh_CN") -> ResponseEnvelope:
        return self._pipeline.get(self.API_GET, {"openid": openid, "lang": lang})

    def batch_get(self, openids: Sequence[str], lang: str = "zh_CN") -> ResponseEnvelope:
        _check_batch(openids, self._BATCH_GET_LIMIT)
        user_list = [{"openid": openid, "lang": lang} for openid in openids]
        return self._pipeline.post_json(self.API_BATCH_GET, {"user_list": user_list})

    def lists(self, next_openid: str | None = None) -> ResponseEnvelope:
        """Page through followers, 10000 openids per page."""
        query = {"next_openid": next_openid} if next_openid else {}
        return self._pipeline.get(self.API_LIST, query)

    def remark(self, openid: str, remark: str) -> ResponseEnvelope:
        return self._pipeline.post_json(self.API_REMARK, {"openid": openid, "remark": remark})

    def blacklist(self, begin_openid: str | None = None) -> ResponseEnvelope:
        return self._pipeline.post_json(
            self.API_GET_BLACK_LIST, {"begin_openid": begin_openid or ""}
        )

    def batch_block(self, openids: Sequence[str]) -> ResponseEnvelope:
        _check_batch(openids, self._BLACKLIST_LIMIT)
        return self._pipeline.post_json(self.API_BATCH_BLACK_LIST, {"openid_list": list(openids)})

    def batch_unblock(self, openids: Sequence[str]) -> ResponseEnvelope:
        _check_batch(openids, self._BLACKLIST_LIMIT)
        return self._pipeline.post_json(
            self.API_BATCH_UNBLACK_LIST, {"openid_list": list(openids)}
        )


def _check_batch(openids: Sequence[str], limit: int) -> None:
    if not openids:
        raise ValueError("openid 列表不能为空")
    if len(openids) > limit:
        raise ValueError(f"每次最多传入 {limit} 个 openid，当前 {len(openids)} 个")
