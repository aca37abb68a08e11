"""Custom menu management."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from wechat_openapi.platforms.base import EndpointGroup

from .pipeline import ResponseEnvelope


class WeChatMenuClient(EndpointGroup):
    API_CREATE = "https://api.weixin.qq.com/cgi-bin/menu/create"
    API_GET = "https://api.weixin.qq.com/cgi-bin/menu/get"
    API_DELETE = "https://api.weixin.qq.com/cgi-bin/menu/delete"
    API_QUERY = "https://api.weixin.qq.com/cgi-bin/get_current_selfmenu_info"
    API_CONDITIONAL_CREATE = "https://api.weixin.qq.com/cgi-bin/menu/addconditional"
    API_CONDITIONAL_DELETE = "https://api.weixin.qq.com/cgi-bin/menu/delconditional"
    API_CONDITIONAL_TEST = "https://api.weixin.qq.com/cgi-bin/menu/trymatch"

    def all(self) -> ResponseEnvelope:
        """Default menu plus every conditional menu."""
        return self._pipeline.get(self.API_GET)

    def current(self) -> ResponseEnvelope:
        """The menu currently in effect, including ones set from the admin console."""
        return self._pipeline.get(self.API_QUERY)

    def create(
        self,
        buttons: Sequence[Mapping[str, Any]],
        match_rule: Mapping[str, Any] | None = None,
    ) -> ResponseEnvelope:
        """Create the default menu, or a conditional one when ``match_rule`` is given."""
        payload: dict[str, Any] = {"button": [dict(button) for button in buttons]}
        if match_rule:
            payload["matchrule"] = dict(match_rule)
            return self._pipeline.post_json(self.API_CONDITIONAL_CREATE, payload)
        return self._pipeline.post_json(self.API_CREATE, payload)

    def destroy(self, menu_id: str | int | None = None) -> ResponseEnvelope:
        """Delete all menus, or only the conditional menu ``menu_id``."""
        if menu_id is None:
            return self._pipeline.get(self.API_DELETE)
        return self._pipeline.post_json(self.API_CONDITIONAL_DELETE, {"menuid": menu_id})

    def test_match(self, user_id: str) -> ResponseEnvelope:
        return self._pipeline.post_json(self.API_CONDITIONAL_TEST, {"user_id": user_id})
