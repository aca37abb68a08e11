"""Human-readable messages for WeChat ``errcode`` values."""

from __future__ import annotations

from typing import Mapping, Protocol

ZH_CN_MESSAGES: dict[int, str] = {
    -1: "系统繁忙，请稍候再试",
    40001: "AppSecret 错误或者 access_token 无效",
    40002: "不合法的凭证类型",
    40003: "不合法的 OpenID",
    40004: "不合法的媒体文件类型",
    40007: "不合法的媒体文件 id",
    40013: "不合法的 AppID",
    40014: "不合法的 access_token",
    40032: "每次传入的 openid 列表个数不能超过 50 个",
    40164: "调用接口的 IP 地址不在白名单中",
    41001: "缺少 access_token 参数",
    42001: "access_token 超时",
    43004: "需要接收者关注",
    45009: "接口调用超过限制",
    45056: "创建的标签数过多，不能超过 100 个",
    45058: "不能修改 0/1/2 这三个系统默认保留的标签",
    45059: "粉丝身上的标签数已经超过限制，即超过 20 个",
    45157: "标签名非法，不能和其他标签重名",
    45158: "标签名长度超过 30 个字节",
    45159: "非法的 tag_id",
    46003: "不存在的菜单数据",
    48001: "api 功能未授权",
    49003: "传入的 openid 不属于此 AppID",
    50001: "用户未授权该 api",
}


class MessageTranslator(Protocol):
    def translate(self, code: int, fallback: str, locale: str) -> str:
        """Return the message to show for ``code``."""


def normalize_locale(locale: str) -> str:
    return locale.strip().lower().replace("-", "_")


class CatalogTranslator:
    """Looks codes up in per-locale catalogues.

    Unknown locales and unknown codes return ``fallback`` unchanged, which is
    the upstream ``errmsg`` (already English) or ``"Unknown"``.
    """

    def __init__(self, catalogues: Mapping[str, Mapping[int, str]] | None = None) -> None:
        source = catalogues if catalogues is not None else {"zh_cn": ZH_CN_MESSAGES}
        self._catalogues = {normalize_locale(key): dict(value) for key, value in source.items()}

    def translate(self, code: int, fallback: str, locale: str) -> str:
        catalogue = self._catalogues.get(normalize_locale(locale))
        if not catalogue:
            return fallback
        return catalogue.get(code, fallback)
