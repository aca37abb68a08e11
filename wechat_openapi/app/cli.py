"""Command-line interface for quick token and endpoint checks."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Callable, Sequence

from ..core import WeChatApiError
from ..settings import load_config
from ..utils.logging import configure_logging, get_logger
from .application import WeChatApplication

LOGGER = get_logger(__name__)


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    handler: Callable[[WeChatApplication, argparse.Namespace], Any] | None = getattr(
        args, "handler", None
    )
    if handler is None:
        parser.print_help(sys.stderr)
        return 1

    app = _build_application(args)
    try:
        result = handler(app, args)
    except WeChatApiError as exc:
        details = " ".join(f"{k}={v}" for k, v in exc.details.items()) if exc.details else ""
        LOGGER.error(
            "Command failed",
            extra={"event": "cli.error", "command": args.command, "error": type(exc).__name__},
        )
        raise SystemExit(f"调用失败：{exc.args[0] if exc.args else exc}. {details}".rstrip()) from exc
    finally:
        app.close()

    print(json.dumps(result, ensure_ascii=False, indent=2))
    return 0


def _build_application(args: argparse.Namespace) -> WeChatApplication:
    config = load_config(args.config)
    if args.log_plain:
        config.log.structured = False
    logger = configure_logging(
        level=config.log.level,
        structured=config.log.structured,
        debug=config.log.debug,
        log_file=config.log.file,
    )
    return WeChatApplication(config, logger=logger)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wechat-openapi", description="WeChat Official Account API CLI")
    parser.add_argument("--config", help="Path to configuration file", default=None)
    parser.add_argument(
        "--log-plain",
        action="store_true",
        help="Use plain-text logs instead of JSON",
    )

    subparsers = parser.add_subparsers(dest="command")

    token_parser = subparsers.add_parser("token", help="Print the current access token")
    token_parser.add_argument(
        "--force-refresh",
        action="store_true",
        help="忽略缓存，强制向微信获取新的 access_token",
    )
    token_parser.set_defaults(handler=_handle_token)

    tags_parser = subparsers.add_parser("tags", help="Follower tag management")
    tags_subparsers = tags_parser.add_subparsers(dest="tags_command", required=True)
    tags_subparsers.add_parser("list", help="List all tags").set_defaults(handler=_handle_tags_list)
    create_parser = tags_subparsers.add_parser("create", help="Create a tag")
    create_parser.add_argument("name", help="Tag name, at most 30 bytes")
    create_parser.set_defaults(handler=_handle_tags_create)

    menu_parser = subparsers.add_parser("menu", help="Custom menu queries")
    menu_subparsers = menu_parser.add_subparsers(dest="menu_command", required=True)
    menu_subparsers.add_parser("get", help="Show all menus").set_defaults(handler=_handle_menu_get)

    user_parser = subparsers.add_parser("user", help="Follower queries")
    user_subparsers = user_parser.add_subparsers(dest="user_command", required=True)
    user_get = user_subparsers.add_parser("get", help="Show one follower")
    user_get.add_argument("openid")
    user_get.add_argument("--lang", default="zh_CN")
    user_get.set_defaults(handler=_handle_user_get)

    return parser


def _handle_token(app: WeChatApplication, args: argparse.Namespace) -> dict[str, Any]:
    token = app.access_token.get_token(force_refresh=args.force_refresh)
    current = app.access_token.current_token
    return {
        "access_token": token,
        "expires_at": current.expires_at.isoformat() if current else None,
    }


def _handle_tags_list(app: WeChatApplication, args: argparse.Namespace) -> dict[str, Any]:
    return dict(app.tags.lists())


def _handle_tags_create(app: WeChatApplication, args: argparse.Namespace) -> dict[str, Any]:
    return dict(app.tags.create(args.name))


def _handle_menu_get(app: WeChatApplication, args: argparse.Namespace) -> dict[str, Any]:
    return dict(app.menus.all())


def _handle_user_get(app: WeChatApplication, args: argparse.Namespace) -> dict[str, Any]:
    return dict(app.users.get(args.openid, lang=args.lang))


if __name__ == "__main__":
    raise SystemExit(main())
