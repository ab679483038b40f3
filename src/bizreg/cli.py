# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""bizreg CLI: classify, forms, entity-types, serve commands.

Usage:
    bizreg classify --url URL (--html-file PATH | --live)
    bizreg forms STATE
    bizreg entity-types
    bizreg serve
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from .config import Settings
from .errors import BizRegError

logger = logging.getLogger("bizreg.cli")


def _print_json(data: object) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


async def _snapshot_live(url: str, settings: Settings):
    from .browser_session import BrowserConfig, BrowserSession

    config = BrowserConfig(headless=settings.headless, timeout_ms=settings.timeout_ms, settle_ms=settings.settle_ms)
    async with BrowserSession(config) as session:
        return await session.snapshot_url(url)


def cmd_classify(args: argparse.Namespace, settings: Settings) -> None:
    """Classify one page and print the result JSON."""
    from .classifier import classify_page
    from .snapshot import snapshot_from_html

    if args.live:
        snapshot = asyncio.run(_snapshot_live(args.url, settings))
    else:
        path = Path(args.html_file)
        try:
            html = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise BizRegError(f"Cannot read {path}: {e}") from e
        snapshot = snapshot_from_html(args.url, html)

    _print_json(classify_page(snapshot).to_dict())


def cmd_forms(args: argparse.Namespace, settings: Settings) -> None:
    """Print form metadata for a state."""
    from .knowledge import KnowledgeBase

    forms = KnowledgeBase(settings.knowledge_dir).forms_by_state(args.state)
    if forms is None:
        raise BizRegError(f"No form metadata for {args.state.strip().upper()}")
    _print_json(forms.model_dump())


def cmd_entity_types(args: argparse.Namespace, settings: Settings) -> None:
    """Print the entity type taxonomy."""
    from .knowledge import KnowledgeBase

    _print_json([t.model_dump() for t in KnowledgeBase(settings.knowledge_dir).entity_types()])


def cmd_serve(args: argparse.Namespace, settings: Settings) -> None:
    """Run the MCP server (stdio)."""
    from .server import main as serve_main

    serve_main(settings)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bizreg", description="Business registration form detection")
    parser.add_argument("--log-level", default=None, help="Log level (default: BIZREG_LOG_LEVEL or INFO)")
    parser.add_argument("--json-logs", action="store_true", default=False, help="Emit JSON log lines on stderr")
    parser.add_argument("--knowledge-dir", default=None, help="Knowledge data directory (default: bundled)")

    sub = parser.add_subparsers(dest="command", required=True)

    p_classify = sub.add_parser("classify", help="Classify a page")
    p_classify.add_argument("--url", required=True, help="Page URL")
    source = p_classify.add_mutually_exclusive_group(required=True)
    source.add_argument("--html-file", help="Saved HTML of the page")
    source.add_argument("--live", action="store_true", help="Load the URL in headless Chromium")
    p_classify.add_argument("--settle-ms", type=int, default=None, help="Wait before capturing (live mode)")
    p_classify.set_defaults(func=cmd_classify)

    p_forms = sub.add_parser("forms", help="Show form metadata for a state")
    p_forms.add_argument("state", help="Two-letter state code, e.g. DC")
    p_forms.set_defaults(func=cmd_forms)

    p_types = sub.add_parser("entity-types", help="Show entity type taxonomy")
    p_types.set_defaults(func=cmd_entity_types)

    p_serve = sub.add_parser("serve", help="Run the MCP server over stdio")
    p_serve.set_defaults(func=cmd_serve)

    return parser


def _apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    if args.log_level:
        settings.log_level = args.log_level.upper()
    if args.json_logs:
        settings.log_json = True
    if args.knowledge_dir:
        settings.knowledge_dir = Path(args.knowledge_dir).expanduser()
    if getattr(args, "settle_ms", None) is not None:
        settings.settle_ms = max(0, args.settle_ms)
    return settings


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    from .logging_config import configure_from_settings

    try:
        settings = _apply_overrides(Settings.from_env(), args)
    except BizRegError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    configure_from_settings(settings)

    try:
        args.func(args, settings)
    except BizRegError as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
