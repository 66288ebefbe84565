#!/usr/bin/env python3
"""Entry point to run the job intelligence agent against a page or saved file."""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from jobintel.config import PROFILE_PATH, get_env
from jobintel.errors import JobIntelError
from jobintel.log import get_logger

log = get_logger(__name__)


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _write_html(page, out: str | None) -> None:
    if out:
        Path(out).write_text(page.html(), encoding="utf-8")
        log.info("Wrote annotated page to %s", out)


def cmd_scan(args: argparse.Namespace) -> int:
    from jobintel.agent import build_session, scan_once
    from jobintel.browser import open_page

    page = open_page(args.target, static=args.static, url=args.url)
    session = build_session(page)
    _print_json(scan_once(session))
    _write_html(page, args.out)
    return 0


def cmd_highlight(args: argparse.Namespace) -> int:
    from jobintel.agent import build_session, highlight
    from jobintel.browser import open_page

    page = open_page(args.target, static=args.static, url=args.url)
    session = build_session(page)
    _print_json(highlight(session))
    _write_html(page, args.out)
    return 0


def cmd_watch(args: argparse.Namespace) -> int:
    from jobintel.agent import build_session, watch
    from jobintel.browser import RenderedPoller
    from jobintel.page import Page

    headless = get_env("RUN_HEADLESS", "true").lower() in ("1", "true", "yes")
    with RenderedPoller(args.url, headless=headless) as poll:
        session = build_session(Page(poll(), args.url))
        _print_json(watch(session, poll, duration_s=args.seconds, interval_s=args.interval))
        _write_html(session.page, args.out)
    return 0


def cmd_autofill(args: argparse.Namespace) -> int:
    from jobintel.agent import autofill_page, build_session
    from jobintel.browser import open_page

    page = open_page(args.target, url=args.url)
    session = build_session(page)
    filled = autofill_page(session)
    print(f"Filled {filled} field(s)")
    _write_html(page, args.out)
    return 0


def cmd_import_profile(args: argparse.Namespace) -> int:
    from jobintel.agent import import_profile, open_store

    profile = import_profile(open_store(), args.path)
    info = profile.get("personalInfo", {})
    print(f"Imported profile for {info.get('firstName', '')} {info.get('lastName', '')}".rstrip())
    return 0


def cmd_board(args: argparse.Namespace) -> int:
    from jobintel.agent import board_report, open_store

    _print_json(board_report(open_store(), args.status))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="run_agent", description="Job board intelligence agent")
    sub = parser.add_subparsers(dest="command", required=True)

    for name, func, help_text in (
        ("scan", cmd_scan, "annotate job cards on a page"),
        ("highlight", cmd_highlight, "highlight every job card on a page"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("target", help="URL or saved HTML file")
        p.add_argument("--static", action="store_true", help="fetch with requests instead of Chromium")
        p.add_argument("--url", help="address a saved file pretends to live at")
        p.add_argument("--out", help="write the resulting HTML here")
        p.set_defaults(func=func)

    p = sub.add_parser("watch", help="keep annotating a live page as it changes")
    p.add_argument("url")
    p.add_argument("--seconds", type=float, default=60.0)
    p.add_argument("--interval", type=float, default=1.0)
    p.add_argument("--out", help="write the final HTML here")
    p.set_defaults(func=cmd_watch)

    p = sub.add_parser("autofill", help="fill an application form from the stored profile")
    p.add_argument("target", help="saved form HTML file")
    p.add_argument("--url", help="address the form pretends to live at")
    p.add_argument("--out", help="write the filled HTML here")
    p.set_defaults(func=cmd_autofill)

    p = sub.add_parser("import-profile", help="store an autofill profile from YAML")
    p.add_argument("path", nargs="?", default=str(PROFILE_PATH))
    p.set_defaults(func=cmd_import_profile)

    p = sub.add_parser("board", help="list saved jobs and board statistics")
    p.add_argument("--status", help="only entries with this status")
    p.set_defaults(func=cmd_board)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except JobIntelError as exc:
        print(f"  {exc}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
