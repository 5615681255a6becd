# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Menu Map CLI: detect, extract, crawl, classify-file commands.

Usage:
    python -m menumap.cli detect URL [--plan]
    python -m menumap.cli extract URL --type catalogue|menu
    python -m menumap.cli crawl URL [--max-pages N] [--min-items N]
    python -m menumap.cli classify-file FILE --url URL [--plan]

Results are printed to stdout as JSON; logs and spinners go to stderr.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any


def _emit(data: Any, output: str | None) -> None:
    from .serializer import to_json

    text = to_json(data)
    if output:
        path = Path(output)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text + "\n", encoding="utf-8")
        print(f"Saved to {path}", file=sys.stderr)
    else:
        print(text)


def _with_plan(scores, include_plan: bool) -> Any:
    if not include_plan:
        return scores
    from .planner import derive_extraction_plan

    return {"detection": scores, "plan": derive_extraction_plan(scores)}


def cmd_detect(args: argparse.Namespace) -> None:
    """Classify a live URL."""
    from ._progress import status_spinner
    from .engine import detect_site_type

    with status_spinner(f"Detecting site type for {args.url}..."):
        scores = asyncio.run(detect_site_type(args.url))
    _emit(_with_plan(scores, args.plan), args.output)


def cmd_extract(args: argparse.Namespace) -> None:
    """Single-page structured extraction."""
    from ._progress import print_step, status_spinner
    from .engine import extract_catalogue_items, extract_menu_items

    extractor = extract_catalogue_items if args.type == "catalogue" else extract_menu_items
    with status_spinner(f"Extracting {args.type} items from {args.url}..."):
        items = asyncio.run(extractor(args.url))
    _emit(items, args.output)
    print_step(f"Items: {len(items)}")


def cmd_crawl(args: argparse.Namespace) -> None:
    """Multi-page menu crawl with a quality report."""
    from ._progress import print_step, status_spinner
    from .engine import extract_menu_items_multi_page
    from .quality import validate_extraction_quality

    with status_spinner(f"Crawling {args.url}..."):
        items = asyncio.run(extract_menu_items_multi_page(args.url, max_pages=args.max_pages))
    report = validate_extraction_quality(items, min_items=args.min_items)
    _emit({"items": items, "quality": report}, args.output)
    print_step(f"Items: {report.item_count}  quality: {report.score}/100 ({'pass' if report.passed else 'fail'})")


def cmd_classify_file(args: argparse.Namespace) -> None:
    """Classify a saved HTML file offline."""
    from .engine import classify_html

    path = Path(args.file)
    if not path.is_file():
        print(f"Error: file not found: {path}", file=sys.stderr)
        sys.exit(1)
    raw_html = path.read_text(encoding="utf-8", errors="replace")
    scores = classify_html(args.url, raw_html)
    _emit(_with_plan(scores, args.plan), args.output)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Menu Map CLI: classify pages as catalogue / menu and extract their items",
        prog="python -m menumap.cli",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON lines on stderr")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_detect = subparsers.add_parser("detect", help="Classify a live URL")
    p_detect.add_argument("url", metavar="URL")
    p_detect.add_argument("--plan", action="store_true", help="Include the derived extraction plan")

    p_extract = subparsers.add_parser("extract", help="Extract JSON-LD items from a single page")
    p_extract.add_argument("url", metavar="URL")
    p_extract.add_argument("--type", choices=["catalogue", "menu"], required=True)

    p_crawl = subparsers.add_parser("crawl", help="Crawl a menu page and its category pages")
    p_crawl.add_argument("url", metavar="URL")
    p_crawl.add_argument("--max-pages", type=int, default=None, metavar="N", help="Category pages to visit (default: 10)")
    p_crawl.add_argument("--min-items", type=int, default=5, metavar="N", help="Quality gate item floor (default: 5)")

    p_file = subparsers.add_parser("classify-file", help="Classify a saved HTML file offline")
    p_file.add_argument("file", metavar="FILE")
    p_file.add_argument("--url", required=True, help="URL the HTML was captured from")
    p_file.add_argument("--plan", action="store_true", help="Include the derived extraction plan")

    for sub in (p_detect, p_extract, p_crawl, p_file):
        sub.add_argument("-o", "--output", type=str, metavar="FILE", help="Write JSON to FILE instead of stdout")

    return parser


_COMMANDS = {
    "detect": cmd_detect,
    "extract": cmd_extract,
    "crawl": cmd_crawl,
    "classify-file": cmd_classify_file,
}


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    from .errors import MenuMapError
    from .logging_config import configure

    parser = _build_parser()
    args = parser.parse_args(argv)

    configure(json_output=args.json_logs, level="DEBUG" if args.verbose else "WARNING")

    try:
        _COMMANDS[args.command](args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)
    except SystemExit:
        raise
    except MenuMapError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error: {type(e).__name__}: {e}", file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc(file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
