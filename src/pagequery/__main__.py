#!/usr/bin/env python3
"""Command-line interface for pagequery."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from importlib.metadata import PackageNotFoundError, version
from typing import NoReturn

from . import Document
from .errors import InvalidSelectorError, MalformedMarkupError
from .fetch import FetchOpts, detect_origin, obtain_markup

logger = logging.getLogger("pagequery")

EXIT_NO_MATCH = 1
EXIT_BAD_INPUT = 2
EXIT_RETRIEVAL = 3


def _get_version() -> str:
    try:
        return version("pagequery")
    except PackageNotFoundError:  # pragma: no cover
        return "dev"


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pagequery",
        description="Fetch or load an HTML page and extract elements with CSS selectors.",
        epilog=(
            "Examples:\n"
            "  pagequery page.html --selector '.card .jobtitle' --format text\n"
            "  pagequery https://example.com --selector 'a[href]' --attr href\n"
            "  curl -s https://example.com | pagequery - --selector 'main p' --format json\n"
            "\n"
            "Exit status: 0 on success, 1 if nothing matched, 2 for an invalid\n"
            "selector or malformed markup, 3 if the page could not be retrieved.\n"
            "\n"
            "If you don't have the 'pagequery' command available, use:\n"
            "  python -m pagequery ...\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "location",
        nargs="?",
        help="URL or HTML file to load, or '-' to read from stdin",
    )
    parser.add_argument(
        "--selector",
        help="CSS selector for choosing elements (defaults to the whole document)",
    )
    parser.add_argument(
        "--format",
        choices=["html", "text", "json"],
        default="html",
        help="Output format (default: html)",
    )
    parser.add_argument(
        "--first",
        action="store_true",
        help="Only output the first matching element",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Stop after this many matches",
    )
    parser.add_argument(
        "--attr",
        metavar="NAME",
        help="Print this attribute of each match instead of the element",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        metavar="SECONDS",
        help="Timeout for remote fetches (default: 30)",
    )
    parser.add_argument(
        "--user-agent",
        metavar="UA",
        help="User-Agent header for remote fetches",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log retrieval and parsing details to stderr",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"pagequery {_get_version()}",
    )

    args = parser.parse_args(argv)

    if not args.location:
        parser.print_help(sys.stderr)
        raise SystemExit(1)

    if not args.selector and (args.attr or args.format == "json"):
        parser.error("--attr and --format json require --selector")

    return args


def _read_markup(args: argparse.Namespace) -> str:
    if args.location == "-":
        return sys.stdin.read()

    opts = FetchOpts(timeout=args.timeout, user_agent=args.user_agent)
    origin = detect_origin(args.location)
    return asyncio.run(obtain_markup(args.location, origin, opts=opts))


def _write(outputs: list[str], joiner: str = "\n") -> None:
    sys.stdout.write(joiner.join(outputs))
    sys.stdout.write("\n")


def main() -> NoReturn | None:
    args = _parse_args(sys.argv[1:])
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        markup = _read_markup(args)
    except OSError as e:
        print(f"pagequery: {e}", file=sys.stderr)
        raise SystemExit(EXIT_RETRIEVAL) from e
    except UnicodeDecodeError as e:
        print(f"pagequery: cannot decode {args.location}: {e}", file=sys.stderr)
        raise SystemExit(EXIT_RETRIEVAL) from e

    try:
        doc = Document(markup)
    except MalformedMarkupError as e:
        print(f"pagequery: {e.msg} (line {e.lineno}, column {e.offset})", file=sys.stderr)
        raise SystemExit(EXIT_BAD_INPUT) from e

    if not args.selector:
        if args.format == "text":
            _write([doc.to_text()])
        else:
            _write([doc.to_html(pretty=True)])
        return None

    limit = 1 if args.first else args.limit
    try:
        elements = doc.find_all(args.selector, limit=limit)
    except InvalidSelectorError as e:
        print(f"pagequery: {e}", file=sys.stderr)
        raise SystemExit(EXIT_BAD_INPUT) from e

    logger.debug("%d element(s) matched %r", len(elements), args.selector)
    if not elements:
        raise SystemExit(EXIT_NO_MATCH)

    if args.attr:
        values = [value for value in (el.get_attr(args.attr) for el in elements) if value is not None]
        if not values:
            raise SystemExit(EXIT_NO_MATCH)
        _write(values)
        return None

    if args.format == "html":
        _write([el.to_html() for el in elements])
        return None

    if args.format == "text":
        _write([el.text.strip() for el in elements])
        return None

    records = [
        {"tag": el.tag, "text": el.text, "attrs": el.attrs, "html_content": el.html_content} for el in elements
    ]
    _write([json.dumps(records, indent=2, ensure_ascii=False)])
    return None


if __name__ == "__main__":
    main()
