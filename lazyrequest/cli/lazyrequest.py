"""
lazyrequest CLI - runs pre-parsed HTTP template documents and checks the responses.

Usage examples:
    lazyrequest --folder ./requests --run-in-band --bail
    lazyrequest --file ./requests/users.json -t 2000
    python -m lazyrequest.cli.lazyrequest --inline '{"requests": [{"url": "https://example.com"}]}'
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from lazyrequest.pipeline import run_from_args


def _positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}")
    if n <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}")
    return n


def _non_negative_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer >= 0, got {value!r}")
    if n < 0:
        raise argparse.ArgumentTypeError(f"expected an integer >= 0, got {value!r}")
    return n


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lazyrequest",
        description="A lightweight minimal API testing client",
    )

    source = parser.add_mutually_exclusive_group()
    source.add_argument("--inline", metavar="DOCUMENT", help="Execute an inline template document")
    source.add_argument("--file", metavar="PATH", help="Execute a single template document")
    source.add_argument("--folder", metavar="PATH", help="Search a directory for template documents (default: cwd)")

    parser.add_argument("-t", "--timeout", type=_positive_int, help="Request timeout in milliseconds (default 5000)")
    parser.add_argument("--bail", type=_positive_int, nargs="?", const=1,
                        help="Stop after N failures (N=1 when given without a value)")
    parser.add_argument("--max-requests", type=_positive_int, help="Execute at most N requests")
    parser.add_argument("--delay", type=_non_negative_int,
                        help="Milliseconds between requests in sequential mode (default 300)")
    parser.add_argument("--max-depth", type=_non_negative_int, help="Folder recursion depth (default 10)")

    strategy = parser.add_mutually_exclusive_group()
    strategy.add_argument("--run-in-band", action="store_true", help="Execute requests sequentially")
    strategy.add_argument("--concurrent", action="store_true", help="Execute requests concurrently (default)")

    parser.add_argument("--show-after-done", action="store_true", help="Print results only after all requests finish")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return asyncio.run(run_from_args(args))


if __name__ == "__main__":
    sys.exit(main())
