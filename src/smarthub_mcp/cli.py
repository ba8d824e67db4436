"""Command-line runner: ``smarthub <url> <hub-address-hex>``.

Runs discovery, status seeding and monitoring until the network server
reports the end of the run. Exit codes: 0 when the server closes the run,
99 on any transport or protocol failure.
"""

from __future__ import annotations

import argparse
import logging
import sys

from .errors import SmartHubError
from .hub.controller import SmartHub
from .hub.state import DEFAULT_HUB_NAME
from .transport.http_connection import READ_TIMEOUT, HTTPConnection

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 99


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="smarthub",
        description="Run a smart-home hub against a network server.",
    )
    parser.add_argument("url", help="Network server URL")
    parser.add_argument("address", help="Hub address in hex, e.g. ef0")
    parser.add_argument("--name", default=DEFAULT_HUB_NAME, help="Hub device name")
    parser.add_argument(
        "--timeout",
        type=float,
        default=READ_TIMEOUT,
        help="Per round-trip timeout in seconds",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every packet")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        address = int(args.address, 16)
        with HTTPConnection(args.url, timeout=args.timeout) as conn:
            SmartHub(conn, address, name=args.name).run()
    except (SmartHubError, ValueError) as e:
        logger.error("Hub run aborted: %s", e)
        return EXIT_FAILURE
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
