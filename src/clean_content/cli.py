"""CLI for cleaning scraped article markup."""

from __future__ import annotations

import argparse
import logging

from clean_content.clean import clean, needs_cleaning
from common.cli_helpers import read_input, setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(description="Clean raw article markup into a safe HTML fragment.")
    parser.add_argument("path", nargs="?", default=None, help="Input file (default: stdin).")
    parser.add_argument(
        "--check",
        action="store_true",
        help="Exit with status 1 when the input would be changed by cleaning.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    args = parser.parse_args()

    setup_logging(args.verbose)
    raw = read_input(args.path)

    if args.check:
        dirty = needs_cleaning(raw)
        logger.info("Input %s cleaning", "needs" if dirty else "does not need")
        raise SystemExit(1 if dirty else 0)

    print(clean(raw).body_html)


if __name__ == "__main__":
    main()
