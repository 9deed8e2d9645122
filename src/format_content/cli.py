"""CLI for formatting cleaned article markup."""

from __future__ import annotations

import argparse
import logging
import os
from dataclasses import fields

from dotenv import load_dotenv

from clean_content.clean import clean
from common.cli_helpers import print_json, read_input, setup_logging
from common.serialization import serialize_dataclass
from format_content.enhancers import HttpTextEnhancer, NullTextEnhancer
from format_content.format_content import ContentFormatter
from format_content.models import StageOptions

load_dotenv()

logger = logging.getLogger(__name__)

OPTION_NAMES = [f.name for f in fields(StageOptions)]


def parse_options(args: argparse.Namespace) -> StageOptions:
    if args.all:
        return StageOptions.ingestion_defaults(enable_ai_enhancement=args.ai)
    values = {name: True for name in args.option or []}
    if args.ai:
        values["enable_ai_enhancement"] = True
    return StageOptions.from_dict(values)


def main() -> None:
    parser = argparse.ArgumentParser(description="Run formatter stages over an HTML fragment.")
    parser.add_argument("path", nargs="?", default=None, help="Input file (default: stdin).")
    parser.add_argument("--title", default="", help="Article title used for headings and SEO.")
    parser.add_argument(
        "--option",
        action="append",
        choices=OPTION_NAMES,
        help="Enable one stage option (repeatable).",
    )
    parser.add_argument("--all", action="store_true", help="Enable the ingestion stage set.")
    parser.add_argument("--ai", action="store_true", help="Enable AI enhancement via $ENHANCER_API_URL.")
    parser.add_argument("--no-clean", action="store_true", help="Skip cleaning the input first.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    args = parser.parse_args()

    setup_logging(args.verbose)
    raw = read_input(args.path)
    fragment = raw if args.no_clean else clean(raw)

    enhancer_url = os.environ.get("ENHANCER_API_URL")
    enhancer = HttpTextEnhancer(enhancer_url) if args.ai and enhancer_url else NullTextEnhancer()

    result = ContentFormatter(enhancer).format(fragment, parse_options(args), title=args.title)
    for warning in result.warnings:
        logger.warning(warning)
    print_json(serialize_dataclass(result))


if __name__ == "__main__":
    main()
