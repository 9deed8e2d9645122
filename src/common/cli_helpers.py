"""Common CLI helper utilities."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path


def setup_logging(verbose: bool = False) -> None:
    """Configure standard logging format for CLI tools."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


def add_common_args(parser: argparse.ArgumentParser) -> None:
    """Add the --config and --verbose flags shared by sentinel CLIs."""
    parser.add_argument(
        "--config",
        default=None,
        help="Config name under sentinel/configs (default: $SENTINEL_CONFIG or prod).",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")


def read_input(path: str | None) -> str:
    """Read a file argument, or stdin when the path is missing or '-'."""
    if not path or path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def print_json(data) -> None:
    """Pretty-print a JSON-ready value to stdout."""
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))
