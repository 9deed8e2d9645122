"""CLI for running sentinel ingestion cycles."""

from __future__ import annotations

import argparse
import logging
import signal

from dotenv import load_dotenv

from common.cli_helpers import add_common_args, print_json, setup_logging
from common.serialization import serialize_dataclass
from ingest_articles.fetch_articles.sources import find_source
from sentinel.config import load_config
from sentinel.models import RunConfig
from sentinel.scheduler import SentinelScheduler
from sentinel.sentinel import SentinelService

load_dotenv()

logger = logging.getLogger(__name__)


def _parse_sources(value: str | None, config) -> list | None:
    """Resolve --sources names against the configured and default feeds."""
    if not value or value.strip().lower() == "all":
        return None

    sources = []
    for name in (part.strip() for part in value.split(",")):
        if not name:
            continue
        source = find_source(name, config.sources) or find_source(name)
        if source is None:
            logger.warning("Invalid source: %s", name)
            continue
        sources.append(source)

    if not sources:
        raise ValueError(f"No valid sources provided. Valid sources: {', '.join(s.name for s in config.sources)}")
    return sources


def main() -> None:
    parser = argparse.ArgumentParser(description="Run sentinel ingestion.")
    add_common_args(parser)
    parser.add_argument(
        "--sources",
        default=None,
        help="Comma-separated list of source names (default: configured sources).",
    )
    persist = parser.add_mutually_exclusive_group()
    persist.add_argument("--persist", dest="persist", action="store_true", default=None,
                         help="Write accepted drafts.")
    persist.add_argument("--preview", dest="persist", action="store_false",
                         help="Only preview accepted drafts.")
    parser.add_argument("--max-items", type=int, default=None, help="Override the per-run item cap.")
    parser.add_argument("--import-url", default=None, help="Import one feed or article URL and exit.")
    parser.add_argument("--schedule", action="store_true", help="Keep running on the configured frequency.")
    args = parser.parse_args()

    setup_logging(args.verbose)
    config = load_config(args.config)
    service = SentinelService.from_config(config)

    try:
        if args.import_url:
            result = service.import_url(args.import_url, persist=bool(args.persist))
            print_json(serialize_dataclass(result))
            return

        if args.schedule:
            scheduler = SentinelScheduler(service)
            scheduler.start()
            try:
                signal.pause()
            except KeyboardInterrupt:
                logger.info("Interrupted")
            finally:
                scheduler.stop()
            return

        summary = service.run_once(
            RunConfig(
                persist_override=args.persist,
                sources=_parse_sources(args.sources, config),
                max_items=args.max_items,
            )
        )
        print_json(serialize_dataclass(summary))
    finally:
        service.close()


if __name__ == "__main__":
    main()
