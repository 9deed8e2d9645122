"""CLI for the draft data-quality report."""

from __future__ import annotations

import argparse
import logging

from dotenv import load_dotenv

from common.cli_helpers import add_common_args, print_json, setup_logging
from common.serialization import serialize_dataclass
from data_quality.data_quality import get_data_quality
from sentinel.config import load_config
from sentinel.sentinel import SentinelService

load_dotenv()

logger = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(description="Report defect signatures over stored drafts.")
    add_common_args(parser)
    parser.add_argument(
        "--repair",
        action="store_true",
        help="Re-clean and re-format stored drafts before reporting.",
    )
    args = parser.parse_args()

    setup_logging(args.verbose)
    service = SentinelService.from_config(load_config(args.config))

    try:
        if args.repair:
            summary = service.reprocess_drafts()
            logger.info("Repair updated %d of %d drafts", summary.drafts_updated, summary.drafts_seen)

        report = get_data_quality(service.store)
        output = serialize_dataclass(report)
        output["clean_proportion"] = report.clean_proportion
        print_json(output)
    finally:
        service.close()


if __name__ == "__main__":
    main()
