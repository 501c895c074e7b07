# run_crawler.py
"""
One-shot aggregation run from the command line.

    python run_crawler.py                      # every configured brand
    python run_crawler.py --brands Canon,Sony --deadline 120 --json
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Make the repo root importable
repo_root = Path(__file__).resolve().parent
if str(repo_root) not in sys.path:
    sys.path.append(str(repo_root))

from core.config import settings
from core.logging import setup_logging
from models.aggregation import AggregationRequest, AggregationResult
from services.crawler.aggregator import CameraUpdateAggregator
from services.crawler.deadline import Deadline


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Aggregate camera firmware, body and lens updates")
    parser.add_argument("--brands", default="", help="Comma-separated brands (default: all configured)")
    parser.add_argument("--deadline", type=float, default=None, help="Wall-clock budget in seconds")
    parser.add_argument("--json", action="store_true", help="Print the updates as JSON")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL)
    return parser.parse_args(argv)


def print_summary(result: AggregationResult, as_json: bool = False) -> None:
    print("\n=== AGGREGATION SUMMARY ===")
    print(f"Run id        : {result.run_id}")
    print(f"Status        : {result.status.value}")
    print(f"Completed at  : {result.completed_at.isoformat()}")
    for report in result.brand_reports:
        print(
            f"{report.brand:<14}: {len(report.updates)} update(s), "
            f"{report.urls_fetched}/{report.urls_resolved} article(s) fetched"
            + (f", failed: {report.error}" if report.error else "")
        )
    print(f"Skips         : {len(result.skips)}")

    if not result.has_new_data:
        print("\nNo new data available; existing data should be kept.")
        if result.error:
            print(f"Error: {result.error}")
        return

    print(f"Updates       : {result.count}")
    if as_json:
        print(json.dumps([u.to_dict() for u in result.updates], indent=2))
    else:
        for update in result.updates:
            print(f"  {update.date}  [{update.brand}/{update.type.value}] {update.title}")


async def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    request = AggregationRequest(brands=args.brands, deadline_seconds=args.deadline)
    async with CameraUpdateAggregator(settings=settings) as aggregator:
        result = await aggregator.run(
            deadline=Deadline(request.deadline_seconds or settings.DEADLINE_SECONDS),
            brands=request.brands or None,
            run_id=request.run_id,
        )

    print_summary(result, as_json=args.json)
    return 0 if result.error is None else 1


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
