# stayscout/__main__.py
# Process entry point used by the dispatch layer:
#   python -m stayscout prices --hotel "Hotel Lucerna Tijuana" --days 30 [--user <uuid>] [--save]
#   python -m stayscout events --lat 32.52 --lon -117.03 [--radius 50] [--user <uuid>] [--save]
# Prints the JSON array on stdout; logs go to stderr.
# Exit code 1 only when the browser could not be started.

import argparse
import asyncio
import json
import sys
from pathlib import Path

from stayscout.core.config import get_config
from stayscout.core.job_models import JobKind, ScrapeJob
from stayscout.core.logging import init_scraper_logging
from stayscout.db.supabase_client import upsert_events, upsert_prices
from stayscout.jobs.runner import run_job


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="stayscout", description="Hotel price and nearby-event extraction.")
    sub = ap.add_subparsers(dest="kind", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--user", dest="owner_id", default=None, help="Owner UUID used when saving")
    common.add_argument("--headed", action="store_true", default=False, help="Show the browser window")
    common.add_argument("--debug", action="store_true", default=False, help="DEBUG logging on stderr")
    common.add_argument("--out", type=Path, default=None, help="Also write the JSON array to this file")
    common.add_argument("--save", action="store_true", default=False, help="Upsert results into Supabase")

    prices = sub.add_parser(JobKind.PRICES.value, parents=[common], help="Room prices for a hotel")
    prices.add_argument("--hotel", required=True, help="Hotel name as typed by the user")
    prices.add_argument("--days", type=int, default=1)
    prices.add_argument("--offset", type=int, default=0, help="First day relative to today")
    prices.add_argument("--concurrency", type=int, default=None)

    events = sub.add_parser(JobKind.EVENTS.value, parents=[common], help="Events near a location")
    events.add_argument("--lat", type=float, default=None)
    events.add_argument("--lon", type=float, default=None)
    events.add_argument("--radius", type=float, default=50.0, help="Radius in km")

    return ap


def job_from_args(args: argparse.Namespace) -> ScrapeJob:
    config = get_config()
    if args.kind == JobKind.PRICES.value:
        return ScrapeJob(
            kind=JobKind.PRICES,
            target_name=args.hotel,
            days=args.days,
            day_offset=args.offset,
            concurrency=args.concurrency or config.default_concurrency,
            headless=not args.headed and config.headless,
            debug=args.debug,
            owner_id=args.owner_id,
        )
    return ScrapeJob(
        kind=JobKind.EVENTS,
        latitude=args.lat,
        longitude=args.lon,
        radius_km=args.radius,
        headless=not args.headed and config.headless,
        debug=args.debug,
        owner_id=args.owner_id,
    )


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    config = get_config()
    init_scraper_logging(debug=args.debug or config.debug, log_dir=config.log_dir)

    try:
        job = job_from_args(args)
    except ValueError as e:
        print(f"[error] invalid job: {e}", file=sys.stderr)
        print("[]")
        return 0

    try:
        outcome = asyncio.run(run_job(job))
    except KeyboardInterrupt:
        print("\n[abort] KeyboardInterrupt - stopping job.", file=sys.stderr)
        return 1

    text = json.dumps(outcome.records, ensure_ascii=False)
    print(text)

    if args.out:
        args.out.parent.mkdir(exist_ok=True, parents=True)
        args.out.write_text(text, encoding="utf-8")

    if args.save and outcome.records:
        if job.kind == JobKind.PRICES:
            upsert_prices(job.owner_id, job.target_name, outcome.records)
        else:
            upsert_events(job.owner_id, outcome.records)

    if outcome.failed:
        print(f"[fatal] {outcome.error}", file=sys.stderr)
    return outcome.exit_code


if __name__ == "__main__":
    sys.exit(main())
