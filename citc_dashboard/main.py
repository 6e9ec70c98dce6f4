"""
Main Entry Point - Dashboard Sync

Command-line caller of the sync pipeline. Builds the shared services once
(client, cache, limiter) from the environment and runs a single sync or the
periodic scheduler.
"""

import argparse
import asyncio
import json
import sys
from typing import Optional, Sequence

import polars as pl

from .coreutils.env import SyncSettings, load_settings
from .coreutils.errors import ConfigurationError, SyncFailedError, SyncValidationError
from .coreutils.limiter import ConcurrencyLimiter
from .coreutils.logging import log_function_call, setup_logging
from .extract.axcelerate_api import AxcelerateAPIClient
from .load.cache import CacheStore
from .load.local_storage import save_cards_parquet, save_json
from .orchestration.pipeline import SyncOrchestrator
from .orchestration.scheduler import DashboardScheduler
from .transformation.schemas import SyncQuery, SyncResult
from .transformation.summary import summarise_locations

import logging

logger = logging.getLogger(__name__)

EXIT_SYNC_FAILED = 1
EXIT_INVALID_QUERY = 2
EXIT_MISCONFIGURED = 3


def create_orchestrator(settings: SyncSettings) -> SyncOrchestrator:
    """Wire the process-wide services into an orchestrator"""
    if not settings.has_credentials:
        raise ConfigurationError(
            "AXC_BASE, AXC_API_TOKEN, and AXC_WS_TOKEN must be set for upstream requests"
        )

    client = AxcelerateAPIClient(
        settings.base_url,
        settings.api_token,
        settings.ws_token,
        timeout=settings.request_timeout,
    )
    return SyncOrchestrator(
        client=client,
        cache=CacheStore(ttl_seconds=settings.cache_ttl_seconds),
        limiter=ConcurrencyLimiter(settings.concurrency_limit),
    )


async def run_sync(orchestrator: SyncOrchestrator, query: SyncQuery) -> SyncResult:
    """Run one sync and release the HTTP session afterwards"""
    try:
        return await orchestrator.sync(query)
    finally:
        await orchestrator.client.close()


def write_output(result: SyncResult, output: str) -> None:
    if output.endswith(".parquet"):
        save_cards_parquet(result, output)
    else:
        save_json(result, output)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="CITC Dashboard Sync")
    parser.add_argument("command", choices=["sync", "schedule"], help="Command to run")
    parser.add_argument("--start", required=True, help="Window start (YYYY-MM-DD)")
    parser.add_argument("--end", required=True, help="Window end (YYYY-MM-DD)")
    parser.add_argument(
        "--locations",
        default=None,
        help="Locations separated by '|' (defaults to the three regional sites)",
    )
    parser.add_argument(
        "--revenue-mode",
        default="enrolment",
        help="Revenue from 'enrolment' costs or resolved 'invoice' totals",
    )
    parser.add_argument(
        "--output", default=None, help="Write the result to a .json or .parquet file"
    )
    parser.add_argument(
        "--summary", action="store_true", help="Print per-location totals"
    )
    parser.add_argument(
        "--interval", type=int, default=60, help="Seconds between scheduled refreshes"
    )
    parser.add_argument(
        "--output-dir", default="output", help="Snapshot directory for schedule"
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)
    settings = load_settings()
    setup_logging(settings.log_level, settings.log_dir)

    try:
        query = SyncQuery.from_params(
            args.start, args.end, args.locations, args.revenue_mode
        )
    except SyncValidationError as e:
        print(json.dumps({"error": str(e)}), file=sys.stderr)
        return EXIT_INVALID_QUERY

    try:
        orchestrator = create_orchestrator(settings)
    except ConfigurationError as e:
        logger.error(f"❌ {e}")
        print(json.dumps({"error": str(e)}), file=sys.stderr)
        return EXIT_MISCONFIGURED

    log_function_call(
        args.command,
        start=query.start.isoformat(),
        end=query.end.isoformat(),
        locations=list(query.locations),
        revenue_mode=query.revenue_mode.value,
    )

    if args.command == "schedule":
        scheduler = DashboardScheduler(
            orchestrator, query, interval_seconds=args.interval, output_dir=args.output_dir
        )
        scheduler.start()
        return 0

    try:
        result = asyncio.run(run_sync(orchestrator, query))
    except SyncFailedError as e:
        print(json.dumps({"error": str(e)}), file=sys.stderr)
        return EXIT_SYNC_FAILED

    if args.output:
        write_output(result, args.output)
    else:
        print(json.dumps(result.to_payload(), indent=2))

    if args.summary:
        with pl.Config(tbl_rows=-1):
            print(summarise_locations(result))

    return 0


if __name__ == "__main__":
    sys.exit(main())
