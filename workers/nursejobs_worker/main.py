from __future__ import annotations

import argparse
import asyncio
import logging

from opentelemetry import trace

from nursejobs_worker.core.config import get_settings
from nursejobs_worker.core.telemetry import (
    configure_worker_logging,
    setup_worker_telemetry,
    shutdown_worker_telemetry,
)
from nursejobs_worker.jobs.index_notifier import IndexNotifier, NotifierSummary
from nursejobs_worker.services.indexnow_client import IndexNowClient
from nursejobs_worker.services.kv_store import PostgresKeyValueStore
from nursejobs_worker.services.listings_client import PageInventoryClient

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Announce changed nursing listing pages to IndexNow.")
    parser.add_argument("--dry-run", action="store_true", help="compute and log the diff without submitting")
    return parser


async def run_index_notifier(*, dry_run: bool = False) -> NotifierSummary:
    settings = get_settings()
    if not settings.indexnow_key and not dry_run:
        raise SystemExit("NJ_WORKER_INDEXNOW_KEY is required unless --dry-run is set")

    configure_worker_logging(settings.log_level)
    telemetry_runtime = setup_worker_telemetry(settings, job_name="index-notifier")
    state_store = PostgresKeyValueStore(
        settings.database_url,
        min_pool_size=settings.database_pool_min_size,
        max_pool_size=settings.database_pool_max_size,
    )
    indexnow = None
    if settings.indexnow_key:
        indexnow = IndexNowClient(
            settings.indexnow_endpoint,
            settings.indexnow_key,
            site_url=settings.site_url,
            key_location=settings.indexnow_key_location,
            timeout=settings.request_timeout_seconds,
        )
    notifier = IndexNotifier(
        PageInventoryClient(settings.api_base_url, timeout=settings.request_timeout_seconds),
        indexnow,
        state_store,
        site_url=settings.site_url,
        state_key=settings.fingerprint_state_key,
        batch_size=settings.batch_size,
        delay_between_batches_seconds=settings.delay_between_batches_seconds,
        rate_limit_wait_seconds=settings.rate_limit_wait_seconds,
        max_rate_limit_retries=settings.max_rate_limit_retries,
        cas_max_attempts=settings.cas_max_attempts,
    )
    try:
        with tracer.start_as_current_span("worker.index_notifier"):
            return await notifier.run(dry_run=dry_run)
    finally:
        await state_store.close()
        shutdown_worker_telemetry(telemetry_runtime)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    summary = asyncio.run(run_index_notifier(dry_run=args.dry_run))
    return 1 if summary.failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
