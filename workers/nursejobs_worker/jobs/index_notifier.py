from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
import logging
from typing import Any

import httpx
from opentelemetry import trace

from nursejobs_worker.jobs.fingerprints import FingerprintDiff, current_fingerprints, diff_fingerprints
from nursejobs_worker.services.indexnow_client import MAX_URLS_PER_BATCH, IndexIntent, IndexNowClient, IndexNowError
from nursejobs_worker.services.kv_store import KeyValueStore
from nursejobs_worker.services.listings_client import PageInventoryClient

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

SleepFn = Callable[[float], Awaitable[None]]


class FingerprintStateConflictError(Exception):
    """Raised when the fingerprint map keeps changing underneath a write."""


@dataclass(slots=True)
class NotifierSummary:
    pages: int = 0
    changed: int = 0
    removed: int = 0
    unchanged: int = 0
    submitted: int = 0
    batches: int = 0
    rate_limited_retries: int = 0
    failed: list[dict[str, Any]] = field(default_factory=list)
    dry_run: bool = False


@dataclass(frozen=True, slots=True)
class _Batch:
    intent: IndexIntent
    entries: tuple[tuple[str, str | None], ...]

    @property
    def urls(self) -> list[str]:
        return [url for url, _ in self.entries]


def plan_batches(diff: FingerprintDiff, batch_size: int) -> list[_Batch]:
    size = min(MAX_URLS_PER_BATCH, max(1, batch_size))
    batches: list[_Batch] = []
    updated = list(diff.changed.items())
    for start in range(0, len(updated), size):
        batches.append(_Batch("updated", tuple(updated[start : start + size])))
    removed: list[tuple[str, str | None]] = [(url, None) for url in diff.removed]
    for start in range(0, len(removed), size):
        batches.append(_Batch("deleted", tuple(removed[start : start + size])))
    return batches


class IndexNotifier:
    """Announces changed listing pages to IndexNow and records what was sent.

    The URL -> fingerprint map lives under one key-value entry. It is merged and
    written after every accepted batch, so an interrupted run resumes with only
    the unsent pages.
    """

    def __init__(
        self,
        inventory: PageInventoryClient,
        indexnow: IndexNowClient | None,
        state_store: KeyValueStore,
        *,
        site_url: str,
        state_key: str,
        batch_size: int = 50,
        delay_between_batches_seconds: float = 180.0,
        rate_limit_wait_seconds: float = 60.0,
        max_rate_limit_retries: int = 3,
        cas_max_attempts: int = 5,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self.inventory = inventory
        self.indexnow = indexnow
        self.state_store = state_store
        self.site_url = site_url
        self.state_key = state_key
        self.batch_size = min(MAX_URLS_PER_BATCH, max(1, batch_size))
        self.delay_between_batches_seconds = max(0.0, delay_between_batches_seconds)
        self.rate_limit_wait_seconds = max(0.0, rate_limit_wait_seconds)
        self.max_rate_limit_retries = max(0, max_rate_limit_retries)
        self.cas_max_attempts = max(1, cas_max_attempts)
        self.sleep = sleep

    async def load_fingerprints(self) -> dict[str, str]:
        stored = await self.state_store.get(self.state_key)
        if stored is None:
            return {}
        raw = stored.value.get("fingerprints")
        if not isinstance(raw, dict):
            return {}
        return {str(url): str(value) for url, value in raw.items()}

    async def run(self, *, dry_run: bool = False, client: httpx.AsyncClient | None = None) -> NotifierSummary:
        with tracer.start_as_current_span("index_notifier.run") as span:
            pages = await self.inventory.fetch_pages(client=client)
            previous = await self.load_fingerprints()
            diff = diff_fingerprints(previous, current_fingerprints(self.site_url, pages))
            summary = NotifierSummary(
                pages=len(pages),
                changed=len(diff.changed),
                removed=len(diff.removed),
                unchanged=diff.unchanged,
                dry_run=dry_run,
            )
            span.set_attribute("index_notifier.changed", summary.changed)
            span.set_attribute("index_notifier.removed", summary.removed)
            logger.info(
                "index diff computed pages=%s changed=%s removed=%s unchanged=%s",
                summary.pages,
                summary.changed,
                summary.removed,
                summary.unchanged,
            )

            if dry_run or diff.is_empty:
                for url in list(diff.changed)[:20]:
                    logger.info("index pending intent=updated url=%s", url)
                return summary
            indexnow = self.indexnow
            if indexnow is None:
                raise ValueError("IndexNow key is required to submit URLs")

            batches = plan_batches(diff, self.batch_size)
            for index, batch in enumerate(batches):
                if index > 0 and self.delay_between_batches_seconds:
                    await self.sleep(self.delay_between_batches_seconds)
                if await self._submit_batch(indexnow, batch, summary, client=client):
                    await self._persist_batch(batch)
                    summary.submitted += len(batch.entries)
                    summary.batches += 1
            span.set_attribute("index_notifier.failed", len(summary.failed))

        logger.info(
            "index notify finished submitted=%s batches=%s failed=%s",
            summary.submitted,
            summary.batches,
            len(summary.failed),
        )
        return summary

    async def _submit_batch(
        self,
        indexnow: IndexNowClient,
        batch: _Batch,
        summary: NotifierSummary,
        *,
        client: httpx.AsyncClient | None,
    ) -> bool:
        attempt = 0
        while True:
            try:
                await indexnow.submit(batch.urls, intent=batch.intent, client=client)
                return True
            except IndexNowError as exc:
                if exc.rate_limited and attempt < self.max_rate_limit_retries:
                    attempt += 1
                    summary.rate_limited_retries += 1
                    logger.warning(
                        "indexnow rate limited; retry %s/%s in %.1fs",
                        attempt,
                        self.max_rate_limit_retries,
                        self.rate_limit_wait_seconds,
                    )
                    await self.sleep(self.rate_limit_wait_seconds)
                    continue
                logger.error("indexnow batch failed intent=%s urls=%s error=%s", batch.intent, len(batch.urls), exc)
                summary.failed.extend(
                    {"url": url, "intent": batch.intent, "status_code": exc.status_code, "error": exc.detail}
                    for url in batch.urls
                )
                return False

    async def _persist_batch(self, batch: _Batch) -> None:
        for attempt in range(1, self.cas_max_attempts + 1):
            stored = await self.state_store.get(self.state_key)
            version = stored.version if stored is not None else 0
            raw = stored.value.get("fingerprints") if stored is not None else None
            fingerprints = dict(raw) if isinstance(raw, dict) else {}
            for url, fingerprint in batch.entries:
                if fingerprint is None:
                    fingerprints.pop(url, None)
                else:
                    fingerprints[url] = fingerprint
            if await self.state_store.compare_and_swap(self.state_key, version, {"fingerprints": fingerprints}):
                return
            logger.warning("fingerprint state changed concurrently key=%s attempt=%s", self.state_key, attempt)
        raise FingerprintStateConflictError(
            f"could not write {self.state_key} after {self.cas_max_attempts} attempts"
        )
