from __future__ import annotations

import asyncio
from collections.abc import Mapping
import logging
import math
from typing import Any

from opentelemetry import trace

from nursejobs.core.config import Settings
from nursejobs.core.taxonomy import TaxonomyRegistry
from nursejobs.schemas.listings import (
    BrowseStats,
    FacetBucket,
    JobDetailOut,
    JobOut,
    PageResult,
    Pagination,
    SalaryPageResult,
)
from nursejobs.services.facets import FacetAggregator, FacetSpec
from nursejobs.services.filters import FilterContext, JobPredicate, any_of, equals, not_equal
from nursejobs.services.interleave import DEFAULT_INTERLEAVE_WINDOW, interleave_by_employer
from nursejobs.services.paths import LISTING_PREFIX, ListingRequest
from nursejobs.services.policies import facet_policy, parse_facet_limit_overrides
from nursejobs.services.resolver import QueryResolver, ResolvedListing
from nursejobs.services.salary import calculate_salary_stats, salary_sample_predicate
from nursejobs.services.store import JobStore

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

BROWSE_EMPLOYER_LIMIT = 20


def _pagination(page: int, limit: int, total: int) -> Pagination:
    total_pages = math.ceil(total / limit) if limit else 0
    return Pagination(
        page=page,
        limit=limit,
        total=total,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1,
    )


def _by_display_name(buckets: list[FacetBucket]) -> list[FacetBucket]:
    return sorted(buckets, key=lambda bucket: bucket.display_name.casefold())


class ListingService:
    """Composes listing pages: resolution, paged fetch, facets and scalar aggregates."""

    def __init__(
        self,
        store: JobStore,
        taxonomy: TaxonomyRegistry,
        *,
        interleave_window: int = DEFAULT_INTERLEAVE_WINDOW,
        max_page_size: int = 100,
        facet_overrides: Mapping[str, Mapping[str, int | None]] | None = None,
        salary_sample_limit: int = 5000,
        related_jobs_limit: int = 5,
    ) -> None:
        self.store = store
        self.taxonomy = taxonomy
        self.interleave_window = max(1, interleave_window)
        self.facet_overrides = facet_overrides or {}
        self.salary_sample_limit = max(1, salary_sample_limit)
        self.related_jobs_limit = max(0, related_jobs_limit)
        self.resolver = QueryResolver(store, taxonomy, max_page_size=max_page_size)
        self.facets = FacetAggregator(store, taxonomy)

    @classmethod
    def from_settings(cls, store: JobStore, taxonomy: TaxonomyRegistry, settings: Settings) -> ListingService:
        return cls(
            store,
            taxonomy,
            interleave_window=settings.interleave_window,
            max_page_size=settings.max_page_size,
            facet_overrides=parse_facet_limit_overrides(settings.facet_limit_overrides_json),
            salary_sample_limit=settings.salary_sample_limit,
            related_jobs_limit=settings.related_jobs_limit,
        )

    async def resolve(self, request: ListingRequest, *, page: int = 1, limit: int = 20) -> ResolvedListing | None:
        return await self.resolver.resolve(request, page=page, limit=limit)

    async def render(self, request: ListingRequest, *, page: int = 1, limit: int = 20) -> PageResult | None:
        resolved = await self.resolve(request, page=page, limit=limit)
        if resolved is None or resolved.salary:
            return None
        return await self.listing_page(resolved)

    async def listing_page(self, resolved: ResolvedListing) -> PageResult:
        context = resolved.context
        with tracer.start_as_current_span("listings.resolve") as span:
            span.set_attribute("listing.page_type", resolved.page_type)
            predicate = context.to_predicate(self.taxonomy)
            specs = facet_policy(resolved.page_type, context, self.facet_overrides)
            jobs, total, stats, max_hourly_rate = await asyncio.gather(
                self._fetch_page(context, predicate),
                self.store.count(predicate),
                self.facets.compute_all(specs, context),
                self.store.aggregate(predicate, "max", "salary_max_hourly"),
            )
            span.set_attribute("listing.total", total)

        logger.info(
            "listing resolved page_type=%s path=%s total=%s page=%s",
            resolved.page_type,
            resolved.canonical_path,
            total,
            context.page,
        )
        return PageResult(
            page_type=resolved.page_type,
            filters=context.describe(),
            canonical_path=resolved.canonical_path,
            jobs=[JobOut(**job) for job in jobs],
            pagination=_pagination(context.page, context.limit, total),
            total_jobs=total,
            stats=stats,
            max_hourly_rate=max_hourly_rate,
        )

    async def _fetch_page(self, context: FilterContext, predicate: JobPredicate) -> list[dict[str, Any]]:
        if context.employer is not None:
            # Single-employer pages have nothing to interleave.
            return await self.store.filtered_fetch(predicate, offset=context.offset, limit=context.limit)
        window = await self.store.filtered_fetch(
            predicate,
            offset=context.offset,
            limit=max(self.interleave_window, context.limit),
        )
        return interleave_by_employer(window, context.limit)

    async def salary_page(self, resolved: ResolvedListing) -> SalaryPageResult:
        context = resolved.context
        with tracer.start_as_current_span("listings.salary") as span:
            span.set_attribute("listing.page_type", resolved.page_type)
            specs = facet_policy(resolved.page_type, context, self.facet_overrides)
            sample, stats = await asyncio.gather(
                self.store.filtered_fetch(
                    salary_sample_predicate(context, self.taxonomy),
                    offset=0,
                    limit=self.salary_sample_limit,
                ),
                self.facets.compute_all(specs, context),
            )
        return SalaryPageResult(
            page_type=resolved.page_type,
            filters=context.describe(),
            canonical_path=resolved.canonical_path,
            salary=calculate_salary_stats(sample, self.taxonomy),
            stats=stats,
        )

    async def job_detail(self, slug: str) -> JobDetailOut | None:
        job = await self.store.get_job_by_slug(slug)
        if job is None:
            return None
        related = await self._related_jobs(job) if self.related_jobs_limit else []
        return JobDetailOut(
            job=JobOut(**job),
            canonical_path=f"{LISTING_PREFIX}/{job['slug']}",
            related_jobs=[JobOut(**row) for row in related],
        )

    async def _related_jobs(self, job: dict[str, Any]) -> list[dict[str, Any]]:
        base = JobPredicate(conditions=(not_equal("id", str(job["id"])),))
        if job.get("state"):
            base = base.where(equals("state", str(job["state"]).upper()))

        related: list[dict[str, Any]] = []
        variants = self.taxonomy.specialty.to_db_values(job.get("specialty"))
        if variants:
            related = await self.store.filtered_fetch(
                base.where(any_of("specialty", variants)), offset=0, limit=self.related_jobs_limit
            )
        if len(related) < self.related_jobs_limit:
            seen = {row["id"] for row in related}
            extra = await self.store.filtered_fetch(base, offset=0, limit=self.related_jobs_limit + len(related))
            related.extend(row for row in extra if row["id"] not in seen)
        return related[: self.related_jobs_limit]

    async def browse_stats(self) -> BrowseStats:
        context = FilterContext()
        specs = (
            FacetSpec("states", "state", None, "global"),
            FacetSpec("employers", "employer", BROWSE_EMPLOYER_LIMIT, "global"),
            FacetSpec("specialties", "specialty", None, "global"),
            FacetSpec("job_types", "job_type", None, "global"),
        )
        with tracer.start_as_current_span("listings.browse"):
            total, stats = await asyncio.gather(
                self.store.count(context.to_predicate(self.taxonomy)),
                self.facets.compute_all(specs, context),
            )
        return BrowseStats(
            total_jobs=total,
            states=_by_display_name(stats["states"]),
            employers=stats["employers"],
            specialties=_by_display_name(stats["specialties"]),
            job_types=_by_display_name(stats["job_types"]),
        )
