from __future__ import annotations

import asyncio

from nursejobs.core.taxonomy import TaxonomyRegistry
from nursejobs.services.listings import ListingService
from nursejobs.services.paths import ListingRequest
from nursejobs.services.resolver import QueryResolver
from nursejobs.services.store import InMemoryJobStore


def test_unknown_specialty_is_rejected_before_any_store_call(
    store: InMemoryJobStore, taxonomy: TaxonomyRegistry
) -> None:
    resolver = QueryResolver(store, taxonomy)
    request = ListingRequest(state_segment="ca", specialty_slug="not-a-real-specialty")
    assert asyncio.run(resolver.resolve(request)) is None
    assert store.calls == []


def test_unknown_state_and_salary_combinations_are_rejected(
    store: InMemoryJobStore, taxonomy: TaxonomyRegistry
) -> None:
    resolver = QueryResolver(store, taxonomy)
    assert asyncio.run(resolver.resolve(ListingRequest(state_segment="zz"))) is None
    assert asyncio.run(resolver.resolve(ListingRequest(job_type_slug="travel", salary=True))) is None
    assert (
        asyncio.run(resolver.resolve(ListingRequest(employer_slug="mercy-health", specialty_slug="icu", salary=True)))
        is None
    )
    assert store.calls == []


def test_resolves_aliases_to_canonical_context(store: InMemoryJobStore, taxonomy: TaxonomyRegistry) -> None:
    resolver = QueryResolver(store, taxonomy)
    resolved = asyncio.run(
        resolver.resolve(
            ListingRequest(
                state_segment="california",
                city_slug="los-angeles",
                specialty_slug="icu",
                job_type_slug="prn",
            )
        )
    )
    assert resolved is not None
    assert resolved.context.state == "CA"
    assert resolved.context.city_name == "Los Angeles"
    assert resolved.context.job_type == "Per Diem"
    assert resolved.page_type == "city-specialty-job-type"
    assert resolved.canonical_path == "/jobs/nursing/ca/los-angeles/icu/per-diem"


def test_city_without_any_history_is_not_found(store: InMemoryJobStore, taxonomy: TaxonomyRegistry) -> None:
    resolver = QueryResolver(store, taxonomy)
    assert asyncio.run(resolver.resolve(ListingRequest(state_segment="ca", city_slug="atlantis"))) is None
    assert asyncio.run(resolver.resolve(ListingRequest(state_segment="tx", city_slug="los-angeles"))) is None


def test_real_city_with_no_active_jobs_renders_empty_page(
    store: InMemoryJobStore, taxonomy: TaxonomyRegistry
) -> None:
    service = ListingService(store, taxonomy)
    result = asyncio.run(service.render(ListingRequest(state_segment="ca", city_slug="fresno")))
    assert result is not None
    assert result.page_type == "city"
    assert result.filters == {"state": "CA", "city": "Fresno"}
    assert result.total_jobs == 0
    assert result.jobs == []
    assert result.pagination.total_pages == 0
    assert result.max_hourly_rate is None


def test_employer_lookup(store: InMemoryJobStore, taxonomy: TaxonomyRegistry) -> None:
    resolver = QueryResolver(store, taxonomy)
    resolved = asyncio.run(resolver.resolve(ListingRequest(employer_slug="mercy-health", job_type_slug="travel")))
    assert resolved is not None
    assert resolved.context.employer is not None
    assert resolved.context.employer.id == "e1"
    assert resolved.page_type == "employer-job-type"

    assert asyncio.run(resolver.resolve(ListingRequest(employer_slug="nobody"))) is None


def test_page_and_limit_are_clamped(store: InMemoryJobStore, taxonomy: TaxonomyRegistry) -> None:
    resolver = QueryResolver(store, taxonomy, max_page_size=50)
    resolved = asyncio.run(resolver.resolve(ListingRequest(state_segment="ca"), page=0, limit=500))
    assert resolved is not None
    assert (resolved.context.page, resolved.context.limit) == (1, 50)


def test_job_detail_requests_are_not_listings(store: InMemoryJobStore, taxonomy: TaxonomyRegistry) -> None:
    resolver = QueryResolver(store, taxonomy)
    request = ListingRequest(job_slug="job-1")
    assert asyncio.run(resolver.resolve(request)) is None
