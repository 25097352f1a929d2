from __future__ import annotations

import asyncio
from typing import Any

from nursejobs.core.taxonomy import TaxonomyRegistry
from nursejobs.schemas.listings import FacetBucket
from nursejobs.services.facets import FacetAggregator, FacetSpec
from nursejobs.services.filters import EmployerRef, FilterContext
from nursejobs.services.store import InMemoryJobStore


def _counts(buckets: list[FacetBucket]) -> dict[str, int]:
    return {bucket.slug: bucket.count for bucket in buckets}


def test_job_type_variants_merge_into_one_bucket(store: InMemoryJobStore, taxonomy: TaxonomyRegistry) -> None:
    aggregator = FacetAggregator(store, taxonomy)
    buckets = asyncio.run(aggregator.compute(FacetSpec("job_types", "job_type", None, "global"), FilterContext()))

    assert buckets[0].slug == "per-diem"
    assert buckets[0].value == "Per Diem"
    assert buckets[0].count == 6
    assert _counts(buckets) == {"per-diem": 6, "full-time": 2, "contract": 1, "travel": 1}


def test_folding_conserves_counts(store: InMemoryJobStore, taxonomy: TaxonomyRegistry) -> None:
    aggregator = FacetAggregator(store, taxonomy)
    specialties = asyncio.run(
        aggregator.compute(FacetSpec("specialties", "specialty", None, "global"), FilterContext())
    )
    assert _counts(specialties) == {"icu": 6, "er": 2, "labor-delivery": 1, "med-surg": 1}
    assert sum(bucket.count for bucket in specialties) == 10


def test_unmatched_values_keep_a_bucket(
    make_job: Any, employers: list[dict[str, Any]], taxonomy: TaxonomyRegistry
) -> None:
    store = InMemoryJobStore(
        [make_job("1", specialty="Aesthetics"), make_job("2", specialty="ICU"), make_job("3", specialty=None)],
        employers,
    )
    buckets = asyncio.run(
        FacetAggregator(store, taxonomy).compute(FacetSpec("specialties", "specialty"), FilterContext())
    )
    assert _counts(buckets) == {"aesthetics": 1, "icu": 1}


def test_ties_sort_by_display_name_and_limit_caps(
    make_job: Any, employers: list[dict[str, Any]], taxonomy: TaxonomyRegistry
) -> None:
    jobs = [
        make_job("1", specialty="Oncology"),
        make_job("2", specialty="Cardiac"),
        make_job("3", specialty="Neurology"),
        make_job("4", specialty="neuro"),
    ]
    aggregator = FacetAggregator(InMemoryJobStore(jobs, employers), taxonomy)
    buckets = asyncio.run(aggregator.compute(FacetSpec("specialties", "specialty", 2), FilterContext()))
    assert [(bucket.value, bucket.count) for bucket in buckets] == [("Neurology", 2), ("Cardiac", 1)]


def test_pinned_dimension_lists_siblings(store: InMemoryJobStore, taxonomy: TaxonomyRegistry) -> None:
    aggregator = FacetAggregator(store, taxonomy)
    context = FilterContext(state="CA", specialty="ICU")

    specialties = asyncio.run(aggregator.compute(FacetSpec("specialties", "specialty"), context))
    assert _counts(specialties) == {"er": 1, "labor-delivery": 1, "med-surg": 1}

    job_types = asyncio.run(aggregator.compute(FacetSpec("job_types", "job_type"), context))
    assert _counts(job_types) == {"per-diem": 2, "full-time": 2, "travel": 1}


def test_city_facet_groups_by_slug_and_state(store: InMemoryJobStore, taxonomy: TaxonomyRegistry) -> None:
    aggregator = FacetAggregator(store, taxonomy)
    cities = asyncio.run(aggregator.compute(FacetSpec("cities", "city"), FilterContext(state="CA")))
    assert [(bucket.display_name, bucket.slug, bucket.state, bucket.count) for bucket in cities] == [
        ("Los Angeles", "los-angeles", "CA", 6),
        ("San Diego", "san-diego", "CA", 2),
    ]

    siblings = asyncio.run(
        aggregator.compute(FacetSpec("cities", "city"), FilterContext(state="CA", city_slug="los-angeles"))
    )
    assert _counts(siblings) == {"san-diego": 2}


def test_state_facet_uses_display_names(store: InMemoryJobStore, taxonomy: TaxonomyRegistry) -> None:
    aggregator = FacetAggregator(store, taxonomy)
    states = asyncio.run(aggregator.compute(FacetSpec("states", "state", None, "global"), FilterContext()))
    assert [(bucket.value, bucket.display_name, bucket.count) for bucket in states] == [
        ("CA", "California", 8),
        ("TX", "Texas", 2),
    ]
    excluded = asyncio.run(aggregator.compute(FacetSpec("states", "state", None, "global"), FilterContext(state="TX")))
    assert _counts(excluded) == {"ca": 8}


def test_employer_facet_enriches_and_drops_unknown(
    store: InMemoryJobStore, make_job: Any, taxonomy: TaxonomyRegistry
) -> None:
    store.jobs.append(make_job("99", employer_id="ghost"))
    aggregator = FacetAggregator(store, taxonomy)
    employers = asyncio.run(aggregator.compute(FacetSpec("employers", "employer"), FilterContext()))
    assert [(bucket.display_name, bucket.slug, bucket.count) for bucket in employers] == [
        ("Mercy Health", "mercy-health", 4),
        ("St. Luke's", "st-lukes", 4),
        ("Valley Care", "valley-care", 2),
    ]

    mercy = EmployerRef(id="e1", name="Mercy Health", slug="mercy-health")
    others = asyncio.run(aggregator.compute(FacetSpec("employers", "employer"), FilterContext(employer=mercy)))
    assert "mercy-health" not in _counts(others)


def test_compute_all_shares_queries_between_limits(store: InMemoryJobStore, taxonomy: TaxonomyRegistry) -> None:
    aggregator = FacetAggregator(store, taxonomy)
    specs = (FacetSpec("cities", "city", 1), FacetSpec("all_cities", "city", None))
    stats = asyncio.run(aggregator.compute_all(specs, FilterContext(state="CA")))
    assert [bucket.slug for bucket in stats["cities"]] == ["los-angeles"]
    assert [bucket.slug for bucket in stats["all_cities"]] == ["los-angeles", "san-diego"]
    assert store.calls.count("grouped_count") == 1
