from __future__ import annotations

from typing import Any

from nursejobs.core.taxonomy import TaxonomyRegistry
from nursejobs.services.filters import FilterContext
from nursejobs.services.salary import calculate_salary_stats, salary_midpoint, salary_sample_predicate

MERCY = {"id": "e1", "name": "Mercy Health", "slug": "mercy-health"}
LUKES = {"id": "e2", "name": "St. Luke's", "slug": "st-lukes"}


def test_midpoint_uses_whichever_bounds_exist() -> None:
    assert salary_midpoint({"salary_min_hourly": 40, "salary_max_hourly": 60}) == 50.0
    assert salary_midpoint({"salary_min_hourly": 40, "salary_max_hourly": None}) == 40.0
    assert salary_midpoint({"salary_max_annual": 90000}, "annual") == 90000.0
    assert salary_midpoint({}) is None


def test_stats_exclude_travel_and_require_two_jobs_per_group(make_job: Any, taxonomy: TaxonomyRegistry) -> None:
    jobs = [
        make_job("a", specialty="ICU", salary_min_hourly=40.0, salary_max_hourly=60.0, employer=MERCY),
        make_job(
            "b",
            specialty="critical care",
            job_type="prn",
            salary_min_hourly=50.0,
            salary_max_hourly=70.0,
            employer=MERCY,
        ),
        make_job("c", specialty="ER", salary_min_hourly=45.0, employer=LUKES),
        make_job(
            "d",
            specialty="ICU",
            job_type="travel",
            salary_min_hourly=100.0,
            salary_max_hourly=120.0,
            employer=LUKES,
        ),
    ]
    stats = calculate_salary_stats(jobs, taxonomy)

    assert stats.job_count == 3
    assert stats.hourly is not None
    assert stats.hourly.model_dump() == {"average": 51.67, "min": 40.0, "max": 70.0, "job_count": 3}
    assert stats.annual is None
    assert [(row.name, row.slug, row.job_count) for row in stats.by_specialty] == [("ICU", "icu", 2)]
    assert [(row.name, row.slug, row.job_count) for row in stats.by_employer] == [
        ("Mercy Health", "mercy-health", 2)
    ]


def test_stats_for_empty_sample(taxonomy: TaxonomyRegistry) -> None:
    stats = calculate_salary_stats([], taxonomy)
    assert stats.job_count == 0
    assert stats.hourly is None
    assert stats.by_specialty == []


def test_sample_predicate_drops_leadership_but_keeps_unknown_levels(
    make_job: Any, taxonomy: TaxonomyRegistry
) -> None:
    predicate = salary_sample_predicate(FilterContext(state="CA"), taxonomy)
    assert predicate.matches(make_job("1", experience_level=None, salary_max_hourly=55.0))
    assert predicate.matches(make_job("2", experience_level="New Grad", salary_min_hourly=35.0))
    assert not predicate.matches(make_job("3", experience_level="Manager", salary_min_hourly=80.0))
    assert not predicate.matches(make_job("4", experience_level="Leadership", salary_min_hourly=80.0))
    assert not predicate.matches(make_job("5", salary_min_annual=90000.0))
    assert not predicate.matches(make_job("6", state="TX", salary_min_hourly=50.0))
