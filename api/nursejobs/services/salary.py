from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from nursejobs.core.taxonomy import TaxonomyRegistry
from nursejobs.schemas.listings import SalaryBreakdown, SalaryRange, SalaryStats
from nursejobs.services.filters import FilterContext, JobPredicate, any_not_null, none_of

# Travel pay is quoted weekly and would skew hourly and annual figures.
EXCLUDED_JOB_TYPE = "Travel"
EXCLUDED_EXPERIENCE_LEVEL = "Leadership"
MIN_BREAKDOWN_JOBS = 2


def salary_sample_predicate(context: FilterContext, taxonomy: TaxonomyRegistry) -> JobPredicate:
    leadership = taxonomy.experience_level.to_db_values(EXCLUDED_EXPERIENCE_LEVEL) or [EXCLUDED_EXPERIENCE_LEVEL]
    return context.to_predicate(taxonomy).where(
        none_of("experience_level", leadership),
        any_not_null("salary_min_hourly", "salary_max_hourly"),
    )


def salary_midpoint(job: dict[str, Any], period: str = "hourly") -> float | None:
    low = job.get(f"salary_min_{period}")
    high = job.get(f"salary_max_{period}")
    if low is not None and high is not None:
        return (float(low) + float(high)) / 2
    if low is not None:
        return float(low)
    if high is not None:
        return float(high)
    return None


def _salary_range(jobs: Sequence[dict[str, Any]], period: str) -> SalaryRange | None:
    midpoints = [value for value in (salary_midpoint(job, period) for job in jobs) if value is not None]
    if not midpoints:
        return None
    lows = [float(job[f"salary_min_{period}"]) for job in jobs if job.get(f"salary_min_{period}") is not None]
    highs = [float(job[f"salary_max_{period}"]) for job in jobs if job.get(f"salary_max_{period}") is not None]
    return SalaryRange(
        average=round(sum(midpoints) / len(midpoints), 2),
        min=min(lows) if lows else min(midpoints),
        max=max(highs) if highs else max(midpoints),
        job_count=len(midpoints),
    )


def _has_salary(job: dict[str, Any], period: str) -> bool:
    return job.get(f"salary_min_{period}") is not None or job.get(f"salary_max_{period}") is not None


def _breakdown(groups: dict[str, tuple[str | None, list[dict[str, Any]]]]) -> list[SalaryBreakdown]:
    rows: list[SalaryBreakdown] = []
    for name, (slug, jobs) in groups.items():
        if len(jobs) < MIN_BREAKDOWN_JOBS:
            continue
        hourly = _salary_range(jobs, "hourly")
        annual = _salary_range(jobs, "annual")
        if hourly is None and annual is None:
            continue
        rows.append(SalaryBreakdown(name=name, slug=slug, hourly=hourly, annual=annual, job_count=len(jobs)))
    rows.sort(key=lambda row: (-row.job_count, row.name.casefold()))
    return rows


def calculate_salary_stats(jobs: Iterable[dict[str, Any]], taxonomy: TaxonomyRegistry) -> SalaryStats:
    sample = [job for job in jobs if taxonomy.job_type.normalize(job.get("job_type")) != EXCLUDED_JOB_TYPE]
    with_hourly = [job for job in sample if _has_salary(job, "hourly")]
    with_annual = [job for job in sample if _has_salary(job, "annual")]

    by_specialty: dict[str, tuple[str | None, list[dict[str, Any]]]] = {}
    by_employer: dict[str, tuple[str | None, list[dict[str, Any]]]] = {}
    for job in with_hourly:
        specialty = taxonomy.specialty.normalize(job.get("specialty"))
        if specialty:
            by_specialty.setdefault(specialty, (taxonomy.specialty.to_slug(specialty), []))[1].append(job)
        employer = job.get("employer")
        if isinstance(employer, dict) and employer.get("name"):
            by_employer.setdefault(str(employer["name"]), (employer.get("slug"), []))[1].append(job)

    return SalaryStats(
        hourly=_salary_range(with_hourly, "hourly"),
        annual=_salary_range(with_annual, "annual"),
        job_count=len(with_hourly),
        by_specialty=_breakdown(by_specialty),
        by_employer=_breakdown(by_employer),
    )
