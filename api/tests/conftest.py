from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from nursejobs.core.taxonomy import TaxonomyRegistry, build_default_registry
from nursejobs.services.store import InMemoryJobStore

JobFactory = Callable[..., dict[str, Any]]

BASE_TIME = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

EMPLOYERS = [
    {"id": "e1", "name": "Mercy Health", "slug": "mercy-health"},
    {"id": "e2", "name": "St. Luke's", "slug": "st-lukes"},
    {"id": "e3", "name": "Valley Care", "slug": "valley-care"},
]


def _make_job(job_id: str, minute: int = 0, **fields: Any) -> dict[str, Any]:
    job: dict[str, Any] = {
        "id": job_id,
        "slug": f"job-{job_id}",
        "title": f"Registered Nurse {job_id}",
        "state": "CA",
        "city": "Los Angeles",
        "specialty": "ICU",
        "job_type": "Full Time",
        "shift_type": "Day Shift",
        "experience_level": "Experienced",
        "employer_id": "e1",
        "is_active": True,
        "scraped_at": BASE_TIME + timedelta(minutes=minute),
        "posted_date": None,
        "salary_min_hourly": None,
        "salary_max_hourly": None,
        "salary_min_annual": None,
        "salary_max_annual": None,
        "has_sign_on_bonus": False,
    }
    job.update(fields)
    return job


@pytest.fixture
def make_job() -> JobFactory:
    return _make_job


@pytest.fixture
def taxonomy() -> TaxonomyRegistry:
    return build_default_registry()


@pytest.fixture
def employers() -> list[dict[str, Any]]:
    return [dict(row) for row in EMPLOYERS]


@pytest.fixture
def sample_jobs() -> list[dict[str, Any]]:
    """Ten active jobs (eight in CA, two in TX) and two inactive ones.

    Per diem is spelled five different ways across six jobs.
    """
    return [
        _make_job("1", 100, job_type="Full Time", salary_min_hourly=50.0, salary_max_hourly=70.0),
        _make_job("2", 90, job_type="per-diem", salary_min_hourly=60.0, salary_max_hourly=80.0),
        _make_job("3", 80, job_type="PRN", employer_id="e2", salary_min_hourly=55.0),
        _make_job("4", 70, specialty="ER", job_type="Per Diem", employer_id="e2"),
        _make_job("5", 60, specialty="l&d", job_type="prn", employer_id="e3"),
        _make_job("6", 50, specialty="Med-Surg", job_type="per diem", has_sign_on_bonus=True),
        _make_job("7", 40, city="San Diego", job_type="Travel", employer_id="e3", salary_max_hourly=120.0),
        _make_job("8", 30, city="San Diego", specialty="Critical Care"),
        _make_job("9", 20, state="TX", city="Houston", job_type="Per Diem", employer_id="e2"),
        _make_job("10", 10, state="TX", city="Houston", specialty="ER", job_type="Contract", employer_id="e2"),
        _make_job("11", 5, city="Fresno", is_active=False),
        _make_job("12", 1, is_active=False),
    ]


@pytest.fixture
def store(sample_jobs: list[dict[str, Any]], employers: list[dict[str, Any]]) -> InMemoryJobStore:
    return InMemoryJobStore(sample_jobs, employers)
