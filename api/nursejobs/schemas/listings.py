from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

FacetScope = Literal["context", "global"]


class EmployerOut(BaseModel):
    id: str
    name: str
    slug: str


class JobOut(BaseModel):
    id: str
    slug: str
    title: str | None = None
    state: str | None = None
    city: str | None = None
    specialty: str | None = None
    job_type: str | None = None
    shift_type: str | None = None
    experience_level: str | None = None
    employer_id: str | None = None
    employer: EmployerOut | None = None
    is_active: bool = True
    scraped_at: datetime | None = None
    posted_date: datetime | None = None
    salary_min_hourly: float | None = None
    salary_max_hourly: float | None = None
    salary_min_annual: float | None = None
    salary_max_annual: float | None = None
    has_sign_on_bonus: bool = False


class FacetBucket(BaseModel):
    value: str
    slug: str
    display_name: str
    count: int
    state: str | None = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class PageResult(BaseModel):
    page_type: str
    filters: dict[str, Any] = Field(default_factory=dict)
    canonical_path: str
    jobs: list[JobOut] = Field(default_factory=list)
    pagination: Pagination
    total_jobs: int
    stats: dict[str, list[FacetBucket]] = Field(default_factory=dict)
    max_hourly_rate: float | None = None


class JobDetailOut(BaseModel):
    job: JobOut
    canonical_path: str
    related_jobs: list[JobOut] = Field(default_factory=list)


class SalaryRange(BaseModel):
    average: float
    min: float
    max: float
    job_count: int


class SalaryBreakdown(BaseModel):
    name: str
    slug: str | None = None
    hourly: SalaryRange | None = None
    annual: SalaryRange | None = None
    job_count: int


class SalaryStats(BaseModel):
    hourly: SalaryRange | None = None
    annual: SalaryRange | None = None
    job_count: int
    by_specialty: list[SalaryBreakdown] = Field(default_factory=list)
    by_employer: list[SalaryBreakdown] = Field(default_factory=list)


class SalaryPageResult(BaseModel):
    page_type: str
    filters: dict[str, Any] = Field(default_factory=dict)
    canonical_path: str
    salary: SalaryStats
    stats: dict[str, list[FacetBucket]] = Field(default_factory=dict)


class BrowseStats(BaseModel):
    total_jobs: int
    states: list[FacetBucket] = Field(default_factory=list)
    employers: list[FacetBucket] = Field(default_factory=list)
    specialties: list[FacetBucket] = Field(default_factory=list)
    job_types: list[FacetBucket] = Field(default_factory=list)


class PageInventoryEntry(BaseModel):
    path: str
    page_type: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class PageInventoryOut(BaseModel):
    total: int
    pages: list[PageInventoryEntry] = Field(default_factory=list)
