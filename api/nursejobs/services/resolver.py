from __future__ import annotations

from dataclasses import dataclass, replace
import logging

from nursejobs.core.geography import detect_state
from nursejobs.core.taxonomy import TaxonomyRegistry
from nursejobs.services.filters import EmployerRef, FilterContext, JobPredicate, city_is, equals
from nursejobs.services.paths import ListingRequest, build_listing_path, page_type_for
from nursejobs.services.store import JobStore

logger = logging.getLogger(__name__)

SALARY_PAGE_TYPES = frozenset(
    {"state-salary", "city-salary", "specialty-salary", "state-specialty-salary", "city-specialty-salary"}
)

_SLUG_DIMENSIONS = (
    ("specialty_slug", "specialty"),
    ("job_type_slug", "job_type"),
    ("shift_slug", "shift_type"),
    ("experience_slug", "experience_level"),
)


@dataclass(frozen=True, slots=True)
class ResolvedListing:
    context: FilterContext
    page_type: str
    canonical_path: str
    salary: bool = False


class QueryResolver:
    """Turns listing path segments into a FilterContext, or ``None`` for not-found.

    Slugs are validated against the taxonomy before any store call. A city is
    accepted when it has ever had a posting, active or not, so a real city with
    nothing matching today still renders an empty page.
    """

    def __init__(self, store: JobStore, taxonomy: TaxonomyRegistry, *, max_page_size: int = 100) -> None:
        self.store = store
        self.taxonomy = taxonomy
        self.max_page_size = max(1, max_page_size)

    async def resolve(self, request: ListingRequest, *, page: int = 1, limit: int = 20) -> ResolvedListing | None:
        if request.is_job_detail:
            return None

        state = None
        if request.state_segment:
            state = detect_state(request.state_segment)
            if state is None:
                return None
        if request.city_slug and state is None:
            return None

        canonical: dict[str, str | None] = {}
        for attribute, dimension_name in _SLUG_DIMENSIONS:
            slug = getattr(request, attribute)
            if not slug:
                canonical[dimension_name] = None
                continue
            value = self.taxonomy.dimension(dimension_name).to_display(slug)
            if value is None:
                logger.info("listing slug rejected dimension=%s slug=%s", dimension_name, slug)
                return None
            canonical[dimension_name] = value

        context = FilterContext(
            state=state.code if state else None,
            city_slug=request.city_slug,
            sign_on_bonus=request.sign_on_bonus,
            page=max(1, page),
            limit=min(max(1, limit), self.max_page_size),
            **canonical,
        )
        page_type = page_type_for(context, salary=request.salary)
        if request.salary and (request.employer_slug or page_type not in SALARY_PAGE_TYPES):
            return None

        if request.employer_slug:
            employer = await self.store.find_employer_by_slug(request.employer_slug)
            if employer is None:
                logger.info("listing employer not found slug=%s", request.employer_slug)
                return None
            context = replace(
                context,
                employer=EmployerRef(id=str(employer["id"]), name=str(employer["name"]), slug=str(employer["slug"])),
            )
            page_type = page_type_for(context, salary=request.salary)

        if context.city_slug and context.state:
            city_name = await self.probe_city(context.state, context.city_slug)
            if city_name is None:
                logger.info("listing city never seen state=%s city=%s", context.state, context.city_slug)
                return None
            context = replace(context, city_name=city_name)

        return ResolvedListing(
            context=context,
            page_type=page_type,
            canonical_path=build_listing_path(context, self.taxonomy, salary=request.salary),
            salary=request.salary,
        )

    async def probe_city(self, state_code: str, slug: str) -> str | None:
        predicate = JobPredicate(conditions=(equals("state", state_code), city_is(slug))).with_inactive()
        rows = await self.store.filtered_fetch(predicate, offset=0, limit=1)
        if not rows:
            return None
        city = rows[0].get("city")
        return str(city).strip() if city else None

