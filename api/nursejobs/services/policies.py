"""Facet list-size policy per page type.

Unbounded facets (``limit=None``) exist for internal-link breadth; capped ones
keep the page short. Limits can be overridden per deployment through
``NJ_FACET_LIMIT_OVERRIDES_JSON``, e.g. ``{"city-specialty": {"employers": 20}}``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
import json
import logging

from nursejobs.core.taxonomy import DIMENSION_NAMES
from nursejobs.services.facets import FacetSpec
from nursejobs.services.filters import FilterContext

logger = logging.getLogger(__name__)

FacetLimitOverrides = dict[str, dict[str, int | None]]

FACET_KEYS = {
    "state": "states",
    "city": "cities",
    "specialty": "specialties",
    "job_type": "job_types",
    "shift_type": "shift_types",
    "experience_level": "experience_levels",
    "employer": "employers",
}

PAGE_FACET_POLICIES: dict[str, tuple[FacetSpec, ...]] = {
    "state": (
        FacetSpec("cities", "city", 5),
        FacetSpec("all_cities", "city", None),
        FacetSpec("specialties", "specialty", 5),
        FacetSpec("job_types", "job_type", None),
        FacetSpec("employers", "employer", 5),
    ),
    "city": (
        FacetSpec("specialties", "specialty", None),
        FacetSpec("employers", "employer", 5),
        FacetSpec("all_states", "state", None, "global"),
        FacetSpec("job_types", "job_type", None),
    ),
    "specialty": (
        FacetSpec("states", "state", 5),
        FacetSpec("cities", "city", 5),
        FacetSpec("employers", "employer", 5),
        FacetSpec("specialties", "specialty", None, "global"),
        FacetSpec("job_types", "job_type", None),
    ),
    "job-type": (
        FacetSpec("states", "state", None),
        FacetSpec("specialties", "specialty", 20),
        FacetSpec("employers", "employer", 20),
        FacetSpec("job_types", "job_type", None, "global"),
    ),
    "experience": (
        FacetSpec("states", "state", None),
        FacetSpec("specialties", "specialty", 20),
        FacetSpec("employers", "employer", 20),
        FacetSpec("experience_levels", "experience_level", None, "global"),
    ),
    "shift": (
        FacetSpec("states", "state", None),
        FacetSpec("specialties", "specialty", 20),
        FacetSpec("employers", "employer", 20),
        FacetSpec("shift_types", "shift_type", None, "global"),
    ),
    "state-specialty": (
        FacetSpec("cities", "city", None),
        FacetSpec("employers", "employer", 5),
        FacetSpec("specialties", "specialty", None),
        FacetSpec("job_types", "job_type", None),
    ),
    "city-specialty": (
        FacetSpec("employers", "employer", 10),
        FacetSpec("specialties", "specialty", None),
        FacetSpec("job_types", "job_type", None),
    ),
    "state-job-type": (
        FacetSpec("cities", "city", 10),
        FacetSpec("specialties", "specialty", 20),
        FacetSpec("employers", "employer", 10),
        FacetSpec("job_types", "job_type", None),
    ),
    "city-job-type": (
        FacetSpec("specialties", "specialty", None),
        FacetSpec("employers", "employer", 10),
        FacetSpec("job_types", "job_type", None),
    ),
    "employer": (
        FacetSpec("states", "state", 5),
        FacetSpec("cities", "city", 5),
        FacetSpec("specialties", "specialty", 5),
        FacetSpec("job_types", "job_type", None),
        FacetSpec("experience_levels", "experience_level", None),
    ),
    "employer-specialty": (
        FacetSpec("states", "state", 5),
        FacetSpec("cities", "city", 5),
        FacetSpec("specialties", "specialty", None),
        FacetSpec("job_types", "job_type", None),
    ),
    "employer-job-type": (
        FacetSpec("states", "state", 5),
        FacetSpec("specialties", "specialty", 20),
        FacetSpec("job_types", "job_type", None),
    ),
    "state-salary": (
        FacetSpec("cities", "city", None),
        FacetSpec("all_states", "state", None, "global"),
    ),
    "city-salary": (
        FacetSpec("cities", "city", None),
        FacetSpec("all_states", "state", None, "global"),
    ),
    "specialty-salary": (
        FacetSpec("states", "state", None),
        FacetSpec("specialties", "specialty", None, "global"),
    ),
    "state-specialty-salary": (
        FacetSpec("cities", "city", None),
        FacetSpec("specialties", "specialty", None),
    ),
    "city-specialty-salary": (FacetSpec("specialties", "specialty", None),),
}

DEFAULT_EMPLOYER_LIMIT = 10
DEFAULT_GEOGRAPHY_LIMIT = 10


def default_policy(context: FilterContext) -> tuple[FacetSpec, ...]:
    specs: list[FacetSpec] = []
    if not context.state and context.employer is None:
        specs.append(FacetSpec("states", "state", DEFAULT_GEOGRAPHY_LIMIT))
    if context.state and not context.city_slug:
        specs.append(FacetSpec("cities", "city", DEFAULT_GEOGRAPHY_LIMIT))
    for name in DIMENSION_NAMES:
        specs.append(FacetSpec(FACET_KEYS[name], name, None))
    if context.employer is None:
        specs.append(FacetSpec("employers", "employer", DEFAULT_EMPLOYER_LIMIT))
    return tuple(specs)


def facet_policy(
    page_type: str,
    context: FilterContext,
    overrides: Mapping[str, Mapping[str, int | None]] | None = None,
) -> tuple[FacetSpec, ...]:
    specs = PAGE_FACET_POLICIES.get(page_type) or default_policy(context)
    page_overrides = (overrides or {}).get(page_type)
    if not page_overrides:
        return specs
    return tuple(replace(spec, limit=page_overrides[spec.key]) if spec.key in page_overrides else spec for spec in specs)


def parse_facet_limit_overrides(raw: str | None) -> FacetLimitOverrides:
    if not raw:
        return {}
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("ignoring malformed facet limit overrides")
        return {}
    if not isinstance(decoded, dict):
        return {}

    parsed: FacetLimitOverrides = {}
    for raw_page_type, raw_limits in decoded.items():
        if not isinstance(raw_page_type, str) or not isinstance(raw_limits, dict):
            continue
        page_type = raw_page_type.strip().lower()
        limits: dict[str, int | None] = {}
        for key, value in raw_limits.items():
            if not isinstance(key, str):
                continue
            if value is None:
                limits[key] = None
            elif isinstance(value, int) and not isinstance(value, bool) and value >= 0:
                limits[key] = value
        if page_type and limits:
            parsed[page_type] = limits
    return parsed
