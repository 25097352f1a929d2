"""Listing path grammar under ``/jobs/nursing``.

Parsed form (segments after the prefix)::

    employer/{employer}[/{job-type or specialty}[/{job-type}]]{tail}
    {state}[/{city or specialty}[/{specialty or job-type}[/{job-type}]]]{tail}
    {tail}

    tail: [specialty/{s}] [job-type/{j}] [experience/{l}] [shift/{h}] [sign-on-bonus] [salary]

Positional segments are disambiguated with the taxonomy; keyword segments may
appear in any order. ``build_listing_path`` emits the one canonical spelling and
``parse_listing_path`` accepts every spelling that maps onto the same context.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from nursejobs.core.geography import detect_state
from nursejobs.core.taxonomy import TaxonomyRegistry
from nursejobs.services.filters import FilterContext

LISTING_PREFIX = "/jobs/nursing"

KEYWORD_DIMENSIONS = {
    "specialty": "specialty",
    "job-type": "job_type",
    "experience": "experience_level",
    "shift": "shift_type",
}
FLAG_SEGMENTS = ("sign-on-bonus", "salary")
RESERVED_SEGMENTS = frozenset({*KEYWORD_DIMENSIONS, *FLAG_SEGMENTS, "employer"})

PAGE_TYPE_PARTS = (
    ("employer", "employer"),
    ("city", "city"),
    ("state", "state"),
    ("specialty", "specialty"),
    ("job_type", "job-type"),
    ("shift_type", "shift"),
    ("experience_level", "experience"),
    ("sign_on_bonus", "sign-on-bonus"),
)


@dataclass(frozen=True, slots=True)
class ListingRequest:
    """Raw, unvalidated path segments for one listing page."""

    state_segment: str | None = None
    city_slug: str | None = None
    specialty_slug: str | None = None
    job_type_slug: str | None = None
    shift_slug: str | None = None
    experience_slug: str | None = None
    employer_slug: str | None = None
    sign_on_bonus: bool = False
    salary: bool = False
    job_slug: str | None = None

    @property
    def is_job_detail(self) -> bool:
        return self.job_slug is not None


_REQUEST_FIELDS = {
    "specialty": "specialty_slug",
    "job_type": "job_type_slug",
    "experience_level": "experience_slug",
    "shift_type": "shift_slug",
}


def parse_listing_path(segments: Sequence[str], taxonomy: TaxonomyRegistry) -> ListingRequest | None:
    parts = [segment.strip() for segment in segments if segment.strip()]
    values: dict[str, object] = {}
    index = 0

    if parts and parts[0].lower() == "employer":
        if len(parts) < 2:
            return None
        values["employer_slug"] = parts[1].lower()
        index = 2
        index = _parse_employer_positionals(parts, index, values, taxonomy)
        if index < 0:
            return None
    elif parts and parts[0].lower() not in RESERVED_SEGMENTS:
        head = parts[0]
        if detect_state(head) is None:
            if len(parts) == 1:
                return ListingRequest(job_slug=head)
            return None
        values["state_segment"] = head.lower()
        index = _parse_geo_positionals(parts, 1, values, taxonomy)
        if index < 0:
            return None

    while index < len(parts):
        segment = parts[index].lower()
        if segment in KEYWORD_DIMENSIONS:
            target = _REQUEST_FIELDS[KEYWORD_DIMENSIONS[segment]]
            if target in values or index + 1 >= len(parts):
                return None
            values[target] = parts[index + 1].lower()
            index += 2
            continue
        if segment == "sign-on-bonus" and "sign_on_bonus" not in values:
            values["sign_on_bonus"] = True
            index += 1
            continue
        if segment == "salary" and index == len(parts) - 1:
            values["salary"] = True
            index += 1
            continue
        return None

    if not values:
        return None
    return ListingRequest(**values)  # type: ignore[arg-type]


def _parse_employer_positionals(
    parts: Sequence[str], index: int, values: dict[str, object], taxonomy: TaxonomyRegistry
) -> int:
    if index < len(parts) and parts[index].lower() not in RESERVED_SEGMENTS:
        segment = parts[index].lower()
        # Job types win over specialties on employer paths.
        if taxonomy.job_type.is_valid_slug(segment):
            values["job_type_slug"] = segment
            return index + 1
        values["specialty_slug"] = segment
        index += 1
        if index < len(parts) and parts[index].lower() not in RESERVED_SEGMENTS:
            values["job_type_slug"] = parts[index].lower()
            index += 1
    return index


def _parse_geo_positionals(
    parts: Sequence[str], index: int, values: dict[str, object], taxonomy: TaxonomyRegistry
) -> int:
    if index >= len(parts) or parts[index].lower() in RESERVED_SEGMENTS:
        return index
    segment = parts[index].lower()
    if taxonomy.specialty.is_valid_slug(segment):
        values["specialty_slug"] = segment
        index += 1
        if index < len(parts) and parts[index].lower() not in RESERVED_SEGMENTS:
            values["job_type_slug"] = parts[index].lower()
            index += 1
        return index

    values["city_slug"] = segment
    index += 1
    if index < len(parts) and parts[index].lower() not in RESERVED_SEGMENTS:
        values["specialty_slug"] = parts[index].lower()
        index += 1
        if index < len(parts) and parts[index].lower() not in RESERVED_SEGMENTS:
            values["job_type_slug"] = parts[index].lower()
            index += 1
    return index


def build_listing_path(context: FilterContext, taxonomy: TaxonomyRegistry, *, salary: bool = False) -> str:
    segments: list[str] = []
    specialty_slug = taxonomy.specialty.to_slug(context.specialty) if context.specialty else None
    job_type_slug = taxonomy.job_type.to_slug(context.job_type) if context.job_type else None
    job_type_placed = False

    if context.employer is not None:
        segments.extend(["employer", context.employer.slug])
        if specialty_slug:
            segments.append(specialty_slug)
        if job_type_slug:
            segments.append(job_type_slug)
            job_type_placed = True
        specialty_slug = None
    elif context.state:
        segments.append(context.state.lower())
        if context.city_slug:
            segments.append(context.city_slug)
        if specialty_slug:
            segments.append(specialty_slug)
            if job_type_slug:
                segments.append(job_type_slug)
                job_type_placed = True
            specialty_slug = None

    if specialty_slug:
        segments.extend(["specialty", specialty_slug])
    if job_type_slug and not job_type_placed:
        segments.extend(["job-type", job_type_slug])
    if context.experience_level:
        segments.extend(["experience", taxonomy.experience_level.to_slug(context.experience_level) or ""])
    if context.shift_type:
        segments.extend(["shift", taxonomy.shift_type.to_slug(context.shift_type) or ""])
    if context.sign_on_bonus:
        segments.append("sign-on-bonus")
    if salary:
        segments.append("salary")
    if not segments:
        return LISTING_PREFIX
    return f"{LISTING_PREFIX}/{'/'.join(segments)}"


def page_type_for(context: FilterContext, *, salary: bool = False) -> str:
    parts: list[str] = []
    for dimension, label in PAGE_TYPE_PARTS:
        if dimension == "state" and context.city_slug:
            continue
        if context.is_pinned(dimension):
            parts.append(label)
    if salary:
        parts.append("salary")
    return "-".join(parts) or "national"
