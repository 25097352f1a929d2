from __future__ import annotations

import asyncio
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
import logging
from typing import Any

from nursejobs.core.geography import city_slug, normalize_state, state_name
from nursejobs.core.taxonomy import DIMENSION_NAMES, Dimension, TaxonomyRegistry, slugify
from nursejobs.schemas.listings import FacetBucket, FacetScope
from nursejobs.services.filters import FilterContext, JobPredicate, not_null
from nursejobs.services.store import JobStore

logger = logging.getLogger(__name__)

FACET_SOURCES = ("state", "city", *DIMENSION_NAMES, "employer")
FACET_SOURCE_FIELDS = {
    "state": "state",
    "city": "city",
    "specialty": "specialty",
    "job_type": "job_type",
    "shift_type": "shift_type",
    "experience_level": "experience_level",
    "employer": "employer_id",
}


@dataclass(frozen=True, slots=True)
class FacetSpec:
    key: str
    source: str
    limit: int | None = None
    scope: FacetScope = "context"

    def __post_init__(self) -> None:
        if self.source not in FACET_SOURCES:
            raise ValueError(f"unsupported facet source: {self.source}")
        if self.limit is not None and self.limit < 0:
            raise ValueError("facet limit must be non-negative")


@dataclass(slots=True)
class _Accumulator:
    value: str
    slug: str
    display_name: str
    count: int = 0
    state: str | None = None


def _sort_and_cap(buckets: Iterable[_Accumulator], limit: int | None) -> list[FacetBucket]:
    ordered = sorted(buckets, key=lambda item: (-item.count, item.display_name.casefold(), item.slug))
    if limit is not None:
        ordered = ordered[:limit]
    return [
        FacetBucket(
            value=item.value,
            slug=item.slug,
            display_name=item.display_name,
            count=item.count,
            state=item.state,
        )
        for item in ordered
    ]


class FacetAggregator:
    """Folds grouped store counts into canonical "browse by X" buckets.

    Raw variants are summed into their canonical bucket before sorting and
    capping. The value pinned for a dimension never appears in that
    dimension's facet.
    """

    def __init__(self, store: JobStore, taxonomy: TaxonomyRegistry) -> None:
        self.store = store
        self.taxonomy = taxonomy

    def facet_predicate(self, spec: FacetSpec, context: FilterContext) -> JobPredicate:
        if spec.scope == "global":
            base = FilterContext()
        elif context.is_pinned(spec.source):
            base = context.without(spec.source)
        else:
            base = context
        return base.to_predicate(self.taxonomy).where(not_null(FACET_SOURCE_FIELDS[spec.source]))

    async def compute(self, spec: FacetSpec, context: FilterContext) -> list[FacetBucket]:
        buckets = await self._fold(spec, context)
        return _sort_and_cap(buckets, spec.limit)

    async def compute_all(
        self, specs: Sequence[FacetSpec], context: FilterContext
    ) -> dict[str, list[FacetBucket]]:
        # Specs that differ only by limit share one grouped query.
        unique: dict[tuple[str, str], FacetSpec] = {}
        for spec in specs:
            unique.setdefault((spec.source, spec.scope), spec)
        keys = list(unique)
        folded = await asyncio.gather(*(self._fold(unique[key], context) for key in keys))
        by_source = dict(zip(keys, folded))
        return {spec.key: _sort_and_cap(by_source[(spec.source, spec.scope)], spec.limit) for spec in specs}

    async def _fold(self, spec: FacetSpec, context: FilterContext) -> list[_Accumulator]:
        predicate = self.facet_predicate(spec, context)
        if spec.source == "city":
            rows = await self.store.grouped_count_by(("city", "state"), predicate)
            return self.fold_cities(rows, exclude=(context.city_slug, context.state))
        rows_single = await self.store.grouped_count(FACET_SOURCE_FIELDS[spec.source], predicate)
        if spec.source == "state":
            return self.fold_states(rows_single, exclude=context.state)
        if spec.source == "employer":
            exclude_id = context.employer.id if context.employer is not None else None
            return await self.fold_employers(rows_single, exclude=exclude_id)
        return self.fold_taxonomy(
            self.taxonomy.dimension(spec.source), rows_single, exclude=context.value_of(spec.source)
        )

    @staticmethod
    def fold_taxonomy(
        dimension: Dimension, rows: Iterable[tuple[Any, int]], *, exclude: str | None = None
    ) -> list[_Accumulator]:
        buckets: dict[str, _Accumulator] = {}
        unmatched: set[str] = set()
        for raw, count in rows:
            if raw is None or not str(raw).strip():
                continue
            value = dimension.canonicalize(str(raw))
            if value is not None:
                canonical, slug = value.canonical, value.slug
            else:
                # Pass-through values keep their own bucket so counts are conserved.
                canonical = dimension.normalize(str(raw)) or str(raw)
                slug = slugify(canonical)
                unmatched.add(canonical)
            if exclude and canonical == exclude:
                continue
            bucket = buckets.get(slug)
            if bucket is None:
                bucket = buckets[slug] = _Accumulator(value=canonical, slug=slug, display_name=canonical)
            bucket.count += int(count)
        if unmatched:
            logger.warning(
                "facet unmatched taxonomy values dimension=%s values=%s",
                dimension.name,
                ",".join(sorted(unmatched)),
            )
        return list(buckets.values())

    @staticmethod
    def fold_states(rows: Iterable[tuple[Any, int]], *, exclude: str | None = None) -> list[_Accumulator]:
        buckets: dict[str, _Accumulator] = {}
        excluded = exclude.upper() if exclude else None
        for raw, count in rows:
            if raw is None or not str(raw).strip():
                continue
            code = normalize_state(str(raw)) or str(raw).strip().upper()
            if code == excluded:
                continue
            bucket = buckets.get(code)
            if bucket is None:
                bucket = buckets[code] = _Accumulator(
                    value=code,
                    slug=code.lower(),
                    display_name=state_name(code) or code,
                )
            bucket.count += int(count)
        return list(buckets.values())

    @staticmethod
    def fold_cities(
        rows: Iterable[tuple[tuple[Any, ...], int]],
        *,
        exclude: tuple[str | None, str | None] = (None, None),
    ) -> list[_Accumulator]:
        buckets: dict[tuple[str, str], _Accumulator] = {}
        exclude_slug, exclude_state = exclude
        for (raw_city, raw_state), count in rows:
            slug = city_slug(raw_city)
            if slug is None:
                continue
            code = normalize_state(raw_state) or (str(raw_state).strip().upper() if raw_state else "")
            if exclude_slug and slug == exclude_slug and (not exclude_state or code == exclude_state.upper()):
                continue
            key = (slug, code)
            bucket = buckets.get(key)
            if bucket is None:
                # Rows arrive count-descending, so the first spelling is the most common one.
                display = str(raw_city).strip()
                bucket = buckets[key] = _Accumulator(
                    value=display,
                    slug=slug,
                    display_name=display,
                    state=code or None,
                )
            bucket.count += int(count)
        return list(buckets.values())

    async def fold_employers(
        self, rows: Iterable[tuple[Any, int]], *, exclude: str | None = None
    ) -> list[_Accumulator]:
        counts: dict[str, int] = {}
        for raw, count in rows:
            if raw is None:
                continue
            employer_id = str(raw)
            if exclude and employer_id == exclude:
                continue
            counts[employer_id] = counts.get(employer_id, 0) + int(count)
        if not counts:
            return []
        employers = {str(row["id"]): row for row in await self.store.get_employers(counts)}
        missing = [employer_id for employer_id in counts if employer_id not in employers]
        if missing:
            logger.info("facet dropped employers without records count=%s", len(missing))
        return [
            _Accumulator(
                value=employer_id,
                slug=str(employers[employer_id]["slug"]),
                display_name=str(employers[employer_id]["name"]),
                count=count,
            )
            for employer_id, count in counts.items()
            if employer_id in employers
        ]
