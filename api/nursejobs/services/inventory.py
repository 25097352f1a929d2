"""Enumerates every generated listing page that currently has active jobs.

The fingerprint worker hashes each entry's ``page_type`` and ``metadata``, so a
page is re-announced exactly when its identifying values or job count move.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
import logging
from typing import Any

from nursejobs.core.geography import city_slug, normalize_state
from nursejobs.core.taxonomy import TaxonomyRegistry
from nursejobs.schemas.listings import PageInventoryEntry
from nursejobs.services.filters import EmployerRef, FilterContext, JobPredicate
from nursejobs.services.paths import build_listing_path, page_type_for
from nursejobs.services.store import JobStore

logger = logging.getLogger(__name__)

_ACTIVE = JobPredicate()


class PageInventory:
    def __init__(self, store: JobStore, taxonomy: TaxonomyRegistry) -> None:
        self.store = store
        self.taxonomy = taxonomy

    async def build(self) -> list[PageInventoryEntry]:
        (
            states,
            cities,
            state_specialties,
            city_specialties,
            specialties,
            employers,
            employer_specialties,
            employer_job_types,
        ) = await asyncio.gather(
            self.store.grouped_count("state", _ACTIVE),
            self.store.grouped_count_by(("state", "city"), _ACTIVE),
            self.store.grouped_count_by(("state", "specialty"), _ACTIVE),
            self.store.grouped_count_by(("state", "city", "specialty"), _ACTIVE),
            self.store.grouped_count("specialty", _ACTIVE),
            self.store.grouped_count("employer_id", _ACTIVE),
            self.store.grouped_count_by(("employer_id", "specialty"), _ACTIVE),
            self.store.grouped_count_by(("employer_id", "job_type"), _ACTIVE),
        )

        entries: list[PageInventoryEntry] = []

        state_counts: dict[str, int] = defaultdict(int)
        for raw_state, count in states:
            code = normalize_state(raw_state)
            if code:
                state_counts[code] += count
        for code, count in state_counts.items():
            context = FilterContext(state=code)
            entries.extend(self._entries(context, {"state": code, "job_count": count}, salary=True))

        city_counts: dict[tuple[str, str], tuple[str, int]] = {}
        for (raw_state, raw_city), count in cities:
            code, slug = normalize_state(raw_state), city_slug(raw_city)
            if not code or not slug:
                continue
            name, total = city_counts.get((code, slug), (str(raw_city).strip(), 0))
            city_counts[(code, slug)] = (name, total + count)
        for (code, slug), (name, count) in city_counts.items():
            context = FilterContext(state=code, city_slug=slug, city_name=name)
            entries.extend(
                self._entries(context, {"state": code, "city": name, "job_count": count}, salary=True)
            )

        folded: dict[tuple[str, str], int] = defaultdict(int)
        for (raw_state, raw_specialty), count in state_specialties:
            code, specialty = normalize_state(raw_state), self._specialty(raw_specialty)
            if code and specialty:
                folded[(code, specialty)] += count
        for (code, specialty), count in folded.items():
            context = FilterContext(state=code, specialty=specialty)
            metadata = {"state": code, "specialty": specialty, "job_count": count}
            entries.extend(self._entries(context, metadata, salary=True))

        city_folded: dict[tuple[str, str, str], int] = defaultdict(int)
        for (raw_state, raw_city, raw_specialty), count in city_specialties:
            code, slug, specialty = normalize_state(raw_state), city_slug(raw_city), self._specialty(raw_specialty)
            if code and slug and specialty:
                city_folded[(code, slug, specialty)] += count
        for (code, slug, specialty), count in city_folded.items():
            name = city_counts.get((code, slug), (slug, 0))[0]
            context = FilterContext(state=code, city_slug=slug, city_name=name, specialty=specialty)
            metadata = {"state": code, "city": name, "specialty": specialty, "job_count": count}
            entries.extend(self._entries(context, metadata, salary=True))

        national: dict[str, int] = defaultdict(int)
        for raw_specialty, count in specialties:
            specialty = self._specialty(raw_specialty)
            if specialty:
                national[specialty] += count
        for specialty, count in national.items():
            context = FilterContext(specialty=specialty)
            entries.extend(self._entries(context, {"specialty": specialty, "job_count": count}, salary=True))

        employer_ids = {str(raw) for raw, _ in employers if raw is not None}
        employer_refs = {
            str(row["id"]): EmployerRef(id=str(row["id"]), name=str(row["name"]), slug=str(row["slug"]))
            for row in await self.store.get_employers(employer_ids)
        }
        for raw_id, _ in employers:
            employer = employer_refs.get(str(raw_id))
            if employer is not None:
                entries.extend(self._entries(FilterContext(employer=employer), {"employer": employer.slug}))

        employer_folded: dict[tuple[str, str, str], int] = defaultdict(int)
        for (raw_id, raw_specialty), count in employer_specialties:
            specialty = self._specialty(raw_specialty)
            if specialty and str(raw_id) in employer_refs:
                employer_folded[(str(raw_id), "specialty", specialty)] += count
        for (raw_id, raw_job_type), count in employer_job_types:
            value = self.taxonomy.job_type.canonicalize(raw_job_type)
            if value is not None and str(raw_id) in employer_refs:
                employer_folded[(str(raw_id), "job_type", value.canonical)] += count
        for (employer_id, dimension, canonical), count in employer_folded.items():
            employer = employer_refs[employer_id]
            context = FilterContext(employer=employer, **{dimension: canonical})
            metadata: dict[str, Any] = {"employer_id": employer_id, dimension: canonical, "job_count": count}
            entries.extend(self._entries(context, metadata))

        entries.sort(key=lambda entry: entry.path)
        logger.info("page inventory built pages=%s", len(entries))
        return entries

    def _specialty(self, raw: Any) -> str | None:
        value = self.taxonomy.specialty.canonicalize(raw)
        return value.canonical if value is not None else None

    def _entries(
        self, context: FilterContext, metadata: dict[str, Any], *, salary: bool = False
    ) -> list[PageInventoryEntry]:
        variants = (False, True) if salary else (False,)
        return [
            PageInventoryEntry(
                path=build_listing_path(context, self.taxonomy, salary=with_salary),
                page_type=page_type_for(context, salary=with_salary),
                metadata=dict(metadata),
            )
            for with_salary in variants
        ]
