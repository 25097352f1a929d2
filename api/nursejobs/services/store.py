from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone
from typing import Any, Protocol

from nursejobs.services.filters import JobPredicate
from nursejobs.services.repository import validate_aggregate, validate_group_fields

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class JobStore(Protocol):
    """Read-only access to job and employer records."""

    async def filtered_fetch(self, predicate: JobPredicate, *, offset: int, limit: int) -> list[dict[str, Any]]: ...

    async def count(self, predicate: JobPredicate) -> int: ...

    async def grouped_count(self, field: str, predicate: JobPredicate) -> list[tuple[Any, int]]: ...

    async def grouped_count_by(
        self, fields: Sequence[str], predicate: JobPredicate
    ) -> list[tuple[tuple[Any, ...], int]]: ...

    async def aggregate(self, predicate: JobPredicate, metric: str, field: str) -> float | None: ...

    async def find_employer_by_slug(self, slug: str) -> dict[str, Any] | None: ...

    async def get_employers(self, employer_ids: Iterable[str]) -> list[dict[str, Any]]: ...

    async def get_job_by_slug(self, slug: str) -> dict[str, Any] | None: ...

    async def close(self) -> None: ...


class InMemoryJobStore:
    """Job store over plain dicts, evaluated with the same predicates as the SQL store."""

    def __init__(
        self,
        jobs: Iterable[dict[str, Any]] = (),
        employers: Iterable[dict[str, Any]] = (),
    ) -> None:
        self.jobs: list[dict[str, Any]] = [dict(job) for job in jobs]
        self.employers: dict[str, dict[str, Any]] = {str(row["id"]): dict(row) for row in employers}
        self.calls: list[str] = []

    def _select(self, predicate: JobPredicate) -> list[dict[str, Any]]:
        return [job for job in self.jobs if predicate.matches(job)]

    def _with_employer(self, job: dict[str, Any]) -> dict[str, Any]:
        row = dict(job)
        employer = self.employers.get(str(job.get("employer_id")))
        row["employer"] = (
            {"id": employer["id"], "name": employer["name"], "slug": employer["slug"]} if employer else None
        )
        return row

    async def filtered_fetch(self, predicate: JobPredicate, *, offset: int, limit: int) -> list[dict[str, Any]]:
        self.calls.append("filtered_fetch")
        rows = sorted(self._select(predicate), key=lambda job: str(job.get("id")))
        rows.sort(key=lambda job: job.get("scraped_at") or _EPOCH, reverse=True)
        return [self._with_employer(job) for job in rows[offset : offset + limit]]

    async def count(self, predicate: JobPredicate) -> int:
        self.calls.append("count")
        return len(self._select(predicate))

    async def grouped_count(self, field: str, predicate: JobPredicate) -> list[tuple[Any, int]]:
        rows = await self.grouped_count_by((field,), predicate)
        return [(key[0], count) for key, count in rows]

    async def grouped_count_by(
        self, fields: Sequence[str], predicate: JobPredicate
    ) -> list[tuple[tuple[Any, ...], int]]:
        validate_group_fields(fields)
        self.calls.append("grouped_count")
        counter: Counter[tuple[Any, ...]] = Counter(
            tuple(job.get(name) for name in fields) for job in self._select(predicate)
        )
        return sorted(counter.items(), key=lambda item: (-item[1], tuple(str(part) for part in item[0])))

    async def aggregate(self, predicate: JobPredicate, metric: str, field: str) -> float | None:
        validate_aggregate(metric, field)
        self.calls.append("aggregate")
        values = [float(job[field]) for job in self._select(predicate) if job.get(field) is not None]
        if not values:
            return None
        if metric == "max":
            return max(values)
        if metric == "min":
            return min(values)
        if metric == "sum":
            return sum(values)
        return sum(values) / len(values)

    async def find_employer_by_slug(self, slug: str) -> dict[str, Any] | None:
        self.calls.append("find_employer_by_slug")
        for employer in self.employers.values():
            if str(employer.get("slug", "")).lower() == slug.strip().lower():
                return dict(employer)
        return None

    async def get_employers(self, employer_ids: Iterable[str]) -> list[dict[str, Any]]:
        self.calls.append("get_employers")
        wanted = {str(item) for item in employer_ids}
        return [dict(row) for key, row in self.employers.items() if key in wanted]

    async def get_job_by_slug(self, slug: str) -> dict[str, Any] | None:
        self.calls.append("get_job_by_slug")
        for job in self.jobs:
            if job.get("slug") == slug:
                return self._with_employer(job)
        return None

    async def close(self) -> None:
        return None
