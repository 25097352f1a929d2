from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable, Sequence
from functools import lru_cache
import logging
from typing import Any

import asyncpg  # type: ignore[import-untyped]

from nursejobs.core.config import get_settings
from nursejobs.services.filters import (
    OP_ANY_NOT_NULL,
    OP_CITY_SLUG,
    OP_EQ,
    OP_IN,
    OP_NE,
    OP_NOT_IN,
    OP_NOT_NULL,
    TEXT_FIELDS,
    Condition,
    JobPredicate,
)

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """Base repository error."""


class RepositoryUnavailableError(RepositoryError):
    """Raised when the database is unavailable or not configured."""


class RepositoryValidationError(RepositoryError):
    """Raised when a query asks for an unsupported field or metric."""


GROUPABLE_FIELDS = frozenset(
    {"state", "city", "specialty", "job_type", "shift_type", "experience_level", "employer_id", "has_sign_on_bonus"}
)
AGGREGATE_METRICS = frozenset({"max", "min", "avg", "sum"})
AGGREGATE_FIELDS = frozenset({"salary_min_hourly", "salary_max_hourly", "salary_min_annual", "salary_max_annual"})

FIELD_COLUMNS = {
    "id": "j.id::text",
    "slug": "j.slug",
    "state": "j.state",
    "city": "j.city",
    "specialty": "j.specialty",
    "job_type": "j.job_type",
    "shift_type": "j.shift_type",
    "experience_level": "j.experience_level",
    "employer_id": "j.employer_id::text",
    "has_sign_on_bonus": "j.has_sign_on_bonus",
    "salary_min_hourly": "j.salary_min_hourly",
    "salary_max_hourly": "j.salary_max_hourly",
    "salary_min_annual": "j.salary_min_annual",
    "salary_max_annual": "j.salary_max_annual",
}
# Must stay in step with nursejobs.core.geography.city_slug.
CITY_SLUG_SQL = "regexp_replace(regexp_replace(lower(btrim(j.city)), '[.'']', '', 'g'), '\\s+', '-', 'g')"

JOB_SELECT_SQL = """
    select
      j.id::text as id,
      j.slug,
      j.title,
      j.state,
      j.city,
      j.specialty,
      j.job_type,
      j.shift_type,
      j.experience_level,
      j.employer_id::text as employer_id,
      j.is_active,
      j.scraped_at,
      j.posted_date,
      j.salary_min_hourly,
      j.salary_max_hourly,
      j.salary_min_annual,
      j.salary_max_annual,
      j.has_sign_on_bonus,
      e.name as employer_name,
      e.slug as employer_slug
    from nursing_jobs j
    left join healthcare_employers e on e.id = j.employer_id
"""


def validate_group_fields(fields: Sequence[str]) -> None:
    if not fields:
        raise RepositoryValidationError("grouped count requires at least one field")
    for name in fields:
        if name not in GROUPABLE_FIELDS:
            raise RepositoryValidationError(f"unsupported group field: {name}")


def validate_aggregate(metric: str, field: str) -> None:
    if metric not in AGGREGATE_METRICS:
        raise RepositoryValidationError(f"unsupported aggregate metric: {metric}")
    if field not in AGGREGATE_FIELDS:
        raise RepositoryValidationError(f"unsupported aggregate field: {field}")


def compile_predicate(predicate: JobPredicate, bind: Callable[[Any], str]) -> str:
    conditions: list[str] = []
    if not predicate.include_inactive:
        conditions.append("j.is_active = true")
    for condition in predicate.conditions:
        conditions.append(_compile_condition(condition, bind))
    return " and ".join(conditions) if conditions else "true"


def _compile_condition(condition: Condition, bind: Callable[[Any], str]) -> str:
    column = FIELD_COLUMNS[condition.field]
    if condition.op == OP_IN:
        return f"lower(btrim({column})) = any({bind(list(condition.values))}::text[])"
    if condition.op == OP_NOT_IN:
        return f"({column} is null or lower(btrim({column})) <> all({bind(list(condition.values))}::text[]))"
    if condition.op == OP_EQ:
        return f"{column} = {bind(condition.values[0])}"
    if condition.op == OP_NE:
        return f"{column} <> {bind(condition.values[0])}"
    if condition.op == OP_NOT_NULL:
        if condition.field in TEXT_FIELDS:
            return f"({column} is not null and btrim({column}) <> '')"
        return f"{column} is not null"
    if condition.op == OP_ANY_NOT_NULL:
        return "(" + " or ".join(f"{FIELD_COLUMNS[name]} is not null" for name in condition.values) + ")"
    if condition.op == OP_CITY_SLUG:
        return f"{CITY_SLUG_SQL} = {bind(condition.values[0])}"
    raise RepositoryValidationError(f"unsupported filter op: {condition.op}")


class PostgresJobStore:
    def __init__(
        self,
        database_url: str | None,
        min_pool_size: int,
        max_pool_size: int,
        command_timeout_seconds: float = 15.0,
    ) -> None:
        self.database_url = database_url
        self.min_pool_size = min_pool_size
        self.max_pool_size = max_pool_size
        self.command_timeout_seconds = command_timeout_seconds
        self._pool: asyncpg.Pool | None = None
        self._pool_lock = asyncio.Lock()

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    async def filtered_fetch(self, predicate: JobPredicate, *, offset: int, limit: int) -> list[dict[str, Any]]:
        pool = await self._get_pool()
        params: list[Any] = []

        def bind(value: Any) -> str:
            params.append(value)
            return f"${len(params)}"

        where_sql = compile_predicate(predicate, bind)
        limit_token = bind(max(0, limit))
        offset_token = bind(max(0, offset))
        rows = await pool.fetch(
            f"""
            {JOB_SELECT_SQL}
            where {where_sql}
            order by j.scraped_at desc nulls last, j.id asc
            limit {limit_token}
            offset {offset_token}
            """,
            *params,
        )
        return [self._job_row_to_dict(row) for row in rows]

    async def count(self, predicate: JobPredicate) -> int:
        pool = await self._get_pool()
        params: list[Any] = []

        def bind(value: Any) -> str:
            params.append(value)
            return f"${len(params)}"

        where_sql = compile_predicate(predicate, bind)
        value = await pool.fetchval(f"select count(*)::bigint from nursing_jobs j where {where_sql}", *params)
        return int(value or 0)

    async def grouped_count(self, field: str, predicate: JobPredicate) -> list[tuple[Any, int]]:
        rows = await self.grouped_count_by((field,), predicate)
        return [(key[0], count) for key, count in rows]

    async def grouped_count_by(
        self, fields: Sequence[str], predicate: JobPredicate
    ) -> list[tuple[tuple[Any, ...], int]]:
        validate_group_fields(fields)
        pool = await self._get_pool()
        params: list[Any] = []

        def bind(value: Any) -> str:
            params.append(value)
            return f"${len(params)}"

        where_sql = compile_predicate(predicate, bind)
        select_sql = ", ".join(f"{FIELD_COLUMNS[name]} as g{index}" for index, name in enumerate(fields))
        group_sql = ", ".join(str(index + 1) for index in range(len(fields)))
        rows = await pool.fetch(
            f"""
            select {select_sql}, count(*)::bigint as total
            from nursing_jobs j
            where {where_sql}
            group by {group_sql}
            order by total desc, {group_sql}
            """,
            *params,
        )
        return [
            (tuple(row[f"g{index}"] for index in range(len(fields))), int(row["total"]))
            for row in rows
        ]

    async def aggregate(self, predicate: JobPredicate, metric: str, field: str) -> float | None:
        validate_aggregate(metric, field)
        pool = await self._get_pool()
        params: list[Any] = []

        def bind(value: Any) -> str:
            params.append(value)
            return f"${len(params)}"

        where_sql = compile_predicate(predicate, bind)
        value = await pool.fetchval(
            f"select {metric}({FIELD_COLUMNS[field]})::float8 from nursing_jobs j where {where_sql}",
            *params,
        )
        return self._coerce_float(value)

    async def find_employer_by_slug(self, slug: str) -> dict[str, Any] | None:
        normalized_slug = self._coerce_text(slug)
        if not normalized_slug:
            return None
        pool = await self._get_pool()
        row = await pool.fetchrow(
            """
            select id::text as id, name, slug
            from healthcare_employers
            where lower(slug) = lower($1)
            limit 1
            """,
            normalized_slug,
        )
        return dict(row) if row is not None else None

    async def get_employers(self, employer_ids: Iterable[str]) -> list[dict[str, Any]]:
        ids = sorted({str(item) for item in employer_ids if item is not None})
        if not ids:
            return []
        pool = await self._get_pool()
        rows = await pool.fetch(
            """
            select id::text as id, name, slug
            from healthcare_employers
            where id::text = any($1::text[])
            """,
            ids,
        )
        return [dict(row) for row in rows]

    async def get_job_by_slug(self, slug: str) -> dict[str, Any] | None:
        normalized_slug = self._coerce_text(slug)
        if not normalized_slug:
            return None
        pool = await self._get_pool()
        row = await pool.fetchrow(f"{JOB_SELECT_SQL} where j.slug = $1 limit 1", normalized_slug)
        return self._job_row_to_dict(row) if row is not None else None

    async def _get_pool(self) -> asyncpg.Pool:
        if not self.database_url:
            raise RepositoryUnavailableError("NJ_DATABASE_URL is required")

        if self._pool is not None:
            return self._pool

        # Page composition fans out queries with gather; only one of them may build the pool.
        async with self._pool_lock:
            if self._pool is not None:
                return self._pool
            try:
                self._pool = await asyncpg.create_pool(
                    dsn=self.database_url,
                    min_size=self.min_pool_size,
                    max_size=self.max_pool_size,
                    command_timeout=self.command_timeout_seconds,
                )
            except Exception as exc:  # pragma: no cover - depends on environment
                logger.warning("database pool creation failed: %s", exc)
                raise RepositoryUnavailableError("database unavailable") from exc
            return self._pool

    @staticmethod
    def _job_row_to_dict(row: asyncpg.Record) -> dict[str, Any]:
        employer: dict[str, Any] | None = None
        if row["employer_id"] is not None and row["employer_name"] is not None:
            employer = {"id": row["employer_id"], "name": row["employer_name"], "slug": row["employer_slug"]}
        return {
            "id": row["id"],
            "slug": row["slug"],
            "title": row["title"],
            "state": row["state"],
            "city": row["city"],
            "specialty": row["specialty"],
            "job_type": row["job_type"],
            "shift_type": row["shift_type"],
            "experience_level": row["experience_level"],
            "employer_id": row["employer_id"],
            "employer": employer,
            "is_active": bool(row["is_active"]),
            "scraped_at": row["scraped_at"],
            "posted_date": row["posted_date"],
            "salary_min_hourly": PostgresJobStore._coerce_float(row["salary_min_hourly"]),
            "salary_max_hourly": PostgresJobStore._coerce_float(row["salary_max_hourly"]),
            "salary_min_annual": PostgresJobStore._coerce_float(row["salary_min_annual"]),
            "salary_max_annual": PostgresJobStore._coerce_float(row["salary_max_annual"]),
            "has_sign_on_bonus": bool(row["has_sign_on_bonus"]),
        }

    @staticmethod
    def _coerce_text(value: Any) -> str | None:
        if value is None:
            return None
        if isinstance(value, str):
            stripped = value.strip()
            return stripped or None
        return str(value)

    @staticmethod
    def _coerce_float(value: Any) -> float | None:
        if value is None:
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            return None


@lru_cache
def get_repository() -> PostgresJobStore:
    settings = get_settings()
    return PostgresJobStore(
        database_url=settings.database_url,
        min_pool_size=settings.database_pool_min_size,
        max_pool_size=settings.database_pool_max_size,
        command_timeout_seconds=settings.database_command_timeout_seconds,
    )
