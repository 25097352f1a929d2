from __future__ import annotations

import asyncio
import os
from typing import Any

import pytest

from nursejobs.core.taxonomy import TaxonomyRegistry
from nursejobs.services import repository
from nursejobs.services.filters import FilterContext, JobPredicate, any_not_null, city_is, none_of
from nursejobs.services.repository import (
    PostgresJobStore,
    RepositoryUnavailableError,
    RepositoryValidationError,
    compile_predicate,
    validate_aggregate,
    validate_group_fields,
)


def _compile(predicate: JobPredicate) -> tuple[str, list[Any]]:
    params: list[Any] = []

    def bind(value: Any) -> str:
        params.append(value)
        return f"${len(params)}"

    return compile_predicate(predicate, bind), params


def test_empty_predicate_only_filters_active_jobs() -> None:
    assert _compile(JobPredicate()) == ("j.is_active = true", [])
    assert _compile(JobPredicate().with_inactive()) == ("true", [])


def test_context_predicate_compiles_to_bound_sql(taxonomy: TaxonomyRegistry) -> None:
    predicate = FilterContext(state="CA", specialty="ICU", job_type="Per Diem").to_predicate(taxonomy)
    sql, params = _compile(predicate)

    assert sql.startswith("j.is_active = true and j.state = $1")
    assert "lower(btrim(j.specialty)) = any($2::text[])" in sql
    assert "lower(btrim(j.job_type)) = any($3::text[])" in sql
    assert params[0] == "CA"
    assert "critical care" in params[1]
    assert "prn" in params[2]


def test_special_conditions_compile() -> None:
    predicate = JobPredicate().where(
        city_is("st-louis"),
        none_of("experience_level", ["leadership", "manager"]),
        any_not_null("salary_min_hourly", "salary_max_hourly"),
    )
    sql, params = _compile(predicate)
    assert "regexp_replace" in sql and "= $1" in sql
    assert "(j.experience_level is null or lower(btrim(j.experience_level)) <> all($2::text[]))" in sql
    assert "(j.salary_min_hourly is not null or j.salary_max_hourly is not null)" in sql
    assert params == ["st-louis", ["leadership", "manager"]]


def test_group_and_aggregate_validation() -> None:
    validate_group_fields(["state", "city"])
    validate_aggregate("max", "salary_max_hourly")
    with pytest.raises(RepositoryValidationError):
        validate_group_fields([])
    with pytest.raises(RepositoryValidationError):
        validate_group_fields(["title"])
    with pytest.raises(RepositoryValidationError):
        validate_aggregate("median", "salary_max_hourly")
    with pytest.raises(RepositoryValidationError):
        validate_aggregate("max", "title")


def test_store_without_database_url_is_unavailable() -> None:
    store = PostgresJobStore(database_url=None, min_pool_size=1, max_pool_size=1)
    with pytest.raises(RepositoryUnavailableError):
        asyncio.run(store.count(JobPredicate()))


class _FakePool:
    async def fetchval(self, *_args: Any) -> int:
        return 3

    async def fetch(self, *_args: Any) -> list[dict[str, Any]]:
        return [{"g0": "CA", "total": 3}]

    async def close(self) -> None:
        return None


def test_concurrent_queries_share_one_pool(monkeypatch: pytest.MonkeyPatch) -> None:
    created: list[_FakePool] = []

    async def fake_create_pool(**_kwargs: Any) -> _FakePool:
        await asyncio.sleep(0.01)
        pool = _FakePool()
        created.append(pool)
        return pool

    monkeypatch.setattr(repository.asyncpg, "create_pool", fake_create_pool)
    store = PostgresJobStore(database_url="postgresql://nursejobs@localhost/test", min_pool_size=1, max_pool_size=2)

    async def scenario() -> list[Any]:
        return await asyncio.gather(
            store.count(JobPredicate()),
            store.count(JobPredicate()),
            store.grouped_count("state", JobPredicate()),
            store.aggregate(JobPredicate(), "max", "salary_max_hourly"),
        )

    results = asyncio.run(scenario())

    assert len(created) == 1
    assert results == [3, 3, [("CA", 3)], 3.0]


def test_postgres_store_counts_against_live_database(taxonomy: TaxonomyRegistry) -> None:
    database_url = os.getenv("NJ_DATABASE_URL") or os.getenv("DATABASE_URL")
    if not database_url:
        pytest.skip("integration tests require NJ_DATABASE_URL or DATABASE_URL")

    async def run() -> tuple[int, list[tuple[Any, int]]]:
        store = PostgresJobStore(database_url=database_url, min_pool_size=1, max_pool_size=2)
        try:
            predicate = FilterContext(job_type="Per Diem").to_predicate(taxonomy)
            return await store.count(predicate), await store.grouped_count("job_type", predicate)
        finally:
            await store.close()

    total, grouped = asyncio.run(run())
    assert total == sum(count for _, count in grouped)
