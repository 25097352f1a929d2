from __future__ import annotations

import asyncio
import os
import uuid

import pytest

from nursejobs_worker.services.kv_store import (
    InMemoryKeyValueStore,
    KeyValueStoreUnavailableError,
    PostgresKeyValueStore,
)


def test_in_memory_compare_and_swap() -> None:
    async def run() -> None:
        store = InMemoryKeyValueStore()
        assert await store.get("fingerprints") is None
        assert await store.compare_and_swap("fingerprints", 1, {"a": "1"}) is False
        assert await store.compare_and_swap("fingerprints", 0, {"a": "1"}) is True
        assert await store.compare_and_swap("fingerprints", 0, {"a": "2"}) is False

        stored = await store.get("fingerprints")
        assert stored is not None
        assert (stored.value, stored.version) == ({"a": "1"}, 1)

        stored.value["a"] = "mutated"
        assert (await store.get("fingerprints")).value == {"a": "1"}  # type: ignore[union-attr]

        assert await store.compare_and_swap("fingerprints", 1, {"a": "3"}) is True
        assert (await store.get("fingerprints")).version == 2  # type: ignore[union-attr]

    asyncio.run(run())


def test_postgres_store_requires_database_url() -> None:
    store = PostgresKeyValueStore(database_url=None)
    with pytest.raises(KeyValueStoreUnavailableError):
        asyncio.run(store.get("fingerprints"))


def test_postgres_compare_and_swap() -> None:
    database_url = os.getenv("NJ_WORKER_DATABASE_URL") or os.getenv("DATABASE_URL")
    if not database_url:
        pytest.skip("integration tests require NJ_WORKER_DATABASE_URL or DATABASE_URL")

    key = f"test:{uuid.uuid4()}"

    async def run() -> None:
        store = PostgresKeyValueStore(database_url=database_url)
        try:
            assert await store.compare_and_swap(key, 0, {"a": "1"}) is True
            assert await store.compare_and_swap(key, 0, {"a": "2"}) is False
            stored = await store.get(key)
            assert stored is not None
            assert (stored.value, stored.version) == ({"a": "1"}, 1)
            assert await store.compare_and_swap(key, 1, {"a": "3"}) is True
            assert await store.compare_and_swap(key, 1, {"a": "4"}) is False
        finally:
            pool = await store._get_pool()
            await pool.execute("delete from kv_store where key = $1", key)
            await store.close()

    asyncio.run(run())
