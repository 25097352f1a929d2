from __future__ import annotations

from dataclasses import dataclass
import json
from typing import Any, Protocol

import asyncpg  # type: ignore[import-untyped]


class KeyValueStoreError(Exception):
    """Base key-value store error."""


class KeyValueStoreUnavailableError(KeyValueStoreError):
    """Raised when the backing database is unavailable or not configured."""


@dataclass(frozen=True, slots=True)
class VersionedValue:
    value: dict[str, Any]
    version: int


class KeyValueStore(Protocol):
    """Versioned JSON documents with compare-and-swap writes.

    ``expected_version=0`` means the key must not exist yet.
    """

    async def get(self, key: str) -> VersionedValue | None: ...

    async def compare_and_swap(self, key: str, expected_version: int, value: dict[str, Any]) -> bool: ...

    async def close(self) -> None: ...


class InMemoryKeyValueStore:
    def __init__(self) -> None:
        self._items: dict[str, VersionedValue] = {}

    async def get(self, key: str) -> VersionedValue | None:
        item = self._items.get(key)
        if item is None:
            return None
        return VersionedValue(value=json.loads(json.dumps(item.value)), version=item.version)

    async def compare_and_swap(self, key: str, expected_version: int, value: dict[str, Any]) -> bool:
        current = self._items.get(key)
        current_version = current.version if current is not None else 0
        if current_version != expected_version:
            return False
        self._items[key] = VersionedValue(value=json.loads(json.dumps(value)), version=current_version + 1)
        return True

    async def close(self) -> None:
        return None


class PostgresKeyValueStore:
    def __init__(self, database_url: str | None, min_pool_size: int = 1, max_pool_size: int = 2) -> None:
        self.database_url = database_url
        self.min_pool_size = min_pool_size
        self.max_pool_size = max_pool_size
        self._pool: asyncpg.Pool | None = None

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    async def get(self, key: str) -> VersionedValue | None:
        pool = await self._get_pool()
        row = await pool.fetchrow("select value, version from kv_store where key = $1", key)
        if row is None:
            return None
        return VersionedValue(value=self._decode(row["value"]), version=int(row["version"]))

    async def compare_and_swap(self, key: str, expected_version: int, value: dict[str, Any]) -> bool:
        pool = await self._get_pool()
        encoded = json.dumps(value, sort_keys=True)
        if expected_version == 0:
            version = await pool.fetchval(
                """
                insert into kv_store (key, value, version, updated_at)
                values ($1, $2::jsonb, 1, now())
                on conflict (key) do nothing
                returning version
                """,
                key,
                encoded,
            )
        else:
            version = await pool.fetchval(
                """
                update kv_store
                set value = $3::jsonb,
                    version = version + 1,
                    updated_at = now()
                where key = $1
                  and version = $2
                returning version
                """,
                key,
                expected_version,
                encoded,
            )
        return version is not None

    async def _get_pool(self) -> asyncpg.Pool:
        if not self.database_url:
            raise KeyValueStoreUnavailableError("NJ_WORKER_DATABASE_URL is required")

        if self._pool is not None:
            return self._pool

        try:
            self._pool = await asyncpg.create_pool(
                dsn=self.database_url,
                min_size=self.min_pool_size,
                max_size=self.max_pool_size,
                command_timeout=15,
            )
            return self._pool
        except Exception as exc:  # pragma: no cover - depends on environment
            raise KeyValueStoreUnavailableError("database unavailable") from exc

    @staticmethod
    def _decode(raw: Any) -> dict[str, Any]:
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except json.JSONDecodeError:
                return {}
        return raw if isinstance(raw, dict) else {}
