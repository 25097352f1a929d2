from __future__ import annotations

from typing import Any

import httpx


class PageInventoryClient:
    def __init__(self, base_url: str, timeout: float = 10.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def fetch_pages(self, *, client: httpx.AsyncClient | None = None) -> list[dict[str, Any]]:
        if client is not None:
            return await self._fetch_pages(client)
        async with httpx.AsyncClient(timeout=self.timeout) as temp_client:
            return await self._fetch_pages(temp_client)

    async def _fetch_pages(self, client: httpx.AsyncClient) -> list[dict[str, Any]]:
        response = await client.get(f"{self.base_url}/index/pages")
        response.raise_for_status()
        payload = response.json()
        pages = payload.get("pages") if isinstance(payload, dict) else None
        if not isinstance(pages, list):
            raise ValueError("page inventory response is missing 'pages'")
        return [page for page in pages if isinstance(page, dict) and isinstance(page.get("path"), str)]
