from __future__ import annotations

import logging
from typing import Literal
from urllib.parse import urlparse

import httpx

logger = logging.getLogger(__name__)

IndexIntent = Literal["updated", "deleted"]

ACCEPTED_STATUS_CODES = {200, 202}
# Per-request URL cap for the batch submissions this worker sends.
MAX_URLS_PER_BATCH = 50


class IndexNowError(Exception):
    def __init__(self, status_code: int | None, detail: str) -> None:
        super().__init__(f"IndexNow submission failed status={status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail

    @property
    def rate_limited(self) -> bool:
        return self.status_code == 429


class IndexNowClient:
    """Submits URL batches to an IndexNow endpoint.

    IndexNow has no separate removal call: removed pages are announced the same
    way and the crawler discovers the 404 itself. The intent is only logged.
    """

    def __init__(
        self,
        endpoint: str,
        key: str,
        *,
        site_url: str,
        key_location: str | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.endpoint = endpoint
        self.key = key
        self.host = urlparse(site_url).hostname or site_url
        self.key_location = key_location or f"{site_url.rstrip('/')}/{key}.txt"
        self.timeout = timeout

    def payload(self, urls: list[str]) -> dict[str, object]:
        return {
            "host": self.host,
            "key": self.key,
            "keyLocation": self.key_location,
            "urlList": list(urls),
        }

    async def submit(
        self,
        urls: list[str],
        *,
        intent: IndexIntent = "updated",
        client: httpx.AsyncClient | None = None,
    ) -> int:
        if client is not None:
            return await self._submit(client, urls, intent)
        async with httpx.AsyncClient(timeout=self.timeout) as temp_client:
            return await self._submit(temp_client, urls, intent)

    async def _submit(self, client: httpx.AsyncClient, urls: list[str], intent: IndexIntent) -> int:
        try:
            response = await client.post(
                self.endpoint,
                json=self.payload(urls),
                headers={"Content-Type": "application/json; charset=utf-8"},
            )
        except httpx.HTTPError as exc:
            raise IndexNowError(None, str(exc)) from exc

        if response.status_code not in ACCEPTED_STATUS_CODES:
            raise IndexNowError(response.status_code, response.text[:500])
        logger.info("indexnow batch accepted intent=%s urls=%s status=%s", intent, len(urls), response.status_code)
        return response.status_code
