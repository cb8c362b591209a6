"""Tavily web-search client used by the enrichment detective."""

from typing import Any

import httpx

from bankboeker.logger import log_external_api
from bankboeker.services.providers import (
    RETRYABLE_STATUS_CODES,
    ProviderError,
    SearchResponse,
    SearchResult,
)


class TavilyClient:
    """Search provider backed by the Tavily REST API."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.tavily.com",
        timeout: float = 10.0,
        max_results: int = 5,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not api_key:
            raise ProviderError("Tavily API key not configured", retryable=False)
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_results = max_results
        self._transport = transport

    @log_external_api("tavily")
    async def search(self, query: str) -> SearchResponse:
        payload: dict[str, Any] = {
            "api_key": self.api_key,
            "query": query,
            "search_depth": "basic",
            "max_results": self.max_results,
            "include_answer": True,
        }
        timeout_config = httpx.Timeout(self.timeout, connect=min(self.timeout, 5.0))

        async with httpx.AsyncClient(timeout=timeout_config, transport=self._transport) as client:
            response = await client.post(f"{self.base_url}/search", json=payload)

        if response.status_code != 200:
            if response.status_code in (401, 403):
                message = f"Tavily authentication failed (HTTP {response.status_code})"
            elif response.status_code == 429:
                message = "Tavily rate limit exceeded (HTTP 429)"
            else:
                message = f"Tavily request failed (HTTP {response.status_code}): {response.text[:200]}"
            raise ProviderError(message, retryable=response.status_code in RETRYABLE_STATUS_CODES)

        data = response.json()
        if not isinstance(data, dict):
            raise ProviderError("Tavily returned a non-object response")

        results = [
            SearchResult(
                title=item.get("title") or "",
                url=item.get("url") or "",
                content=item.get("content") or "",
            )
            for item in data.get("results") or []
            if isinstance(item, dict)
        ]
        return SearchResponse(answer=data.get("answer") or None, results=results)
