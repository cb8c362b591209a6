"""OpenRouter chat-completion client used by the enrichment accountant."""

from typing import Any

import httpx

from bankboeker.logger import log_external_api
from bankboeker.services.providers import RETRYABLE_STATUS_CODES, ProviderError


class OpenRouterCompletionClient:
    """Completion provider for the OpenAI-compatible OpenRouter API."""

    def __init__(
        self,
        api_key: str,
        *,
        model: str,
        base_url: str = "https://openrouter.ai/api/v1",
        temperature: float = 0.3,
        max_tokens: int = 300,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not api_key:
            raise ProviderError("OpenRouter API key not configured", retryable=False)
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._transport = transport

    @log_external_api("openrouter")
    async def complete(self, prompt: str) -> str:
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "X-Title": "bankboeker",
        }
        timeout_config = httpx.Timeout(self.timeout, connect=min(self.timeout, 5.0))

        async with httpx.AsyncClient(timeout=timeout_config, transport=self._transport) as client:
            response = await client.post(
                f"{self.base_url}/chat/completions", headers=headers, json=payload
            )

        if response.status_code != 200:
            raise ProviderError(
                f"HTTP {response.status_code}: {response.text[:200]}",
                retryable=response.status_code in RETRYABLE_STATUS_CODES,
            )

        data = response.json()
        if "error" in data:
            raise ProviderError(f"OpenRouter error: {data['error']}")

        choices = data.get("choices") or []
        content = choices[0].get("message", {}).get("content") if choices else None
        if not content:
            raise ProviderError("Empty completion returned")
        return content
