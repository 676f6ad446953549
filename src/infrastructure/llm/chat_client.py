"""OpenAI-compatible chat completions client."""

from typing import Any

import httpx

from core.config import settings


class HTTPChatClient:
    """Single-shot chat completion over HTTP with a bounded timeout.

    Errors (timeouts, non-2xx responses, unexpected payloads) propagate to
    the caller, which owns the fallback.
    """

    def __init__(
        self,
        api_url: str = settings.llm_api_url,
        api_key: str = settings.llm_api_key,
        model: str = settings.llm_model,
        timeout: float = settings.llm_timeout_seconds,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_url = api_url
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._api_url and self._api_key)

    async def complete(self, system: str, prompt: str) -> str:
        payload: dict[str, Any] = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "temperature": 0.2,
        }
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await client.post(
                self._api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
            response.raise_for_status()
            data = response.json()
        return str(data["choices"][0]["message"]["content"])
