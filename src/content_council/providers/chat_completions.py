"""httpx adapters for OpenAI-compatible ``/chat/completions`` endpoints.

DeepSeek (https://api-docs.deepseek.com/) and ChindaX
(https://chindax.iapp.co.th) speak the same request and response shape and
differ only in base URL, default model and how their health is checked.
"""

from __future__ import annotations

from typing import Any, ClassVar

import httpx

from content_council.providers.base import (
    GenerateRequest,
    GenerateResponse,
    ProviderCapabilities,
)
from content_council.providers.configured import ConfiguredProvider

REQUEST_TIMEOUT = httpx.Timeout(120.0, connect=10.0)
_USAGE_KEYS = ("prompt_tokens", "completion_tokens", "total_tokens")


class ChatCompletionsProvider(ConfiguredProvider):
    name: ClassVar[str] = "chat-completions"
    capabilities: ClassVar[ProviderCapabilities] = ProviderCapabilities(
        health_probe=True,
        role_labels=True,
        specialties=True,
        orchestrator_context=True,
        teardown=True,
    )
    BASE_URL: ClassVar[str] = ""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        default_model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """*http_client*, when given, is used as-is and never closed here."""
        super().__init__(
            api_key=api_key,
            base_url=(base_url or self.BASE_URL).rstrip("/"),
            default_model=default_model,
            max_tokens=max_tokens,
            temperature=temperature,
        )
        self._http = http_client
        self._borrowed_http = http_client is not None

    @property
    def http(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=REQUEST_TIMEOUT)
        return self._http

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}

    def payload(self, request: GenerateRequest) -> dict[str, Any]:
        body: dict[str, Any] = {
            "model": self.model_for(request),
            "messages": self.chat_messages(request),
        }
        for key, value in (
            ("max_tokens", self.max_tokens_for(request)),
            ("temperature", self.temperature_for(request)),
        ):
            if value is not None:
                body[key] = value
        return body

    async def generate(self, request: GenerateRequest) -> GenerateResponse:
        """POST one completion; non-2xx replies raise ``httpx.HTTPStatusError``."""
        reply = await self.http.post(
            f"{self.base_url}/chat/completions", headers=self.headers, json=self.payload(request)
        )
        reply.raise_for_status()
        data = reply.json()

        choices = data.get("choices") or [{}]
        usage = data.get("usage")
        return GenerateResponse(
            text=choices[0].get("message", {}).get("content"),
            usage={key: usage.get(key, 0) for key in _USAGE_KEYS} if usage else None,
            model=data.get("model"),
            finish_reason=choices[0].get("finish_reason"),
            raw=data,
        )

    async def _probe(self) -> None:
        reply = await self.http.get(f"{self.base_url}/models", headers=self.headers)
        reply.raise_for_status()

    def _describe_failure(self, error: Exception) -> tuple[str, dict[str, Any]]:
        if isinstance(error, httpx.HTTPStatusError):
            status = error.response.status_code
            return f"API error: {status}", {"status_code": status}
        if isinstance(error, httpx.HTTPError):
            return f"Connection error: {error}", {"error": str(error)}
        return super()._describe_failure(error)

    async def teardown(self) -> None:
        client, self._http = self._http, None
        if client is not None and not self._borrowed_http:
            await client.aclose()


class DeepSeekProvider(ChatCompletionsProvider):
    name: ClassVar[str] = "deepseek"
    BASE_URL: ClassVar[str] = "https://api.deepseek.com/v1"
    DEFAULT_MODEL: ClassVar[str] = "deepseek-chat"
    API_KEY_ENV: ClassVar[str] = "DEEPSEEK_API_KEY"


class ChindaProvider(ChatCompletionsProvider):
    """ChindaX Thai-language models.

    There is no model listing endpoint, so the health tracker probes ChindaX
    with a short generation instead of :meth:`doctor`.
    """

    name: ClassVar[str] = "chinda"
    capabilities: ClassVar[ProviderCapabilities] = ProviderCapabilities(
        role_labels=True,
        specialties=True,
        orchestrator_context=True,
        teardown=True,
    )
    BASE_URL: ClassVar[str] = "https://chindax.iapp.co.th/api"
    DEFAULT_MODEL: ClassVar[str] = "chinda-qwen3-4b"
    API_KEY_ENV: ClassVar[str] = "CHINDA_API_KEY"
