"""Claude through the Anthropic Messages API (``pip install content-council[anthropic]``)."""

from __future__ import annotations

from typing import Any, ClassVar

from content_council.providers.base import (
    GenerateRequest,
    GenerateResponse,
    ProviderCapabilities,
)
from content_council.providers.configured import ConfiguredProvider, require_sdk

RESPONSE_CEILING = 8192


class ClaudeProvider(ConfiguredProvider):
    name: ClassVar[str] = "claude"
    capabilities: ClassVar[ProviderCapabilities] = ProviderCapabilities(
        health_probe=True,
        role_labels=True,
        specialties=True,
        orchestrator_context=True,
        teardown=True,
        max_tokens=RESPONSE_CEILING,
    )
    DEFAULT_MODEL: ClassVar[str] = "claude-sonnet-4-5"
    API_KEY_ENV: ClassVar[str] = "CLAUDE_API_KEY"

    _client: Any = None

    @property
    def client(self) -> Any:
        if self._client is None:
            sdk = require_sdk("anthropic", "anthropic")
            self._client = sdk.AsyncAnthropic(api_key=self.api_key, base_url=self.base_url)
        return self._client

    def message_arguments(self, request: GenerateRequest) -> dict[str, Any]:
        """Keyword arguments for ``messages.create``.

        The Messages API requires ``max_tokens`` and only accepts temperatures
        up to 1.0, so both are clamped here.
        """
        arguments: dict[str, Any] = {
            "model": self.model_for(request),
            "max_tokens": min(self.max_tokens_for(request) or 4096, RESPONSE_CEILING),
            "messages": [{"role": "user", "content": request.prompt}],
        }
        if request.system:
            arguments["system"] = request.system
        temperature = self.temperature_for(request)
        if temperature is not None:
            arguments["temperature"] = min(temperature, 1.0)
        return arguments

    async def generate(self, request: GenerateRequest) -> GenerateResponse:
        message = await self.client.messages.create(**self.message_arguments(request))
        usage = getattr(message, "usage", None)
        return GenerateResponse(
            text="".join(getattr(block, "text", "") for block in message.content),
            usage=None
            if usage is None
            else {
                "prompt_tokens": usage.input_tokens,
                "completion_tokens": usage.output_tokens,
                "total_tokens": usage.input_tokens + usage.output_tokens,
            },
            model=message.model,
            finish_reason=message.stop_reason,
            raw=message,
        )

    async def _probe(self) -> None:
        await self.client.messages.create(
            model=self.default_model,
            max_tokens=1,
            messages=[{"role": "user", "content": "ping"}],
        )

    async def teardown(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            await client.close()
