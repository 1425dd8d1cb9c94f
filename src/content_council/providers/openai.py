"""OpenAI SDK adapter for any OpenAI-compatible base URL.

Out of the box it is pointed at the GPT OSS 120b model hosted behind
ChindaX; ``pip install content-council[openai]`` pulls in the SDK.
"""

from __future__ import annotations

from typing import Any, ClassVar

from content_council.providers.base import (
    GenerateRequest,
    GenerateResponse,
    ProviderCapabilities,
)
from content_council.providers.configured import ConfiguredProvider, require_sdk


class OpenAIProvider(ConfiguredProvider):
    name: ClassVar[str] = "openai"
    capabilities: ClassVar[ProviderCapabilities] = ProviderCapabilities(
        health_probe=True,
        role_labels=True,
        specialties=True,
        orchestrator_context=True,
        teardown=True,
    )
    DEFAULT_MODEL: ClassVar[str] = "accounts/fireworks/models/gpt-oss-120b"
    API_KEY_ENV: ClassVar[str] = "OPENAI_API_KEY (or CHINDA_API_KEY)"

    _client: Any = None

    @property
    def client(self) -> Any:
        if self._client is None:
            sdk = require_sdk("openai", "openai")
            self._client = sdk.AsyncOpenAI(api_key=self.api_key, base_url=self.base_url)
        return self._client

    async def generate(self, request: GenerateRequest) -> GenerateResponse:
        options: dict[str, Any] = {}
        max_tokens = self.max_tokens_for(request)
        if max_tokens is not None:
            options["max_tokens"] = max_tokens
        temperature = self.temperature_for(request)
        if temperature is not None:
            options["temperature"] = temperature

        completion = await self.client.chat.completions.create(
            model=self.model_for(request), messages=self.chat_messages(request), **options
        )
        choice = completion.choices[0]
        usage = completion.usage
        return GenerateResponse(
            text=choice.message.content,
            usage=None
            if usage is None
            else {
                "prompt_tokens": usage.prompt_tokens,
                "completion_tokens": usage.completion_tokens,
                "total_tokens": usage.total_tokens,
            },
            model=completion.model,
            finish_reason=choice.finish_reason,
            raw=completion,
        )

    async def _probe(self) -> None:
        await self.client.models.list()

    async def teardown(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            await client.close()
