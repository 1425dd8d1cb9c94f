"""Gemini through google-generativeai (``pip install content-council[google]``)."""

from __future__ import annotations

import asyncio
from typing import Any, ClassVar

from content_council.providers.base import (
    GenerateRequest,
    GenerateResponse,
    ProviderCapabilities,
)
from content_council.providers.configured import ConfiguredProvider, require_sdk


class GeminiProvider(ConfiguredProvider):
    name: ClassVar[str] = "gemini"
    capabilities: ClassVar[ProviderCapabilities] = ProviderCapabilities(
        health_probe=True,
        role_labels=True,
        specialties=True,
        orchestrator_context=True,
        max_tokens=8192,
    )
    DEFAULT_MODEL: ClassVar[str] = "gemini-2.5-flash"
    API_KEY_ENV: ClassVar[str] = "GEMINI_API_KEY"

    def _genai(self) -> Any:
        genai = require_sdk("google.generativeai", "google")
        genai.configure(api_key=self.api_key)
        return genai

    async def generate(self, request: GenerateRequest) -> GenerateResponse:
        model_name = self.model_for(request)
        options: dict[str, Any] = {}
        if request.system:
            options["system_instruction"] = request.system
        model = self._genai().GenerativeModel(model_name, **options)

        config: dict[str, Any] = {}
        max_tokens = self.max_tokens_for(request)
        if max_tokens is not None:
            config["max_output_tokens"] = max_tokens
        temperature = self.temperature_for(request)
        if temperature is not None:
            config["temperature"] = temperature

        reply = await model.generate_content_async(request.prompt, generation_config=config or None)
        return GenerateResponse(
            text=_reply_text(reply),
            usage=_usage(reply),
            model=model_name,
            finish_reason=str(reply.candidates[0].finish_reason) if reply.candidates else None,
            raw=reply,
        )

    async def _probe(self) -> None:
        genai = self._genai()
        # list_models is a blocking generator
        await asyncio.to_thread(lambda: list(genai.list_models()))


def _reply_text(reply: Any) -> str:
    try:
        return reply.text
    except ValueError:
        # no single text part (blocked, or several parts)
        return "".join(getattr(part, "text", "") for part in reply.parts)


def _usage(reply: Any) -> dict[str, int] | None:
    meta = getattr(reply, "usage_metadata", None)
    if meta is None:
        return None
    return {
        "prompt_tokens": meta.prompt_token_count,
        "completion_tokens": meta.candidates_token_count,
        "total_tokens": meta.total_token_count,
    }
