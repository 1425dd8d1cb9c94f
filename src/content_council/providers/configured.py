"""Shared plumbing for adapters configured from a provider table entry."""

from __future__ import annotations

import importlib
import time
from typing import Any, ClassVar

from content_council.config.settings import ProviderSettings
from content_council.providers.base import (
    DoctorResult,
    GenerateRequest,
    ProviderAdapter,
    RoleLabelsMixin,
)


class ConfiguredProvider(RoleLabelsMixin, ProviderAdapter):
    """An adapter with an API key, an optional base URL and sampling defaults.

    Subclasses set :attr:`DEFAULT_MODEL` and :attr:`API_KEY_ENV`, implement
    :meth:`generate`, and implement :meth:`_probe` when they declare
    ``health_probe``. Request values win over the configured defaults.
    """

    DEFAULT_MODEL: ClassVar[str] = ""
    API_KEY_ENV: ClassVar[str] = "API_KEY"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        default_model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> None:
        if not api_key:
            raise ValueError(f"{self.name} API key not configured. Set {self.API_KEY_ENV}.")
        self.api_key = api_key
        self.base_url = base_url
        self.default_model = default_model or self.DEFAULT_MODEL
        self.default_max_tokens = max_tokens
        self.default_temperature = temperature

    @classmethod
    def from_settings(cls, settings: ProviderSettings) -> ConfiguredProvider:
        return cls(
            api_key=settings.api_key,
            base_url=settings.base_url,
            default_model=settings.model,
            max_tokens=settings.max_tokens,
            temperature=settings.temperature,
        )

    def model_for(self, request: GenerateRequest) -> str:
        return request.model or self.default_model

    def max_tokens_for(self, request: GenerateRequest) -> int | None:
        return request.max_tokens or self.default_max_tokens

    def temperature_for(self, request: GenerateRequest) -> float | None:
        if request.temperature is not None:
            return request.temperature
        return self.default_temperature

    @staticmethod
    def chat_messages(request: GenerateRequest) -> list[dict[str, str]]:
        """System message (when given) followed by the user prompt."""
        messages = [{"role": "system", "content": request.system}] if request.system else []
        messages.append({"role": "user", "content": request.prompt})
        return messages

    async def _probe(self) -> None:
        """Make the cheapest call that proves the credentials work."""
        raise NotImplementedError

    def _describe_failure(self, error: Exception) -> tuple[str, dict[str, Any]]:
        if isinstance(error, ImportError):
            return str(error), {"error": "missing_package"}
        return f"API error: {error}", {"error": str(error)}

    async def doctor(self) -> DoctorResult:
        started = time.perf_counter()
        try:
            await self._probe()
        except Exception as exc:
            message, details = self._describe_failure(exc)
            ok = False
        else:
            message, details, ok = f"{self.name} API is accessible", None, True
        return DoctorResult(
            ok=ok,
            message=message,
            latency_ms=(time.perf_counter() - started) * 1000,
            details=details,
        )


def require_sdk(module: str, extra: str) -> Any:
    """Import an optional SDK module, naming the extra that provides it."""
    try:
        return importlib.import_module(module)
    except ImportError as exc:
        raise ImportError(
            f"'{module}' is not installed. Install it with: pip install content-council[{extra}]"
        ) from exc
