"""Adapter contract shared by every content-council provider.

A provider only has to implement :meth:`ProviderAdapter.generate`. Everything
else (health probes, role labels, teardown) is an optional hook that the
adapter announces through :class:`ProviderCapabilities`; the council reads
those flags when a member joins and never calls a hook that was not declared.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

if TYPE_CHECKING:
    from content_council.config.settings import ProviderSettings


class ErrorType(str, Enum):
    """Failure categories recorded in degradation reports."""

    NONE = "none"
    TIMEOUT = "timeout"
    BILLING = "billing"
    RATE_LIMIT = "rate_limit"
    AUTH = "auth"
    MODEL_UNAVAILABLE = "model_unavailable"
    NETWORK = "network"
    UNKNOWN = "unknown"

    @property
    def needs_operator(self) -> bool:
        """True when waiting or retrying cannot clear the failure."""
        return self in (ErrorType.BILLING, ErrorType.AUTH)


# Checked top to bottom; the first category with a matching fragment wins.
_MESSAGE_FRAGMENTS: tuple[tuple[ErrorType, tuple[str, ...]], ...] = (
    (
        ErrorType.BILLING,
        (
            "insufficient_quota",
            "insufficient credits",
            "exceeded your current quota",
            "account has been suspended",
            "billing",
            "credit",
            "payment",
        ),
    ),
    (ErrorType.RATE_LIMIT, ("rate_limit", "rate limit", "too many requests", "throttl", "429")),
    (
        ErrorType.AUTH,
        (
            "invalid_api_key",
            "invalid api key",
            "api key not configured",
            "unauthorized",
            "authentication",
            "401",
        ),
    ),
    (
        ErrorType.MODEL_UNAVAILABLE,
        ("model_not_found", "model not found", "does not exist", "overloaded", "capacity"),
    ),
    (ErrorType.TIMEOUT, ("timed out", "timeout")),
    (
        ErrorType.NETWORK,
        ("econnrefused", "econnreset", "connection", "network", "socket", "dns"),
    ),
)

_BILLING_PAGES = {
    "openai": "https://platform.openai.com/account/billing",
    "claude": "https://console.anthropic.com/settings/billing",
    "anthropic": "https://console.anthropic.com/settings/billing",
    "gemini": "https://console.cloud.google.com/billing",
    "deepseek": "https://platform.deepseek.com/top_up",
    "chinda": "https://chindax.iapp.co.th",
}


def classify_error(error: BaseException | str) -> ErrorType:
    """Map a raised exception, or a bare message, onto an :class:`ErrorType`.

    Timeout exceptions are recognised by type. Anything else is matched by
    lowercase message fragments. An exception without a message is
    ``UNKNOWN``; an empty string means there was no error at all.
    """
    if isinstance(error, (TimeoutError, asyncio.TimeoutError)):
        return ErrorType.TIMEOUT

    message = str(error).lower()
    if not message:
        return ErrorType.UNKNOWN if isinstance(error, BaseException) else ErrorType.NONE

    for error_type, fragments in _MESSAGE_FRAGMENTS:
        if any(fragment in message for fragment in fragments):
            return error_type
    return ErrorType.UNKNOWN


def billing_page(provider: str) -> str:
    """Where an operator tops up credit for *provider*."""
    return _BILLING_PAGES.get(provider.lower(), "the provider's billing page")


class ProviderCapabilities(BaseModel):
    """Optional hooks an adapter implements, fixed per adapter class."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    health_probe: bool = False  # doctor()
    role_labels: bool = False  # set_role()
    specialties: bool = False  # set_specialties()
    orchestrator_context: bool = False  # set_orchestrator_context()
    teardown: bool = False  # teardown()
    max_tokens: int | None = None

    def declared(self) -> list[str]:
        """Names of the hooks switched on, plus ``max_tokens`` when a limit is set."""
        return [
            name
            for name, value in self
            if (value is not None if name == "max_tokens" else value)
        ]


class GenerateRequest(BaseModel):
    """One prompt to send to a provider."""

    model_config = ConfigDict(extra="allow")

    prompt: str
    system: str | None = None
    model: str | None = Field(default=None, description="Overrides the adapter's model.")
    max_tokens: int | None = Field(default=None, ge=1)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    metadata: Mapping[str, Any] | None = None

    @model_validator(mode="after")
    def _require_prompt_text(self) -> GenerateRequest:
        if not self.prompt.strip():
            raise ValueError("'prompt' must contain non-whitespace text.")
        return self


class GenerateResponse(BaseModel):
    """What came back from a provider, normalised across SDKs."""

    model_config = ConfigDict(extra="allow")

    text: str | None = None
    usage: Mapping[str, int] | None = Field(
        default=None, description="prompt_tokens / completion_tokens / total_tokens when known."
    )
    model: str | None = None
    finish_reason: str | None = None
    raw: Any | None = Field(default=None, description="Untouched SDK or HTTP payload.")


class DoctorResult(BaseModel):
    """Outcome of a provider's own health probe."""

    model_config = ConfigDict(extra="allow", frozen=True)

    ok: bool
    message: str | None = None
    latency_ms: float | None = None
    details: Mapping[str, Any] | None = None


class ProviderAdapter(ABC):
    """A text-generation backend that can sit in a council.

    Subclasses give themselves a unique :attr:`name`, implement
    :meth:`generate`, and override whichever optional hooks they list in
    :attr:`capabilities`. Undeclared hooks raise ``NotImplementedError``.
    """

    name: ClassVar[str]
    capabilities: ClassVar[ProviderCapabilities] = ProviderCapabilities()

    @classmethod
    def from_settings(cls, settings: ProviderSettings) -> ProviderAdapter:
        """Construct the adapter for one provider table entry."""
        return cls()

    @abstractmethod
    async def generate(self, request: GenerateRequest) -> GenerateResponse:
        """Send *request* to the backend."""

    async def generate_text(self, prompt: str) -> str:
        response = await self.generate(GenerateRequest(prompt=prompt))
        return response.text or ""

    async def doctor(self) -> DoctorResult:
        raise NotImplementedError(f"{type(self).__name__} has no health probe.")

    def set_role(self, role: str) -> None:
        raise NotImplementedError(f"{type(self).__name__} takes no role label.")

    def set_specialties(self, specialties: Sequence[str]) -> None:
        raise NotImplementedError(f"{type(self).__name__} takes no specialties.")

    def set_orchestrator_context(self, context: Any) -> None:
        raise NotImplementedError(f"{type(self).__name__} takes no orchestrator context.")

    async def teardown(self) -> None:
        raise NotImplementedError(f"{type(self).__name__} has nothing to tear down.")


class RoleLabelsMixin:
    """Keeps the role label, specialties and owning council handed to a provider."""

    role: str | None = None
    specialties: list[str] | None = None
    council: Any = None

    def set_role(self, role: str) -> None:
        self.role = role

    def set_specialties(self, specialties: Sequence[str]) -> None:
        self.specialties = list(specialties)

    def set_orchestrator_context(self, context: Any) -> None:
        self.council = context
