"""Fallback content for runs whose pipeline broke.

A failed stage does not lose the run. Every active provider is asked, in
registration order, for a plain answer to the caller's prompt with
:data:`FALLBACK_MARKER` appended, and the first non-blank reply is used. When
nobody answers the run still returns, carrying :data:`FALLBACK_SENTINEL`.

Each failure is classified with :func:`classify_error` and kept in a
:class:`DegradationReport` that travels in the run metadata.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from content_council.errors import StageExecutionError
from content_council.protocol.types import utc_now
from content_council.providers.base import ErrorType, billing_page, classify_error

logger = logging.getLogger(__name__)

FALLBACK_MARKER = "\n\n[Fallback mode - simple response requested]"
FALLBACK_SENTINEL = "Unable to generate content - all providers failed"

MESSAGE_LIMIT = 200


@dataclass
class FailureEvent:
    """One provider call that went wrong."""

    provider: str
    phase: str  # stage role, or "fallback"
    error_type: ErrorType
    error_message: str
    timestamp: str = field(default_factory=utc_now)

    def operator_hint(self) -> str | None:
        if self.error_type is ErrorType.BILLING:
            return f"top up at {billing_page(self.provider)}"
        if self.error_type is ErrorType.AUTH:
            return f"check the API key for {self.provider}"
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider": self.provider,
            "phase": self.phase,
            "error_type": self.error_type.value,
            "error_message": self.error_message[:MESSAGE_LIMIT],
            "timestamp": self.timestamp,
        }


@dataclass
class DegradationReport:
    """Failures, fallback attempts and the outcome of one run."""

    failures: list[FailureEvent] = field(default_factory=list)
    attempted: list[str] = field(default_factory=list)
    fallback_provider: str | None = None
    exhausted: bool = False

    def add_failure(self, event: FailureEvent) -> None:
        self.failures.append(event)

    def to_summary(self) -> str:
        """Short multi-line text for the CLI and logs."""
        count = len(self.failures)
        if not count:
            return "No provider failures"

        lines = [f"{count} provider failure(s)"]
        if self.fallback_provider:
            lines.append(f"  Fallback: {self.fallback_provider}")
        elif self.exhausted:
            lines.append("  Fallback: none, every provider failed")
        for event in self.failures:
            hint = event.operator_hint()
            if hint:
                lines.append(f"  {event.provider} [{event.error_type.value}]: {hint}")
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "failures": [event.to_dict() for event in self.failures],
            "attempted": list(self.attempted),
            "fallback_provider": self.fallback_provider,
            "exhausted": self.exhausted,
        }


FallbackCall = Callable[[str, str], Awaitable[str]]


class DegradationManager:
    """Classifies stage failures and walks the provider list for fallback content."""

    def __init__(self, marker: str = FALLBACK_MARKER, sentinel: str = FALLBACK_SENTINEL) -> None:
        self.marker = marker
        self.sentinel = sentinel

    def record(
        self, report: DegradationReport, provider: str, phase: str, error: BaseException
    ) -> FailureEvent:
        if isinstance(error, StageExecutionError):
            error = error.cause
        event = FailureEvent(
            provider=provider,
            phase=phase,
            error_type=classify_error(error),
            error_message=str(error) or type(error).__name__,
        )
        report.add_failure(event)
        logger.warning(
            "%s failed during %s [%s]: %s",
            provider,
            phase,
            event.error_type.value,
            event.error_message[:MESSAGE_LIMIT],
        )
        return event

    def record_stage_failure(self, report: DegradationReport, error: BaseException) -> None:
        if isinstance(error, StageExecutionError):
            self.record(report, error.provider, error.role, error)
        else:
            self.record(report, "pipeline", "pipeline", error)

    async def generate_fallback(
        self,
        prompt: str,
        providers: Sequence[str],
        report: DegradationReport,
        call: FallbackCall,
    ) -> str:
        """Return the first non-blank fallback reply, or the sentinel.

        *prompt* is the caller's prompt, not a rendered stage prompt.
        *providers* lists active identifiers in registration order and
        ``call(provider_id, text)`` performs one generation. Every failed or
        blank attempt adds an event to *report*.
        """
        request = prompt + self.marker
        for provider_id in providers:
            report.attempted.append(provider_id)
            try:
                text = await call(provider_id, request)
            except Exception as exc:
                self.record(report, provider_id, "fallback", exc)
                continue
            if text and text.strip():
                report.fallback_provider = provider_id
                logger.info("Using fallback content from %s", provider_id)
                return text
            self.record(report, provider_id, "fallback", ValueError("empty response"))

        report.exhausted = True
        logger.error("No provider produced fallback content")
        return self.sentinel


__all__ = [
    "FALLBACK_MARKER",
    "FALLBACK_SENTINEL",
    "DegradationManager",
    "DegradationReport",
    "FailureEvent",
]
