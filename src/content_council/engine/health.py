"""
Provider health tracking for content-council.

Keeps one :class:`HealthRecord` per active provider and refreshes them on a
background asyncio task. Providers that declare a health probe are checked
with ``doctor()``; the rest with a short ``generate_text("Health check")``.
Failures are recorded, never raised.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from content_council.engine.scoring import round_half_up
from content_council.errors import HealthCheckError
from content_council.protocol.types import utc_now
from content_council.providers.base import ErrorType, ProviderAdapter, classify_error

logger = logging.getLogger(__name__)

HEALTH_CHECK_PROMPT = "Health check"


class HealthState(str, Enum):
    """Provider health status."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    CHECKING = "checking"  # Probe in flight


@dataclass
class HealthRecord:
    """Latest health observation for a single provider."""

    provider_id: str
    status: HealthState
    last_checked_at: str = field(default_factory=utc_now)
    latency_ms: float | None = None
    last_error: str | None = None
    error_type: ErrorType | None = None

    def is_healthy(self) -> bool:
        return self.status == HealthState.HEALTHY

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "provider_id": self.provider_id,
            "status": self.status.value,
            "last_checked_at": self.last_checked_at,
            "latency_ms": self.latency_ms,
            "last_error": self.last_error,
            "error_type": self.error_type.value if self.error_type else None,
        }


ProviderSource = Callable[[], Mapping[str, tuple[ProviderAdapter, bool]]]


class HealthTracker:
    """Per-provider health records plus a cancelable periodic check.

    Providers are passed as ``identifier -> (adapter, has_health_probe)`` so the
    probe choice comes from the capability flags captured at registration.
    """

    DEFAULT_INTERVAL = 300.0
    DEFAULT_TIMEOUT = 10.0

    def __init__(
        self, interval: float = DEFAULT_INTERVAL, timeout: float = DEFAULT_TIMEOUT
    ) -> None:
        self._interval = interval
        self._timeout = timeout
        self._records: dict[str, HealthRecord] = {}
        self._task: asyncio.Task[None] | None = None
        # Bumped on clear() so probes started before a reset cannot write back
        self._epoch = 0

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def seed(self, provider_id: str) -> None:
        """Mark a newly activated provider as healthy."""
        self._records[provider_id] = HealthRecord(
            provider_id=provider_id, status=HealthState.HEALTHY
        )

    def discard(self, provider_id: str) -> None:
        self._records.pop(provider_id, None)

    def clear(self) -> None:
        self._records.clear()
        self._epoch += 1

    def records(self) -> dict[str, HealthRecord]:
        return dict(self._records)

    def get(self, provider_id: str) -> HealthRecord | None:
        return self._records.get(provider_id)

    def overall_health(self) -> int:
        """Percentage of healthy providers, rounded; 0 when none are tracked."""
        total = len(self._records)
        if total == 0:
            return 0
        healthy = sum(1 for record in self._records.values() if record.is_healthy())
        return round_half_up(100 * healthy / total)

    async def _probe(self, provider_id: str, adapter: ProviderAdapter, has_probe: bool) -> None:
        if has_probe:
            result = await adapter.doctor()
            if not result.ok:
                message = result.message or "health probe reported not ok"
                raise HealthCheckError(provider_id, message)
        else:
            await adapter.generate_text(HEALTH_CHECK_PROMPT)

    async def check_provider(
        self, provider_id: str, adapter: ProviderAdapter, has_probe: bool
    ) -> HealthRecord:
        """Check a single provider and replace its record.

        Returns:
            The new record (also stored unless the tracker was cleared meanwhile).
        """
        epoch = self._epoch
        previous = self._records.get(provider_id)
        self._records[provider_id] = HealthRecord(
            provider_id=provider_id,
            status=HealthState.CHECKING,
            latency_ms=previous.latency_ms if previous else None,
        )

        start = time.monotonic()
        try:
            await asyncio.wait_for(self._probe(provider_id, adapter, has_probe), self._timeout)
        except asyncio.TimeoutError:
            record = HealthRecord(
                provider_id=provider_id,
                status=HealthState.UNHEALTHY,
                latency_ms=(time.monotonic() - start) * 1000,
                last_error=f"Health check timed out after {self._timeout:g}s",
                error_type=ErrorType.TIMEOUT,
            )
        except Exception as exc:
            error = exc
            if not isinstance(exc, HealthCheckError):
                error = HealthCheckError(provider_id, str(exc))
            record = HealthRecord(
                provider_id=provider_id,
                status=HealthState.UNHEALTHY,
                latency_ms=(time.monotonic() - start) * 1000,
                last_error=str(error),
                error_type=classify_error(exc),
            )
        else:
            record = HealthRecord(
                provider_id=provider_id,
                status=HealthState.HEALTHY,
                latency_ms=(time.monotonic() - start) * 1000,
            )

        if record.status == HealthState.UNHEALTHY:
            logger.warning("Provider %s is unhealthy: %s", provider_id, record.last_error)
        else:
            logger.debug("Provider %s healthy (%.0fms)", provider_id, record.latency_ms or 0.0)

        if epoch == self._epoch:
            self._records[provider_id] = record
        return record

    async def check_all(
        self, providers: Mapping[str, tuple[ProviderAdapter, bool]]
    ) -> dict[str, HealthRecord]:
        """Check all providers concurrently."""
        if not providers:
            return {}
        results = await asyncio.gather(
            *(
                self.check_provider(provider_id, adapter, has_probe)
                for provider_id, (adapter, has_probe) in providers.items()
            )
        )
        return {record.provider_id: record for record in results}

    def start(self, source: ProviderSource) -> None:
        """Start the periodic check. Idempotent while a task is running."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(source), name="content-council-health")
        logger.debug("Health monitoring started (interval=%gs)", self._interval)

    async def stop(self) -> None:
        """Cancel the periodic check and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.debug("Health monitoring stopped")

    async def _run(self, source: ProviderSource) -> None:
        while True:
            await asyncio.sleep(self._interval)
            await self.check_all(source())


__all__ = ["HEALTH_CHECK_PROMPT", "HealthRecord", "HealthState", "HealthTracker"]
