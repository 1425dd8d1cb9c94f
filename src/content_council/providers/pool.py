"""
Shared provider pool.

One set of constructed providers that several councils can adopt through
:meth:`CouncilOrchestrator.initialize_from_shared_pool`, instead of each
council constructing its own clients. The pool owns the handles: councils
borrow them and never tear them down.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from content_council.config.settings import CouncilSettings, ProviderSettings, load_settings
from content_council.engine.health import HealthRecord, HealthTracker
from content_council.errors import ConstructionError, ConstructionTimeoutError
from content_council.providers.base import ProviderAdapter
from content_council.providers.registry import ProviderRegistry, get_registry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PoolEntry:
    """Health summary of one pooled provider."""

    status: str
    last_check: str | None = None
    error: str | None = None


class ProviderPool:
    """Constructs enabled providers once and hands them out by name."""

    def __init__(
        self,
        settings: CouncilSettings | None = None,
        registry: ProviderRegistry | None = None,
    ) -> None:
        self._settings = settings if settings is not None else load_settings()
        self._registry = registry or get_registry()
        self._providers: dict[str, ProviderAdapter] = {}
        self._initialization_status: dict[str, str] = {}
        self._health = HealthTracker(
            interval=self._settings.health_check_interval,
            timeout=self._settings.health_check_timeout,
        )
        self._init_task: asyncio.Task[dict[str, str]] | None = None

    @property
    def initialization_status(self) -> dict[str, str]:
        """``name -> "success" | "failed"`` from the latest initialization."""
        return dict(self._initialization_status)

    async def initialize(self) -> dict[str, str]:
        """Construct and health-check every enabled provider concurrently.

        Concurrent callers share one in-flight initialization. Providers
        already in the pool are kept as they are.
        """
        if self._init_task is None or self._init_task.done():
            self._init_task = asyncio.create_task(self._initialize())
        else:
            logger.debug("Provider pool already initializing, waiting")
        return await asyncio.shield(self._init_task)

    async def _initialize(self) -> dict[str, str]:
        candidates = [
            entry
            for entry in self._settings.enabled_providers()
            if entry.identifier not in self._providers
        ]
        logger.info("Initializing provider pool with %d provider(s)", len(candidates))

        results = await asyncio.gather(
            *(self._initialize_provider(entry) for entry in candidates), return_exceptions=True
        )
        for entry, result in zip(candidates, results):
            if isinstance(result, BaseException):
                self._initialization_status[entry.identifier] = "failed"
                logger.error("Failed to initialize %s in pool: %s", entry.identifier, result)
            else:
                self._initialization_status[entry.identifier] = "success"

        statuses = self._initialization_status.values()
        succeeded = sum(1 for status in statuses if status == "success")
        logger.info(
            "Provider pool ready: %d success, %d failed",
            succeeded,
            len(self._initialization_status) - succeeded,
        )
        return dict(self._initialization_status)

    async def _initialize_provider(self, entry: ProviderSettings) -> None:
        timeout = self._settings.construction_timeout
        try:
            adapter = await asyncio.wait_for(
                asyncio.to_thread(self._registry.construct, entry.identifier, entry),
                timeout=timeout,
            )
        except asyncio.TimeoutError as exc:
            raise ConstructionTimeoutError(entry.identifier, timeout) from exc

        record = await self._health.check_provider(
            entry.identifier, adapter, adapter.capabilities.health_probe
        )
        if not record.is_healthy():
            await self._release(entry.identifier, adapter)
            self._health.discard(entry.identifier)
            raise ConstructionError(entry.identifier, record.last_error or "health check failed")

        self._providers[entry.identifier] = adapter
        logger.info("%s added to provider pool", entry.identifier)

    def get_provider(self, name: str) -> ProviderAdapter | None:
        provider = self._providers.get(name)
        if provider is None:
            logger.warning("Provider %s not found in pool", name)
        return provider

    def get_all_providers(self) -> dict[str, ProviderAdapter]:
        return dict(self._providers)

    def get_providers_by_role(self, role: str) -> list[tuple[str, ProviderAdapter]]:
        """Pooled providers whose configured role or specialties match *role*."""
        matches: list[tuple[str, ProviderAdapter]] = []
        for entry in self._settings.providers:
            provider = self._providers.get(entry.identifier)
            if provider is not None and (entry.role == role or role in entry.specialties):
                matches.append((entry.identifier, provider))
        return matches

    def entries(self) -> dict[str, PoolEntry]:
        """``name -> PoolEntry`` for every pooled provider, in configuration order."""
        order = [entry.identifier for entry in self._settings.providers]
        names = sorted(
            self._providers,
            key=lambda name: order.index(name) if name in order else len(order),
        )
        result: dict[str, PoolEntry] = {}
        for name in names:
            record = self._health.get(name)
            if record is None:
                result[name] = PoolEntry(status="unknown")
                continue
            result[name] = PoolEntry(
                status=record.status.value,
                last_check=record.last_checked_at,
                error=record.last_error,
            )
        return result

    async def perform_health_checks(self) -> dict[str, HealthRecord]:
        """Re-check every pooled provider concurrently."""
        return await self._health.check_all(
            {
                name: (provider, provider.capabilities.health_probe)
                for name, provider in self._providers.items()
            }
        )

    async def cleanup(self) -> None:
        """Release every pooled provider and forget all state."""
        logger.info("Cleaning up provider pool")
        if self._init_task is not None and not self._init_task.done():
            await asyncio.wait([self._init_task])
        providers = list(self._providers.items())
        self._providers.clear()
        self._initialization_status.clear()
        self._health.clear()
        for name, provider in providers:
            await self._release(name, provider)

    async def reset(self) -> dict[str, str]:
        await self.cleanup()
        return await self.initialize()

    @staticmethod
    async def _release(name: str, provider: ProviderAdapter) -> None:
        if not provider.capabilities.teardown:
            return
        try:
            await provider.teardown()
        except Exception as exc:
            logger.warning("Provider %s teardown failed: %s", name, exc)


__all__ = ["PoolEntry", "ProviderPool"]
