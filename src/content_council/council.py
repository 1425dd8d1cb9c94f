"""
Council - Main facade class for content-council.

Provides a simple interface for running content pipelines.
"""

from __future__ import annotations

import asyncio
from types import TracebackType

from content_council.config.settings import CouncilSettings, load_settings
from content_council.engine.health import HealthRecord
from content_council.engine.orchestrator import CouncilOrchestrator
from content_council.engine.pipeline import workflow_names
from content_council.engine.quality import QualityCouncil
from content_council.errors import CouncilValidationError
from content_council.protocol.types import (
    DetailedStatusSnapshot,
    InitializationState,
    PipelineRun,
    QualityRun,
    StatusSnapshot,
)
from content_council.providers.pool import ProviderPool
from content_council.providers.registry import ProviderRegistry


class Council:
    """Role-based content council.

    Wraps a :class:`CouncilOrchestrator` (or a :class:`QualityCouncil` when
    ``quality=True``) and initializes it lazily on first use.

    Example:
        ```python
        async with Council() as council:
            run = await council.run("Write an article about Thai street food")
            print(run.final_content)
        ```
    """

    def __init__(
        self,
        settings: CouncilSettings | None = None,
        *,
        quality: bool = False,
        provider_pool: ProviderPool | None = None,
        registry: ProviderRegistry | None = None,
    ) -> None:
        """Initialize the Council.

        Args:
            settings: Council settings; loaded from env/config file when omitted.
            quality: Use the quality variant (scoring and SEO structure).
            provider_pool: Shared pool to adopt providers from instead of
                constructing them.
            registry: Provider registry used for construction.
        """
        orchestrator_cls = QualityCouncil if quality else CouncilOrchestrator
        if settings is None:
            settings = load_settings(variant=orchestrator_cls.variant)
        self._orchestrator: CouncilOrchestrator = orchestrator_cls(
            settings, registry, provider_pool=provider_pool
        )
        self._pool = provider_pool
        self._start_task: asyncio.Task[InitializationState] | None = None

    async def __aenter__(self) -> Council:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.shutdown()

    @property
    def orchestrator(self) -> CouncilOrchestrator:
        return self._orchestrator

    @property
    def is_quality(self) -> bool:
        return isinstance(self._orchestrator, QualityCouncil)

    async def start(self) -> InitializationState:
        """Initialize the council if it is not operational yet.

        Concurrent callers share one in-flight initialization.
        """
        if self._orchestrator.state.is_operational:
            return self._orchestrator.state
        if self._start_task is None or self._start_task.done():
            self._start_task = asyncio.create_task(self._start())
        return await asyncio.shield(self._start_task)

    async def _start(self) -> InitializationState:
        if self._pool is not None:
            return await self._orchestrator.initialize_from_shared_pool(self._pool)
        return await self._orchestrator.initialize()

    async def run(
        self, prompt: str, workflow: str = "full", *, timeout: float | None = None
    ) -> PipelineRun:
        """Run a workflow.

        Args:
            prompt: The content request.
            workflow: One of :meth:`available_workflows`.
            timeout: Optional deadline in seconds for the whole run.

        Returns:
            PipelineRun with the result.
        """
        await self.start()
        return await self._orchestrator.execute_workflow(prompt, workflow, timeout=timeout)

    async def optimize(
        self,
        prompt: str,
        target_keyword: str,
        content_type: str = "article",
        *,
        timeout: float | None = None,
    ) -> QualityRun:
        """Run the quality pipeline. Only available with ``quality=True``."""
        if not isinstance(self._orchestrator, QualityCouncil):
            raise CouncilValidationError("Content optimization requires a quality council")
        await self.start()
        return await self._orchestrator.create_optimized_content(
            prompt, target_keyword, content_type, timeout=timeout
        )

    async def consult(self, role: str, question: str) -> str:
        await self.start()
        return await self._orchestrator.consult(role, question)

    async def doctor(self) -> dict[str, HealthRecord]:
        """Check provider health.

        Returns:
            Dict mapping provider identifiers to fresh health records.
        """
        await self.start()
        return await self._orchestrator.doctor()

    def status(self) -> StatusSnapshot:
        return self._orchestrator.status()

    def detailed_status(self) -> DetailedStatusSnapshot:
        return self._orchestrator.detailed_status()

    async def reinitialize(self) -> DetailedStatusSnapshot:
        return await self._orchestrator.reinitialize()

    async def shutdown(self) -> None:
        await self._orchestrator.shutdown()

    @classmethod
    def available_workflows(cls) -> list[str]:
        """Get list of available workflow names."""
        return workflow_names()
