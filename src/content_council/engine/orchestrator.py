"""Council orchestration engine for role-based content pipelines.

The orchestrator owns the council membership: it constructs providers through
the registry under a time budget, assigns each one a pipeline role, tracks
their health in the background and runs workflows over them.

Provider failures never escape as exceptions from a workflow call. A failed
construction becomes an initialization error entry, a failed health probe
becomes an ``unhealthy`` record, and a failed stage hands the run to the
:class:`DegradationManager`. Callers always receive a run with an explicit
status; only whole-system problems (nothing could be initialized, the council
is not ready, the request is invalid) are raised.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar

from content_council.config.settings import (
    DEFAULT_PRIORITY,
    CouncilSettings,
    ProviderSettings,
    Variant,
    load_settings,
)
from content_council.engine.degradation import DegradationManager, DegradationReport
from content_council.engine.health import HealthRecord, HealthTracker
from content_council.engine.pipeline import WORKFLOWS, WorkflowPipeline, workflow_names
from content_council.errors import (
    ConfigurationError,
    ConstructionError,
    ConstructionTimeoutError,
    CouncilNotReadyError,
    CouncilReinitializedError,
    CouncilValidationError,
    InitializationError,
    SetupError,
    StageExecutionError,
    UnknownRoleError,
    UnknownWorkflowError,
)
from content_council.protocol.types import (
    DetailedStatusSnapshot,
    InitializationAttempt,
    InitializationErrorEntry,
    InitializationState,
    MemberInfo,
    PipelineRun,
    QualityRun,
    RunStatus,
    StatusSnapshot,
    utc_now,
)
from content_council.providers.base import ProviderAdapter, ProviderCapabilities
from content_council.providers.registry import ProviderRegistry, get_registry

if TYPE_CHECKING:
    from content_council.providers.pool import ProviderPool

logger = logging.getLogger(__name__)

RunT = TypeVar("RunT", PipelineRun, QualityRun)


@dataclass
class ProviderRecord:
    """An active council member."""

    identifier: str
    adapter: ProviderAdapter
    display_name: str
    role: str | None = None
    title: str | None = None
    specialties: list[str] = field(default_factory=list)
    capabilities: ProviderCapabilities = field(default_factory=ProviderCapabilities)
    owned: bool = True  # False for handles borrowed from a ProviderPool

    def to_member_info(self) -> MemberInfo:
        return MemberInfo(
            identifier=self.identifier,
            display_name=self.display_name,
            role=self.role,
            title=self.title,
            specialties=list(self.specialties),
            capabilities=self.capabilities.declared(),
        )


class CouncilOrchestrator:
    """Base council: the ``full``, ``create``, ``review`` and ``optimize`` workflows.

    Initialization, reinitialization and shutdown are serialized by a lock.
    While one of them runs the state is ``initializing``, so new workflows
    fail fast. Each reset bumps a generation counter that in-flight runs check
    before every stage and before committing every step.
    """

    variant: ClassVar[Variant] = "base"

    def __init__(
        self,
        settings: CouncilSettings | None = None,
        registry: ProviderRegistry | None = None,
        *,
        provider_pool: ProviderPool | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            settings: Council settings; loaded from env/config file when omitted.
            registry: Provider registry used for construction.
            provider_pool: Optional shared pool for :meth:`initialize_from_shared_pool`.
        """
        self._settings = settings if settings is not None else load_settings(variant=self.variant)
        self._registry = registry or get_registry()
        self._pool = provider_pool
        self._providers: dict[str, ProviderRecord] = {}
        self._roles: dict[str, str] = {}
        self._state = InitializationState.UNINITIALIZED
        self._attempt: InitializationAttempt | None = None
        self._health = HealthTracker(
            interval=self._settings.health_check_interval,
            timeout=self._settings.health_check_timeout,
        )
        self._degradation = DegradationManager()
        self._lock = asyncio.Lock()
        self._generation = 0

    @property
    def settings(self) -> CouncilSettings:
        return self._settings

    @property
    def state(self) -> InitializationState:
        return self._state

    @property
    def health(self) -> HealthTracker:
        return self._health

    @property
    def provider_ids(self) -> list[str]:
        """Active provider identifiers in registration order."""
        return list(self._providers)

    @property
    def roles(self) -> dict[str, str]:
        return dict(self._roles)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> InitializationState:
        """Construct every enabled provider and activate the ones that succeed.

        Returns:
            ``partially_initialized`` or ``fully_initialized``.

        Raises:
            ConfigurationError: No enabled provider has a credential.
            InitializationError: Every candidate failed to construct.
        """
        async with self._lock:
            await self._initialize_locked()
        return self._state

    async def initialize_from_shared_pool(
        self, pool: ProviderPool | None = None
    ) -> InitializationState:
        """Adopt the healthy providers of a shared :class:`ProviderPool`.

        Roles come from this council's configuration. Pool handles are borrowed:
        no setup hooks are called on them and they are never torn down here.
        Without a pool this falls back to :meth:`initialize`.
        """
        pool = pool if pool is not None else self._pool
        if pool is None:
            logger.warning("No provider pool available, falling back to standard initialization")
            return await self.initialize()

        self._pool = pool
        async with self._lock:
            await self._initialize_from_pool_locked(pool)
        return self._state

    async def reinitialize(self) -> DetailedStatusSnapshot:
        """Tear everything down and initialize again from the same source.

        Initialization failures are logged and reflected in the returned
        snapshot rather than raised.
        """
        logger.info("Reinitializing council")
        async with self._lock:
            try:
                from_pool = self._attempt is not None and self._attempt.source == "shared_pool"
                if from_pool and self._pool is not None:
                    await self._initialize_from_pool_locked(self._pool)
                else:
                    await self._initialize_locked()
            except (ConfigurationError, InitializationError) as exc:
                logger.error("Reinitialization failed: %s", exc)
        return self.detailed_status()

    async def shutdown(self) -> None:
        """Stop health monitoring and release every owned provider."""
        async with self._lock:
            await self._reset_locked()
            self._state = InitializationState.UNINITIALIZED
        logger.info("Council shut down")

    async def _reset_locked(self) -> None:
        await self._health.stop()
        self._generation += 1
        self._state = InitializationState.INITIALIZING

        records = list(self._providers.values())
        self._providers.clear()
        self._roles.clear()
        self._health.clear()

        for record in records:
            if not (record.owned and record.capabilities.teardown):
                continue
            try:
                await record.adapter.teardown()
            except Exception as exc:
                logger.warning("Provider %s teardown failed: %s", record.identifier, exc)

    async def _initialize_locked(self) -> None:
        await self._reset_locked()

        candidates = self._settings.enabled_providers()
        attempt = InitializationAttempt(total_count=len(candidates), source="registry")
        self._attempt = attempt
        if not candidates:
            self._state = InitializationState.FAILED
            raise ConfigurationError(
                "No enabled providers with API keys configured. "
                "Set at least one of CLAUDE_API_KEY, OPENAI_API_KEY, DEEPSEEK_API_KEY, "
                "GEMINI_API_KEY or CHINDA_API_KEY."
            )

        logger.info("Initializing council with %d candidate provider(s)", len(candidates))
        timeout = self._settings.construction_timeout
        for entry in candidates:
            try:
                adapter = await asyncio.wait_for(
                    asyncio.to_thread(self._registry.construct, entry.identifier, entry),
                    timeout=timeout,
                )
            except asyncio.TimeoutError:
                self._record_failure(
                    attempt,
                    entry.identifier,
                    ConstructionTimeoutError(entry.identifier, timeout),
                    "timeout",
                )
                continue
            except ConstructionError as exc:
                self._record_failure(attempt, entry.identifier, exc, "construction")
                continue
            except Exception as exc:
                error = ConstructionError(entry.identifier, str(exc) or type(exc).__name__)
                self._record_failure(attempt, entry.identifier, error, "construction")
                continue

            self._activate(attempt, entry, adapter, owned=True)

        self._finish_initialization(attempt)

    async def _initialize_from_pool_locked(self, pool: ProviderPool) -> None:
        await self._reset_locked()

        entries = pool.entries()
        attempt = InitializationAttempt(total_count=len(entries), source="shared_pool")
        self._attempt = attempt
        logger.info("Initializing council from shared pool (%d provider(s))", len(entries))

        names = list(entries)
        if self._settings.sort_by_priority:
            names.sort(key=self._priority_of)

        for name in names:
            status = entries[name].status
            if status != "healthy":
                logger.warning("Skipping unhealthy pool provider %s: %s", name, status)
                self._record_failure(attempt, name, f"provider is {status} in shared pool", "pool")
                continue
            adapter = pool.get_provider(name)
            if adapter is None:
                self._record_failure(attempt, name, "provider not available from pool", "pool")
                continue
            entry = self._settings.get_provider(name) or ProviderSettings(identifier=name)
            self._activate(attempt, entry, adapter, owned=False)

        if not entries:
            self._record_failure(attempt, "pool", "No providers available in shared pool", "pool")
        self._finish_initialization(attempt)

    def _priority_of(self, identifier: str) -> int:
        entry = self._settings.get_provider(identifier)
        return entry.effective_priority if entry else DEFAULT_PRIORITY

    def _record_failure(
        self,
        attempt: InitializationAttempt,
        identifier: str,
        error: Exception | str,
        error_type: str,
    ) -> None:
        message = str(error)
        attempt.errors.append(
            InitializationErrorEntry(provider_id=identifier, message=message, error_type=error_type)
        )
        if error_type == "pool":
            logger.warning("Provider %s not adopted: %s", identifier, message)
        else:
            logger.error("Provider %s failed to initialize: %s", identifier, message)

    def _activate(
        self,
        attempt: InitializationAttempt,
        entry: ProviderSettings,
        adapter: ProviderAdapter,
        *,
        owned: bool,
    ) -> None:
        record = ProviderRecord(
            identifier=entry.identifier,
            adapter=adapter,
            display_name=entry.display_name,
            role=entry.role,
            title=entry.title,
            specialties=list(entry.specialties),
            capabilities=adapter.capabilities,
            owned=owned,
        )
        if owned:
            self._run_setup_hooks(record)

        self._providers[record.identifier] = record
        if record.role:
            previous = self._roles.get(record.role)
            if previous is not None and previous != record.identifier:
                logger.warning(
                    "Role %s reassigned from %s to %s", record.role, previous, record.identifier
                )
            self._roles[record.role] = record.identifier
        self._health.seed(record.identifier)
        attempt.succeeded_count += 1
        logger.info("Provider %s joined the council as %s", record.identifier, record.role)

    def _run_setup_hooks(self, record: ProviderRecord) -> None:
        adapter = record.adapter
        capabilities = record.capabilities
        label = record.title or record.role or "general"

        hooks: list[tuple[str, Callable[[], None]]] = []
        if capabilities.role_labels:
            hooks.append(("set_role", lambda: adapter.set_role(label)))
        if capabilities.specialties:
            hooks.append(("set_specialties", lambda: adapter.set_specialties(record.specialties)))
        if capabilities.orchestrator_context:
            hooks.append(
                ("set_orchestrator_context", lambda: adapter.set_orchestrator_context(self))
            )

        for hook, call in hooks:
            try:
                call()
            except Exception as exc:
                error = SetupError(record.identifier, hook, str(exc) or type(exc).__name__)
                logger.warning("%s", error)

    def _finish_initialization(self, attempt: InitializationAttempt) -> None:
        if attempt.succeeded_count == 0:
            self._state = InitializationState.FAILED
            errors = [error.model_dump() for error in attempt.errors]
            logger.error("Council initialization failed: no providers available")
            raise InitializationError(errors)

        if attempt.succeeded_count == attempt.total_count:
            self._state = InitializationState.FULLY_INITIALIZED
            logger.info("Council fully initialized with %d provider(s)", attempt.succeeded_count)
        else:
            self._state = InitializationState.PARTIALLY_INITIALIZED
            logger.warning(
                "Council partially initialized: %d of %d provider(s) active",
                attempt.succeeded_count,
                attempt.total_count,
            )
        self._health.start(self._health_targets)

    def _health_targets(self) -> dict[str, tuple[ProviderAdapter, bool]]:
        return {
            identifier: (record.adapter, record.capabilities.health_probe)
            for identifier, record in self._providers.items()
        }

    # ------------------------------------------------------------------
    # Stage host
    # ------------------------------------------------------------------

    def member_for_role(self, role: str) -> str | None:
        identifier = self._roles.get(role)
        return identifier if identifier in self._providers else None

    def member_title(self, provider_id: str) -> str | None:
        record = self._providers.get(provider_id)
        if record is None:
            return None
        return record.title or record.role

    def ensure_generation(self, generation: int) -> None:
        if generation != self._generation or not self._state.is_operational:
            raise CouncilReinitializedError(self._state.value)

    async def call_member(self, provider_id: str, prompt: str) -> str:
        """Generate text with one active member, bounded by ``generation_timeout``."""
        record = self._providers.get(provider_id)
        if record is None:
            raise CouncilReinitializedError(self._state.value)

        call: Awaitable[str] = record.adapter.generate_text(prompt)
        timeout = self._settings.generation_timeout
        if timeout is None:
            return await call
        return await asyncio.wait_for(call, timeout=timeout)

    # ------------------------------------------------------------------
    # Invocation surface
    # ------------------------------------------------------------------

    def _ensure_ready(self) -> None:
        if not self._state.is_operational:
            errors = (
                [error.model_dump() for error in self._attempt.errors] if self._attempt else []
            )
            raise CouncilNotReadyError(self._state.value, errors)

    @staticmethod
    def _validate_text(value: Any, name: str = "prompt") -> str:
        if not isinstance(value, str) or not value.strip():
            raise CouncilValidationError(f"Invalid {name}: must be a non-empty string")
        return value

    async def execute_workflow(
        self, prompt: str, workflow: str = "full", *, timeout: float | None = None
    ) -> PipelineRun:
        """Run a named workflow.

        Args:
            prompt: Caller prompt.
            workflow: One of ``full``, ``create``, ``review``, ``optimize``.
            timeout: Optional deadline in seconds for the whole run.

        Returns:
            A :class:`PipelineRun` with status ``completed``, ``degraded`` or ``failed``.

        Raises:
            CouncilNotReadyError: The council is not (partially) initialized.
            CouncilValidationError: Empty prompt or unknown workflow.
        """
        self._ensure_ready()
        self._validate_text(prompt)
        if workflow not in WORKFLOWS:
            raise UnknownWorkflowError(workflow, workflow_names())

        run = PipelineRun(original_prompt=prompt, workflow_name=workflow)
        pipeline = WorkflowPipeline.for_workflow(workflow)

        async def body(generation: int) -> None:
            await pipeline.execute(run, self, generation)

        return await self._run_guarded(run, workflow, body, timeout=timeout)

    async def consult(self, role: str, question: str) -> str:
        """Ask the member holding *role* directly, bypassing the pipeline.

        Provider errors propagate to the caller unchanged.
        """
        self._ensure_ready()
        self._validate_text(question, "question")
        provider_id = self.member_for_role(role)
        if provider_id is None:
            raise UnknownRoleError(role)
        return await self.call_member(provider_id, question)

    async def doctor(self) -> dict[str, HealthRecord]:
        """Health-check every active provider now and return the new records."""
        return await self._health.check_all(self._health_targets())

    async def _run_guarded(
        self,
        run: RunT,
        workflow: str,
        body: Callable[[int], Awaitable[None]],
        *,
        timeout: float | None = None,
        on_fallback: Callable[[str, DegradationReport], None] | None = None,
    ) -> RunT:
        """Run *body* under the caller deadline and degrade on stage failure."""
        generation = self._generation
        started = time.monotonic()
        deadline = None if timeout is None else started + timeout
        run.metadata.update(
            started_at=utc_now(),
            workflow_type=workflow,
            participating_providers=list(self._providers),
        )
        logger.info("Starting %s workflow for: %r", workflow, run.original_prompt[:50])

        try:
            await self._bounded(body(generation), deadline)
            run.status = RunStatus.COMPLETED
        except asyncio.TimeoutError:
            self._mark_failed(run, workflow, f"workflow deadline of {timeout:g}s exceeded")
        except CouncilReinitializedError as exc:
            self._mark_failed(run, workflow, str(exc))
        except StageExecutionError as exc:
            await self._degrade(run, workflow, exc, generation, deadline, on_fallback)
        except Exception as exc:
            logger.exception("%s workflow failed", workflow)
            self._mark_failed(run, workflow, str(exc) or type(exc).__name__)
        finally:
            run.metadata["execution_time_ms"] = int((time.monotonic() - started) * 1000)

        logger.info(
            "%s workflow finished: status=%s steps=%d", workflow, run.status.value, len(run.steps)
        )
        return run

    @staticmethod
    async def _bounded(awaitable: Awaitable[Any], deadline: float | None) -> Any:
        if deadline is None:
            return await awaitable
        return await asyncio.wait_for(awaitable, timeout=max(0.0, deadline - time.monotonic()))

    @staticmethod
    def _mark_failed(run: PipelineRun | QualityRun, workflow: str, error: str) -> None:
        run.status = RunStatus.FAILED
        run.error = error
        run.metadata["failed_workflow"] = workflow
        run.metadata["error_timestamp"] = utc_now()
        logger.error("%s workflow failed: %s", workflow, error)

    async def _degrade(
        self,
        run: PipelineRun | QualityRun,
        workflow: str,
        error: StageExecutionError,
        generation: int,
        deadline: float | None,
        on_fallback: Callable[[str, DegradationReport], None] | None,
    ) -> None:
        report = DegradationReport()
        self._degradation.record_stage_failure(report, error)
        self._mark_failed(run, workflow, str(error))
        run.metadata["degradation"] = report.to_dict()

        if generation != self._generation:
            run.error = str(CouncilReinitializedError(self._state.value))
            return
        providers = list(self._providers)
        if not providers:
            return

        logger.info("Attempting graceful degradation for %s", workflow)
        try:
            fallback = await self._bounded(
                self._degradation.generate_fallback(
                    run.original_prompt, providers, report, self.call_member
                ),
                deadline,
            )
        except asyncio.TimeoutError:
            run.error = f"{run.error}; deadline exceeded during fallback"
        else:
            run.fallback_content = fallback
            run.status = RunStatus.DEGRADED
            if on_fallback is not None:
                on_fallback(fallback, report)
        run.metadata["degradation"] = report.to_dict()

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def status(self) -> StatusSnapshot:
        return StatusSnapshot(**self._status_fields())

    def _status_fields(self) -> dict[str, Any]:
        return {
            "state": self._state,
            "initialized": self._state.is_operational,
            "total_members": len(self._providers),
            "members": {
                identifier: record.to_member_info()
                for identifier, record in self._providers.items()
            },
            "roles": dict(self._roles),
            "workflows": workflow_names(),
        }

    def detailed_status(self) -> DetailedStatusSnapshot:
        """Status plus initialization errors and per-provider health."""
        attempt = self._attempt
        health: Mapping[str, HealthRecord] = self._health.records()
        return DetailedStatusSnapshot(
            **self._status_fields(),
            initialization=attempt.model_copy(deep=True) if attempt else None,
            successful_providers=list(self._providers),
            failed_providers=[error.provider_id for error in attempt.errors] if attempt else [],
            health={identifier: record.to_dict() for identifier, record in health.items()},
            overall_health=self._health.overall_health(),
            fallback_enabled=bool(self._providers),
            health_monitoring=self._health.running,
        )


__all__ = ["CouncilOrchestrator", "ProviderRecord"]
