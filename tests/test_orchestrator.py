"""Tests for the CouncilOrchestrator engine."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping

import pytest
from conftest import FULL_ROLES, FakeRegistry, MockProvider, make_settings

from content_council.config.settings import CouncilSettings, ProviderSettings
from content_council.engine.degradation import FALLBACK_MARKER, FALLBACK_SENTINEL
from content_council.engine.orchestrator import CouncilOrchestrator
from content_council.errors import (
    ConfigurationError,
    CouncilNotReadyError,
    CouncilValidationError,
    InitializationError,
    UnknownRoleError,
    UnknownWorkflowError,
)
from content_council.protocol.types import InitializationState, RunStatus
from content_council.providers.base import ProviderAdapter


def build_council(
    adapters: Mapping[str, ProviderAdapter | Exception],
    roles: Mapping[str, str | None] | None = None,
    delays: Mapping[str, float] | None = None,
    **council: object,
) -> CouncilOrchestrator:
    roles = roles if roles is not None else {name: FULL_ROLES.get(name) for name in adapters}
    settings = make_settings(roles, **council)
    return CouncilOrchestrator(settings, FakeRegistry(adapters, delays))  # type: ignore[arg-type]


class BrokenSetupProvider(MockProvider):
    """Mock whose role hook raises."""

    def set_role(self, role: str) -> None:
        raise RuntimeError("labels unsupported")


class TestInitialization:
    """Tests for initialize()."""

    @pytest.mark.asyncio
    async def test_all_providers_succeed(self, full_council_adapters):
        """Every candidate constructed yields fully_initialized."""
        council = build_council(full_council_adapters)

        state = await council.initialize()

        assert state == InitializationState.FULLY_INITIALIZED
        assert council.provider_ids == list(FULL_ROLES)
        assert council.roles == {role: name for name, role in FULL_ROLES.items()}
        assert council.health.overall_health() == 100
        assert council.health.running
        await council.shutdown()

    @pytest.mark.asyncio
    async def test_setup_hooks_receive_labels(self, full_council_adapters):
        """Role label, specialties and council context reach capable adapters."""
        council = build_council(full_council_adapters)
        await council.initialize()

        gemini = full_council_adapters["gemini"]
        assert gemini.role == "creator expert"
        assert gemini.specialties == ["gemini specialty"]
        assert gemini.council is council
        await council.shutdown()

    @pytest.mark.asyncio
    async def test_partial_initialization(self):
        """A construction failure is recorded and the rest still join."""
        council = build_council(
            {"gemini": MockProvider(), "openai": RuntimeError("bad credentials")}
        )

        state = await council.initialize()

        assert state == InitializationState.PARTIALLY_INITIALIZED
        assert council.provider_ids == ["gemini"]
        attempt = council.detailed_status().initialization
        assert attempt is not None
        assert attempt.succeeded_count == 1
        assert attempt.total_count == 2
        assert attempt.errors[0].provider_id == "openai"
        assert attempt.errors[0].error_type == "construction"
        assert "bad credentials" in attempt.errors[0].message
        await council.shutdown()

    @pytest.mark.asyncio
    async def test_construction_timeout(self):
        """Slow constructors are abandoned after the construction timeout."""
        council = build_council(
            {"gemini": MockProvider(), "openai": MockProvider()},
            delays={"openai": 0.5},
            construction_timeout=0.05,
        )

        state = await council.initialize()

        assert state == InitializationState.PARTIALLY_INITIALIZED
        error = council.detailed_status().initialization.errors[0]
        assert error.error_type == "timeout"
        assert "initialization timeout after 0.05s" in error.message
        await council.shutdown()

    @pytest.mark.asyncio
    async def test_all_providers_fail(self):
        """No successful construction raises InitializationError."""
        council = build_council({"gemini": RuntimeError("down"), "openai": RuntimeError("down")})

        with pytest.raises(InitializationError) as exc_info:
            await council.initialize()

        assert council.state == InitializationState.FAILED
        assert len(exc_info.value.errors) == 2
        assert not council.health.running

    @pytest.mark.asyncio
    async def test_failed_council_rejects_workflows(self):
        """After a failed initialization workflows fail fast and reach no provider."""
        slow = MockProvider()
        council = build_council(
            {"gemini": slow, "openai": RuntimeError("down")},
            delays={"gemini": 0.3},
            construction_timeout=0.05,
        )
        with pytest.raises(InitializationError):
            await council.initialize()

        with pytest.raises(CouncilNotReadyError) as exc_info:
            await council.execute_workflow("Write about rice", "create")

        assert exc_info.value.state == "failed"
        assert len(exc_info.value.errors) == 2
        assert slow.prompts == []

    @pytest.mark.asyncio
    async def test_no_candidates(self):
        """Without any credentialed provider initialization is a config error."""
        settings = CouncilSettings(providers=[ProviderSettings(identifier="gemini")])
        council = CouncilOrchestrator(settings, FakeRegistry({}))  # type: ignore[arg-type]

        with pytest.raises(ConfigurationError):
            await council.initialize()

        assert council.state == InitializationState.FAILED

    @pytest.mark.asyncio
    async def test_setup_hook_failure_is_not_fatal(self, caplog):
        """A failing hook logs a warning and the provider still joins."""
        council = build_council({"gemini": BrokenSetupProvider()})

        with caplog.at_level(logging.WARNING):
            state = await council.initialize()

        assert state == InitializationState.FULLY_INITIALIZED
        assert "setup incomplete (set_role)" in caplog.text
        await council.shutdown()

    @pytest.mark.asyncio
    async def test_last_role_assignment_wins(self, caplog):
        """Two members claiming a role: the later one keeps it."""
        council = build_council(
            {"gemini": MockProvider(), "openai": MockProvider()},
            roles={"gemini": "creator", "openai": "creator"},
        )

        with caplog.at_level(logging.WARNING):
            await council.initialize()

        assert council.roles == {"creator": "openai"}
        assert "reassigned from gemini to openai" in caplog.text
        await council.shutdown()

    @pytest.mark.asyncio
    async def test_priority_order(self):
        """With sort_by_priority, lower priority values register first."""
        settings = make_settings(
            {"gemini": "creator", "openai": "reviewer", "claude": "enhancer"},
            priorities={"gemini": 3, "openai": 1},
            sort_by_priority=True,
        )
        adapters = {name: MockProvider() for name in ("gemini", "openai", "claude")}
        council = CouncilOrchestrator(settings, FakeRegistry(adapters))  # type: ignore[arg-type]

        await council.initialize()

        assert council.provider_ids == ["openai", "gemini", "claude"]
        await council.shutdown()


class TestExecuteWorkflow:
    """Tests for execute_workflow()."""

    @pytest.mark.asyncio
    async def test_not_ready(self, full_council_adapters):
        """Workflows before initialization fail fast."""
        council = build_council(full_council_adapters)

        with pytest.raises(CouncilNotReadyError) as exc_info:
            await council.execute_workflow("Write about rice")

        assert exc_info.value.state == "uninitialized"

    @pytest.mark.asyncio
    async def test_invalid_requests(self, full_council_adapters):
        """Empty prompts and unknown workflows are rejected."""
        council = build_council(full_council_adapters)
        await council.initialize()

        with pytest.raises(CouncilValidationError, match="Invalid prompt"):
            await council.execute_workflow("   ")
        with pytest.raises(UnknownWorkflowError):
            await council.execute_workflow("Write about rice", "publish")
        await council.shutdown()

    @pytest.mark.asyncio
    async def test_full_workflow_completes(self, full_council_adapters):
        """All five stages run in order and the last output is final."""
        council = build_council(full_council_adapters)
        await council.initialize()

        run = await council.execute_workflow("Write about rice")

        assert run.status == RunStatus.COMPLETED
        assert [step.role for step in run.steps] == [
            "creator",
            "reviewer",
            "enhancer",
            "validator",
            "localizer",
        ]
        assert run.final_content == "chinda output"
        assert run.steps[0].title == "creator expert"
        assert run.metadata["workflow_type"] == "full"
        assert run.metadata["participating_providers"] == list(FULL_ROLES)
        assert "execution_time_ms" in run.metadata
        assert "started_at" in run.metadata
        await council.shutdown()

    @pytest.mark.asyncio
    async def test_stage_failure_degrades(self, full_council_adapters):
        """A failing stage hands over to the first provider that answers."""
        full_council_adapters["openai"] = MockProvider(should_fail=True)
        council = build_council(full_council_adapters)
        await council.initialize()

        run = await council.execute_workflow("Write about rice")

        assert run.status == RunStatus.DEGRADED
        assert len(run.steps) == 1
        assert run.fallback_content == "gemini output"
        assert run.final_content == "gemini output"
        assert run.error is not None
        assert run.metadata["failed_workflow"] == "full"
        assert full_council_adapters["gemini"].prompts[-1] == f"Write about rice{FALLBACK_MARKER}"
        degradation = run.metadata["degradation"]
        assert degradation["fallback_provider"] == "gemini"
        assert degradation["failures"][0]["phase"] == "reviewer"
        await council.shutdown()

    @pytest.mark.asyncio
    async def test_all_fallbacks_fail(self):
        """When no provider can answer the sentinel is returned as degraded."""
        council = build_council(
            {"gemini": MockProvider(should_fail=True), "openai": MockProvider(should_fail=True)}
        )
        await council.initialize()

        run = await council.execute_workflow("Write about rice", "create")

        assert run.status == RunStatus.DEGRADED
        assert run.final_content == FALLBACK_SENTINEL
        assert run.metadata["degradation"]["exhausted"] is True
        assert run.metadata["degradation"]["attempted"] == ["gemini", "openai"]
        await council.shutdown()

    @pytest.mark.asyncio
    async def test_deadline_fails_run(self):
        """A caller deadline that expires yields a failed run."""
        council = build_council({"gemini": MockProvider(delay=1.0)})
        await council.initialize()

        run = await council.execute_workflow("Write about rice", "create", timeout=0.05)

        assert run.status == RunStatus.FAILED
        assert run.error == "workflow deadline of 0.05s exceeded"
        assert run.steps == []
        assert run.metadata["failed_workflow"] == "create"
        await council.shutdown()

    @pytest.mark.asyncio
    async def test_generation_timeout_is_a_stage_failure(self):
        """A provider call exceeding generation_timeout degrades the run."""
        council = build_council({"gemini": MockProvider(delay=1.0)}, generation_timeout=0.05)
        await council.initialize()

        run = await council.execute_workflow("Write about rice", "create")

        assert run.status == RunStatus.DEGRADED
        assert run.final_content == FALLBACK_SENTINEL
        assert run.metadata["degradation"]["failures"][0]["error_type"] == "timeout"
        await council.shutdown()

    @pytest.mark.asyncio
    async def test_reinitialize_during_run(self):
        """A run straddling a reinitialization stops without committing steps."""
        council = build_council({"gemini": MockProvider(delay=0.2)})
        await council.initialize()

        task = asyncio.create_task(council.execute_workflow("Write about rice", "create"))
        await asyncio.sleep(0.05)
        snapshot = await council.reinitialize()
        run = await task

        assert snapshot.state == InitializationState.FULLY_INITIALIZED
        assert run.status == RunStatus.FAILED
        assert run.error == "council was reinitialized during the run"
        assert run.steps == []
        await council.shutdown()


class TestConsult:
    """Tests for consult()."""

    @pytest.mark.asyncio
    async def test_consult_sends_question_unchanged(self, full_council_adapters):
        """The question goes to the role holder as-is."""
        council = build_council(full_council_adapters)
        await council.initialize()

        answer = await council.consult("reviewer", "Is this accurate?")

        assert answer == "openai output"
        assert full_council_adapters["openai"].prompts == ["Is this accurate?"]
        await council.shutdown()

    @pytest.mark.asyncio
    async def test_consult_unknown_role(self, full_council_adapters):
        """Asking a role nobody holds is a validation error."""
        council = build_council(full_council_adapters)
        await council.initialize()

        with pytest.raises(UnknownRoleError, match="No member found with role: editor"):
            await council.consult("editor", "Hello?")
        await council.shutdown()

    @pytest.mark.asyncio
    async def test_consult_propagates_provider_errors(self):
        """Provider failures are not degraded for direct consultations."""
        council = build_council({"openai": MockProvider(should_fail=True)})
        await council.initialize()

        with pytest.raises(RuntimeError, match="simulated outage"):
            await council.consult("reviewer", "Hello?")
        await council.shutdown()


class TestLifecycle:
    """Tests for status, doctor, reinitialize and shutdown."""

    @pytest.mark.asyncio
    async def test_status_snapshot(self, full_council_adapters):
        """Status lists members, roles and workflows."""
        council = build_council(full_council_adapters)
        await council.initialize()

        status = council.status()

        assert status.initialized
        assert status.total_members == 5
        assert status.roles["creator"] == "gemini"
        assert status.workflows == ["full", "create", "review", "optimize"]
        member = status.members["gemini"]
        assert member.display_name == "Gemini"
        assert "health_probe" in member.capabilities
        assert "max_tokens" in member.capabilities
        await council.shutdown()

    @pytest.mark.asyncio
    async def test_snapshots_are_stable(self):
        """Reading status twice without a change yields equal snapshots."""
        council = build_council({"gemini": MockProvider(), "openai": RuntimeError("down")})
        await council.initialize()

        assert council.status() == council.status()
        assert council.detailed_status() == council.detailed_status()
        await council.shutdown()

    @pytest.mark.asyncio
    async def test_detailed_status(self):
        """Detailed status carries errors, health and monitoring state."""
        council = build_council({"gemini": MockProvider(), "openai": RuntimeError("down")})
        await council.initialize()

        detailed = council.detailed_status()

        assert detailed.successful_providers == ["gemini"]
        assert detailed.failed_providers == ["openai"]
        assert detailed.health["gemini"]["status"] == "healthy"
        assert detailed.overall_health == 100
        assert detailed.fallback_enabled
        assert detailed.health_monitoring
        await council.shutdown()

    @pytest.mark.asyncio
    async def test_doctor(self):
        """doctor() re-probes every member."""
        council = build_council({"gemini": MockProvider(), "openai": MockProvider(doctor_ok=False)})
        await council.initialize()

        records = await council.doctor()

        assert records["gemini"].is_healthy()
        assert not records["openai"].is_healthy()
        assert council.detailed_status().overall_health == 50
        await council.shutdown()

    @pytest.mark.asyncio
    async def test_shutdown_tears_down_owned_providers(self, full_council_adapters):
        """Shutdown stops monitoring and releases constructed providers."""
        council = build_council(full_council_adapters)
        await council.initialize()

        await council.shutdown()

        assert council.state == InitializationState.UNINITIALIZED
        assert not council.health.running
        assert council.provider_ids == []
        assert all(adapter.torn_down for adapter in full_council_adapters.values())

    @pytest.mark.asyncio
    async def test_reinitialize_failure_is_reported(self):
        """A reinitialization where everything fails returns a failed snapshot."""
        adapters: dict[str, ProviderAdapter | Exception] = {"gemini": MockProvider()}
        council = build_council(adapters)
        await council.initialize()

        registry = council._registry
        registry._adapters["gemini"] = RuntimeError("gone")  # type: ignore[attr-defined]
        snapshot = await council.reinitialize()

        assert snapshot.state == InitializationState.FAILED
        assert snapshot.failed_providers == ["gemini"]
        assert not snapshot.health_monitoring
