"""Tests for workflow definitions and the pipeline executor."""

from __future__ import annotations

import pytest

from content_council.engine.pipeline import (
    WORKFLOWS,
    WorkflowPipeline,
    execute_stage,
    workflow_names,
)
from content_council.engine.prompts import (
    CREATE_DESCRIPTION,
    FULL_WORKFLOW_DESCRIPTIONS,
    FULL_WORKFLOW_INSTRUCTIONS,
    excerpt,
)
from content_council.errors import CouncilReinitializedError, StageExecutionError
from content_council.protocol.types import PipelineRun, Role, StepRecord


class FakeHost:
    """Minimal stage host backed by fixed outputs."""

    def __init__(
        self,
        roles: dict[str, str],
        outputs: dict[str, str | Exception],
        generation: int = 0,
    ) -> None:
        self.roles = roles
        self.outputs = outputs
        self.generation = generation
        self.calls: list[tuple[str, str]] = []

    def member_for_role(self, role: str) -> str | None:
        return self.roles.get(role)

    def member_title(self, provider_id: str) -> str | None:
        return f"{provider_id} title"

    def ensure_generation(self, generation: int) -> None:
        if generation != self.generation:
            raise CouncilReinitializedError("initializing")

    async def call_member(self, provider_id: str, prompt: str) -> str:
        self.calls.append((provider_id, prompt))
        output = self.outputs[provider_id]
        if isinstance(output, Exception):
            raise output
        return output


FULL_HOST_ROLES = {
    "creator": "gemini",
    "reviewer": "openai",
    "enhancer": "claude",
    "validator": "deepseek",
    "localizer": "chinda",
}


class TestWorkflowDefinitions:
    """Tests for the built-in workflows."""

    def test_workflow_names(self):
        """All four workflows are available in a stable order."""
        assert workflow_names() == ["full", "create", "review", "optimize"]

    def test_full_workflow_order(self):
        """The full workflow runs every role once, creator first."""
        roles = [stage.role for stage in WORKFLOWS["full"]]
        assert roles == [
            Role.CREATOR,
            Role.REVIEWER,
            Role.ENHANCER,
            Role.VALIDATOR,
            Role.LOCALIZER,
        ]

    def test_single_stage_workflows(self):
        """create, review and optimize are one stage each."""
        assert [stage.role for stage in WORKFLOWS["create"]] == [Role.CREATOR]
        assert [stage.role for stage in WORKFLOWS["review"]] == [Role.REVIEWER]
        assert [stage.role for stage in WORKFLOWS["optimize"]] == [Role.ENHANCER]

    def test_first_stage_render(self):
        """The first stage appends the role description to the prompt."""
        stage = WORKFLOWS["create"][0]
        assert stage.render("Write about rice", "", first=True) == (
            f"Write about rice\n\nRole: {CREATE_DESCRIPTION}"
        )

    def test_later_stage_render(self):
        """Later stages wrap the current content in the role instruction."""
        stage = WORKFLOWS["full"][1]
        rendered = stage.render("ignored", "draft text", first=False)
        assert rendered == (
            f"{FULL_WORKFLOW_INSTRUCTIONS[Role.REVIEWER]}\n\ndraft text\n\n"
            f"Role: {FULL_WORKFLOW_DESCRIPTIONS[Role.REVIEWER]}"
        )

    def test_excerpt(self):
        """Excerpts are cut at the limit."""
        assert excerpt("abcdef", 3) == "abc"
        assert excerpt("abc", 10) == "abc"


class TestExecuteStage:
    """Tests for execute_stage."""

    @pytest.mark.asyncio
    async def test_commits_step(self):
        """A successful call appends a numbered step."""
        host = FakeHost({}, {"gemini": "output"})
        steps: list[StepRecord] = []

        result = await execute_stage(host, 0, steps, "creator", "gemini", "prompt")

        assert result == "output"
        assert len(steps) == 1
        assert steps[0].step_index == 1
        assert steps[0].title == "gemini title"

    @pytest.mark.asyncio
    async def test_wraps_provider_errors(self):
        """Provider exceptions become StageExecutionError with the cause attached."""
        cause = RuntimeError("boom")
        host = FakeHost({}, {"gemini": cause})
        steps: list[StepRecord] = []

        with pytest.raises(StageExecutionError) as exc_info:
            await execute_stage(host, 0, steps, "creator", "gemini", "prompt")

        assert exc_info.value.cause is cause
        assert exc_info.value.step_index == 1
        assert steps == []

    @pytest.mark.asyncio
    async def test_stale_generation_commits_nothing(self):
        """A result arriving after a reset is discarded."""
        host = FakeHost({}, {"gemini": "output"}, generation=1)
        steps: list[StepRecord] = []

        with pytest.raises(CouncilReinitializedError):
            await execute_stage(host, 0, steps, "creator", "gemini", "prompt")

        assert steps == []


class TestWorkflowPipeline:
    """Tests for WorkflowPipeline.execute."""

    @pytest.mark.asyncio
    async def test_full_workflow_threads_content(self):
        """Each stage works on the previous stage's output."""
        outputs: dict[str, str | Exception] = {
            provider: f"{provider} output" for provider in FULL_HOST_ROLES.values()
        }
        host = FakeHost(FULL_HOST_ROLES, outputs)
        run = PipelineRun(original_prompt="Write about rice", workflow_name="full")

        await WorkflowPipeline.for_workflow("full").execute(run, host, 0)

        assert [step.step_index for step in run.steps] == [1, 2, 3, 4, 5]
        assert [step.provider_id for step in run.steps] == [
            "gemini",
            "openai",
            "claude",
            "deepseek",
            "chinda",
        ]
        assert run.current_content == "chinda output"
        assert "gemini output" in host.calls[1][1]
        assert host.calls[0][1].startswith("Write about rice\n\nRole: ")

    @pytest.mark.asyncio
    async def test_unassigned_roles_are_skipped(self):
        """Stages without a member are skipped and numbering stays contiguous."""
        host = FakeHost(
            {"creator": "gemini", "validator": "deepseek"},
            {"gemini": "draft", "deepseek": "validated"},
        )
        run = PipelineRun(original_prompt="prompt", workflow_name="full")

        await WorkflowPipeline.for_workflow("full").execute(run, host, 0)

        assert [(step.step_index, step.role) for step in run.steps] == [
            (1, "creator"),
            (2, "validator"),
        ]
        assert run.current_content == "validated"

    @pytest.mark.asyncio
    async def test_later_stages_need_content(self):
        """Without a creator the later stages have nothing to work on."""
        host = FakeHost({"reviewer": "openai"}, {"openai": "review"})
        run = PipelineRun(original_prompt="prompt", workflow_name="full")

        await WorkflowPipeline.for_workflow("full").execute(run, host, 0)

        assert run.steps == []
        assert run.current_content is None
        assert host.calls == []

    @pytest.mark.asyncio
    async def test_empty_output_stops_later_stages(self):
        """An empty first output leaves nothing for later stages."""
        host = FakeHost(
            {"creator": "gemini", "reviewer": "openai"},
            {"gemini": "", "openai": "review"},
        )
        run = PipelineRun(original_prompt="prompt", workflow_name="full")

        await WorkflowPipeline.for_workflow("full").execute(run, host, 0)

        assert len(run.steps) == 1
        assert run.current_content == ""
        assert [provider for provider, _ in host.calls] == ["gemini"]

    @pytest.mark.asyncio
    async def test_single_stage_runs_on_prompt(self):
        """A single-stage workflow's only stage always sees the prompt."""
        host = FakeHost({"reviewer": "openai"}, {"openai": "review"})
        run = PipelineRun(original_prompt="Check this", workflow_name="review")

        await WorkflowPipeline.for_workflow("review").execute(run, host, 0)

        assert run.current_content == "review"
        assert host.calls[0][1].startswith("Check this\n\nRole: ")
