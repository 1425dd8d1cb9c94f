"""Workflow definitions and the soft, sequential pipeline executor.

A workflow is an ordered list of role-bound stages run against one content
buffer. A stage runs only when its role has an assigned provider and, after
the first stage, when the buffer is non-empty; otherwise it is skipped without
touching the buffer. The first stage raising aborts the run with
:class:`StageExecutionError` so the caller can degrade.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from content_council.engine.prompts import (
    CREATE_DESCRIPTION,
    FULL_WORKFLOW_DESCRIPTIONS,
    FULL_WORKFLOW_INSTRUCTIONS,
    OPTIMIZE_DESCRIPTION,
    REVIEW_DESCRIPTION,
    first_stage_prompt,
    later_stage_prompt,
)
from content_council.errors import CouncilError, StageExecutionError
from content_council.protocol.types import PipelineRun, Role, StepRecord

logger = logging.getLogger(__name__)


class StageHost(Protocol):
    """What a pipeline needs from the council that runs it."""

    def member_for_role(self, role: str) -> str | None: ...

    def member_title(self, provider_id: str) -> str | None: ...

    def ensure_generation(self, generation: int) -> None: ...

    async def call_member(self, provider_id: str, prompt: str) -> str: ...


@dataclass(frozen=True)
class WorkflowStage:
    role: Role
    description: str
    instruction: str | None = None

    def render(self, prompt: str, content: str, *, first: bool) -> str:
        if first or self.instruction is None:
            return first_stage_prompt(prompt, self.description)
        return later_stage_prompt(self.instruction, content, self.description)


def _full_stage(role: Role) -> WorkflowStage:
    return WorkflowStage(
        role=role,
        description=FULL_WORKFLOW_DESCRIPTIONS[role],
        instruction=FULL_WORKFLOW_INSTRUCTIONS.get(role),
    )


WORKFLOWS: dict[str, tuple[WorkflowStage, ...]] = {
    "full": tuple(
        _full_stage(role)
        for role in (Role.CREATOR, Role.REVIEWER, Role.ENHANCER, Role.VALIDATOR, Role.LOCALIZER)
    ),
    "create": (WorkflowStage(Role.CREATOR, CREATE_DESCRIPTION),),
    "review": (WorkflowStage(Role.REVIEWER, REVIEW_DESCRIPTION),),
    "optimize": (WorkflowStage(Role.ENHANCER, OPTIMIZE_DESCRIPTION),),
}


def workflow_names() -> list[str]:
    return list(WORKFLOWS)


async def execute_stage(
    host: StageHost,
    generation: int,
    steps: list[StepRecord],
    role: str,
    provider_id: str,
    prompt: str,
) -> str:
    """Call one member and commit a :class:`StepRecord` for its output.

    The generation is re-checked after the call so a stale handle from before
    a reinitialization never commits a step.

    Raises:
        StageExecutionError: If the provider call raised.
        CouncilReinitializedError: If the council was reset during the call.
    """
    step_index = len(steps) + 1
    logger.debug("Stage %d (%s) -> %s", step_index, role, provider_id)
    try:
        output = await host.call_member(provider_id, prompt)
    except CouncilError:
        raise
    except Exception as exc:
        raise StageExecutionError(step_index, role, provider_id, exc) from exc

    host.ensure_generation(generation)
    steps.append(
        StepRecord(
            step_index=step_index,
            role=role,
            provider_id=provider_id,
            output_content=output,
            title=host.member_title(provider_id),
        )
    )
    return output


class WorkflowPipeline:
    """Executes one named workflow over a :class:`PipelineRun`."""

    def __init__(self, name: str, stages: tuple[WorkflowStage, ...]) -> None:
        self.name = name
        self.stages = stages

    @classmethod
    def for_workflow(cls, name: str) -> WorkflowPipeline:
        return cls(name, WORKFLOWS[name])

    async def execute(self, run: PipelineRun, host: StageHost, generation: int) -> PipelineRun:
        for index, stage in enumerate(self.stages):
            host.ensure_generation(generation)

            provider_id = host.member_for_role(stage.role.value)
            if provider_id is None:
                logger.debug("Skipping %s stage: no member assigned", stage.role.value)
                continue
            if index > 0 and not run.current_content:
                logger.debug("Skipping %s stage: no content to work on", stage.role.value)
                continue

            prompt = stage.render(run.original_prompt, run.current_content or "", first=index == 0)
            run.current_content = await execute_stage(
                host, generation, run.steps, stage.role.value, provider_id, prompt
            )

        return run


__all__ = [
    "WORKFLOWS",
    "StageHost",
    "WorkflowPipeline",
    "WorkflowStage",
    "execute_stage",
    "workflow_names",
]
