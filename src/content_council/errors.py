"""Error taxonomy for content-council.

Provider-level failures are normally converted into state (initialization
errors, health records, degradation reports). The exceptions below are the
ones that reach callers: whole-system failures and invalid requests.
"""

from __future__ import annotations

from typing import Any


class CouncilError(Exception):
    """Base class for all content-council errors."""


class ConfigurationError(CouncilError):
    """No enabled providers, or an invalid configuration entry/file."""


class ConstructionError(CouncilError):
    """A single provider could not be constructed."""

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        super().__init__(f"Failed to construct provider '{provider}': {message}")


class ConstructionTimeoutError(ConstructionError):
    """Provider construction exceeded its time budget."""

    def __init__(self, provider: str, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(provider, f"initialization timeout after {timeout:g}s")


class SetupError(CouncilError):
    """A post-construction setup hook (role, specialties, context) failed."""

    def __init__(self, provider: str, hook: str, message: str) -> None:
        self.provider = provider
        self.hook = hook
        super().__init__(f"Provider '{provider}' setup incomplete ({hook}): {message}")


class CouncilValidationError(CouncilError, ValueError):
    """Invalid request: empty prompt, unknown workflow or role."""


class UnknownWorkflowError(CouncilValidationError):
    def __init__(self, workflow: str, valid: list[str]) -> None:
        self.workflow = workflow
        self.valid = valid
        super().__init__(f"Unknown workflow '{workflow}'. Valid workflows: {', '.join(valid)}")


class UnknownRoleError(CouncilValidationError):
    def __init__(self, role: str) -> None:
        self.role = role
        super().__init__(f"No member found with role: {role}")


class CouncilNotReadyError(CouncilError):
    """The council is not in an operational initialization state."""

    def __init__(self, state: str, errors: list[dict[str, Any]] | None = None) -> None:
        self.state = state
        self.errors = errors or []
        message = f"Council is not ready (state={state})"
        if self.errors:
            details = "; ".join(f"{e.get('provider_id')}: {e.get('message')}" for e in self.errors)
            message = f"{message}. Initialization errors: {details}"
        super().__init__(message)


class CouncilReinitializedError(CouncilNotReadyError):
    """The council was reinitialized or shut down while a run was in flight."""

    def __init__(self, state: str) -> None:
        super().__init__(state)
        self.args = ("council was reinitialized during the run",)


class InitializationError(CouncilError):
    """No provider could be initialized."""

    def __init__(self, errors: list[dict[str, Any]]) -> None:
        self.errors = errors
        joined = ", ".join(str(e.get("message")) for e in errors) or "no details"
        super().__init__(f"No providers could be initialized. Errors: {joined}")


class StageExecutionError(CouncilError):
    """A pipeline stage raised while calling its provider."""

    def __init__(self, step_index: int, role: str, provider: str, cause: BaseException) -> None:
        self.step_index = step_index
        self.role = role
        self.provider = provider
        self.cause = cause
        super().__init__(f"Stage {step_index} ({role}) failed on provider '{provider}': {cause}")


class HealthCheckError(CouncilError):
    """A health probe failed. Recorded per provider, never raised to workflow callers."""

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        super().__init__(f"Health check failed for '{provider}': {message}")


__all__ = [
    "ConfigurationError",
    "ConstructionError",
    "ConstructionTimeoutError",
    "CouncilError",
    "CouncilNotReadyError",
    "CouncilReinitializedError",
    "CouncilValidationError",
    "HealthCheckError",
    "InitializationError",
    "SetupError",
    "StageExecutionError",
    "UnknownRoleError",
    "UnknownWorkflowError",
]
