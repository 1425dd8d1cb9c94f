"""
Protocol types for content-council.

Pydantic models for pipeline runs, status snapshots and quality scores. Every
object handed back to a caller is one of these, so results can be dumped to
JSON by the CLI or an HTTP layer without extra mapping.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class Role(str, Enum):
    """Pipeline roles a provider can fill."""

    CREATOR = "creator"
    REVIEWER = "reviewer"
    ENHANCER = "enhancer"
    VALIDATOR = "validator"
    LOCALIZER = "localizer"


class RunStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    DEGRADED = "degraded"  # Pipeline failed, fallback content produced
    FAILED = "failed"


class InitializationState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    PARTIALLY_INITIALIZED = "partially_initialized"
    FULLY_INITIALIZED = "fully_initialized"
    FAILED = "failed"

    @property
    def is_operational(self) -> bool:
        return self in (
            InitializationState.PARTIALLY_INITIALIZED,
            InitializationState.FULLY_INITIALIZED,
        )


class StepRecord(BaseModel):
    """One committed pipeline stage."""

    model_config = ConfigDict(frozen=True)

    step_index: int = Field(..., ge=1)
    role: str
    provider_id: str
    output_content: str
    title: str | None = Field(default=None, description="Role label shown to readers.")
    timestamp: str = Field(default_factory=utc_now)


class PipelineRun(BaseModel):
    """Result of one workflow invocation."""

    model_config = ConfigDict(extra="allow")

    original_prompt: str
    workflow_name: str
    steps: list[StepRecord] = Field(default_factory=list)
    current_content: str | None = None
    status: RunStatus = RunStatus.RUNNING
    error: str | None = None
    fallback_content: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def final_content(self) -> str | None:
        """Content to show the caller: fallback text when degraded."""
        if self.status == RunStatus.DEGRADED:
            return self.fallback_content
        return self.current_content


class InitializationErrorEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider_id: str
    message: str
    error_type: str = Field(default="construction", description="construction, timeout or pool.")
    timestamp: str = Field(default_factory=utc_now)


class InitializationAttempt(BaseModel):
    """Bookkeeping for the latest (re)initialization."""

    attempted_at: str = Field(default_factory=utc_now)
    errors: list[InitializationErrorEntry] = Field(default_factory=list)
    succeeded_count: int = 0
    total_count: int = 0
    source: str = Field(default="registry", description="registry or shared_pool.")


class MemberInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    identifier: str
    display_name: str
    role: str | None = None
    title: str | None = None
    specialties: list[str] = Field(default_factory=list)
    capabilities: list[str] = Field(default_factory=list)


class StatusSnapshot(BaseModel):
    """Read-only view of the council membership."""

    model_config = ConfigDict(frozen=True)

    state: InitializationState
    initialized: bool
    total_members: int
    members: dict[str, MemberInfo] = Field(default_factory=dict)
    roles: dict[str, str] = Field(default_factory=dict)
    workflows: list[str] = Field(default_factory=list)


class DetailedStatusSnapshot(StatusSnapshot):
    """Status plus initialization errors and health records."""

    initialization: InitializationAttempt | None = None
    successful_providers: list[str] = Field(default_factory=list)
    failed_providers: list[str] = Field(default_factory=list)
    health: dict[str, dict[str, Any]] = Field(default_factory=dict)
    overall_health: int = 0
    fallback_enabled: bool = False
    health_monitoring: bool = False


class ContentDraft(BaseModel):
    """Structured content evolved by the quality pipeline.

    Field aliases are camelCase so the reviewer's JSON output validates directly.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    title: str | None = None
    meta_description: str | None = None
    body: str | None = None
    suggested_tags: list[str] = Field(default_factory=list)
    internal_links: list[str] = Field(default_factory=list)
    external_sources: list[str] = Field(default_factory=list)
    keyword_variations: list[str] = Field(default_factory=list)
    featured_snippet: str | None = None
    schema_markup: dict[str, Any] | None = None


class EATCompliance(BaseModel):
    """Indicator-based E-E-A-T scores for a piece of content."""

    model_config = ConfigDict(frozen=True)

    expertise: int = Field(..., ge=0, le=100)
    experience: int = Field(..., ge=0, le=100)
    authoritativeness: int = Field(..., ge=0, le=100)
    trustworthiness: int = Field(..., ge=0, le=100)
    overall: int = Field(..., ge=0, le=100)
    details: dict[str, list[str]] = Field(
        default_factory=dict, description="Matched indicators per dimension."
    )


class SEOAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: int = Field(..., ge=0, le=100)
    details: dict[str, int] = Field(default_factory=dict, description="Points per rubric check.")
    recommendations: list[str] = Field(default_factory=list)


class ScoreResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    expertise: int = Field(..., ge=0, le=100)
    experience: int = Field(..., ge=0, le=100)
    authoritativeness: int = Field(..., ge=0, le=100)
    trustworthiness: int = Field(..., ge=0, le=100)
    overall_qualitative: int = Field(..., ge=0, le=100)
    seo_score: int = Field(..., ge=0, le=100)
    combined_score: int = Field(..., ge=0, le=100)


class QualityRun(BaseModel):
    """Result of a quality-optimized content run."""

    model_config = ConfigDict(extra="allow")

    original_prompt: str
    target_keyword: str
    content_type: str = "article"
    steps: list[StepRecord] = Field(default_factory=list)
    content: ContentDraft = Field(default_factory=ContentDraft)
    eat_compliance: EATCompliance | None = None
    seo_analysis: SEOAnalysis | None = None
    score: ScoreResult | None = None
    structured_metadata: dict[str, Any] | None = None
    status: RunStatus = RunStatus.RUNNING
    error: str | None = None
    fallback_content: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
