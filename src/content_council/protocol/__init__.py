"""
Protocol definitions for content-council.

Pydantic models returned by the orchestrators and consumed by the CLI.
"""

from content_council.protocol.types import (
    ContentDraft,
    DetailedStatusSnapshot,
    EATCompliance,
    InitializationAttempt,
    InitializationErrorEntry,
    InitializationState,
    MemberInfo,
    PipelineRun,
    QualityRun,
    Role,
    RunStatus,
    ScoreResult,
    SEOAnalysis,
    StatusSnapshot,
    StepRecord,
)

__all__ = [
    "ContentDraft",
    "DetailedStatusSnapshot",
    "EATCompliance",
    "InitializationAttempt",
    "InitializationErrorEntry",
    "InitializationState",
    "MemberInfo",
    "PipelineRun",
    "QualityRun",
    "Role",
    "RunStatus",
    "SEOAnalysis",
    "ScoreResult",
    "StatusSnapshot",
    "StepRecord",
]
