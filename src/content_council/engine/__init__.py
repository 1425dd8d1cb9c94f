"""
Council Engine - Orchestration logic for the content council.

The engine coordinates:
1. Provider construction and role assignment
2. Sequential role-based workflows
3. Health tracking and graceful degradation
4. E-E-A-T/SEO scoring and schema.org metadata (quality variant)
"""

from content_council.engine.degradation import (
    FALLBACK_MARKER,
    FALLBACK_SENTINEL,
    DegradationManager,
    DegradationReport,
    FailureEvent,
)
from content_council.engine.health import HealthRecord, HealthState, HealthTracker
from content_council.engine.metadata import StructuredMetadataGenerator, parse_seo_structure
from content_council.engine.orchestrator import CouncilOrchestrator, ProviderRecord
from content_council.engine.pipeline import WORKFLOWS, WorkflowPipeline, WorkflowStage
from content_council.engine.quality import QualityCouncil
from content_council.engine.scoring import QualityScorer, ScoringRubric

__all__ = [
    # Orchestrators
    "CouncilOrchestrator",
    "ProviderRecord",
    "QualityCouncil",
    # Workflows
    "WORKFLOWS",
    "WorkflowPipeline",
    "WorkflowStage",
    # Health
    "HealthRecord",
    "HealthState",
    "HealthTracker",
    # Degradation
    "FALLBACK_MARKER",
    "FALLBACK_SENTINEL",
    "DegradationManager",
    "DegradationReport",
    "FailureEvent",
    # Scoring and metadata
    "QualityScorer",
    "ScoringRubric",
    "StructuredMetadataGenerator",
    "parse_seo_structure",
]
