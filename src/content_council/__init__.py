"""content-council package."""

from .config.settings import CouncilSettings, ProviderSettings, load_settings
from .council import Council
from .engine.orchestrator import CouncilOrchestrator
from .engine.quality import QualityCouncil
from .errors import (
    ConfigurationError,
    CouncilError,
    CouncilNotReadyError,
    CouncilValidationError,
    InitializationError,
)
from .protocol.types import (
    ContentDraft,
    InitializationState,
    PipelineRun,
    QualityRun,
    Role,
    RunStatus,
)
from .providers.base import (
    DoctorResult,
    GenerateRequest,
    GenerateResponse,
    ProviderAdapter,
    ProviderCapabilities,
)
from .providers.pool import ProviderPool
from .providers.registry import ProviderRegistry, get_registry

__version__ = "0.3.0"

__all__ = [
    "__version__",
    "ConfigurationError",
    "ContentDraft",
    "Council",
    "CouncilError",
    "CouncilNotReadyError",
    "CouncilOrchestrator",
    "CouncilSettings",
    "CouncilValidationError",
    "DoctorResult",
    "GenerateRequest",
    "GenerateResponse",
    "InitializationError",
    "InitializationState",
    "PipelineRun",
    "ProviderAdapter",
    "ProviderCapabilities",
    "ProviderPool",
    "ProviderRegistry",
    "ProviderSettings",
    "QualityCouncil",
    "QualityRun",
    "Role",
    "RunStatus",
    "get_registry",
    "load_settings",
]
