"""Text-generation backends and the registry that builds them by name."""

from .base import (
    DoctorResult,
    ErrorType,
    GenerateRequest,
    GenerateResponse,
    ProviderAdapter,
    ProviderCapabilities,
    RoleLabelsMixin,
    billing_page,
    classify_error,
)
from .configured import ConfiguredProvider
from .registry import ProviderRegistry, get_registry

__all__ = [
    "ConfiguredProvider",
    "DoctorResult",
    "ErrorType",
    "GenerateRequest",
    "GenerateResponse",
    "ProviderAdapter",
    "ProviderCapabilities",
    "ProviderRegistry",
    "RoleLabelsMixin",
    "billing_page",
    "classify_error",
    "get_registry",
]
