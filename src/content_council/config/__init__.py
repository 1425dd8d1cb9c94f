"""Configuration for content-council."""

from content_council.config.settings import (
    CONFIG_ENV_VAR,
    DEFAULT_CONFIG_TEMPLATE,
    CouncilSettings,
    OrganizationIdentity,
    ProviderSettings,
    default_provider_settings,
    get_config_file,
    load_settings,
)

__all__ = [
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG_TEMPLATE",
    "CouncilSettings",
    "OrganizationIdentity",
    "ProviderSettings",
    "default_provider_settings",
    "get_config_file",
    "load_settings",
]
