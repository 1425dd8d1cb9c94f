"""Council and provider configuration.

Settings come from three layers, later ones winning:

1. The built-in provider table (:func:`default_provider_settings`)
2. Credentials, enable flags and endpoint overrides from the environment
3. An optional YAML file (``$CONTENT_COUNCIL_CONFIG`` or
   ``~/.config/content-council/config.yaml``)
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from content_council.errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "CONTENT_COUNCIL_CONFIG"
DEFAULT_PRIORITY = 999

Variant = Literal["base", "quality"]

# Pipeline role per provider. The quality pipeline puts Claude first.
_BASE_ROLES = {
    "claude": "enhancer",
    "openai": "reviewer",
    "deepseek": "validator",
    "gemini": "creator",
    "chinda": "localizer",
}
_QUALITY_ROLES = {
    "claude": "creator",
    "openai": "reviewer",
    "deepseek": "validator",
    "gemini": "enhancer",
    "chinda": "localizer",
}


def get_config_file(env: Mapping[str, str] | None = None) -> Path:
    """Return the config file path. Computed at runtime so tests can move $HOME."""
    env = os.environ if env is None else env
    override = env.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "content-council" / "config.yaml"


class ProviderSettings(BaseModel):
    """One entry of the enabled-provider configuration."""

    model_config = ConfigDict(extra="forbid")

    identifier: str = Field(..., min_length=1, description="Stable provider key, e.g. 'claude'.")
    display_name: str = Field(default="", description="Human readable provider name.")
    adapter: str = Field(default="", description="Registry name of the adapter class.")
    role: str | None = Field(default=None, description="Pipeline role (creator, reviewer, ...).")
    title: str | None = Field(default=None, description="Role label handed to the provider.")
    specialties: list[str] = Field(default_factory=list)
    priority: int | None = Field(default=None, description="Lower runs first when sorted.")
    enabled: bool = Field(default=True)
    api_key: str | None = Field(default=None, repr=False)
    base_url: str | None = Field(default=None)
    model: str | None = Field(default=None)
    max_tokens: int = Field(default=4000, ge=1)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)

    @model_validator(mode="after")
    def _fill_defaults(self) -> ProviderSettings:
        if not self.adapter:
            self.adapter = self.identifier
        if not self.display_name:
            self.display_name = self.identifier
        return self

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    @property
    def effective_priority(self) -> int:
        return DEFAULT_PRIORITY if self.priority is None else self.priority

    @property
    def is_candidate(self) -> bool:
        """Enabled and holding a credential."""
        return self.enabled and self.has_credential


class OrganizationIdentity(BaseModel):
    """Static publisher identity used in structured metadata."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = "RBCK CMS"
    url: str = "https://rbck-cms.render.com"


class CouncilSettings(BaseModel):
    """Top-level configuration for a council instance."""

    model_config = ConfigDict(extra="forbid")

    providers: list[ProviderSettings] = Field(default_factory=list)
    construction_timeout: float = Field(default=10.0, gt=0, description="Seconds per provider.")
    health_check_interval: float = Field(default=300.0, gt=0)
    health_check_timeout: float = Field(default=10.0, gt=0)
    generation_timeout: float | None = Field(
        default=None, gt=0, description="Optional bound on each provider call."
    )
    sort_by_priority: bool = Field(default=False)
    excerpt_chars: int = Field(default=1000, ge=100, description="Body excerpt length in prompts.")
    target_language: str = Field(default="Thai")
    organization: OrganizationIdentity = Field(default_factory=OrganizationIdentity)

    def enabled_providers(self) -> list[ProviderSettings]:
        """Return candidate providers in initialization order."""

        enabled: list[ProviderSettings] = []
        for entry in self.providers:
            if not entry.enabled:
                logger.debug("Provider %s is disabled", entry.identifier)
                continue
            if not entry.has_credential:
                logger.debug("Provider %s has no API key configured", entry.identifier)
                continue
            enabled.append(entry)
        if self.sort_by_priority:
            enabled.sort(key=lambda entry: entry.effective_priority)
        return enabled

    def get_provider(self, identifier: str) -> ProviderSettings | None:
        for entry in self.providers:
            if entry.identifier == identifier:
                return entry
        return None


def _flag(env: Mapping[str, str], name: str) -> bool:
    return env.get(name, "").strip().lower() == "true"


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    try:
        return int(env[name])
    except (KeyError, ValueError):
        return default


def _float(env: Mapping[str, str], name: str, default: float) -> float:
    try:
        return float(env[name])
    except (KeyError, ValueError):
        return default


def default_provider_settings(
    variant: Variant = "base", env: Mapping[str, str] | None = None
) -> list[ProviderSettings]:
    """Build the built-in provider table from environment variables.

    Claude and DeepSeek are opt-in (``CLAUDE_ENABLED=true``,
    ``DEEPSEEK_ENABLED=true``); the others are enabled whenever a key exists.
    The OpenAI entry falls back to the ChindaX key and endpoint.
    """
    env = os.environ if env is None else env
    roles = _QUALITY_ROLES if variant == "quality" else _BASE_ROLES
    chinda_key = env.get("CHINDA_API_KEY")
    openai_key = env.get("OPENAI_API_KEY") or chinda_key

    return [
        ProviderSettings(
            identifier="claude",
            display_name="Anthropic Claude",
            role=roles["claude"],
            title="Chief E-E-A-T Content Specialist",
            specialties=[
                "trustworthiness",
                "experience integration",
                "factual accuracy",
                "content quality",
            ],
            priority=1,
            enabled=_flag(env, "CLAUDE_ENABLED"),
            api_key=env.get("CLAUDE_API_KEY"),
            base_url=env.get("CLAUDE_BASE_URL", "https://api.anthropic.com"),
            model=env.get("CLAUDE_MODEL", "claude-sonnet-4-5"),
            max_tokens=_int(env, "CLAUDE_MAX_TOKENS", 4000),
        ),
        ProviderSettings(
            identifier="openai",
            display_name="OpenAI GPT OSS 120b",
            role=roles["openai"],
            title="Advanced Language Model Expert",
            specialties=[
                "advanced reasoning",
                "complex problem solving",
                "detailed analysis",
                "large context handling",
            ],
            priority=2,
            enabled=bool(openai_key),
            api_key=openai_key,
            base_url=env.get("OPENAI_BASE_URL")
            or env.get("CHINDA_BASE_URL")
            or "https://chindax.iapp.co.th/api",
            model=env.get("OPENAI_MODEL", "accounts/fireworks/models/gpt-oss-120b"),
            max_tokens=_int(env, "OPENAI_MAX_TOKENS", 1000),
            temperature=_float(env, "OPENAI_TEMPERATURE", 0.7),
        ),
        ProviderSettings(
            identifier="deepseek",
            display_name="DeepSeek",
            role=roles["deepseek"],
            title="Technical Expertise Validator",
            specialties=[
                "technical accuracy",
                "expertise validation",
                "depth analysis",
                "schema markup",
            ],
            priority=3,
            enabled=_flag(env, "DEEPSEEK_ENABLED"),
            api_key=env.get("DEEPSEEK_API_KEY"),
            base_url=env.get("DEEPSEEK_BASE_URL", "https://api.deepseek.com/v1"),
            model=env.get("DEEPSEEK_MODEL", "deepseek-chat"),
        ),
        ProviderSettings(
            identifier="gemini",
            display_name="Google Gemini",
            role=roles["gemini"],
            title="Content Comprehensiveness Enhancer",
            specialties=[
                "content breadth",
                "comprehensive coverage",
                "engaging elements",
                "multimodal content",
            ],
            priority=4,
            enabled=bool(env.get("GEMINI_API_KEY")),
            api_key=env.get("GEMINI_API_KEY"),
            model=env.get("GEMINI_MODEL", "gemini-2.5-flash"),
        ),
        ProviderSettings(
            identifier="chinda",
            display_name="ChindaX AI",
            role=roles["chinda"],
            title="Local Authority & Cultural Expert",
            specialties=["local expertise", "cultural authority", "thai context", "local seo"],
            priority=5,
            enabled=bool(chinda_key),
            api_key=chinda_key,
            base_url=env.get("CHINDA_BASE_URL", "https://chindax.iapp.co.th/api"),
            model=env.get("CHINDA_MODEL", "chinda-qwen3-4b"),
            max_tokens=_int(env, "CHINDA_MAX_TOKENS", 2000),
            temperature=_float(env, "CHINDA_TEMPERATURE", 0.7),
        ),
    ]


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (yaml.YAMLError, OSError) as exc:
        raise ConfigurationError(f"Could not read config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping at the top level")
    return data


def _merge_providers(
    defaults: list[ProviderSettings], overrides: Mapping[str, Any]
) -> list[ProviderSettings]:
    merged = {entry.identifier: entry for entry in defaults}
    for identifier, values in overrides.items():
        if not isinstance(values, Mapping):
            raise ConfigurationError(f"Provider entry '{identifier}' must be a mapping")
        base = merged[identifier].model_dump() if identifier in merged else {}
        try:
            merged[identifier] = ProviderSettings.model_validate(
                {**base, **values, "identifier": identifier}
            )
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid provider entry '{identifier}': {exc}") from exc
    return list(merged.values())


def load_settings(
    path: str | Path | None = None,
    *,
    variant: Variant = "base",
    env: Mapping[str, str] | None = None,
) -> CouncilSettings:
    """Load council settings from defaults, environment and the optional YAML file.

    Args:
        path: Explicit config file. Missing explicit files are an error; the
            default location is simply skipped when absent.
        variant: ``"quality"`` switches role assignment to the quality
            pipeline and sorts providers by priority.
        env: Environment mapping, defaults to ``os.environ``.

    Raises:
        ConfigurationError: If the file cannot be read or fails validation.
    """
    env = os.environ if env is None else env
    providers = default_provider_settings(variant, env)
    council: dict[str, Any] = {"sort_by_priority": variant == "quality"}

    config_file = Path(path).expanduser() if path is not None else get_config_file(env)
    if config_file.exists():
        data = _read_config_file(config_file)
        council.update(data.get("council") or {})
        providers = _merge_providers(providers, data.get("providers") or {})
        logger.debug("Loaded configuration from %s", config_file)
    elif path is not None:
        raise ConfigurationError(f"Config file not found: {config_file}")

    try:
        return CouncilSettings.model_validate({**council, "providers": providers})
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid council configuration: {exc}") from exc


DEFAULT_CONFIG_TEMPLATE = """\
# content-council configuration
# Credentials are read from the environment (CLAUDE_API_KEY, OPENAI_API_KEY,
# DEEPSEEK_API_KEY, GEMINI_API_KEY, CHINDA_API_KEY).

council:
  construction_timeout: 10
  health_check_interval: 300
  health_check_timeout: 10
  # generation_timeout: 120
  target_language: Thai
  organization:
    name: RBCK CMS
    url: https://rbck-cms.render.com

# Per-provider overrides, keyed by identifier
providers:
  deepseek:
    model: deepseek-chat
  chinda:
    max_tokens: 2000
"""
