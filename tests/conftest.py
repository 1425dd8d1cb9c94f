"""Pytest configuration and shared fixtures for content-council tests."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from typing import Any, ClassVar

import pytest

from content_council.config.settings import CouncilSettings, ProviderSettings
from content_council.errors import ConstructionError
from content_council.providers.base import (
    DoctorResult,
    GenerateRequest,
    GenerateResponse,
    ProviderAdapter,
    ProviderCapabilities,
    RoleLabelsMixin,
)
from content_council.providers.registry import ProviderRegistry


class MockProvider(RoleLabelsMixin, ProviderAdapter):
    """Mock provider declaring every optional hook."""

    name: ClassVar[str] = "mock"
    capabilities: ClassVar[ProviderCapabilities] = ProviderCapabilities(
        health_probe=True,
        role_labels=True,
        specialties=True,
        orchestrator_context=True,
        teardown=True,
        max_tokens=4096,
    )

    def __init__(
        self,
        response_text: str = "mock response",
        should_fail: bool = False,
        responses: Iterable[str] | None = None,
        delay: float = 0.0,
        doctor_ok: bool = True,
    ) -> None:
        self._response_text = response_text
        self._should_fail = should_fail
        self._responses = list(responses) if responses is not None else None
        self._delay = delay
        self._doctor_ok = doctor_ok
        self.prompts: list[str] = []
        self.torn_down = False

    async def generate(self, request: GenerateRequest) -> GenerateResponse:
        """Record the prompt and return the canned reply."""
        self.prompts.append(request.prompt)
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._should_fail:
            raise RuntimeError("simulated outage")
        text = self._responses.pop(0) if self._responses else self._response_text
        return GenerateResponse(text=text, finish_reason="stop")

    async def doctor(self) -> DoctorResult:
        """Report the configured health."""
        return DoctorResult(
            ok=self._doctor_ok,
            message="Mock provider OK" if self._doctor_ok else "Mock failure",
            latency_ms=1.0,
        )

    async def teardown(self) -> None:
        self.torn_down = True

    @property
    def call_count(self) -> int:
        """How many prompts this provider has seen."""
        return len(self.prompts)


class PlainMockProvider(ProviderAdapter):
    """Mock provider with no optional hooks; health is probed by generation."""

    name: ClassVar[str] = "plain-mock"

    def __init__(self, response_text: str = "plain response", should_fail: bool = False) -> None:
        self._response_text = response_text
        self._should_fail = should_fail
        self.prompts: list[str] = []

    async def generate(self, request: GenerateRequest) -> GenerateResponse:
        self.prompts.append(request.prompt)
        if self._should_fail:
            raise RuntimeError("Plain mock failure")
        return GenerateResponse(text=self._response_text)


class FakeRegistry:
    """Stands in for ProviderRegistry.construct with pre-built adapters."""

    def __init__(
        self,
        adapters: Mapping[str, ProviderAdapter | Exception],
        delays: Mapping[str, float] | None = None,
    ) -> None:
        self._adapters = dict(adapters)
        self._delays = dict(delays or {})
        self.constructed: list[str] = []

    def construct(self, identifier: str, settings: Any = None) -> ProviderAdapter:
        delay = self._delays.get(identifier)
        if delay:
            time.sleep(delay)
        result = self._adapters.get(identifier)
        if result is None:
            raise ConstructionError(identifier, "not registered")
        if isinstance(result, Exception):
            raise result
        self.constructed.append(identifier)
        return result


def make_settings(
    roles: Mapping[str, str | None],
    priorities: Mapping[str, int] | None = None,
    **council: Any,
) -> CouncilSettings:
    """Build settings with one credentialed provider per ``identifier -> role``."""
    priorities = priorities or {}
    providers = [
        ProviderSettings(
            identifier=identifier,
            display_name=identifier.title(),
            role=role,
            title=f"{role} expert" if role else None,
            specialties=[f"{identifier} specialty"],
            priority=priorities.get(identifier),
            api_key=f"key-{identifier}",
        )
        for identifier, role in roles.items()
    ]
    return CouncilSettings(providers=providers, **council)


FULL_ROLES = {
    "gemini": "creator",
    "openai": "reviewer",
    "claude": "enhancer",
    "deepseek": "validator",
    "chinda": "localizer",
}


@pytest.fixture(autouse=True)
def reset_registry() -> Iterator[None]:
    """Give every test a fresh registry singleton."""
    ProviderRegistry._instance = None
    yield
    ProviderRegistry._instance = None


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep tests away from the user's config file and credentials."""
    monkeypatch.setenv("CONTENT_COUNCIL_CONFIG", str(tmp_path / "config.yaml"))
    for name in (
        "CLAUDE_API_KEY",
        "CLAUDE_ENABLED",
        "OPENAI_API_KEY",
        "DEEPSEEK_API_KEY",
        "DEEPSEEK_ENABLED",
        "GEMINI_API_KEY",
        "CHINDA_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def mock_provider() -> MockProvider:
    """A healthy provider with the default reply."""
    return MockProvider()


@pytest.fixture
def failing_provider() -> MockProvider:
    """A provider whose every generation raises."""
    return MockProvider(should_fail=True)


@pytest.fixture
def full_council_adapters() -> dict[str, MockProvider]:
    """One mock per pipeline role, each answering with its own name."""
    return {identifier: MockProvider(f"{identifier} output") for identifier in FULL_ROLES}
