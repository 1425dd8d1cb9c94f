"""Name → adapter class lookup, shared process-wide through :func:`get_registry`."""

from __future__ import annotations

import importlib
import logging
from importlib import metadata
from threading import RLock
from typing import TYPE_CHECKING, ClassVar

from content_council.errors import ConstructionError

from .base import ProviderAdapter

if TYPE_CHECKING:
    from content_council.config.settings import ProviderSettings

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "content_council.providers"

BUILTIN_ADAPTERS = {
    "claude": ("content_council.providers.anthropic", "ClaudeProvider"),
    "openai": ("content_council.providers.openai", "OpenAIProvider"),
    "gemini": ("content_council.providers.google", "GeminiProvider"),
    "deepseek": ("content_council.providers.chat_completions", "DeepSeekProvider"),
    "chinda": ("content_council.providers.chat_completions", "ChindaProvider"),
}

_shared_lock = RLock()


def _normalize(name: str) -> str:
    key = name.strip().lower()
    if not key:
        raise ValueError("Provider name must not be blank.")
    return key


class ProviderRegistry:
    """Adapter classes keyed by lowercase name.

    A new registry holds the built-in adapters plus whatever third-party
    packages advertise under the ``content_council.providers`` entry point
    group. Construction is synchronous and lock-protected, so the orchestrator
    may call :meth:`construct` from a worker thread.
    """

    _instance: ClassVar[ProviderRegistry | None] = None

    def __init__(self, *, discover: bool = True) -> None:
        self._adapters: dict[str, type[ProviderAdapter]] = {}
        self._lock = RLock()
        self._register_builtins()
        if discover:
            self._register_entry_points()

    def register_provider(self, name: str, adapter_class: type[ProviderAdapter]) -> None:
        """Add *adapter_class* under *name*; re-registering the same class is a no-op."""
        key = _normalize(name)
        if not (isinstance(adapter_class, type) and issubclass(adapter_class, ProviderAdapter)):
            raise TypeError(f"{adapter_class!r} is not a ProviderAdapter subclass.")
        with self._lock:
            current = self._adapters.setdefault(key, adapter_class)
        if current is not adapter_class:
            raise ValueError(f"Provider '{key}' already maps to {current.__name__}.")

    def get_adapter_class(self, name: str) -> type[ProviderAdapter]:
        key = _normalize(name)
        with self._lock:
            found = self._adapters.get(key)
        if found is None:
            raise KeyError(
                f"Provider '{key}' is not registered (known: {', '.join(self.list_providers())})"
            )
        return found

    def list_providers(self) -> list[str]:
        with self._lock:
            return sorted(self._adapters)

    def construct(
        self, identifier: str, settings: ProviderSettings | None = None
    ) -> ProviderAdapter:
        """Instantiate the adapter for one council member.

        With *settings* the class is looked up by ``settings.adapter`` and
        built through :meth:`ProviderAdapter.from_settings`; without them the
        class registered as *identifier* is instantiated bare. Every failure
        surfaces as :class:`ConstructionError` naming *identifier*.
        """
        try:
            adapter_class = self.get_adapter_class(
                identifier if settings is None else settings.adapter
            )
        except KeyError as exc:
            raise ConstructionError(identifier, exc.args[0]) from exc
        except ValueError as exc:
            raise ConstructionError(identifier, str(exc)) from exc

        try:
            return adapter_class() if settings is None else adapter_class.from_settings(settings)
        except ConstructionError:
            raise
        except Exception as exc:
            raise ConstructionError(identifier, str(exc) or type(exc).__name__) from exc

    def _register_builtins(self) -> None:
        for name, (module_name, class_name) in BUILTIN_ADAPTERS.items():
            try:
                module = importlib.import_module(module_name)
            except ImportError:
                logger.debug("Built-in provider %s unavailable", name, exc_info=True)
                continue
            self.register_provider(name, getattr(module, class_name))

    def _register_entry_points(self) -> None:
        for entry_point in metadata.entry_points(group=ENTRY_POINT_GROUP):
            try:
                adapter_class = entry_point.load()
                self.register_provider(entry_point.name, adapter_class)
            except Exception:
                logger.warning(
                    "Ignoring provider plugin %s (%s)",
                    entry_point.name,
                    entry_point.value,
                    exc_info=True,
                )


def get_registry() -> ProviderRegistry:
    """The shared registry, created on first use."""
    with _shared_lock:
        if ProviderRegistry._instance is None:
            ProviderRegistry._instance = ProviderRegistry()
        return ProviderRegistry._instance
