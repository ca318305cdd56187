"""Named-provider factory: default resolution and cached adapter construction."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, List, Mapping, Optional

from .config import ConfigError, LLMSettings, ProviderKind
from .errors import ArgumentError
from .metrics import MetricsCollector, create_metrics_collector
from .providers import PROVIDER_CLASSES
from .providers.base import BaseProvider
from .service import LLMService

LoggerProvider = Callable[[str], logging.Logger]
ProviderBuilder = Callable[..., BaseProvider]

LOGGER = logging.getLogger("llm_nexus.factory")


class LLMServiceFactory:
    """Build one adapter per configured provider name, lazily and at most once.

    ``builders`` maps each :class:`ProviderKind` to a callable invoked as
    ``builder(config, name=..., logger=..., metrics=...)``; it defaults to the
    bundled adapter classes.
    """

    def __init__(
        self,
        settings: LLMSettings,
        *,
        logger_provider: LoggerProvider = logging.getLogger,
        metrics: Optional[MetricsCollector] = None,
        builders: Optional[Mapping[ProviderKind, ProviderBuilder]] = None,
    ) -> None:
        if settings is None:
            raise ArgumentError("settings", "settings must not be None")
        settings.validate()

        self._settings = settings
        self._logger_provider = logger_provider
        self._metrics = metrics or create_metrics_collector(settings.metrics_backend, settings.metrics_port)
        self._builders: Dict[ProviderKind, ProviderBuilder] = dict(builders or PROVIDER_CLASSES)
        self._adapters: Dict[str, BaseProvider] = {}
        self._lock = threading.Lock()

    def default_provider_name(self) -> str:
        """Explicit default when configured, otherwise the first configured name."""
        if self._settings.default_provider:
            return self._settings.default_provider
        return next(iter(self._settings.providers))

    def list_configured_providers(self) -> List[str]:
        return list(self._settings.providers)

    def create_service(self, name: Optional[str] = None) -> LLMService:
        """Return a façade over the adapter for ``name`` (or the default provider)."""
        if name is None:
            name = self.default_provider_name()
        return LLMService(self._adapter_for(name))

    def _adapter_for(self, name: str) -> BaseProvider:
        if not isinstance(name, str) or name.strip() == "":
            raise ArgumentError("name", "Provider name must be a non-empty string", value=name)
        if name not in self._settings.providers:
            known = ", ".join(self._settings.providers)
            raise ArgumentError(
                "name",
                f"Provider '{name}' is not configured. Available providers: {known}",
                value=name,
            )

        adapter = self._adapters.get(name)
        if adapter is not None:
            return adapter

        with self._lock:
            adapter = self._adapters.get(name)
            if adapter is None:
                adapter = self._build(name)
                self._adapters[name] = adapter
        return adapter

    def _build(self, name: str) -> BaseProvider:
        config = self._settings.providers[name]
        builder = self._builders.get(config.provider)
        if builder is None:
            raise ConfigError(f"Unsupported LLM provider: {config.provider} (configured as '{name}')")

        kind = ProviderKind(config.provider).value
        adapter = builder(
            config,
            name=name,
            logger=self._logger_provider(f"llm_nexus.providers.{kind}"),
            metrics=self._metrics,
        )
        LOGGER.info("LLM provider initialized: %s (kind=%s, model=%s)", name, kind, config.model)
        return adapter

    async def aclose(self) -> None:
        """Close every cached adapter."""
        with self._lock:
            adapters = list(self._adapters.values())
            self._adapters.clear()
        for adapter in adapters:
            try:
                await adapter.aclose()
            except Exception:  # pragma: no cover - provider cleanup best-effort
                LOGGER.debug("Provider cleanup failed for %s", adapter.name, exc_info=True)
