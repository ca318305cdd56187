"""Metrics collection primitives for LLM Nexus."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from prometheus_client import CollectorRegistry, Counter, Histogram, start_http_server


@dataclass
class MetricsEvent:
    """Structured metrics payload for one generate call."""

    provider: str
    model: str
    status: str
    duration_ms: float
    prompt_tokens: int = 0
    completion_tokens: int = 0
    error_code: Optional[str] = None


class MetricsCollector(Protocol):
    """Protocol for collecting metrics events."""

    def record(self, event: MetricsEvent) -> None:
        """Persist or emit the metrics event."""


class LoggingMetricsCollector(MetricsCollector):
    """Default metrics collector that logs structured events."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger("llm_nexus.metrics")

    def record(self, event: MetricsEvent) -> None:
        payload = {
            "provider": event.provider,
            "model": event.model,
            "status": event.status,
            "duration_ms": round(event.duration_ms, 3),
            "prompt_tokens": event.prompt_tokens,
            "completion_tokens": event.completion_tokens,
            "error_code": event.error_code,
        }
        self._logger.info("generation_metrics", extra={"metrics": payload})


class PrometheusMetricsCollector(MetricsCollector):
    """Metrics collector backed by Prometheus client library."""

    def __init__(
        self,
        *,
        port: Optional[int] = None,
        registry: Optional[CollectorRegistry] = None,
    ) -> None:
        self._registry = registry or CollectorRegistry()
        self._events = Counter(
            "llm_nexus_generations_total",
            "Total generate calls by outcome",
            ["provider", "model", "status", "error_code"],
            registry=self._registry,
        )
        self._duration = Histogram(
            "llm_nexus_generation_duration_seconds",
            "Generate call duration",
            ["provider", "status"],
            registry=self._registry,
        )
        self._tokens = Counter(
            "llm_nexus_tokens_total",
            "Tokens consumed by successful generate calls",
            ["provider", "model", "kind"],
            registry=self._registry,
        )
        if port is not None:
            start_http_server(port, registry=self._registry)

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def record(self, event: MetricsEvent) -> None:
        model = event.model or "unknown"
        error_code = event.error_code or "none"

        self._events.labels(
            provider=event.provider,
            model=model,
            status=event.status,
            error_code=error_code,
        ).inc()
        self._duration.labels(
            provider=event.provider,
            status=event.status,
        ).observe(max(event.duration_ms / 1000.0, 0.0))
        if event.status == "success":
            self._tokens.labels(provider=event.provider, model=model, kind="prompt").inc(
                max(event.prompt_tokens, 0)
            )
            self._tokens.labels(provider=event.provider, model=model, kind="completion").inc(
                max(event.completion_tokens, 0)
            )


def create_metrics_collector(backend: str, port: Optional[int] = None) -> MetricsCollector:
    """Return the collector named by ``backend``."""
    if backend == "prometheus":
        return PrometheusMetricsCollector(port=port)
    return LoggingMetricsCollector()
