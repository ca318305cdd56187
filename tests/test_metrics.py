"""Unit tests for metrics collectors."""

from prometheus_client import CollectorRegistry

from llm_nexus.metrics import (
    LoggingMetricsCollector,
    MetricsEvent,
    PrometheusMetricsCollector,
    create_metrics_collector,
)


def test_logging_metrics_collector_logs():
    logs = {}

    class _Logger:
        def info(self, name, extra=None):
            logs["name"] = name
            logs["extra"] = extra

    collector = LoggingMetricsCollector(logger=_Logger())
    collector.record(
        MetricsEvent(
            provider="openai",
            model="gpt-test",
            status="success",
            duration_ms=12.5,
            prompt_tokens=3,
            completion_tokens=4,
        )
    )

    assert logs["name"] == "generation_metrics"
    assert logs["extra"]["metrics"]["status"] == "success"
    assert logs["extra"]["metrics"]["completion_tokens"] == 4


def test_prometheus_metrics_collector_records_values():
    registry = CollectorRegistry()
    collector = PrometheusMetricsCollector(registry=registry)

    collector.record(
        MetricsEvent(
            provider="openai",
            model="gpt-test",
            status="success",
            duration_ms=100.0,
            prompt_tokens=10,
            completion_tokens=5,
        )
    )
    collector.record(
        MetricsEvent(
            provider="anthropic",
            model="",
            status="error",
            duration_ms=200.0,
            error_code="RateLimitError",
        )
    )

    success_total = registry.get_sample_value(
        "llm_nexus_generations_total",
        labels={"provider": "openai", "model": "gpt-test", "status": "success", "error_code": "none"},
    )
    assert success_total == 1.0

    error_total = registry.get_sample_value(
        "llm_nexus_generations_total",
        labels={
            "provider": "anthropic",
            "model": "unknown",
            "status": "error",
            "error_code": "RateLimitError",
        },
    )
    assert error_total == 1.0

    duration_sum = registry.get_sample_value(
        "llm_nexus_generation_duration_seconds_sum",
        labels={"provider": "openai", "status": "success"},
    )
    assert duration_sum == 0.1

    prompt_tokens = registry.get_sample_value(
        "llm_nexus_tokens_total",
        labels={"provider": "openai", "model": "gpt-test", "kind": "prompt"},
    )
    assert prompt_tokens == 10.0
    assert (
        registry.get_sample_value(
            "llm_nexus_tokens_total",
            labels={"provider": "anthropic", "model": "unknown", "kind": "prompt"},
        )
        is None
    )


def test_create_metrics_collector_selects_backend():
    assert isinstance(create_metrics_collector("logging"), LoggingMetricsCollector)
    assert isinstance(create_metrics_collector("prometheus"), PrometheusMetricsCollector)
