"""Shared test fixtures for LLM Nexus."""

import sys
from pathlib import Path

import pytest

# Ensure the source directory is importable without installing the package.
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from llm_nexus.config import ProviderConfiguration, ProviderKind  # noqa: E402


class RecordingMetrics:
    """Metrics collector that keeps every event for assertions."""

    def __init__(self):
        self.events = []

    def record(self, event):
        self.events.append(event)


@pytest.fixture
def metrics():
    return RecordingMetrics()


def make_config(kind=ProviderKind.OPENAI, **overrides):
    values = {
        "provider": kind,
        "api_key": "test-key",
        "model": f"{kind.value}-model",
        "max_tokens": 2000,
        "timeout": 5.0,
    }
    values.update(overrides)
    return ProviderConfiguration(**values)
