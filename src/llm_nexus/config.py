"""Configuration utilities for LLM Nexus."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from dotenv import load_dotenv

# Load secrets from home directory first, then fall back to local lookups.
load_dotenv(Path.home() / ".env", override=False)
load_dotenv(override=False)

ENV_PREFIX = "NEXUS"
DEFAULT_MAX_TOKENS = 2000
DEFAULT_TIMEOUT = 60.0


class ConfigError(ValueError):
    """Raised when configuration values are invalid or missing."""


class ProviderKind(str, Enum):
    """Closed set of supported provider back-ends."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"

    @classmethod
    def parse(cls, value: Any) -> "ProviderKind":
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        for kind in cls:
            if kind.value == text:
                return kind
        allowed = ", ".join(kind.value for kind in cls)
        raise ConfigError(f"Unsupported LLM provider: {value!r} (expected one of: {allowed})")


def _as_bool(value: str) -> bool:
    return value.lower() in {"1", "true", "yes", "on"}


def _require(value: Optional[str], name: str) -> str:
    if value is None or str(value).strip() == "":
        raise ConfigError(f"{name} is required but was not provided")
    return str(value)


def _env_name(provider_name: str) -> str:
    return re.sub(r"[^A-Za-z0-9]", "_", provider_name).upper()


@dataclass(frozen=True)
class ProviderConfiguration:
    """Connection settings for one named provider."""

    provider: ProviderKind
    api_key: str = field(repr=False)
    model: str
    max_tokens: Optional[int] = DEFAULT_MAX_TOKENS
    stream: Optional[bool] = None
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_mapping(cls, name: str, data: Mapping[str, Any]) -> "ProviderConfiguration":
        """Build a provider entry from a parsed settings section."""
        prefix = f"providers.{name}"
        kind = ProviderKind.parse(data.get("provider", name))
        api_key = _require(data.get("api_key"), f"{prefix}.api_key")
        model = _require(data.get("model"), f"{prefix}.model")
        try:
            raw_max = data.get("max_tokens", DEFAULT_MAX_TOKENS)
            max_tokens = int(raw_max) if raw_max is not None else None
            timeout = float(data.get("timeout", DEFAULT_TIMEOUT))
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid numeric configuration for {prefix}: {exc}") from exc
        stream = data.get("stream")
        if isinstance(stream, str):
            stream = _as_bool(stream)

        config = cls(
            provider=kind,
            api_key=api_key,
            model=model,
            max_tokens=max_tokens,
            stream=None if stream is None else bool(stream),
            timeout=timeout,
        )
        config.check(name)
        return config

    def check(self, name: str) -> None:
        if self.max_tokens is not None and self.max_tokens < 1:
            raise ConfigError(f"providers.{name}.max_tokens must be >= 1")
        if self.timeout <= 0:
            raise ConfigError(f"providers.{name}.timeout must be > 0")


@dataclass(frozen=True)
class LLMSettings:
    """Named provider configurations plus default selection."""

    providers: Dict[str, ProviderConfiguration]
    default_provider: Optional[str] = None
    log_level: str = "INFO"
    metrics_backend: str = "logging"
    metrics_port: Optional[int] = None

    def validate(self) -> "LLMSettings":
        """Fail fast on an empty provider set or a dangling default."""
        if not self.providers:
            raise ConfigError("At least one provider must be configured")
        if self.default_provider and self.default_provider not in self.providers:
            known = ", ".join(self.providers)
            raise ConfigError(
                f"Default provider '{self.default_provider}' is not configured (configured: {known})"
            )
        if self.metrics_backend not in {"logging", "prometheus"}:
            raise ConfigError("metrics_backend must be 'logging' or 'prometheus'")
        if self.metrics_port is not None and self.metrics_port < 0:
            raise ConfigError("metrics_port must be >= 0 when provided")
        return self

    @property
    def provider_names(self) -> List[str]:
        return list(self.providers)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "LLMSettings":
        """Build settings from a parsed document such as a JSON file."""
        section = data.get("providers")
        if not isinstance(section, Mapping):
            raise ConfigError("providers must be a mapping of provider name to configuration")

        providers: Dict[str, ProviderConfiguration] = {}
        for name, entry in section.items():
            if not isinstance(entry, Mapping):
                raise ConfigError(f"providers.{name} must be a mapping")
            providers[str(name)] = ProviderConfiguration.from_mapping(str(name), entry)

        metrics_port = data.get("metrics_port")
        try:
            metrics_port = int(metrics_port) if metrics_port is not None else None
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid numeric configuration: {exc}") from exc

        settings = cls(
            providers=providers,
            default_provider=(data.get("default_provider") or None),
            log_level=str(data.get("log_level", "INFO")).upper(),
            metrics_backend=str(data.get("metrics_backend", "logging")).strip().lower(),
            metrics_port=metrics_port,
        )
        return settings.validate()

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "LLMSettings":
        """Build settings from environment variables."""
        env = env if env is not None else os.environ

        names_raw = _require(env.get(f"{ENV_PREFIX}_PROVIDERS"), f"{ENV_PREFIX}_PROVIDERS")
        names = [item.strip() for item in names_raw.split(",") if item.strip()]

        providers: Dict[str, ProviderConfiguration] = {}
        for name in names:
            key = f"{ENV_PREFIX}_{_env_name(name)}"
            entry: Dict[str, Any] = {
                "provider": env.get(f"{key}_PROVIDER", name),
                "api_key": _require(env.get(f"{key}_API_KEY"), f"{key}_API_KEY"),
                "model": _require(env.get(f"{key}_MODEL"), f"{key}_MODEL"),
                "max_tokens": env.get(f"{key}_MAX_TOKENS", str(DEFAULT_MAX_TOKENS)),
                "timeout": env.get(f"{key}_TIMEOUT", str(DEFAULT_TIMEOUT)),
            }
            stream = env.get(f"{key}_STREAM")
            if stream is not None:
                entry["stream"] = _as_bool(stream)
            providers[name] = ProviderConfiguration.from_mapping(name, entry)

        try:
            metrics_port_raw = env.get(f"{ENV_PREFIX}_METRICS_PORT")
            metrics_port = int(metrics_port_raw) if metrics_port_raw else None
        except ValueError as exc:
            raise ConfigError(f"Invalid numeric configuration: {exc}") from exc

        settings = cls(
            providers=providers,
            default_provider=env.get(f"{ENV_PREFIX}_DEFAULT_PROVIDER") or None,
            log_level=env.get(f"{ENV_PREFIX}_LOG_LEVEL", "INFO").upper(),
            metrics_backend=env.get(f"{ENV_PREFIX}_METRICS_BACKEND", "logging").strip().lower(),
            metrics_port=metrics_port,
        )
        return settings.validate()
