"""LLM Nexus - one canonical request/response interface over several LLM providers."""

from .config import ConfigError, LLMSettings, ProviderConfiguration, ProviderKind  # noqa: F401
from .errors import ArgumentError, CancellationError, FieldViolation, ValidationError  # noqa: F401
from .factory import LLMServiceFactory  # noqa: F401
from .models import FileContent, LLMRequest, LLMResponse, MediaType, UsageInfo  # noqa: F401
from .providers.base import ProviderError  # noqa: F401
from .service import LLMService  # noqa: F401

__all__ = [
    "ArgumentError",
    "CancellationError",
    "ConfigError",
    "FieldViolation",
    "FileContent",
    "LLMRequest",
    "LLMResponse",
    "LLMService",
    "LLMServiceFactory",
    "LLMSettings",
    "MediaType",
    "ProviderConfiguration",
    "ProviderError",
    "ProviderKind",
    "UsageInfo",
    "ValidationError",
    "__version__",
]

__version__ = "0.1.0"
