"""Provider registry exports."""

from typing import Dict, Type

from ..config import ProviderKind
from .anthropic import AnthropicProvider
from .base import BaseProvider, ProviderError, is_retryable
from .google import GoogleProvider
from .openai import OpenAIProvider

PROVIDER_CLASSES: Dict[ProviderKind, Type[BaseProvider]] = {
    ProviderKind.OPENAI: OpenAIProvider,
    ProviderKind.ANTHROPIC: AnthropicProvider,
    ProviderKind.GOOGLE: GoogleProvider,
}

__all__ = [
    "AnthropicProvider",
    "BaseProvider",
    "GoogleProvider",
    "OpenAIProvider",
    "PROVIDER_CLASSES",
    "ProviderError",
    "is_retryable",
]
