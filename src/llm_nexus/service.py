"""Single entry point callers use regardless of the concrete provider."""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from .errors import ArgumentError
from .models import LLMRequest, LLMResponse
from .providers.base import BaseProvider


class LLMService:
    """Thin façade delegating to a resolved provider adapter."""

    def __init__(self, adapter: Optional[BaseProvider]) -> None:
        if adapter is None:
            raise ArgumentError("adapter", "adapter must not be None")
        self._adapter = adapter

    @property
    def provider_name(self) -> str:
        return self._adapter.name

    @property
    def adapter(self) -> BaseProvider:
        return self._adapter

    async def generate(
        self,
        request: LLMRequest,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> LLMResponse:
        return await self._adapter.generate(request, cancel_event=cancel_event)

    async def generate_text(
        self,
        prompt: str,
        *,
        cancel_event: Optional[asyncio.Event] = None,
        **fields: Any,
    ) -> LLMResponse:
        return await self._adapter.generate_text(prompt, cancel_event=cancel_event, **fields)

    async def aclose(self) -> None:
        await self._adapter.aclose()

    def __repr__(self) -> str:
        return f"LLMService(provider={self.provider_name!r})"
