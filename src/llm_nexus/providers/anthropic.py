"""Anthropic provider adapter."""

from __future__ import annotations

from typing import Any, Dict, List

from anthropic import APIConnectionError, APITimeoutError, AsyncAnthropic, RateLimitError

from ..config import DEFAULT_MAX_TOKENS, ProviderKind
from ..models import FileContent, LLMRequest, LLMResponse, MediaType, UsageInfo
from .base import BaseProvider

# The Messages API caps temperature at 1.0 while the canonical range goes to 2.0.
MAX_TEMPERATURE = 1.0


class AnthropicProvider(BaseProvider):
    """Adapter for the Anthropic Messages API."""

    kind = ProviderKind.ANTHROPIC
    display_name = "Anthropic"
    supported_media = frozenset({MediaType.IMAGE, MediaType.DOCUMENT})
    remote_media = frozenset({MediaType.IMAGE, MediaType.DOCUMENT})
    retryable_errors = (RateLimitError, APIConnectionError, APITimeoutError)
    reserved_parameters = frozenset({"model", "messages", "system", "max_tokens", "temperature", "stream"})

    def __init__(self, config, **kwargs: Any) -> None:
        super().__init__(config, **kwargs)
        self._client = AsyncAnthropic(api_key=config.api_key, timeout=config.timeout)

    async def _generate(self, request: LLMRequest) -> LLMResponse:
        params: Dict[str, Any] = {
            "model": self._config.model,
            "max_tokens": request.max_tokens or self._config.max_tokens or DEFAULT_MAX_TOKENS,
            "messages": [{"role": "user", "content": await self._build_content(request)}],
        }
        if request.system_message and request.system_message.strip():
            params["system"] = request.system_message
        if request.temperature is not None:
            temperature = float(request.temperature)
            if temperature > MAX_TEMPERATURE:
                self._logger.debug(
                    "Clamping temperature %s to %s for provider %s",
                    temperature,
                    MAX_TEMPERATURE,
                    self._name,
                )
                temperature = MAX_TEMPERATURE
            params["temperature"] = temperature
        params.update(self._extra_parameters(request))

        response = await self._client.messages.create(**params)

        text = "".join(
            block.text for block in (response.content or []) if getattr(block, "type", None) == "text"
        )
        usage = response.usage
        return self._response(
            content=text,
            id=response.id,
            model=response.model,
            finish_reason=str(response.stop_reason or ""),
            stop_sequence=response.stop_sequence or None,
            usage=UsageInfo.from_counts(
                usage.input_tokens if usage else 0,
                usage.output_tokens if usage else 0,
            ),
        )

    async def _build_content(self, request: LLMRequest):
        if not request.files:
            return request.prompt

        blocks: List[Dict[str, Any]] = []
        for file in request.files:
            blocks.append(await self._content_block(file))
        blocks.append({"type": "text", "text": request.prompt})
        return blocks

    async def _content_block(self, file: FileContent) -> Dict[str, Any]:
        block_type = "image" if file.media_type is MediaType.IMAGE else "document"
        if self._uses_remote_reference(file):
            return {"type": block_type, "source": {"type": "url", "url": file.url}}
        return {
            "type": block_type,
            "source": {
                "type": "base64",
                "media_type": file.mime_type,
                "data": await self._inline_data(file),
            },
        }

    async def _close_client(self) -> None:
        await self._client.close()
