"""OpenAI provider adapter."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from openai import APIConnectionError, APITimeoutError, AsyncOpenAI, RateLimitError

from ..config import ProviderKind
from ..models import FileContent, LLMRequest, LLMResponse, MediaType, UsageInfo
from .base import BaseProvider, ProviderError

_AUDIO_FORMATS = {
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/wave": "wav",
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
}


class OpenAIProvider(BaseProvider):
    """Adapter for OpenAI Chat Completions API."""

    kind = ProviderKind.OPENAI
    display_name = "OpenAI"
    supported_media = frozenset({MediaType.IMAGE, MediaType.DOCUMENT, MediaType.AUDIO})
    remote_media = frozenset({MediaType.IMAGE})
    retryable_errors = (RateLimitError, APIConnectionError, APITimeoutError)
    reserved_parameters = frozenset(
        {"model", "messages", "max_tokens", "max_completion_tokens", "temperature", "stream"}
    )

    def __init__(self, config, **kwargs: Any) -> None:
        super().__init__(config, **kwargs)
        self._client = AsyncOpenAI(api_key=config.api_key, timeout=config.timeout)

    async def _generate(self, request: LLMRequest) -> LLMResponse:
        options: Dict[str, Any] = {}
        max_tokens = request.max_tokens or self._config.max_tokens
        if max_tokens:
            options["max_completion_tokens"] = max_tokens
        if request.temperature is not None:
            options["temperature"] = float(request.temperature)
        options.update(self._extra_parameters(request))

        response = await self._client.chat.completions.create(
            model=self._config.model,
            messages=await self._build_messages(request),
            **options,
        )

        if not response.choices:
            raise self._empty_response("choices")
        choice = response.choices[0]
        content = getattr(choice.message, "content", "") or ""
        usage = response.usage

        return self._response(
            content=content,
            id=response.id,
            model=response.model,
            finish_reason=str(choice.finish_reason or ""),
            usage=UsageInfo.from_counts(
                usage.prompt_tokens if usage else 0,
                usage.completion_tokens if usage else 0,
                usage.total_tokens if usage else None,
            ),
        )

    async def _build_messages(self, request: LLMRequest) -> List[Dict[str, Any]]:
        messages: List[Dict[str, Any]] = []
        if request.system_message:
            messages.append({"role": "system", "content": request.system_message})

        if not request.files:
            messages.append({"role": "user", "content": request.prompt})
            return messages

        parts: List[Dict[str, Any]] = []
        for file in request.files:
            parts.append(await self._content_part(file))
        parts.append({"type": "text", "text": request.prompt})
        messages.append({"role": "user", "content": parts})
        return messages

    async def _content_part(self, file: FileContent) -> Dict[str, Any]:
        if file.media_type is MediaType.IMAGE:
            if self._uses_remote_reference(file):
                return {"type": "image_url", "image_url": {"url": file.url}}
            data = await self._inline_data(file)
            return {"type": "image_url", "image_url": {"url": f"data:{file.mime_type};base64,{data}"}}

        if file.media_type is MediaType.AUDIO:
            audio_format = _audio_format(file.mime_type)
            if audio_format is None:
                raise ProviderError(
                    code="unsupported_media",
                    message=f"OpenAI audio input accepts wav or mp3, not {file.mime_type}",
                    provider=self._name,
                    details={"filename": file.filename, "mime_type": file.mime_type},
                )
            data = await self._inline_data(file)
            return {"type": "input_audio", "input_audio": {"data": data, "format": audio_format}}

        data = await self._inline_data(file)
        return {
            "type": "file",
            "file": {
                "filename": file.filename or "document",
                "file_data": f"data:{file.mime_type};base64,{data}",
            },
        }

    async def _close_client(self) -> None:
        await self._client.close()


def _audio_format(mime_type: str) -> Optional[str]:
    return _AUDIO_FORMATS.get(mime_type.lower())
