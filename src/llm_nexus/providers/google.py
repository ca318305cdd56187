"""Google Gemini provider adapter."""

from __future__ import annotations

import base64
from typing import Any, Dict, List

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from ..config import ProviderKind
from ..models import FileContent, LLMRequest, LLMResponse, UsageInfo
from .base import BaseProvider

_CLOUD_STORAGE_SCHEME = "gs://"


def _enum_text(value: Any) -> str:
    if value is None:
        return ""
    return str(getattr(value, "value", value))


class GoogleProvider(BaseProvider):
    """Adapter for the Gemini generate-content API.

    Gemini only reads remote files from Cloud Storage (``gs://``) references;
    attachments on plain HTTP(S) urls are downloaded and sent inline.
    """

    kind = ProviderKind.GOOGLE
    display_name = "Google"
    retryable_errors = (genai_errors.ServerError,)
    reserved_parameters = frozenset(
        {"model", "contents", "system_instruction", "max_output_tokens", "temperature"}
    )

    def __init__(self, config, **kwargs: Any) -> None:
        super().__init__(config, **kwargs)
        self._client = genai.Client(
            api_key=config.api_key,
            http_options=types.HttpOptions(timeout=int(config.timeout * 1000)),
        )

    async def _generate(self, request: LLMRequest) -> LLMResponse:
        config_fields: Dict[str, Any] = {}
        if request.system_message and request.system_message.strip():
            config_fields["system_instruction"] = request.system_message
        if request.temperature is not None:
            config_fields["temperature"] = float(request.temperature)
        # Without an explicit ceiling the model's own output limit applies.
        if request.max_tokens is not None:
            config_fields["max_output_tokens"] = request.max_tokens
        config_fields.update(self._extra_parameters(request))

        response = await self._client.aio.models.generate_content(
            model=self._config.model,
            contents=[types.Content(role="user", parts=await self._build_parts(request))],
            config=types.GenerateContentConfig(**config_fields),
        )

        if not response.candidates:
            raise self._empty_response("candidates")
        candidate = response.candidates[0]
        metadata = response.usage_metadata

        return self._response(
            content=response.text or "",
            id=getattr(response, "response_id", None),
            model=getattr(response, "model_version", None),
            finish_reason=_enum_text(candidate.finish_reason),
            usage=UsageInfo.from_counts(
                metadata.prompt_token_count if metadata else 0,
                metadata.candidates_token_count if metadata else 0,
                metadata.total_token_count if metadata else None,
            ),
        )

    async def _build_parts(self, request: LLMRequest) -> List[types.Part]:
        parts: List[types.Part] = []
        for file in request.files:
            parts.append(await self._file_part(file))
        parts.append(types.Part.from_text(text=request.prompt))
        return parts

    async def _file_part(self, file: FileContent) -> types.Part:
        if file.is_remote and file.url.startswith(_CLOUD_STORAGE_SCHEME):
            return types.Part.from_uri(file_uri=file.url, mime_type=file.mime_type)
        data = await self._inline_data(file)
        return types.Part.from_bytes(data=base64.b64decode(data), mime_type=file.mime_type)

    async def _close_client(self) -> None:
        close = getattr(self._client.aio, "aclose", None)
        if close is not None:
            await close()
