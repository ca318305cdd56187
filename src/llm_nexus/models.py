"""Canonical request/response models shared by every provider adapter."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .errors import ArgumentError, FieldViolation, ValidationError

MAX_PROMPT_LENGTH = 1_000_000
MAX_TOKENS_LIMIT = 1_000_000
MIN_TEMPERATURE = 0.0
MAX_TEMPERATURE = 2.0

DEFAULT_MIME_TYPE = "application/octet-stream"

_MIME_TYPES: Dict[str, str] = {
    # images
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
    ".svg": "image/svg+xml",
    # documents
    ".pdf": "application/pdf",
    ".txt": "text/plain",
    ".csv": "text/csv",
    ".json": "application/json",
    ".xml": "application/xml",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    # audio
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    # video
    ".mp4": "video/mp4",
    ".avi": "video/x-msvideo",
    ".mov": "video/quicktime",
}


def guess_mime_type(path: Union[str, Path]) -> str:
    """Return the MIME type registered for the path's extension."""
    return _MIME_TYPES.get(Path(path).suffix.lower(), DEFAULT_MIME_TYPE)


class MediaType(str, Enum):
    """Broad attachment family used by adapters to pick a content block."""

    IMAGE = "image"
    DOCUMENT = "document"
    AUDIO = "audio"
    VIDEO = "video"


@dataclass(frozen=True)
class FileContent:
    """Attachment carried inline as base64 data or by remote reference."""

    media_type: MediaType
    mime_type: str
    data: str = ""
    url: Optional[str] = None
    filename: Optional[str] = None

    @classmethod
    def from_path(cls, path: Union[str, Path], media_type: MediaType) -> "FileContent":
        file_path = Path(path)
        if not file_path.is_file():
            raise FileNotFoundError(f"File not found: {file_path}")
        return cls(
            media_type=media_type,
            mime_type=guess_mime_type(file_path),
            data=base64.b64encode(file_path.read_bytes()).decode("ascii"),
            filename=file_path.name,
        )

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        media_type: MediaType,
        mime_type: str,
        filename: Optional[str] = None,
    ) -> "FileContent":
        return cls(
            media_type=media_type,
            mime_type=mime_type,
            data=base64.b64encode(bytes(data)).decode("ascii"),
            filename=filename,
        )

    @classmethod
    def from_url(cls, url: str, media_type: MediaType, mime_type: str) -> "FileContent":
        return cls(media_type=media_type, mime_type=mime_type, data="", url=url)

    @property
    def is_remote(self) -> bool:
        """True when the attachment only carries a URL."""
        return not self.data and bool(self.url)

    def raw_bytes(self) -> bytes:
        """Decode the inline base64 payload."""
        return base64.b64decode(self.data, validate=True)

    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


@dataclass
class LLMRequest:
    """Provider-agnostic generation request."""

    prompt: str
    system_message: Optional[str] = None
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    additional_parameters: Dict[str, Any] = field(default_factory=dict)
    files: List[FileContent] = field(default_factory=list)

    def validate(self) -> List[FieldViolation]:
        return validate_request(self)


@dataclass(frozen=True)
class UsageInfo:
    """Token accounting reported for one exchange."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def from_counts(
        cls,
        prompt_tokens: Optional[int],
        completion_tokens: Optional[int],
        total_tokens: Optional[int] = None,
    ) -> "UsageInfo":
        prompt = int(prompt_tokens or 0)
        completion = int(completion_tokens or 0)
        total = int(total_tokens) if total_tokens else prompt + completion
        return cls(prompt_tokens=prompt, completion_tokens=completion, total_tokens=total)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class LLMResponse:
    """Normalized provider output."""

    content: str
    id: str
    model: str
    provider: str
    usage: UsageInfo = field(default_factory=UsageInfo)
    timestamp: datetime = field(default_factory=_utcnow)
    finish_reason: str = ""
    stop_sequence: Optional[str] = None


def _type_name(value: Any) -> str:
    return type(value).__name__


def validate_request(request: LLMRequest) -> List[FieldViolation]:
    """Collect every constraint violation in ``request``."""
    violations: List[FieldViolation] = []

    prompt = request.prompt
    if not isinstance(prompt, str):
        violations.append(FieldViolation("prompt", "prompt must be a string", _type_name(prompt)))
    elif prompt.strip() == "":
        violations.append(FieldViolation("prompt", "prompt must not be blank", _type_name(prompt)))
    elif len(prompt) > MAX_PROMPT_LENGTH:
        violations.append(
            FieldViolation(
                "prompt",
                f"prompt must be between 1 and {MAX_PROMPT_LENGTH:,} characters",
                _type_name(prompt),
            )
        )

    max_tokens = request.max_tokens
    if max_tokens is not None:
        if isinstance(max_tokens, bool) or not isinstance(max_tokens, int):
            violations.append(FieldViolation("max_tokens", "max_tokens must be an integer", _type_name(max_tokens)))
        elif not 1 <= max_tokens <= MAX_TOKENS_LIMIT:
            violations.append(
                FieldViolation(
                    "max_tokens",
                    f"max_tokens must be between 1 and {MAX_TOKENS_LIMIT:,}",
                    _type_name(max_tokens),
                )
            )

    temperature = request.temperature
    if temperature is not None:
        if isinstance(temperature, bool) or not isinstance(temperature, (int, float)):
            violations.append(FieldViolation("temperature", "temperature must be a number", _type_name(temperature)))
        elif not MIN_TEMPERATURE <= temperature <= MAX_TEMPERATURE:
            violations.append(
                FieldViolation(
                    "temperature",
                    f"temperature must be between {MIN_TEMPERATURE} and {MAX_TEMPERATURE}",
                    _type_name(temperature),
                )
            )

    if not isinstance(request.additional_parameters, dict):
        violations.append(
            FieldViolation(
                "additional_parameters",
                "additional_parameters must be a mapping",
                _type_name(request.additional_parameters),
            )
        )

    files = request.files
    if not isinstance(files, (list, tuple)):
        violations.append(FieldViolation("files", "files must be a list of FileContent", _type_name(files)))
        files = []

    for index, item in enumerate(files):
        name = f"files[{index}]"
        if not isinstance(item, FileContent):
            violations.append(FieldViolation(name, "file must be a FileContent", _type_name(item)))
            continue
        if not item.mime_type or not item.mime_type.strip():
            violations.append(FieldViolation(f"{name}.mime_type", "mime_type must not be empty", _type_name(item.mime_type)))
        if not item.data and not item.url:
            violations.append(FieldViolation(name, "file must carry data or a url", "FileContent"))
        elif item.data:
            try:
                base64.b64decode(item.data, validate=True)
            except (binascii.Error, ValueError):
                violations.append(FieldViolation(f"{name}.data", "data must be valid base64", _type_name(item.data)))

    return violations


def ensure_valid(request: Optional[LLMRequest]) -> LLMRequest:
    """Raise if ``request`` is missing or violates any constraint."""
    if request is None:
        raise ArgumentError("request", "request must not be None")
    if not isinstance(request, LLMRequest):
        raise ArgumentError(
            "request",
            f"request must be an LLMRequest, got {_type_name(request)}",
            value=request,
        )
    violations = validate_request(request)
    if violations:
        raise ValidationError(violations)
    return request
