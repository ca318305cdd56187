"""Provider abstractions for LLM integrations."""

from __future__ import annotations

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from time import perf_counter
from typing import Any, Awaitable, ClassVar, Dict, FrozenSet, Optional, Tuple, TypeVar

import httpx

from ..config import ProviderConfiguration, ProviderKind
from ..errors import CancellationError
from ..metrics import LoggingMetricsCollector, MetricsCollector, MetricsEvent
from ..models import FileContent, LLMRequest, LLMResponse, MediaType, ensure_valid
from .attachments import AttachmentFetcher

T = TypeVar("T")

_RETRYABLE_STATUS = {408, 409, 429}


class ProviderError(Exception):
    """Standard error raised by provider adapters."""

    def __init__(
        self,
        code: str,
        message: str,
        retryable: bool = False,
        *,
        provider: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.retryable = retryable
        self.provider = provider
        self.details = details or {}


def _status_of(exc: BaseException) -> Optional[int]:
    status = getattr(exc, "status_code", None)
    if isinstance(status, int):
        return status
    code = getattr(exc, "code", None)
    if isinstance(code, int):
        return code
    return None


def is_retryable(exc: BaseException) -> bool:
    """Classify a vendor failure for callers that run their own retry loop."""
    if isinstance(exc, ProviderError):
        return exc.retryable
    if isinstance(exc, (httpx.TimeoutException, httpx.NetworkError)):
        return True
    status = _status_of(exc)
    if status is None:
        return False
    return status in _RETRYABLE_STATUS or status >= 500


def error_code(exc: BaseException) -> str:
    if isinstance(exc, ProviderError):
        return exc.code
    code = getattr(exc, "code", None)
    if isinstance(code, str) and code:
        return code
    return type(exc).__name__


async def run_cancellable(
    awaitable: Awaitable[T],
    cancel_event: Optional[asyncio.Event],
    *,
    provider: Optional[str] = None,
) -> T:
    """Await ``awaitable`` unless ``cancel_event`` fires first."""
    if cancel_event is None:
        return await awaitable

    call = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(cancel_event.wait())
    try:
        done, _ = await asyncio.wait({call, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        call.cancel()
        waiter.cancel()
        raise

    if call in done:
        waiter.cancel()
        return call.result()

    call.cancel()
    await asyncio.gather(call, return_exceptions=True)
    raise CancellationError(provider, before_call=False)


class BaseProvider(ABC):
    """Shared request pipeline; subclasses translate to one vendor protocol."""

    kind: ClassVar[ProviderKind]
    display_name: ClassVar[str]
    # Media the vendor accepts at all.
    supported_media: ClassVar[FrozenSet[MediaType]] = frozenset(MediaType)
    # Media the vendor can fetch from a remote url on its own; others are inlined.
    remote_media: ClassVar[FrozenSet[MediaType]] = frozenset()
    # Vendor arguments built from the canonical request fields.
    reserved_parameters: ClassVar[FrozenSet[str]] = frozenset()
    retryable_errors: ClassVar[Tuple[type, ...]] = ()

    def __init__(
        self,
        config: ProviderConfiguration,
        *,
        name: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
        metrics: Optional[MetricsCollector] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._config = config
        self._name = name or self.kind.value
        self._logger = logger or logging.getLogger(f"llm_nexus.providers.{self.kind.value}")
        self._metrics = metrics or LoggingMetricsCollector()
        self._attachments = AttachmentFetcher(
            client=http_client,
            timeout=config.timeout,
            logger=self._logger,
        )
        if config.stream:
            self._logger.warning(
                "Provider '%s' has stream enabled; responses are still returned in a single exchange",
                self._name,
            )

    @property
    def name(self) -> str:
        return self._name

    @property
    def config(self) -> ProviderConfiguration:
        return self._config

    async def generate(
        self,
        request: LLMRequest,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> LLMResponse:
        """Validate, translate and send ``request``, returning the normalized response."""
        request = ensure_valid(request)
        if cancel_event is not None and cancel_event.is_set():
            raise CancellationError(self._name)
        self._check_media(request)

        self._logger.info(
            "Generating %s response for prompt with %s characters and %s file(s)",
            self.display_name,
            len(request.prompt),
            len(request.files),
        )
        start = perf_counter()
        try:
            response = await run_cancellable(
                self._generate(request),
                cancel_event,
                provider=self._name,
            )
        except (CancellationError, asyncio.CancelledError):
            self._logger.info("Generation cancelled for provider %s", self._name)
            self._record("cancelled", start, error="cancelled")
            raise
        except Exception as exc:
            self._logger.error(
                "Error generating %s response for provider %s: %s",
                self.display_name,
                self._name,
                exc,
                exc_info=True,
            )
            self._record("error", start, error=error_code(exc))
            raise

        self._record("success", start, response=response)
        self._logger.info(
            "Successfully generated %s response. Tokens used: %s",
            self.display_name,
            response.usage.total_tokens,
        )
        return response

    async def generate_text(
        self,
        prompt: str,
        *,
        cancel_event: Optional[asyncio.Event] = None,
        **fields: Any,
    ) -> LLMResponse:
        """Convenience wrapper: accepts a plain string prompt."""
        return await self.generate(LLMRequest(prompt=prompt, **fields), cancel_event=cancel_event)

    def is_retryable(self, exc: BaseException) -> bool:
        return isinstance(exc, self.retryable_errors) or is_retryable(exc)

    async def aclose(self) -> None:
        try:
            await self._close_client()
        finally:
            await self._attachments.aclose()

    @abstractmethod
    async def _generate(self, request: LLMRequest) -> LLMResponse:
        """Translate ``request``, call the vendor and map the reply back."""

    async def _close_client(self) -> None:  # pragma: no cover - optional hook
        """Release the vendor client."""

    def _check_media(self, request: LLMRequest) -> None:
        for file in request.files:
            if file.media_type not in self.supported_media:
                raise ProviderError(
                    code="unsupported_media",
                    message=(
                        f"{self.display_name} does not accept {file.media_type.value} attachments "
                        f"({file.mime_type})"
                    ),
                    retryable=False,
                    provider=self._name,
                    details={"filename": file.filename, "mime_type": file.mime_type},
                )

    def _uses_remote_reference(self, file: FileContent) -> bool:
        return file.is_remote and file.media_type in self.remote_media

    async def _inline_data(self, file: FileContent) -> str:
        return await self._attachments.inline_data(file)

    def _extra_parameters(self, request: LLMRequest) -> Dict[str, Any]:
        """Pass-through vendor options, minus anything the adapter sets itself."""
        extra: Dict[str, Any] = {}
        for key, value in request.additional_parameters.items():
            if key in self.reserved_parameters:
                self._logger.warning(
                    "Ignoring additional parameter '%s' for provider %s; it is derived from the request",
                    key,
                    self._name,
                )
                continue
            extra[key] = value
        return extra

    def _empty_response(self, what: str) -> ProviderError:
        return ProviderError(
            code="empty_response",
            message=f"{self.display_name} returned no {what}",
            retryable=False,
            provider=self._name,
        )

    def _response(self, **fields: Any) -> LLMResponse:
        fields.setdefault("provider", self.display_name)
        if not fields.get("id"):
            fields["id"] = str(uuid.uuid4())
        if not fields.get("model"):
            fields["model"] = self._config.model
        return LLMResponse(**fields)

    def _record(self, status: str, start: float, *, response: Optional[LLMResponse] = None, error: Optional[str] = None) -> None:
        self._metrics.record(
            MetricsEvent(
                provider=self._name,
                model=response.model if response else self._config.model,
                status=status,
                duration_ms=(perf_counter() - start) * 1000,
                prompt_tokens=response.usage.prompt_tokens if response else 0,
                completion_tokens=response.usage.completion_tokens if response else 0,
                error_code=error,
            )
        )
