"""Download remote attachments for providers that need inline data."""

from __future__ import annotations

import base64
import logging
from typing import Optional

import httpx

from ..models import FileContent


class AttachmentFetcher:
    """Fetch ``FileContent`` URLs and return their base64 payload."""

    def __init__(
        self,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout
        self._logger = logger or logging.getLogger("llm_nexus.providers.attachments")

    def _client_or_create(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, follow_redirects=True)
        return self._client

    async def fetch(self, file: FileContent) -> str:
        if not file.url:
            raise ValueError("Attachment has no url to fetch")
        self._logger.info(
            "Downloading attachment %s (%s) for inline upload",
            file.filename or file.url,
            file.mime_type,
        )
        response = await self._client_or_create().get(file.url)
        response.raise_for_status()
        return base64.b64encode(response.content).decode("ascii")

    async def inline_data(self, file: FileContent) -> str:
        """Return the file's base64 data, downloading it when only a url is set."""
        if file.data:
            return file.data
        return await self.fetch(file)

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None
