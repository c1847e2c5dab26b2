"""GoogleEmbedding — Gemini embeddings over the Generative Language REST API."""

from __future__ import annotations

import logging
import os
from typing import Any

import httpx

from vault_embeddings.exceptions import ProviderCallError, ProviderUnavailableError
from vault_embeddings.providers._config import (
    ProviderType,
    max_batch_size,
    model_dimensions,
    normalize_input,
)

logger = logging.getLogger(__name__)

GOOGLE_API_BASE = "https://generativelanguage.googleapis.com/v1beta/models"
DEFAULT_TIMEOUT = 60.0

_PROVIDER = ProviderType.GOOGLE.value


class GoogleEmbedding:
    """Async embedding provider for Google's Gemini embedding models.

    ``batchEmbedContents`` answers in request order, so batch results are
    returned as received.
    """

    def __init__(
        self,
        *,
        model: str = "gemini-embedding-001",
        dimensions: int | None = None,
        api_key: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        batch_size: int | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._model = model
        self._dimensions = dimensions or model_dimensions(ProviderType.GOOGLE, model)
        self._batch_size = batch_size or max_batch_size(ProviderType.GOOGLE, model)
        self._api_key = api_key if api_key is not None else os.environ.get("GOOGLE_API_KEY", "")
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def embed(self, text: str) -> list[float]:
        """Embed a single text via ``embedContent``."""
        data = await self._post(
            f"{GOOGLE_API_BASE}/{self._model}:embedContent",
            {"content": {"parts": [{"text": normalize_input(text)}]}},
        )
        return list(data["embedding"]["values"])

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed texts via ``batchEmbedContents``, *batch_size* per request."""
        results: list[list[float]] = []
        for start in range(0, len(texts), self._batch_size):
            chunk = texts[start : start + self._batch_size]
            requests = [
                {
                    "model": f"models/{self._model}",
                    "content": {"parts": [{"text": normalize_input(t)}]},
                }
                for t in chunk
            ]
            data = await self._post(
                f"{GOOGLE_API_BASE}/{self._model}:batchEmbedContents",
                {"requests": requests},
            )
            results.extend(list(e["values"]) for e in data["embeddings"])
        return results

    async def test_api_key(self, api_key: str) -> bool:
        try:
            response = await self._client.post(
                f"{GOOGLE_API_BASE}/{self._model}:embedContent",
                json={"content": {"parts": [{"text": "test"}]}},
                headers={"x-goog-api-key": api_key},
            )
        except httpx.HTTPError:
            logger.debug("Google API key check failed", exc_info=True)
            return False
        return response.status_code == 200

    def is_available(self) -> bool:
        return bool(self._api_key)

    @property
    def dimensions(self) -> int:
        return self._dimensions

    @property
    def model_name(self) -> str:
        return self._model

    @property
    def provider_name(self) -> str:
        return _PROVIDER

    async def close(self) -> None:
        await self._client.aclose()

    async def _post(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        if not self._api_key:
            msg = "Google API key not configured"
            raise ProviderUnavailableError(msg)

        try:
            response = await self._client.post(
                url, json=payload, headers={"x-goog-api-key": self._api_key}
            )
        except httpx.HTTPError as e:
            msg = f"Google embedding failed: {e}"
            raise ProviderCallError(msg, provider=_PROVIDER) from e

        if response.status_code != 200:
            msg = f"Google API error: {response.status_code}"
            raise ProviderCallError(msg, provider=_PROVIDER, status_code=response.status_code)
        return response.json()
