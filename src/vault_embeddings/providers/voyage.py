"""VoyageEmbedding — Voyage AI embeddings over its REST API."""

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

VOYAGEAI_API_URL = "https://api.voyageai.com/v1/embeddings"
DEFAULT_TIMEOUT = 60.0

_PROVIDER = ProviderType.VOYAGEAI.value


class VoyageEmbedding:
    """Async embedding provider for Voyage AI models.

    Voyage does not guarantee response order; every batch is re-sorted by
    the ``index`` field before it is returned.
    """

    def __init__(
        self,
        *,
        model: str = "voyage-3.5-lite",
        dimensions: int | None = None,
        api_key: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        batch_size: int | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._model = model
        self._dimensions = dimensions or model_dimensions(ProviderType.VOYAGEAI, model)
        self._batch_size = batch_size or max_batch_size(ProviderType.VOYAGEAI, model)
        self._api_key = api_key if api_key is not None else os.environ.get("VOYAGE_API_KEY", "")
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def embed(self, text: str) -> list[float]:
        result = await self._call_api([text])
        return result[0]

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed texts, *batch_size* per request, in input order."""
        results: list[list[float]] = []
        for start in range(0, len(texts), self._batch_size):
            results.extend(await self._call_api(texts[start : start + self._batch_size]))
        return results

    async def test_api_key(self, api_key: str) -> bool:
        try:
            response = await self._client.post(
                VOYAGEAI_API_URL,
                json={"input": ["test"], "model": self._model},
                headers={"Authorization": f"Bearer {api_key}"},
            )
        except httpx.HTTPError:
            logger.debug("Voyage AI API key check failed", exc_info=True)
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

    async def _call_api(self, texts: list[str]) -> list[list[float]]:
        if not self._api_key:
            msg = "Voyage AI API key not configured"
            raise ProviderUnavailableError(msg)

        payload: dict[str, Any] = {
            "input": [normalize_input(t) for t in texts],
            "model": self._model,
        }
        try:
            response = await self._client.post(
                VOYAGEAI_API_URL,
                json=payload,
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
        except httpx.HTTPError as e:
            msg = f"Voyage AI embedding failed: {e}"
            raise ProviderCallError(msg, provider=_PROVIDER) from e

        if response.status_code != 200:
            msg = f"Voyage AI API error: {response.status_code}"
            raise ProviderCallError(msg, provider=_PROVIDER, status_code=response.status_code)

        data = sorted(response.json()["data"], key=lambda item: item["index"])
        return [list(item["embedding"]) for item in data]
