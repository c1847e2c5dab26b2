"""OpenAIEmbedding — async embedding provider backed by OpenAI's API."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any

import openai
from openai import AsyncOpenAI

from vault_embeddings.exceptions import ProviderCallError, ProviderUnavailableError
from vault_embeddings.providers._config import (
    ProviderType,
    max_batch_size,
    model_dimensions,
    normalize_input,
)

if TYPE_CHECKING:
    from openai import AsyncOpenAI as AsyncOpenAIType

logger = logging.getLogger(__name__)

_PROVIDER = ProviderType.OPENAI.value


class OpenAIEmbedding:
    """Async embedding provider backed by the OpenAI Embeddings API.

    Uses ``AsyncOpenAI`` for native async I/O.  Large batches are
    automatically chunked at *batch_size* texts per API call.  Without an
    API key the provider reports itself unavailable instead of failing at
    construction.
    """

    def __init__(
        self,
        *,
        model: str = "text-embedding-3-small",
        dimensions: int | None = None,
        api_key: str | None = None,
        max_retries: int = 2,
        timeout: float = 60.0,
        batch_size: int | None = None,
    ) -> None:
        self._model = model
        self._dimensions = dimensions or model_dimensions(ProviderType.OPENAI, model)
        self._batch_size = batch_size or max_batch_size(ProviderType.OPENAI, model)
        self._max_retries = max_retries
        self._timeout = timeout
        self._api_key = api_key if api_key is not None else os.environ.get("OPENAI_API_KEY", "")
        self._client: AsyncOpenAIType | None = (
            self._make_client(self._api_key) if self._api_key else None
        )

    # ------------------------------------------------------------------
    # EmbeddingProvider protocol
    # ------------------------------------------------------------------

    async def embed(self, text: str) -> list[float]:
        """Embed a single text string via the OpenAI API."""
        result = await self._call_api([text])
        return result[0]

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed multiple texts, chunking at *batch_size* per API call."""
        if not texts:
            return []

        all_vectors: list[list[float]] = []
        for start in range(0, len(texts), self._batch_size):
            chunk = texts[start : start + self._batch_size]
            vectors = await self._call_api(chunk)
            all_vectors.extend(vectors)
        return all_vectors

    async def test_api_key(self, api_key: str) -> bool:
        """Issue one tiny request with *api_key*; True only if it succeeds."""
        try:
            client = self._make_client(api_key)
        except openai.OpenAIError:
            return False
        try:
            await client.embeddings.create(input=["test"], model=self._model)
            return True
        except openai.OpenAIError:
            logger.debug("OpenAI API key check failed", exc_info=True)
            return False
        finally:
            await client.close()

    def is_available(self) -> bool:
        return bool(self._api_key)

    @property
    def dimensions(self) -> int:
        """Return the embedding dimensionality."""
        return self._dimensions

    @property
    def model_name(self) -> str:
        """Return the model name."""
        return self._model

    @property
    def provider_name(self) -> str:
        return _PROVIDER

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Close the underlying httpx client."""
        if self._client is not None:
            await self._client.close()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _make_client(self, api_key: str) -> AsyncOpenAIType:
        return AsyncOpenAI(api_key=api_key, max_retries=self._max_retries, timeout=self._timeout)

    async def _call_api(self, texts: list[str]) -> list[list[float]]:
        """Call the OpenAI embeddings endpoint and return ordered vectors."""
        if self._client is None:
            msg = "OpenAI API key not configured"
            raise ProviderUnavailableError(msg)

        kwargs: dict[str, Any] = {
            "input": [normalize_input(t) for t in texts],
            "model": self._model,
        }

        try:
            response = await self._client.embeddings.create(**kwargs)
        except openai.APIStatusError as e:
            msg = f"OpenAI API error: {e.status_code}"
            raise ProviderCallError(msg, provider=_PROVIDER, status_code=e.status_code) from e
        except openai.APIError as e:
            msg = f"OpenAI embedding failed: {e}"
            raise ProviderCallError(msg, provider=_PROVIDER) from e

        # Sort by index to ensure order matches input
        sorted_data = sorted(response.data, key=lambda e: e.index)
        return [item.embedding for item in sorted_data]
