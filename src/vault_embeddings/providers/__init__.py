"""Embedding providers — registry, implementations and factory."""

from __future__ import annotations

from typing import TYPE_CHECKING

from vault_embeddings.protocols import EmbeddingProvider
from vault_embeddings.providers._config import (
    PROVIDER_CONFIGS,
    ModelConfig,
    ProviderConfig,
    ProviderType,
    default_model,
    is_known_model,
    max_batch_size,
    model_dimensions,
    normalize_input,
)
from vault_embeddings.providers.google import GoogleEmbedding
from vault_embeddings.providers.openai import OpenAIEmbedding
from vault_embeddings.providers.voyage import VoyageEmbedding

if TYPE_CHECKING:
    from vault_embeddings.config import Settings

__all__ = [
    "PROVIDER_CONFIGS",
    "EmbeddingProvider",
    "GoogleEmbedding",
    "ModelConfig",
    "OpenAIEmbedding",
    "ProviderConfig",
    "ProviderType",
    "VoyageEmbedding",
    "create_provider",
    "default_model",
    "is_known_model",
    "max_batch_size",
    "model_dimensions",
    "normalize_input",
]


def create_provider(settings: Settings) -> OpenAIEmbedding | GoogleEmbedding | VoyageEmbedding:
    """Build the provider selected by *settings*."""
    api_key = settings.active_api_key()
    model = settings.model
    dimensions = model_dimensions(settings.provider, model)

    if settings.provider is ProviderType.GOOGLE:
        return GoogleEmbedding(model=model, dimensions=dimensions, api_key=api_key)
    if settings.provider is ProviderType.VOYAGEAI:
        return VoyageEmbedding(model=model, dimensions=dimensions, api_key=api_key)
    return OpenAIEmbedding(model=model, dimensions=dimensions, api_key=api_key)
