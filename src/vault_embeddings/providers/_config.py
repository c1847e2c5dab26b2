"""Provider registry — models, dimensions and batch limits per provider."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ProviderType(Enum):
    """Supported embedding backends."""

    OPENAI = "openai"
    GOOGLE = "google"
    VOYAGEAI = "voyageai"


@dataclass(frozen=True, slots=True)
class ModelConfig:
    id: str
    name: str
    dimensions: int
    max_batch_size: int


@dataclass(frozen=True, slots=True)
class ProviderConfig:
    type: ProviderType
    name: str
    default_model: str
    api_key_placeholder: str
    models: tuple[ModelConfig, ...]


PROVIDER_CONFIGS: dict[ProviderType, ProviderConfig] = {
    ProviderType.OPENAI: ProviderConfig(
        type=ProviderType.OPENAI,
        name="OpenAI",
        default_model="text-embedding-3-small",
        api_key_placeholder="sk-...",
        models=(
            ModelConfig("text-embedding-3-small", "text-embedding-3-small (1536d)", 1536, 100),
            ModelConfig("text-embedding-3-large", "text-embedding-3-large (3072d)", 3072, 100),
        ),
    ),
    ProviderType.GOOGLE: ProviderConfig(
        type=ProviderType.GOOGLE,
        name="Google (Gemini)",
        default_model="gemini-embedding-001",
        api_key_placeholder="AIza...",
        models=(
            ModelConfig("gemini-embedding-001", "gemini-embedding-001 (3072d)", 3072, 100),
            ModelConfig("text-embedding-004", "text-embedding-004 (768d)", 768, 100),
        ),
    ),
    ProviderType.VOYAGEAI: ProviderConfig(
        type=ProviderType.VOYAGEAI,
        name="Voyage AI",
        default_model="voyage-3.5-lite",
        api_key_placeholder="pa-...",
        models=(
            ModelConfig("voyage-3.5-lite", "voyage-3.5-lite (1024d)", 1024, 128),
            ModelConfig("voyage-3.5", "voyage-3.5 (1024d)", 1024, 128),
        ),
    ),
}


def _model_config(provider: ProviderType, model: str) -> ModelConfig:
    config = PROVIDER_CONFIGS[provider]
    for candidate in config.models:
        if candidate.id == model:
            return candidate
    return config.models[0]


def model_dimensions(provider: ProviderType, model: str) -> int:
    """Dimensions of *model*, or of the provider's first model if unknown."""
    return _model_config(provider, model).dimensions


def max_batch_size(provider: ProviderType, model: str) -> int:
    """Batch limit of *model*, or of the provider's first model if unknown."""
    return _model_config(provider, model).max_batch_size


def default_model(provider: ProviderType) -> str:
    return PROVIDER_CONFIGS[provider].default_model


def is_known_model(provider: ProviderType, model: str) -> bool:
    """True if *model* is one of the registered models of *provider*."""
    return any(candidate.id == model for candidate in PROVIDER_CONFIGS[provider].models)


def normalize_input(text: str) -> str:
    """Strip *text*; empty input becomes a single space (APIs reject ``""``)."""
    cleaned = text.strip()
    return cleaned if cleaned else " "
