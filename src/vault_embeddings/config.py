"""Settings for the embedding system, loadable from dicts, JSON files and the environment."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from vault_embeddings.providers._config import ProviderType, default_model, is_known_model

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_PATH = "09_Embedded"
DEFAULT_EXCLUDED_FOLDERS = ("06_Meta", "Templates")

# camelCase keys as stored in a plugin-style data.json.
_CAMEL_KEYS: dict[str, str] = {
    "openaiApiKey": "openai_api_key",
    "googleApiKey": "google_api_key",
    "voyageaiApiKey": "voyageai_api_key",
    "storagePath": "storage_path",
    "excludedFolders": "excluded_folders",
    "autoEmbed": "auto_embed",
}


@dataclass(slots=True)
class Settings:
    """User-facing configuration.

    Attributes:
        provider: Active embedding backend.
        openai_api_key: Key used when *provider* is OpenAI.
        google_api_key: Key used when *provider* is Google.
        voyageai_api_key: Key used when *provider* is Voyage AI.
        model: Embedding model id for the active provider; empty or unknown ids
            resolve to the provider's default model.
        storage_path: Directory holding the index and record files.
        excluded_folders: Vault folders never embedded or returned in search.
        auto_embed: Re-embed documents automatically after edits.
        auto_embed_delay: Quiet period in seconds before auto-embedding.
    """

    provider: ProviderType = ProviderType.OPENAI
    openai_api_key: str = ""
    google_api_key: str = ""
    voyageai_api_key: str = ""
    model: str = ""
    storage_path: str = DEFAULT_STORAGE_PATH
    excluded_folders: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDED_FOLDERS))
    auto_embed: bool = True
    auto_embed_delay: float = 5.0

    def __post_init__(self) -> None:
        if not is_known_model(self.provider, self.model):
            fallback = default_model(self.provider)
            if self.model:
                logger.warning(
                    "Model %r is not offered by %s; using %r",
                    self.model,
                    self.provider.value,
                    fallback,
                )
            self.model = fallback

    def active_api_key(self) -> str:
        """Return the API key belonging to the active provider."""
        if self.provider is ProviderType.GOOGLE:
            return self.google_api_key
        if self.provider is ProviderType.VOYAGEAI:
            return self.voyageai_api_key
        return self.openai_api_key

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Settings:
        """Build settings from snake_case or plugin-style camelCase keys.

        ``autoEmbedDelay`` is read as milliseconds, ``auto_embed_delay`` as
        seconds.  Unknown keys are ignored.
        """
        values: dict[str, Any] = {}
        for key, value in data.items():
            if key == "autoEmbedDelay":
                values["auto_embed_delay"] = float(value) / 1000.0
            elif key in _CAMEL_KEYS:
                values[_CAMEL_KEYS[key]] = value
            elif key in cls.__dataclass_fields__:
                values[key] = value
            else:
                logger.debug("Ignoring unknown setting %r", key)

        if "provider" in values:
            values["provider"] = ProviderType(values["provider"])
        if "excluded_folders" in values:
            values["excluded_folders"] = list(values["excluded_folders"])
        if "auto_embed_delay" in values:
            values["auto_embed_delay"] = float(values["auto_embed_delay"])
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["provider"] = self.provider.value
        return data

    @classmethod
    def from_env(cls, **overrides: Any) -> Settings:
        """Build settings from environment variables, then apply *overrides*."""
        values: dict[str, Any] = {
            "openai_api_key": os.environ.get("OPENAI_API_KEY", ""),
            "google_api_key": os.environ.get("GOOGLE_API_KEY", ""),
            "voyageai_api_key": os.environ.get("VOYAGE_API_KEY", ""),
        }
        provider = os.environ.get("VAULT_EMBEDDINGS_PROVIDER")
        if provider:
            values["provider"] = provider
        model = os.environ.get("VAULT_EMBEDDINGS_MODEL")
        if model:
            values["model"] = model
        storage_path = os.environ.get("VAULT_EMBEDDINGS_STORAGE_PATH")
        if storage_path:
            values["storage_path"] = storage_path
        values.update(overrides)
        return cls.from_dict(values)


def load_settings(path: str | Path) -> Settings:
    """Load settings from a JSON file; defaults when the file does not exist."""
    file_path = Path(path)
    if not file_path.exists():
        return Settings()
    with file_path.open(encoding="utf-8") as f:
        return Settings.from_dict(json.load(f))


def save_settings(settings: Settings, path: str | Path) -> None:
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with file_path.open("w", encoding="utf-8") as f:
        json.dump(settings.to_dict(), f, indent=2)
