"""Tests for Settings conversion and persistence."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from vault_embeddings.config import Settings, load_settings, save_settings
from vault_embeddings.providers import ProviderType, create_provider

if TYPE_CHECKING:
    from pathlib import Path


class TestDefaults:
    def test_defaults(self):
        settings = Settings()
        assert settings.provider is ProviderType.OPENAI
        assert settings.model == "text-embedding-3-small"
        assert settings.storage_path == "09_Embedded"
        assert settings.excluded_folders == ["06_Meta", "Templates"]
        assert settings.auto_embed is True
        assert settings.auto_embed_delay == 5.0

    def test_excluded_folders_not_shared(self):
        a, b = Settings(), Settings()
        a.excluded_folders.append("Archive")
        assert "Archive" not in b.excluded_folders

    @pytest.mark.parametrize(
        ("provider", "expected"),
        [
            (ProviderType.OPENAI, "o"),
            (ProviderType.GOOGLE, "g"),
            (ProviderType.VOYAGEAI, "v"),
        ],
    )
    def test_active_api_key(self, provider, expected):
        settings = Settings(
            provider=provider, openai_api_key="o", google_api_key="g", voyageai_api_key="v"
        )
        assert settings.active_api_key() == expected


class TestFromDict:
    def test_camel_case_keys(self):
        settings = Settings.from_dict(
            {
                "provider": "google",
                "googleApiKey": "AIza",
                "model": "text-embedding-004",
                "storagePath": "Embeddings",
                "excludedFolders": ["Private"],
                "autoEmbed": False,
                "autoEmbedDelay": 2500,
            }
        )
        assert settings.provider is ProviderType.GOOGLE
        assert settings.google_api_key == "AIza"
        assert settings.model == "text-embedding-004"
        assert settings.storage_path == "Embeddings"
        assert settings.excluded_folders == ["Private"]
        assert settings.auto_embed is False
        assert settings.auto_embed_delay == 2.5

    def test_snake_case_keys(self):
        settings = Settings.from_dict({"provider": "voyageai", "auto_embed_delay": 1})
        assert settings.provider is ProviderType.VOYAGEAI
        assert settings.auto_embed_delay == 1.0

    def test_unknown_keys_ignored(self):
        settings = Settings.from_dict({"somethingElse": 1})
        assert settings == Settings()

    def test_invalid_provider(self):
        with pytest.raises(ValueError):
            Settings.from_dict({"provider": "nope"})

    @pytest.mark.parametrize(
        ("provider", "expected"),
        [
            ("openai", "text-embedding-3-small"),
            ("google", "gemini-embedding-001"),
            ("voyageai", "voyage-3.5-lite"),
        ],
    )
    def test_provider_without_model_uses_provider_default(self, provider, expected):
        assert Settings.from_dict({"provider": provider}).model == expected

    def test_model_of_another_provider_is_replaced(self):
        settings = Settings.from_dict({"provider": "google", "model": "text-embedding-3-small"})
        assert settings.model == "gemini-embedding-001"

    def test_direct_construction_resolves_model(self):
        assert Settings(provider=ProviderType.VOYAGEAI).model == "voyage-3.5-lite"

    def test_to_dict_round_trip(self):
        original = Settings(provider=ProviderType.VOYAGEAI, model="voyage-3.5")
        data = original.to_dict()
        assert data["provider"] == "voyageai"
        assert Settings.from_dict(data) == original


class TestFromEnv:
    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_API_KEY", "AIza-env")
        monkeypatch.setenv("VAULT_EMBEDDINGS_PROVIDER", "google")
        monkeypatch.setenv("VAULT_EMBEDDINGS_MODEL", "gemini-embedding-001")
        monkeypatch.setenv("VAULT_EMBEDDINGS_STORAGE_PATH", "/tmp/embeddings")
        settings = Settings.from_env()
        assert settings.provider is ProviderType.GOOGLE
        assert settings.active_api_key() == "AIza-env"
        assert settings.model == "gemini-embedding-001"
        assert settings.storage_path == "/tmp/embeddings"

    def test_provider_only_builds_matching_provider(self, monkeypatch):
        monkeypatch.delenv("VAULT_EMBEDDINGS_MODEL", raising=False)
        monkeypatch.setenv("VAULT_EMBEDDINGS_PROVIDER", "google")
        settings = Settings.from_env(google_api_key="k")
        provider = create_provider(settings)
        assert provider.provider_name == "google"
        assert provider.model_name == "gemini-embedding-001"
        assert provider.dimensions == 3072

    def test_overrides_win(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        settings = Settings.from_env(openai_api_key="sk-override", auto_embed=False)
        assert settings.openai_api_key == "sk-override"
        assert settings.auto_embed is False


class TestPersistence:
    def test_missing_file_gives_defaults(self, tmp_path: Path):
        assert load_settings(tmp_path / "absent.json") == Settings()

    def test_save_then_load(self, tmp_path: Path):
        path = tmp_path / "nested" / "settings.json"
        settings = Settings(openai_api_key="sk-x", excluded_folders=["A"])
        save_settings(settings, path)
        assert json.loads(path.read_text())["openai_api_key"] == "sk-x"
        assert load_settings(path) == settings

    def test_load_plugin_style_file(self, tmp_path: Path):
        path = tmp_path / "data.json"
        path.write_text(json.dumps({"openaiApiKey": "sk-plugin", "autoEmbedDelay": 5000}))
        settings = load_settings(path)
        assert settings.openai_api_key == "sk-plugin"
        assert settings.auto_embed_delay == 5.0
