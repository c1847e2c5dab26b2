"""Shared fixtures for vault_embeddings tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from fakes import FakeProvider, MemoryDocuments

from vault_embeddings.store import EmbeddingStore

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def documents() -> MemoryDocuments:
    return MemoryDocuments()


@pytest.fixture
async def store(tmp_path: Path) -> EmbeddingStore:
    """Initialized store under a temporary directory."""
    s = EmbeddingStore(tmp_path / "09_Embedded", retry_delay=0.0)
    await s.initialize()
    return s
