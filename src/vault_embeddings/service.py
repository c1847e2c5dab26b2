"""EmbeddingService — the operations exposed to the surrounding application."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from vault_embeddings.exceptions import NotFoundError
from vault_embeddings.search import SimilaritySearch
from vault_embeddings.sync import SyncEngine
from vault_embeddings.types import EmbeddingStats

if TYPE_CHECKING:
    from collections.abc import Sequence

    from vault_embeddings.protocols import DocumentSource, EmbeddingProvider
    from vault_embeddings.store import EmbeddingStore
    from vault_embeddings.sync import ProgressCallback
    from vault_embeddings.types import (
        BatchResult,
        EmbeddingRecord,
        EmbedResult,
        SearchOptions,
        SearchResult,
        StaleBatchResult,
    )

logger = logging.getLogger(__name__)


class EmbeddingService:
    """Orchestrates :class:`SyncEngine`, :class:`SimilaritySearch` and the store.

    Single-document embeds patch the summary index in place; batch runs
    rebuild it once at the end.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        store: EmbeddingStore,
        documents: DocumentSource,
    ) -> None:
        self._provider = provider
        self._store = store
        self._documents = documents
        self._sync = SyncEngine(provider, store, documents)
        self._search = SimilaritySearch(provider, store)

    def is_available(self) -> bool:
        return self._provider.is_available()

    # ------------------------------------------------------------------
    # Embedding
    # ------------------------------------------------------------------

    async def embed_note(self, note_id: str) -> EmbedResult:
        """Sync one document by id."""
        result = await self._sync.embed_one(note_id)
        if result.was_updated:
            await self._store.update_index_entry(result.record)
        return result

    async def embed_note_by_path(self, path: str) -> EmbedResult:
        """Sync one document by path.

        Raises:
            NotFoundError: No document exists at *path*.
        """
        doc = await self._documents.find_by_path(path)
        if doc is None:
            msg = f"Note not found at path: {path}"
            raise NotFoundError(msg)
        result = await self._sync.embed_one(doc.id, doc)
        if result.was_updated:
            await self._store.update_index_entry(result.record)
        return result

    async def embed_all_notes(
        self,
        excluded_folders: Sequence[str] = (),
        on_progress: ProgressCallback | None = None,
    ) -> BatchResult:
        return await self._sync.embed_all(excluded_folders, on_progress)

    async def embed_stale_notes(
        self,
        excluded_folders: Sequence[str] = (),
        on_progress: ProgressCallback | None = None,
    ) -> StaleBatchResult:
        return await self._sync.embed_stale(excluded_folders, on_progress)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search_similar(
        self, query: str, options: SearchOptions | None = None
    ) -> list[SearchResult]:
        return await self._search.search_by_text(query, options)

    async def find_similar_to_note(
        self, note_id: str, options: SearchOptions | None = None
    ) -> list[SearchResult]:
        return await self._search.search_by_document(note_id, options)

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------

    async def get_stats(self) -> EmbeddingStats:
        """Counts from the summary; the active provider fills in missing hints."""
        index = await self._store.get_index()
        return EmbeddingStats(
            total_embeddings=index.total,
            model=index.model or self._provider.model_name,
            provider=self._provider.provider_name,
            dimensions=index.dimensions or self._provider.dimensions,
            last_updated=index.last_updated or None,
        )

    async def delete_embedding(self, note_id: str) -> None:
        await self._store.delete(note_id)
        await self._store.update_index()

    async def clear_all_embeddings(self) -> None:
        await self._store.clear()

    async def has_embedding(self, note_id: str) -> bool:
        return await self._store.exists(note_id)

    async def get_embedding(self, note_id: str) -> EmbeddingRecord | None:
        return await self._store.find_by_id(note_id)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def sync(self) -> SyncEngine:
        return self._sync

    @property
    def search(self) -> SimilaritySearch:
        return self._search

    @property
    def store(self) -> EmbeddingStore:
        return self._store
