"""VaultEmbeddings — lifecycle object wiring settings, storage, sync and events."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from vault_embeddings.documents import DEFAULT_EXTENSION, LocalDocumentSource
from vault_embeddings.events import EventBus, EventType
from vault_embeddings.exceptions import NotConfiguredError, StorageError
from vault_embeddings.providers import create_provider, model_dimensions
from vault_embeddings.queue import EditQueue
from vault_embeddings.service import EmbeddingService
from vault_embeddings.store import EmbeddingStore
from vault_embeddings.types import EmbeddingStats

if TYPE_CHECKING:
    from vault_embeddings.config import Settings
    from vault_embeddings.events import DocumentEvent
    from vault_embeddings.protocols import DocumentSource, EmbeddingProvider
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


class VaultEmbeddings:
    """Constructed once at startup and passed to whatever needs embeddings.

    :meth:`initialize` never raises: missing credentials or a storage
    failure leave the instance unconfigured, with the reason in
    :attr:`init_error`.  Guarded operations then raise
    :class:`NotConfiguredError`; searches return no results and
    :meth:`get_stats` reports provider defaults.

    Document changes arrive through :attr:`events`.  Creates and edits go
    through an :class:`EditQueue` when ``settings.auto_embed`` is on;
    deletes and renames drop the old embedding immediately.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        vault_root: str | Path | None = None,
        documents: DocumentSource | None = None,
        provider: EmbeddingProvider | None = None,
        extension: str = DEFAULT_EXTENSION,
    ) -> None:
        if documents is None and vault_root is None:
            msg = "VaultEmbeddings needs a vault_root or a documents source"
            raise ValueError(msg)

        self._settings = settings
        self._vault_root = Path(vault_root) if vault_root is not None else None
        self._documents: DocumentSource = (
            documents
            if documents is not None
            else LocalDocumentSource(self._vault_root or ".", extension=extension)
        )
        self._injected_provider = provider
        self._extension = extension

        self._provider: EmbeddingProvider | None = None
        self._store: EmbeddingStore | None = None
        self._service: EmbeddingService | None = None
        self._queue: EditQueue | None = None
        self._init_error: str | None = None

        self._event_bus = EventBus()
        self._event_bus.register(
            (EventType.CREATED, EventType.MODIFIED), self._on_document_changed
        )
        self._event_bus.register(EventType.DELETED, self._on_document_deleted)
        self._event_bus.register(EventType.RENAMED, self._on_document_renamed)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Build provider, store and service from the current settings."""
        self._init_error = None
        self._service = None
        self._queue = None

        provider = self._injected_provider or create_provider(self._settings)
        self._provider = provider
        if not provider.is_available():
            logger.info("API key not configured; embeddings disabled")
            self._init_error = "API key not configured"
            return

        store = EmbeddingStore(self._storage_path())
        try:
            await store.initialize()
        except (StorageError, OSError) as e:
            logger.error("Storage initialization failed: %s", e)
            self._init_error = f"Storage initialization failed: {e}"
            return
        self._store = store

        self._service = EmbeddingService(provider, store, self._documents)
        if self._settings.auto_embed:
            self._queue = EditQueue(
                self._service.embed_note_by_path,
                delay=self._settings.auto_embed_delay,
                excluded_folders=self._settings.excluded_folders,
            )
        logger.info(
            "Embeddings ready (%s/%s) at %s",
            provider.provider_name,
            provider.model_name,
            store.base_path,
        )

    async def reconfigure(self, settings: Settings) -> None:
        """Swap in new *settings* and re-initialize."""
        await self.close()
        self._settings = settings
        await self.initialize()

    async def close(self) -> None:
        """Stop the edit queue and release provider connections."""
        if self._queue is not None:
            await self._queue.close()
            self._queue = None
        if self._provider is not None and self._provider is not self._injected_provider:
            close_fn = getattr(self._provider, "close", None)
            if close_fn is not None:
                await close_fn()
        self._provider = None
        self._service = None

    def is_configured(self) -> bool:
        return self._service is not None

    @property
    def init_error(self) -> str | None:
        return self._init_error

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def is_available(self) -> bool:
        return self._service is not None and self._service.is_available()

    async def test_api_key(self) -> bool:
        if self._provider is None:
            return False
        return await self._provider.test_api_key(self._settings.active_api_key())

    async def embed_note(self, note_id: str) -> EmbedResult:
        return await self._require().embed_note(note_id)

    async def embed_note_by_path(self, path: str) -> EmbedResult:
        return await self._require().embed_note_by_path(path)

    async def embed_all_notes(self, on_progress: ProgressCallback | None = None) -> BatchResult:
        return await self._require().embed_all_notes(self._settings.excluded_folders, on_progress)

    async def embed_stale_notes(
        self, on_progress: ProgressCallback | None = None
    ) -> StaleBatchResult:
        return await self._require().embed_stale_notes(
            self._settings.excluded_folders, on_progress
        )

    async def search_similar(
        self, query: str, options: SearchOptions | None = None
    ) -> list[SearchResult]:
        if self._service is None:
            return []
        return await self._service.search_similar(query, options)

    async def find_similar_to_note(
        self, path: str, options: SearchOptions | None = None
    ) -> list[SearchResult]:
        """Documents similar to the one at *path*."""
        if self._service is None:
            return []
        note_id = self._documents.generate_id(path)
        return await self._service.find_similar_to_note(note_id, options)

    async def get_stats(self) -> EmbeddingStats:
        if self._service is None:
            return EmbeddingStats(
                total_embeddings=0,
                model=self._settings.model,
                provider=self._settings.provider.value,
                dimensions=model_dimensions(self._settings.provider, self._settings.model),
                last_updated=None,
            )
        return await self._service.get_stats()

    async def delete_embedding(self, note_id: str) -> None:
        await self._require().delete_embedding(note_id)

    async def clear_all_embeddings(self) -> None:
        await self._require().clear_all_embeddings()

    async def has_embedding(self, note_id: str) -> bool:
        return await self._require().has_embedding(note_id)

    async def get_embedding(self, note_id: str) -> EmbeddingRecord | None:
        return await self._require().get_embedding(note_id)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def events(self) -> EventBus:
        return self._event_bus

    @property
    def queue(self) -> EditQueue | None:
        return self._queue

    @property
    def service(self) -> EmbeddingService | None:
        return self._service

    @property
    def documents(self) -> DocumentSource:
        return self._documents

    @property
    def settings(self) -> Settings:
        return self._settings

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    async def _on_document_changed(self, event: DocumentEvent) -> None:
        if self._queue is None or not self._handles(event.path):
            return
        self._queue.notify(event.path)

    async def _on_document_deleted(self, event: DocumentEvent) -> None:
        if self._service is None or not self._handles(event.path):
            return
        await self._service.delete_embedding(self._documents.generate_id(event.path))
        logger.debug("Deleted embedding: %s", event.path)

    async def _on_document_renamed(self, event: DocumentEvent) -> None:
        if self._service is None or not self._handles(event.path):
            return
        old_path, _ = event.affected_paths
        await self._service.delete_embedding(self._documents.generate_id(old_path))
        if self._queue is not None:
            self._queue.notify(event.path)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _require(self) -> EmbeddingService:
        if self._service is None:
            reason = self._init_error or "Embedding service not initialized"
            msg = f"Embeddings not configured: {reason}"
            raise NotConfiguredError(msg)
        return self._service

    def _handles(self, path: str) -> bool:
        return path.endswith(self._extension)

    def _storage_path(self) -> Path:
        storage = Path(self._settings.storage_path)
        if not storage.is_absolute() and self._vault_root is not None:
            return self._vault_root / storage
        return storage
