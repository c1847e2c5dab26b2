"""SyncEngine — decides per document whether to call the embedding provider."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import TYPE_CHECKING, Any

from vault_embeddings.exceptions import NotFoundError
from vault_embeddings.hashing import content_hash, hashes_equal
from vault_embeddings.types import (
    BatchProgress,
    BatchResult,
    EmbeddingRecord,
    EmbedResult,
    StaleBatchResult,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from vault_embeddings.protocols import DocumentSource, EmbeddingProvider
    from vault_embeddings.store import EmbeddingStore
    from vault_embeddings.types import Document

    ProgressCallback = Callable[[BatchProgress], Awaitable[None] | None]

logger = logging.getLogger(__name__)


class SyncEngine:
    """Keeps the :class:`EmbeddingStore` in step with the document collection.

    A document is re-embedded when it has no record, when its content hash
    changed, or when the stored record came from a different provider or
    model.  Everything else is skipped without a provider call.

    Work is strictly sequential: every public operation holds the engine's
    lock, so at most one provider request is in flight per engine and a
    batch started while another runs waits for it to finish.  Batch progress
    is reported in enumeration order.
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
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Single document
    # ------------------------------------------------------------------

    async def embed_one(self, note_id: str, document: Document | None = None) -> EmbedResult:
        """Embed *note_id* unless its stored record is fresh.

        Raises:
            NotFoundError: The document cannot be resolved.
        """
        async with self._lock:
            return await self._sync_one(note_id, document)

    async def _sync_one(self, note_id: str, document: Document | None) -> EmbedResult:
        doc = document if document is not None else await self._resolve(note_id)
        current_hash = content_hash(doc.content)
        existing_hash = await self._store.get_content_hash(note_id)

        existing: EmbeddingRecord | None = None
        if existing_hash is not None:
            existing = await self._store.find_by_id(note_id)

        if existing is not None and hashes_equal(existing_hash, current_hash):
            if self._matches_provider(existing):
                return EmbedResult(record=existing, was_updated=False, reason="skipped")
            logger.debug(
                "Provider/model changed for %s (%s/%s -> %s/%s)",
                doc.path,
                existing.provider,
                existing.model,
                self._provider.provider_name,
                self._provider.model_name,
            )

        record = await self._embed_document(note_id, doc, current_hash, existing)
        return EmbedResult(
            record=record,
            was_updated=True,
            reason="stale" if existing_hash is not None else "new",
        )

    async def embed_if_stale(self, note_id: str, current_hash: str) -> EmbeddingRecord | None:
        """Embed *note_id* only if *current_hash* differs from storage.

        Returns None without touching the provider when the hashes match.
        """
        async with self._lock:
            existing_hash = await self._store.get_content_hash(note_id)
            if hashes_equal(existing_hash, current_hash):
                return None
            result = await self._sync_one(note_id, None)
            return result.record

    async def force_embed(self, note_id: str) -> EmbeddingRecord:
        """Re-embed *note_id* unconditionally and overwrite its record."""
        async with self._lock:
            doc = await self._resolve(note_id)
            existing = await self._store.find_by_id(note_id)
            return await self._embed_document(note_id, doc, content_hash(doc.content), existing)

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    async def embed_all(
        self,
        excluded_folders: Sequence[str] = (),
        on_progress: ProgressCallback | None = None,
        *,
        stop: asyncio.Event | None = None,
    ) -> BatchResult:
        """Sync every document outside *excluded_folders*.

        Per-document failures are logged and counted; the batch never
        raises because of one document.  The summary index is rebuilt once
        at the end.  Setting *stop* ends the run before the next document.
        """
        async with self._lock:
            return await self._run_all(excluded_folders, on_progress, stop)

    async def _run_all(
        self,
        excluded_folders: Sequence[str],
        on_progress: ProgressCallback | None,
        stop: asyncio.Event | None,
    ) -> BatchResult:
        docs = await self._documents.find_all_excluding(excluded_folders)
        progress = BatchProgress(total=len(docs))
        await _report(on_progress, progress)

        for doc in docs:
            if stop is not None and stop.is_set():
                logger.info("Batch stopped after %d of %d documents", progress.completed, len(docs))
                break
            progress.current = doc.path
            await _report(on_progress, progress)
            try:
                result = await self._sync_one(doc.id, doc)
            except Exception:
                logger.warning("Failed to embed %s", doc.path, exc_info=True)
                progress.failed += 1
                continue
            if result.reason == "skipped":
                progress.skipped += 1
            progress.completed += 1

        progress.current = None
        await _report(on_progress, progress)
        await self._store.update_index()

        return BatchResult(
            success=progress.completed - progress.skipped,
            skipped=progress.skipped,
            failed=progress.failed,
        )

    async def embed_stale(
        self,
        excluded_folders: Sequence[str] = (),
        on_progress: ProgressCallback | None = None,
        *,
        stop: asyncio.Event | None = None,
    ) -> StaleBatchResult:
        """Re-embed documents whose content hash differs from storage.

        The cheap pass: only content hashes are compared, so a provider or
        model change alone does not trigger re-embedding here.
        """
        async with self._lock:
            return await self._run_stale(excluded_folders, on_progress, stop)

    async def _run_stale(
        self,
        excluded_folders: Sequence[str],
        on_progress: ProgressCallback | None,
        stop: asyncio.Event | None,
    ) -> StaleBatchResult:
        docs = await self._documents.find_all_excluding(excluded_folders)
        progress = BatchProgress(total=len(docs))
        updated = 0
        await _report(on_progress, progress)

        for doc in docs:
            if stop is not None and stop.is_set():
                logger.info("Batch stopped after %d of %d documents", progress.completed, len(docs))
                break
            progress.current = doc.path
            await _report(on_progress, progress)
            try:
                current_hash = content_hash(doc.content)
                existing_hash = await self._store.get_content_hash(doc.id)
                if hashes_equal(existing_hash, current_hash):
                    progress.skipped += 1
                else:
                    result = await self._sync_one(doc.id, doc)
                    if result.was_updated:
                        updated += 1
                    else:
                        progress.skipped += 1
            except Exception:
                logger.warning("Failed to embed %s", doc.path, exc_info=True)
                progress.failed += 1
                continue
            progress.completed += 1

        progress.current = None
        await _report(on_progress, progress)
        await self._store.update_index()

        return StaleBatchResult(updated=updated, skipped=progress.skipped, failed=progress.failed)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def provider(self) -> EmbeddingProvider:
        return self._provider

    @property
    def store(self) -> EmbeddingStore:
        return self._store

    @property
    def is_busy(self) -> bool:
        """True while an embed or batch holds the engine."""
        return self._lock.locked()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _resolve(self, note_id: str) -> Document:
        doc = await self._documents.find_by_id(note_id)
        if doc is None:
            msg = f"Note not found: {note_id}"
            raise NotFoundError(msg)
        return doc

    def _matches_provider(self, record: EmbeddingRecord) -> bool:
        return (
            record.provider == self._provider.provider_name
            and record.model == self._provider.model_name
        )

    async def _embed_document(
        self,
        note_id: str,
        doc: Document,
        current_hash: str,
        existing: EmbeddingRecord | None,
    ) -> EmbeddingRecord:
        vector = await self._provider.embed(doc.content)
        record = EmbeddingRecord.create(
            note_id=note_id,
            note_path=doc.path,
            title=doc.title,
            content_hash=current_hash,
            vector=vector,
            model=self._provider.model_name,
            provider=self._provider.provider_name,
            created_at=existing.created_at if existing is not None else None,
        )
        await self._store.save(record)
        logger.debug("Embedded %s (%d dims)", doc.path, record.dimensions)
        return record


async def _report(callback: Any, progress: BatchProgress) -> None:
    """Hand a snapshot of *progress* to a sync or async callback."""
    if callback is None:
        return
    result = callback(progress.snapshot())
    if inspect.isawaitable(result):
        await result
