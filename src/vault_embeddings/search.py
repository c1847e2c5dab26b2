"""SimilaritySearch — brute-force cosine ranking over every stored record."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from vault_embeddings.exceptions import DimensionMismatchError, NotFoundError
from vault_embeddings.types import SearchOptions, SearchResult
from vault_embeddings.utils import is_excluded_path

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from vault_embeddings.protocols import EmbeddingProvider
    from vault_embeddings.store import EmbeddingStore
    from vault_embeddings.types import EmbeddingRecord

logger = logging.getLogger(__name__)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return ``dot(a, b) / (|a| * |b|)``.

    A zero vector on either side yields 0.0.

    Raises:
        DimensionMismatchError: The vectors differ in length.
    """
    if len(a) != len(b):
        msg = f"Vector dimensions must match ({len(a)} != {len(b)})"
        raise DimensionMismatchError(msg)

    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    denominator = float(np.linalg.norm(va)) * float(np.linalg.norm(vb))
    if denominator == 0.0:
        return 0.0
    return float(np.dot(va, vb)) / denominator


def rank(
    query: Sequence[float],
    records: Iterable[EmbeddingRecord],
    options: SearchOptions,
    *,
    exclude_ids: Iterable[str] = (),
) -> list[SearchResult]:
    """Filter, score, threshold, sort and truncate *records* against *query*.

    Order of operations: id exclusion, folder exclusion, similarity,
    threshold, descending sort (stable), limit.
    """
    excluded = set(options.exclude_ids) | set(exclude_ids)
    results: list[SearchResult] = []
    for record in records:
        if record.note_id in excluded:
            continue
        if is_excluded_path(record.note_path, options.exclude_folders):
            continue
        similarity = cosine_similarity(query, record.vector)
        if similarity >= options.threshold:
            results.append(
                SearchResult(
                    note_id=record.note_id,
                    note_path=record.note_path,
                    title=record.title,
                    similarity=similarity,
                )
            )

    results.sort(key=lambda r: r.similarity, reverse=True)
    return results[: max(options.limit, 0)]


class SimilaritySearch:
    """Nearest-neighbour queries against an :class:`EmbeddingStore`.

    A linear scan over all records; intended for a single user's collection.
    Mixed dimensionalities in the store surface as
    :class:`DimensionMismatchError`, the signal to re-embed under one model.
    """

    def __init__(self, provider: EmbeddingProvider, store: EmbeddingStore) -> None:
        self._provider = provider
        self._store = store

    async def search_by_text(
        self, query: str, options: SearchOptions | None = None
    ) -> list[SearchResult]:
        """Embed *query* and rank every stored record against it."""
        options = options or SearchOptions()
        vector = await self._provider.embed(query)
        records = await self._store.find_all()
        return rank(vector, records, options)

    async def search_by_document(
        self, note_id: str, options: SearchOptions | None = None
    ) -> list[SearchResult]:
        """Rank every other record against the stored vector of *note_id*.

        Raises:
            NotFoundError: *note_id* has no stored embedding.
        """
        options = options or SearchOptions()
        record = await self._store.find_by_id(note_id)
        if record is None:
            msg = f"Embedding not found for note: {note_id}"
            raise NotFoundError(msg)
        records = await self._store.find_all()
        return rank(record.vector, records, options, exclude_ids=(note_id,))
