"""Collaborator protocols — async-first interfaces for embedding and document access."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from vault_embeddings.types import Document


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Async-first protocol for text-to-vector embedding.

    ``embed_batch`` must return vectors in input order, whatever order the
    remote API answers in.  Implementations chunk oversized batches
    themselves.
    """

    async def embed(self, text: str) -> list[float]:
        """Embed a single text string into a vector."""
        ...

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed multiple texts into vectors, preserving order."""
        ...

    async def test_api_key(self, api_key: str) -> bool:
        """Return True if *api_key* is accepted by the remote API."""
        ...

    def is_available(self) -> bool:
        """Return True if the provider has a credential configured."""
        ...

    @property
    def dimensions(self) -> int:
        """Number of dimensions in the embedding vectors."""
        ...

    @property
    def model_name(self) -> str:
        """Name of the embedding model."""
        ...

    @property
    def provider_name(self) -> str:
        """Identifier of the provider (``"openai"``, ``"google"``, ``"voyageai"``)."""
        ...


@runtime_checkable
class DocumentSource(Protocol):
    """Read-only access to the document collection."""

    async def find_by_id(self, doc_id: str) -> Document | None:
        """Return the document with *doc_id*, or None."""
        ...

    async def find_by_path(self, path: str) -> Document | None:
        """Return the document at *path*, or None."""
        ...

    async def find_all_excluding(self, excluded_folders: Sequence[str]) -> list[Document]:
        """Return every document outside *excluded_folders*."""
        ...

    async def exists(self, doc_id: str) -> bool:
        """Return whether a document with *doc_id* exists."""
        ...

    def generate_id(self, path: str) -> str:
        """Deterministic identifier for *path*."""
        ...
