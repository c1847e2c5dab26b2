"""vault_embeddings: content-addressed note embeddings with hash-based sync.

Keeps a persistent store of embedding vectors in step with a changing note
collection, and answers nearest-neighbour queries against it.
"""

__version__ = "0.1.0"

from vault_embeddings.config import Settings, load_settings, save_settings
from vault_embeddings.documents import LocalDocumentSource, generate_id
from vault_embeddings.events import DocumentEvent, EventBus, EventType
from vault_embeddings.exceptions import (
    DimensionMismatchError,
    NotConfiguredError,
    NotFoundError,
    ProviderCallError,
    ProviderUnavailableError,
    StorageConflictError,
    StorageCorruptError,
    StorageError,
    VaultEmbeddingsError,
)
from vault_embeddings.hashing import content_hash, hash_algorithm, hashes_equal
from vault_embeddings.protocols import DocumentSource, EmbeddingProvider
from vault_embeddings.providers import (
    GoogleEmbedding,
    OpenAIEmbedding,
    ProviderType,
    VoyageEmbedding,
    create_provider,
)
from vault_embeddings.queue import EditQueue
from vault_embeddings.search import SimilaritySearch, cosine_similarity
from vault_embeddings.service import EmbeddingService
from vault_embeddings.store import EmbeddingStore
from vault_embeddings.sync import SyncEngine
from vault_embeddings.types import (
    BatchProgress,
    BatchResult,
    Document,
    EmbeddingRecord,
    EmbeddingStats,
    EmbedResult,
    IndexEntry,
    IndexSummary,
    SearchOptions,
    SearchResult,
    StaleBatchResult,
)
from vault_embeddings.vault import VaultEmbeddings

__all__ = [
    "BatchProgress",
    "BatchResult",
    "DimensionMismatchError",
    "Document",
    "DocumentEvent",
    "DocumentSource",
    "EditQueue",
    "EmbedResult",
    "EmbeddingProvider",
    "EmbeddingRecord",
    "EmbeddingService",
    "EmbeddingStats",
    "EmbeddingStore",
    "EventBus",
    "EventType",
    "GoogleEmbedding",
    "IndexEntry",
    "IndexSummary",
    "LocalDocumentSource",
    "NotConfiguredError",
    "NotFoundError",
    "OpenAIEmbedding",
    "ProviderCallError",
    "ProviderType",
    "ProviderUnavailableError",
    "SearchOptions",
    "SearchResult",
    "Settings",
    "SimilaritySearch",
    "StaleBatchResult",
    "StorageConflictError",
    "StorageCorruptError",
    "StorageError",
    "SyncEngine",
    "VaultEmbeddings",
    "VaultEmbeddingsError",
    "VoyageEmbedding",
    "__version__",
    "content_hash",
    "cosine_similarity",
    "create_provider",
    "generate_id",
    "hash_algorithm",
    "hashes_equal",
    "load_settings",
    "save_settings",
]
