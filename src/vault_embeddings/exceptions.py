"""Exception hierarchy for vault_embeddings."""

from __future__ import annotations


class VaultEmbeddingsError(Exception):
    """Base exception for all vault_embeddings errors."""


class NotFoundError(VaultEmbeddingsError, LookupError):
    """Raised when a document or embedding record is absent but required."""


class DimensionMismatchError(VaultEmbeddingsError, ValueError):
    """Raised when two vectors of different lengths are compared."""


class ProviderUnavailableError(VaultEmbeddingsError):
    """Raised when the embedding provider has no credential or configuration."""


class ProviderCallError(VaultEmbeddingsError):
    """Raised when a remote embedding call fails.

    Attributes:
        provider: Provider identifier (``"openai"``, ``"google"``, ...).
        status_code: HTTP status returned by the API, or None for transport errors.
    """

    def __init__(self, message: str, *, provider: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class StorageError(VaultEmbeddingsError):
    """Raised on storage failures that are not recoverable races."""


class StorageConflictError(StorageError):
    """Raised when a create races against another writer at the same path."""


class StorageCorruptError(StorageError):
    """Raised when a persisted record or summary cannot be parsed."""


class NotConfiguredError(VaultEmbeddingsError):
    """Raised when an operation runs before the system is configured."""
