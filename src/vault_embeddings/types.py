"""Value objects — embedding records, the index summary, search and batch results."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any, Literal

INDEX_VERSION = "1.0.0"

EmbedReason = Literal["new", "stale", "skipped"]


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(UTC)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, assuming UTC when no offset is given."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


# ------------------------------------------------------------------
# Documents
# ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Document:
    """A source document as seen by the sync pipeline.

    Attributes:
        id: Stable identifier derived from the path.
        path: POSIX path relative to the vault root.
        title: Display title (file stem).
        content: Full text.
        modified_at: Last modification time.
    """

    id: str
    path: str
    title: str
    content: str
    modified_at: datetime | None = None


# ------------------------------------------------------------------
# Persisted data
# ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class EmbeddingRecord:
    """One stored embedding per document.

    Attributes:
        note_id: Document identifier.
        note_path: Document path at the time of embedding.
        title: Document title.
        content_hash: Algorithm-tagged digest of the embedded text.
        vector: The embedding.
        model: Model that produced the vector.
        provider: Provider that produced the vector.
        dimensions: Always ``len(vector)``.
        created_at: First time this document was embedded.
        updated_at: Last time the vector was replaced.
    """

    note_id: str
    note_path: str
    title: str
    content_hash: str
    vector: list[float]
    model: str
    provider: str
    dimensions: int
    created_at: datetime
    updated_at: datetime

    def __post_init__(self) -> None:
        if self.dimensions != len(self.vector):
            msg = (
                f"Record {self.note_id!r} declares {self.dimensions} dimensions "
                f"but carries a vector of length {len(self.vector)}"
            )
            raise ValueError(msg)
        if self.updated_at < self.created_at:
            msg = f"Record {self.note_id!r} has updated_at before created_at"
            raise ValueError(msg)

    @classmethod
    def create(
        cls,
        *,
        note_id: str,
        note_path: str,
        title: str,
        content_hash: str,
        vector: list[float],
        model: str,
        provider: str,
        created_at: datetime | None = None,
    ) -> EmbeddingRecord:
        """Build a record stamped with the current time.

        *created_at* carries the original creation time forward when an
        existing record is being replaced.
        """
        now = utcnow()
        return cls(
            note_id=note_id,
            note_path=note_path,
            title=title,
            content_hash=content_hash,
            vector=list(vector),
            model=model,
            provider=provider,
            dimensions=len(vector),
            created_at=min(created_at, now) if created_at is not None else now,
            updated_at=now,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "noteId": self.note_id,
            "notePath": self.note_path,
            "title": self.title,
            "contentHash": self.content_hash,
            "vector": list(self.vector),
            "model": self.model,
            "provider": self.provider,
            "dimensions": self.dimensions,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EmbeddingRecord:
        """Inverse of :meth:`to_dict`.  Raises ``KeyError``/``ValueError``/``TypeError``."""
        vector = [float(x) for x in data["vector"]]
        return cls(
            note_id=str(data["noteId"]),
            note_path=str(data["notePath"]),
            title=str(data.get("title", "")),
            content_hash=str(data["contentHash"]),
            vector=vector,
            model=str(data["model"]),
            provider=str(data["provider"]),
            dimensions=int(data.get("dimensions", len(vector))),
            created_at=parse_timestamp(data["createdAt"]),
            updated_at=parse_timestamp(data["updatedAt"]),
        )


@dataclass(frozen=True, slots=True)
class IndexEntry:
    """Lightweight projection of a record kept in the summary."""

    path: str
    content_hash: str
    updated_at: str

    @classmethod
    def from_record(cls, record: EmbeddingRecord) -> IndexEntry:
        return cls(
            path=record.note_path,
            content_hash=record.content_hash,
            updated_at=record.updated_at.isoformat(),
        )


@dataclass(slots=True)
class IndexSummary:
    """Derived, rebuildable cache over all stored records.

    ``model``, ``provider`` and ``dimensions`` describe the most recently
    indexed record and are hints only.
    """

    version: str = INDEX_VERSION
    last_updated: str = field(default_factory=lambda: utcnow().isoformat())
    model: str = ""
    provider: str = ""
    dimensions: int = 0
    notes: dict[str, IndexEntry] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.notes)

    def find_id_by_path(self, path: str) -> str | None:
        for note_id, entry in self.notes.items():
            if entry.path == path:
                return note_id
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "totalNotes": self.total,
            "lastUpdated": self.last_updated,
            "model": self.model,
            "provider": self.provider,
            "dimensions": self.dimensions,
            "notes": {
                note_id: {
                    "path": entry.path,
                    "contentHash": entry.content_hash,
                    "updatedAt": entry.updated_at,
                }
                for note_id, entry in self.notes.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IndexSummary:
        raw_notes: dict[str, dict[str, Any]] = data.get("notes", {})
        return cls(
            version=str(data.get("version", INDEX_VERSION)),
            last_updated=str(data.get("lastUpdated", "")),
            model=str(data.get("model", "")),
            provider=str(data.get("provider", "")),
            dimensions=int(data.get("dimensions", 0)),
            notes={
                str(note_id): IndexEntry(
                    path=str(info["path"]),
                    content_hash=str(info["contentHash"]),
                    updated_at=str(info.get("updatedAt", "")),
                )
                for note_id, info in raw_notes.items()
            },
        )


# ------------------------------------------------------------------
# Search
# ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SearchOptions:
    """Filters and limits for a similarity search.

    Attributes:
        limit: Maximum number of results.
        threshold: Minimum cosine similarity to keep a result.
        exclude_ids: Document ids never returned.
        exclude_folders: Folder prefixes never returned.
    """

    limit: int = 10
    threshold: float = 0.3
    exclude_ids: tuple[str, ...] = ()
    exclude_folders: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class SearchResult:
    """A ranked match from the similarity search.

    Attributes:
        note_id: Identifier of the matched document.
        note_path: Path of the matched document.
        title: Title of the matched document.
        similarity: Cosine similarity against the query vector.
    """

    note_id: str
    note_path: str
    title: str
    similarity: float


# ------------------------------------------------------------------
# Sync results
# ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class EmbedResult:
    """Outcome of a single-document sync."""

    record: EmbeddingRecord
    was_updated: bool
    reason: EmbedReason


@dataclass(slots=True)
class BatchProgress:
    """Counters for a running batch.  Only ever increase."""

    total: int
    completed: int = 0
    skipped: int = 0
    failed: int = 0
    current: str | None = None

    def snapshot(self) -> BatchProgress:
        return replace(self)


@dataclass(frozen=True, slots=True)
class BatchResult:
    success: int
    skipped: int
    failed: int


@dataclass(frozen=True, slots=True)
class StaleBatchResult:
    updated: int
    skipped: int
    failed: int


@dataclass(frozen=True, slots=True)
class EmbeddingStats:
    total_embeddings: int
    model: str
    provider: str
    dimensions: int
    last_updated: str | None
