"""EmbeddingStore — one JSON file per record plus a rebuildable summary index."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from vault_embeddings.exceptions import StorageConflictError, StorageCorruptError, StorageError
from vault_embeddings.types import EmbeddingRecord, IndexEntry, IndexSummary, utcnow

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_PATH = "09_Embedded"
DEFAULT_EMBEDDINGS_FOLDER = "embeddings"
DEFAULT_RETRY_DELAY = 0.1  # seconds

_INDEX_FILE = "index.json"
_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9_-]")


def safe_filename(note_id: str) -> str:
    """Filesystem-safe record name: anything outside ``[A-Za-z0-9_-]`` becomes ``_``."""
    return _UNSAFE_CHARS.sub("_", note_id)


class EmbeddingStore:
    """Durable keyed storage of :class:`EmbeddingRecord` objects.

    Layout::

        <base_path>/index.json                 summary (derived cache)
        <base_path>/<embeddings_folder>/*.json one record per document

    The record files are authoritative.  The summary is a read-through,
    write-invalidate cache: ``save``/``delete`` mark the touched id dirty and
    the next :meth:`get_index` reconciles just those ids.  A missing or
    corrupt summary degrades to an empty one and never raises.

    The store does not arbitrate concurrent writers to the same id.
    Create-time races against another process (e.g. a file sync tool) are
    retried once after *retry_delay* and otherwise resolved by a direct
    overwrite.
    """

    def __init__(
        self,
        base_path: str | Path = DEFAULT_STORAGE_PATH,
        *,
        embeddings_folder: str = DEFAULT_EMBEDDINGS_FOLDER,
        retry_delay: float = DEFAULT_RETRY_DELAY,
    ) -> None:
        self._base_path = Path(base_path)
        self._records_dir = self._base_path / embeddings_folder
        self._index_path = self._base_path / _INDEX_FILE
        self._retry_delay = retry_delay

        self._index_cache: IndexSummary | None = None
        self._dirty_ids: set[str] = set()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Create the storage folders and an empty summary.  Idempotent."""
        await self._ensure_dir(self._base_path)
        await self._ensure_dir(self._records_dir)
        if not await asyncio.to_thread(self._index_path.exists):
            await self._save_index(IndexSummary())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def save(self, record: EmbeddingRecord) -> None:
        """Write or overwrite the record for ``record.note_id``."""
        content = json.dumps(record.to_dict(), indent=2)
        await self._write_text(self._record_path(record.note_id), content)
        self._invalidate(record.note_id)

    async def save_batch(self, records: Iterable[EmbeddingRecord]) -> None:
        """Sequential :meth:`save`.  Earlier records stay committed on failure."""
        for record in records:
            await self.save(record)

    async def delete(self, note_id: str) -> None:
        """Remove the record for *note_id*.  Missing records are ignored."""
        path = self._record_path(note_id)
        await asyncio.to_thread(path.unlink, missing_ok=True)
        self._invalidate(note_id)

    async def clear(self) -> None:
        """Delete every record and reset the summary."""

        def _do_clear() -> None:
            if not self._records_dir.is_dir():
                return
            for child in self._records_dir.iterdir():
                if child.is_file():
                    child.unlink(missing_ok=True)

        await asyncio.to_thread(_do_clear)
        self._dirty_ids.clear()
        await self._save_index(IndexSummary())

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def find_by_id(self, note_id: str) -> EmbeddingRecord | None:
        """Return the record for *note_id*, or None if absent or unreadable."""
        try:
            return await asyncio.to_thread(self._read_record, self._record_path(note_id))
        except StorageCorruptError:
            logger.debug("Treating corrupt record %s as absent", note_id, exc_info=True)
            return None

    async def find_by_path(self, note_path: str) -> EmbeddingRecord | None:
        """Return the record whose path is *note_path*.  Linear scan of the summary."""
        index = await self.get_index()
        note_id = index.find_id_by_path(note_path)
        if note_id is None:
            return None
        return await self.find_by_id(note_id)

    async def find_all(self) -> list[EmbeddingRecord]:
        """Return every readable record listed in the summary."""
        index = await self.get_index()
        records: list[EmbeddingRecord] = []
        for note_id in list(index.notes):
            record = await self.find_by_id(note_id)
            if record is not None:
                records.append(record)
        return records

    async def exists(self, note_id: str) -> bool:
        return await asyncio.to_thread(self._record_path(note_id).is_file)

    async def get_content_hash(self, note_id: str) -> str | None:
        """Hash-only projection, read from the summary without loading the vector."""
        index = await self.get_index()
        entry = index.notes.get(note_id)
        return entry.content_hash if entry is not None else None

    async def count(self) -> int:
        index = await self.get_index()
        return index.total

    # ------------------------------------------------------------------
    # Summary index
    # ------------------------------------------------------------------

    async def get_index(self) -> IndexSummary:
        """Return the summary, loading and reconciling it as needed.  Never raises."""
        if self._index_cache is not None and not self._dirty_ids:
            return self._index_cache

        index = self._index_cache
        if index is None:
            index = await self._load_index()

        if self._dirty_ids:
            dirty = list(self._dirty_ids)
            self._dirty_ids.clear()
            for note_id in dirty:
                record = await self.find_by_id(note_id)
                if record is None:
                    index.notes.pop(note_id, None)
                else:
                    self._apply_entry(index, record)
            index.last_updated = utcnow().isoformat()
            try:
                await self._write_index(index)
            except OSError:
                logger.warning("Could not persist reconciled index", exc_info=True)

        self._index_cache = index
        return index

    async def update_index_entry(self, record: EmbeddingRecord) -> None:
        """Patch the summary for one freshly written record without a full rebuild."""
        self._dirty_ids.discard(record.note_id)
        index = await self.get_index()
        self._apply_entry(index, record)
        index.last_updated = utcnow().isoformat()
        await self._save_index(index)

    async def update_index(self) -> None:
        """Rebuild the summary by scanning every record file on disk.

        Picks up records added or removed outside this API.  Unparseable
        files are skipped.
        """
        records = await asyncio.to_thread(self._scan_records)
        index = IndexSummary()
        for record in records:
            index.notes[record.note_id] = IndexEntry.from_record(record)
        if records:
            latest = max(records, key=lambda r: r.updated_at)
            index.model = latest.model
            index.provider = latest.provider
            index.dimensions = latest.dimensions
        self._dirty_ids.clear()
        await self._save_index(index)
        logger.debug("Rebuilt index with %d records", index.total)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def base_path(self) -> Path:
        return self._base_path

    @property
    def records_dir(self) -> Path:
        return self._records_dir

    @property
    def index_path(self) -> Path:
        return self._index_path

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _record_path(self, note_id: str) -> Path:
        return self._records_dir / f"{safe_filename(note_id)}.json"

    def _invalidate(self, note_id: str) -> None:
        self._dirty_ids.add(note_id)

    @staticmethod
    def _apply_entry(index: IndexSummary, record: EmbeddingRecord) -> None:
        index.notes[record.note_id] = IndexEntry.from_record(record)
        index.model = record.model
        index.provider = record.provider
        index.dimensions = record.dimensions

    async def _load_index(self) -> IndexSummary:
        try:
            return await asyncio.to_thread(self._read_index)
        except FileNotFoundError:
            return IndexSummary()
        except (OSError, StorageCorruptError):
            logger.warning("Index at %s unreadable; using empty index", self._index_path)
            return IndexSummary()

    def _read_index(self) -> IndexSummary:
        try:
            text = self._index_path.read_text(encoding="utf-8")
            return IndexSummary.from_dict(json.loads(text))
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            msg = f"Corrupt index: {self._index_path}"
            raise StorageCorruptError(msg) from e

    async def _save_index(self, index: IndexSummary) -> None:
        await self._write_index(index)
        self._index_cache = index

    async def _write_index(self, index: IndexSummary) -> None:
        await self._write_text(self._index_path, json.dumps(index.to_dict(), indent=2))

    @staticmethod
    def _read_record(path: Path) -> EmbeddingRecord | None:
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            msg = f"Unreadable record: {path}"
            raise StorageCorruptError(msg) from e
        try:
            return EmbeddingRecord.from_dict(json.loads(text))
        except (ValueError, KeyError, TypeError) as e:
            msg = f"Corrupt record: {path}"
            raise StorageCorruptError(msg) from e

    def _scan_records(self) -> list[EmbeddingRecord]:
        if not self._records_dir.is_dir():
            return []
        records: list[EmbeddingRecord] = []
        for child in sorted(self._records_dir.glob("*.json")):
            try:
                record = self._read_record(child)
            except StorageCorruptError:
                logger.debug("Skipping unparseable record file %s", child)
                continue
            if record is not None:
                records.append(record)
        return records

    async def _ensure_dir(self, path: Path) -> None:
        """Create *path* as a directory, tolerating concurrent creators."""
        if await asyncio.to_thread(path.is_dir):
            return
        if await asyncio.to_thread(path.exists):
            msg = f"Path exists as file, expected folder: {path}"
            raise StorageError(msg)

        try:
            await asyncio.to_thread(path.mkdir, parents=True)
        except FileExistsError as e:
            await asyncio.sleep(self._retry_delay)
            if await asyncio.to_thread(path.is_dir):
                logger.info("Folder already exists (concurrent create): %s", path)
                return
            msg = f"Conflicting create for folder: {path}"
            raise StorageConflictError(msg) from e
        except OSError as e:
            await asyncio.sleep(self._retry_delay)
            if await asyncio.to_thread(path.is_dir):
                logger.info("Folder exists after retry: %s", path)
                return
            msg = f"Failed to create folder: {path} - {e}"
            raise StorageError(msg) from e

    async def _write_text(self, path: Path, content: str) -> None:
        """Write *content* to *path*.

        Existing files are replaced atomically.  New files are created
        exclusively; if another writer wins the create, wait once and
        overwrite.
        """
        if await asyncio.to_thread(path.exists):
            await asyncio.to_thread(_replace_text, path, content)
            return

        try:
            await asyncio.to_thread(_create_text, path, content)
        except StorageConflictError:
            logger.info("File already exists, retrying with overwrite: %s", path)
            await asyncio.sleep(self._retry_delay)
            await asyncio.to_thread(_replace_text, path, content)


def _create_text(path: Path, content: str) -> None:
    try:
        with path.open("x", encoding="utf-8") as f:
            f.write(content)
    except FileExistsError as e:
        msg = f"Conflicting create: {path}"
        raise StorageConflictError(msg) from e


def _replace_text(path: Path, content: str) -> None:
    """Write via tempfile + replace so readers never see a partial file."""
    fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        Path(tmp_path).replace(path)
    except Exception:
        with contextlib.suppress(OSError):
            Path(tmp_path).unlink()
        raise
