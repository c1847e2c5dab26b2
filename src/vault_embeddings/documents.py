"""LocalDocumentSource — markdown files in a directory tree as documents."""

from __future__ import annotations

import asyncio
import hashlib
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from vault_embeddings.types import Document
from vault_embeddings.utils import is_excluded_path, normalize_path

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".md"
_ID_LENGTH = 16


def generate_id(path: str, *, extension: str = DEFAULT_EXTENSION) -> str:
    """Stable document id: truncated SHA-256 of the normalized path without extension.

    Independent of separator style, so ``notes\\a.md`` and ``notes/a.md``
    map to the same id.
    """
    normalized = normalize_path(path)
    if extension and normalized.endswith(extension):
        normalized = normalized[: -len(extension)]
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()[:_ID_LENGTH]


class LocalDocumentSource:
    """Implements the ``DocumentSource`` protocol over a local vault directory.

    Document paths are POSIX and relative to *root*.  Files that cannot be
    read as UTF-8 are skipped.  Enumeration is sorted by path.
    """

    def __init__(self, root: str | Path, *, extension: str = DEFAULT_EXTENSION) -> None:
        self.root = Path(root).resolve()
        self.extension = extension

    # ------------------------------------------------------------------
    # DocumentSource protocol
    # ------------------------------------------------------------------

    async def find_by_id(self, doc_id: str) -> Document | None:
        for rel in await asyncio.to_thread(self._list_paths):
            if self.generate_id(rel) == doc_id:
                return await self._load(rel)
        return None

    async def find_by_path(self, path: str) -> Document | None:
        rel = normalize_path(path)
        if not rel.endswith(self.extension):
            return None
        return await self._load(rel)

    async def find_all_excluding(self, excluded_folders: Sequence[str]) -> list[Document]:
        paths = await asyncio.to_thread(self._list_paths)
        docs: list[Document] = []
        for rel in paths:
            if is_excluded_path(rel, excluded_folders):
                continue
            doc = await self._load(rel)
            if doc is not None:
                docs.append(doc)
        return docs

    async def exists(self, doc_id: str) -> bool:
        return await self.find_by_id(doc_id) is not None

    def generate_id(self, path: str) -> str:
        return generate_id(path, extension=self.extension)

    # ------------------------------------------------------------------
    # Extras
    # ------------------------------------------------------------------

    async def find_by_folder(self, folder: str) -> list[Document]:
        """Documents strictly below *folder*."""
        prefix = normalize_path(folder) + "/"
        docs: list[Document] = []
        for rel in await asyncio.to_thread(self._list_paths):
            if rel.startswith(prefix):
                doc = await self._load(rel)
                if doc is not None:
                    docs.append(doc)
        return docs

    def handles(self, path: str) -> bool:
        """Return whether *path* has this source's document extension."""
        return normalize_path(path).endswith(self.extension)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _list_paths(self) -> list[str]:
        if not self.root.is_dir():
            return []
        paths = [
            p.relative_to(self.root).as_posix()
            for p in self.root.rglob(f"*{self.extension}")
            if p.is_file()
        ]
        return sorted(paths)

    async def _load(self, rel: str) -> Document | None:
        candidate = self.root / rel
        try:
            candidate.resolve().relative_to(self.root)
        except ValueError:
            logger.warning("Refusing path outside vault root: %s", rel)
            return None

        def _do_read() -> tuple[str, float]:
            return candidate.read_text(encoding="utf-8"), candidate.stat().st_mtime

        try:
            content, mtime = await asyncio.to_thread(_do_read)
        except (OSError, UnicodeDecodeError):
            logger.debug("Cannot read %s", rel, exc_info=True)
            return None

        return Document(
            id=self.generate_id(rel),
            path=rel,
            title=Path(rel).stem,
            content=content,
            modified_at=datetime.fromtimestamp(mtime, tz=UTC),
        )
