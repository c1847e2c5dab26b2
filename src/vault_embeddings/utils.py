"""Path helpers shared by the document source, search and edit queue."""

from __future__ import annotations

import posixpath
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


def normalize_path(path: str) -> str:
    """Normalize a vault-relative path.

    - Converts backslashes to forward slashes
    - Resolves .. and . references
    - Removes double slashes
    - Strips leading and trailing slashes

    Examples:
        normalize_path("notes\\a.md") -> "notes/a.md"
        normalize_path("/notes//a.md") -> "notes/a.md"
        normalize_path("./notes/../a.md") -> "a.md"
        normalize_path("") -> ""
    """
    if not path:
        return ""

    path = path.strip().replace("\\", "/")
    path = posixpath.normpath("/" + path)
    return path.strip("/")


def is_excluded_path(path: str, excluded_folders: Iterable[str]) -> bool:
    """Return True if *path* equals or lies under one of *excluded_folders*.

    Examples:
        is_excluded_path("Templates/daily.md", ["Templates"]) -> True
        is_excluded_path("Templates", ["Templates"]) -> True
        is_excluded_path("TemplatesOld/a.md", ["Templates"]) -> False
    """
    for folder in excluded_folders:
        folder = folder.rstrip("/")
        if not folder:
            continue
        if path == folder or path.startswith(folder + "/"):
            return True
    return False
