"""Content hashing for staleness detection."""

from __future__ import annotations

import hashlib

SHA256_PREFIX = "sha256"
SIMPLE_PREFIX = "simple"


def content_hash(text: str, *, algorithm: str = SHA256_PREFIX) -> str:
    """Return an algorithm-tagged digest of *text*, e.g. ``sha256:<hex>``.

    ``algorithm="simple"`` selects the non-cryptographic :func:`simple_hash`,
    tagged ``simple:`` so it never compares equal to a SHA-256 digest.
    """
    if algorithm == SHA256_PREFIX:
        return f"{SHA256_PREFIX}:{hashlib.sha256(text.encode('utf-8')).hexdigest()}"
    if algorithm == SIMPLE_PREFIX:
        return f"{SIMPLE_PREFIX}:{simple_hash(text)}"
    msg = f"Unknown hash algorithm: {algorithm}"
    raise ValueError(msg)


def simple_hash(text: str) -> str:
    """32-bit string hash (``h * 31 + c``), hex encoded."""
    h = 0
    for ch in text:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    return f"{h:x}"


def hashes_equal(first: str | None, second: str | None) -> bool:
    """Compare two tagged digests.  Absence on either side never matches."""
    if first is None or second is None:
        return False
    return first == second


def hash_algorithm(digest: str) -> str:
    """Return the algorithm tag of *digest*, or ``"unknown"`` if untagged."""
    algorithm, sep, _ = digest.partition(":")
    if not sep:
        return "unknown"
    return algorithm
