"""Tests for content hashing."""

from __future__ import annotations

import hashlib

import pytest

from vault_embeddings.hashing import content_hash, hash_algorithm, hashes_equal, simple_hash


class TestContentHash:
    def test_deterministic(self):
        assert content_hash("hello") == content_hash("hello")

    def test_tagged_sha256(self):
        expected = hashlib.sha256(b"hello").hexdigest()
        assert content_hash("hello") == f"sha256:{expected}"

    def test_different_text_differs(self):
        assert content_hash("hello") != content_hash("hello!")

    def test_empty_text(self):
        assert content_hash("").startswith("sha256:")

    def test_unicode(self):
        assert content_hash("노트") == content_hash("노트")
        assert content_hash("노트") != content_hash("노드")

    def test_simple_algorithm_is_tagged(self):
        assert content_hash("abc", algorithm="simple") == f"simple:{simple_hash('abc')}"

    def test_simple_never_equals_sha256(self):
        assert not hashes_equal(content_hash("abc", algorithm="simple"), content_hash("abc"))

    def test_unknown_algorithm(self):
        with pytest.raises(ValueError, match="Unknown hash algorithm"):
            content_hash("abc", algorithm="md5")


class TestSimpleHash:
    def test_deterministic(self):
        assert simple_hash("abc") == simple_hash("abc")

    def test_known_value(self):
        # 'a'*31^2 + 'b'*31 + 'c'
        assert simple_hash("abc") == format(97 * 31 * 31 + 98 * 31 + 99, "x")

    def test_fits_32_bits(self):
        assert int(simple_hash("x" * 1000), 16) < 2**32


class TestHashesEqual:
    def test_equal(self):
        h = content_hash("a")
        assert hashes_equal(h, h)

    def test_different(self):
        assert not hashes_equal(content_hash("a"), content_hash("b"))

    def test_none_never_matches(self):
        assert not hashes_equal(None, None)
        assert not hashes_equal(content_hash("a"), None)
        assert not hashes_equal(None, content_hash("a"))

    def test_prefixes_distinguish_algorithms(self):
        assert not hashes_equal("simple:abc", "sha256:abc")


class TestHashAlgorithm:
    def test_sha256(self):
        assert hash_algorithm(content_hash("a")) == "sha256"

    def test_simple(self):
        assert hash_algorithm("simple:1f") == "simple"

    def test_untagged(self):
        assert hash_algorithm("deadbeef") == "unknown"
