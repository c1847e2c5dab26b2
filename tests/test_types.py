"""Tests for value objects — records, summary and progress."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta

import pytest

from vault_embeddings.types import (
    BatchProgress,
    EmbeddingRecord,
    IndexEntry,
    IndexSummary,
    parse_timestamp,
)


def _record(**overrides) -> EmbeddingRecord:
    fields = {
        "note_id": "abc123",
        "note_path": "notes/a.md",
        "title": "a",
        "content_hash": "sha256:00",
        "vector": [0.1, 0.2, 0.3],
        "model": "m",
        "provider": "p",
    }
    fields.update(overrides)
    return EmbeddingRecord.create(**fields)


class TestEmbeddingRecord:
    def test_create_sets_dimensions_and_timestamps(self):
        record = _record()
        assert record.dimensions == 3
        assert record.created_at == record.updated_at
        assert record.created_at.tzinfo is not None

    def test_create_preserves_created_at(self):
        earlier = datetime(2024, 1, 1, tzinfo=UTC)
        record = _record(created_at=earlier)
        assert record.created_at == earlier
        assert record.updated_at > earlier

    def test_dimension_mismatch_rejected(self):
        now = datetime.now(UTC)
        with pytest.raises(ValueError, match="dimensions"):
            EmbeddingRecord(
                note_id="x",
                note_path="x.md",
                title="x",
                content_hash="sha256:0",
                vector=[1.0, 2.0],
                model="m",
                provider="p",
                dimensions=3,
                created_at=now,
                updated_at=now,
            )

    def test_updated_before_created_rejected(self):
        now = datetime.now(UTC)
        with pytest.raises(ValueError, match="updated_at"):
            EmbeddingRecord(
                note_id="x",
                note_path="x.md",
                title="x",
                content_hash="sha256:0",
                vector=[1.0],
                model="m",
                provider="p",
                dimensions=1,
                created_at=now,
                updated_at=now - timedelta(seconds=1),
            )

    def test_json_round_trip(self):
        record = _record(vector=[0.1, -2.5e-8, 3.141592653589793])
        restored = EmbeddingRecord.from_dict(json.loads(json.dumps(record.to_dict())))
        assert restored == record
        assert restored.updated_at.microsecond == record.updated_at.microsecond

    def test_wire_keys(self):
        data = _record().to_dict()
        assert set(data) == {
            "noteId",
            "notePath",
            "title",
            "contentHash",
            "vector",
            "model",
            "provider",
            "dimensions",
            "createdAt",
            "updatedAt",
        }

    def test_from_dict_accepts_zulu_timestamps(self):
        data = _record().to_dict()
        data["createdAt"] = "2024-05-01T10:00:00.000Z"
        data["updatedAt"] = "2024-05-01T10:00:01.000Z"
        restored = EmbeddingRecord.from_dict(data)
        assert restored.created_at == datetime(2024, 5, 1, 10, 0, tzinfo=UTC)

    def test_from_dict_missing_key_raises(self):
        data = _record().to_dict()
        del data["vector"]
        with pytest.raises(KeyError):
            EmbeddingRecord.from_dict(data)


class TestParseTimestamp:
    def test_naive_assumed_utc(self):
        assert parse_timestamp("2024-01-01T00:00:00").tzinfo is UTC


class TestIndexSummary:
    def test_empty(self):
        summary = IndexSummary()
        assert summary.total == 0
        assert summary.version == "1.0.0"

    def test_total_tracks_notes(self):
        summary = IndexSummary()
        summary.notes["a"] = IndexEntry(path="a.md", content_hash="h", updated_at="t")
        summary.notes["b"] = IndexEntry(path="b.md", content_hash="h", updated_at="t")
        assert summary.total == 2
        assert summary.to_dict()["totalNotes"] == 2

    def test_find_id_by_path(self):
        summary = IndexSummary()
        summary.notes["a"] = IndexEntry(path="x/a.md", content_hash="h", updated_at="t")
        assert summary.find_id_by_path("x/a.md") == "a"
        assert summary.find_id_by_path("missing.md") is None

    def test_dict_round_trip(self):
        summary = IndexSummary(model="m", provider="p", dimensions=3)
        summary.notes["a"] = IndexEntry.from_record(_record(note_id="a"))
        restored = IndexSummary.from_dict(json.loads(json.dumps(summary.to_dict())))
        assert restored.notes == summary.notes
        assert restored.model == "m"
        assert restored.provider == "p"
        assert restored.dimensions == 3


class TestBatchProgress:
    def test_snapshot_is_independent(self):
        progress = BatchProgress(total=3)
        snap = progress.snapshot()
        progress.completed += 1
        assert snap.completed == 0
        assert progress.completed == 1
