"""
Test suite for chunking and session grouping.

Tests how records are split into requests and requests into connections.
"""

import pytest

from shipper.core.chunk import Chunk, Session
from shipper.engine.chunker import (
    chunk_records,
    group_sessions,
    iter_keyed,
    plan_sessions,
)


# ============================================================================
# Test Chunk Model
# ============================================================================

class TestChunkModel:
    """Tests for the Chunk and Session data models."""

    def test_chunk_creation(self):
        """Test creating an empty chunk."""
        chunk = Chunk()

        assert chunk.is_empty is True
        assert chunk.size == 0

    def test_add_record(self):
        """Test that keys and records stay aligned."""
        chunk = Chunk()
        chunk.add("x", {"a": 1})
        chunk.add("y", {"a": 2})

        assert chunk.size == 2
        assert chunk.keys == ["x", "y"]
        assert chunk.records == [{"a": 1}, {"a": 2}]

    def test_session_keys(self):
        """Test collecting keys across a session's chunks."""
        session = Session(chunks=[
            Chunk(keys=[0, 1], records=["a", "b"]),
            Chunk(keys=[2], records=["c"]),
        ])

        assert session.size == 2
        assert session.record_count == 3
        assert session.get_keys() == [0, 1, 2]


# ============================================================================
# Test Chunker
# ============================================================================

class TestChunker:
    """Tests for splitting records into chunks."""

    def test_sequence_keys_are_positions(self):
        """Test that sequences are keyed by index."""
        assert iter_keyed(["a", "b"]) == [(0, "a"), (1, "b")]

    def test_mapping_keys_are_preserved(self):
        """Test that non-contiguous mapping keys survive chunking."""
        records = {10: "a", "x": "b", 3: "c"}

        chunks = chunk_records(records, batch_size=2)

        assert [c.keys for c in chunks] == [[10, "x"], [3]]
        assert [c.records for c in chunks] == [["a", "b"], ["c"]]

    def test_last_chunk_may_be_smaller(self):
        """Test chunk boundaries for an uneven split."""
        chunks = chunk_records(list(range(7)), batch_size=3)

        assert [c.size for c in chunks] == [3, 3, 1]
        assert [k for c in chunks for k in c.keys] == list(range(7))

    def test_empty_input(self):
        """Test that no records produce no chunks."""
        assert chunk_records([], batch_size=5) == []
        assert chunk_records({}, batch_size=5) == []

    def test_single_chunk_when_batch_size_covers_input(self):
        """Test that a large batch size yields exactly one chunk and session."""
        sessions = plan_sessions(list(range(5)), batch_size=5, batches_per_connection=1)

        assert len(sessions) == 1
        assert sessions[0].size == 1
        assert sessions[0].chunks[0].size == 5

    def test_deterministic_boundaries(self):
        """Test that chunking is repeatable."""
        records = {i * 2: {"n": i} for i in range(11)}

        first = chunk_records(records, batch_size=4)
        second = chunk_records(records, batch_size=4)

        assert [c.keys for c in first] == [c.keys for c in second]
        assert [c.records for c in first] == [c.records for c in second]

    def test_input_is_not_mutated(self):
        """Test that the caller's records are left untouched."""
        records = [{"a": 1}, {"a": 2}, {"a": 3}]
        snapshot = [dict(r) for r in records]

        chunk_records(records, batch_size=2)

        assert records == snapshot

    def test_invalid_batch_size(self):
        """Test that a non-positive batch size is rejected."""
        with pytest.raises(ValueError, match="batch_size"):
            chunk_records([1, 2], batch_size=0)

    def test_string_input_rejected(self):
        """Test that a bare string is not treated as a sequence of records."""
        with pytest.raises(TypeError):
            chunk_records("abc", batch_size=2)


# ============================================================================
# Test Session Grouper
# ============================================================================

class TestSessionGrouper:
    """Tests for grouping chunks into sessions."""

    def test_groups_consecutive_chunks(self, sample_records):
        """Test the two sessions of two chunks layout."""
        chunks = chunk_records(sample_records, batch_size=2)
        sessions = group_sessions(chunks, batches_per_connection=2)

        assert len(sessions) == 2
        assert [s.size for s in sessions] == [2, 2]
        assert sessions[0].get_keys() == [0, 1, 2, 3]
        assert sessions[1].get_keys() == [4, 5, 6, 7]

    def test_last_session_may_be_smaller(self):
        """Test an uneven number of chunks."""
        chunks = chunk_records(list(range(5)), batch_size=1)
        sessions = group_sessions(chunks, batches_per_connection=2)

        assert [s.size for s in sessions] == [2, 2, 1]

    def test_no_chunks(self):
        """Test that no chunks produce no sessions."""
        assert group_sessions([], batches_per_connection=3) == []

    def test_invalid_batches_per_connection(self):
        """Test that a non-positive session size is rejected."""
        with pytest.raises(ValueError, match="batches_per_connection"):
            group_sessions([Chunk(keys=[0], records=["a"])], batches_per_connection=0)
