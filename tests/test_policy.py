"""
Tests for pfdauploader.upload.policy module.

Tests chunk size / worker count policy including:
- Rejection of out-of-range values
- Worker cap by chunk count
- Upload size limits
"""

from __future__ import annotations

import math

import pytest

from pfdauploader.exceptions import InputError
from pfdauploader.upload.policy import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_WORKERS,
    MAX_CHUNK_SIZE,
    MAX_FILE_SIZE,
    MAX_WORKERS,
    MIB,
    MIN_CHUNK_SIZE,
    EffectivePolicy,
    chunk_count,
    resolve_policy,
    validate_upload_args,
)


class TestValidation:
    """Tests for rejecting out-of-range requests."""

    @pytest.mark.parametrize(
        "chunk_size", [0, 1, MIN_CHUNK_SIZE - 1, MAX_CHUNK_SIZE + 1, -5]
    )
    def test_rejects_chunk_size_out_of_range(self, chunk_size):
        """Test that chunk sizes outside the bounds are rejected."""
        with pytest.raises(InputError, match="Chunk size"):
            resolve_policy(chunk_size, DEFAULT_WORKERS, 10 * MIB)

    @pytest.mark.parametrize("workers", [0, -1, MAX_WORKERS + 1])
    def test_rejects_worker_count_out_of_range(self, workers):
        """Test that thread counts outside [1-100] are rejected."""
        with pytest.raises(InputError, match="threads"):
            resolve_policy(DEFAULT_CHUNK_SIZE, workers, 10 * MIB)

    @pytest.mark.parametrize("chunk_size", [MIN_CHUNK_SIZE, MAX_CHUNK_SIZE])
    def test_accepts_chunk_size_bounds(self, chunk_size):
        """Test that the bounds themselves are valid."""
        validate_upload_args(chunk_size, 1)
        validate_upload_args(chunk_size, MAX_WORKERS)

    def test_rejects_oversized_payload(self):
        """Test that payloads above the maximum upload size are rejected."""
        with pytest.raises(InputError, match="exceeds maximum allowed file size"):
            resolve_policy(DEFAULT_CHUNK_SIZE, DEFAULT_WORKERS, MAX_FILE_SIZE + 1)

    def test_rejects_negative_size(self):
        """Test that negative sizes are rejected."""
        with pytest.raises(InputError, match="negative"):
            resolve_policy(DEFAULT_CHUNK_SIZE, DEFAULT_WORKERS, -1)


class TestWorkerCap:
    """Tests for the effective worker count."""

    def test_defaults(self):
        """Test default chunk size is 64 MiB and default workers is 10."""
        policy = resolve_policy(total_size=10 * DEFAULT_CHUNK_SIZE)
        assert policy == EffectivePolicy(chunk_size=1 << 26, worker_count=10)

    def test_caps_workers_at_chunk_count(self):
        """Test that no more workers than chunks are started."""
        policy = resolve_policy(MIN_CHUNK_SIZE, 10, 2 * MIN_CHUNK_SIZE + 1)
        assert policy.worker_count == 3

    def test_empty_payload_gets_one_worker(self):
        """Test that an empty upload still gets a worker for its empty chunk."""
        policy = resolve_policy(MIN_CHUNK_SIZE, 10, 0)
        assert policy.worker_count == 1

    @pytest.mark.parametrize("requested", [1, 5, 10, 100])
    @pytest.mark.parametrize(
        "total_size",
        [0, 1, MIN_CHUNK_SIZE, MIN_CHUNK_SIZE + 1, 7 * MIN_CHUNK_SIZE, 1000 * MIB],
    )
    def test_worker_count_bounds(self, requested, total_size):
        """Test 1 <= workers <= min(requested, ceil(N / C))."""
        policy = resolve_policy(MIN_CHUNK_SIZE, requested, total_size)
        assert 1 <= policy.worker_count <= requested
        assert policy.worker_count <= max(1, math.ceil(total_size / MIN_CHUNK_SIZE))
        assert policy.chunk_size == MIN_CHUNK_SIZE

    @pytest.mark.parametrize(
        ("total_size", "expected"),
        [(0, 1), (1, 1), (10, 1), (11, 2), (20, 2), (21, 3)],
    )
    def test_chunk_count(self, total_size, expected):
        """Test chunk count arithmetic."""
        assert chunk_count(total_size, 10) == expected
