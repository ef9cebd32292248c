# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Chunk size and concurrency policy.

This module turns the user's requested chunk size and thread count into the
values an upload actually uses. Out-of-range requests are rejected with
InputError rather than clamped, and always before any network call.

The only adjustment made silently is the worker cap: an upload never starts
more workers than it has chunks, since the extras would sit idle.

Limits:

- Chunk size: MIN_CHUNK_SIZE (5 MiB) to MAX_CHUNK_SIZE (4 GiB)
- Workers: MIN_WORKERS (1) to MAX_WORKERS (100)
- Upload size: 0 to MAX_FILE_SIZE (5 TiB)

Example:
    ```python
    from pfdauploader.upload.policy import resolve_policy

    policy = resolve_policy(64 * 1024**2, 10, total_size=100 * 1024**2)
    assert policy.worker_count == 2
    ```
"""

from __future__ import annotations

from dataclasses import dataclass
import math

from pfdauploader.exceptions import InputError

MIB = 1 << 20

MIN_CHUNK_SIZE = 5 * MIB
MAX_CHUNK_SIZE = 1 << 32
DEFAULT_CHUNK_SIZE = 1 << 26
MIN_WORKERS = 1
MAX_WORKERS = 100
DEFAULT_WORKERS = 10
MAX_FILE_SIZE = 5 * (1 << 40)


@dataclass(frozen=True)
class EffectivePolicy:
    """Validated parameters for one upload.

    Attributes:
        chunk_size: Bytes per chunk (the last chunk may be shorter).
        worker_count: Number of concurrent upload workers.
    """

    chunk_size: int
    worker_count: int


def chunk_count(total_size: int, chunk_size: int) -> int:
    """Number of chunks a stream of total_size bytes produces (at least 1)."""
    return max(1, math.ceil(total_size / chunk_size))


def validate_upload_args(chunk_size: int, worker_count: int) -> None:
    """Check the user-supplied chunk size and thread count.

    Raises:
        InputError: If either value is out of range.
    """
    if not MIN_CHUNK_SIZE <= chunk_size <= MAX_CHUNK_SIZE:
        raise InputError(
            f"Chunk size must be between {MIN_CHUNK_SIZE} bytes (5MB) and "
            f"{MAX_CHUNK_SIZE} bytes (4GB), got {chunk_size}."
        )
    if not MIN_WORKERS <= worker_count <= MAX_WORKERS:
        raise InputError(
            f"Maximum number of threads must be an integer within the range of "
            f"[{MIN_WORKERS}-{MAX_WORKERS}], got {worker_count}."
        )


def validate_total_size(total_size: int, label: str = "upload") -> None:
    """Check the payload size against the upload limit.

    Raises:
        InputError: If total_size is negative or above MAX_FILE_SIZE.
    """
    if total_size < 0:
        raise InputError(f"Size of {label} cannot be negative ({total_size}).")
    if total_size > MAX_FILE_SIZE:
        raise InputError(
            f"Size of {label} ({total_size}) exceeds maximum allowed file size "
            f"({MAX_FILE_SIZE})."
        )


def resolve_policy(
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    worker_count: int = DEFAULT_WORKERS,
    total_size: int = 0,
) -> EffectivePolicy:
    """Validate the requested values and derive the effective policy.

    Args:
        chunk_size: Requested chunk size in bytes.
        worker_count: Requested maximum number of workers.
        total_size: Total payload size in bytes (estimated for assets).

    Returns:
        EffectivePolicy whose worker_count is
            min(worker_count, ceil(total_size / chunk_size)), never below 1.

    Raises:
        InputError: If any value is out of range.
    """
    validate_upload_args(chunk_size, worker_count)
    validate_total_size(total_size)
    return EffectivePolicy(
        chunk_size=chunk_size,
        worker_count=min(worker_count, chunk_count(total_size, chunk_size)),
    )
