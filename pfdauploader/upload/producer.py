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

"""Slicing a byte stream into ordered, fixed-size chunks.

The source is read exactly once, front to back. Pipes (such as tar's stdout)
may return short reads, so each chunk is filled with repeated reads until it
holds chunk_size bytes or the stream ends.

Chunking rules:

- Indices start at 1 and increase by one with no gaps.
- Every chunk but the last holds exactly chunk_size bytes.
- An empty stream yields a single empty chunk, so even an empty file gets
  one upload.
- A stream whose length is a multiple of chunk_size yields no trailing
  empty chunk.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import IO

from pfdauploader.exceptions import SourceError
from pfdauploader.logging import Logger, get_global_logger
from pfdauploader.upload.channel import ChannelClosedError, ChunkChannel
from pfdauploader.upload.models import Chunk


@dataclass(frozen=True)
class ProduceStats:
    """Outcome of a producer run.

    Attributes:
        chunks: Number of chunks handed to the channel.
        bytes_read: Total bytes across those chunks.
        cancelled: True if the channel was cancelled before the stream ended.
    """

    chunks: int
    bytes_read: int
    cancelled: bool = False


def _read_full(stream: IO[bytes], size: int) -> bytes:
    parts: list[bytes] = []
    filled = 0
    while filled < size:
        try:
            data = stream.read(size - filled)
        except OSError as err:
            raise SourceError(f"Failed to read upload source: {err}") from err
        if not data:
            break
        parts.append(data)
        filled += len(data)
    return b"".join(parts)


def iter_chunks(stream: IO[bytes], chunk_size: int) -> Iterator[Chunk]:
    """Lazily yield the chunks of stream.

    Args:
        stream: Readable binary stream, consumed sequentially.
        chunk_size: Bytes per chunk; must be positive.

    Yields:
        Chunk objects with indices 1, 2, 3, ...

    Raises:
        SourceError: If reading the stream fails.
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    index = 1
    while True:
        data = _read_full(stream, chunk_size)
        if not data and index > 1:
            return
        yield Chunk(index=index, data=data)
        if len(data) < chunk_size:
            # Short chunk means the stream is exhausted.
            return
        index += 1


def produce(
    stream: IO[bytes],
    chunk_size: int,
    channel: ChunkChannel[Chunk],
    logger: Logger | None = None,
) -> ProduceStats:
    """Feed every chunk of stream into channel, then close it.

    Blocks whenever the channel is full. The channel is closed on every exit
    path so workers never wait forever. If the channel gets cancelled (a
    worker failed), production stops early and the returned stats say so.

    Args:
        stream: Readable binary stream.
        chunk_size: Bytes per chunk.
        channel: Bounded channel drained by the upload workers.
        logger: Logger for debug output; the global logger if None.

    Returns:
        ProduceStats for the chunks handed over.

    Raises:
        SourceError: If reading the stream fails.
    """
    if logger is None:
        logger = get_global_logger()

    chunks = 0
    bytes_read = 0
    try:
        for chunk in iter_chunks(stream, chunk_size):
            try:
                channel.put(chunk)
            except ChannelClosedError:
                logger.debug("CHUNK", f"Channel cancelled before chunk {chunk.index}")
                return ProduceStats(chunks, bytes_read, cancelled=True)
            chunks += 1
            bytes_read += chunk.size
            logger.debug("CHUNK", f"Queued chunk {chunk.index} ({chunk.size} bytes)")
    finally:
        channel.close()

    return ProduceStats(chunks, bytes_read)
