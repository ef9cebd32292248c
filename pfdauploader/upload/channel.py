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

"""Bounded, closable hand-off between the chunk producer and upload workers.

The channel behaves like a fixed-capacity thread-safe queue with two extra
operations:

- close(): the producer is done. Consumers keep draining what is queued and
  their iteration ends once the channel is empty. No sentinel values.
- cancel(): something failed. Queued items are discarded and every blocked
  producer or consumer wakes up. A blocked put() raises ChannelClosedError.

Example:
    ```python
    channel = ChunkChannel(capacity=4)

    # producer thread
    for chunk in iter_chunks(stream, chunk_size):
        channel.put(chunk)
    channel.close()

    # each worker thread
    for chunk in channel:
        upload(chunk)
    ```
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
import threading
from typing import Generic, TypeVar

T = TypeVar("T")


class ChannelClosedError(Exception):
    """Raised by put() on a closed or cancelled channel."""


class ChunkChannel(Generic[T]):
    """Fixed-capacity FIFO channel shared by one producer and many consumers.

    Attributes:
        capacity: Maximum number of queued items.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self.capacity = capacity
        self._items: deque[T] = deque()
        self._closed = False
        self._cancelled = False
        self._lock = threading.Lock()
        self._not_full = threading.Condition(self._lock)
        self._not_empty = threading.Condition(self._lock)

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    @property
    def cancelled(self) -> bool:
        with self._lock:
            return self._cancelled

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def put(self, item: T) -> None:
        """Queue item, blocking while the channel is full.

        Raises:
            ChannelClosedError: If the channel is closed, or gets cancelled
                while waiting.
        """
        with self._not_full:
            while not self._closed and len(self._items) >= self.capacity:
                self._not_full.wait()
            if self._closed:
                raise ChannelClosedError("cannot put on a closed channel")
            self._items.append(item)
            self._not_empty.notify()

    def get(self) -> T | None:
        """Take the next item, blocking while the channel is empty and open.

        Returns:
            The next item, or None once the channel is closed and drained
                (or cancelled).
        """
        with self._not_empty:
            while not self._items and not self._closed:
                self._not_empty.wait()
            if not self._items:
                return None
            item = self._items.popleft()
            self._not_full.notify()
            return item

    def __iter__(self) -> Iterator[T]:
        while True:
            item = self.get()
            if item is None:
                return
            yield item

    def close(self) -> None:
        """Signal end-of-stream. Queued items remain available to consumers."""
        with self._lock:
            self._closed = True
            self._not_empty.notify_all()
            self._not_full.notify_all()

    def cancel(self) -> None:
        """Close the channel and discard queued items."""
        with self._lock:
            self._closed = True
            self._cancelled = True
            self._items.clear()
            self._not_empty.notify_all()
            self._not_full.notify_all()
