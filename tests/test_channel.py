"""
Tests for pfdauploader.upload.channel module.

Tests the bounded producer/worker channel including:
- FIFO order and capacity
- Close semantics (drain, then stop)
- Cancel semantics (discard and wake waiters)
"""

from __future__ import annotations

import threading
import time

import pytest

from pfdauploader.upload.channel import ChannelClosedError, ChunkChannel


class TestChunkChannel:
    """Tests for ChunkChannel."""

    def test_fifo_order(self):
        """Test that items come out in the order they went in."""
        channel = ChunkChannel(capacity=3)
        for item in (1, 2, 3):
            channel.put(item)
        channel.close()

        assert list(channel) == [1, 2, 3]

    def test_close_lets_consumers_drain(self):
        """Test that queued items survive close and iteration then ends."""
        channel = ChunkChannel(capacity=2)
        channel.put("a")
        channel.close()

        assert channel.get() == "a"
        assert channel.get() is None

    def test_put_after_close_raises(self):
        """Test that a closed channel refuses new items."""
        channel = ChunkChannel(capacity=2)
        channel.close()

        with pytest.raises(ChannelClosedError):
            channel.put("late")

    def test_cancel_discards_items(self):
        """Test that cancel drops whatever is queued."""
        channel = ChunkChannel(capacity=2)
        channel.put("a")
        channel.put("b")
        channel.cancel()

        assert channel.cancelled
        assert len(channel) == 0
        assert list(channel) == []

    def test_cancel_wakes_blocked_producer(self):
        """Test that a producer blocked on a full channel is released."""
        channel = ChunkChannel(capacity=1)
        channel.put("fills the channel")
        errors: list[BaseException] = []

        def blocked_put():
            try:
                channel.put("waits")
            except ChannelClosedError as err:
                errors.append(err)

        producer = threading.Thread(target=blocked_put)
        producer.start()
        time.sleep(0.05)
        assert producer.is_alive()

        channel.cancel()
        producer.join(timeout=5)

        assert not producer.is_alive()
        assert len(errors) == 1

    def test_close_wakes_blocked_consumers(self):
        """Test that consumers waiting on an empty channel exit on close."""
        channel = ChunkChannel(capacity=1)
        results: list[list] = []

        def consume():
            results.append(list(channel))

        consumers = [threading.Thread(target=consume) for _ in range(4)]
        for t in consumers:
            t.start()
        time.sleep(0.05)
        channel.close()
        for t in consumers:
            t.join(timeout=5)

        assert all(not t.is_alive() for t in consumers)
        assert results == [[], [], [], []]

    def test_each_item_claimed_once(self):
        """Test that many consumers never receive the same item twice."""
        channel = ChunkChannel(capacity=4)
        claimed: list[int] = []
        lock = threading.Lock()

        def consume():
            for item in channel:
                with lock:
                    claimed.append(item)

        consumers = [threading.Thread(target=consume) for _ in range(8)]
        for t in consumers:
            t.start()
        for i in range(500):
            channel.put(i)
        channel.close()
        for t in consumers:
            t.join(timeout=10)

        assert sorted(claimed) == list(range(500))

    def test_rejects_zero_capacity(self):
        """Test that a channel needs room for at least one item."""
        with pytest.raises(ValueError):
            ChunkChannel(capacity=0)
