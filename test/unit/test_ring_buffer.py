"""
Unit tests for SampleRingBuffer correctness.

These tests verify the core invariants of the display buffer:
1. The buffer always holds exactly `capacity` points, zero-filled at start
2. Pushes evict the oldest points; order is preserved through wraparound
3. Oversized pushes keep only the newest `capacity` points
4. Snapshots are ordered, read-only copies

Test Strategy:
- Deterministic unit tests for core operations
- Edge cases at buffer boundaries
- Concurrent stress test for snapshot consistency
"""
from __future__ import annotations

import threading

import numpy as np
import pytest

from shared.ring_buffer import SampleRingBuffer


class TestRingBufferBasicOperations:
    """Push/snapshot without wraparound."""

    def test_starts_zero_filled(self):
        buf = SampleRingBuffer(8)
        snap = buf.snapshot()
        assert snap.shape == (8,)
        assert snap.dtype == np.uint16
        assert not snap.any()
        assert len(buf) == 8

    def test_push_appends_at_newest_end(self):
        buf = SampleRingBuffer(5)
        buf.push([1, 2])
        np.testing.assert_array_equal(buf.snapshot(), [0, 0, 0, 1, 2])

    def test_empty_push_is_noop(self):
        buf = SampleRingBuffer(4)
        buf.push([7, 8])
        buf.push([])
        np.testing.assert_array_equal(buf.snapshot(), [0, 0, 7, 8])

    def test_rejects_non_positive_capacity(self):
        with pytest.raises(ValueError):
            SampleRingBuffer(0)

    def test_rejects_2d_push(self):
        buf = SampleRingBuffer(4)
        with pytest.raises(ValueError, match="1D"):
            buf.push(np.zeros((2, 2), dtype=np.uint16))


class TestRingBufferWraparound:
    """FIFO eviction at the capacity boundary."""

    def test_wraparound_preserves_order(self):
        buf = SampleRingBuffer(5)
        buf.push([1, 2, 3])
        buf.push([4, 5, 6])
        np.testing.assert_array_equal(buf.snapshot(), [2, 3, 4, 5, 6])

    def test_many_small_pushes(self):
        buf = SampleRingBuffer(4)
        for value in range(1, 11):
            buf.push([value])
        np.testing.assert_array_equal(buf.snapshot(), [7, 8, 9, 10])

    def test_push_of_exact_capacity_replaces_everything(self):
        buf = SampleRingBuffer(4)
        buf.push([9, 9, 9])
        buf.push([1, 2, 3, 4])
        np.testing.assert_array_equal(buf.snapshot(), [1, 2, 3, 4])

    def test_oversized_push_keeps_newest(self):
        buf = SampleRingBuffer(5)
        buf.push(list(range(8)))
        np.testing.assert_array_equal(buf.snapshot(), [3, 4, 5, 6, 7])

    def test_push_after_oversized_push(self):
        buf = SampleRingBuffer(5)
        buf.push(list(range(8)))
        buf.push([100, 101])
        np.testing.assert_array_equal(buf.snapshot(), [5, 6, 7, 100, 101])

    def test_length_never_changes(self):
        buf = SampleRingBuffer(16)
        for size in (0, 1, 15, 16, 17, 40, 3):
            buf.push(np.arange(size, dtype=np.uint16))
            assert buf.snapshot().shape == (16,)


class TestRingBufferSnapshot:
    """Snapshots are detached and immutable."""

    def test_snapshot_is_read_only(self):
        buf = SampleRingBuffer(4)
        snap = buf.snapshot()
        with pytest.raises(ValueError):
            snap[0] = 1

    def test_snapshot_is_not_affected_by_later_pushes(self):
        buf = SampleRingBuffer(4)
        buf.push([1, 2, 3, 4])
        snap = buf.snapshot()
        buf.push([5, 6])
        np.testing.assert_array_equal(snap, [1, 2, 3, 4])

    def test_clear_zero_fills(self):
        buf = SampleRingBuffer(4)
        buf.push([1, 2, 3])
        buf.clear()
        np.testing.assert_array_equal(buf.snapshot(), [0, 0, 0, 0])
        buf.push([5])
        np.testing.assert_array_equal(buf.snapshot(), [0, 0, 0, 5])


class TestRingBufferConcurrency:
    """A reader never observes a half-applied push."""

    def test_concurrent_push_and_snapshot(self):
        capacity = 64
        buf = SampleRingBuffer(capacity)
        stop = threading.Event()
        errors: list[str] = []

        def writer():
            value = 1
            while not stop.is_set():
                # Every push is a run of one repeated value.
                buf.push(np.full(capacity // 4, value % 4000, dtype=np.uint16))
                value += 1

        def reader():
            for _ in range(500):
                snap = buf.snapshot()
                if snap.shape != (capacity,):
                    errors.append(f"bad shape {snap.shape}")
                # Newest block is complete: the last quarter holds one value.
                tail = snap[-(capacity // 4):]
                if tail.min() != tail.max():
                    errors.append(f"torn tail {tail.tolist()}")

        t_writer = threading.Thread(target=writer)
        t_writer.start()
        try:
            reader()
        finally:
            stop.set()
            t_writer.join(timeout=5.0)

        assert not errors, errors[:3]
