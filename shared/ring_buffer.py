from __future__ import annotations

from threading import RLock
from typing import Sequence

import numpy as np

from .models import BUFFER_CAPACITY


class SampleRingBuffer:
    """
    Fixed-capacity FIFO of display points backed by a preallocated NumPy array.

    The buffer always holds exactly `capacity` points (zero-filled at start);
    pushing evicts the oldest points. Reads return an ordered snapshot, oldest
    first, so a frame never sees a half-applied push.
    """

    def __init__(self, capacity: int = BUFFER_CAPACITY, dtype: np.dtype | str = np.uint16) -> None:
        capacity = int(capacity)
        if capacity <= 0:
            raise ValueError("capacity must be positive")

        self._capacity = capacity
        self._data = np.zeros(capacity, dtype=dtype)
        self._lock = RLock()
        self._write_pos = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def dtype(self) -> np.dtype:
        """Return the data type of the buffer elements."""
        return self._data.dtype

    def __len__(self) -> int:
        return self._capacity

    def push(self, items: Sequence[int] | np.ndarray) -> None:
        """
        Append `items`, evicting the oldest points.

        A push of `capacity` or more items replaces the whole buffer with the
        last `capacity` of them.
        """
        arr = np.asarray(items, dtype=self._data.dtype)
        if arr.ndim != 1:
            raise ValueError(f"items must be 1D, got {arr.ndim}D")

        length = arr.shape[0]
        if length == 0:
            return

        with self._lock:
            if length >= self._capacity:
                self._data[:] = arr[-self._capacity:]
                self._write_pos = 0
                return

            start = self._write_pos
            end = start + length
            if end <= self._capacity:
                self._data[start:end] = arr
            else:
                first = self._capacity - start
                self._data[start:] = arr[:first]
                self._data[: end - self._capacity] = arr[first:]

            self._write_pos = end % self._capacity

    def snapshot(self) -> np.ndarray:
        """Ordered read-only copy of the buffer, oldest point first."""
        with self._lock:
            pos = self._write_pos
            if pos == 0:
                out = self._data.copy()
            else:
                out = np.concatenate((self._data[pos:], self._data[:pos]))
        out.setflags(write=False)
        return out

    def clear(self) -> None:
        with self._lock:
            self._data.fill(0)
            self._write_pos = 0


__all__ = ["SampleRingBuffer"]
