"""Fixed-capacity ring buffer over a numpy array."""

from __future__ import annotations
from typing import Iterable, Optional

import numpy as np


class RollingBuffer:
    """
    Chronological window of the last `capacity` floats.
    Appends are O(1); the oldest value is overwritten once full.
    """

    __slots__ = ("_data", "_head", "_size")

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._data = np.zeros(capacity, dtype=float)
        self._head = 0  # next write slot
        self._size = 0

    @property
    def capacity(self) -> int:
        return len(self._data)

    def __len__(self) -> int:
        return self._size

    def append(self, value: float) -> None:
        self._data[self._head] = value
        self._head = (self._head + 1) % self.capacity
        if self._size < self.capacity:
            self._size += 1

    def extend(self, values: Iterable[float]) -> None:
        for v in values:
            self.append(v)

    def values(self) -> np.ndarray:
        """Copy of the buffered values, oldest first."""
        if self._size < self.capacity:
            return self._data[: self._size].copy()
        return np.concatenate((self._data[self._head:], self._data[: self._head]))

    def last(self) -> Optional[float]:
        if self._size == 0:
            return None
        return float(self._data[self._head - 1])

    def mean(self) -> float:
        if self._size == 0:
            return 0.0
        return float(self.values().mean())

    def clear(self) -> None:
        self._head = 0
        self._size = 0
