"""Bounded, quantization-keyed LRU cache of ``(value, derivative)`` pairs."""

from __future__ import annotations

import math
import threading
from collections import OrderedDict
from typing import Callable, Optional

__all__ = [
    "EvaluationCache",
    "HARD_CACHE_CAPACITY",
    "NORMAL_CACHE_CAPACITY",
    "QUANTIZATION_DIGITS",
]


NORMAL_CACHE_CAPACITY = 5000
HARD_CACHE_CAPACITY = 10000
QUANTIZATION_DIGITS = 6

Sample = tuple[float, float]


class EvaluationCache:
    """Thread-safe LRU cache keyed by ``round(x, digits)``.

    Quantizing the key absorbs floating round-off between renders of the same
    logical sample point while still separating distinct x values at normal
    zoom levels. Every entry holds both ``y`` and ``dy``.

    Parameters
    ----------
    capacity : int
        Maximum number of entries. Inserting past it evicts the entry that
        was touched (read or written) least recently.
    digits : int, optional
        Decimal digits kept by the key quantization.

    Examples
    --------
    >>> cache = EvaluationCache(2)
    >>> cache.put(0.1, 1.0, 2.0)
    >>> cache.get(0.10000001)
    (1.0, 2.0)
    """

    def __init__(self, capacity: int, *, digits: int = QUANTIZATION_DIGITS) -> None:
        if int(capacity) <= 0:
            raise ValueError(f"capacity must be > 0, got {capacity!r}")
        self._capacity = int(capacity)
        self._digits = int(digits)
        self._entries: OrderedDict[float, Sample] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def quantize(self, x: float) -> float:
        """Return the cache key for ``x``."""
        return round(x, self._digits)

    def get(self, x: float) -> Optional[Sample]:
        """Return the cached pair for ``x`` and mark it most recently used."""
        if not math.isfinite(x):
            return None
        key = self.quantize(x)
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                self._entries.move_to_end(key)
            return entry

    def put(self, x: float, y: float, dy: float) -> None:
        """Store ``(y, dy)`` for ``x``, evicting the LRU entry on overflow."""
        if not math.isfinite(x):
            return
        key = self.quantize(x)
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
            elif len(self._entries) >= self._capacity:
                self._entries.popitem(last=False)
            self._entries[key] = (y, dy)

    def lookup(self, x: float, compute: Callable[[float], Sample]) -> Sample:
        """Return the pair for ``x``, computing and storing it on a miss.

        ``compute`` runs outside the lock; two threads missing on the same key
        may both compute it and the later write wins.
        """
        entry = self.get(x)
        if entry is not None:
            return entry
        y, dy = compute(x)
        self.put(x, y, dy)
        return y, dy

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def keys(self) -> list[float]:
        """Return the keys from least to most recently used."""
        with self._lock:
            return list(self._entries)

    def __contains__(self, x: object) -> bool:
        if not isinstance(x, (int, float)) or not math.isfinite(x):
            return False
        with self._lock:
            return self.quantize(x) in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __repr__(self) -> str:
        return f"EvaluationCache(size={len(self)}, capacity={self._capacity})"
