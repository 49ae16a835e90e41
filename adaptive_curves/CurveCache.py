"""Single-slot memo of a function's last computed curve set."""

from __future__ import annotations

from typing import Callable, Hashable, Optional

from .curve import Curve
from .transform import CoordinateTransform, Rect

__all__ = ["CurveCache", "CurveCacheKey", "make_key"]


CurveCacheKey = tuple[Rect, Hashable]


def make_key(rect: Rect, transform: CoordinateTransform) -> CurveCacheKey:
    """Return the cache key for a render request."""
    return (rect, transform.snapshot)


class CurveCache:
    """Remember the curves produced for the most recent ``(rect, transform)`` key.

    A matching key returns the stored list object as is. Any other key is a
    miss, and :meth:`set` replaces key and curves together in one assignment,
    so a reader sees either the old pair or the new one.
    """

    __slots__ = ("_slot",)

    def __init__(self) -> None:
        self._slot: Optional[tuple[CurveCacheKey, list[Curve]]] = None

    @property
    def key(self) -> Optional[CurveCacheKey]:
        slot = self._slot
        return None if slot is None else slot[0]

    def get(self, key: CurveCacheKey) -> Optional[list[Curve]]:
        slot = self._slot
        if slot is not None and slot[0] == key:
            return slot[1]
        return None

    def set(self, key: CurveCacheKey, curves: list[Curve]) -> None:
        self._slot = (key, curves)

    def get_or_compute(
        self, key: CurveCacheKey, compute: Callable[[], list[Curve]]
    ) -> tuple[list[Curve], bool]:
        """Return ``(curves, hit)``, running ``compute`` and storing on a miss."""
        cached = self.get(key)
        if cached is not None:
            return cached, True
        curves = compute()
        self.set(key, curves)
        return curves, False

    def clear(self) -> None:
        self._slot = None
