"""World/screen coordinate mapping.

World space is the mathematical ``(x, y)`` plane; screen space is device
pixels with ``y`` growing downward. The forward map is the affine matrix

.. code-block:: text

    [[factor,       0, offset_x],
     [     0, -factor, offset_y],
     [     0,       0,        1]]

with ``factor = grid_spacing * scale / square_value``: one grid square is
``grid_spacing * scale`` pixels wide and represents ``square_value`` world
units. When the matrix cannot be inverted the inverse is the identity, so a
degenerate state yields a wrong frame rather than a failed one.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Hashable, NamedTuple

import numpy as np

__all__ = ["GRID_SPACING", "CoordinateTransform", "Point", "Rect", "TransformState"]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


GRID_SPACING = 30.0


class Point(NamedTuple):
    """A 2D point; world or screen depending on context."""

    x: float
    y: float


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in screen units."""

    left: float
    top: float
    right: float
    bottom: float

    @classmethod
    def from_size(cls, width: float, height: float) -> "Rect":
        """Return the rectangle ``(0, 0, width, height)``.

        Raises
        ------
        ValueError
            If either dimension is not positive.
        """
        if not (width > 0 and height > 0):
            raise ValueError(f"viewport size must be positive, got {width!r}x{height!r}")
        return cls(0.0, 0.0, float(width), float(height))

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top


@dataclass(frozen=True)
class TransformState:
    """Pan/zoom state from which the forward matrix is derived.

    Parameters
    ----------
    offset_x, offset_y : float
        Screen position of the world origin.
    scale : float
        Zoom factor applied to the grid spacing.
    square_value : float
        World units represented by one grid square.
    grid_spacing : float
        Pixel width of one grid square at ``scale == 1``.
    """

    offset_x: float = 0.0
    offset_y: float = 0.0
    scale: float = 1.0
    square_value: float = 1.0
    grid_spacing: float = GRID_SPACING

    @property
    def factor(self) -> float:
        """Pixels per world unit; ``0.0`` for a zero ``square_value``."""
        if self.square_value == 0:
            return 0.0
        return self.grid_spacing * self.scale / self.square_value

    def matrix(self) -> np.ndarray:
        f = self.factor
        return np.array(
            [[f, 0.0, self.offset_x], [0.0, -f, self.offset_y], [0.0, 0.0, 1.0]],
            dtype=float,
        )


def _invert(matrix: np.ndarray) -> np.ndarray:
    try:
        inverse = np.linalg.inv(matrix)
    except np.linalg.LinAlgError:
        logger.debug("Transform matrix is singular; using identity inverse")
        return np.eye(3)
    if not np.all(np.isfinite(inverse)):
        logger.debug("Transform inverse is not finite; using identity inverse")
        return np.eye(3)
    return inverse


class CoordinateTransform:
    """Bidirectional world/screen mapping recomputed from a :class:`TransformState`.

    The mapping coefficients are cached as Python floats; the sampler calls
    :meth:`world_to_screen` once per sample.
    """

    __slots__ = ("_state", "_matrix", "_inverse", "_fwd", "_inv")

    def __init__(self, state: TransformState | None = None) -> None:
        self.update(state if state is not None else TransformState())

    def update(self, state: TransformState) -> None:
        """Recompute the forward and inverse matrices from ``state``."""
        matrix = state.matrix()
        inverse = _invert(matrix)
        self._state = state
        self._matrix = matrix
        self._inverse = inverse
        self._fwd = tuple(float(v) for v in matrix[:2].ravel())
        self._inv = tuple(float(v) for v in inverse[:2].ravel())

    @property
    def state(self) -> TransformState:
        return self._state

    @property
    def snapshot(self) -> Hashable:
        """Comparable value that changes exactly when the transform state changes."""
        return self._state

    @property
    def matrix(self) -> np.ndarray:
        out = self._matrix.copy()
        out.flags.writeable = False
        return out

    @property
    def inverse_matrix(self) -> np.ndarray:
        out = self._inverse.copy()
        out.flags.writeable = False
        return out

    def world_to_screen(self, point: tuple[float, float]) -> Point:
        a, b, c, d, e, f = self._fwd
        x, y = point
        return Point(a * x + b * y + c, d * x + e * y + f)

    def screen_to_world(self, point: tuple[float, float]) -> Point:
        a, b, c, d, e, f = self._inv
        x, y = point
        return Point(a * x + b * y + c, d * x + e * y + f)

    def slope_to_screen(self, slope: float) -> float:
        """Convert a world-space slope ``dy/dx`` to screen pixels per pixel."""
        sx = self._fwd[0]
        if sx == 0:
            return math.nan
        return slope * self._fwd[4] / sx

    def __repr__(self) -> str:
        return f"CoordinateTransform({self._state!r})"
