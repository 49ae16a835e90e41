"""Segments accumulated during a sampling pass and the curves they finalize into."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from .transform import Point

__all__ = ["Curve", "Segment"]


@dataclass
class Segment:
    """Mutable run of screen points collected by one sampling pass.

    ``open_start``/``open_end`` mark ends cut by a detected discontinuity
    rather than by the viewport edge.
    """

    points: list[Point] = field(default_factory=list)
    open_start: bool = False
    open_end: bool = False

    def append(self, point: Point) -> None:
        self.points.append(point)

    @property
    def last(self) -> Optional[Point]:
        return self.points[-1] if self.points else None

    def __len__(self) -> int:
        return len(self.points)

    def to_curve(self, color: str, stroke_width: float) -> Optional["Curve"]:
        """Return the finalized curve, or ``None`` when fewer than 2 points exist."""
        if len(self.points) < 2:
            return None
        return Curve(
            points=tuple(self.points),
            color=color,
            stroke_width=stroke_width,
            open_start=self.open_start,
            open_end=self.open_end,
        )


@dataclass(frozen=True)
class Curve:
    """Immutable polyline ready for the drawing layer.

    Parameters
    ----------
    points : tuple[Point, ...]
        Ordered screen points; at least two.
    color : str
        Stroke color (any CSS/Plotly color string).
    stroke_width : float
        Stroke width in pixels.
    open_start, open_end : bool
        Whether the corresponding end was cut by a discontinuity. The drawing
        layer renders a small marker there.

    Raises
    ------
    ValueError
        If fewer than two points are given.
    """

    points: tuple[Point, ...]
    color: str
    stroke_width: float
    open_start: bool = False
    open_end: bool = False

    def __post_init__(self) -> None:
        if len(self.points) < 2:
            raise ValueError(f"Curve needs at least 2 points, got {len(self.points)}")

    @property
    def start(self) -> Point:
        return self.points[0]

    @property
    def end(self) -> Point:
        return self.points[-1]

    def open_endpoints(self) -> list[Point]:
        """Return the endpoints that sit at a discontinuity."""
        out = []
        if self.open_start:
            out.append(self.start)
        if self.open_end:
            out.append(self.end)
        return out

    def as_array(self) -> np.ndarray:
        """Return the points as a read-only ``(n, 2)`` float array."""
        arr = np.asarray(self.points, dtype=float)
        arr.flags.writeable = False
        return arr

    def __len__(self) -> int:
        return len(self.points)
