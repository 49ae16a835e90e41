"""Headless pan/zoom state for one plotting view.

Purpose
-------
``ViewState`` owns the four numbers the coordinate transform is derived from
and applies the interaction rules to them: panning moves the origin, zooming
rescales the grid, and the mouse wheel changes how many world units one grid
square represents. Both zoom quantities are clamped to fixed ranges.

Window and keyboard handling are left to the host; it translates its events
into calls on this object and hands :meth:`ViewState.transform` to the
renderer.
"""

from __future__ import annotations

from dataclasses import dataclass

from .transform import GRID_SPACING, CoordinateTransform, Rect, TransformState

__all__ = [
    "MAX_SCALE",
    "MAX_SQUARE_VALUE",
    "MIN_SCALE",
    "MIN_SQUARE_VALUE",
    "SQUARE_VALUE_STEP",
    "ViewState",
]


MIN_SCALE = 0.5
MAX_SCALE = 5.0
MIN_SQUARE_VALUE = 0.1
MAX_SQUARE_VALUE = 10.0
SQUARE_VALUE_STEP = 0.1


def _clamp(value: float, lo: float, hi: float) -> float:
    return min(max(float(value), lo), hi)


@dataclass
class ViewState:
    """Mutable pan/zoom state of a view.

    Parameters
    ----------
    offset_x, offset_y : float
        Screen position of the world origin.
    scale : float
        Grid zoom, clamped to ``[MIN_SCALE, MAX_SCALE]``.
    square_value : float
        World units per grid square, clamped to
        ``[MIN_SQUARE_VALUE, MAX_SQUARE_VALUE]``.
    """

    offset_x: float = 0.0
    offset_y: float = 0.0
    scale: float = 1.0
    square_value: float = 1.0

    def __post_init__(self) -> None:
        self.offset_x = float(self.offset_x)
        self.offset_y = float(self.offset_y)
        self.scale = _clamp(self.scale, MIN_SCALE, MAX_SCALE)
        self.square_value = _clamp(self.square_value, MIN_SQUARE_VALUE, MAX_SQUARE_VALUE)

    @classmethod
    def centered(cls, width: float, height: float, **kwargs: float) -> "ViewState":
        """Return a state with the world origin at the middle of a ``width x height`` view."""
        return cls(offset_x=width / 2.0, offset_y=height / 2.0, **kwargs)

    def pan(self, dx: float, dy: float) -> None:
        """Move the origin by ``(dx, dy)`` screen pixels."""
        self.offset_x += dx
        self.offset_y += dy

    def set_scale(self, scale: float) -> None:
        self.scale = _clamp(scale, MIN_SCALE, MAX_SCALE)

    def zoom(self, factor: float) -> None:
        """Multiply ``scale`` by ``factor`` (clamped)."""
        self.set_scale(self.scale * factor)

    def set_square_value(self, value: float) -> None:
        self.square_value = _clamp(value, MIN_SQUARE_VALUE, MAX_SQUARE_VALUE)

    def wheel(self, delta: float) -> None:
        """Apply one mouse-wheel notch.

        Positive ``delta`` zooms in (fewer world units per square), negative
        zooms out; zero leaves the state unchanged.
        """
        if delta > 0:
            self.set_square_value(self.square_value - SQUARE_VALUE_STEP)
        elif delta < 0:
            self.set_square_value(self.square_value + SQUARE_VALUE_STEP)

    def transform(self) -> TransformState:
        return TransformState(
            offset_x=self.offset_x,
            offset_y=self.offset_y,
            scale=self.scale,
            square_value=self.square_value,
            grid_spacing=GRID_SPACING,
        )

    def coordinate_transform(self) -> CoordinateTransform:
        return CoordinateTransform(self.transform())

    @staticmethod
    def visible_rect(width: float, height: float) -> Rect:
        """Return the screen rectangle of a ``width x height`` viewport."""
        return Rect.from_size(width, height)
