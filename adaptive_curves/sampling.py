"""Adaptive curve sampling.

One sampling pass walks the visible window from left to right, evaluating the
function through its :class:`~adaptive_curves.EvaluationCache.EvaluationCache`
and cutting the polyline into segments wherever a discontinuity is detected.

States of a pass: *seeking* (no open segment) → *in segment* (accumulating
points) → flush → *seeking*. A segment flushed because of a discontinuity is
marked ``open_end``; the segment that follows an asymptote skip is marked
``open_start``. The final flush at the right edge is a natural boundary and
leaves ``open_end`` alone. Segments with fewer than 2 points are dropped.

Three strategies share this machinery (see
:mod:`adaptive_curves.render_strategy`):

- :func:`sample_linear`: two samples at the window edges.
- :func:`sample_target_y`: world-space walk, Newton steps aimed at a fixed
  vertical advance, asymptote skipping.
- :func:`sample_curvature`: screen-space walk, steps shrinking with slope and
  curvature, heuristic break detection.

All numeric thresholds live in :class:`SamplingThresholds`.
"""

from __future__ import annotations

import bisect
import dataclasses
import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional, Sequence

from .curve import Curve, Segment
from .render_strategy import RenderStrategy
from .transform import CoordinateTransform, Point, Rect

if TYPE_CHECKING:
    from .Function import Function

__all__ = [
    "DEFAULT_THRESHOLDS",
    "SamplingThresholds",
    "sample_curvature",
    "sample_curves",
    "sample_linear",
    "sample_target_y",
]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


@dataclass(frozen=True)
class SamplingThresholds:
    """Empirical constants of the sampler.

    They are tied to the default step sizes and pixel density and have no
    principled derivation; override them with :meth:`replace` rather than
    editing the defaults.

    Parameters
    ----------
    derivative_jump : float
        Break when the screen slope changes by more than this between samples.
    steep_derivative : float
        Slope magnitude above which a large vertical jump breaks a segment.
    vertical_jump_fraction : float
        Fraction of the viewport height that counts as a large vertical jump.
    guard_band : float
        Pixels above/below the viewport still accepted as valid samples.
    newton_steep_threshold : float
        Slopes at or below this use the base step in target-y stepping.
    newton_max_iterations : int
        Newton iteration cap per step.
    newton_tolerance : float
        Newton convergence threshold on the x increment.
    flat_derivative : float
        Slopes below this are treated as flat (base step, Newton abort).
    min_step_fraction : float
        Target-y steps are floored at this fraction of the base step.
    curvature_offset : float
        World-space offset of the centered difference used for curvature.
    curvature_weight : float
        Weight of ``|curvature|`` in the curvature step formula.
    hard_step_bounds, normal_step_bounds : tuple[float, float]
        ``(max_step, min_step)`` in screen pixels for hard / normal functions.
    """

    derivative_jump: float = 1200.0
    steep_derivative: float = 500.0
    vertical_jump_fraction: float = 0.25
    guard_band: float = 10000.0
    newton_steep_threshold: float = 10.0
    newton_max_iterations: int = 10
    newton_tolerance: float = 1e-6
    flat_derivative: float = 1e-6
    min_step_fraction: float = 0.1
    curvature_offset: float = 1e-3
    curvature_weight: float = 0.01
    hard_step_bounds: tuple[float, float] = (5.0, 0.5)
    normal_step_bounds: tuple[float, float] = (10.0, 2.0)

    def __post_init__(self) -> None:
        for bounds in (self.hard_step_bounds, self.normal_step_bounds):
            max_step, min_step = bounds
            if not 0 < min_step <= max_step:
                raise ValueError(f"step bounds must satisfy 0 < min <= max, got {bounds!r}")
        if not 0 < self.min_step_fraction:
            raise ValueError("min_step_fraction must be > 0")
        if self.newton_max_iterations < 0:
            raise ValueError("newton_max_iterations must be >= 0")

    def step_bounds(self, hard_to_evaluate: bool) -> tuple[float, float]:
        """Return ``(max_step, min_step)`` for the curvature walk."""
        return self.hard_step_bounds if hard_to_evaluate else self.normal_step_bounds

    def replace(self, **changes: object) -> "SamplingThresholds":
        """Return a copy with ``changes`` applied."""
        return dataclasses.replace(self, **changes)


DEFAULT_THRESHOLDS = SamplingThresholds()


class _SegmentBuilder:
    """Segment bookkeeping for one pass."""

    def __init__(self, color: str, stroke_width: float) -> None:
        self._color = color
        self._stroke_width = stroke_width
        self._segments: list[Segment] = []
        self._current: Optional[Segment] = None
        self._pending_open_start = False
        self.previous_slope = math.nan

    @property
    def is_open(self) -> bool:
        return self._current is not None and len(self._current) > 0

    @property
    def last_point(self) -> Optional[Point]:
        return self._current.last if self._current is not None else None

    def flush(self, *, open_end: bool) -> None:
        current = self._current
        if current is not None and len(current) > 0:
            if open_end:
                current.open_end = True
            self._segments.append(current)
        self._current = None

    def mark_asymptote(self) -> None:
        self.flush(open_end=True)
        self._pending_open_start = True

    def append(self, point: Point, slope: float) -> None:
        if self._current is None:
            self._current = Segment(open_start=self._pending_open_start)
            self._pending_open_start = False
        self._current.append(point)
        self.previous_slope = slope

    def consume(
        self,
        point: Point,
        valid: bool,
        slope: float,
        *,
        breaks: Optional[Callable[[Point, bool, float], bool]] = None,
    ) -> None:
        """Apply one evaluated sample to the open segment."""
        if breaks is not None and self.is_open and breaks(point, valid, slope):
            self.flush(open_end=True)
            if valid:
                self.append(point, slope)
            return
        if valid:
            self.append(point, slope)
        else:
            self.flush(open_end=True)

    def finish(self) -> list[Curve]:
        self.flush(open_end=False)
        curves = []
        for segment in self._segments:
            curve = segment.to_curve(self._color, self._stroke_width)
            if curve is not None:
                curves.append(curve)
        return curves


def _project(
    transform: CoordinateTransform,
    world_x: float,
    y: float,
    rect: Rect,
    thresholds: SamplingThresholds,
) -> tuple[Point, bool]:
    """Map a sample to the screen and report whether it is drawable."""
    if not math.isfinite(y):
        return Point(math.nan, math.nan), False
    point = transform.world_to_screen((world_x, y))
    band = thresholds.guard_band
    valid = rect.top - band <= point.y <= rect.bottom + band
    return point, valid


def _window_world_bounds(rect: Rect, transform: CoordinateTransform) -> tuple[float, float]:
    left = transform.screen_to_world((rect.left, rect.top)).x
    right = transform.screen_to_world((rect.right, rect.top)).x
    return left, right


def _near_asymptote(asymptotes: Sequence[float], x: float, tolerance: float) -> bool:
    i = bisect.bisect_left(asymptotes, x)
    if i < len(asymptotes) and abs(asymptotes[i] - x) < tolerance:
        return True
    return i > 0 and abs(x - asymptotes[i - 1]) < tolerance


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


def sample_linear(
    function: "Function",
    rect: Rect,
    transform: CoordinateTransform,
    thresholds: SamplingThresholds = DEFAULT_THRESHOLDS,
) -> list[Curve]:
    """Emit one two-point curve between the window's left and right edges.

    Exact for degree-1 expressions. The guard band is not applied: a steep
    line is still a single straight stroke. Non-finite ends yield no curve.
    """
    left, right = _window_world_bounds(rect, transform)
    points = []
    for world_x in (left, right):
        y, _ = function.evaluate_both(world_x)
        if not math.isfinite(y):
            return []
        points.append(transform.world_to_screen((world_x, y)))
    return [Curve(tuple(points), function.color, function.stroke_width)]


def _target_y_step(
    function: "Function",
    x: float,
    y: float,
    dy: float,
    base_step: float,
    thresholds: SamplingThresholds,
) -> float:
    """Return the next world-x step aimed at a vertical advance of ``base_step``."""
    step = base_step
    steep = (
        math.isfinite(y)
        and math.isfinite(dy)
        and abs(dy) >= thresholds.flat_derivative
        and abs(dy) > thresholds.newton_steep_threshold
    )
    if steep:
        target = y + math.copysign(base_step, dy)
        new_x = x
        converged = False
        for _ in range(thresholds.newton_max_iterations):
            value, slope = function.evaluate_both(new_x)
            if not math.isfinite(slope) or abs(slope) < thresholds.flat_derivative:
                break
            next_x = new_x - (value - target) / slope
            if abs(next_x - new_x) < thresholds.newton_tolerance:
                new_x = next_x
                converged = True
                break
            new_x = next_x
        if converged and math.isfinite(new_x) and new_x > x:
            step = new_x - x
    return max(step, thresholds.min_step_fraction * base_step)


def sample_target_y(
    function: "Function",
    rect: Rect,
    transform: CoordinateTransform,
    thresholds: SamplingThresholds = DEFAULT_THRESHOLDS,
) -> list[Curve]:
    """Walk world-x with Newton target-y steps, skipping located asymptotes.

    The base step is the world width of one screen pixel. Within half a base
    step of an asymptote the open segment is closed (``open_end``), the walk
    advances by that half step without evaluating, and the next segment opens
    with ``open_start``. Only invalid samples break segments otherwise.
    """
    left, right = _window_world_bounds(rect, transform)
    if not (math.isfinite(left) and math.isfinite(right)) or right <= left or rect.width <= 0:
        return []
    base_step = (right - left) / rect.width
    tolerance = 0.5 * base_step
    asymptotes = function.vertical_asymptotes(left, right)

    builder = _SegmentBuilder(function.color, function.stroke_width)
    samples = 0
    x = left
    while x <= right:
        if _near_asymptote(asymptotes, x, tolerance):
            builder.mark_asymptote()
            x += tolerance
            continue
        y, dy = function.evaluate_both(x)
        samples += 1
        point, valid = _project(transform, x, y, rect, thresholds)
        builder.consume(point, valid, transform.slope_to_screen(dy))
        x += _target_y_step(function, x, y, dy, base_step, thresholds)

    curves = builder.finish()
    logger.debug(
        "target-y pass for %r: %d samples, %d asymptotes, %d curves",
        function.name,
        samples,
        len(asymptotes),
        len(curves),
    )
    return curves


def _curvature_step(
    function: "Function",
    world_x: float,
    dy: float,
    bounds: tuple[float, float],
    thresholds: SamplingThresholds,
) -> float:
    """Return the next screen-x step: ``max / (1 + |dy| + w*|curvature|)`` clamped."""
    max_step, min_step = bounds
    h = thresholds.curvature_offset
    _, dy_plus = function.evaluate_both(world_x + h)
    _, dy_minus = function.evaluate_both(world_x - h)
    curvature = (dy_plus - dy_minus) / (2 * h)
    step = max_step / (1 + abs(dy) + thresholds.curvature_weight * abs(curvature))
    if not math.isfinite(step):
        return min_step
    return min(max(step, min_step), max_step)


def sample_curvature(
    function: "Function",
    rect: Rect,
    transform: CoordinateTransform,
    thresholds: SamplingThresholds = DEFAULT_THRESHOLDS,
) -> list[Curve]:
    """Walk screen-x with curvature-based steps and heuristic break detection.

    While a segment is open, a sample breaks it when it is invalid, when the
    screen slope jumps by more than ``derivative_jump``, or when the slope is
    steeper than ``steep_derivative`` and the point moved vertically by more
    than ``vertical_jump_fraction`` of the viewport height.
    """
    bounds = thresholds.step_bounds(function.hard_to_evaluate)
    jump_limit = rect.height * thresholds.vertical_jump_fraction
    builder = _SegmentBuilder(function.color, function.stroke_width)

    def breaks(point: Point, valid: bool, slope: float) -> bool:
        if not valid:
            return True
        previous = builder.previous_slope
        if not math.isnan(previous) and abs(slope - previous) > thresholds.derivative_jump:
            return True
        last = builder.last_point
        return (
            abs(slope) > thresholds.steep_derivative
            and last is not None
            and abs(point.y - last.y) > jump_limit
        )

    samples = 0
    screen_x = rect.left
    while screen_x <= rect.right:
        world_x = transform.screen_to_world((screen_x, rect.top)).x
        y, dy = function.evaluate_both(world_x)
        samples += 1
        point, valid = _project(transform, world_x, y, rect, thresholds)
        builder.consume(point, valid, transform.slope_to_screen(dy), breaks=breaks)
        screen_x += _curvature_step(function, world_x, dy, bounds, thresholds)

    curves = builder.finish()
    logger.debug("curvature pass for %r: %d samples, %d curves", function.name, samples, len(curves))
    return curves


_SAMPLERS: dict[RenderStrategy, Callable[..., list[Curve]]] = {
    RenderStrategy.LINEAR: sample_linear,
    RenderStrategy.TARGET_Y: sample_target_y,
    RenderStrategy.CURVATURE: sample_curvature,
}


def sample_curves(
    function: "Function",
    rect: Rect,
    transform: CoordinateTransform,
    thresholds: Optional[SamplingThresholds] = None,
) -> list[Curve]:
    """Run one full sampling pass using the function's fixed strategy."""
    sampler = _SAMPLERS[function.strategy]
    return sampler(function, rect, transform, thresholds or DEFAULT_THRESHOLDS)
