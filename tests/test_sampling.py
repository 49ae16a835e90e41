from __future__ import annotations

import math

import pytest

from adaptive_curves.Function import Function
from adaptive_curves.render_strategy import RenderStrategy
from adaptive_curves.sampling import (
    DEFAULT_THRESHOLDS,
    SamplingThresholds,
    sample_curvature,
    sample_curves,
    sample_linear,
    sample_target_y,
)
from adaptive_curves.transform import CoordinateTransform, Rect, TransformState

WIDTH, HEIGHT = 800, 600


@pytest.fixture
def rect() -> Rect:
    return Rect.from_size(WIDTH, HEIGHT)


@pytest.fixture
def transform() -> CoordinateTransform:
    return CoordinateTransform(TransformState(offset_x=WIDTH / 2, offset_y=HEIGHT / 2))


def _inside_guard_band(curves, rect: Rect, band: float = DEFAULT_THRESHOLDS.guard_band) -> bool:
    return all(rect.top - band <= p.y <= rect.bottom + band for c in curves for p in c.points)


def test_reciprocal_splits_into_two_open_curves(rect, transform) -> None:
    f = Function("1/x")
    assert f.strategy is RenderStrategy.TARGET_Y

    curves = sample_curves(f, rect, transform)

    assert len(curves) == 2
    left, right = curves
    assert left.open_end and not left.open_start
    assert right.open_start and not right.open_end
    assert all(p.x < WIDTH / 2 for p in left.points)
    assert all(p.x > WIDTH / 2 for p in right.points)
    assert _inside_guard_band(curves, rect)


def test_tangent_splits_at_every_asymptote(rect, transform) -> None:
    f = Function("tan(x)")
    curves = sample_target_y(f, rect, transform)

    # pi/2 + k*pi for k = -4..3 lie inside [-40/3, 40/3]
    assert len(curves) == 9
    assert not curves[0].open_start and curves[0].open_end
    assert curves[-1].open_start and not curves[-1].open_end
    assert all(c.open_start and c.open_end for c in curves[1:-1])
    assert _inside_guard_band(curves, rect)


@pytest.mark.parametrize("text", ["x", "2x+1"])
def test_linear_functions_emit_one_two_point_curve(text: str, rect, transform) -> None:
    f = Function(text)
    assert f.strategy is RenderStrategy.LINEAR

    curves = sample_linear(f, rect, transform)

    assert len(curves) == 1
    curve = curves[0]
    assert len(curve) == 2
    assert curve.start.x == pytest.approx(0.0)
    assert curve.end.x == pytest.approx(WIDTH)
    assert not curve.open_start and not curve.open_end


def test_linear_curve_matches_world_line(rect, transform) -> None:
    curve = sample_linear(Function("2x+1"), rect, transform)[0]
    for p in curve.points:
        world = transform.screen_to_world(p)
        assert world.y == pytest.approx(2 * world.x + 1)


def test_smooth_function_is_one_closed_curve(rect, transform) -> None:
    f = Function("sin(x)")
    assert f.strategy is RenderStrategy.CURVATURE

    curves = sample_curvature(f, rect, transform)

    assert len(curves) == 1
    curve = curves[0]
    assert not curve.open_start and not curve.open_end
    xs = [p.x for p in curve.points]
    assert xs == sorted(xs)
    assert xs[0] == pytest.approx(0.0)


def test_hard_function_steps_stay_within_bounds(rect, transform) -> None:
    curve = sample_curvature(Function("sin(x)"), rect, transform)[0]
    max_step, min_step = DEFAULT_THRESHOLDS.hard_step_bounds
    gaps = [b.x - a.x for a, b in zip(curve.points, curve.points[1:])]
    assert all(min_step - 1e-9 <= g <= max_step + 1e-9 for g in gaps)


def test_parabola_stays_single_curve(rect, transform) -> None:
    curves = sample_curves(Function("x^2"), rect, transform)
    assert len(curves) == 1
    assert _inside_guard_band(curves, rect)


def test_curvature_walk_breaks_at_pole(rect, transform) -> None:
    f = Function("1/(x-0.3)")
    assert f.strategy is RenderStrategy.CURVATURE
    pole_x = transform.world_to_screen((0.3, 0.0)).x

    curves = sample_curves(f, rect, transform)

    assert len(curves) == 2
    assert not curves[1].open_end
    assert curves[0].open_end
    for curve in curves:
        sides = {p.x < pole_x for p in curve.points}
        assert len(sides) == 1
    assert _inside_guard_band(curves, rect)


class _PiecewiseLine:
    """Two straight pieces meeting at x = 0, with an optional step."""

    name = "piecewise"
    color = "black"
    stroke_width = 1.0
    hard_to_evaluate = False

    def __init__(self, left_slope: float, right_slope: float, step: float = 0.0) -> None:
        self.left_slope = left_slope
        self.right_slope = right_slope
        self.step = step

    def evaluate_both(self, x: float) -> tuple[float, float]:
        if x < 0:
            return self.left_slope * x, self.left_slope
        return self.right_slope * x + self.step, self.right_slope


def test_slope_change_breaks_curvature_walk(rect, transform) -> None:
    kink = _PiecewiseLine(1.0, 3.0)
    only_slope_rule = DEFAULT_THRESHOLDS.replace(derivative_jump=1.5, steep_derivative=math.inf)

    curves = sample_curvature(kink, rect, transform, only_slope_rule)

    assert len(curves) == 2
    assert curves[0].open_end and not curves[1].open_end
    assert all(p.x <= WIDTH / 2 + 1e-9 for p in curves[0].points)
    assert all(p.x >= WIDTH / 2 - 1e-9 for p in curves[1].points)
    assert len(sample_curvature(kink, rect, transform)) == 1


def test_steep_vertical_jump_breaks_curvature_walk(rect, transform) -> None:
    cliff = _PiecewiseLine(10.0, 10.0, step=20.0)
    only_jump_rule = DEFAULT_THRESHOLDS.replace(derivative_jump=math.inf, steep_derivative=5.0)

    curves = sample_curvature(cliff, rect, transform, only_jump_rule)

    assert len(curves) == 2
    assert curves[0].open_end and not curves[1].open_end
    assert all(p.x <= WIDTH / 2 + 1e-9 for p in curves[0].points)
    assert all(p.x >= WIDTH / 2 - 1e-9 for p in curves[1].points)
    assert len(sample_curvature(cliff, rect, transform)) == 1


def test_steep_slope_without_large_jump_keeps_one_curve(rect, transform) -> None:
    steep = _PiecewiseLine(10.0, 10.0)
    only_jump_rule = DEFAULT_THRESHOLDS.replace(derivative_jump=math.inf, steep_derivative=5.0)

    curves = sample_curvature(steep, rect, transform, only_jump_rule)

    assert len(curves) == 1
    assert not curves[0].open_end


def test_zero_guard_band_clips_to_viewport(rect, transform) -> None:
    f = Function("x^2", thresholds=DEFAULT_THRESHOLDS.replace(guard_band=0.0))
    curves = f.compute_curves(rect, transform)

    assert len(curves) == 1
    assert curves[0].open_end
    assert _inside_guard_band(curves, rect, band=0.0)


def test_invalid_region_is_skipped(rect, transform) -> None:
    curves = sample_curves(Function("sqrt(x)"), rect, transform)

    assert len(curves) == 1
    assert all(p.x >= WIDTH / 2 - 1e-9 for p in curves[0].points)
    assert all(math.isfinite(p.y) for p in curves[0].points)


def test_curves_carry_function_stroke(rect, transform) -> None:
    f = Function("sin(x)", color="crimson", stroke_width=3.5)
    curve = sample_curves(f, rect, transform)[0]
    assert curve.color == "crimson"
    assert curve.stroke_width == 3.5


def test_thresholds_validation() -> None:
    with pytest.raises(ValueError):
        SamplingThresholds(normal_step_bounds=(1.0, 2.0))
    with pytest.raises(ValueError):
        SamplingThresholds(min_step_fraction=0.0)


def test_thresholds_replace_returns_modified_copy() -> None:
    changed = DEFAULT_THRESHOLDS.replace(derivative_jump=10.0)
    assert changed.derivative_jump == 10.0
    assert DEFAULT_THRESHOLDS.derivative_jump == 1200.0
    assert changed.step_bounds(True) == DEFAULT_THRESHOLDS.hard_step_bounds
