from __future__ import annotations

import math

import numpy as np
import pytest

from adaptive_curves.NumericExpression import NumericExpression
from adaptive_curves.asymptotes import (
    denominator_roots,
    periodic_asymptotes,
    vertical_asymptotes,
)


def test_reciprocal_has_single_root_near_zero() -> None:
    roots = vertical_asymptotes(NumericExpression("1/x"), -5.0, 5.0)
    assert len(roots) == 1
    assert abs(roots[0]) < 1e-6


def test_tangent_asymptotes_on_two_pi() -> None:
    roots = vertical_asymptotes(NumericExpression("tan(x)"), 0.0, 2 * math.pi)
    assert roots == pytest.approx([math.pi / 2, 3 * math.pi / 2], abs=1e-9)


def test_cotangent_asymptotes_include_zero() -> None:
    roots = vertical_asymptotes(NumericExpression("cot(x)"), -1.0, 4.0)
    assert roots == pytest.approx([0.0, math.pi], abs=1e-12)


def test_shifted_denominator_root() -> None:
    roots = vertical_asymptotes(NumericExpression("1/(x-2)"), -10.0, 10.0)
    assert roots == pytest.approx([2.0], abs=1e-4)


def test_polynomial_denominator_with_two_roots() -> None:
    roots = vertical_asymptotes(NumericExpression("1/(x^2-1)"), -2.5, 3.0)
    assert roots == pytest.approx([-1.0, 1.0], abs=1e-4)


def test_expression_without_denominator_has_no_asymptotes() -> None:
    assert vertical_asymptotes(NumericExpression("x^2 + 1"), -10.0, 10.0) == []


def test_denominator_without_real_roots() -> None:
    assert vertical_asymptotes(NumericExpression("1/(x^2+1)"), -5.0, 5.0) == []


def test_periodic_asymptotes_empty_for_reversed_interval() -> None:
    assert periodic_asymptotes(0.0, math.pi, 1.0, -1.0) == []


def test_periodic_asymptotes_empty_for_non_finite_interval() -> None:
    assert periodic_asymptotes(0.0, math.pi, -math.inf, 1.0) == []


def test_scan_failure_returns_partial_roots(caplog) -> None:
    def flaky(xs):
        if np.ndim(xs) == 0 and xs > 0.5:
            raise RuntimeError("boom")
        xs = np.asarray(xs, dtype=float)
        return (xs - 0.25) * (xs - 0.75)

    with caplog.at_level("DEBUG", logger="adaptive_curves.asymptotes"):
        roots = denominator_roots(flaky, 0.0, 1.0, scan_points=11)

    assert roots == pytest.approx([0.25], abs=1e-6)
    assert "stopped after 1 root(s)" in caplog.text


def test_scan_records_exact_zero_samples() -> None:
    roots = denominator_roots(lambda xs: np.asarray(xs, dtype=float), -1.0, 1.0, scan_points=3)
    assert roots == [0.0]
