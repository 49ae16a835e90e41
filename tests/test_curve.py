from __future__ import annotations

import pytest

from adaptive_curves.curve import Curve, Segment
from adaptive_curves.transform import Point


def test_segment_with_single_point_is_dropped() -> None:
    seg = Segment()
    seg.append(Point(0.0, 0.0))
    assert seg.to_curve("red", 1.0) is None


def test_segment_finalizes_with_flags() -> None:
    seg = Segment(open_start=True)
    seg.append(Point(0.0, 0.0))
    seg.append(Point(1.0, 2.0))
    seg.open_end = True

    curve = seg.to_curve("red", 1.5)

    assert curve == Curve((Point(0.0, 0.0), Point(1.0, 2.0)), "red", 1.5, True, True)
    assert curve.open_endpoints() == [Point(0.0, 0.0), Point(1.0, 2.0)]


def test_curve_requires_two_points() -> None:
    with pytest.raises(ValueError):
        Curve((Point(0.0, 0.0),), "red", 1.0)


def test_curve_array_view_is_read_only() -> None:
    curve = Curve((Point(0.0, 1.0), Point(2.0, 3.0)), "blue", 1.0)
    arr = curve.as_array()
    assert arr.shape == (2, 2)
    with pytest.raises(ValueError):
        arr[0, 0] = 5.0


def test_closed_curve_has_no_open_endpoints() -> None:
    curve = Curve((Point(0.0, 1.0), Point(2.0, 3.0)), "blue", 1.0)
    assert curve.open_endpoints() == []
    assert curve.start == Point(0.0, 1.0)
    assert curve.end == Point(2.0, 3.0)
