"""Vertical-asymptote localization inside a world-space interval.

Two periodic families are recognized from the expression text (``tan`` and
``cot``). Otherwise, for quotients, the denominator is scanned for zeros:

1. sample it at :data:`SCAN_POINTS` uniform points across the interval,
2. record samples whose magnitude is below :data:`ZERO_TOLERANCE`,
3. refine every sign change by bisection.

The scan is fail-open: an exception stops it but the roots found so far are
still returned. Even-order roots (no sign change) and roots closer together
than ``(x_max - x_min) / SCAN_POINTS`` may be missed.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Any, Callable

import numpy as np

if TYPE_CHECKING:
    from .NumericExpression import NumericExpression

__all__ = [
    "denominator_roots",
    "periodic_asymptotes",
    "vertical_asymptotes",
]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


SCAN_POINTS = 1000
BISECTION_ITERATIONS = 20
ZERO_TOLERANCE = 1e-6
ROOT_TOLERANCE = 1e-9

TAN_BASE, TAN_PERIOD = math.pi / 2, math.pi
COT_BASE, COT_PERIOD = 0.0, math.pi


def periodic_asymptotes(base: float, period: float, x_min: float, x_max: float) -> list[float]:
    """Return ``base + k * period`` for every integer ``k`` landing in ``[x_min, x_max]``.

    >>> [round(v, 6) for v in periodic_asymptotes(0.0, 1.0, -1.5, 1.5)]
    [-1.0, 0.0, 1.0]
    """
    if not (math.isfinite(x_min) and math.isfinite(x_max)) or x_max < x_min or period <= 0:
        return []
    k_first = math.ceil((x_min - base) / period)
    k_last = math.floor((x_max - base) / period)
    return [base + k * period for k in range(k_first, k_last + 1)]


def _scalar(fn: Callable[[Any], Any], x: float) -> float:
    return float(np.asarray(fn(x), dtype=float))


def _bisect(fn: Callable[[Any], Any], lo: float, hi: float, f_lo: float) -> float:
    for _ in range(BISECTION_ITERATIONS):
        mid = 0.5 * (lo + hi)
        f_mid = _scalar(fn, mid)
        if abs(f_mid) < ROOT_TOLERANCE:
            return mid
        if (f_mid < 0) == (f_lo < 0):
            lo, f_lo = mid, f_mid
        else:
            hi = mid
    return 0.5 * (lo + hi)


def denominator_roots(
    denominator: Callable[[Any], Any],
    x_min: float,
    x_max: float,
    *,
    scan_points: int = SCAN_POINTS,
) -> list[float]:
    """Locate zeros of a vectorized ``denominator`` on ``[x_min, x_max]``.

    Parameters
    ----------
    denominator : callable
        Function accepting a NumPy array (and scalars) of x values.
    x_min, x_max : float
        Scan interval.
    scan_points : int, optional
        Number of uniform samples.

    Returns
    -------
    list[float]
        Sorted, de-duplicated root positions found before any failure.
    """
    roots: list[float] = []
    if not (math.isfinite(x_min) and math.isfinite(x_max)) or x_max <= x_min:
        return roots
    try:
        xs = np.linspace(x_min, x_max, int(scan_points))
        with np.errstate(all="ignore"):
            values = np.broadcast_to(np.asarray(denominator(xs), dtype=float), xs.shape)
            for i in range(len(xs) - 1):
                a, b = values[i], values[i + 1]
                if abs(a) < ZERO_TOLERANCE:
                    roots.append(float(xs[i]))
                elif a * b < 0:
                    roots.append(_bisect(denominator, float(xs[i]), float(xs[i + 1]), float(a)))
            if abs(values[-1]) < ZERO_TOLERANCE:
                roots.append(float(xs[-1]))
    except Exception:
        logger.debug(
            "Denominator scan on [%g, %g] stopped after %d root(s)",
            x_min,
            x_max,
            len(roots),
            exc_info=True,
        )
    return sorted(set(roots))


def vertical_asymptotes(expression: "NumericExpression", x_min: float, x_max: float) -> list[float]:
    """Return sorted vertical-asymptote positions of ``expression`` in ``[x_min, x_max]``.

    ``tan(`` in the text selects the ``pi/2 + k*pi`` family, ``cot(`` the
    ``k*pi`` family; a quotient falls back to :func:`denominator_roots`.
    Anything else reports no asymptotes.
    """
    if expression.contains("tan("):
        return periodic_asymptotes(TAN_BASE, TAN_PERIOD, x_min, x_max)
    if expression.contains("cot("):
        return periodic_asymptotes(COT_BASE, COT_PERIOD, x_min, x_max)
    if expression.denominator is not None:
        return denominator_roots(expression.denominator, x_min, x_max)
    return []
