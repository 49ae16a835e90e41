"""The plotted function: expression, caches and fixed sampling strategy.

Purpose
-------
``Function`` is the unit the frame renderer works with. It ties together:

- the compiled expression (:class:`~adaptive_curves.NumericExpression.NumericExpression`),
- a bounded evaluation cache sized by the expression's cost class,
- the sampling strategy chosen once at construction,
- a single-slot curve cache keyed by viewport and transform state,
- plain stroke data (color, width) copied onto every emitted curve.

Examples
--------
>>> from adaptive_curves import CoordinateTransform, Function, Rect, TransformState
>>> f = Function("1/x", color="red")
>>> f.strategy
<RenderStrategy.TARGET_Y: 'target_y'>
>>> transform = CoordinateTransform(TransformState(offset_x=400, offset_y=300))
>>> curves = f.compute_curves(Rect.from_size(800, 600), transform)  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from .CurveCache import CurveCache, make_key
from .EvaluationCache import HARD_CACHE_CAPACITY, NORMAL_CACHE_CAPACITY, EvaluationCache
from .NumericExpression import NumericExpression
from .asymptotes import vertical_asymptotes
from .curve import Curve
from .render_strategy import RenderStrategy, select_strategy
from .sampling import DEFAULT_THRESHOLDS, SamplingThresholds, sample_curves
from .transform import CoordinateTransform, Rect

__all__ = ["DEFAULT_COLOR", "DEFAULT_STROKE_WIDTH", "Function"]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


DEFAULT_COLOR = "#1f77b4"
DEFAULT_STROKE_WIDTH = 2.0


class Function:
    """A single-variable function prepared for adaptive rendering.

    Parameters
    ----------
    expression : str
        Infix expression in ``x``, e.g. ``"2x+1"``, ``"tan(x)"``, ``"1/(x-2)"``.
    name : str, optional
        Display name; defaults to the expression text.
    color : str, optional
        Stroke color for emitted curves.
    stroke_width : float, optional
        Stroke width in pixels; must be positive.
    thresholds : SamplingThresholds, optional
        Sampler constants; defaults to :data:`~adaptive_curves.sampling.DEFAULT_THRESHOLDS`.

    Raises
    ------
    ExpressionError
        If ``expression`` cannot be parsed.
    ValueError
        If ``stroke_width`` is not a positive number.

    Notes
    -----
    The expression, its classification flags and the strategy are fixed for
    the lifetime of the instance. Changing ``color`` or ``stroke_width``
    clears the curve cache so the next render carries the new stroke.
    """

    def __init__(
        self,
        expression: str,
        *,
        name: str = "",
        color: str = DEFAULT_COLOR,
        stroke_width: float = DEFAULT_STROKE_WIDTH,
        thresholds: Optional[SamplingThresholds] = None,
    ) -> None:
        self._expression = NumericExpression(expression)
        self.name = name or expression
        self._color = str(color)
        self._stroke_width = self._coerce_width(stroke_width)
        self._thresholds = thresholds if thresholds is not None else DEFAULT_THRESHOLDS

        capacity = HARD_CACHE_CAPACITY if self._expression.hard_to_evaluate else NORMAL_CACHE_CAPACITY
        self._cache = EvaluationCache(capacity)
        self._curve_cache = CurveCache()
        self._strategy = select_strategy(self._expression.search_text, self._expression.is_linear)

        logger.debug(
            "Function %r: strategy=%s hard_to_evaluate=%s is_linear=%s",
            self.name,
            self._strategy.value,
            self._expression.hard_to_evaluate,
            self._expression.is_linear,
        )

    @staticmethod
    def _coerce_width(value: float) -> float:
        width = float(value)
        if not (math.isfinite(width) and width > 0):
            raise ValueError(f"stroke_width must be a positive number, got {value!r}")
        return width

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def expression(self) -> str:
        return self._expression.text

    @property
    def numeric_expression(self) -> NumericExpression:
        return self._expression

    @property
    def hard_to_evaluate(self) -> bool:
        return self._expression.hard_to_evaluate

    @property
    def is_linear(self) -> bool:
        return self._expression.is_linear

    @property
    def strategy(self) -> RenderStrategy:
        return self._strategy

    @property
    def thresholds(self) -> SamplingThresholds:
        return self._thresholds

    @property
    def cache(self) -> EvaluationCache:
        return self._cache

    @property
    def curve_cache(self) -> CurveCache:
        return self._curve_cache

    # ------------------------------------------------------------------
    # Stroke
    # ------------------------------------------------------------------

    @property
    def color(self) -> str:
        return self._color

    @color.setter
    def color(self, value: str) -> None:
        self._color = str(value)
        self._curve_cache.clear()

    @property
    def stroke_width(self) -> float:
        return self._stroke_width

    @stroke_width.setter
    def stroke_width(self, value: float) -> None:
        self._stroke_width = self._coerce_width(value)
        self._curve_cache.clear()

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate_both(self, x: float) -> tuple[float, float]:
        """Return cached ``(f(x), f'(x))``; failures are ``nan``."""
        return self._cache.lookup(x, self._expression.evaluate_both)

    def evaluate(self, x: float) -> float:
        return self.evaluate_both(x)[0]

    def evaluate_derivative(self, x: float) -> float:
        return self.evaluate_both(x)[1]

    def vertical_asymptotes(self, x_min: float, x_max: float) -> list[float]:
        """Return sorted asymptote positions in ``[x_min, x_max]`` (recomputed per call)."""
        return vertical_asymptotes(self._expression, x_min, x_max)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def compute_curves(self, rect: Rect, transform: CoordinateTransform) -> list[Curve]:
        """Return the curves for ``rect`` under ``transform``.

        An unchanged ``(rect, transform state)`` key returns the stored list
        without resampling; any change runs a full pass and replaces the slot.
        """
        key = make_key(rect, transform)
        curves, hit = self._curve_cache.get_or_compute(
            key, lambda: sample_curves(self, rect, transform, self._thresholds)
        )
        logger.debug("Function %r: curve cache %s", self.name, "hit" if hit else "miss")
        return curves

    def clear_caches(self) -> None:
        """Drop cached samples and curves."""
        self._cache.clear()
        self._curve_cache.clear()

    def __repr__(self) -> str:
        return f"Function({self.expression!r}, strategy={self._strategy.value}, color={self._color!r})"
