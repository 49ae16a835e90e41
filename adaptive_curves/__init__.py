"""Top-level public API for the ``adaptive_curves`` package.

The package turns single-variable expressions into screen-space polylines for
a given viewport, sampling adaptively and splitting curves at discontinuities:

>>> from adaptive_curves import Function, Rect, ViewState, render_functions
>>> view = ViewState.centered(800, 600)
>>> frame = render_functions(
...     [Function("sin(x)"), Function("1/x")],
...     Rect.from_size(800, 600),
...     view.coordinate_transform(),
... )  # doctest: +SKIP

Lower-level building blocks (the expression compiler, evaluation cache,
asymptote locator and individual samplers) are re-exported for advanced use.
"""

from .CurveCache import CurveCache
from .EvaluationCache import (
    HARD_CACHE_CAPACITY,
    NORMAL_CACHE_CAPACITY,
    QUANTIZATION_DIGITS,
    EvaluationCache,
)
from .Function import Function
from .NumericExpression import NumericExpression, is_hard_to_evaluate
from .ParseExpression import ExpressionError, parse_expression
from .asymptotes import denominator_roots, periodic_asymptotes, vertical_asymptotes
from .curve import Curve, Segment
from .figure_view import ViewState
from .numpify import NumpifiedFunction, numpify, numpify_cached
from .plotly_render import curves_to_figure
from .render_strategy import RenderStrategy, select_strategy
from .renderer import FrameRenderer, render_functions
from .sampling import DEFAULT_THRESHOLDS, SamplingThresholds, sample_curves
from .transform import GRID_SPACING, CoordinateTransform, Point, Rect, TransformState
