"""Compiled numeric view of one plot expression.

``NumericExpression`` owns the compiled value and derivative evaluators of an
expression together with the cost/linearity classification the sampler uses
to pick its strategy. Evaluation never raises: every numeric failure of a
single call (domain error, division by zero, overflow, complex result)
collapses to ``math.nan`` for that call only.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Callable, Optional

import numpy as np
import sympy as sp

from .ParseExpression import X, ExpressionError, parse_expression
from .numpify import NumpifiedFunction, numpify

__all__ = [
    "NumericExpression",
    "is_hard_to_evaluate",
    "normalize_expression_text",
]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


TRIG_FUNCTION_TOKENS = ("sin(", "cos(", "tan(", "cot(", "sinh(", "cosh(", "tanh(", "coth(")
RECIPROCAL_TOKEN = "/x"
HARD_POWER_DEGREE = 4.0
LINEARITY_TOLERANCE = 1e-6
DIFFERENCE_STEP = 1e-6

_POWER_PATTERN = re.compile(r"x(?:\^|\*\*)\(?(\d+(?:\.\d+)?)")
_NUMERIC_ERRORS = (ArithmeticError, ValueError, TypeError)


def normalize_expression_text(text: str) -> str:
    """Lower-case ``text`` and drop all whitespace for textual heuristics."""
    return "".join(text.split()).lower()


def is_hard_to_evaluate(text: str) -> bool:
    """Return True when ``text`` looks expensive or ill-behaved to sample.

    Trigonometric/hyperbolic calls, a ``/x`` division, or a power of ``x`` with
    exponent ``>= 4`` all qualify.

    >>> is_hard_to_evaluate("sin(x)"), is_hard_to_evaluate("x^3")
    (True, False)
    """
    s = normalize_expression_text(text)
    if any(token in s for token in TRIG_FUNCTION_TOKENS):
        return True
    if RECIPROCAL_TOKEN in s:
        return True
    return any(float(m.group(1)) >= HARD_POWER_DEGREE for m in _POWER_PATTERN.finditer(s))


def _call_or_nan(fn: Callable[[float], Any], x: float) -> float:
    try:
        return float(fn(x))
    except _NUMERIC_ERRORS:
        return math.nan


class _CentralDifference:
    """Symmetric difference quotient of a scalar function.

    Stands in for the derivative when SymPy's derivative has no NumPy form.
    """

    __slots__ = ("_fn",)

    def __init__(self, fn: Callable[[float], Any]) -> None:
        self._fn = fn

    def __call__(self, x: float) -> float:
        h = DIFFERENCE_STEP * max(1.0, abs(x))
        return (float(self._fn(x + h)) - float(self._fn(x - h))) / (2.0 * h)


class NumericExpression:
    """Value and derivative evaluators for a single-variable expression.

    Parameters
    ----------
    text : str
        Infix expression in ``x`` (see :func:`~adaptive_curves.ParseExpression.parse_expression`).

    Attributes
    ----------
    text : str
        The expression text as given.
    symbolic : sympy.Expr
        Parsed expression.
    derivative_symbolic : sympy.Expr or None
        ``d/dx`` of :attr:`symbolic`; None if SymPy could not differentiate it.
    search_text : str
        Normalized text used by textual heuristics. It joins the user's text
        and SymPy's printed form so ``sin x`` and ``sin(x)`` classify alike.
    hard_to_evaluate : bool
        See :func:`is_hard_to_evaluate`.
    is_linear : bool
        ``f'(0)`` and ``f'(1)`` are finite and agree within ``1e-6``. Never
        True when the derivative is numeric.
    numeric_derivative : bool
        The symbolic derivative had no NumPy form, so :meth:`derivative`
        uses central differences of the value.
    denominator : NumpifiedFunction or None
        Vectorized denominator evaluator when the expression is a quotient
        whose denominator depends on ``x``.

    Raises
    ------
    ExpressionError
        If ``text`` cannot be parsed or compiled (raised once, at construction).
    """

    __slots__ = (
        "text",
        "symbolic",
        "derivative_symbolic",
        "search_text",
        "hard_to_evaluate",
        "is_linear",
        "numeric_derivative",
        "denominator",
        "_value_fn",
        "_derivative_fn",
    )

    def __init__(self, text: str) -> None:
        self.text = text
        self.symbolic = parse_expression(text)
        try:
            self._value_fn = numpify(self.symbolic, X, vectorize=False)
        except Exception as exc:
            raise ExpressionError(
                f"Cannot evaluate expression {text!r} numerically: {type(exc).__name__}: {exc}"
            ) from exc

        self.derivative_symbolic = None
        try:
            self.derivative_symbolic = sp.diff(self.symbolic, X)
            self._derivative_fn = numpify(self.derivative_symbolic, X, vectorize=False)
            self.numeric_derivative = False
        except Exception:
            # e.g. sign(x) differentiates to DiracDelta, floor(x) stays an unevaluated Derivative
            logger.debug(
                "Derivative of %r has no NumPy form; using central differences", text, exc_info=True
            )
            self._derivative_fn = _CentralDifference(self._value_fn)
            self.numeric_derivative = True

        forms = dict.fromkeys(
            (normalize_expression_text(text), normalize_expression_text(str(self.symbolic)))
        )
        self.search_text = " ".join(forms)
        self.hard_to_evaluate = is_hard_to_evaluate(self.search_text)
        self.is_linear = self._classify_linear()
        self.denominator = self._compile_denominator()

    def evaluate(self, x: float) -> float:
        """Return ``f(x)``, or ``nan`` if the evaluation fails."""
        with np.errstate(all="ignore"):
            return _call_or_nan(self._value_fn, x)

    def derivative(self, x: float) -> float:
        """Return ``f'(x)``, or ``nan`` if the evaluation fails."""
        with np.errstate(all="ignore"):
            return _call_or_nan(self._derivative_fn, x)

    def evaluate_both(self, x: float) -> tuple[float, float]:
        """Return ``(f(x), f'(x))``; each element fails to ``nan`` independently."""
        with np.errstate(all="ignore"):
            return _call_or_nan(self._value_fn, x), _call_or_nan(self._derivative_fn, x)

    def contains(self, *tokens: str) -> bool:
        """Return True if any of ``tokens`` (case-insensitive) occurs in the text."""
        return any(token.lower() in self.search_text for token in tokens)

    def _classify_linear(self) -> bool:
        if self.numeric_derivative:
            # step functions have equal finite differences at 0 and 1
            return False
        d0 = self.derivative(0.0)
        d1 = self.derivative(1.0)
        if not (math.isfinite(d0) and math.isfinite(d1)):
            return False
        return abs(d0 - d1) < LINEARITY_TOLERANCE

    def _compile_denominator(self) -> Optional[NumpifiedFunction]:
        if "/" not in self.search_text:
            return None
        try:
            _, denom = self.symbolic.as_numer_denom()
            if X not in denom.free_symbols:
                return None
            return numpify(denom, X, vectorize=True)
        except Exception:
            logger.debug("Could not isolate denominator of %r", self.text, exc_info=True)
            return None

    def __repr__(self) -> str:
        return (
            f"NumericExpression({self.text!r}, hard_to_evaluate={self.hard_to_evaluate}, "
            f"is_linear={self.is_linear})"
        )
