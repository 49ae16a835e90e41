"""Infix expression parsing for single-variable plot expressions.

The parser accepts calculator-style input (``2x+1``, ``x^2``, ``sin x``,
``y = 1/x``) and returns a SymPy expression in the single variable ``x``.
Parsing failures are reported as :class:`ExpressionError` so callers can
recover before any frame is drawn.

Notes
-----
SymPy's ``parse_expr`` evaluates Python source internally. Avoid calling it on
untrusted input.
"""

from __future__ import annotations

import re

import sympy as sp
from sympy.parsing.sympy_parser import (
    convert_xor,
    implicit_application,
    implicit_multiplication,
    parse_expr,
    standard_transformations,
)

__all__ = ["X", "ExpressionError", "parse_expression"]


X = sp.Symbol("x", real=True)

_TRANSFORMATIONS = standard_transformations + (
    implicit_multiplication,
    implicit_application,
    convert_xor,
)

_ASSIGNMENT_PREFIX = re.compile(r"^\s*(?:y|f\s*\(\s*x\s*\))\s*=\s*", re.IGNORECASE)


class ExpressionError(ValueError):
    """Raised when expression text cannot be turned into a plottable function."""


def parse_expression(text: str, *, var: sp.Symbol = X) -> sp.Expr:
    """Parse calculator-style ``text`` into a SymPy expression in ``var``.

    Parameters
    ----------
    text : str
        Infix expression. A leading ``y =`` or ``f(x) =`` is ignored.
    var : sympy.Symbol, optional
        The only symbol allowed to remain free after parsing.

    Returns
    -------
    sympy.Expr
        Parsed expression.

    Raises
    ------
    TypeError
        If ``text`` is not a string.
    ExpressionError
        If the text is empty, does not parse, is not a scalar expression, or
        references symbols other than ``var``.

    Examples
    --------
    >>> parse_expression("2x + 1")
    2*x + 1
    >>> parse_expression("x^2")
    x**2
    """
    if not isinstance(text, str):
        raise TypeError(f"parse_expression expects a str, got {type(text).__name__}")

    body = _ASSIGNMENT_PREFIX.sub("", text).strip()
    if not body:
        raise ExpressionError("Cannot plot an empty expression.")

    local_dict = {var.name: var, "e": sp.E}
    try:
        expr = parse_expr(body, local_dict=local_dict, transformations=_TRANSFORMATIONS)
    except Exception as exc:
        raise ExpressionError(
            f"Could not parse expression {text!r}: {type(exc).__name__}: {exc}"
        ) from exc

    if not isinstance(expr, sp.Expr):
        raise ExpressionError(
            f"Expression {text!r} parsed to {type(expr).__name__}, not a scalar expression."
        )

    foreign = sorted(s.name for s in expr.free_symbols if s != var)
    if foreign:
        raise ExpressionError(
            f"Expression {text!r} uses unknown symbol(s) {', '.join(foreign)}; "
            f"only {var.name!r} is allowed."
        )
    return expr
