"""
numpify: Compile single-variable SymPy expressions to NumPy-backed callables
===========================================================================

Purpose
-------
Turn a SymPy expression in one symbol into a plain Python function that
evaluates with NumPy. The sampler calls these functions hundreds of times per
frame, so compilation goes through generated source (no per-call tree walking)
and is memoized.

Two calling modes are supported:

- ``vectorize=False`` leaves the argument untouched. A Python ``float`` in gives
  Python arithmetic semantics (``0.0 ** -1.0`` raises ``ZeroDivisionError``),
  which the evaluation boundary in :mod:`adaptive_curves.NumericExpression`
  turns into ``NaN``.
- ``vectorize=True`` wraps the argument in ``numpy.asarray`` so the function
  broadcasts over arrays; the asymptote scan uses this mode.

Function bindings
-----------------
SymPy's ``NumPyPrinter`` is created with ``allow_unknown_functions`` so a
function without a NumPy spelling prints as a bare call (``cot(x)``). Bare
calls are resolved from :data:`DEFAULT_FUNCTION_BINDINGS` (reciprocal
trigonometric/hyperbolic functions). Any other bare call raises
``ValueError`` before code generation.

Logging
-------
Silent by default. Enable compile timings with::

    logging.getLogger("adaptive_curves.numpify").setLevel(logging.DEBUG)

Examples
--------
>>> import sympy as sp
>>> x = sp.Symbol("x")
>>> f = numpify(x**2 + 1, x, vectorize=False)
>>> f(2.0)
5.0
"""

from __future__ import annotations

import logging
import textwrap
import time
from functools import lru_cache
from typing import Any, Callable, Dict, Mapping, cast

import numpy as np
import sympy as sp
from sympy.printing.numpy import NumPyPrinter

__all__ = [
    "DEFAULT_FUNCTION_BINDINGS",
    "NumpifiedFunction",
    "numpify",
    "numpify_cached",
]


logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


_ARG_NAME = "_x"


def _cot(value: Any) -> Any:
    return 1 / np.tan(value)


def _coth(value: Any) -> Any:
    return 1 / np.tanh(value)


def _sec(value: Any) -> Any:
    return 1 / np.cos(value)


def _csc(value: Any) -> Any:
    return 1 / np.sin(value)


DEFAULT_FUNCTION_BINDINGS: Mapping[str, Callable[..., Any]] = {
    "cot": _cot,
    "coth": _coth,
    "sec": _sec,
    "csc": _csc,
}


class NumpifiedFunction:
    """Compiled SymPy->NumPy callable together with its symbolic source."""

    __slots__ = ("_fn", "symbolic", "var", "source", "vectorized")

    def __init__(
        self,
        fn: Callable[[Any], Any],
        symbolic: sp.Basic,
        var: sp.Symbol,
        source: str,
        *,
        vectorized: bool,
    ) -> None:
        self._fn = fn
        self.symbolic = symbolic
        self.var = var
        self.source = source
        self.vectorized = vectorized

    def __call__(self, value: Any) -> Any:
        return self._fn(value)

    def __repr__(self) -> str:
        return f"NumpifiedFunction({self.symbolic!r}, var={self.var.name}, vectorized={self.vectorized})"


def numpify(
    expr: Any,
    var: sp.Symbol,
    *,
    vectorize: bool = True,
    cache: bool = True,
) -> NumpifiedFunction:
    """Compile a SymPy expression in ``var`` into a NumPy-evaluable function.

    By default this goes through the LRU-backed :func:`numpify_cached`.
    Pass ``cache=False`` to force a fresh compile.
    """
    if cache:
        return numpify_cached(expr, var, vectorize=vectorize)
    return _numpify_uncached(_sympify(expr), var, vectorize=vectorize)


def _sympify(expr: Any) -> sp.Basic:
    try:
        expr_sym = sp.sympify(expr)
    except Exception as e:
        raise TypeError(f"numpify expects a SymPy-compatible expression, got {type(expr)}") from e
    if not isinstance(expr_sym, sp.Basic):
        raise TypeError(f"numpify expects a SymPy expression, got {type(expr_sym)}")
    return expr_sym


def _require_bound_functions(expr: sp.Basic, printer: NumPyPrinter) -> None:
    """Ensure every function printed as a bare call has a runtime binding."""
    missing: set[str] = set()
    for app in expr.atoms(sp.Function):
        name = app.func.__name__
        try:
            code = printer.doprint(app).strip()
        except Exception:
            continue
        if code.startswith(f"{name}(") and name not in DEFAULT_FUNCTION_BINDINGS:
            missing.add(name)

    if missing:
        raise ValueError(
            "Expression contains function(s) without a NumPy implementation: "
            f"{', '.join(sorted(missing))}."
        )


def _numpify_uncached(expr: sp.Basic, var: sp.Symbol, *, vectorize: bool) -> NumpifiedFunction:
    """Compile ``expr`` without consulting the cache.

    Raises
    ------
    TypeError
        If ``var`` is not a SymPy Symbol.
    ValueError
        If ``expr`` has free symbols other than ``var`` or calls an unbound
        function.
    """
    if not isinstance(var, sp.Symbol):
        raise TypeError(f"var must be a SymPy Symbol, got {type(var)}")

    log_debug = logger.isEnabledFor(logging.DEBUG)
    t_total0 = time.perf_counter() if log_debug else None

    missing = sorted(s.name for s in expr.free_symbols if s != var)
    if missing:
        raise ValueError(
            f"Expression contains unbound symbols: {', '.join(missing)}. Only {var.name} is allowed."
        )

    printer = NumPyPrinter(settings={"user_functions": {}, "allow_unknown_functions": True})
    _require_bound_functions(expr, printer)

    expr_code = printer.doprint(expr.xreplace({var: sp.Symbol(_ARG_NAME)}))

    lines = [f"def _generated({_ARG_NAME}):"]
    if vectorize:
        lines.append(f"    {_ARG_NAME} = numpy.asarray({_ARG_NAME})")
    if vectorize and var not in expr.free_symbols:
        lines.append(f"    return ({expr_code}) + numpy.zeros(numpy.shape({_ARG_NAME}))")
    else:
        lines.append(f"    return {expr_code}")
    src = "\n".join(lines)

    glb: Dict[str, Any] = {"numpy": np, **DEFAULT_FUNCTION_BINDINGS}
    loc: Dict[str, Any] = {}
    exec(src, glb, loc)
    fn = cast(Callable[[Any], Any], loc["_generated"])
    fn.__doc__ = textwrap.dedent(
        f"""
        Auto-generated NumPy function from SymPy expression.

        expr: {expr!r}
        var: {var.name}
        """
    ).strip()

    if log_debug:
        t_total_s = (time.perf_counter() - t_total0) if t_total0 is not None else 0.0
        logger.debug(
            "numpify %r: total=%.2fms vectorize=%s", expr, 1000.0 * t_total_s, vectorize
        )

    return NumpifiedFunction(fn, expr, var, src, vectorized=vectorize)


# ---------------------------------------------------------------------------
# Cached compilation
# ---------------------------------------------------------------------------

_NUMPIFY_CACHE_MAXSIZE = 256


@lru_cache(maxsize=_NUMPIFY_CACHE_MAXSIZE)
def _numpify_cached_impl(expr: sp.Basic, var: sp.Symbol, vectorize: bool) -> NumpifiedFunction:
    # Only runs on cache misses.
    logger.debug("numpify_cached: cache MISS for %r (vectorize=%s)", expr, vectorize)
    return _numpify_uncached(expr, var, vectorize=vectorize)


def numpify_cached(expr: Any, var: sp.Symbol, *, vectorize: bool = True) -> NumpifiedFunction:
    """Cached version of :func:`numpify`.

    The cache key is the sympified expression, ``var`` and ``vectorize``.
    Clear it with ``numpify_cached.cache_clear()``.
    """
    return _numpify_cached_impl(_sympify(expr), var, vectorize)


numpify_cached.cache_info = _numpify_cached_impl.cache_info  # type: ignore[attr-defined]
numpify_cached.cache_clear = _numpify_cached_impl.cache_clear  # type: ignore[attr-defined]
