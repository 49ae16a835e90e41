"""Per-function choice of sampling strategy.

The strategy is picked once, when a :class:`~adaptive_curves.Function.Function`
is built, from its expression text and linearity flag, and never changes.
"""

from __future__ import annotations

from enum import Enum

__all__ = ["RenderStrategy", "TARGET_Y_TOKENS", "select_strategy"]


TARGET_Y_TOKENS = ("/x", "1/x", "tan(", "cot(")


class RenderStrategy(Enum):
    """Tagged variant naming one of the three sampling algorithms.

    ``LINEAR``
        Two-point fast path for degree-1 expressions.
    ``TARGET_Y``
        World-space walk with Newton target-y stepping and asymptote skipping,
        for reciprocal, tangent and cotangent forms.
    ``CURVATURE``
        Screen-space walk with curvature-based steps and break heuristics.
    """

    LINEAR = "linear"
    TARGET_Y = "target_y"
    CURVATURE = "curvature"

    @property
    def walks_world_space(self) -> bool:
        return self is RenderStrategy.TARGET_Y

    @property
    def skips_asymptotes(self) -> bool:
        return self is RenderStrategy.TARGET_Y

    @property
    def uses_break_heuristics(self) -> bool:
        return self is RenderStrategy.CURVATURE


def select_strategy(text: str, is_linear: bool) -> RenderStrategy:
    """Pick the sampling strategy for an expression.

    >>> select_strategy("2x + 1", True)
    <RenderStrategy.LINEAR: 'linear'>
    >>> select_strategy("1/x", False)
    <RenderStrategy.TARGET_Y: 'target_y'>
    >>> select_strategy("sin(x)", False)
    <RenderStrategy.CURVATURE: 'curvature'>
    """
    if is_linear:
        return RenderStrategy.LINEAR
    s = "".join(text.split()).lower()
    if any(token in s for token in TARGET_Y_TOKENS):
        return RenderStrategy.TARGET_Y
    return RenderStrategy.CURVATURE
