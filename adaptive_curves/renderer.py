"""Frame rendering: fan the function set out over a thread pool.

One task per function runs :meth:`Function.compute_curves`; the frame waits
for all of them and returns the per-function curve lists in input order. A
failing task is logged and contributes an empty list, so one bad function
never takes down the frame.

Functions are independent except for their own caches. Rendering the same
``Function`` from two concurrent frames is safe; the last writer wins the
curve-cache slot.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Optional, Sequence

from .Function import Function
from .curve import Curve
from .transform import CoordinateTransform, Rect

__all__ = ["FrameRenderer", "render_functions"]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


def _collect(functions: Sequence[Function], futures: Sequence[Future]) -> list[list[Curve]]:
    results: list[list[Curve]] = []
    for function, future in zip(functions, futures):
        try:
            results.append(future.result())
        except Exception:
            logger.exception("Rendering %r failed; skipping it for this frame", function.name)
            results.append([])
    return results


def render_functions(
    functions: Sequence[Function],
    rect: Rect,
    transform: CoordinateTransform,
    *,
    max_workers: Optional[int] = None,
    executor: Optional[Executor] = None,
) -> list[list[Curve]]:
    """Compute curves for every function concurrently.

    Parameters
    ----------
    functions : sequence of Function
        Functions to draw.
    rect : Rect
        Visible screen rectangle.
    transform : CoordinateTransform
        Shared world/screen mapping for the frame.
    max_workers : int, optional
        Pool size when a temporary pool is created.
    executor : concurrent.futures.Executor, optional
        Reuse an existing pool instead of creating one for this call.

    Returns
    -------
    list[list[Curve]]
        One curve list per function, in the order of ``functions``.
    """
    functions = list(functions)
    if not functions:
        return []

    start = time.perf_counter()
    if executor is not None:
        futures = [executor.submit(f.compute_curves, rect, transform) for f in functions]
        results = _collect(functions, futures)
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = [pool.submit(f.compute_curves, rect, transform) for f in functions]
            results = _collect(functions, futures)

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "Frame: %d function(s), %d curve(s) in %.2f ms",
            len(functions),
            sum(len(r) for r in results),
            (time.perf_counter() - start) * 1000,
        )
    return results


class FrameRenderer:
    """Long-lived renderer that keeps one thread pool across frames.

    Use as a context manager or call :meth:`close` when done.
    """

    def __init__(self, *, max_workers: Optional[int] = None) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="adaptive-curves"
        )

    def render(
        self, functions: Sequence[Function], rect: Rect, transform: CoordinateTransform
    ) -> list[list[Curve]]:
        return render_functions(functions, rect, transform, executor=self._executor)

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "FrameRenderer":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
