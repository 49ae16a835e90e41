from __future__ import annotations

import math
import threading
from unittest.mock import patch

import pytest

from adaptive_curves.EvaluationCache import (
    HARD_CACHE_CAPACITY,
    NORMAL_CACHE_CAPACITY,
    EvaluationCache,
)
from adaptive_curves.Function import Function
from adaptive_curves.NumericExpression import NumericExpression


def test_quantization_boundary() -> None:
    cache = EvaluationCache(10)
    cache.put(1.0, 2.0, 3.0)

    assert cache.get(1.0 + 1e-7) == (2.0, 3.0)
    assert cache.get(1.0 + 1e-5) is None
    assert cache.quantize(1.0 + 1e-7) == cache.quantize(1.0)


def test_lru_evicts_least_recently_inserted() -> None:
    cache = EvaluationCache(3)
    for x in (1.0, 2.0, 3.0, 4.0):
        cache.put(x, x, 0.0)

    assert len(cache) == 3
    assert 1.0 not in cache
    assert cache.keys() == [2.0, 3.0, 4.0]


def test_get_protects_entry_from_eviction() -> None:
    cache = EvaluationCache(3)
    for x in (1.0, 2.0, 3.0):
        cache.put(x, x, 0.0)

    assert cache.get(1.0) == (1.0, 0.0)
    cache.put(4.0, 4.0, 0.0)

    assert 1.0 in cache
    assert 2.0 not in cache


def test_put_existing_key_refreshes_without_evicting() -> None:
    cache = EvaluationCache(2)
    cache.put(1.0, 1.0, 0.0)
    cache.put(2.0, 2.0, 0.0)
    cache.put(1.0, 10.0, 0.0)

    assert len(cache) == 2
    assert cache.keys() == [2.0, 1.0]
    assert cache.get(1.0) == (10.0, 0.0)


def test_lookup_computes_once_per_quantized_key() -> None:
    cache = EvaluationCache(10)
    calls: list[float] = []

    def compute(x: float) -> tuple[float, float]:
        calls.append(x)
        return x * 2, 2.0

    assert cache.lookup(0.5, compute) == (1.0, 2.0)
    assert cache.lookup(0.5, compute) == (1.0, 2.0)
    assert cache.lookup(0.5 + 1e-8, compute) == (1.0, 2.0)
    assert calls == [0.5]


def test_nan_results_are_cached() -> None:
    cache = EvaluationCache(4)
    calls = []

    def compute(x: float) -> tuple[float, float]:
        calls.append(x)
        return math.nan, math.nan

    cache.lookup(0.0, compute)
    y, dy = cache.lookup(0.0, compute)
    assert math.isnan(y) and math.isnan(dy)
    assert len(calls) == 1


def test_non_finite_x_bypasses_cache() -> None:
    cache = EvaluationCache(4)
    cache.put(math.inf, 1.0, 1.0)
    cache.put(math.nan, 1.0, 1.0)

    assert len(cache) == 0
    assert cache.get(math.inf) is None
    assert math.nan not in cache


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        EvaluationCache(0)


def test_clear_empties_cache() -> None:
    cache = EvaluationCache(4)
    cache.put(1.0, 1.0, 1.0)
    cache.clear()
    assert len(cache) == 0


def test_concurrent_lookups_respect_capacity() -> None:
    cache = EvaluationCache(50)
    errors: list[BaseException] = []

    def worker(offset: int) -> None:
        try:
            for i in range(200):
                x = (i + offset) * 0.01
                y, dy = cache.lookup(x, lambda v: (v * v, 2 * v))
                assert y == pytest.approx(x * x)
        except BaseException as exc:  # pragma: no cover - reported below
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(k * 37,)) for k in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert not errors
    assert len(cache) <= 50


def test_function_capacity_follows_hardness() -> None:
    assert Function("sin(x)").cache.capacity == HARD_CACHE_CAPACITY
    assert Function("x^2").cache.capacity == NORMAL_CACHE_CAPACITY


def test_function_evaluates_each_point_once() -> None:
    f = Function("x^2")
    with patch.object(
        NumericExpression, "evaluate_both", autospec=True, return_value=(4.0, 4.0)
    ) as mocked:
        assert f.evaluate(2.0) == 4.0
        assert f.evaluate_derivative(2.0) == 4.0
        assert f.evaluate_both(2.0 + 1e-9) == (4.0, 4.0)

    assert mocked.call_count == 1
