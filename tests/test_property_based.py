"""Property-based checks for sampling, asymptote placement and y fitting."""

from __future__ import annotations

import math

import pytest

from asymplot.asymptotes import find_asymptotes
from asymplot.expression import compile_expression
from asymplot.expression_grammar import parse_expression
from asymplot.sampling import SamplePoint, sample_expression
from asymplot.series import fit_y_range

try:
    from hypothesis import given, settings
    from hypothesis import strategies as st
except ModuleNotFoundError:  # pragma: no cover - environment-specific fallback
    pytest.skip("hypothesis is required for property-based tests", allow_module_level=True)


BOUNDS = st.floats(min_value=-1e3, max_value=1e3, allow_nan=False, allow_infinity=False)
WIDTHS = st.floats(min_value=1e-3, max_value=1e3, allow_nan=False, allow_infinity=False)
# Tenths keep the formula text exact when printed.
SLOPES = st.integers(min_value=-50, max_value=50).filter(lambda n: n != 0).map(lambda n: n / 10)
OFFSETS = st.integers(min_value=-50, max_value=50).map(lambda n: n / 10)

_SQUARE = compile_expression("x^2")


@settings(deadline=None)
@given(x_min=BOUNDS, width=WIDTHS, intervals=st.integers(min_value=1, max_value=200))
def test_samples_cover_the_interval_in_order(x_min: float, width: float, intervals: int) -> None:
    x_max = x_min + width
    points = sample_expression(_SQUARE, x_min, x_max, intervals=intervals)
    assert len(points) == intervals + 1
    assert points[0].x == x_min
    assert points[-1].x == x_max
    assert all(x_min <= p.x <= x_max for p in points)
    assert all(a.x < b.x for a, b in zip(points, points[1:]))


@settings(deadline=None)
@given(a=SLOPES, b=OFFSETS, func=st.sampled_from(["tan", "cot", "sec", "csc"]))
def test_asymptotes_are_poles_inside_the_viewport(a: float, b: float, func: str) -> None:
    expr = parse_expression(f"{func}({a!r}*x + {b!r})")
    result = find_asymptotes(expr, -10, 10)
    assert result == sorted(result)
    for x in result:
        assert -10 <= x <= 10
        arg = a * x + b
        if func in ("tan", "sec"):
            assert abs(math.cos(arg)) < 1e-6
        else:
            assert abs(math.sin(arg)) < 1e-6
    # Every pole in range is found: spacing is one period in x.
    period = math.pi / abs(a)
    assert len(result) >= math.floor(20 / period) - 1


@given(ys=st.lists(st.one_of(st.none(), st.floats(min_value=-1e6, max_value=1e6)), max_size=50))
def test_fitted_range_encloses_every_finite_y(ys: list) -> None:
    points = [SamplePoint(float(i), y) for i, y in enumerate(ys)]
    fitted = fit_y_range(points)
    finite = [y for y in ys if y is not None]
    if not finite:
        assert fitted is None
        return
    lo, hi = fitted
    assert lo <= min(finite) <= max(finite) <= hi
    assert lo < hi
