from __future__ import annotations

import pytest

from asymplot.sampling import SamplePoint
from asymplot.series import Y_PADDING, assemble_series, fit_y_range


def _points(pairs):
    return [SamplePoint(float(x), None if y is None else float(y)) for x, y in pairs]


def test_assemble_merges_and_sorts() -> None:
    samples = _points([(-1, 1), (0, 0), (1, 1)])
    merged = assemble_series(samples, [0.0, -0.5])
    assert [p.x for p in merged] == [-1.0, -0.5, 0.0, 0.0, 1.0]
    assert [p.y for p in merged] == [1.0, None, 0.0, None, 1.0]


def test_assemble_keeps_every_point() -> None:
    samples = _points([(x, x) for x in range(5)])
    merged = assemble_series(samples, [1.5, 3.5])
    assert len(merged) == 7
    assert sum(p.is_gap for p in merged) == 2


def test_assemble_without_asymptotes_is_identity() -> None:
    samples = _points([(0, 1), (1, 2)])
    assert assemble_series(samples, []) == samples


def test_fit_y_range_pads_by_ten_percent() -> None:
    points = _points([(x, x) for x in range(-10, 11)])
    assert Y_PADDING == 0.1
    assert fit_y_range(points) == pytest.approx((-12.0, 12.0))


def test_fit_y_range_ignores_gaps() -> None:
    points = _points([(0, None), (1, 2), (2, None), (3, 4)])
    assert fit_y_range(points) == pytest.approx((1.8, 4.2))


def test_fit_y_range_flat_series_uses_unit_margin() -> None:
    points = _points([(0, 3), (1, 3), (2, 3)])
    assert fit_y_range(points) == (2.0, 4.0)


def test_fit_y_range_without_finite_values() -> None:
    assert fit_y_range(_points([(0, None), (1, None)])) is None
    assert fit_y_range([]) is None


def test_fit_y_range_custom_padding() -> None:
    points = _points([(0, 0), (1, 10)])
    assert fit_y_range(points, padding=0.5) == (-5.0, 15.0)
