"""Uniform sampling of a compiled expression over an x interval.

Every grid x is kept in the output. Points where evaluation raises, or where
the value is ``nan``, ``±inf`` or non-real, carry ``y=None`` so the renderer
breaks the line there instead of dropping the x.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, List, Optional, Protocol

import numpy as np

from .InputConvert import InputConvert

__all__ = ["DEFAULT_INTERVALS", "SamplePoint", "sample_grid", "sample_expression"]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

DEFAULT_INTERVALS = 1000


@dataclass(frozen=True)
class SamplePoint:
    """One ``(x, y)`` pair of a plotted series; ``y is None`` marks a gap."""

    x: float
    y: Optional[float]

    @property
    def is_gap(self) -> bool:
        return self.y is None

    def as_dict(self) -> dict[str, Optional[float]]:
        return {"x": self.x, "y": self.y}


class _Evaluable(Protocol):
    def evaluate(self, scope: Any) -> Any: ...


def sample_grid(x_min: float, x_max: float, intervals: int = DEFAULT_INTERVALS) -> np.ndarray:
    """Return ``intervals + 1`` evenly spaced x values covering both endpoints.

    ``numpy.linspace`` places the last point exactly on ``x_max``, so the
    grid never overshoots the interval and never misses the endpoint.
    """
    x_min = InputConvert(x_min, float)
    x_max = InputConvert(x_max, float)
    intervals = InputConvert(intervals, int, truncate=False)
    if intervals < 1:
        raise ValueError("intervals must be >= 1")
    if not (math.isfinite(x_min) and math.isfinite(x_max)):
        raise ValueError("x range must be finite")
    if not x_min < x_max:
        raise ValueError("x_min must be < x_max")
    return np.linspace(x_min, x_max, num=intervals + 1)


def _finite_or_none(value: Any) -> Optional[float]:
    if isinstance(value, complex) or np.iscomplexobj(value):
        if complex(value).imag != 0:
            return None
        value = complex(value).real
    try:
        y = float(value)
    except (TypeError, ValueError):
        return None
    return y if math.isfinite(y) else None


def _evaluate_point(compiled: _Evaluable, x: float) -> Optional[float]:
    try:
        with np.errstate(all="ignore"):
            value = compiled.evaluate({"x": x})
    except Exception as exc:
        logger.debug("evaluation failed at x=%r: %s", x, exc)
        return None
    return _finite_or_none(value)


def _evaluate_grid(compiled: _Evaluable, xs: np.ndarray) -> List[Optional[float]]:
    evaluate_array = getattr(compiled, "evaluate_array", None)
    if evaluate_array is not None:
        try:
            values = np.asarray(evaluate_array(xs))
            if values.shape != xs.shape:
                raise ValueError(f"vectorized result has shape {values.shape}, expected {xs.shape}")
        except Exception as exc:
            logger.debug("vectorized evaluation failed (%s); evaluating point by point", exc)
        else:
            if np.iscomplexobj(values):
                values = np.where(values.imag == 0, values.real, np.nan)
            with np.errstate(all="ignore"):
                values = values.astype(float)
            return [float(v) if math.isfinite(v) else None for v in values]
    return [_evaluate_point(compiled, float(x)) for x in xs]


def sample_expression(
    compiled: _Evaluable,
    x_min: float,
    x_max: float,
    *,
    intervals: int = DEFAULT_INTERVALS,
) -> List[SamplePoint]:
    """Sample ``compiled`` on a uniform grid over ``[x_min, x_max]``.

    Parameters
    ----------
    compiled : CompiledExpression or any object with ``evaluate({"x": v})``
        The function to sample. When it also offers ``evaluate_array`` the
        whole grid is evaluated in one call; if that raises, every point is
        evaluated on its own so one bad x cannot spoil the rest.
    x_min, x_max : float
        Sampled interval, ``x_min < x_max``.
    intervals : int, optional
        Number of grid intervals; the result has ``intervals + 1`` points.

    Returns
    -------
    list[SamplePoint]
        Points in ascending x order. Identical inputs give identical output.
    """
    xs = sample_grid(x_min, x_max, intervals)
    ys = _evaluate_grid(compiled, xs)
    points = [SamplePoint(float(x), y) for x, y in zip(xs, ys)]
    if logger.isEnabledFor(logging.DEBUG):
        gaps = sum(1 for p in points if p.y is None)
        logger.debug("sampled %d points on [%g, %g], %d gap(s)", len(points), x_min, x_max, gaps)
    return points
