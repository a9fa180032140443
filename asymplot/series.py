"""Series assembly: merge samples with asymptote gap points, fit the y-range."""

from __future__ import annotations

import math
from typing import Iterable, List, Optional, Sequence, Tuple

from .sampling import SamplePoint

__all__ = ["Y_PADDING", "assemble_series", "fit_y_range"]

#: Fraction of the observed y span added above and below by :func:`fit_y_range`.
Y_PADDING = 0.1


def assemble_series(
    samples: Iterable[SamplePoint],
    asymptotes: Iterable[float],
) -> List[SamplePoint]:
    """Return samples plus one gap point per asymptote, sorted by x.

    The sort is stable and nothing is de-duplicated: a sample that lands
    exactly on an asymptote stays next to its gap point.
    """
    merged = list(samples)
    merged.extend(SamplePoint(float(x), None) for x in asymptotes)
    merged.sort(key=lambda p: p.x)
    return merged


def fit_y_range(
    points: Sequence[SamplePoint],
    *,
    padding: float = Y_PADDING,
) -> Optional[Tuple[float, float]]:
    """Return a y-range enclosing every finite y with ``padding`` margin.

    The margin is ``padding * (max - min)``, or ``1`` when all finite y values
    are equal. Returns ``None`` when no point has a finite y.
    """
    finite = [p.y for p in points if p.y is not None and math.isfinite(p.y)]
    if not finite:
        return None
    y_min, y_max = min(finite), max(finite)
    margin = (y_max - y_min) * padding or 1.0
    return y_min - margin, y_max + margin
