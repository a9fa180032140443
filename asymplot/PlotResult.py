"""Immutable output of one plot pass.

A ``PlotResult`` is what the rendering collaborator consumes: the assembled
``(x, y | None)`` series and the asymptote x positions, plus the expression
and x-range they were computed from.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from sympy.core.expr import Expr

from .sampling import SamplePoint


@dataclass(frozen=True)
class PlotResult:
    """Immutable record of one plot pass.

    Parameters
    ----------
    expression : str
        Formula text as typed.
    expr : sympy.Expr
        Parsed tree the series was computed from.
    points : tuple[SamplePoint, ...]
        Samples and asymptote gap points, ascending in x.
    asymptotes : tuple[float, ...]
        Ascending asymptote x positions inside ``x_range``.
    x_range : tuple[float, float]
        Sampled interval.
    """

    expression: str
    expr: Expr
    points: Tuple[SamplePoint, ...]
    asymptotes: Tuple[float, ...]
    x_range: Tuple[float, float]

    @property
    def xs(self) -> np.ndarray:
        """Return x values as a float array."""
        return np.fromiter((p.x for p in self.points), dtype=float, count=len(self.points))

    @property
    def ys(self) -> np.ndarray:
        """Return y values as a float array with gaps as ``nan``."""
        return np.fromiter(
            (np.nan if p.y is None else p.y for p in self.points),
            dtype=float,
            count=len(self.points),
        )

    def records(self) -> list[dict[str, Optional[float]]]:
        """Return the series as ``[{"x": ..., "y": ...}, ...]`` with ``None`` gaps."""
        return [p.as_dict() for p in self.points]

    def finite_points(self) -> Tuple[SamplePoint, ...]:
        """Return only the points that carry a y value."""
        return tuple(p for p in self.points if p.y is not None)

    def __repr__(self) -> str:
        return (
            f"PlotResult(expression={self.expression!r}, points={len(self.points)}, "
            f"asymptotes={len(self.asymptotes)}, x_range={self.x_range!r})"
        )
