"""Viewport model: the visible x/y rectangle of a graph.

Purpose
-------
``Viewport`` owns the four bounds read by every plot pass and mutated by zoom
and pan gestures. Bounds are validated on every change so a plot pass never
sees ``x_min >= x_max`` or ``y_min >= y_max``.

Notes
-----
Zooming scales both axes about an anchor point. ``zoom(0.8)`` zooms in,
``zoom(1.25)`` zooms out, so one of each returns to the starting rectangle.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from .InputConvert import InputConvert

NumberLikeOrStr = Union[int, float, str]
RangeLike = Tuple[NumberLikeOrStr, NumberLikeOrStr]

DEFAULT_X_RANGE: Tuple[float, float] = (-10.0, 10.0)
DEFAULT_Y_RANGE: Tuple[float, float] = (-10.0, 10.0)
ZOOM_IN_FACTOR = 0.8
ZOOM_OUT_FACTOR = 1.25


def _coerce_range(value: RangeLike, *, axis: str) -> Tuple[float, float]:
    raw_min, raw_max = value
    lo = float(InputConvert(raw_min, float))
    hi = float(InputConvert(raw_max, float))
    if not (math.isfinite(lo) and math.isfinite(hi)):
        raise ValueError(f"{axis} range must be finite, got ({lo}, {hi})")
    if not lo < hi:
        raise ValueError(f"{axis}_min must be < {axis}_max, got ({lo}, {hi})")
    return lo, hi


@dataclass
class Viewport:
    """Mutable ``{x_min, x_max, y_min, y_max}`` rectangle.

    Parameters
    ----------
    x_min, x_max : float
        Visible x bounds, ``x_min < x_max``.
    y_min, y_max : float
        Visible y bounds, ``y_min < y_max``.
    """

    x_min: float = DEFAULT_X_RANGE[0]
    x_max: float = DEFAULT_X_RANGE[1]
    y_min: float = DEFAULT_Y_RANGE[0]
    y_max: float = DEFAULT_Y_RANGE[1]

    def __post_init__(self) -> None:
        self.x_min, self.x_max = _coerce_range((self.x_min, self.x_max), axis="x")
        self.y_min, self.y_max = _coerce_range((self.y_min, self.y_max), axis="y")

    @classmethod
    def from_ranges(
        cls,
        x_range: Optional[RangeLike] = None,
        y_range: Optional[RangeLike] = None,
    ) -> "Viewport":
        """Build a viewport from ``(min, max)`` pairs; ``None`` uses the default."""
        xr = _coerce_range(x_range if x_range is not None else DEFAULT_X_RANGE, axis="x")
        yr = _coerce_range(y_range if y_range is not None else DEFAULT_Y_RANGE, axis="y")
        return cls(xr[0], xr[1], yr[0], yr[1])

    @property
    def x_range(self) -> Tuple[float, float]:
        return (self.x_min, self.x_max)

    @x_range.setter
    def x_range(self, value: RangeLike) -> None:
        self.x_min, self.x_max = _coerce_range(value, axis="x")

    @property
    def y_range(self) -> Tuple[float, float]:
        return (self.y_min, self.y_max)

    @y_range.setter
    def y_range(self, value: RangeLike) -> None:
        self.y_min, self.y_max = _coerce_range(value, axis="y")

    @property
    def center(self) -> Tuple[float, float]:
        return ((self.x_min + self.x_max) / 2, (self.y_min + self.y_max) / 2)

    def copy(self) -> "Viewport":
        return Viewport(self.x_min, self.x_max, self.y_min, self.y_max)

    def zoom(self, factor: float, *, anchor: Optional[Tuple[float, float]] = None) -> None:
        """Scale both axes by ``factor`` about ``anchor`` (the centre by default).

        ``factor < 1`` zooms in. The anchor keeps its position on screen, which
        is what a mouse-wheel zoom under the cursor needs.
        """
        factor = float(InputConvert(factor, float))
        if not (math.isfinite(factor) and factor > 0):
            raise ValueError(f"zoom factor must be a positive number, got {factor}")
        cx, cy = anchor if anchor is not None else self.center
        cx, cy = float(cx), float(cy)
        x_range = (cx - (cx - self.x_min) * factor, cx + (self.x_max - cx) * factor)
        y_range = (cy - (cy - self.y_min) * factor, cy + (self.y_max - cy) * factor)
        # Validate both before mutating either.
        x_range = _coerce_range(x_range, axis="x")
        y_range = _coerce_range(y_range, axis="y")
        self.x_min, self.x_max = x_range
        self.y_min, self.y_max = y_range

    def pan(self, dx: float = 0.0, dy: float = 0.0) -> None:
        """Shift the rectangle by ``(dx, dy)`` in data units."""
        dx = float(InputConvert(dx, float))
        dy = float(InputConvert(dy, float))
        x_range = _coerce_range((self.x_min + dx, self.x_max + dx), axis="x")
        y_range = _coerce_range((self.y_min + dy, self.y_max + dy), axis="y")
        self.x_min, self.x_max = x_range
        self.y_min, self.y_max = y_range
