"""Plot pipeline and the stateful graph session built on it.

Purpose
-------
``plot_expression`` is the pure pipeline: compile the formula, sample it and
detect asymptotes on the same x-range, then merge both into one sorted series.

``FunctionGraph`` is the state a graph editor keeps between user actions:
the formula, the viewport, whether the y-range still needs fitting, the last
result or error message, and a Plotly figure kept in sync with them.

Concepts and structure
----------------------
- Changing the formula resets the viewport to its defaults and re-arms the
  y auto-fit; the next successful plot fits the y-range to the data.
- After the first successful plot, every viewport change (zoom, pan, explicit
  ranges) re-plots immediately.
- A formula that does not parse never raises out of :meth:`FunctionGraph.plot`:
  the message lands in :attr:`FunctionGraph.error` and the series is cleared.

Examples
--------
>>> from asymplot.function_graph import FunctionGraph
>>> graph = FunctionGraph("tan(x)")
>>> result = graph.plot()  # doctest: +SKIP
>>> graph.zoom_in()  # doctest: +SKIP
>>> graph.figure.show()  # doctest: +SKIP

Logging
-------
Uses the standard :mod:`logging` module with a ``NullHandler``; enable with
``logging.getLogger("asymplot").setLevel(logging.DEBUG)``.
"""

from __future__ import annotations

import datetime as _dt
import logging
from typing import Any, Dict, Optional, Tuple, Union

import plotly.graph_objects as go

from .asymptotes import find_asymptotes
from .expression import compile_expression
from .expression_grammar import ExpressionError
from .figure_render import build_figure, update_figure
from .graph_store import format_date
from .InputConvert import InputConvert
from .PlotResult import PlotResult
from .sampling import DEFAULT_INTERVALS, sample_expression
from .series import assemble_series, fit_y_range
from .viewport import (
    DEFAULT_X_RANGE,
    DEFAULT_Y_RANGE,
    ZOOM_IN_FACTOR,
    ZOOM_OUT_FACTOR,
    RangeLike,
    Viewport,
)

__all__ = ["FunctionGraph", "plot_expression"]

# Module logger
# - Uses a NullHandler so importing this module never configures global logging.
logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

DateLike = Union[str, _dt.date, _dt.datetime]


def plot_expression(
    text: str,
    x_min: float,
    x_max: float,
    *,
    intervals: int = DEFAULT_INTERVALS,
    syntax: str = "auto",
) -> PlotResult:
    """Compile, sample and assemble one plot of ``text`` over ``[x_min, x_max]``.

    Parameters
    ----------
    text : str
        Formula, plain text or LaTeX.
    x_min, x_max : float
        Sampled x interval.
    intervals : int, optional
        Number of sampling intervals (``intervals + 1`` samples).
    syntax : {"auto", "text", "latex"}, optional
        Front end selection for the formula.

    Returns
    -------
    PlotResult

    Raises
    ------
    ExpressionError
        If the formula does not parse. Per-point evaluation failures never
        raise; they become gaps.
    """
    compiled = compile_expression(text, syntax=syntax)
    samples = sample_expression(compiled, x_min, x_max, intervals=intervals)
    asymptotes = find_asymptotes(compiled.expr, x_min, x_max)
    points = assemble_series(samples, asymptotes)
    return PlotResult(
        expression=text,
        expr=compiled.expr,
        points=tuple(points),
        asymptotes=tuple(asymptotes),
        x_range=(float(x_min), float(x_max)),
    )


class FunctionGraph:
    """One graph being edited: formula, viewport, last result and figure.

    Parameters
    ----------
    equation : str, optional
        Initial formula. Nothing is plotted until :meth:`plot` is called.
    x_range, y_range : tuple, optional
        Default viewport ranges, restored whenever the formula changes.
        Bounds may be numbers or constant expressions such as ``"2pi"``.
    intervals : int, optional
        Sampling intervals per plot pass.
    syntax : {"auto", "text", "latex"}, optional
        Formula front end.
    """

    def __init__(
        self,
        equation: str = "",
        *,
        x_range: Optional[RangeLike] = None,
        y_range: Optional[RangeLike] = None,
        intervals: int = DEFAULT_INTERVALS,
        syntax: str = "auto",
    ) -> None:
        self._default_viewport = Viewport.from_ranges(
            x_range if x_range is not None else DEFAULT_X_RANGE,
            y_range if y_range is not None else DEFAULT_Y_RANGE,
        )
        self._intervals = InputConvert(intervals, int, truncate=False)
        if self._intervals < 1:
            raise ValueError("intervals must be >= 1")
        self._syntax = syntax
        self._equation = ""
        self._viewport = self._default_viewport.copy()
        self._needs_fit = True
        self._plotted = False
        self._result: Optional[PlotResult] = None
        self._error: Optional[str] = None
        self._figure: Optional[go.Figure] = None
        self.equation = equation

    # ------------------------------------------------------------------
    # Formula
    # ------------------------------------------------------------------

    @property
    def equation(self) -> str:
        """Return the current formula text."""
        return self._equation

    @equation.setter
    def equation(self, value: str) -> None:
        """Set the formula; resets the viewport and re-arms the y auto-fit."""
        if not isinstance(value, str):
            raise TypeError(f"equation must be a string, got {type(value).__name__}")
        self._equation = value
        self._viewport = self._default_viewport.copy()
        self._needs_fit = True
        self._plotted = False
        self._result = None
        self._error = None
        self._sync_figure()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def viewport(self) -> Viewport:
        """Return a copy of the current viewport."""
        return self._viewport.copy()

    @property
    def x_range(self) -> Tuple[float, float]:
        return self._viewport.x_range

    @property
    def y_range(self) -> Tuple[float, float]:
        return self._viewport.y_range

    @property
    def intervals(self) -> int:
        return self._intervals

    @property
    def result(self) -> Optional[PlotResult]:
        """Return the last successful plot, or ``None``."""
        return self._result

    @property
    def error(self) -> Optional[str]:
        """Return the message of the last failed plot, or ``None``."""
        return self._error

    @property
    def plotted(self) -> bool:
        """Return True once a plot succeeded for the current formula."""
        return self._plotted

    @property
    def figure(self) -> go.Figure:
        """Return the Plotly figure mirroring the last result and viewport."""
        if self._figure is None:
            self._figure = build_figure(self._result, self._viewport)
        return self._figure

    # ------------------------------------------------------------------
    # Plotting
    # ------------------------------------------------------------------

    def plot(self) -> Optional[PlotResult]:
        """Run one plot pass on the current viewport.

        Returns
        -------
        PlotResult or None
            The new result, or ``None`` when the formula does not parse (the
            message is then available as :attr:`error`).
        """
        x_min, x_max = self._viewport.x_range
        try:
            result = plot_expression(
                self._equation,
                x_min,
                x_max,
                intervals=self._intervals,
                syntax=self._syntax,
            )
        except ExpressionError as exc:
            logger.info("invalid equation %r: %s", self._equation, exc)
            self._result = None
            self._error = str(exc) or "Invalid equation"
            self._sync_figure()
            return None

        self._result = result
        self._error = None
        if self._needs_fit:
            fitted = fit_y_range(result.points)
            if fitted is not None:
                try:
                    self._viewport.y_range = fitted
                except ValueError as exc:
                    logger.warning("keeping y-range %s: %s", self._viewport.y_range, exc)
            self._needs_fit = False
        self._plotted = True
        logger.debug(
            "plotted %r on x=%s y=%s (%d points, %d asymptotes)",
            self._equation,
            self._viewport.x_range,
            self._viewport.y_range,
            len(result.points),
            len(result.asymptotes),
        )
        self._sync_figure()
        return result

    def _viewport_changed(self) -> None:
        if self._plotted and self._equation:
            self.plot()
        else:
            self._sync_figure()

    def _sync_figure(self) -> None:
        if self._figure is not None:
            update_figure(self._figure, self._result, self._viewport)

    # ------------------------------------------------------------------
    # Viewport gestures
    # ------------------------------------------------------------------

    def set_x_range(self, value: RangeLike) -> None:
        self._viewport.x_range = value
        self._viewport_changed()

    def set_y_range(self, value: RangeLike) -> None:
        self._viewport.y_range = value
        self._viewport_changed()

    def zoom_in(self) -> None:
        """Zoom in about the viewport centre."""
        self._viewport.zoom(ZOOM_IN_FACTOR)
        self._viewport_changed()

    def zoom_out(self) -> None:
        """Zoom out about the viewport centre."""
        self._viewport.zoom(ZOOM_OUT_FACTOR)
        self._viewport_changed()

    def zoom_at(self, x: float, y: float, *, zoom_in: bool = True) -> None:
        """Zoom about the data point ``(x, y)``, e.g. under the mouse wheel."""
        factor = ZOOM_IN_FACTOR if zoom_in else ZOOM_OUT_FACTOR
        self._viewport.zoom(factor, anchor=(InputConvert(x, float), InputConvert(y, float)))
        self._viewport_changed()

    def pan(self, dx: float = 0.0, dy: float = 0.0) -> None:
        """Shift the viewport by ``(dx, dy)`` data units."""
        self._viewport.pan(dx, dy)
        self._viewport_changed()

    def reset_view(self) -> None:
        """Restore the default viewport and fit the y-range on the next plot."""
        self._viewport = self._default_viewport.copy()
        self._needs_fit = True
        self._viewport_changed()

    # ------------------------------------------------------------------
    # Persistence payload
    # ------------------------------------------------------------------

    def to_record(self, date: Optional[DateLike] = None) -> Dict[str, Any]:
        """Return the ``{"equation", "date"}`` payload saved by a graph store.

        ``date`` defaults to today and is formatted as ``YYYY-MM-DD``.
        """
        return {"equation": self._equation, "date": format_date(date or _dt.date.today())}

    def __repr__(self) -> str:
        return (
            f"FunctionGraph(equation={self._equation!r}, x_range={self.x_range!r}, "
            f"y_range={self.y_range!r}, plotted={self._plotted})"
        )
