"""Plotly rendering of a :class:`~asymplot.PlotResult.PlotResult`.

The chart is one ``lines`` scatter trace with ``connectgaps=False``, so every
``None`` y breaks the line instead of being interpolated across, plus one red
dashed vertical line per asymptote spanning the full plot height. Axis ranges
come from the viewport.

``update_figure`` rewrites an existing figure in place (trace data, shapes,
ranges) inside ``batch_update`` so a widget-backed figure redraws once.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import plotly.graph_objects as go

from .PlotResult import PlotResult
from .viewport import Viewport

__all__ = [
    "ASYMPTOTE_LINE",
    "CURVE_LINE",
    "asymptote_shapes",
    "build_figure",
    "update_figure",
]

CURVE_LINE: Dict[str, Any] = {"color": "#8884d8", "width": 2}
ASYMPTOTE_LINE: Dict[str, Any] = {"color": "red", "dash": "dash", "width": 1}


def asymptote_shapes(asymptotes: Sequence[float]) -> List[Dict[str, Any]]:
    """Return Plotly layout shapes drawing a dashed vertical line at each x."""
    return [
        {
            "type": "line",
            "xref": "x",
            "yref": "paper",
            "x0": float(x),
            "x1": float(x),
            "y0": 0,
            "y1": 1,
            "line": dict(ASYMPTOTE_LINE),
        }
        for x in asymptotes
    ]


def build_figure(
    result: Optional[PlotResult],
    viewport: Viewport,
    *,
    title: Optional[str] = None,
) -> go.Figure:
    """Create a new figure showing ``result`` (an empty chart when ``None``)."""
    fig = go.Figure()
    fig.add_scatter(
        x=[],
        y=[],
        mode="lines",
        name="y",
        connectgaps=False,
        line=dict(CURVE_LINE),
    )
    fig.update_layout(
        showlegend=True,
        margin=dict(l=40, r=20, t=40 if title else 20, b=40),
        xaxis=dict(zeroline=True, showgrid=True, griddash="dash"),
        yaxis=dict(zeroline=True, showgrid=True, griddash="dash"),
    )
    if title:
        fig.update_layout(title=title)
    update_figure(fig, result, viewport)
    return fig


def update_figure(fig: go.Figure, result: Optional[PlotResult], viewport: Viewport) -> go.Figure:
    """Push ``result`` and ``viewport`` into ``fig``'s first trace and layout."""
    trace = fig.data[0]
    with fig.batch_update():
        if result is None:
            trace.x = []
            trace.y = []
            fig.layout.shapes = ()
        else:
            trace.x = [p.x for p in result.points]
            trace.y = [p.y for p in result.points]
            trace.name = result.expression or "y"
            fig.layout.shapes = asymptote_shapes(result.asymptotes)
        fig.layout.xaxis.range = list(viewport.x_range)
        fig.layout.yaxis.range = list(viewport.y_range)
    return fig
