"""Top-level public API for the ``asymplot`` package.

This module re-exports the plotting surface so users can import from a single
namespace, for example:

>>> from asymplot import FunctionGraph, plot_expression  # doctest: +SKIP

It exposes both the stateful graph session and the lower-level building
blocks (compiler, sampler, asymptote detector, series assembly) for callers
that drive their own rendering.
"""

from .asymptotes import LINEARITY_TOLERANCE, affine_coefficients, find_asymptotes
from .expression import (
    CompiledExpression,
    compile_expression,
    compile_tree,
    looks_like_latex,
    parse_formula,
)
from .expression_grammar import X, ExpressionError, ExpressionParseError, parse_expression
from .figure_render import build_figure, update_figure
from .function_graph import FunctionGraph, plot_expression
from .graph_store import GraphRecord, GraphStore, GraphStoreError, format_date
from .InputConvert import InputConvert
from .numpify import NumpifiedFunction, numpify, numpify_cached
from .ParseLaTeX import LatexParseError, parse_latex
from .PlotResult import PlotResult
from .sampling import DEFAULT_INTERVALS, SamplePoint, sample_expression, sample_grid
from .series import assemble_series, fit_y_range
from .viewport import Viewport

__all__ = [
    "DEFAULT_INTERVALS",
    "LINEARITY_TOLERANCE",
    "X",
    "CompiledExpression",
    "ExpressionError",
    "ExpressionParseError",
    "FunctionGraph",
    "GraphRecord",
    "GraphStore",
    "GraphStoreError",
    "InputConvert",
    "LatexParseError",
    "NumpifiedFunction",
    "PlotResult",
    "SamplePoint",
    "Viewport",
    "affine_coefficients",
    "assemble_series",
    "build_figure",
    "compile_expression",
    "compile_tree",
    "find_asymptotes",
    "fit_y_range",
    "format_date",
    "looks_like_latex",
    "numpify",
    "numpify_cached",
    "parse_expression",
    "parse_formula",
    "parse_latex",
    "plot_expression",
    "sample_expression",
    "sample_grid",
    "update_figure",
]
