"""Expression compiler: user formula text to an evaluable object.

Purpose
-------
``compile_expression`` is the single entry point the plotting pipeline uses to
turn what the user typed into something it can sample. It picks the front end
(plain-text grammar or LaTeX), checks the result only depends on ``x``, and
compiles it with :func:`asymplot.numpify.numpify_cached`.

Failures are raised as :class:`ExpressionError` subclasses so callers can show
the message inline and keep running.

Examples
--------
>>> from asymplot.expression import compile_expression
>>> f = compile_expression("x^2 + 1")
>>> f.evaluate({"x": 2.0})
5.0
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import sympy as sp

from .expression_grammar import (
    X,
    ExpressionError,
    ExpressionParseError,
    parse_expression,
)
from .numpify import NumpifiedFunction, numpify_cached
from .ParseLaTeX import parse_latex

__all__ = [
    "CompiledExpression",
    "ExpressionError",
    "ExpressionParseError",
    "compile_expression",
    "compile_tree",
    "looks_like_latex",
    "parse_formula",
]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

_SYNTAXES = ("auto", "text", "latex")

# Calculus nodes the LaTeX front end can produce but NumPy cannot evaluate.
_UNSUPPORTED = (sp.Integral, sp.Derivative, sp.Limit, sp.Sum, sp.Product)


def looks_like_latex(text: str) -> bool:
    """Return True when ``text`` carries LaTeX markup (commands or groups)."""
    return "\\" in text or "{" in text


def parse_formula(text: str, *, syntax: str = "auto") -> sp.Expr:
    """Parse ``text`` into a SymPy tree in terms of ``x``.

    Parameters
    ----------
    text : str
        The formula as typed.
    syntax : {"auto", "text", "latex"}
        Front end to use. ``"auto"`` picks LaTeX when :func:`looks_like_latex`
        is true and the plain-text grammar otherwise.

    Raises
    ------
    ExpressionParseError
        If the text cannot be parsed or uses symbols other than ``x``, or
        contains calculus operations (integrals, limits, sums) that cannot be
        sampled.
    LatexParseError
        If the LaTeX front end was selected and both backends fail.
    """
    if syntax not in _SYNTAXES:
        raise ValueError(f"syntax must be one of {_SYNTAXES}, got {syntax!r}")
    if not isinstance(text, str):
        raise TypeError(f"Expected formula text, got {type(text).__name__}")
    if not text.strip():
        raise ExpressionParseError("Expression is empty")

    use_latex = syntax == "latex" or (syntax == "auto" and looks_like_latex(text))
    if use_latex:
        expr = parse_latex(text)
        if not isinstance(expr, sp.Expr):
            raise ExpressionParseError(
                f"LaTeX input did not produce an expression: {type(expr).__name__}"
            )
    else:
        expr = parse_expression(text)

    unsupported = sorted(
        {type(node).__name__ for node in sp.preorder_traversal(expr) if isinstance(node, _UNSUPPORTED)}
    )
    if unsupported:
        raise ExpressionParseError(f"Unsupported operation(s): {', '.join(unsupported)}")

    unknown = sorted(s.name for s in expr.free_symbols if s != X)
    if unknown:
        raise ExpressionParseError(f"Unknown symbol(s): {', '.join(unknown)}")
    return expr


@dataclass(frozen=True)
class CompiledExpression:
    """A parsed formula together with its NumPy implementation.

    Parameters
    ----------
    text : str
        The formula as typed.
    expr : sympy.Expr
        Parsed tree. Owned by the plot pass that compiled it.
    numeric : NumpifiedFunction
        Vectorized callable taking ``x``.
    """

    text: str
    expr: sp.Expr
    numeric: NumpifiedFunction = field(repr=False, compare=False)

    def evaluate(self, scope: Mapping[str, Any]) -> float:
        """Evaluate at one point, e.g. ``evaluate({"x": 0.5})``.

        Non-finite results (``nan``, ``inf``) are returned unchanged.
        Float overflow in constant arithmetic (``9^9^9``) raises
        ``OverflowError``.
        A non-real result comes back as ``nan``.
        """
        try:
            x_value = scope["x"]
        except KeyError:
            raise KeyError("evaluate() scope must provide 'x'") from None
        with np.errstate(all="ignore"):
            value = np.asarray(self.numeric(x_value))
        if np.iscomplexobj(value):
            value = np.where(value.imag == 0, value.real, np.nan)
        return float(value)

    def evaluate_array(self, xs: Any) -> np.ndarray:
        """Evaluate over an array of x values in one vectorized call.

        The result always has the shape of ``xs``; constants are broadcast.
        """
        xs = np.asarray(xs, dtype=float)
        with np.errstate(all="ignore"):
            values = np.asarray(self.numeric(xs))
        return np.broadcast_to(values, xs.shape)


def compile_tree(expr: sp.Expr, *, text: str = "") -> CompiledExpression:
    """Compile an already-parsed tree in terms of ``x``."""
    try:
        numeric = numpify_cached(expr, vars=(X,))
    except (ValueError, NotImplementedError) as err:
        raise ExpressionParseError(str(err) or "Expression cannot be evaluated numerically") from err
    return CompiledExpression(text=text or str(expr), expr=expr, numeric=numeric)


def compile_expression(text: str, *, syntax: str = "auto") -> CompiledExpression:
    """Parse and compile a formula.

    Parameters
    ----------
    text : str
        Formula such as ``"tan(2x+1)"`` or ``r"\\frac{1}{x}"``.
    syntax : {"auto", "text", "latex"}
        Front end selection, see :func:`parse_formula`.

    Returns
    -------
    CompiledExpression

    Raises
    ------
    ExpressionError
        For any parse or compile failure. The message is suitable for display.
    """
    expr = parse_formula(text, syntax=syntax)
    compiled = compile_tree(expr, text=text)
    logger.debug("compiled %r -> %s", text, compiled.numeric.source)
    return compiled
