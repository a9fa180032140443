"""LaTeX parsing helpers with backend fallback for math-field input.

Formulas typed into a WYSIWYG math field arrive as LaTeX
(``\\tan\\left(2x+1\\right)``, ``x^{2}``, ``\\frac{1}{x}``). This module strips
the editor-only markup, then parses with SymPy's ``lark`` backend and falls
back to ``antlr`` when necessary.
"""

from __future__ import annotations

import re
from typing import Any

import sympy as sp
from sympy import Basic

from sympy.parsing.latex import parse_latex as _sympy_parse_latex

from .expression_grammar import ExpressionError

__all__ = ["LatexParseError", "normalize_latex", "parse_latex"]


class LatexParseError(ExpressionError):
    """Raised when both configured SymPy LaTeX backends fail to parse input."""


_SIZING = re.compile(r"\\(?:left|right|big|Big|bigg|Bigg)(?![A-Za-z])")
_OPERATORNAME = re.compile(r"\\operatorname\{([A-Za-z]+)\}")
_SPACING = re.compile(r"\\[,;:! ]")


def normalize_latex(tex: str) -> str:
    """Remove math-field markup that carries no mathematical meaning.

    ``\\left``/``\\right`` sizing, ``\\operatorname{cot}`` wrappers and thin
    spaces are rewritten so both SymPy backends accept the text.

    >>> normalize_latex(r"\\tan\\left(2x+1\\right)")
    '\\\\tan(2x+1)'
    """
    out = _SIZING.sub("", tex)
    out = _OPERATORNAME.sub(lambda m: "\\" + m.group(1), out)
    out = _SPACING.sub(" ", out)
    return out.strip()


def parse_latex(tex: str, *args: Any, **kwargs: Any):
    """Parse a LaTeX string into a SymPy expression with backend fallback.

    Parameters
    ----------
    tex : str
        LaTeX input expression.
    *args : Any
        Positional arguments forwarded to SymPy's parser.
    **kwargs : Any
        Keyword arguments forwarded to SymPy's parser. If ``backend`` is
        supplied explicitly, the fallback flow is bypassed.

    Returns
    -------
    sympy.Basic
        Parsed symbolic expression, built with evaluation disabled so the
        typed shape survives. A free ``e`` is read as Euler's number.

    Raises
    ------
    LatexParseError
        If fallback mode is active and both ``lark`` and ``antlr`` fail.

    Examples
    --------
    >>> parse_latex(r"x^{2} + 1")  # doctest: +SKIP
    x**2 + 1
    >>> parse_latex(r"\\frac{1}{x}", backend="antlr")  # doctest: +SKIP
    1/x

    See Also
    --------
    sympy.parsing.latex.parse_latex
        Underlying SymPy parser wrapped by this helper.
    """
    tex = normalize_latex(tex)
    backend = kwargs.get("backend", None)

    if backend is not None:
        return _parse_unevaluated(tex, *args, **kwargs)

    lark_err = None
    try:
        return _parse_unevaluated(tex, *args, backend="lark", **kwargs)
    except Exception as e:
        lark_err = e

    try:
        return _parse_unevaluated(tex, *args, backend="antlr", **kwargs)
    except Exception as antlr_err:
        raise LatexParseError(
            "Failed to parse LaTeX with both backends.\n"
            f"Input: {tex!r}\n"
            f"Lark error: {type(lark_err).__name__}: {lark_err}\n"
            f"ANTLR error: {type(antlr_err).__name__}: {antlr_err}"
        ) from antlr_err


def _parse_unevaluated(tex: str, *args: Any, **kwargs: Any) -> Basic:
    # Unevaluated, so `\tan(-x)` keeps its top-level `tan` instead of `-tan(x)`.
    with sp.evaluate(False):
        result = _sympy_parse_latex(tex, *args, **kwargs)
        if not isinstance(result, Basic):
            raise TypeError(
                f"{kwargs.get('backend', 'sympy')} backend returned non-SymPy result "
                f"({type(result).__name__})"
            )
        return _with_euler(result)


def _with_euler(expr: Basic) -> Basic:
    euler = sp.Symbol("e")
    if euler in expr.free_symbols:
        return expr.xreplace({euler: sp.E})
    return expr
