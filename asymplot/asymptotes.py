"""Closed-form vertical asymptotes for ``tan``/``cot``/``sec``/``csc`` of ``a*x + b``.

Sampling alone draws near-vertical segments across the poles of the
reciprocal trigonometric functions. When the whole expression is one call to
``tan``, ``cot``, ``sec`` or ``csc`` and its argument is affine in ``x``, the
pole locations are solved exactly:

- ``tan``/``sec`` are undefined where the argument is ``pi/2 + k*pi``,
- ``cot``/``csc`` are undefined where the argument is ``k*pi``.

Any other shape (sums, products, other functions, a non-affine argument)
yields no asymptotes. This is a narrow special case, not a
discontinuity finder.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, List, Optional, Tuple

import numpy as np
import sympy as sp

from .expression_grammar import X
from .numpify import numpify_cached

__all__ = [
    "LINEARITY_TOLERANCE",
    "MAX_CROSSINGS",
    "POLE_SPECS",
    "affine_coefficients",
    "find_asymptotes",
]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

#: Absolute tolerance for the affine check and the zero-slope check.
LINEARITY_TOLERANCE = 1e-10

#: Largest number of candidate poles enumerated for one viewport.
MAX_CROSSINGS = 100_000

#: Pole offset and period of each supported function, in argument space.
POLE_SPECS: dict[type, Tuple[float, float]] = {
    sp.tan: (math.pi / 2, math.pi),
    sp.sec: (math.pi / 2, math.pi),
    sp.cot: (0.0, math.pi),
    sp.csc: (0.0, math.pi),
}


def _pole_spec(expr: sp.Basic) -> Optional[Tuple[float, float]]:
    spec = POLE_SPECS.get(type(expr))
    if spec is None or len(expr.args) != 1:
        return None
    return spec


def _argument_evaluator(arg: sp.Basic, var: sp.Symbol) -> Optional[Callable[[float], float]]:
    if arg.free_symbols - {var}:
        return None
    try:
        numeric = numpify_cached(arg, vars=(var,))
    except (TypeError, ValueError) as exc:
        logger.debug("argument %s is not compilable: %s", arg, exc)
        return None

    def evaluate(value: float) -> float:
        with np.errstate(all="ignore"):
            result = np.asarray(numeric(value))
        if np.iscomplexobj(result):
            return math.nan
        return float(result)

    return evaluate


def affine_coefficients(
    g: Callable[[float], float],
    *,
    tolerance: float = LINEARITY_TOLERANCE,
) -> Optional[Tuple[float, float]]:
    """Return ``(a, b)`` with ``g(x) == a*x + b``, or ``None``.

    ``g`` is probed at 0, 1 and 2: ``b = g(0)``, ``a = g(1) - g(0)``, and
    ``g(2)`` must equal ``2a + b`` within ``tolerance``. A slope within
    ``tolerance`` of zero (constant argument) also gives ``None``.
    """
    try:
        g0, g1, g2 = g(0.0), g(1.0), g(2.0)
    except Exception as exc:
        logger.debug("argument probe failed: %s", exc)
        return None
    if not all(math.isfinite(v) for v in (g0, g1, g2)):
        return None
    b = g0
    a = g1 - g0
    if abs(g2 - (a * 2 + b)) > tolerance:
        return None
    if abs(a) < tolerance:
        return None
    return a, b


def find_asymptotes(
    expr: sp.Basic,
    x_min: float,
    x_max: float,
    *,
    var: sp.Symbol = X,
) -> List[float]:
    """Return the sorted x positions of the vertical asymptotes in ``[x_min, x_max]``.

    Parameters
    ----------
    expr : sympy.Basic
        Parsed expression. Only a top-level ``tan``/``cot``/``sec``/``csc``
        call qualifies.
    x_min, x_max : float
        Viewport x bounds.
    var : sympy.Symbol, optional
        Independent variable, ``x`` by default.

    Returns
    -------
    list[float]
        Ascending asymptote x values; empty when the expression shape or the
        affine check does not apply. Never raises for an unsupported shape.

    Examples
    --------
    >>> import sympy as sp
    >>> from asymplot.expression_grammar import X
    >>> [round(v, 6) for v in find_asymptotes(sp.cot(X), -4, 4)]
    [-3.141593, 0.0, 3.141593]
    """
    spec = _pole_spec(expr)
    if spec is None:
        return []
    offset, period = spec

    g = _argument_evaluator(expr.args[0], var)
    if g is None:
        return []
    coefficients = affine_coefficients(g)
    if coefficients is None:
        return []
    a, b = coefficients

    lo_arg, hi_arg = g(float(x_min)), g(float(x_max))
    if not (math.isfinite(lo_arg) and math.isfinite(hi_arg)):
        return []
    min_arg, max_arg = min(lo_arg, hi_arg), max(lo_arg, hi_arg)

    k_start = math.floor((min_arg - offset) / period)
    k_end = math.ceil((max_arg - offset) / period)
    if k_end - k_start > MAX_CROSSINGS:
        logger.warning(
            "%s: %d candidate asymptotes in [%g, %g]; skipping asymptote markers",
            expr,
            k_end - k_start + 1,
            x_min,
            x_max,
        )
        return []

    asymptotes: List[float] = []
    for k in range(k_start, k_end + 1):
        x = (offset + k * period - b) / a
        if x_min <= x <= x_max:
            asymptotes.append(x)
    asymptotes.sort()
    logger.debug("%s: %d asymptote(s) in [%g, %g]", expr, len(asymptotes), x_min, x_max)
    return asymptotes
