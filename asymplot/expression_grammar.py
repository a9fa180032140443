"""Plain-text math grammar that builds SymPy expression trees.

Purpose
-------
Parse formulas written in conventional calculator notation (``tan(2x+1)``,
``x^2 - 3x``, ``2 sin(x)``) into SymPy expressions without going through
``eval``. The grammar is a small LALR grammar compiled by ``lark``; a
transformer turns the parse tree into SymPy objects.

Concepts and structure
----------------------
- Trees are built with ``evaluate=False`` so the expression keeps the shape
  the user typed. ``tan(-x)`` stays a ``tan`` call instead of being folded
  into ``-tan(x)``; the asymptote detector relies on that.
- Implicit multiplication binds like explicit ``*``: ``2x^2`` is
  ``2*(x**2)`` and ``(x+1)(x-1)`` is a product.
- ``^`` and ``**`` are right-associative and bind tighter than unary minus,
  so ``-x^2`` is ``-(x**2)``.
- Only names listed in :data:`FUNCTIONS` may be called. Any other name
  followed by parentheses is a factor: ``x(x+1)`` is ``x*(x+1)``.

Examples
--------
>>> from asymplot.expression_grammar import parse_expression
>>> parse_expression("2x + 1")  # doctest: +SKIP
2*x + 1
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Sequence

import sympy as sp
from lark import Lark, Transformer, v_args
from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken, VisitError

__all__ = [
    "X",
    "FUNCTIONS",
    "CONSTANTS",
    "ExpressionError",
    "ExpressionParseError",
    "parse_expression",
]


class ExpressionError(ValueError):
    """Base class for errors raised while turning user text into an expression."""


class ExpressionParseError(ExpressionError):
    """Raised when a formula is not valid in the supported grammar."""


#: The independent variable of every plotted expression.
X = sp.Symbol("x")

CONSTANTS: Dict[str, sp.Expr] = {
    "x": X,
    "pi": sp.pi,
    "π": sp.pi,
    "e": sp.E,
}


def _unary(func: Callable[..., sp.Expr]) -> Callable[[Sequence[sp.Expr]], sp.Expr]:
    def build(args: Sequence[sp.Expr]) -> sp.Expr:
        (arg,) = args
        return func(arg, evaluate=False)

    build.arity = (1,)  # type: ignore[attr-defined]
    return build


def _ratio(num: sp.Expr, den: sp.Expr) -> sp.Expr:
    return sp.Mul(num, sp.Pow(den, sp.S.NegativeOne, evaluate=False), evaluate=False)


def _log(args: Sequence[sp.Expr]) -> sp.Expr:
    if len(args) == 1:
        return sp.log(args[0], evaluate=False)
    value, base = args
    return _ratio(sp.log(value, evaluate=False), sp.log(base, evaluate=False))


_log.arity = (1, 2)  # type: ignore[attr-defined]


def _log_base(base: int) -> Callable[[Sequence[sp.Expr]], sp.Expr]:
    def build(args: Sequence[sp.Expr]) -> sp.Expr:
        (arg,) = args
        return _ratio(sp.log(arg, evaluate=False), sp.log(sp.Integer(base), evaluate=False))

    build.arity = (1,)  # type: ignore[attr-defined]
    return build


#: Callable names accepted by the grammar, mapped to tree builders.
FUNCTIONS: Dict[str, Callable[[Sequence[sp.Expr]], sp.Expr]] = {
    "sin": _unary(sp.sin),
    "cos": _unary(sp.cos),
    "tan": _unary(sp.tan),
    "cot": _unary(sp.cot),
    "sec": _unary(sp.sec),
    "csc": _unary(sp.csc),
    "asin": _unary(sp.asin),
    "acos": _unary(sp.acos),
    "atan": _unary(sp.atan),
    "arcsin": _unary(sp.asin),
    "arccos": _unary(sp.acos),
    "arctan": _unary(sp.atan),
    "sinh": _unary(sp.sinh),
    "cosh": _unary(sp.cosh),
    "tanh": _unary(sp.tanh),
    "exp": _unary(sp.exp),
    "sqrt": _unary(sp.sqrt),
    "abs": _unary(sp.Abs),
    "ln": _unary(sp.log),
    "log": _log,
    "log10": _log_base(10),
    "log2": _log_base(2),
}


# Longest names first so the regex alternation never stops at a prefix.
_FUNC_PATTERN = "|".join(sorted(FUNCTIONS, key=len, reverse=True))

_GRAMMAR = rf"""
?start: sum

?sum: product
    | sum "+" product      -> add
    | sum "-" product      -> sub

?product: signed
    | product "*" signed   -> mul
    | product "/" signed   -> div
    | product power        -> mul

?signed: power
    | "-" signed           -> neg
    | "+" signed

?power: atom
    | atom _POW signed     -> pow

?atom: NUMBER              -> number
    | NAME                 -> name
    | FUNC "(" sum ("," sum)* ")"  -> call
    | "(" sum ")"

_POW: "^" | "**"
FUNC.2: /(?:{_FUNC_PATTERN})(?=\s*\()/
NAME: /[A-Za-z_π][A-Za-z0-9_]*/
NUMBER: /(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?/

%import common.WS
%ignore WS
"""


@v_args(inline=True)
class _SympyBuilder(Transformer):
    """Turn parse-tree nodes into unevaluated SymPy expressions."""

    def number(self, token: Any) -> sp.Expr:
        text = str(token)
        if text.isdigit():
            return sp.Integer(text)
        return sp.Float(text)

    def name(self, token: Any) -> sp.Expr:
        text = str(token)
        # Unknown names survive as symbols and are rejected by the compiler.
        return CONSTANTS.get(text, sp.Symbol(text))

    def add(self, left: sp.Expr, right: sp.Expr) -> sp.Expr:
        return sp.Add(left, right, evaluate=False)

    def sub(self, left: sp.Expr, right: sp.Expr) -> sp.Expr:
        return sp.Add(left, self.neg(right), evaluate=False)

    def mul(self, left: sp.Expr, right: sp.Expr) -> sp.Expr:
        return sp.Mul(left, right, evaluate=False)

    def div(self, left: sp.Expr, right: sp.Expr) -> sp.Expr:
        return _ratio(left, right)

    def neg(self, operand: sp.Expr) -> sp.Expr:
        if isinstance(operand, sp.Number):
            return -operand
        return sp.Mul(sp.S.NegativeOne, operand, evaluate=False)

    def pow(self, base: sp.Expr, exponent: sp.Expr) -> sp.Expr:
        return sp.Pow(base, exponent, evaluate=False)

    def call(self, func_token: Any, *args: sp.Expr) -> sp.Expr:
        name = str(func_token)
        builder = FUNCTIONS[name]
        arity = getattr(builder, "arity", (1,))
        if len(args) not in arity:
            expected = " or ".join(str(n) for n in arity)
            raise ExpressionParseError(
                f"{name}() takes {expected} argument(s), got {len(args)}"
            )
        return builder(args)


_PARSER = Lark(_GRAMMAR, parser="lalr", maybe_placeholders=False)


def _describe(err: UnexpectedInput, text: str) -> str:
    if isinstance(err, UnexpectedEOF) or (
        isinstance(err, UnexpectedToken) and err.token.type == "$END"
    ):
        return "Unexpected end of expression"
    column = getattr(err, "column", None)
    if isinstance(err, UnexpectedCharacters):
        return f"Unexpected character {text[err.pos_in_stream]!r} at column {column}"
    if isinstance(err, UnexpectedToken):
        return f"Unexpected {str(err.token)!r} at column {column}"
    return f"Invalid expression at column {column}"


def parse_expression(text: str) -> sp.Expr:
    """Parse plain-text math into an unevaluated SymPy expression.

    Parameters
    ----------
    text : str
        Formula in calculator notation, for example ``"tan(2x+1)"``.

    Returns
    -------
    sympy.Expr
        Expression tree in terms of :data:`X`. Names that are neither
        ``x`` nor a known constant are returned as plain symbols.

    Raises
    ------
    ExpressionParseError
        If ``text`` is empty, syntactically invalid, or calls a function with
        the wrong number of arguments.
    """
    if not isinstance(text, str):
        raise TypeError(f"parse_expression expects a string, got {type(text).__name__}")
    if not text.strip():
        raise ExpressionParseError("Expression is empty")

    try:
        tree = _PARSER.parse(text)
    except UnexpectedInput as err:
        raise ExpressionParseError(_describe(err, text)) from err

    try:
        return _SympyBuilder().transform(tree)
    except VisitError as err:
        if isinstance(err.orig_exc, ExpressionError):
            raise err.orig_exc from None
        raise
