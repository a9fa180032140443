from __future__ import annotations

import math

import pytest
import sympy as sp

from asymplot.expression_grammar import X, ExpressionParseError, parse_expression


def _value(text: str, x: float = 0) -> float:
    """Evaluate a parsed expression numerically at ``x``."""
    return float(sp.N(parse_expression(text).xreplace({X: sp.Integer(x)})))


@pytest.mark.parametrize(
    ("text", "x", "expected"),
    [
        ("2x + 1", 3, 7.0),
        ("-x^2", 3, -9.0),
        ("2^3^2", 0, 512.0),
        ("2**3", 0, 8.0),
        ("(x+1)(x-1)", 3, 8.0),
        ("3x(x+1)", 2, 18.0),
        ("1/2x", 4, 2.0),
        ("10 - 4 - 3", 0, 3.0),
        ("2 * -x", 3, -6.0),
        ("x - -1", 3, 4.0),
        ("+x", 5, 5.0),
        ("1.5e1 + .5", 0, 15.5),
    ],
)
def test_arithmetic_precedence_and_implicit_multiplication(text: str, x: int, expected: float) -> None:
    assert _value(text, x) == pytest.approx(expected)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("log(8, 2)", 3.0),
        ("ln(e)", 1.0),
        ("log10(1000)", 3.0),
        ("log2(8)", 3.0),
        ("sqrt(16)", 4.0),
        ("abs(-3)", 3.0),
        ("exp(0)", 1.0),
        ("2pi", 2 * math.pi),
        ("π", math.pi),
        ("cos(0) + sin(0)", 1.0),
        ("arctan(1)", math.pi / 4),
    ],
)
def test_named_functions_and_constants(text: str, expected: float) -> None:
    assert _value(text) == pytest.approx(expected)


def test_tree_keeps_the_typed_top_level_call() -> None:
    assert isinstance(parse_expression("tan(-x)"), sp.tan)
    assert isinstance(parse_expression("cot(x + pi/2)"), sp.cot)
    expr = parse_expression("tan(2x+1)")
    assert expr.func is sp.tan
    assert len(expr.args) == 1


def test_function_name_without_parentheses_is_a_plain_name() -> None:
    expr = parse_expression("sin x")
    assert sp.Symbol("sin") in expr.free_symbols


def test_unknown_names_survive_as_symbols() -> None:
    assert parse_expression("y + 1").free_symbols == {sp.Symbol("y")}
    assert parse_expression("x").free_symbols == {X}


@pytest.mark.parametrize("text", ["", "   ", "2+", "sin(x", "2 $ 3", "()", "x^", "*x"])
def test_invalid_text_raises_parse_error(text: str) -> None:
    with pytest.raises(ExpressionParseError):
        parse_expression(text)


def test_wrong_arity_is_reported() -> None:
    with pytest.raises(ExpressionParseError, match="sin\\(\\) takes 1 argument"):
        parse_expression("sin(x, 2)")
    with pytest.raises(ExpressionParseError, match="log\\(\\) takes 1 or 2"):
        parse_expression("log(1, 2, 3)")


def test_unexpected_end_message() -> None:
    with pytest.raises(ExpressionParseError, match="Unexpected end"):
        parse_expression("2 +")


def test_non_string_input_is_a_type_error() -> None:
    with pytest.raises(TypeError):
        parse_expression(42)  # type: ignore[arg-type]
