"""Math-field LaTeX through the real SymPy backend to the asymptote markers."""

from __future__ import annotations

import math

import pytest
import sympy as sp

from asymplot.expression import compile_expression
from asymplot.function_graph import FunctionGraph, plot_expression


@pytest.mark.parametrize(
    ("tex", "func", "count"),
    [
        (r"\tan\left(2x+1\right)", sp.tan, 13),
        (r"\operatorname{sec}\left(x\right)", sp.sec, 6),
        (r"\csc x", sp.csc, 7),
        (r"\tan\left(-x\right)", sp.tan, 6),
        (r"\csc\left(-x\right)", sp.csc, 7),
    ],
)
def test_math_field_input_keeps_its_asymptotes(tex: str, func: type, count: int) -> None:
    result = plot_expression(tex, -10, 10)
    assert isinstance(result.expr, func)
    assert len(result.asymptotes) == count
    assert list(result.asymptotes) == sorted(result.asymptotes)


def test_negated_argument_mirrors_the_plain_poles() -> None:
    plain = plot_expression(r"\tan\left(x\right)", -10, 10).asymptotes
    negated = plot_expression(r"\tan\left(-x\right)", -10, 10).asymptotes
    assert negated == pytest.approx(plain)


def test_latex_fraction_evaluates() -> None:
    f = compile_expression(r"\frac{1}{x}+1")
    assert f.evaluate({"x": 2.0}) == pytest.approx(1.5)
    assert math.isinf(compile_expression(r"\frac{1}{x}").evaluate({"x": 0.0}))


@pytest.mark.parametrize("tex", [r"\int x dx", r"\lim_{x \to 0} x"])
def test_calculus_input_lands_in_error_state(tex: str) -> None:
    graph = FunctionGraph(tex)
    assert graph.plot() is None
    assert graph.result is None
    assert "Unsupported operation" in graph.error
