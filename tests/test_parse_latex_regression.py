from __future__ import annotations

import math
from unittest.mock import patch

import pytest
import sympy as sp

from asymplot.ParseLaTeX import LatexParseError, normalize_latex, parse_latex


def test_parse_latex_falls_back_when_lark_returns_non_sympy() -> None:
    calls: list[str] = []

    def _fake_parse_latex(_tex, *args, backend=None, **kwargs):
        calls.append(backend)
        if backend == "lark":
            return object()
        if backend == "antlr":
            return sp.Symbol("x") + 1
        raise AssertionError("unexpected backend")

    with patch(
        "asymplot.ParseLaTeX._sympy_parse_latex", side_effect=_fake_parse_latex
    ):
        out = parse_latex(r"\frac{1}{2}x")

    assert out == sp.Symbol("x") + 1
    assert calls == ["lark", "antlr"]


def test_parse_latex_reports_both_backend_errors() -> None:
    with patch(
        "asymplot.ParseLaTeX._sympy_parse_latex",
        side_effect=[ValueError("lark says no"), ValueError("antlr says no")],
    ):
        with pytest.raises(LatexParseError, match="both backends") as excinfo:
            parse_latex(r"\frac{1}{")

    message = str(excinfo.value)
    assert "lark says no" in message
    assert "antlr says no" in message


def test_explicit_backend_bypasses_fallback() -> None:
    with patch(
        "asymplot.ParseLaTeX._sympy_parse_latex", return_value=sp.Symbol("x")
    ) as fake:
        parse_latex("x", backend="antlr")
    fake.assert_called_once_with("x", backend="antlr")


def test_free_e_is_read_as_euler_number() -> None:
    x = sp.Symbol("x")
    with patch(
        "asymplot.ParseLaTeX._sympy_parse_latex", return_value=sp.Symbol("e") ** x
    ):
        out = parse_latex("e^{x}")
    assert sp.Symbol("e") not in out.free_symbols
    assert float(out.subs(x, 1)) == pytest.approx(math.e)


def test_latex_parse_error_is_a_value_error() -> None:
    assert issubclass(LatexParseError, ValueError)


@pytest.mark.parametrize(
    ("tex", "expected"),
    [
        (r"\tan\left(2x+1\right)", r"\tan(2x+1)"),
        (r"\operatorname{cot}(x)", r"\cot(x)"),
        (r"\Big(x\Big)", "(x)"),
        (r"x\,+\;1", "x + 1"),
        (r"\leftarrow", r"\leftarrow"),
    ],
)
def test_normalize_latex_strips_editor_markup(tex: str, expected: str) -> None:
    assert normalize_latex(tex) == expected
