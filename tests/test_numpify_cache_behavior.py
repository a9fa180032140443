from __future__ import annotations

import math

import numpy as np
import pytest
import sympy as sp

from asymplot.numpify import DEFAULT_FUNCTION_BINDINGS, numpify, numpify_cached


def test_numpify_uses_cache_by_default() -> None:
    x = sp.Symbol("x")
    numpify_cached.cache_clear()

    f1 = numpify(x + 1, vars=x)
    f2 = numpify(x + 1, vars=x)

    assert f1 is f2
    assert numpify_cached.cache_info().hits >= 1


def test_numpify_cache_false_forces_recompile() -> None:
    x = sp.Symbol("x")

    f1 = numpify(x + 1, vars=x, cache=False)
    f2 = numpify(x + 1, vars=x, cache=False)

    assert f1 is not f2


def test_reciprocal_trig_bindings_are_vectorized() -> None:
    x = sp.Symbol("x")
    xs = np.array([math.pi / 4, math.pi / 3])
    np.testing.assert_allclose(numpify(sp.cot(x), vars=x)(xs), 1 / np.tan(xs))
    np.testing.assert_allclose(numpify(sp.sec(x), vars=x)(xs), 1 / np.cos(xs))
    np.testing.assert_allclose(numpify(sp.csc(x), vars=x)(xs), 1 / np.sin(xs))
    assert set(DEFAULT_FUNCTION_BINDINGS) == {"cot", "sec", "csc"}


def test_unbound_function_is_reported() -> None:
    x = sp.Symbol("x")
    G = sp.Function("G")
    with pytest.raises(ValueError, match="without a NumPy implementation: G"):
        numpify(G(x), vars=x, cache=False)


def test_user_binding_resolves_unknown_function() -> None:
    x = sp.Symbol("x")
    G = sp.Function("G")
    f = numpify(G(x), vars=x, f_numpy={"G": lambda v: 2 * v}, cache=False)
    assert float(f(3.0)) == 6.0


def test_symbols_outside_vars_are_rejected() -> None:
    x, a = sp.symbols("x a")
    with pytest.raises(ValueError, match="unbound symbols: a"):
        numpify(a * x, vars=x, cache=False)


def test_keyword_symbol_names_are_mangled() -> None:
    lam = sp.Symbol("lambda")
    dash = sp.Symbol("x-y")
    f = numpify(lam + dash, vars=(lam, dash), cache=False)
    assert f.var_names[0] == "lambda__"
    assert f.var_names[1].isidentifier()
    assert float(f(1.0, 2.0)) == 3.0


def test_wrong_argument_count_raises_type_error() -> None:
    x = sp.Symbol("x")
    f = numpify(x + 1, vars=x, cache=False)
    with pytest.raises(TypeError, match="Expected 1 positional"):
        f(1.0, 2.0)


def test_integer_inputs_are_evaluated_as_floats() -> None:
    x = sp.Symbol("x")
    f = numpify(x ** -1, vars=x, cache=False)
    assert float(f(2)) == 0.5


def test_constant_broadcasts_to_argument_shape() -> None:
    x = sp.Symbol("x")
    out = numpify(sp.Integer(5), vars=x, cache=False)(np.zeros((2, 3)))
    assert out.shape == (2, 3)
    assert np.all(out == 5.0)


def test_no_vars_constant_expression() -> None:
    assert float(numpify(sp.pi / 2, vars=(), cache=False)()) == pytest.approx(math.pi / 2)


def test_integer_literals_are_emitted_as_floats() -> None:
    x = sp.Symbol("x")
    expr = sp.Pow(sp.Integer(9), sp.Pow(sp.Integer(9), sp.Integer(9), evaluate=False), evaluate=False)
    f = numpify(sp.Add(expr, x, evaluate=False), vars=x, cache=False)
    assert "9.0" in f.source
    with pytest.raises(OverflowError):
        f(0.0)


def test_integer_literal_beyond_float_range_prints_as_infinity() -> None:
    x = sp.Symbol("x")
    f = numpify(sp.Mul(sp.Integer(10) ** 400, x, evaluate=False), vars=x, cache=False)
    assert "numpy.inf" in f.source
    assert math.isinf(float(f(1.0)))
