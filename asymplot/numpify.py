"""
numpify: Compile SymPy expressions to NumPy-callable Python functions
====================================================================

Purpose
-------
Turn a parsed SymPy expression into a callable that evaluates with NumPy, so a
formula is parsed once and then evaluated on a whole sampling grid in one
vectorized call.

The generated source is produced by SymPy's :class:`NumPyPrinter` from the
expression *tree*; user text never reaches the compiler, only trees built by
:mod:`asymplot.expression_grammar` or the LaTeX front end.

Public API
----------
- :func:`numpify`
- :func:`numpify_cached`
- :class:`NumpifiedFunction`

Reciprocal trigonometric functions
----------------------------------
SymPy's NumPy printer has no translation for ``cot``, ``sec`` and ``csc``. The
printer is configured with ``allow_unknown_functions`` so those print as bare
calls (``cot(x)``), and :data:`DEFAULT_FUNCTION_BINDINGS` supplies the NumPy
implementations at runtime. Extra bindings can be passed with ``f_numpy``.

If a bare call remains unbound, :func:`numpify` raises a clear error before
code generation.

Examples
--------
>>> import numpy as np
>>> import sympy as sp
>>> from asymplot.numpify import numpify
>>> x = sp.Symbol("x")
>>> f = numpify(sp.cot(x), vars=x)
>>> round(float(f(np.pi / 4)), 12)
1.0

Constants broadcast against the argument:

>>> numpify(sp.Integer(5), vars=x)(np.array([1, 2, 3]))
array([5., 5., 5.])

Logging
-------
This module uses Python's standard :mod:`logging` library and is silent by
default. Compile timings and cache misses are logged at DEBUG level:

>>> import logging
>>> logging.getLogger("asymplot.numpify").setLevel(logging.DEBUG)  # doctest: +SKIP
"""

from __future__ import annotations

from functools import lru_cache
import builtins
import keyword

import logging
import time
import textwrap
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple, Union, cast

import numpy as np
import sympy as sp
from sympy.core.function import FunctionClass
from sympy.printing.numpy import NumPyPrinter


__all__ = [
    "numpify",
    "numpify_cached",
    "NumpifiedFunction",
    "DEFAULT_FUNCTION_BINDINGS",
]


logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


_FuncBindingKey = Union[str, FunctionClass, sp.Function]
_FuncBindings = Dict[str, Callable[..., Any]]


def _cot(value: Any) -> Any:
    return 1.0 / np.tan(value)


def _sec(value: Any) -> Any:
    return 1.0 / np.cos(value)


def _csc(value: Any) -> Any:
    return 1.0 / np.sin(value)


#: NumPy implementations for functions the NumPy printer leaves as bare calls.
DEFAULT_FUNCTION_BINDINGS: Mapping[str, Callable[..., Any]] = {
    "cot": _cot,
    "sec": _sec,
    "csc": _csc,
}


class _FloatLiteralPrinter(NumPyPrinter):
    """NumPy printer that writes integer literals as floats.

    Constant subexpressions then run in float arithmetic: ``9**9**9`` fails
    fast with ``OverflowError`` instead of building an exact integer.
    """

    def _print_Integer(self, expr: sp.Integer) -> str:
        try:
            return repr(float(expr.p))
        except OverflowError:
            return "numpy.inf" if expr.p > 0 else "(-numpy.inf)"


class NumpifiedFunction:
    """Compiled SymPy->NumPy callable plus the metadata it was built from."""

    __slots__ = (
        "_fn",
        "symbolic",
        "call_signature",
        "source",
    )

    def __init__(
        self,
        fn: Callable[..., Any],
        symbolic: sp.Basic,
        call_signature: tuple[tuple[sp.Symbol, str], ...],
        source: str,
    ) -> None:
        self._fn = fn
        self.symbolic = symbolic
        self.call_signature = call_signature
        self.source = source

    def __call__(self, *positional_args: Any) -> Any:
        if len(positional_args) != len(self.call_signature):
            raise TypeError(
                f"Expected {len(self.call_signature)} positional argument(s) "
                f"({', '.join(self.var_names)}), got {len(positional_args)}"
            )
        return self._fn(*positional_args)

    @property
    def vars(self) -> tuple[sp.Symbol, ...]:
        return tuple(sym for sym, _ in self.call_signature)

    @property
    def var_names(self) -> tuple[str, ...]:
        return tuple(name for _, name in self.call_signature)

    def __repr__(self) -> str:
        vars_str = ", ".join(self.var_names)
        return f"NumpifiedFunction({self.symbolic!r}, vars=({vars_str}))"


def numpify(
    expr: Any,
    *,
    vars: Optional[Union[sp.Symbol, Iterable[sp.Symbol]]] = None,
    f_numpy: Optional[Mapping[_FuncBindingKey, Callable[..., Any]]] = None,
    cache: bool = True,
) -> NumpifiedFunction:
    """Compile a SymPy expression into a NumPy-evaluable function.

    By default this uses the same LRU-backed cache as :func:`numpify_cached`.
    Pass ``cache=False`` to force a fresh compile.
    """
    if cache:
        return numpify_cached(expr, vars=vars, f_numpy=f_numpy)
    return _numpify_uncached(expr, vars=vars, f_numpy=f_numpy)


def _is_valid_parameter_name(name: str) -> bool:
    return bool(name) and name.isidentifier() and not keyword.iskeyword(name)


def _mangle_base_name(name: str) -> str:
    cleaned = "".join(ch if (ch == "_" or ch.isalnum()) else "_" for ch in name)
    if not cleaned or cleaned[0].isdigit():
        cleaned = f"_{cleaned}"
    if keyword.iskeyword(cleaned):
        cleaned = f"{cleaned}__"
    return cleaned


def _build_call_signature(vars_tuple: tuple[sp.Symbol, ...], reserved_names: set[str]) -> tuple[tuple[sp.Symbol, str], ...]:
    used = set(reserved_names)
    out: list[tuple[sp.Symbol, str]] = []
    for sym in vars_tuple:
        base = sym.name if _is_valid_parameter_name(sym.name) else _mangle_base_name(sym.name)
        candidate = base
        suffix = 0
        while candidate in used or not _is_valid_parameter_name(candidate):
            candidate = f"{base}__{suffix}"
            suffix += 1
        used.add(candidate)
        out.append((sym, candidate))
    return tuple(out)


def _numpify_uncached(
    expr: Any,
    *,
    vars: Optional[Union[sp.Symbol, Iterable[sp.Symbol]]] = None,
    f_numpy: Optional[Mapping[_FuncBindingKey, Callable[..., Any]]] = None,
) -> NumpifiedFunction:
    """Compile a SymPy expression into a NumPy-evaluable Python function (uncached).

    Parameters
    ----------
    expr:
        A SymPy expression. Unevaluated trees are compiled as they stand.
    vars:
        Symbols treated as *positional arguments* of the compiled function.

        - If None (default), uses all free symbols of ``expr`` sorted by ``sympy.default_sort_key``.
        - If a single Symbol, that symbol is the only argument.
        - If an iterable, argument order is preserved.

    f_numpy:
        Extra bindings from function names (or SymPy function classes) to
        NumPy-callable implementations. They take precedence over
        :data:`DEFAULT_FUNCTION_BINDINGS`.

    Returns
    -------
    NumpifiedFunction
        A generated callable wrapper with expression metadata and source text.
        Every argument is converted with ``numpy.asarray(..., dtype=float)``
        so integer inputs never hit integer-power errors.

    Raises
    ------
    TypeError
        If ``expr`` is not a SymPy expression, ``vars`` is malformed, or a
        binding is not callable.
    ValueError
        If ``expr`` contains symbols outside ``vars`` or unbound unknown functions.
    """
    # 1) Normalize expr to SymPy.
    if not isinstance(expr, sp.Basic):
        try:
            expr = sp.sympify(expr, strict=True)
        except (sp.SympifyError, TypeError) as e:
            raise TypeError(f"numpify expects a SymPy expression, got {type(expr)}") from e
    expr = cast(sp.Basic, expr)

    # 2) Normalize vars.
    vars_tuple = _normalize_vars(expr, vars)

    log_debug = logger.isEnabledFor(logging.DEBUG)
    t_total0: float | None = time.perf_counter() if log_debug else None
    if log_debug:
        logger.debug("numpify: vars=%s expr=%s", [a.name for a in vars_tuple], expr)

    # 3) Resolve function bindings.
    func_bindings = _parse_bindings(f_numpy)

    # 4) Every free symbol must be an argument.
    missing_names = {s.name for s in expr.free_symbols} - {a.name for a in vars_tuple}
    if missing_names:
        missing_str = ", ".join(sorted(missing_names))
        vars_str = ", ".join(a.name for a in vars_tuple)
        raise ValueError(
            f"Expression contains unbound symbols: {missing_str}. Expected only vars=({vars_str})."
        )

    # 5) Allow unknown functions to print as plain calls, then require bindings for them.
    printer = _FloatLiteralPrinter(settings={"user_functions": {}, "allow_unknown_functions": True})
    _require_bound_unknown_functions(expr, printer, func_bindings)

    # 6) Build call signature and generate source.
    reserved_names = set(keyword.kwlist) | set(dir(builtins)) | {"numpy", "np"}
    reserved_names |= set(func_bindings.keys())
    call_signature = _build_call_signature(vars_tuple, reserved_names)
    arg_names = [name for _, name in call_signature]
    # Only renamed symbols are replaced; xreplace rebuilds (and evaluates) changed nodes.
    replacement = {sym: sp.Symbol(name) for sym, name in call_signature if sym.name != name}
    expr_codegen = expr.xreplace(replacement)

    t_codegen0: float | None = time.perf_counter() if log_debug else None
    expr_code = printer.doprint(expr_codegen)
    t_codegen_s = (time.perf_counter() - t_codegen0) if t_codegen0 is not None else None
    is_constant = len(expr.free_symbols) == 0

    lines: list[str] = []
    lines.append("def _generated(" + ", ".join(arg_names) + "):")
    for nm in arg_names:
        lines.append(f"    {nm} = numpy.asarray({nm}, dtype=float)")

    if is_constant and arg_names:
        lines.append(f"    _shape = numpy.broadcast({', '.join(arg_names)}).shape")
        lines.append(f"    return ({expr_code}) + numpy.zeros(_shape)")
    else:
        lines.append(f"    return {expr_code}")

    src = "\n".join(lines)

    glb: Dict[str, Any] = {"numpy": np, **func_bindings}
    loc: Dict[str, Any] = {}

    t_exec0: float | None = time.perf_counter() if log_debug else None
    exec(src, glb, loc)
    t_exec_s = (time.perf_counter() - t_exec0) if t_exec0 is not None else None
    fn = cast(Callable[..., Any], loc["_generated"])

    fn.__doc__ = textwrap.dedent(
        f"""
        Auto-generated NumPy function from SymPy expression.

        expr: {expr!r}
        vars: {arg_names}
        """
    ).strip()

    if log_debug:
        t_total_s = (time.perf_counter() - t_total0) if t_total0 is not None else None
        logger.debug(
            "numpify timings (ms): codegen=%.2f exec=%.2f total=%.2f",
            1000.0 * (t_codegen_s or 0.0),
            1000.0 * (t_exec_s or 0.0),
            1000.0 * (t_total_s or 0.0),
        )

    return NumpifiedFunction(fn=fn, symbolic=expr, call_signature=call_signature, source=src)


def _normalize_vars(expr: sp.Basic, vars: Optional[Union[sp.Symbol, Iterable[sp.Symbol]]]) -> Tuple[sp.Symbol, ...]:
    """Normalize vars into a tuple of SymPy Symbols."""
    if vars is None:
        return tuple(sorted(expr.free_symbols, key=sp.default_sort_key))

    if isinstance(vars, sp.Symbol):
        return (vars,)

    try:
        vars_tuple = tuple(vars)
    except TypeError as e:
        raise TypeError("vars must be a SymPy Symbol or an iterable of SymPy Symbols") from e

    for a in vars_tuple:
        if not isinstance(a, sp.Symbol):
            raise TypeError(f"vars must contain only SymPy Symbols, got {type(a)}")
    return cast(Tuple[sp.Symbol, ...], vars_tuple)


def _parse_bindings(f_numpy: Optional[Mapping[_FuncBindingKey, Callable[..., Any]]]) -> _FuncBindings:
    """Merge user bindings over the default reciprocal-trig bindings."""
    func_bindings: _FuncBindings = dict(DEFAULT_FUNCTION_BINDINGS)
    if not f_numpy:
        return func_bindings

    for key, value in f_numpy.items():
        if isinstance(key, str):
            name = key
        elif isinstance(key, sp.Function):
            name = key.func.__name__
        elif isinstance(key, FunctionClass):
            name = key.__name__
        else:
            raise TypeError(
                "f_numpy keys must be function names or SymPy function objects/classes. "
                f"Got {type(key)}."
            )
        if not callable(value):
            raise TypeError(f"Function binding for {name} must be callable, got {type(value)}")
        func_bindings[name] = value
    return func_bindings


def _require_bound_unknown_functions(expr: sp.Basic, printer: NumPyPrinter, func_bindings: Mapping[str, Callable[..., Any]]) -> None:
    """Ensure any *bare* printed function calls have runtime bindings."""
    missing: set[str] = set()

    for app in expr.atoms(sp.Function):
        name = app.func.__name__
        try:
            code = printer.doprint(app).strip()
        except Exception:
            continue

        if code.startswith(f"{name}(") and name not in func_bindings:
            missing.add(name)

    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ValueError(
            "Expression contains function(s) without a NumPy implementation: "
            f"{missing_str}. Pass `f_numpy={{name: callable}}` to numpify."
        )


# ---------------------------------------------------------------------------
# Cached compilation
# ---------------------------------------------------------------------------

_NUMPIFY_CACHE_MAXSIZE = 256


class _FrozenFNumPy:
    """Small hashable wrapper around an ``f_numpy`` mapping.

    Bindings are keyed by function name and callable identity, so two
    mappings hit the same cache entry only when they bind the same objects.
    """

    __slots__ = ("mapping", "_key")

    def __init__(self, mapping: Optional[Mapping[_FuncBindingKey, Callable[..., Any]]]):
        self.mapping: dict[_FuncBindingKey, Callable[..., Any]] = {} if mapping is None else dict(mapping)
        self._key = tuple(
            sorted((repr(k), id(v)) for k, v in self.mapping.items())
        )

    def __hash__(self) -> int:  # pragma: no cover
        return hash(self._key)

    def __eq__(self, other: object) -> bool:  # pragma: no cover
        return isinstance(other, _FrozenFNumPy) and self._key == other._key


@lru_cache(maxsize=_NUMPIFY_CACHE_MAXSIZE)
def _numpify_cached_impl(
    expr: sp.Basic,
    vars_tuple: Tuple[sp.Symbol, ...],
    frozen: _FrozenFNumPy,
) -> NumpifiedFunction:
    """Compile an expression on cache misses for :func:`numpify_cached`."""
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("numpify_cached: cache MISS (vars=%s)", [a.name for a in vars_tuple])
    return _numpify_uncached(expr, vars=vars_tuple, f_numpy=frozen.mapping)


def numpify_cached(
    expr: Any,
    *,
    vars: Optional[Union[sp.Symbol, Iterable[sp.Symbol]]] = None,
    f_numpy: Optional[Mapping[_FuncBindingKey, Callable[..., Any]]] = None,
) -> NumpifiedFunction:
    """Cached version of :func:`numpify`.

    Replotting the same formula on a new viewport (zoom, pan) reuses the
    compiled callable instead of regenerating source.

    Cache key
    ---------
    The cache key includes the SymPy expression tree, the normalized vars
    tuple and the identity of every ``f_numpy`` binding.

    Notes
    -----
    Clear the cache via ``numpify_cached.cache_clear()`` or bypass it with
    ``numpify(..., cache=False)``.
    """
    if not isinstance(expr, sp.Basic):
        try:
            expr = sp.sympify(expr, strict=True)
        except (sp.SympifyError, TypeError) as e:
            raise TypeError(f"numpify_cached expects a SymPy expression, got {type(expr)}") from e

    vars_tuple = _normalize_vars(expr, vars)
    frozen = _FrozenFNumPy(f_numpy)

    return _numpify_cached_impl(expr, vars_tuple, frozen)


# Expose cache controls on the public wrapper.
numpify_cached.cache_info = _numpify_cached_impl.cache_info  # type: ignore[attr-defined]
numpify_cached.cache_clear = _numpify_cached_impl.cache_clear  # type: ignore[attr-defined]
