# === SECTION: InputConvert [id: InputConvert]===
from __future__ import annotations

import math
from typing import Any, Type, TypeVar

import numpy as np

from .expression_grammar import ExpressionError, parse_expression
from .numpify import numpify_cached

T = TypeVar("T", int, float)


def InputConvert(obj: Any, dest_type: Type[T] = float, truncate: bool = True) -> T:
    """
    Convert `obj` (a viewport bound, a sample count) to `dest_type`.

    Supported destination types:
    - float
    - int

    Rules:
    - If `obj` is a real number: cast via dest_type(obj).
    - If `obj` is a string:
        1) try float(s)
        2) else parse it with the plotting grammar as a constant expression
           ("2pi", "-pi/2", "sqrt(2)") and evaluate it numerically.

    Truncation Rules (`truncate`):
    - When converting Float -> Int:
        - If `truncate=True`: Truncate decimal part (e.g., 3.9 -> 3).
        - If `truncate=False`: Require exact integer (e.g., 3.0 -> 3, 3.1 -> Error).

    Raises
    ------
    NotImplementedError
        If dest_type is unsupported.
    ValueError
        If conversion fails, the string depends on `x`, or the value is not
        real.
    """
    if dest_type not in (float, int):
        raise NotImplementedError(
            f"Unsupported destination type: {dest_type!r}. Only float and int are supported."
        )

    def _coerce_real(r_val: float) -> T:
        if dest_type is float:
            return float(r_val)  # type: ignore[return-value]

        if not math.isfinite(r_val):
            raise ValueError(f"Could not convert {r_val!r} to int: value is not finite.")
        if not float(r_val).is_integer():
            if not truncate:
                raise ValueError(
                    f"Could not convert {obj!r} to int: value is not an exact integer."
                )
        return int(r_val)  # type: ignore[return-value]

    if isinstance(obj, bool):
        raise ValueError(f"Could not convert {obj!r} to {dest_type.__name__}.")

    # Fast path: real numeric types (NumPy scalars included)
    if isinstance(obj, (int, float, np.integer, np.floating)):
        return _coerce_real(float(obj))

    if isinstance(obj, str):
        s = obj.strip()
        if s == "":
            raise ValueError(f"Cannot convert empty string to {dest_type.__name__}.")

        # 1) Plain native conversion
        try:
            return _coerce_real(float(s))
        except ValueError:
            pass

        # 2) Constant expression path
        try:
            expr = parse_expression(s)
        except ExpressionError as e:
            raise ValueError(f"Could not convert {obj!r} to {dest_type.__name__}: {e}") from e
        if expr.free_symbols:
            names = ", ".join(sorted(sym.name for sym in expr.free_symbols))
            raise ValueError(
                f"Could not convert {obj!r} to {dest_type.__name__}: expression depends on {names}."
            )
        try:
            with np.errstate(all="ignore"):
                value = complex(np.asarray(numpify_cached(expr, vars=())()))
        except (ArithmeticError, TypeError, NotImplementedError) as e:
            raise ValueError(f"Could not convert {obj!r} to {dest_type.__name__}: {e}") from e
        if value.imag != 0:
            raise ValueError(f"Could not convert non-real {obj!r} to {dest_type.__name__}.")
        return _coerce_real(value.real)

    raise ValueError(f"Could not convert {obj!r} to {dest_type.__name__}.")

# === END OF SECTION: InputConvert [id: InputConvert]===
