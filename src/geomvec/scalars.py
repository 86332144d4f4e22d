"""Scalar-type model: Python numeric types and JAX dtypes as vector element types."""

from __future__ import annotations

import numbers
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache

import jax
import jax.numpy as jnp
from jax import lax

from .errors import GeomTypeError


class ScalarKind(str, Enum):
    INTEGER = "integer"
    UNSIGNED = "unsigned"
    FLOATING = "floating"


@dataclass(frozen=True)
class ScalarInfo:
    scalar_type: object
    kind: ScalarKind
    name: str
    is_dtype: bool


_PYTHON_SCALAR_TYPES: dict[type, ScalarKind] = {
    int: ScalarKind.INTEGER,
    float: ScalarKind.FLOATING,
}


def normalize_scalar_type(scalar_type: object) -> object:
    """Return the canonical form of a scalar type.

    Python ``int`` and ``float`` are kept as-is. Anything else must be accepted by
    ``jnp.dtype`` and be an ordered numeric dtype; it is canonicalized for the
    active JAX precision mode (``int64`` becomes ``int32`` unless x64 is enabled).
    """
    if scalar_type is bool:
        raise GeomTypeError("bool is not an arithmetic scalar type")
    if isinstance(scalar_type, type) and scalar_type in _PYTHON_SCALAR_TYPES:
        return scalar_type
    try:
        dtype = jnp.dtype(scalar_type)
    except TypeError as err:
        raise GeomTypeError(f"Unsupported scalar type {scalar_type!r}") from err
    if not (jnp.issubdtype(dtype, jnp.integer) or jnp.issubdtype(dtype, jnp.floating)):
        raise GeomTypeError(f"Scalar type must be an ordered numeric dtype, got {dtype}")
    return jax.dtypes.canonicalize_dtype(dtype)


@lru_cache(maxsize=64)
def scalar_info(scalar_type: object) -> ScalarInfo:
    canonical = normalize_scalar_type(scalar_type)
    if isinstance(canonical, type):
        return ScalarInfo(
            scalar_type=canonical,
            kind=_PYTHON_SCALAR_TYPES[canonical],
            name=canonical.__name__,
            is_dtype=False,
        )
    if jnp.issubdtype(canonical, jnp.unsignedinteger):
        kind = ScalarKind.UNSIGNED
    elif jnp.issubdtype(canonical, jnp.integer):
        kind = ScalarKind.INTEGER
    else:
        kind = ScalarKind.FLOATING
    return ScalarInfo(scalar_type=canonical, kind=kind, name=str(canonical), is_dtype=True)


def is_scalar_value(value: object) -> bool:
    if isinstance(value, (str, bytes, bytearray)):
        return False
    ndim = getattr(value, "ndim", None)
    if ndim is not None:
        return ndim == 0
    return isinstance(value, numbers.Number)


def coerce_scalar(value: object, scalar_type: object) -> object:
    """Convert ``value`` to an element of ``scalar_type``.

    Float-to-integer conversion truncates toward zero for both Python ``int`` and
    integer dtypes.
    """
    if not is_scalar_value(value):
        raise GeomTypeError(f"Expected a scalar element, got {type(value).__name__}")
    if scalar_type is int:
        try:
            return int(value)
        except (TypeError, ValueError) as err:
            raise GeomTypeError(f"Cannot convert {value!r} to int") from err
    if scalar_type is float:
        try:
            return float(value)
        except (TypeError, ValueError) as err:
            raise GeomTypeError(f"Cannot convert {value!r} to float") from err
    if isinstance(value, jnp.ndarray) and value.dtype == scalar_type:
        return value
    return jnp.asarray(value, dtype=scalar_type)


def scalar_type_of(value: object) -> object:
    """Infer a scalar type from an element or a rank-1 array."""
    dtype = getattr(value, "dtype", None)
    if dtype is not None:
        return normalize_scalar_type(dtype)
    if isinstance(value, numbers.Integral):
        return int
    if isinstance(value, numbers.Real):
        return float
    raise GeomTypeError(f"Cannot infer a scalar type from {type(value).__name__}")


def widen_to_float(value: object) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as err:
        raise GeomTypeError(f"Cannot widen {value!r} to float") from err


def absolute_difference(lhs, rhs):
    """|lhs - rhs| without calling abs, so unsigned scalars never wrap."""
    return rhs - lhs if lhs < rhs else lhs - rhs


def is_integral_value(value: object) -> bool:
    dtype = getattr(value, "dtype", None)
    if dtype is not None:
        return bool(jnp.issubdtype(dtype, jnp.integer))
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def truncating_divide(lhs, rhs):
    """Integer quotient rounded toward zero, exact at any magnitude.

    Python ints divide their absolute values with ``//``; integer dtypes use
    ``lax.div`` in their common result type, so no float round trip happens.
    """
    if hasattr(lhs, "dtype") or hasattr(rhs, "dtype"):
        dtype = jnp.result_type(lhs, rhs)
        return lax.div(jnp.asarray(lhs, dtype=dtype), jnp.asarray(rhs, dtype=dtype))
    quotient = abs(lhs) // abs(rhs)
    return quotient if (lhs < 0) == (rhs < 0) else -quotient


def widen_integer(value):
    """Integer dtype scalars become exact Python ints; other values pass through.

    Reductions widen before multiplying or summing so narrow dtypes never wrap.
    """
    dtype = getattr(value, "dtype", None)
    if dtype is not None and jnp.issubdtype(dtype, jnp.integer):
        return int(value)
    return value
