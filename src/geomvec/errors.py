"""Structured error types for expression construction and evaluation."""

from __future__ import annotations


class GeomError(Exception):
    """Base class for structured geomvec errors."""


class GeomRuntimeError(GeomError):
    """Generic failure while building or evaluating vectors and expressions."""


class GeomShapeError(GeomRuntimeError, ValueError):
    """Dimension/length compatibility failure between operands."""


class GeomAxisError(GeomShapeError):
    """Axis outside the dimension range of a vector type."""


class GeomTypeError(GeomRuntimeError, TypeError):
    """Operand or scalar type that the engine cannot index or coerce."""


class GeomUnsupportedError(GeomRuntimeError):
    """Construct is valid for per-index evaluation but not for this execution path."""


class GeomDegenerateError(GeomRuntimeError, ZeroDivisionError):
    """Operation undefined for a zero-magnitude vector."""


def classify_runtime_exception(err: Exception) -> GeomRuntimeError:
    """Best-effort classification of foreign runtime errors for structured APIs."""
    if isinstance(err, GeomRuntimeError):
        return err

    message = str(err)
    lowered = message.lower()

    shape_markers = (
        "shape",
        "rank",
        "axis",
        "length",
        "dimension",
        "broadcast",
        "out of bounds",
        "out-of-bounds",
        "index",
    )
    if any(marker in lowered for marker in shape_markers):
        return GeomShapeError(message)

    type_markers = (
        "type",
        "dtype",
        "integer",
        "number",
        "callable",
        "not supported",
        "unsupported operand",
        "must be",
    )
    if any(marker in lowered for marker in type_markers):
        return GeomTypeError(message)

    return GeomRuntimeError(message)
