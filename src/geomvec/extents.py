"""Batch extent queries over sequences of vectors.

Every query consumes its input in a single pass and returns ``None`` for an
empty input instead of a placeholder vector. Dimensions are scanned
independently, so the corners of a bounding pair need not be input vectors.
"""

from __future__ import annotations

from typing import Iterable, Iterator, NamedTuple

from .elementwise import OperandKind, indexer, length_of, operand_kind
from .errors import GeomAxisError, GeomShapeError, GeomTypeError
from .scalars import scalar_type_of
from .vector import Axis, Vector

_MISSING = object()


class Extents(NamedTuple):
    """Axis-aligned bounding pair: (minimum corner, maximum corner)."""

    minimum: Vector
    maximum: Vector


def _row_dimension(row: object) -> int:
    if operand_kind(row) is not OperandKind.CONTAINER:
        raise GeomTypeError(f"Extent queries require vector rows, got {type(row).__name__}")
    n = length_of(row)
    if n == 0:
        raise GeomShapeError("Extent queries require rows with at least one element")
    return n


def _rows(first: object, rest: Iterator[object], n: int) -> Iterator[object]:
    yield first
    for position, row in enumerate(rest, start=1):
        row_n = _row_dimension(row)
        if row_n != n:
            raise GeomShapeError(f"Row {position} has dimension {row_n}, expected {n}")
        yield row


def _split(vectors: Iterable[object]) -> tuple[object, Iterator[object]]:
    it = iter(vectors)
    return next(it, _MISSING), it


def _check_axis(axis: int, n: int) -> int:
    if not 0 <= axis < n:
        raise GeomAxisError(f"Axis {axis} is out of range for dimension {n}")
    return axis


def _result_type(first: object, n: int, vector_type: type[Vector] | None) -> type[Vector]:
    if vector_type is not None:
        if not (isinstance(vector_type, type) and issubclass(vector_type, Vector) and vector_type.n_dimensions):
            raise GeomTypeError(f"vector_type must be a specialized Vector, got {vector_type!r}")
        if vector_type.n_dimensions != n:
            raise GeomShapeError(f"vector_type has dimension {vector_type.n_dimensions}, rows have {n}")
        return vector_type
    if isinstance(first, Vector):
        return type(first)
    probe = first if getattr(first, "dtype", None) is not None else indexer(first)(0)
    return Vector[scalar_type_of(probe), n]


def min_along(vectors: Iterable[object], axis: int):
    """Smallest value at ``axis`` across ``vectors``, or ``None`` when empty."""
    first, rest = _split(vectors)
    if first is _MISSING:
        return None
    n = _row_dimension(first)
    _check_axis(axis, n)
    best = None
    for row in _rows(first, rest, n):
        value = indexer(row)(axis)
        if best is None or value < best:
            best = value
    return best


def max_along(vectors: Iterable[object], axis: int):
    """Largest value at ``axis`` across ``vectors``, or ``None`` when empty."""
    first, rest = _split(vectors)
    if first is _MISSING:
        return None
    n = _row_dimension(first)
    _check_axis(axis, n)
    best = None
    for row in _rows(first, rest, n):
        value = indexer(row)(axis)
        if best is None or best < value:
            best = value
    return best


def min_x(vectors: Iterable[object]):
    return min_along(vectors, Axis.X)


def min_y(vectors: Iterable[object]):
    return min_along(vectors, Axis.Y)


def min_z(vectors: Iterable[object]):
    return min_along(vectors, Axis.Z)


def max_x(vectors: Iterable[object]):
    return max_along(vectors, Axis.X)


def max_y(vectors: Iterable[object]):
    return max_along(vectors, Axis.Y)


def max_z(vectors: Iterable[object]):
    return max_along(vectors, Axis.Z)


def _scan(
    vectors: Iterable[object],
    *,
    want_min: bool,
    want_max: bool,
    vector_type: type[Vector] | None,
) -> tuple[type[Vector], list[object], list[object]] | None:
    first, rest = _split(vectors)
    if first is _MISSING:
        return None
    n = _row_dimension(first)
    cls = _result_type(first, n, vector_type)
    read_first = indexer(first)
    lows = [read_first(i) for i in range(n)]
    highs = list(lows)
    for row in _rows(first, rest, n):
        read = indexer(row)
        for i in range(n):
            value = read(i)
            if want_min and value < lows[i]:
                lows[i] = value
            if want_max and highs[i] < value:
                highs[i] = value
    return cls, lows, highs


def min_extent(vectors: Iterable[object], *, vector_type: type[Vector] | None = None) -> Vector | None:
    scanned = _scan(vectors, want_min=True, want_max=False, vector_type=vector_type)
    if scanned is None:
        return None
    cls, lows, _ = scanned
    return cls.from_elements(lows)


def max_extent(vectors: Iterable[object], *, vector_type: type[Vector] | None = None) -> Vector | None:
    scanned = _scan(vectors, want_min=False, want_max=True, vector_type=vector_type)
    if scanned is None:
        return None
    cls, _, highs = scanned
    return cls.from_elements(highs)


def extents(vectors: Iterable[object], *, vector_type: type[Vector] | None = None) -> Extents | None:
    scanned = _scan(vectors, want_min=True, want_max=True, vector_type=vector_type)
    if scanned is None:
        return None
    cls, lows, highs = scanned
    return Extents(cls.from_elements(lows), cls.from_elements(highs))
