"""Reductions over vectors and expression trees: sums, norms, and distances.

Every function accepts vectors, rank-1 sequences/arrays, and container
expressions interchangeably. Differences are built as expressions and reduced
directly, so no intermediate vector is allocated. Integer dtype elements are
widened to Python ints before any product, difference or sum, so narrow dtypes
such as ``uint8`` never wrap.
"""

from __future__ import annotations

import math

from .elementwise import (
    Expression,
    indexer,
    length_of,
    make_absolute_difference_expression,
    make_difference_expression,
    make_product_expression,
)
from .errors import GeomDegenerateError, GeomShapeError, GeomTypeError
from .scalars import widen_integer, widen_to_float


def _require_container(operand: object, *, where: str) -> int:
    n = length_of(operand)
    if n is None:
        raise GeomTypeError(f"{where} requires a container operand, got scalar {type(operand).__name__}")
    if n == 0:
        raise GeomShapeError(f"{where} requires at least one element")
    return n


def _widened(operand: object) -> Expression:
    return Expression(widen_integer, operand)


def _require_matching(lhs: object, rhs: object, *, where: str) -> int:
    lhs_n = _require_container(lhs, where=where)
    rhs_n = _require_container(rhs, where=where)
    if lhs_n != rhs_n:
        raise GeomShapeError(f"{where} operands differ in dimension: {lhs_n} vs {rhs_n}")
    return lhs_n


def element_sum(elements: object):
    n = _require_container(elements, where="element_sum")
    read = indexer(elements)
    total = widen_integer(read(0))
    for i in range(1, n):
        total = total + widen_integer(read(i))
    return total


def max_element(elements: object):
    """Largest element; the first one wins among equals."""
    n = _require_container(elements, where="max_element")
    read = indexer(elements)
    best = read(0)
    for i in range(1, n):
        value = read(i)
        if best < value:
            best = value
    return best


def dot(lhs: object, rhs: object):
    _require_matching(lhs, rhs, where="dot")
    return element_sum(make_product_expression(_widened(lhs), _widened(rhs)))


def magnitude_squared(elements: object):
    return dot(elements, elements)


def magnitude(elements: object) -> float:
    return math.sqrt(widen_to_float(magnitude_squared(elements)))


def distance_squared(lhs: object, rhs: object):
    _require_matching(lhs, rhs, where="distance_squared")
    return magnitude_squared(make_difference_expression(_widened(lhs), _widened(rhs)))


def distance(lhs: object, rhs: object) -> float:
    _require_matching(lhs, rhs, where="distance")
    return magnitude(make_difference_expression(_widened(lhs), _widened(rhs)))


def chebyshev_distance(lhs: object, rhs: object):
    _require_matching(lhs, rhs, where="chebyshev_distance")
    return max_element(make_absolute_difference_expression(_widened(lhs), _widened(rhs)))


def manhattan_distance(lhs: object, rhs: object):
    _require_matching(lhs, rhs, where="manhattan_distance")
    return element_sum(make_absolute_difference_expression(_widened(lhs), _widened(rhs)))


def normalize(vector):
    """Scale ``vector`` in place to unit magnitude and return it.

    ``vector`` must support ``/=``. A zero vector raises
    :class:`GeomDegenerateError` and is left unchanged.
    """
    length = magnitude(vector)
    if length == 0.0:
        raise GeomDegenerateError("Cannot normalize a zero-magnitude vector")
    vector /= length
    return vector
