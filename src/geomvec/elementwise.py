"""Lazy elementwise expressions over vectors, rank-1 sequences, and scalars.

An :class:`Expression` holds one operator and references to its operands. Nothing
is computed until an element is requested: ``expr[i]`` indexes every operand at
``i`` (broadcasting scalar operands) and applies the operator to the results.
Expressions are themselves container operands, so arbitrarily deep trees such as
``(a - b) * (a - b)`` are built without materializing ``a - b``.

Operands are referenced, not copied. Reading an expression after mutating one of
its operands observes the new values.
"""

from __future__ import annotations

import numbers
from collections.abc import Sequence
from enum import Enum
from typing import Callable, ClassVar, Final, Iterator

from .errors import GeomShapeError, GeomTypeError
from .scalars import absolute_difference, is_integral_value, truncating_divide


class OperandKind(str, Enum):
    CONTAINER = "container"
    SCALAR = "scalar"


def operand_kind(operand: object) -> OperandKind:
    """Classify an operand as indexable container or broadcast scalar."""
    if isinstance(operand, Expression):
        return OperandKind.CONTAINER if operand.dimension is not None else OperandKind.SCALAR
    if getattr(operand, "_geomvec_container", False):
        return OperandKind.CONTAINER
    if operand is None or isinstance(operand, (str, bytes, bytearray)):
        raise GeomTypeError(f"Unsupported operand type {type(operand).__name__}")
    ndim = getattr(operand, "ndim", None)
    if ndim is not None:
        if ndim == 0:
            return OperandKind.SCALAR
        if ndim == 1:
            return OperandKind.CONTAINER
        raise GeomShapeError(f"Array operands must have rank 1, got rank {ndim}")
    if isinstance(operand, Sequence):
        return OperandKind.CONTAINER
    if isinstance(operand, numbers.Number):
        return OperandKind.SCALAR
    raise GeomTypeError(f"Unsupported operand type {type(operand).__name__}")


def is_indexable(operand: object) -> bool:
    return operand_kind(operand) is OperandKind.CONTAINER


def length_of(operand: object) -> int | None:
    """Container length, or ``None`` for scalars and scalar-only expressions."""
    if isinstance(operand, Expression):
        return operand.dimension
    if operand_kind(operand) is OperandKind.SCALAR:
        return None
    shape = getattr(operand, "shape", None)
    if shape is not None:
        return int(shape[0])
    return len(operand)


def indexer(operand: object) -> Callable[[int], object]:
    """Resolve once how ``operand`` is read at an index."""
    if isinstance(operand, Expression) or operand_kind(operand) is OperandKind.CONTAINER:
        return operand.__getitem__

    def broadcast(_i: int) -> object:
        return operand

    return broadcast


def element(operand: object, i: int) -> object:
    """Value of ``operand`` at position ``i``; scalars are the same at every position."""
    return indexer(operand)(i)


def _common_dimension(operands: tuple[object, ...]) -> int | None:
    dimension: int | None = None
    for position, operand in enumerate(operands):
        n = length_of(operand)
        if n is None:
            continue
        if dimension is None:
            dimension = n
        elif n != dimension:
            raise GeomShapeError(
                f"Expression operands disagree in dimension: operand {position} has length {n}, expected {dimension}"
            )
    return dimension


class Expression:
    """Unevaluated elementwise computation.

    ``op`` names the operation for backends that lower whole trees; expressions
    built with an arbitrary ``operator`` and no ``op`` still evaluate per index.
    """

    __slots__ = ("_operator", "_operands", "_readers", "_dimension", "op")

    _geomvec_expression: ClassVar[bool] = True

    def __init__(self, operator: Callable[..., object], *operands: object, op: str | None = None) -> None:
        if not callable(operator):
            raise GeomTypeError(f"Expression operator must be callable, got {type(operator).__name__}")
        if not operands:
            raise GeomTypeError("Expression requires at least one operand")
        self._operator = operator
        self._operands = operands
        self._dimension = _common_dimension(operands)
        self._readers = tuple(indexer(operand) for operand in operands)
        self.op = op

    @property
    def operator(self) -> Callable[..., object]:
        return self._operator

    @property
    def operands(self) -> tuple[object, ...]:
        return self._operands

    @property
    def dimension(self) -> int | None:
        return self._dimension

    def __getitem__(self, i: int) -> object:
        return self._operator(*[read(i) for read in self._readers])

    def __len__(self) -> int:
        if self._dimension is None:
            raise GeomTypeError("Scalar-only expression has no length")
        return self._dimension

    def __iter__(self) -> Iterator[object]:
        for i in range(len(self)):
            yield self[i]

    def to_tuple(self) -> tuple[object, ...]:
        return tuple(self)

    def __repr__(self) -> str:
        name = self.op or getattr(self._operator, "__name__", "operator")
        return f"Expression({name}, operands={len(self._operands)}, dimension={self._dimension})"

    def __neg__(self) -> Expression:
        return make_negate_expression(self)

    def __add__(self, other: object) -> Expression:
        if not _is_operand(other):
            return NotImplemented
        return make_sum_expression(self, other)

    def __radd__(self, other: object) -> Expression:
        if not _is_operand(other):
            return NotImplemented
        return make_sum_expression(other, self)

    def __sub__(self, other: object) -> Expression:
        if not _is_operand(other):
            return NotImplemented
        return make_difference_expression(self, other)

    def __rsub__(self, other: object) -> Expression:
        if not _is_operand(other):
            return NotImplemented
        return make_difference_expression(other, self)

    def __mul__(self, other: object) -> Expression:
        if not _is_operand(other):
            return NotImplemented
        return make_product_expression(self, other)

    def __rmul__(self, other: object) -> Expression:
        if not _is_operand(other):
            return NotImplemented
        return make_product_expression(other, self)

    def __truediv__(self, other: object) -> Expression:
        if not _is_operand(other):
            return NotImplemented
        return make_quotient_expression(self, other)

    def __rtruediv__(self, other: object) -> Expression:
        if not _is_operand(other):
            return NotImplemented
        return make_quotient_expression(other, self)


def _is_operand(value: object) -> bool:
    try:
        operand_kind(value)
    except (GeomTypeError, GeomShapeError):
        return False
    return True


def _negate(value):
    return -value


def _sum(lhs, rhs):
    return lhs + rhs


def _difference(lhs, rhs):
    return lhs - rhs


def _product(lhs, rhs):
    return lhs * rhs


def _quotient(lhs, rhs):
    if is_integral_value(lhs) and is_integral_value(rhs):
        return truncating_divide(lhs, rhs)
    return lhs / rhs


ELEMENTWISE_OPERATORS: Final[dict[str, Callable[..., object]]] = {
    "negate": _negate,
    "sum": _sum,
    "difference": _difference,
    "absolute_difference": absolute_difference,
    "product": _product,
    "quotient": _quotient,
}


def make_negate_expression(value: object) -> Expression:
    return Expression(_negate, value, op="negate")


def make_sum_expression(lhs: object, rhs: object) -> Expression:
    return Expression(_sum, lhs, rhs, op="sum")


def make_difference_expression(lhs: object, rhs: object) -> Expression:
    return Expression(_difference, lhs, rhs, op="difference")


def make_absolute_difference_expression(lhs: object, rhs: object) -> Expression:
    return Expression(absolute_difference, lhs, rhs, op="absolute_difference")


def make_product_expression(lhs: object, rhs: object) -> Expression:
    return Expression(_product, lhs, rhs, op="product")


def make_quotient_expression(lhs: object, rhs: object) -> Expression:
    return Expression(_quotient, lhs, rhs, op="quotient")


def abs_diff(lhs: object, rhs: object) -> Expression:
    """Operator-style spelling of :func:`make_absolute_difference_expression`."""
    return make_absolute_difference_expression(lhs, rhs)
