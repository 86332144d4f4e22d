"""Fixed-size, fixed-dimension vectors over a scalar type.

``Vector[S, N]`` returns a cached specialization whose instances always hold
exactly ``N`` elements of scalar type ``S``. Axis accessors (``x``/``y``/``z``)
and fixed-axis unit constructors only exist on specializations with enough
dimensions, so ``Vec2i(1, 2).z`` is an ``AttributeError``.
"""

from __future__ import annotations

import operator
import os
from enum import IntEnum
from functools import lru_cache
from typing import Callable, ClassVar, Final, Iterable, Iterator

import jax
import jax.numpy as jnp

from . import geometry
from .elementwise import (
    ELEMENTWISE_OPERATORS,
    Expression,
    OperandKind,
    indexer,
    length_of,
    make_difference_expression,
    make_negate_expression,
    make_product_expression,
    make_quotient_expression,
    make_sum_expression,
    operand_kind,
)
from .errors import GeomAxisError, GeomShapeError, GeomTypeError
from .scalars import ScalarKind, coerce_scalar, normalize_scalar_type, scalar_info

_USE_EXPRESSION_ARITHMETIC: Final[bool] = os.environ.get("GEOMVEC_DISABLE_EXPRESSION_ARITHMETIC", "0") != "1"
_SPECIALIZATION_CACHE_MAX: Final[int] = max(1, int(os.environ.get("GEOMVEC_SPECIALIZATION_CACHE_MAX", "256")))


class Axis(IntEnum):
    X = 0
    Y = 1
    Z = 2


_AXIS_NAMES: Final[tuple[str, ...]] = ("x", "y", "z")


def _as_dimension(n_dimensions: object) -> int:
    if isinstance(n_dimensions, bool):
        raise GeomTypeError("Vector dimension must be an integer")
    try:
        n = operator.index(n_dimensions)
    except TypeError as err:
        raise GeomTypeError(f"Vector dimension must be an integer, got {n_dimensions!r}") from err
    if n < 1:
        raise GeomShapeError(f"Vector dimension must be at least 1, got {n}")
    return n


def _format_scalar(value: object) -> str:
    if hasattr(value, "item"):
        value = value.item()
    return repr(value)


class Vector:
    """Value type holding ``n_dimensions`` elements of ``scalar_type`` inline.

    Arithmetic returns new vectors of the same specialization; compound
    assignment rebinds the elements in place. Ordering is lexicographic.
    Vectors are mutable and therefore unhashable.
    """

    __slots__ = ("_elements",)

    _geomvec_container: ClassVar[bool] = True
    scalar_type: ClassVar[object] = None
    n_dimensions: ClassVar[int] = 0

    X: ClassVar[Axis] = Axis.X
    Y: ClassVar[Axis] = Axis.Y
    Z: ClassVar[Axis] = Axis.Z

    def __class_getitem__(cls, params: object) -> type[Vector]:
        if cls.n_dimensions:
            raise GeomTypeError(f"{cls.__name__} is already specialized")
        if not isinstance(params, tuple) or len(params) != 2:
            raise GeomTypeError("Vector[...] takes a scalar type and a dimension count")
        scalar_type, n_dimensions = params
        return _specialize(normalize_scalar_type(scalar_type), _as_dimension(n_dimensions))

    def __init__(self, *elements: object) -> None:
        cls = type(self)
        cls._require_specialized()
        if len(elements) != cls.n_dimensions:
            raise GeomShapeError(f"{cls.__name__} requires {cls.n_dimensions} elements, got {len(elements)}")
        self._elements = [coerce_scalar(value, cls.scalar_type) for value in elements]

    @classmethod
    def _require_specialized(cls) -> None:
        if not cls.n_dimensions:
            raise GeomTypeError("Specialize Vector as Vector[scalar_type, n_dimensions] before constructing values")

    @classmethod
    def _from_values(cls, values: Iterable[object]) -> Vector:
        vector = object.__new__(cls)
        vector._elements = [coerce_scalar(value, cls.scalar_type) for value in values]
        return vector

    @classmethod
    def _check_operand(cls, operand: object, *, where: str) -> Callable[[int], object]:
        n = length_of(operand)
        if n is not None and n != cls.n_dimensions:
            raise GeomShapeError(f"{where} requires dimension {cls.n_dimensions}, got {n}")
        return indexer(operand)

    @classmethod
    def from_elements(cls, elements: Iterable[object]) -> Vector:
        return cls(*elements)

    @classmethod
    def from_expression(cls, expression: object) -> Vector:
        """Evaluate an expression (or any operand) index by index into a new vector.

        Scalar and scalar-only operands broadcast to every position.
        """
        cls._require_specialized()
        read = cls._check_operand(expression, where=f"{cls.__name__}.from_expression")
        return cls._from_values(read(i) for i in range(cls.n_dimensions))

    @classmethod
    def from_array(cls, array: object) -> Vector:
        cls._require_specialized()
        arr = jnp.asarray(array)
        if arr.shape != (cls.n_dimensions,):
            raise GeomShapeError(f"{cls.__name__}.from_array requires shape ({cls.n_dimensions},), got {arr.shape}")
        return cls._from_values(arr.tolist())

    @classmethod
    def make_repeated(cls, value: object) -> Vector:
        cls._require_specialized()
        element = coerce_scalar(value, cls.scalar_type)
        return cls._from_values(element for _ in range(cls.n_dimensions))

    @classmethod
    def zeros(cls) -> Vector:
        return cls.make_repeated(0)

    @classmethod
    def make_unit(cls, axis: int) -> Vector:
        """Vector with 1 at ``axis`` and 0 elsewhere."""
        cls._require_specialized()
        if not 0 <= axis < cls.n_dimensions:
            raise GeomAxisError(f"Axis {axis} is out of range for {cls.__name__}")
        return cls._from_values(1 if i == axis else 0 for i in range(cls.n_dimensions))

    def __getitem__(self, i: int):
        return self._elements[i]

    def __setitem__(self, i: int, value: object) -> None:
        self._elements[i] = coerce_scalar(value, self.scalar_type)

    def __len__(self) -> int:
        return self.n_dimensions

    def __iter__(self) -> Iterator[object]:
        return iter(self._elements)

    def to_tuple(self) -> tuple[object, ...]:
        return tuple(self._elements)

    def copy(self) -> Vector:
        return type(self)._from_values(self._elements)

    def as_array(self):
        """Elements as a rank-1 JAX array.

        Python ``int``/``float`` vectors use JAX's canonical default dtype
        (``int32``/``float32`` unless x64 is enabled). Integers outside that
        dtype's range raise :class:`GeomTypeError` instead of wrapping.
        """
        info = scalar_info(self.scalar_type)
        if info.is_dtype:
            return jnp.asarray(self._elements, dtype=self.scalar_type)
        if info.kind is ScalarKind.INTEGER:
            dtype = jax.dtypes.canonicalize_dtype(jnp.int64)
            bounds = jnp.iinfo(dtype)
            for value in self._elements:
                if not bounds.min <= value <= bounds.max:
                    raise GeomTypeError(
                        f"{value} does not fit the array dtype {dtype}; enable jax_enable_x64 or use a wider dtype"
                    )
        else:
            dtype = jax.dtypes.canonicalize_dtype(jnp.float64)
        return jnp.asarray(self._elements, dtype=dtype)

    def assign(self, other: object) -> Vector:
        """Overwrite every element from an expression or operand of matching dimension."""
        read = self._check_operand(other, where=f"{type(self).__name__}.assign")
        values = [coerce_scalar(read(i), self.scalar_type) for i in range(self.n_dimensions)]
        self._elements = values
        return self

    def dot(self, other: object):
        return geometry.dot(self, other)

    def magnitude_squared(self):
        return geometry.magnitude_squared(self)

    def magnitude(self) -> float:
        return geometry.magnitude(self)

    def normalize(self) -> Vector:
        return geometry.normalize(self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({', '.join(_format_scalar(value) for value in self._elements)})"

    # Comparison

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vector):
            return NotImplemented
        if other.n_dimensions != self.n_dimensions:
            return False
        return all(bool(lhs == rhs) for lhs, rhs in zip(self._elements, other._elements))

    def _lexicographic_compare(self, other: object) -> int:
        if not isinstance(other, Vector):
            return NotImplemented
        if other.n_dimensions != self.n_dimensions:
            raise GeomShapeError(
                f"Cannot order vectors of dimension {self.n_dimensions} and {other.n_dimensions}"
            )
        for lhs, rhs in zip(self._elements, other._elements):
            if lhs < rhs:
                return -1
            if rhs < lhs:
                return 1
        return 0

    def __lt__(self, other: object) -> bool:
        order = self._lexicographic_compare(other)
        return order if order is NotImplemented else order < 0

    def __le__(self, other: object) -> bool:
        order = self._lexicographic_compare(other)
        return order if order is NotImplemented else order <= 0

    def __gt__(self, other: object) -> bool:
        order = self._lexicographic_compare(other)
        return order if order is NotImplemented else order > 0

    def __ge__(self, other: object) -> bool:
        order = self._lexicographic_compare(other)
        return order if order is NotImplemented else order >= 0

    # Arithmetic

    def _accepts_container(self, other: object) -> bool:
        try:
            kind = operand_kind(other)
        except (GeomTypeError, GeomShapeError):
            return False
        if kind is not OperandKind.CONTAINER:
            return False
        n = length_of(other)
        if n != self.n_dimensions:
            raise GeomShapeError(f"Operand dimension {n} does not match {type(self).__name__}")
        return True

    @staticmethod
    def _accepts_scalar(other: object) -> bool:
        if isinstance(other, (Expression, Vector)):
            return False
        try:
            return operand_kind(other) is OperandKind.SCALAR
        except (GeomTypeError, GeomShapeError):
            return False

    def _evaluate(self, make_expression: Callable[..., Expression], op: str, *operands: object) -> Vector:
        cls = type(self)
        if _USE_EXPRESSION_ARITHMETIC:
            return cls.from_expression(make_expression(*operands))
        fn = ELEMENTWISE_OPERATORS[op]
        readers = [indexer(operand) for operand in operands]
        return cls._from_values(fn(*[read(i) for read in readers]) for i in range(cls.n_dimensions))

    def __neg__(self) -> Vector:
        return self._evaluate(make_negate_expression, "negate", self)

    def __add__(self, other: object) -> Vector:
        if not self._accepts_container(other):
            return NotImplemented
        return self._evaluate(make_sum_expression, "sum", self, other)

    def __radd__(self, other: object) -> Vector:
        if not self._accepts_container(other):
            return NotImplemented
        return self._evaluate(make_sum_expression, "sum", other, self)

    def __sub__(self, other: object) -> Vector:
        if not self._accepts_container(other):
            return NotImplemented
        return self._evaluate(make_difference_expression, "difference", self, other)

    def __rsub__(self, other: object) -> Vector:
        if not self._accepts_container(other):
            return NotImplemented
        return self._evaluate(make_difference_expression, "difference", other, self)

    def __mul__(self, other: object) -> Vector:
        if not self._accepts_scalar(other):
            return NotImplemented
        return self._evaluate(make_product_expression, "product", self, other)

    def __rmul__(self, other: object) -> Vector:
        if not self._accepts_scalar(other):
            return NotImplemented
        return self._evaluate(make_product_expression, "product", other, self)

    def __truediv__(self, other: object) -> Vector:
        if not self._accepts_scalar(other):
            return NotImplemented
        return self._evaluate(make_quotient_expression, "quotient", self, other)

    def _rebind(self, result: object) -> Vector:
        if result is NotImplemented:
            return NotImplemented
        self._elements = result._elements
        return self

    def __iadd__(self, other: object) -> Vector:
        return self._rebind(self.__add__(other))

    def __isub__(self, other: object) -> Vector:
        return self._rebind(self.__sub__(other))

    def __imul__(self, other: object) -> Vector:
        return self._rebind(self.__mul__(other))

    def __itruediv__(self, other: object) -> Vector:
        return self._rebind(self.__truediv__(other))


def _axis_property(axis: Axis) -> property:
    def getter(self: Vector):
        return self._elements[axis]

    def setter(self: Vector, value: object) -> None:
        self._elements[axis] = coerce_scalar(value, self.scalar_type)

    return property(getter, setter, doc=f"Element along axis {axis.name}.")


def _axis_unit_constructor(axis: Axis) -> classmethod:
    def unit(cls: type[Vector]) -> Vector:
        return cls.make_unit(axis)

    unit.__name__ = f"unit_{_AXIS_NAMES[axis]}"
    return classmethod(unit)


@lru_cache(maxsize=_SPECIALIZATION_CACHE_MAX)
def _specialize(scalar_type: object, n_dimensions: int) -> type[Vector]:
    name = f"Vector[{scalar_info(scalar_type).name}, {n_dimensions}]"
    namespace: dict[str, object] = {
        "__slots__": (),
        "__module__": __name__,
        "__qualname__": name,
        "scalar_type": scalar_type,
        "n_dimensions": n_dimensions,
    }
    for axis in Axis:
        if axis < n_dimensions:
            namespace[_AXIS_NAMES[axis]] = _axis_property(axis)
            namespace[f"unit_{_AXIS_NAMES[axis]}"] = _axis_unit_constructor(axis)
    return type(name, (Vector,), namespace)


def vector_type(scalar_type: object, n_dimensions: int) -> type[Vector]:
    return Vector[scalar_type, n_dimensions]


def specialization_cache_stats() -> dict[str, float | int]:
    info = _specialize.cache_info()
    total = info.hits + info.misses
    return {
        "hits": int(info.hits),
        "misses": int(info.misses),
        "size": int(info.currsize),
        "max_size": int(info.maxsize) if info.maxsize is not None else 0,
        "hit_rate": float(info.hits / total) if total else 0.0,
    }


Vec2i = Vector[int, 2]
Vec3i = Vector[int, 3]
Vec2f = Vector[float, 2]
Vec3f = Vector[float, 3]
