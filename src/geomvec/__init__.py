"""geomvec public API."""

from .elementwise import (
    Expression,
    OperandKind,
    abs_diff,
    element,
    is_indexable,
    length_of,
    make_absolute_difference_expression,
    make_difference_expression,
    make_negate_expression,
    make_product_expression,
    make_quotient_expression,
    make_sum_expression,
)
from .errors import (
    GeomAxisError,
    GeomDegenerateError,
    GeomError,
    GeomRuntimeError,
    GeomShapeError,
    GeomTypeError,
    GeomUnsupportedError,
)
from .extents import (
    Extents,
    extents,
    max_along,
    max_extent,
    max_x,
    max_y,
    max_z,
    min_along,
    min_extent,
    min_x,
    min_y,
    min_z,
)
from .geometry import (
    chebyshev_distance,
    distance,
    distance_squared,
    dot,
    element_sum,
    magnitude,
    magnitude_squared,
    manhattan_distance,
    max_element,
    normalize,
)
from .lowering import LoweredExpression, compile_cache_stats, lower_expression, materialize
from .scalars import absolute_difference
from .vector import Axis, Vec2f, Vec2i, Vec3f, Vec3i, Vector, specialization_cache_stats, vector_type

__all__ = [
    "Vector",
    "Vec2i",
    "Vec3i",
    "Vec2f",
    "Vec3f",
    "Axis",
    "vector_type",
    "specialization_cache_stats",
    "Expression",
    "OperandKind",
    "element",
    "is_indexable",
    "length_of",
    "make_negate_expression",
    "make_sum_expression",
    "make_difference_expression",
    "make_absolute_difference_expression",
    "make_product_expression",
    "make_quotient_expression",
    "abs_diff",
    "absolute_difference",
    "dot",
    "element_sum",
    "max_element",
    "magnitude",
    "magnitude_squared",
    "distance",
    "distance_squared",
    "chebyshev_distance",
    "manhattan_distance",
    "normalize",
    "Extents",
    "min_along",
    "max_along",
    "min_x",
    "min_y",
    "min_z",
    "max_x",
    "max_y",
    "max_z",
    "min_extent",
    "max_extent",
    "extents",
    "LoweredExpression",
    "lower_expression",
    "materialize",
    "compile_cache_stats",
    "GeomError",
    "GeomRuntimeError",
    "GeomShapeError",
    "GeomAxisError",
    "GeomTypeError",
    "GeomUnsupportedError",
    "GeomDegenerateError",
]
