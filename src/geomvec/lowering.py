"""JAX lowering of expression trees into compiled whole-array kernels.

Per-index evaluation reads one element of every operand at a time. When the
whole result is wanted as an array, :func:`lower_expression` walks the tree once,
emits a small SSA-style IR, and runs it as a single ``jax.jit`` kernel over the
leaf operands. Kernels are cached by IR structure, so trees with the same shape
of operations reuse one compilation regardless of operand values.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Callable, Final

import jax
import jax.numpy as jnp
from jax import lax

from .elementwise import Expression
from .errors import GeomError, GeomRuntimeError, GeomTypeError, GeomUnsupportedError, classify_runtime_exception

logger = logging.getLogger(__name__)

_USE_JITTED_LOWERING: Final[bool] = os.environ.get("GEOMVEC_DISABLE_JITTED_LOWERING", "0") != "1"
_LOWERING_CACHE_MAX: Final[int] = max(1, int(os.environ.get("GEOMVEC_LOWERING_CACHE_MAX", "256")))
_COMPILED_KERNEL_CACHE: dict[tuple[object, ...], Callable[..., jnp.ndarray]] = {}
_COMPILED_KERNEL_CACHE_STATS: dict[str, int] = {"hits": 0, "misses": 0, "evictions": 0}


def _absolute_difference_array(lhs: jnp.ndarray, rhs: jnp.ndarray) -> jnp.ndarray:
    return jnp.where(lhs < rhs, rhs - lhs, lhs - rhs)


def _quotient_array(lhs: jnp.ndarray, rhs: jnp.ndarray) -> jnp.ndarray:
    if jnp.issubdtype(lhs.dtype, jnp.integer) and jnp.issubdtype(rhs.dtype, jnp.integer):
        dtype = jnp.result_type(lhs, rhs)
        return lax.div(lhs.astype(dtype), rhs.astype(dtype))
    return lhs / rhs


_ARRAY_OPS: Final[dict[str, Callable[..., jnp.ndarray]]] = {
    "negate": lambda x: -x,
    "sum": lambda w, x: w + x,
    "difference": lambda w, x: w - x,
    "absolute_difference": _absolute_difference_array,
    "product": lambda w, x: w * x,
    "quotient": _quotient_array,
}

_OP_ARITY: Final[dict[str, int]] = {
    "negate": 1,
    "sum": 2,
    "difference": 2,
    "absolute_difference": 2,
    "product": 2,
    "quotient": 2,
}


@dataclass(frozen=True)
class IRNode:
    """Single SSA node: a leaf argument or one elementwise operation."""

    id: int
    op: str
    inputs: tuple[int, ...] = ()
    arg_index: int | None = None


@dataclass(frozen=True)
class ExpressionIR:
    """Lowered IR container."""

    nodes: tuple[IRNode, ...]
    output: int
    n_args: int
    dimension: int | None

    @property
    def structure_key(self) -> tuple[object, ...]:
        return (tuple((node.op, node.inputs, node.arg_index) for node in self.nodes), self.output, self.n_args)


class _Lowerer:
    def __init__(self) -> None:
        self.nodes: list[IRNode] = []
        self.args: list[object] = []
        self._operand_nodes: dict[int, int] = {}

    def _add(self, op: str, *, inputs: tuple[int, ...] = (), arg_index: int | None = None) -> int:
        node_id = len(self.nodes)
        self.nodes.append(IRNode(id=node_id, op=op, inputs=inputs, arg_index=arg_index))
        return node_id

    def lower(self, operand: object) -> int:
        # Operands are deduplicated by identity; the tree keeps them alive while lowering.
        key = id(operand)
        if key in self._operand_nodes:
            return self._operand_nodes[key]

        if isinstance(operand, Expression):
            if operand.op not in _ARRAY_OPS:
                name = operand.op or getattr(operand.operator, "__name__", "operator")
                raise GeomUnsupportedError(
                    f"Cannot lower custom operator {name!r}; index the expression directly instead"
                )
            if len(operand.operands) != _OP_ARITY[operand.op]:
                raise GeomUnsupportedError(
                    f"Operation {operand.op!r} takes {_OP_ARITY[operand.op]} operands, got {len(operand.operands)}"
                )
            inputs = tuple(self.lower(child) for child in operand.operands)
            node_id = self._add(operand.op, inputs=inputs)
        else:
            node_id = self._add("arg", arg_index=len(self.args))
            self.args.append(operand)

        self._operand_nodes[key] = node_id
        return node_id


def evaluate_ir(ir: ExpressionIR, args: tuple[object, ...]) -> jnp.ndarray:
    """Execute lowered IR with JAX array operations."""
    if len(args) != ir.n_args:
        raise GeomTypeError(f"Expected {ir.n_args} arguments, got {len(args)}")

    values: list[jnp.ndarray | None] = [None] * len(ir.nodes)
    for node in ir.nodes:
        if node.op == "arg":
            values[node.id] = jnp.asarray(args[node.arg_index])
            continue
        fn = _ARRAY_OPS.get(node.op)
        if fn is None:
            raise GeomRuntimeError(f"Unknown IR op {node.op!r}")
        values[node.id] = fn(*[values[idx] for idx in node.inputs])

    out = values[ir.output]
    if out is None:
        raise GeomRuntimeError("IR output node was not produced")
    return out


def _ir_callable(ir: ExpressionIR) -> Callable[..., jnp.ndarray]:
    def run(*args):
        return evaluate_ir(ir, args)

    return run


def _kernel_for(ir: ExpressionIR) -> Callable[..., jnp.ndarray]:
    if not _USE_JITTED_LOWERING:
        return _ir_callable(ir)

    key = ir.structure_key
    kernel = _COMPILED_KERNEL_CACHE.get(key)
    if kernel is not None:
        _COMPILED_KERNEL_CACHE_STATS["hits"] += 1
        return kernel

    _COMPILED_KERNEL_CACHE_STATS["misses"] += 1
    logger.debug("Compiling kernel for %d-node expression IR", len(ir.nodes))
    kernel = jax.jit(_ir_callable(ir))
    if len(_COMPILED_KERNEL_CACHE) >= _LOWERING_CACHE_MAX:
        evicted = next(iter(_COMPILED_KERNEL_CACHE))
        del _COMPILED_KERNEL_CACHE[evicted]
        _COMPILED_KERNEL_CACHE_STATS["evictions"] += 1
        logger.debug("Evicted compiled kernel; cache bound is %d", _LOWERING_CACHE_MAX)
    _COMPILED_KERNEL_CACHE[key] = kernel
    return kernel


def _as_array_operand(operand: object) -> jnp.ndarray:
    as_array = getattr(operand, "as_array", None)
    if callable(as_array):
        return as_array()
    return jnp.asarray(operand)


@dataclass
class LoweredExpression:
    """Callable wrapper binding lowered IR to the operands it was lowered from.

    Calling it reads the operands' current values, so a lowered expression
    observes operand mutation the same way per-index evaluation does.
    """

    ir: ExpressionIR
    operands: tuple[object, ...]
    _kernel: Callable[..., jnp.ndarray] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._kernel = _kernel_for(self.ir)

    @property
    def dimension(self) -> int | None:
        return self.ir.dimension

    def __call__(self) -> jnp.ndarray:
        args = tuple(_as_array_operand(operand) for operand in self.operands)
        try:
            return self._kernel(*args)
        except GeomError:
            raise
        except Exception as err:
            raise classify_runtime_exception(err) from err


def lower_expression(expression: Expression) -> LoweredExpression:
    if not isinstance(expression, Expression):
        raise GeomTypeError(f"lower_expression requires an Expression, got {type(expression).__name__}")
    lowerer = _Lowerer()
    output = lowerer.lower(expression)
    ir = ExpressionIR(
        nodes=tuple(lowerer.nodes),
        output=output,
        n_args=len(lowerer.args),
        dimension=expression.dimension,
    )
    return LoweredExpression(ir=ir, operands=tuple(lowerer.args))


def materialize(expression: Expression) -> jnp.ndarray:
    """Evaluate a whole expression tree as one array of shape ``(dimension,)``."""
    return lower_expression(expression)()


def compile_cache_stats(*, reset: bool = False) -> dict[str, float | int | bool]:
    hits = _COMPILED_KERNEL_CACHE_STATS["hits"]
    misses = _COMPILED_KERNEL_CACHE_STATS["misses"]
    total = hits + misses
    stats: dict[str, float | int | bool] = {
        "hits": hits,
        "misses": misses,
        "evictions": _COMPILED_KERNEL_CACHE_STATS["evictions"],
        "size": len(_COMPILED_KERNEL_CACHE),
        "max_size": _LOWERING_CACHE_MAX,
        "jit_enabled": _USE_JITTED_LOWERING,
        "hit_rate": float(hits / total) if total else 0.0,
    }
    if reset:
        _COMPILED_KERNEL_CACHE.clear()
        _COMPILED_KERNEL_CACHE_STATS["hits"] = 0
        _COMPILED_KERNEL_CACHE_STATS["misses"] = 0
        _COMPILED_KERNEL_CACHE_STATS["evictions"] = 0
    return stats
