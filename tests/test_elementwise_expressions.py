from __future__ import annotations

import importlib.util
import unittest


JAX_AVAILABLE = importlib.util.find_spec("jax") is not None


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for elementwise expression tests")
class BroadcastIndexTests(unittest.TestCase):
    def test_containers_index_and_scalars_broadcast(self) -> None:
        from geomvec import Vec3i, element

        vec = Vec3i(4, 5, 6)
        self.assertEqual(element([0, 1, 2], 2), 2)
        self.assertEqual(element((7, 8, 9), 0), 7)
        self.assertEqual(element(vec, 1), 5)
        for i in range(10):
            with self.subTest(i=i):
                self.assertEqual(element(3, i), 3)

    def test_operand_kinds(self) -> None:
        import jax.numpy as jnp

        from geomvec import OperandKind, Vec2i, is_indexable, length_of, make_sum_expression
        from geomvec.elementwise import operand_kind

        self.assertIs(operand_kind(Vec2i(1, 2)), OperandKind.CONTAINER)
        self.assertIs(operand_kind([1, 2]), OperandKind.CONTAINER)
        self.assertIs(operand_kind(jnp.arange(3)), OperandKind.CONTAINER)
        self.assertIs(operand_kind(2.5), OperandKind.SCALAR)
        self.assertIs(operand_kind(jnp.asarray(1)), OperandKind.SCALAR)
        self.assertIs(operand_kind(make_sum_expression(1, 2)), OperandKind.SCALAR)

        self.assertTrue(is_indexable(make_sum_expression([1, 2], 3)))
        self.assertEqual(length_of(jnp.arange(4)), 4)
        self.assertEqual(length_of(Vec2i(1, 2)), 2)
        self.assertIsNone(length_of(7))

    def test_rejects_non_numeric_operands(self) -> None:
        import jax.numpy as jnp

        from geomvec import GeomShapeError, GeomTypeError, make_sum_expression

        for bad in ("abc", b"xy", None, {"a": 1}, object()):
            with self.subTest(bad=bad):
                with self.assertRaises(GeomTypeError):
                    make_sum_expression([1, 2], bad)

        with self.assertRaises(GeomShapeError):
            make_sum_expression(jnp.zeros((2, 2)), 1)


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for elementwise expression tests")
class ExpressionNodeTests(unittest.TestCase):
    def test_add(self) -> None:
        from geomvec import make_sum_expression

        elements = [0, 1, 2]
        expr = make_sum_expression(elements, elements)
        self.assertEqual([expr[0], expr[1], expr[2]], [0, 2, 4])

    def test_add_two_container_types(self) -> None:
        from geomvec import make_sum_expression

        expr = make_sum_expression([0, 1, 2], (0, 1, 2))
        self.assertEqual(expr.to_tuple(), (0, 2, 4))

    def test_add_scalar(self) -> None:
        from geomvec import make_sum_expression

        expr = make_sum_expression([0, 1, 2], 5)
        self.assertEqual(expr.to_tuple(), (5, 6, 7))
        self.assertEqual(expr.dimension, 3)
        self.assertEqual(len(expr), 3)

    def test_subtract(self) -> None:
        from geomvec import make_difference_expression

        elements = [0, 1, 2]
        self.assertEqual(make_difference_expression(elements, elements).to_tuple(), (0, 0, 0))

    def test_all_factories(self) -> None:
        from geomvec import (
            make_absolute_difference_expression,
            make_difference_expression,
            make_negate_expression,
            make_product_expression,
            make_quotient_expression,
            make_sum_expression,
        )

        lhs = [8, -3, 5]
        rhs = [2, 4, 5]
        cases = [
            (make_negate_expression(lhs), (-8, 3, -5)),
            (make_sum_expression(lhs, rhs), (10, 1, 10)),
            (make_difference_expression(lhs, rhs), (6, -7, 0)),
            (make_absolute_difference_expression(lhs, rhs), (6, 7, 0)),
            (make_product_expression(lhs, rhs), (16, -12, 25)),
            (make_quotient_expression(lhs, rhs), (4, 0, 1)),
        ]
        for expr, expected in cases:
            with self.subTest(op=expr.op):
                self.assertEqual(expr.to_tuple(), expected)

    def test_scalar_on_either_side(self) -> None:
        from geomvec import make_difference_expression, make_quotient_expression

        self.assertEqual(make_difference_expression(10, [1, 2, 3]).to_tuple(), (9, 8, 7))
        self.assertEqual(make_quotient_expression(12, [1, 2, 3]).to_tuple(), (12, 6, 4))
        self.assertEqual(make_quotient_expression([-3.0, 9.0], 4).to_tuple(), (-0.75, 2.25))

    def test_integer_quotient_truncates_toward_zero_exactly(self) -> None:
        import jax.numpy as jnp

        from geomvec import make_quotient_expression

        signs = make_quotient_expression([7, -7, 7, -7], [2, 2, -2, -2])
        self.assertEqual(signs.to_tuple(), (3, -3, -3, 3))
        self.assertTrue(all(type(v) is int for v in signs))

        big = 2**53 + 1
        self.assertEqual(make_quotient_expression([big, -big], 1).to_tuple(), (big, -big))
        self.assertEqual(make_quotient_expression([big], 3).to_tuple(), (big // 3,))

        narrow = jnp.asarray([16777217, -7], dtype=jnp.int32)
        exact = make_quotient_expression(narrow, 1)
        self.assertEqual([int(v) for v in exact], [16777217, -7])
        self.assertEqual(exact[0].dtype, jnp.int32)
        halved = make_quotient_expression(narrow, 2)
        self.assertEqual([int(v) for v in halved], [8388608, -3])

    def test_scalar_only_expression_broadcasts(self) -> None:
        from geomvec import GeomTypeError, make_product_expression, make_sum_expression

        scalar_expr = make_product_expression(2, 3)
        self.assertIsNone(scalar_expr.dimension)
        self.assertEqual(scalar_expr[0], 6)
        self.assertEqual(scalar_expr[41], 6)
        with self.assertRaises(GeomTypeError):
            len(scalar_expr)

        combined = make_sum_expression([1, 2], scalar_expr)
        self.assertEqual(combined.to_tuple(), (7, 8))

    def test_composition_without_materializing(self) -> None:
        from geomvec import Expression, make_difference_expression, make_product_expression

        a = [5, 1, 4]
        b = [2, 3, 4]
        delta = make_difference_expression(a, b)
        squared = make_product_expression(delta, delta)
        self.assertIsInstance(squared, Expression)
        self.assertIs(squared.operands[0], delta)
        self.assertEqual(squared.to_tuple(), (9, 4, 0))

    def test_evaluation_is_lazy_and_per_index(self) -> None:
        from geomvec import Expression

        calls: list[tuple[int, int]] = []

        def traced(lhs, rhs):
            calls.append((lhs, rhs))
            return lhs + rhs

        expr = Expression(traced, [1, 2, 3], [10, 20, 30])
        self.assertEqual(calls, [])
        self.assertEqual(expr[1], 22)
        self.assertEqual(calls, [(2, 20)])

    def test_operands_are_referenced_not_copied(self) -> None:
        from geomvec import Vec3i, make_sum_expression

        vec = Vec3i(1, 2, 3)
        expr = make_sum_expression(vec, 1)
        vec[0] = 100
        self.assertEqual(expr[0], 101)

    def test_dimension_mismatch_rejected_at_construction(self) -> None:
        from geomvec import Expression, GeomShapeError, make_sum_expression

        calls: list[object] = []

        def never(*args):
            calls.append(args)
            return 0

        with self.assertRaises(GeomShapeError):
            Expression(never, [1, 2, 3], [1, 2])
        with self.assertRaises(GeomShapeError):
            make_sum_expression(make_sum_expression([1, 2], 1), [1, 2, 3])
        self.assertEqual(calls, [])

    def test_construction_requires_callable_and_operands(self) -> None:
        from geomvec import Expression, GeomTypeError

        with self.assertRaises(GeomTypeError):
            Expression(42, [1, 2])
        with self.assertRaises(GeomTypeError):
            Expression(lambda: 0)

    def test_absolute_difference_does_not_wrap_unsigned(self) -> None:
        import jax.numpy as jnp

        from geomvec import make_absolute_difference_expression, make_difference_expression

        lhs = jnp.asarray([4, 7, 2], dtype=jnp.uint8)
        rhs = jnp.asarray([11, 10, 1], dtype=jnp.uint8)
        wrapped = make_difference_expression(lhs, rhs)
        self.assertEqual(int(wrapped[0]), 249)
        absolute = make_absolute_difference_expression(lhs, rhs)
        self.assertEqual([int(v) for v in absolute], [7, 3, 1])


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for elementwise expression tests")
class ExpressionOperatorSugarTests(unittest.TestCase):
    def test_operators_build_lazy_expressions(self) -> None:
        from geomvec import Expression, abs_diff, make_sum_expression

        base = make_sum_expression([1, 2, 3], 0)
        cases = [
            (-base, (-1, -2, -3)),
            (base + [1, 1, 1], (2, 3, 4)),
            (10 + base, (11, 12, 13)),
            (base - 1, (0, 1, 2)),
            (10 - base, (9, 8, 7)),
            (base * 2, (2, 4, 6)),
            (3 * base, (3, 6, 9)),
            (base / 2, (0, 1, 1)),
            (base / 2.0, (0.5, 1.0, 1.5)),
            (6 / base, (6.0, 3.0, 2.0)),
            (abs_diff(base, 2), (1, 0, 1)),
        ]
        for expr, expected in cases:
            with self.subTest(op=expr.op):
                self.assertIsInstance(expr, Expression)
                self.assertEqual(expr.to_tuple(), expected)

    def test_unsupported_operand_returns_not_implemented(self) -> None:
        from geomvec import make_sum_expression

        base = make_sum_expression([1, 2], 0)
        with self.assertRaises(TypeError):
            base + "x"
        with self.assertRaises(TypeError):
            None * base

    def test_expression_on_the_left_stays_lazy_with_vector_operand(self) -> None:
        from geomvec import Expression, Vec2i, make_sum_expression

        expr = make_sum_expression([1, 2], 0) + Vec2i(10, 20)
        self.assertIsInstance(expr, Expression)
        self.assertEqual(Vec2i.from_expression(expr), Vec2i(11, 22))


if __name__ == "__main__":
    unittest.main()
