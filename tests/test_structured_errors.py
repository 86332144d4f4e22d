from __future__ import annotations

import unittest

from geomvec.errors import (
    GeomAxisError,
    GeomDegenerateError,
    GeomError,
    GeomRuntimeError,
    GeomShapeError,
    GeomTypeError,
    GeomUnsupportedError,
    classify_runtime_exception,
)


class ErrorHierarchyTests(unittest.TestCase):
    def test_builtin_compatibility(self) -> None:
        self.assertTrue(issubclass(GeomShapeError, ValueError))
        self.assertTrue(issubclass(GeomAxisError, GeomShapeError))
        self.assertTrue(issubclass(GeomTypeError, TypeError))
        self.assertTrue(issubclass(GeomDegenerateError, ZeroDivisionError))
        for cls in (GeomShapeError, GeomAxisError, GeomTypeError, GeomUnsupportedError, GeomDegenerateError):
            with self.subTest(cls=cls.__name__):
                self.assertTrue(issubclass(cls, GeomRuntimeError))
                self.assertTrue(issubclass(cls, GeomError))


class ClassifyRuntimeExceptionTests(unittest.TestCase):
    def test_structured_errors_pass_through(self) -> None:
        err = GeomAxisError("axis 3")
        self.assertIs(classify_runtime_exception(err), err)

    def test_shape_messages(self) -> None:
        for message in (
            "add got incompatible shapes for broadcasting: (3,), (2,)",
            "index 4 is out of bounds for axis 0 with size 3",
        ):
            with self.subTest(message=message):
                self.assertIsInstance(classify_runtime_exception(TypeError(message)), GeomShapeError)

    def test_type_messages(self) -> None:
        err = classify_runtime_exception(ValueError("dtype mismatch"))
        self.assertIsInstance(err, GeomTypeError)
        self.assertEqual(str(err), "dtype mismatch")

    def test_unrecognized_messages(self) -> None:
        err = classify_runtime_exception(RuntimeError("device lost"))
        self.assertIs(type(err), GeomRuntimeError)


if __name__ == "__main__":
    unittest.main()
