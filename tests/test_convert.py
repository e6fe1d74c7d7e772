"""Native Python conversion: from_python / to_python / loads / dumps."""

from __future__ import annotations

import os
import sys
import unittest
from collections import OrderedDict

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from gbln import (
    Config,
    ErrorKind,
    GblnError,
    Value,
    ValueType,
    dumps,
    from_python,
    loads,
    to_python,
)


class TestFromPython(unittest.TestCase):
    def test_integer_width_selection(self):
        cases = [
            (0, ValueType.I8),
            (-128, ValueType.I8),
            (127, ValueType.I8),
            (128, ValueType.I16),
            (-129, ValueType.I16),
            (100000, ValueType.I32),
            (2**40, ValueType.I64),
            (-(2**63), ValueType.I64),
            (2**63, ValueType.U64),
            (2**64 - 1, ValueType.U64),
        ]
        for n, kind in cases:
            with self.subTest(n=n):
                v = from_python(n)
                self.assertIs(v.kind, kind)
                self.assertEqual(v.scalar, n)

    def test_integer_too_large(self):
        for n in (2**64, -(2**63) - 1):
            with self.subTest(n=n):
                with self.assertRaises(GblnError) as ctx:
                    from_python(n)
                self.assertEqual(ctx.exception.kind, ErrorKind.INT_OUT_OF_RANGE)

    def test_bool_before_int(self):
        v = from_python(True)
        self.assertIs(v.kind, ValueType.BOOL)
        self.assertEqual(v.as_bool(), (True, True))

    def test_float(self):
        self.assertEqual(from_python(1.5), Value.f64(1.5))

    def test_string_bounds(self):
        self.assertEqual(from_python("x").max_len, 64)
        self.assertEqual(from_python("x" * 64).max_len, 64)
        self.assertEqual(from_python("x" * 65).max_len, 256)
        self.assertEqual(from_python("x" * 1000).max_len, 1024)
        with self.assertRaises(GblnError) as ctx:
            from_python("x" * 1025)
        self.assertEqual(ctx.exception.kind, ErrorKind.STRING_TOO_LONG)

    def test_none(self):
        self.assertTrue(from_python(None).is_null())

    def test_containers(self):
        v = from_python(OrderedDict([("b", [1, (2, 3)]), ("a", {"c": None})]))
        self.assertEqual(v.keys(), ["b", "a"])
        self.assertEqual(v.get("b").at(1).at(1).as_i8(), (3, True))
        self.assertTrue(v.get("a").get("c").is_null())

    def test_non_str_key(self):
        with self.assertRaises(GblnError) as ctx:
            from_python({1: "x"})
        self.assertEqual(ctx.exception.kind, ErrorKind.TYPE_MISMATCH)

    def test_unsupported_type(self):
        for obj in ({1, 2}, b"bytes", object()):
            with self.subTest(obj=type(obj).__name__):
                with self.assertRaises(GblnError) as ctx:
                    from_python(obj)
                self.assertEqual(ctx.exception.kind, ErrorKind.TYPE_MISMATCH)

    def test_value_is_copied(self):
        owned = Value.i8(1)
        Value.array().push(owned)
        v = from_python({"x": owned})
        self.assertEqual(v.get("x"), owned)
        self.assertIsNot(v.get("x"), owned)


class TestToPython(unittest.TestCase):
    def test_projection(self):
        v = from_python({"a": [1, 2.5, "s", True, None]})
        self.assertEqual(to_python(v), {"a": [1, 2.5, "s", True, None]})

    def test_none(self):
        with self.assertRaises(GblnError) as ctx:
            to_python(None)
        self.assertEqual(ctx.exception.kind, ErrorKind.NULL_ARGUMENT)


class TestLoadsDumps(unittest.TestCase):
    def test_loads(self):
        self.assertEqual(loads('{"a":[1,2.5,"s"s4,true,null],"b":200u8}'),
                         {"a": [1, 2.5, "s", True, None], "b": 200})

    def test_dumps_compact(self):
        self.assertEqual(dumps({"a": 1, "n": "x", "f": 0.5, "ok": False}),
                         '{"a":1i8,"n":"x"s64,"f":0.5,"ok":false}')

    def test_dumps_pretty(self):
        self.assertEqual(dumps([1, None], Config.source()), "[\n  1i8,\n  null\n]")

    def test_dumps_value(self):
        self.assertEqual(dumps(Value.u16(9)), "9u16")

    def test_native_round_trip(self):
        data = {"users": [{"id": 1, "name": "Alice", "score": 99.5, "tags": ["a", "b"]}],
                "count": 2**40, "empty": {}}
        self.assertEqual(loads(dumps(data)), data)

    def test_loads_errors_propagate(self):
        with self.assertRaises(GblnError) as ctx:
            loads("[1,")
        self.assertEqual(ctx.exception.kind, ErrorKind.UNEXPECTED_EOF)


if __name__ == "__main__":
    unittest.main()
