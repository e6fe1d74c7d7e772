"""Command-line interface tests (in-process, via main(argv))."""

from __future__ import annotations

import contextlib
import io
import os
import shutil
import sys
import tempfile
import unittest
from pathlib import Path

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from gbln import XZ_MAGIC, __version__, parse, read_io
from gbln._cli import main


class _CliCase(unittest.TestCase):
    def setUp(self):
        self.tmp = Path(tempfile.mkdtemp(prefix="gbln-cli-"))

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    def write(self, name: str, text: str) -> str:
        path = self.tmp / name
        path.write_text(text, encoding="utf-8")
        return str(path)

    def run_cli(self, argv):
        out, err = io.StringIO(), io.StringIO()
        code = 0
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            try:
                main(argv)
            except SystemExit as e:
                code = e.code
        return code, out.getvalue(), err.getvalue()


class TestFmt(_CliCase):
    def test_pretty_default(self):
        src = self.write("in.gbln", '{"a":[1,2u8]}')
        code, out, _ = self.run_cli(["fmt", "-i", src])
        self.assertEqual(code, 0)
        self.assertEqual(out, '{\n  "a": [\n    1,\n    2u8\n  ]\n}\n')

    def test_mini(self):
        src = self.write("in.gbln", '{ "a" : 1 , :| c\n "b" : "x"s4 }')
        code, out, _ = self.run_cli(["fmt", "--mini", "-i", src])
        self.assertEqual(code, 0)
        self.assertEqual(out, '{"a":1,"b":"x"s4}\n')

    def test_indent(self):
        src = self.write("in.gbln", "[1]")
        _, out, _ = self.run_cli(["fmt", "--indent", "4", "-i", src])
        self.assertEqual(out, "[\n    1\n]\n")


class TestCheck(_CliCase):
    def test_ok(self):
        src = self.write("ok.gbln", '{"a":1}')
        code, out, _ = self.run_cli(["check", "-i", src])
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "ok")

    def test_error_report(self):
        src = self.write("bad.gbln", '{\n  "age": 300u8\n}')
        code, out, err = self.run_cli(["check", "-i", src])
        self.assertEqual(code, 2)
        self.assertEqual(out, "")
        self.assertIn("gbln: error [IntOutOfRange] 2:10:", err)
        self.assertIn("gbln: hint:", err)

    def test_missing_input_file(self):
        code, _, err = self.run_cli(["check", "-i", str(self.tmp / "nope.gbln")])
        self.assertEqual(code, 2)
        self.assertIn("cannot read input", err)


class TestReadWrite(_CliCase):
    def test_write_then_read(self):
        src = self.write("in.gbln", '{"id":7u32,"name":"Bob"}')
        dest = str(self.tmp / "out.io.gbln.xz")
        code, _, _ = self.run_cli(["write", dest, "-i", src])
        self.assertEqual(code, 0)
        self.assertTrue(Path(dest).read_bytes().startswith(XZ_MAGIC))
        self.assertEqual(read_io(dest), parse('{"id":7u32,"name":"Bob"}'))

        code, out, _ = self.run_cli(["read", dest, "--mini"])
        self.assertEqual(code, 0)
        self.assertEqual(out, '{"id":7u32,"name":"Bob"}\n')

    def test_write_uncompressed(self):
        src = self.write("in.gbln", "[1, 2]")
        dest = self.tmp / "out.io.gbln"
        self.run_cli(["write", str(dest), "-i", src, "--no-compress"])
        self.assertEqual(dest.read_text(encoding="utf-8"), "[1,2]")

    def test_write_source(self):
        src = self.write("in.gbln", "[1]")
        dest = self.tmp / "out.gbln"
        self.run_cli(["write", str(dest), "-i", src, "--source"])
        self.assertEqual(dest.read_text(encoding="utf-8"), "[\n  1\n]")

    def test_bad_level(self):
        src = self.write("in.gbln", "[1]")
        code, _, err = self.run_cli(["write", str(self.tmp / "x.io.gbln.xz"),
                                     "-i", src, "--level", "12"])
        self.assertEqual(code, 2)
        self.assertIn("IntOutOfRange", err)

    def test_read_missing(self):
        code, _, err = self.run_cli(["read", str(self.tmp / "nope.io.gbln.xz")])
        self.assertEqual(code, 2)
        self.assertIn("[IoFailure]", err)


class TestMisc(_CliCase):
    def test_version(self):
        code, out, _ = self.run_cli(["version"])
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "gbln " + __version__)

    def test_no_command(self):
        code, out, _ = self.run_cli([])
        self.assertEqual(code, 1)
        self.assertIn("usage", out.lower())


if __name__ == "__main__":
    unittest.main()
