"""File codec tests: compression policy, magic-byte detection, failures."""

from __future__ import annotations

import asyncio
import lzma
import os
import shutil
import sys
import tempfile
import unittest
from pathlib import Path

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from gbln import (
    EXT_IO,
    EXT_IO_COMPRESSED,
    EXT_SOURCE,
    XZ_MAGIC,
    Config,
    ErrorKind,
    GblnError,
    Value,
    clear_last_error,
    dumps_io,
    io_extension,
    is_compressed,
    last_diagnostic,
    loads_io,
    parse,
    parse_file,
    parse_file_async,
    read_io,
    read_io_async,
    write_io,
    write_io_async,
)

_DOC = '{"user":{"id":12345u32,"name":"Alice"s64,"tags":["a","b"],"ok":true}}'


class _TempDirCase(unittest.TestCase):
    def setUp(self):
        self.tmp = Path(tempfile.mkdtemp(prefix="gbln-test-"))

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)


# ── Extensions ────────────────────────────────────────────────

class TestExtensions(unittest.TestCase):
    def test_extension_per_policy(self):
        self.assertEqual(io_extension(Config.io()), EXT_IO_COMPRESSED)
        self.assertEqual(io_extension(Config.io().with_compress(False)), EXT_IO)
        self.assertEqual(io_extension(Config.source()), EXT_SOURCE)
        self.assertEqual(io_extension(), ".io.gbln.xz")

    def test_magic(self):
        self.assertEqual(XZ_MAGIC, bytes([0xFD, 0x37, 0x7A, 0x58, 0x5A, 0x00]))
        self.assertTrue(is_compressed(XZ_MAGIC + b"rest"))
        self.assertFalse(is_compressed(b'{"a":1}'))
        self.assertFalse(is_compressed(b""))


# ── In-memory encode/decode ───────────────────────────────────

class TestBytes(unittest.TestCase):
    def test_default_is_compressed(self):
        data = dumps_io(parse(_DOC))
        self.assertTrue(data.startswith(XZ_MAGIC))
        self.assertEqual(lzma.decompress(data).decode("utf-8"), _DOC)

    def test_uncompressed_mini(self):
        data = dumps_io(parse(_DOC), Config.io().with_compress(False))
        self.assertEqual(data, _DOC.encode("utf-8"))

    def test_pretty_never_compressed(self):
        cfg = Config.source().with_compress(True)
        data = dumps_io(parse('{"a":1}'), cfg)
        self.assertEqual(data, b'{\n  "a": 1\n}')

    def test_every_level_round_trips(self):
        v = parse(_DOC)
        for level in (0, 1, 6, 9):
            with self.subTest(level=level):
                data = dumps_io(v, Config.io().with_compression_level(level))
                self.assertEqual(loads_io(data), v)

    def test_loads_plain_text(self):
        self.assertEqual(loads_io(b'{"a":1}'), parse('{"a":1}'))

    def test_corrupt_stream(self):
        with self.assertRaises(GblnError) as ctx:
            loads_io(XZ_MAGIC + b"\x00" * 32)
        self.assertEqual(ctx.exception.kind, ErrorKind.IO_FAILURE)

    def test_truncated_stream(self):
        data = dumps_io(parse(_DOC))
        with self.assertRaises(GblnError) as ctx:
            loads_io(data[:len(data) // 2])
        self.assertEqual(ctx.exception.kind, ErrorKind.IO_FAILURE)

    def test_parse_errors_pass_through(self):
        data = lzma.compress(b"200i8", format=lzma.FORMAT_XZ)
        with self.assertRaises(GblnError) as ctx:
            loads_io(data)
        self.assertEqual(ctx.exception.kind, ErrorKind.INT_OUT_OF_RANGE)

    def test_max_string_len_applies(self):
        data = dumps_io(parse('["abcdef"]'))
        with self.assertRaises(GblnError) as ctx:
            loads_io(data, max_string_len=3)
        self.assertEqual(ctx.exception.kind, ErrorKind.STRING_TOO_LONG)

    def test_none_arguments(self):
        with self.assertRaises(GblnError) as ctx:
            dumps_io(None)
        self.assertEqual(ctx.exception.kind, ErrorKind.NULL_ARGUMENT)
        with self.assertRaises(GblnError) as ctx:
            loads_io(None)
        self.assertEqual(ctx.exception.kind, ErrorKind.NULL_ARGUMENT)


# ── Files ─────────────────────────────────────────────────────

class TestFiles(_TempDirCase):
    def test_write_read_compressed(self):
        v = parse(_DOC)
        path = self.tmp / ("data" + EXT_IO_COMPRESSED)
        write_io(v, path)
        self.assertTrue(path.read_bytes().startswith(XZ_MAGIC))
        self.assertEqual(read_io(path), v)

    def test_write_read_uncompressed(self):
        v = parse(_DOC)
        path = self.tmp / ("data" + EXT_IO)
        write_io(v, str(path), Config.io().with_compress(False))
        self.assertEqual(path.read_text(encoding="utf-8"), _DOC)
        self.assertEqual(read_io(str(path)), v)

    def test_write_source(self):
        v = parse('{"a":[1,2]}')
        path = self.tmp / ("config" + EXT_SOURCE)
        write_io(v, path, Config.source())
        self.assertEqual(path.read_text(encoding="utf-8"), '{\n  "a": [\n    1,\n    2\n  ]\n}')
        self.assertEqual(parse_file(path), v)

    def test_detection_ignores_file_name(self):
        v = parse(_DOC)
        misleading = self.tmp / "plain.gbln"
        write_io(v, misleading)
        self.assertEqual(read_io(misleading), v)

        also = self.tmp / "packed.io.gbln.xz"
        write_io(v, also, Config.io().with_compress(False))
        self.assertEqual(read_io(also), v)

    def test_file_written_to_exact_path(self):
        path = self.tmp / "no_suffix"
        write_io(parse("1"), path)
        self.assertTrue(path.exists())
        self.assertEqual(sorted(p.name for p in self.tmp.iterdir()), ["no_suffix"])

    def test_missing_file(self):
        with self.assertRaises(GblnError) as ctx:
            read_io(self.tmp / "nope.io.gbln.xz")
        self.assertEqual(ctx.exception.kind, ErrorKind.IO_FAILURE)
        with self.assertRaises(GblnError) as ctx:
            parse_file(self.tmp / "nope.gbln")
        self.assertEqual(ctx.exception.kind, ErrorKind.IO_FAILURE)

    def test_unwritable_path(self):
        with self.assertRaises(GblnError) as ctx:
            write_io(parse("1"), self.tmp / "missing_dir" / "x.io.gbln.xz")
        self.assertEqual(ctx.exception.kind, ErrorKind.IO_FAILURE)

    def test_none_path(self):
        with self.assertRaises(GblnError) as ctx:
            read_io(None)
        self.assertEqual(ctx.exception.kind, ErrorKind.NULL_ARGUMENT)
        with self.assertRaises(GblnError) as ctx:
            write_io(parse("1"), None)
        self.assertEqual(ctx.exception.kind, ErrorKind.NULL_ARGUMENT)

    def test_parse_error_in_file_has_position(self):
        path = self.tmp / "bad.gbln"
        path.write_text('{\n  "age": 300u8\n}', encoding="utf-8")
        with self.assertRaises(GblnError) as ctx:
            parse_file(path)
        self.assertEqual(ctx.exception.kind, ErrorKind.INT_OUT_OF_RANGE)
        self.assertEqual(ctx.exception.position.line, 2)
        self.assertEqual(ctx.exception.position.column, 10)

    def test_compressed_is_smaller_for_repetitive_data(self):
        v = parse("[" + ",".join(['{"name":"value","n":1}'] * 200) + "]")
        packed = self.tmp / "big.io.gbln.xz"
        plain = self.tmp / "big.io.gbln"
        write_io(v, packed)
        write_io(v, plain, Config.io().with_compress(False))
        self.assertLess(packed.stat().st_size, plain.stat().st_size)


# ── Async variants ────────────────────────────────────────────

class TestAsyncFiles(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.tmp = Path(tempfile.mkdtemp(prefix="gbln-test-"))
        clear_last_error()

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    async def test_write_then_read(self):
        v = parse(_DOC)
        path = self.tmp / ("data" + EXT_IO_COMPRESSED)
        await write_io_async(v, path)
        self.assertTrue(path.read_bytes().startswith(XZ_MAGIC))
        self.assertEqual(await read_io_async(path), v)

    async def test_parse_file_async(self):
        path = self.tmp / ("config" + EXT_SOURCE)
        path.write_text('{\n  "a": "abc"s3\n}', encoding="utf-8")
        v = await parse_file_async(path)
        self.assertEqual(v.get("a").as_str(), ("abc", True))
        with self.assertRaises(GblnError) as ctx:
            await parse_file_async(path, max_string_len=2)
        self.assertEqual(ctx.exception.kind, ErrorKind.STRING_TOO_LONG)

    async def test_failure_reported_on_calling_thread(self):
        with self.assertRaises(GblnError) as ctx:
            await read_io_async(self.tmp / "nope.io.gbln.xz")
        self.assertEqual(ctx.exception.kind, ErrorKind.IO_FAILURE)
        self.assertIs(last_diagnostic(), ctx.exception.diagnostic)

        path = self.tmp / "ok.io.gbln"
        await write_io_async(parse("[1,2]"), path, Config.io().with_compress(False))
        self.assertIsNone(last_diagnostic())
        self.assertEqual(path.read_text(encoding="utf-8"), "[1,2]")

    async def test_concurrent_reads(self):
        paths = []
        for i in range(4):
            p = self.tmp / "doc{}.io.gbln.xz".format(i)
            write_io(parse("[{}]".format(i)), p)
            paths.append(p)
        values = await asyncio.gather(*(read_io_async(p) for p in paths))
        self.assertEqual([v.at(0).as_i64()[0] for v in values], [0, 1, 2, 3])



if __name__ == "__main__":
    unittest.main()
