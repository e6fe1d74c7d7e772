"""GBLN file codec.

Write policy comes from the Config alone:

    mini_mode and compress   compact text, XZ-compressed   (.io.gbln.xz)
    mini_mode, no compress   compact text                  (.io.gbln)
    not mini_mode            pretty text, never compressed (.gbln)

Read policy comes from the bytes alone: a file that starts with the XZ
magic ``FD 37 7A 58 5A 00`` is decompressed first, whatever its name.

read_io_async(), write_io_async() and parse_file_async() are awaitable
forms of the same calls for use inside an event loop.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import lzma
import os
from pathlib import Path
from typing import Optional, Union

from ._config import Config, IO_CONFIG
from ._constants import EXT_IO, EXT_IO_COMPRESSED, EXT_SOURCE, MAGIC_LEN, XZ_MAGIC
from ._errors import ErrorKind, GblnError, reports_diagnostics
from ._parser import Parser
from ._serializer import serialize_compact, serialize_pretty
from ._value import Value

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


def io_extension(config: Optional[Config] = None) -> str:
    """File suffix matching the write policy of ``config``."""
    cfg = config or IO_CONFIG
    if not cfg.mini_mode:
        return EXT_SOURCE
    return EXT_IO_COMPRESSED if cfg.compress else EXT_IO


def is_compressed(data: bytes) -> bool:
    return data[:MAGIC_LEN] == XZ_MAGIC


@reports_diagnostics
def dumps_io(value: Value, config: Optional[Config] = None) -> bytes:
    """Encode a Value to file bytes under ``config`` (default: IO preset)."""
    if value is None:
        raise GblnError(ErrorKind.NULL_ARGUMENT, "value is None")
    cfg = config or IO_CONFIG

    if not cfg.mini_mode:
        if cfg.compress:
            logger.debug("compress ignored for pretty output")
        return serialize_pretty(value, cfg).encode("utf-8")

    body = serialize_compact(value).encode("utf-8")
    if not cfg.compress:
        return body
    try:
        return lzma.compress(body, format=lzma.FORMAT_XZ, preset=cfg.compression_level)
    except lzma.LZMAError as e:
        raise GblnError(ErrorKind.IO_FAILURE, "xz compression failed: {}".format(e)) from e


@reports_diagnostics
def loads_io(data: bytes, max_string_len: Optional[int] = None) -> Value:
    """Decode file bytes (XZ-compressed or plain text) into a Value."""
    if data is None:
        raise GblnError(ErrorKind.NULL_ARGUMENT, "data is None")
    if is_compressed(data):
        logger.debug("xz magic detected, decompressing %d bytes", len(data))
        try:
            data = lzma.decompress(data, format=lzma.FORMAT_XZ)
        except lzma.LZMAError as e:
            raise GblnError(ErrorKind.IO_FAILURE,
                            "corrupt xz stream: {}".format(e),
                            suggestion="re-write the file; the compressed data is damaged") from e
    return Parser(data, max_string_len=max_string_len).parse()


@reports_diagnostics
def write_io(value: Value, path: PathLike, config: Optional[Config] = None) -> None:
    """Serialize ``value`` under ``config`` and write it to ``path``.

    The file is written to exactly ``path``; use io_extension() to pick a
    conventional suffix.
    """
    if path is None:
        raise GblnError(ErrorKind.NULL_ARGUMENT, "path is None")
    cfg = config or IO_CONFIG
    data = dumps_io(value, cfg)
    p = Path(path)
    if not p.name.endswith(io_extension(cfg)):
        logger.debug("%s does not carry the conventional %s suffix", p, io_extension(cfg))
    try:
        p.write_bytes(data)
    except OSError as e:
        raise GblnError(ErrorKind.IO_FAILURE, "cannot write {}: {}".format(p, e.strerror or e)) from e
    logger.debug("wrote %d bytes to %s", len(data), p)


def _read_bytes(path: PathLike) -> bytes:
    if path is None:
        raise GblnError(ErrorKind.NULL_ARGUMENT, "path is None")
    p = Path(path)
    try:
        return p.read_bytes()
    except OSError as e:
        raise GblnError(ErrorKind.IO_FAILURE, "cannot read {}: {}".format(p, e.strerror or e)) from e


@reports_diagnostics
def read_io(path: PathLike, max_string_len: Optional[int] = None) -> Value:
    """Read any GBLN file, auto-detecting XZ compression by magic bytes."""
    return loads_io(_read_bytes(path), max_string_len=max_string_len)


@reports_diagnostics
def parse_file(path: PathLike, max_string_len: Optional[int] = None) -> Value:
    """Read and parse an uncompressed GBLN text file."""
    return Parser(_read_bytes(path), max_string_len=max_string_len).parse()


# ── Async variants ────────────────────────────────────────────
# The blocking call runs on the loop's default executor.  The wrapper
# records diagnostics on the loop thread, where the caller looks.


@reports_diagnostics
async def write_io_async(value: Value, path: PathLike, config: Optional[Config] = None) -> None:
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, functools.partial(write_io, value, path, config))


@reports_diagnostics
async def read_io_async(path: PathLike, max_string_len: Optional[int] = None) -> Value:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(
        None, functools.partial(read_io, path, max_string_len=max_string_len))


@reports_diagnostics
async def parse_file_async(path: PathLike, max_string_len: Optional[int] = None) -> Value:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(
        None, functools.partial(parse_file, path, max_string_len=max_string_len))
