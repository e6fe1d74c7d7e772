"""GBLN command-line interface.

Usage:
    echo '{"a":5i8}' | python3 -m gbln fmt [--indent N | --mini]
    echo '{"a":5i8}' | python3 -m gbln check
    python3 -m gbln read data.io.gbln.xz
    python3 -m gbln write data.io.gbln.xz --input data.gbln [--no-compress] [--source]
    python3 -m gbln version
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from . import (
    Config,
    GblnError,
    __version__,
    parse,
    read_io,
    serialize_compact,
    serialize_pretty,
    write_io,
)

logger = logging.getLogger("gbln")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gbln",
        description="GBLN: typed data-interchange notation",
    )
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    # ── fmt ──
    fmt_p = sub.add_parser("fmt", help="Reformat GBLN text")
    fmt_g = fmt_p.add_mutually_exclusive_group()
    fmt_g.add_argument("--mini", action="store_true", help="Compact (MINI) output")
    fmt_g.add_argument("--indent", type=int, default=None, metavar="N",
                       help="Spaces per nesting level (default 2)")
    fmt_p.add_argument("--input", "-i", metavar="FILE",
                       help="Read GBLN from FILE instead of stdin")

    # ── check ──
    check_p = sub.add_parser("check", help="Validate GBLN text")
    check_p.add_argument("--input", "-i", metavar="FILE",
                         help="Read GBLN from FILE instead of stdin")

    # ── read ──
    read_p = sub.add_parser("read", help="Read an IO file (compressed or not) and print source text")
    read_p.add_argument("path", metavar="FILE")
    read_p.add_argument("--mini", action="store_true", help="Print compact text")

    # ── write ──
    write_p = sub.add_parser("write", help="Write GBLN text to an IO file")
    write_p.add_argument("path", metavar="FILE")
    write_p.add_argument("--input", "-i", metavar="FILE",
                         help="Read GBLN from FILE instead of stdin")
    write_p.add_argument("--no-compress", action="store_true",
                         help="Write MINI text without XZ compression")
    write_p.add_argument("--source", action="store_true",
                         help="Write pretty source text")
    write_p.add_argument("--level", type=int, default=None, metavar="N",
                         help="XZ compression level 0-9")

    # ── version ──
    sub.add_parser("version", help="Print version and exit")

    return parser


def _read_input(filepath: Optional[str]) -> bytes:
    """Read GBLN bytes from a file or stdin."""
    if filepath:
        with open(filepath, "rb") as f:
            return f.read()
    if sys.stdin.isatty():
        print("gbln: reading from stdin (Ctrl-D to end)...", file=sys.stderr)
    return sys.stdin.buffer.read()


def _cmd_fmt(args: argparse.Namespace) -> None:
    value = parse(_read_input(args.input))
    if args.mini:
        print(serialize_compact(value))
    else:
        print(serialize_pretty(value, indent=args.indent))


def _cmd_check(args: argparse.Namespace) -> None:
    parse(_read_input(args.input))
    print("ok")


def _cmd_read(args: argparse.Namespace) -> None:
    value = read_io(args.path)
    print(serialize_compact(value) if args.mini else serialize_pretty(value))


def _cmd_write(args: argparse.Namespace) -> None:
    value = parse(_read_input(args.input))
    cfg = Config.source() if args.source else Config.io()
    if args.no_compress:
        cfg = cfg.with_compress(False)
    if args.level is not None:
        cfg = cfg.with_compression_level(args.level)
    write_io(value, args.path, cfg)
    logger.info("wrote %s", args.path)


def _report(e: GblnError) -> None:
    where = ""
    if e.position is not None:
        where = " {}:{}".format(e.position.line, e.position.column)
    print("gbln: error [{}]{}: {}".format(e.kind, where, e.message), file=sys.stderr)
    if e.suggestion:
        print("gbln: hint: {}".format(e.suggestion), file=sys.stderr)


def main(argv: Optional[List[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "version":
        print(f"gbln {__version__}")
        return

    try:
        if args.command == "fmt":
            _cmd_fmt(args)
        elif args.command == "check":
            _cmd_check(args)
        elif args.command == "read":
            _cmd_read(args)
        elif args.command == "write":
            _cmd_write(args)
    except GblnError as e:
        _report(e)
        sys.exit(2)
    except OSError as e:
        print(f"gbln: cannot read input: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
