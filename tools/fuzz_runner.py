#!/usr/bin/env python3
# tools/fuzz_runner.py
#
# Mutation fuzzing of the GBLN parser.
#
# Generates three fuzz categories:
#   A) random VALID documents -> must parse and round-trip
#   B) byte-level mutations of valid documents -> parse or GblnError
#   C) known-invalid templates -> must raise the expected error kind
#
# Any other outcome (a foreign exception, a wrong error kind, a failed
# round-trip) prints a minimal repro payload and exits non-zero.

import os, sys, json, random, traceback
from typing import Any, Dict, List

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

from gbln import ErrorKind, GblnError, parse, serialize_compact

SEED = int(os.environ.get("GBLN_SEED", "4242"))
ROUNDS = int(os.environ.get("GBLN_FUZZ_ROUNDS", "5000"))

random.seed(SEED)

def report(label: str, raw: str, ctx: Dict[str, Any]) -> None:
    print("FAIL:", label)
    print("INPUT:", json.dumps(raw, ensure_ascii=False)[:4000])
    print("CTX:", json.dumps(ctx, ensure_ascii=False, default=str)[:4000])
    raise SystemExit(1)

# --- generators ---

_SUFFIXES = ["", "", "", "i8", "i16", "i32", "i64", "u8", "u16", "u32", "u64"]

def rand_ascii(nmax: int) -> str:
    n = random.randint(0, nmax)
    return "".join(chr(random.randint(0x20, 0x7E)) for _ in range(n))

def rand_key() -> str:
    return json.dumps(rand_ascii(10), ensure_ascii=False)

def rand_scalar_text() -> str:
    r = random.random()
    if r < 0.3:
        return "{}{}".format(random.randint(0, 127), random.choice(_SUFFIXES))
    if r < 0.45:
        return "{}{}".format(random.choice(["0.5", "-2.25", "1e3"]), random.choice(["", "f32", "f64"]))
    if r < 0.8:
        s = json.dumps(rand_ascii(18), ensure_ascii=False)
        return s + ("s64" if random.random() < 0.3 else "")
    return random.choice(["true", "false", "null"])

def rand_doc_valid() -> str:
    def gen(depth: int) -> str:
        if depth > 5 or random.random() < 0.4:
            return rand_scalar_text()
        if random.random() < 0.6:
            keys = list(dict.fromkeys(rand_key() for _ in range(random.randint(0, 5))))
            return "{" + ",".join("{}:{}".format(k, gen(depth + 1)) for k in keys) + "}"
        return "[" + ",".join(gen(depth + 1) for _ in range(random.randint(0, 5))) + "]"
    return gen(0)

_NOISE = list('{}[]:,"\\ \n') + ["i8", "u64", "s3", ":|", "//", "-", ".", "e", "@", "é"]

def mutate(doc: str) -> str:
    chars = list(doc)
    for _ in range(random.randint(1, 4)):
        op = random.random()
        pos = random.randint(0, len(chars))
        if op < 0.4 and chars:
            del chars[min(pos, len(chars) - 1)]
        elif op < 0.8:
            chars.insert(pos, random.choice(_NOISE))
        else:
            chars = chars[:pos]
    return "".join(chars)

_INVALID: List[tuple] = [
    ('{"a":', ErrorKind.UNEXPECTED_EOF),
    ('{"a":"x",}', ErrorKind.INVALID_SYNTAX),
    ("{}{}", ErrorKind.INVALID_SYNTAX),
    ('{"a":"\\ud800"}', ErrorKind.INVALID_SYNTAX),
    ('{"a":"x', ErrorKind.UNTERMINATED_STRING),
    ('{"a":1,"a":1}', ErrorKind.DUPLICATE_KEY),
    ("[300u8]", ErrorKind.INT_OUT_OF_RANGE),
    ('["abcd"s2]', ErrorKind.STRING_TOO_LONG),
    ("[1.5u8]", ErrorKind.TYPE_MISMATCH),
    ("[1x9]", ErrorKind.INVALID_TYPE_HINT),
]

def main() -> int:
    for i in range(ROUNDS):
        r = random.random()

        # A) valid documents
        if r < 0.35:
            raw = rand_doc_valid()
            try:
                v = parse(raw)
            except GblnError as e:
                report("A valid doc rejected", raw, {"round": i, "err": str(e)})
            if parse(serialize_compact(v)) != v:
                report("A round-trip", raw, {"round": i})
            continue

        # B) mutations: anything but a GblnError is a bug
        if r < 0.9:
            raw = mutate(rand_doc_valid())
            try:
                v = parse(raw)
            except GblnError as e:
                if e.position is None:
                    report("B error without position", raw, {"round": i, "err": str(e)})
                continue
            except Exception:
                report("B foreign exception", raw, {"round": i, "tb": traceback.format_exc()})
            if parse(serialize_compact(v)) != v:
                report("B round-trip", raw, {"round": i})
            continue

        # C) known-invalid templates
        raw, kind = random.choice(_INVALID)
        try:
            parse(raw)
        except GblnError as e:
            if e.kind is not kind:
                report("C wrong error kind", raw, {"round": i, "got": str(e.kind), "expected": str(kind)})
            continue
        report("C invalid doc accepted", raw, {"round": i})

    print(f"OK: fuzz passed for ROUNDS={ROUNDS} seed={SEED}")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
