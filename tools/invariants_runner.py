#!/usr/bin/env python3
# tools/invariants_runner.py
#
# Round-trip invariants (property tests) over random GBLN value trees.
#
# This runner:
# - generates random typed trees (every numeric width, bounded and
#   unbounded strings, bool, null, objects, arrays) within limits
# - checks parse(serialize(v)) == v for compact and pretty output
# - checks serializer idempotence and the XZ file codec round-trip
#
# Exit code:
#   0 -> all checks passed
#   1 -> invariant violation

import os, sys, random
from typing import Any, Dict

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

from gbln import (
    Config,
    Value,
    ValueType,
    dumps_io,
    loads_io,
    parse,
    serialize_compact,
    serialize_pretty,
)
from gbln._constants import FLOAT32_MAX, INT_RANGES

SEED = int(os.environ.get("GBLN_SEED", "1337"))
TRIALS = int(os.environ.get("GBLN_TRIALS", "2000"))
MAX_GEN_DEPTH = int(os.environ.get("GBLN_GEN_MAX_DEPTH", "5"))
MAX_KEYS = int(os.environ.get("GBLN_GEN_MAX_KEYS", "6"))
MAX_LIST = int(os.environ.get("GBLN_GEN_MAX_LIST", "6"))
MAX_STR = int(os.environ.get("GBLN_GEN_MAX_STR", "24"))
IO_EVERY = int(os.environ.get("GBLN_IO_EVERY", "20"))

random.seed(SEED)

def rand_string() -> str:
    # Scalars excluding the surrogate range; control chars occasionally.
    out = []
    n = random.randint(0, MAX_STR)
    for _ in range(n):
        r = random.random()
        if r < 0.70:
            out.append(chr(random.randint(0x20, 0x7E)))
        elif r < 0.80:
            out.append(random.choice('"\\\n\t\x00\x1f'))
        elif r < 0.90:
            out.append(chr(random.randint(0x0100, 0xD7FF)))
        else:
            out.append(chr(random.randint(0x10000, 0x10FFFF)))
    return "".join(out)

def rand_int_value() -> Value:
    suffix = random.choice(list(INT_RANGES))
    lo, hi = INT_RANGES[suffix]
    r = random.random()
    if r < 0.2:
        n = lo
    elif r < 0.4:
        n = hi
    else:
        n = random.randint(max(lo, -1000), min(hi, 1000))
    return Value.number(ValueType[suffix.upper()], n)

def rand_float_value() -> Value:
    if random.random() < 0.5:
        return Value.f32(random.uniform(-FLOAT32_MAX, FLOAT32_MAX) * random.choice([1.0, 1e-30, 1e-10]))
    return Value.f64(random.choice([random.random(), random.uniform(-1e300, 1e300), float(random.randint(-9, 9))]))

def rand_scalar() -> Value:
    r = random.random()
    if r < 0.35:
        return rand_int_value()
    if r < 0.55:
        return rand_float_value()
    if r < 0.85:
        s = rand_string()
        if random.random() < 0.5:
            return Value.string(s, len(s) + random.randint(0, 8))
        return Value.string(s)
    if r < 0.95:
        return Value.boolean(random.random() < 0.5)
    return Value.null()

def gen_value(depth: int) -> Value:
    if depth >= MAX_GEN_DEPTH:
        return rand_scalar()
    r = random.random()
    if r < 0.35:
        obj = Value.object()
        for k in dict.fromkeys(rand_string() for _ in range(random.randint(0, MAX_KEYS))):
            obj.insert(k, gen_value(depth + 1))
        return obj
    if r < 0.60:
        arr = Value.array()
        for _ in range(random.randint(0, MAX_LIST)):
            arr.push(gen_value(depth + 1))
        return arr
    return rand_scalar()

def fail(label: str, v: Value, ctx: Dict[str, Any]) -> int:
    print("INVARIANT FAIL:", label)
    print("CTX:", ctx)
    print("VALUE:", serialize_compact(v)[:2000])
    return 1

def main() -> int:
    for t in range(TRIALS):
        v = gen_value(0)

        # (1) Compact round-trip, widths and bounds included
        compact = serialize_compact(v)
        if parse(compact) != v:
            return fail("compact round-trip", v, {"trial": t})

        # (2) Pretty round-trip
        pretty = serialize_pretty(v)
        if parse(pretty) != v:
            return fail("pretty round-trip", v, {"trial": t})

        # (3) Idempotence
        if serialize_compact(parse(compact)) != compact:
            return fail("compact idempotence", v, {"trial": t})
        if serialize_pretty(parse(pretty)) != pretty:
            return fail("pretty idempotence", v, {"trial": t})

        # (4) Copy equality and detachment
        c = v.copy()
        if c != v or c.owned:
            return fail("copy", v, {"trial": t})

        # (5) File codec round-trip (sampled; XZ is slow)
        if t % IO_EVERY == 0:
            level = random.randint(0, 9)
            for cfg in (Config.io().with_compression_level(level),
                        Config.io().with_compress(False),
                        Config.source()):
                if loads_io(dumps_io(v, cfg)) != v:
                    return fail("io round-trip", v, {"trial": t, "config": cfg})

    print(f"OK: invariants passed for TRIALS={TRIALS} seed={SEED}")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
